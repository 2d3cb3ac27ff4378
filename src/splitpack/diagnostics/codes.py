"""Diagnostic codes and the Diagnostic record carried by splitpack errors.

Codes are grouped in numeric ranges by the stage of a run that raises them.
Python 3.13+. Zero external dependencies.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
]


class DiagnosticCode(Enum):
    """Stable numeric identifiers for every error a run can raise.

    Organized by category:
        1000-1999: Value errors (tracing live Python values)
        2000-2999: Split point errors (registration and lifecycle)
        3000-3999: Cycle errors (unresolvable synchronous loops)
        4000-4999: Naming errors (patterns and filename collisions)
        9000-9999: Internal invariant violations
    """

    # Value errors (1000-1999)
    UNSUPPORTED_VALUE = 1001
    UNSUPPORTED_KEY = 1002
    IMMUTABLE_CYCLE_HEAD = 1003

    # Split point errors (2000-2999)
    SPLIT_ON_PRIMITIVE = 2001
    SPLIT_NAME_INVALID = 2002
    FOREIGN_SPLIT_THUNK = 2004

    # Cycle errors (3000-3999)
    UNRESOLVABLE_CYCLE = 3001
    SYNC_LOAD_CYCLE = 3002

    # Naming errors (4000-4999)
    FILENAME_COLLISION = 4001
    PATTERN_INVALID = 4002
    ENTRY_NAME_INVALID = 4003
    SPLIT_FILENAME_INVALID = 4004

    # Internal (9000-9999)
    INVARIANT_VIOLATED = 9001


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """What went wrong in a run, and where.

    Inspired by Rust compiler diagnostics. Carries enough context to point at
    the offending chunk or value path without re-running the analysis.

    Attributes:
        code: Which error this is
        message: One-sentence description
        hint: What the caller can change to avoid the error
        chunk: Chunk or filename involved, when known
        path: Access path of the value involved, when known (e.g. "one['a'][0]")
        names: Names involved in a conflict (split names, filenames)
        severity: "error" for raised diagnostics; "warning" is reserved for logs
    """

    code: DiagnosticCode
    message: str
    hint: str | None = None
    chunk: str | None = None
    path: str | None = None
    names: tuple[str, ...] | None = None
    severity: Literal["error", "warning"] = "error"

    def __str__(self) -> str:
        """The message alone, without code or location."""
        return self.message

    def format_error(self) -> str:
        """Render in the default multi-line style.

        Example output:
            error[FILENAME_COLLISION]: Chunks resolve to the same filename 'shared.py'
              --> chunk: shared.py
              = names: shared, shared
              = help: Add [hash] to the chunk name pattern

        Returns:
            Text used as the exception message
        """
        from .formatter import DiagnosticFormatter  # noqa: PLC0415 - circular

        return DiagnosticFormatter().format(self)
