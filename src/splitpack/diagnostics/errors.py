"""splitpack exception hierarchy with structured diagnostics.

All exceptions accept either a plain message or a Diagnostic object built by
ErrorTemplate. Every error aborts the run: no partial manifest is returned.

Python 3.13+. Zero external dependencies.
"""

from .codes import Diagnostic

__all__ = [
    "ChunkCycleError",
    "ChunkNamingError",
    "ChunkingInvariantError",
    "SplitPackError",
    "SplitPointError",
    "UnsupportedValueError",
]


class SplitPackError(Exception):
    """Base exception for all splitpack errors.

    Attributes:
        diagnostic: Structured diagnostic information (optional)
    """

    def __init__(self, message: str | Diagnostic) -> None:
        """Initialize SplitPackError.

        Args:
            message: Error message string OR Diagnostic object
        """
        if isinstance(message, Diagnostic):
            self.diagnostic: Diagnostic | None = message
            super().__init__(message.format_error())
        else:
            self.diagnostic = None
            super().__init__(message)


class ChunkCycleError(SplitPackError):
    """Synchronous cycle that cannot be emitted.

    Raised when a cycle would have to be split across files whose names were
    both explicitly requested, or when the final chunk load graph contains a
    synchronous loop.
    """


class ChunkNamingError(SplitPackError):
    """Filename pattern problem.

    Raised when two chunks resolve to the same filename, or when a pattern,
    entry name or split name cannot produce a usable filename.
    """


class SplitPointError(SplitPackError):
    """Invalid split point.

    Examples:
    - split() called on a primitive
    - split name that is not a non-empty string
    - a thunk created by a different SplitContext
    """


class UnsupportedValueError(SplitPackError):
    """Value cannot be serialized.

    Raised by the tracer for types it does not know how to rebuild, and by the
    code generator when an immutable container would need to be patched after
    construction.
    """


class ChunkingInvariantError(SplitPackError):
    """Internal consistency check failed.

    Signals a bug in splitpack rather than a problem with the input.
    """
