"""Text rendering of chunking diagnostics.

A Diagnostic points at a chunk file or at a value path inside an entry.
DiagnosticFormatter turns one into compiler-style text for terminals, a
one-line summary for logs, or a JSON object for build tooling.

Python 3.13+. Zero external dependencies.
"""

import json
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from .codes import Diagnostic

__all__ = [
    "DiagnosticFormatter",
    "OutputFormat",
]

_ANSI_RESET = "\033[0m"
_ANSI_SEVERITY = {"error": "\033[1;31m", "warning": "\033[1;33m"}


class OutputFormat(StrEnum):
    """Rendering style of DiagnosticFormatter."""

    RUST = "rust"
    """Multi-line, rustc-like: header, location, conflicting names, help."""

    SIMPLE = "simple"
    """CODE: message, on one line."""

    JSON = "json"
    """One JSON object per diagnostic."""


@dataclass(frozen=True, slots=True)
class DiagnosticFormatter:
    """Renders diagnostics raised by serialize_entries().

    Attributes:
        output_format: Rendering style
        sanitize: Cut messages and hints down to max_content_length
        color: Color the severity with ANSI escapes (RUST style only)
        max_content_length: Length kept when sanitizing

    Example:
        >>> formatter = DiagnosticFormatter(output_format=OutputFormat.SIMPLE)
        >>> print(formatter.format(ErrorTemplate.split_on_primitive("int")))
        SPLIT_ON_PRIMITIVE: Cannot split on a primitive value of type 'int'
    """

    output_format: OutputFormat = OutputFormat.RUST
    sanitize: bool = False
    color: bool = False
    max_content_length: int = 100

    def format(self, diagnostic: Diagnostic) -> str:
        """Render one diagnostic in the configured style."""
        match self.output_format:
            case OutputFormat.RUST:
                return self._rust(diagnostic)
            case OutputFormat.SIMPLE:
                return f"{diagnostic.code.name}: {self._clip(diagnostic.message)}"
            case OutputFormat.JSON:
                return json.dumps(self._fields(diagnostic), ensure_ascii=False)

    def format_all(self, diagnostics: Iterable[Diagnostic]) -> str:
        """Render several diagnostics, one blank line between each."""
        return "\n\n".join(self.format(diagnostic) for diagnostic in diagnostics)

    def _rust(self, diagnostic: Diagnostic) -> str:
        severity = diagnostic.severity
        if self.color:
            severity = f"{_ANSI_SEVERITY[severity]}{severity}{_ANSI_RESET}"
        lines = [f"{severity}[{diagnostic.code.name}]: {self._clip(diagnostic.message)}"]
        # A chunk is the more precise location once naming has started.
        if diagnostic.chunk:
            lines.append(f"  --> chunk: {diagnostic.chunk}")
        elif diagnostic.path:
            lines.append(f"  --> value: {diagnostic.path}")
        if diagnostic.names:
            lines.append(f"  = names: {', '.join(diagnostic.names)}")
        if diagnostic.hint:
            lines.append(f"  = help: {self._clip(diagnostic.hint)}")
        return "\n".join(lines)

    def _fields(self, diagnostic: Diagnostic) -> dict[str, str | int | list[str]]:
        fields: dict[str, str | int | list[str]] = {
            "code": diagnostic.code.name,
            "code_value": diagnostic.code.value,
            "message": self._clip(diagnostic.message),
            "severity": diagnostic.severity,
        }
        optional = {"chunk": diagnostic.chunk, "path": diagnostic.path}
        fields.update({key: value for key, value in optional.items() if value})
        if diagnostic.names:
            fields["names"] = list(diagnostic.names)
        if diagnostic.hint:
            fields["hint"] = self._clip(diagnostic.hint)
        return fields

    def _clip(self, text: str) -> str:
        if not self.sanitize or len(text) <= self.max_content_length:
            return text
        return f"{text[: self.max_content_length]}..."
