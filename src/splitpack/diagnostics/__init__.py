"""Diagnostic system for splitpack errors.

Provides structured error diagnostics with codes, hints, and value paths.
Inspired by Rust compiler diagnostics.

Python 3.13+. Zero external dependencies.
"""

from .codes import Diagnostic, DiagnosticCode
from .errors import (
    ChunkCycleError,
    ChunkingInvariantError,
    ChunkNamingError,
    SplitPackError,
    SplitPointError,
    UnsupportedValueError,
)
from .formatter import DiagnosticFormatter, OutputFormat
from .templates import ErrorTemplate

__all__ = [
    "ChunkCycleError",
    "ChunkNamingError",
    "ChunkingInvariantError",
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticFormatter",
    "ErrorTemplate",
    "OutputFormat",
    "SplitPackError",
    "SplitPointError",
    "UnsupportedValueError",
]
