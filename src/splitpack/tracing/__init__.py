"""Tracing of live Python values into the node registry.

The tracer itself lives in splitpack.tracing.tracer; this package namespace
only exposes the renderer payload types, which split points also rely on.

Python 3.13+.
"""

from .shapes import PRIMITIVE_TYPES, Literal, Ref, Slot, ValueShape, is_primitive, literal_text

__all__ = [
    "PRIMITIVE_TYPES",
    "Literal",
    "Ref",
    "Slot",
    "ValueShape",
    "is_primitive",
    "literal_text",
]
