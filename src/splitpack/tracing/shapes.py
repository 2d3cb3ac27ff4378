"""Renderer payloads for traced values.

The chunking core treats node content as opaque. The tracer stores a
ValueShape per node: the value's structural kind and its slots in order,
each slot holding either a literal (for primitives) or a reference to one
of the node's edges.

Python 3.13+.
"""

import math
from dataclasses import dataclass

from ..enums import ValueKind

__all__ = [
    "Literal",
    "PRIMITIVE_TYPES",
    "Ref",
    "Slot",
    "ValueShape",
    "is_primitive",
    "literal_text",
]

PRIMITIVE_TYPES: tuple[type, ...] = (type(None), bool, int, float, complex, str, bytes)


def is_primitive(value: object) -> bool:
    """Return True for values emitted as literals rather than nodes."""
    return type(value) in PRIMITIVE_TYPES


def literal_text(value: object) -> str:
    """Python source for a primitive, or a tuple of primitives.

    Raises:
        TypeError: If the value has no literal form
    """
    if type(value) is float and not math.isfinite(value):
        return f"float('{value}')"
    if type(value) is complex and not (math.isfinite(value.real) and math.isfinite(value.imag)):
        return f"complex('{value}')"
    if is_primitive(value):
        return repr(value)
    if type(value) is tuple:
        parts = [literal_text(item) for item in value]
        if len(parts) == 1:
            return f"({parts[0]},)"
        return f"({', '.join(parts)})"
    msg = f"no literal form for {type(value).__qualname__}"
    raise TypeError(msg)


@dataclass(frozen=True, slots=True)
class Literal:
    """Slot value written inline as Python source."""

    text: str


@dataclass(frozen=True, slots=True)
class Ref:
    """Slot value resolved through the node's edge at this position."""

    edge: int


@dataclass(frozen=True, slots=True)
class Slot:
    """One position of a container.

    Attributes:
        key: Dict key source text, attribute name for namespaces, None for
            sequences and thunks
        value: Literal or edge reference
    """

    key: str | None
    value: Literal | Ref


@dataclass(frozen=True, slots=True)
class ValueShape:
    """Structure of a traced value."""

    kind: ValueKind
    slots: tuple[Slot, ...] = ()
    literal: str | None = None

    def slot_for_edge(self, edge: int) -> int:
        """Return the slot position that references an edge.

        Raises:
            KeyError: If no slot references the edge
        """
        for position, slot in enumerate(self.slots):
            if isinstance(slot.value, Ref) and slot.value.edge == edge:
                return position
        raise KeyError(edge)
