"""Value tracer: turns live Python values into registry nodes.

Walks entry values and split point values iteratively, creating one node per
distinct container identity. Primitives are written inline as literals; a
primitive entry value gets a node of its own so it still has a file to live
in. Async split thunks become nodes with a single deferred edge to the split
value.

Supported containers: dict, list, tuple, types.SimpleNamespace. Subclasses
are rejected: they could not be rebuilt faithfully from a literal.

Python 3.13+.
"""

import logging
from collections.abc import Mapping
from types import SimpleNamespace

from ..chunking.registry import NodeRegistry
from ..diagnostics import ErrorTemplate, SplitPointError, UnsupportedValueError
from ..enums import EdgeKind, ValueKind
from ..split import SplitContext, SplitThunk
from .shapes import Literal, Ref, Slot, ValueShape, is_primitive, literal_text

__all__ = ["ValueTracer"]

logger = logging.getLogger(__name__)

_CONTAINER_KINDS: dict[type, ValueKind] = {
    dict: ValueKind.DICT,
    list: ValueKind.LIST,
    tuple: ValueKind.TUPLE,
    SimpleNamespace: ValueKind.NAMESPACE,
    SplitThunk: ValueKind.THUNK,
}


def _child_origin(origin: str, kind: ValueKind, key: object) -> str:
    match kind:
        case ValueKind.NAMESPACE:
            return f"{origin}.{key}"
        case ValueKind.THUNK:
            return f"{origin}()"
        case _:
            return f"{origin}[{key!r}]"


class ValueTracer:
    """Populates a NodeRegistry from live values.

    Values are held for the tracer's lifetime, so the id() keys used for
    memoization cannot be reused by new objects mid-run.

    Example:
        >>> registry = NodeRegistry()
        >>> shared = {"x": 1}
        >>> ValueTracer(registry).trace_entries({"one": {"a": shared}, "two": {"b": shared}})
        >>> len(registry)
        3
    """

    __slots__ = ("_context", "_keep_alive", "_registry")

    def __init__(self, registry: NodeRegistry, context: SplitContext | None = None) -> None:
        self._registry = registry
        self._context = context
        self._keep_alive: list[object] = []

    def trace_entries(self, entries: Mapping[str, object]) -> None:
        """Trace entries in order, then every split point of the context.

        Split point values are traced even when no entry reaches them, so
        reachability analysis can prune them.
        """
        for name, value in entries.items():
            node = self.trace(value, origin=name, standalone=True)
            self._registry.add_entry(name, node)
        if self._context is None:
            return
        for point in self._context.points:
            label = point.name or "<split>"
            node = self.trace(point.value, origin=label)
            self._registry.add_split(node, point.name, point.mode)
        logger.debug("Traced %d entries into %d nodes", len(entries), len(self._registry))

    def trace(self, value: object, *, origin: str, standalone: bool = False) -> int:
        """Trace a value and everything it references.

        Args:
            value: Value to trace
            origin: Access path for diagnostics
            standalone: Give a primitive its own node instead of rejecting it

        Returns:
            Index of the value's node

        Raises:
            UnsupportedValueError: For values of unsupported types
            SplitPointError: For thunks from a different split context
        """
        registry = self._registry
        if is_primitive(value):
            if not standalone:
                raise UnsupportedValueError(ErrorTemplate.unsupported_value(type(value).__qualname__, origin))
            shape = ValueShape(kind=ValueKind.PRIMITIVE, literal=literal_text(value))
            return registry.add_node(shape, origin=origin).index

        known = registry.lookup(id(value))
        if known is not None:
            return known

        root = self._node_for(value, origin)
        pending = [(value, root)]
        while pending:
            current, index = pending.pop()
            node = registry.node(index)
            kind = _CONTAINER_KINDS[type(current)]
            slots: list[Slot] = []
            for key_text, key, child in self._items(current, kind, node.origin):
                if kind is not ValueKind.THUNK and is_primitive(child):
                    slots.append(Slot(key=key_text, value=Literal(literal_text(child))))
                    continue
                child_origin = _child_origin(node.origin, kind, key)
                existing = registry.lookup(id(child))
                if existing is None:
                    existing = self._node_for(child, child_origin)
                    pending.append((child, existing))
                edge_kind = EdgeKind.DEFERRED if kind is ValueKind.THUNK else EdgeKind.SYNC
                position = registry.add_edge(index, existing, key, edge_kind)
                slots.append(Slot(key=key_text, value=Ref(position)))
            node.content = ValueShape(kind=kind, slots=tuple(slots))
            node.patchable = kind is not ValueKind.TUPLE
        return root

    def _node_for(self, value: object, origin: str) -> int:
        if type(value) not in _CONTAINER_KINDS:
            raise UnsupportedValueError(ErrorTemplate.unsupported_value(type(value).__qualname__, origin))
        if isinstance(value, SplitThunk):
            if self._context is None or not self._context.owns(value):
                raise SplitPointError(ErrorTemplate.foreign_split_thunk(origin))
        self._keep_alive.append(value)
        return self._registry.add_node(identity=id(value), origin=origin).index

    def _items(
        self,
        value: object,
        kind: ValueKind,
        origin: str,
    ) -> list[tuple[str | None, object, object]]:
        """(key source text, raw key, child) for every slot of a container."""
        match kind:
            case ValueKind.DICT:
                assert isinstance(value, dict)  # Type narrowing
                items: list[tuple[str | None, object, object]] = []
                for key, child in value.items():
                    try:
                        key_text = literal_text(key)
                    except TypeError:
                        raise UnsupportedValueError(
                            ErrorTemplate.unsupported_key(type(key).__qualname__, origin)
                        ) from None
                    items.append((key_text, key, child))
                return items
            case ValueKind.LIST | ValueKind.TUPLE:
                assert isinstance(value, (list, tuple))  # Type narrowing
                return [(None, position, child) for position, child in enumerate(value)]
            case ValueKind.NAMESPACE:
                return [(name, name, child) for name, child in vars(value).items()]
            case ValueKind.THUNK:
                assert isinstance(value, SplitThunk)  # Type narrowing
                return [(None, "default", value.point.value)]
            case _:  # pragma: no cover - primitives never reach here
                return []
