"""Python module renderer for chunk plans.

Turns one chunk into module source. Layout of an emitted module:

    from splitpack.runtime import load_chunk
    shared = load_chunk(__file__, 'shared-abcdefgh.py')
    a = {'self': None, 'x': shared[0]}
    a['self'] = a
    exports = a

Loads come first, then the plan's DECLARE/BUILD/PATCH steps, then the
module value bound to ``exports``. Values referenced exactly once are
inlined into the expression that uses them when inlining is enabled, up to
MAX_INLINE_DEPTH levels of nesting.

Python 3.13+.
"""

import keyword
from collections import Counter
from dataclasses import dataclass, field

from ..chunking.model import Chunk, ChunkGraph, Resolver
from ..chunking.registry import Node, NodeRegistry
from ..constants import EXPORTS_NAME, LOAD_ASYNC_FUNCTION, LOAD_FUNCTION, MAX_INLINE_DEPTH, RUNTIME_MODULE
from ..diagnostics import ChunkingInvariantError, ErrorTemplate, UnsupportedValueError
from ..enums import EdgeKind, ExportShape, StepKind, ValueKind
from ..tracing.shapes import Literal, Slot, ValueShape
from .varnames import VarNameAllocator

__all__ = ["PythonChunkRenderer"]


def _is_attribute_name(key: str) -> bool:
    """True if a namespace key can be written as a keyword argument or attribute."""
    return key.isidentifier() and not keyword.iskeyword(key) and not key.startswith("__")


def _shape(node: Node) -> ValueShape:
    content = node.content
    if not isinstance(content, ValueShape):
        raise ChunkingInvariantError(ErrorTemplate.invariant_violated(f"node {node.index} has no traced shape"))
    return content


@dataclass(slots=True)
class _ModuleWriter:
    """Per-chunk rendering state. Discarded after one render."""

    registry: NodeRegistry
    graph: ChunkGraph
    chunk: Chunk
    resolve: Resolver
    inline: bool
    names: VarNameAllocator = field(default_factory=VarNameAllocator)
    lines: list[str] = field(default_factory=list)
    origins: list[tuple[int, str]] = field(default_factory=list)
    bindings: dict[int, str] = field(default_factory=dict)
    variables: dict[int, str] = field(default_factory=dict)
    inlined: dict[int, str] = field(default_factory=dict)
    inline_depth: dict[int, int] = field(default_factory=dict)
    nested: int = 0
    uses_namespace: bool = False

    def write(self) -> str:
        chunk = self.chunk
        for load in chunk.loads:
            if load.kind is EdgeKind.SYNC:
                target = self.graph.chunk(load.target)
                var = self.names.allocate(load.binding)
                self.bindings[target.id] = var
                self.lines.append(f"{var} = {LOAD_FUNCTION}(__file__, {self.resolve(target)!r})")

        counts = self._reference_counts()
        for step in chunk.plan:
            node = self.registry.node(step.node)
            match step.kind:
                case StepKind.DECLARE:
                    if _shape(node).kind is ValueKind.TUPLE:
                        raise UnsupportedValueError(ErrorTemplate.immutable_cycle_head(node.origin))
                    var = self.names.allocate()
                    self.variables[node.index] = var
                    self._emit(f"{var} = {self._expression(node, frozenset(step.pending))}", node.origin)
                case StepKind.BUILD:
                    self.nested = 0
                    expression = self._expression(node)
                    depth = self.nested + 1
                    if self.inline and counts[node.index] == 1 and depth < MAX_INLINE_DEPTH:
                        self.inlined[node.index] = expression
                        self.inline_depth[node.index] = depth
                    else:
                        var = self.names.allocate()
                        self.variables[node.index] = var
                        self._emit(f"{var} = {expression}", node.origin)
                case StepKind.PATCH:
                    assert step.edge is not None  # Type narrowing: PATCH steps carry an edge
                    self._emit(self._patch(node, step.edge), node.origin)

        self._emit(f"{EXPORTS_NAME} = {self._module_value()}", chunk.label)
        if self.inlined:
            raise ChunkingInvariantError(
                ErrorTemplate.invariant_violated(f"unused inline values {sorted(self.inlined)} in {chunk.label}")
            )
        return "\n".join([*self.header(), *self.lines]) + "\n"

    def _emit(self, line: str, origin: str) -> None:
        self.lines.append(line)
        self.origins.append((len(self.lines), origin))

    def header(self) -> list[str]:
        imports = []
        if any(load.kind is EdgeKind.SYNC for load in self.chunk.loads):
            imports.append(LOAD_FUNCTION)
        if any(load.kind is EdgeKind.DEFERRED for load in self.chunk.loads):
            imports.append(LOAD_ASYNC_FUNCTION)
        header = []
        if self.uses_namespace:
            header.append("from types import SimpleNamespace")
        if imports:
            header.append(f"from {RUNTIME_MODULE} import {', '.join(imports)}")
        return header

    def _reference_counts(self) -> Counter[int]:
        """How often each member is referenced from within this chunk."""
        counts: Counter[int] = Counter()
        members = set(self.chunk.members)
        for member in self.chunk.members:
            for edge in self.registry.node(member).edges:
                if edge.kind is EdgeKind.SYNC and edge.target in members:
                    counts[edge.target] += 1
        for node in dict.fromkeys([*self.chunk.values, *self.chunk.exports]):
            counts[node] += 1
        return counts

    def _module_value(self) -> str:
        chunk = self.chunk
        if chunk.proxy_of is not None:
            return self._reference(chunk.proxy_of)
        values = chunk.values
        if chunk.shape is ExportShape.SINGLE:
            return self._reference(values[0])
        return f"[{', '.join(self._reference(node) for node in values)}]"

    def _reference(self, index: int) -> str:
        inlined = self.inlined.pop(index, None)
        if inlined is not None:
            self.nested = max(self.nested, self.inline_depth.pop(index))
            return inlined
        var = self.variables.get(index)
        if var is not None:
            return var
        owner = self.graph.owner_of(index)
        binding = self.bindings.get(owner.id)
        if owner is self.chunk or binding is None:
            raise ChunkingInvariantError(
                ErrorTemplate.invariant_violated(f"node {index} referenced before it is available in {self.chunk.label}")
            )
        position = owner.access(index)
        return binding if position is None else f"{binding}[{position}]"

    def _slot_value(self, node: Node, slot: Slot, pending: frozenset[int]) -> str:
        if isinstance(slot.value, Literal):
            return slot.value.text
        if slot.value.edge in pending:
            return "None"
        return self._reference(node.edges[slot.value.edge].target)

    def _expression(self, node: Node, pending: frozenset[int] = frozenset()) -> str:
        shape = _shape(node)
        match shape.kind:
            case ValueKind.PRIMITIVE:
                assert shape.literal is not None  # Type narrowing: primitives carry a literal
                return shape.literal
            case ValueKind.DICT:
                items = [f"{slot.key}: {self._slot_value(node, slot, pending)}" for slot in shape.slots]
                return "{" + ", ".join(items) + "}"
            case ValueKind.LIST:
                return "[" + ", ".join(self._slot_value(node, slot, pending) for slot in shape.slots) + "]"
            case ValueKind.TUPLE:
                items = [self._slot_value(node, slot, pending) for slot in shape.slots]
                if len(items) == 1:
                    return f"({items[0]},)"
                return "(" + ", ".join(items) + ")"
            case ValueKind.NAMESPACE:
                self.uses_namespace = True
                return self._namespace(node, shape, pending)
            case ValueKind.THUNK:
                target = self.graph.chunk(self.graph.async_chunks[node.edges[0].target])
                return f"lambda: {LOAD_ASYNC_FUNCTION}(__file__, {self.resolve(target)!r})"

    def _namespace(self, node: Node, shape: ValueShape, pending: frozenset[int]) -> str:
        keys = [slot.key or "" for slot in shape.slots]
        values = [self._slot_value(node, slot, pending) for slot in shape.slots]
        if all(_is_attribute_name(key) for key in keys):
            arguments = ", ".join(f"{key}={value}" for key, value in zip(keys, values, strict=True))
            return f"SimpleNamespace({arguments})"
        items = ", ".join(f"{key!r}: {value}" for key, value in zip(keys, values, strict=True))
        return f"SimpleNamespace(**{{{items}}})"

    def _patch(self, node: Node, edge: int) -> str:
        shape = _shape(node)
        var = self.variables[node.index]
        position = shape.slot_for_edge(edge)
        slot = shape.slots[position]
        value = self._reference(node.edges[edge].target)
        match shape.kind:
            case ValueKind.DICT:
                return f"{var}[{slot.key}] = {value}"
            case ValueKind.LIST:
                return f"{var}[{position}] = {value}"
            case ValueKind.NAMESPACE:
                key = slot.key or ""
                if _is_attribute_name(key):
                    return f"{var}.{key} = {value}"
                return f"setattr({var}, {key!r}, {value})"
            case _:
                raise UnsupportedValueError(ErrorTemplate.immutable_cycle_head(node.origin))


class PythonChunkRenderer:
    """Renders chunks of a traced value graph as Python modules.

    Implements the ChunkRenderer protocol. Line origins of the most recent
    render of each chunk are kept for source maps.

    Args:
        registry: Node registry holding traced shapes
        graph: Chunk graph being rendered
        inline: Inline values referenced once
    """

    __slots__ = ("_graph", "_inline", "_origins", "_registry")

    def __init__(self, registry: NodeRegistry, graph: ChunkGraph, *, inline: bool = True) -> None:
        self._registry = registry
        self._graph = graph
        self._inline = inline
        self._origins: dict[int, tuple[tuple[int, str], ...]] = {}

    def render(self, chunk: Chunk, resolve: Resolver) -> str:
        """Render module text for a chunk.

        Raises:
            UnsupportedValueError: If a tuple would need patching
        """
        writer = _ModuleWriter(self._registry, self._graph, chunk, resolve, self._inline)
        text = writer.write()
        offset = len(writer.header())
        self._origins[chunk.id] = tuple((line + offset, origin) for line, origin in writer.origins)
        return text

    def line_origins(self, chunk: Chunk) -> tuple[tuple[int, str], ...]:
        """(1-based line, value path) pairs for the last render of a chunk."""
        return self._origins.get(chunk.id, ())
