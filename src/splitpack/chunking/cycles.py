"""Cycle resolution.

Synchronous cycles are condensed into strongly connected components, which
become atomic assignment units: a cycle can never straddle two files, so the
synchronous chunk load graph stays acyclic. Within a chunk, cycles are
emitted with forward-declare-and-patch: the cycle head is declared with
placeholders, the rest of the cycle is built against it, then the head's
placeholders are patched. Cycles through tuples are emitted as a block with
every patchable member declared up front.

Python 3.13+.
"""

import heapq
import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass

from ..analysis import detect_cycles, strongly_connected_components
from ..diagnostics import ChunkCycleError, ChunkingInvariantError, ErrorTemplate
from ..enums import EdgeKind, RootKind, StepKind
from .model import Chunk, ChunkGraph, Step
from .reachability import Reachability
from .registry import NodeRegistry, Root

__all__ = [
    "Condensation",
    "check_cycle_merge",
    "condense",
    "plan_emission",
    "verify_load_graph",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Condensation:
    """Strongly connected components of the reached synchronous graph.

    Attributes:
        units: Components in topological order (referencers first), each
            with members in discovery order
        unit_of: Node index -> position in units
        cyclic: Positions of units that contain a cycle (several members or a
            self-reference)
    """

    units: tuple[tuple[int, ...], ...]
    unit_of: Mapping[int, int]
    cyclic: frozenset[int]

    def is_cyclic(self, unit: int) -> bool:
        """Return True if the unit contains a synchronous cycle."""
        return unit in self.cyclic


def condense(registry: NodeRegistry, reachability: Reachability) -> Condensation:
    """Condense the reached synchronous graph into assignment units.

    Units are ordered topologically; among units whose referencers are all
    placed, the one holding the earliest discovered node comes first.

    Args:
        registry: Node registry
        reachability: Result of reachability analysis

    Returns:
        Condensation of reached nodes
    """
    reached = sorted(reachability.reach)
    graph = {index: list(registry.node(index).sync_targets()) for index in reached}
    components = strongly_connected_components(graph, order=reached)

    component_of: dict[int, int] = {}
    for position, component in enumerate(components):
        for member in component:
            component_of[member] = position

    successors: list[set[int]] = [set() for _ in components]
    indegree = [0] * len(components)
    for source, targets in graph.items():
        for target in targets:
            a, b = component_of[source], component_of[target]
            if a != b and b not in successors[a]:
                successors[a].add(b)
                indegree[b] += 1

    heap = [(min(component), position) for position, component in enumerate(components) if not indegree[position]]
    heapq.heapify(heap)
    order: list[int] = []
    while heap:
        _, position = heapq.heappop(heap)
        order.append(position)
        for successor in successors[position]:
            indegree[successor] -= 1
            if not indegree[successor]:
                heapq.heappush(heap, (min(components[successor]), successor))

    if len(order) != len(components):
        raise ChunkingInvariantError(ErrorTemplate.invariant_violated("condensed graph is not a DAG"))

    units = tuple(tuple(sorted(components[position])) for position in order)
    unit_of = {member: position for position, unit in enumerate(units) for member in unit}
    cyclic = frozenset(
        position
        for position, unit in enumerate(units)
        if len(unit) > 1 or unit[0] in graph[unit[0]]
    )
    logger.debug("Condensed %d nodes into %d units (%d cyclic)", len(reached), len(units), len(cyclic))
    return Condensation(units=units, unit_of=unit_of, cyclic=cyclic)


def check_cycle_merge(
    registry: NodeRegistry,
    condensation: Condensation,
    unit: int,
    roots: Sequence[Root],
) -> None:
    """Reject a cyclic unit that joins split points with different explicit names.

    A synchronous cycle must live in a single file. When split points on that
    cycle ask for two different filenames, there is no file that satisfies
    both requests.

    Args:
        registry: Node registry (for value paths in diagnostics)
        condensation: Unit structure
        unit: Unit position
        roots: Materialized roots bound to nodes of the unit

    Raises:
        ChunkCycleError: If two or more distinct explicit split names meet
    """
    if not condensation.is_cyclic(unit):
        return
    names = list(
        dict.fromkeys(
            root.name for root in roots if root.kind is RootKind.SPLIT and root.name is not None
        )
    )
    if len(names) > 1:
        origin = registry.node(condensation.units[unit][0]).origin
        raise ChunkCycleError(ErrorTemplate.unresolvable_cycle(tuple(names), origin))


def verify_load_graph(graph: ChunkGraph) -> None:
    """Verify that no chunks load each other synchronously in a loop.

    Raises:
        ChunkCycleError: If the synchronous load graph has a cycle
    """
    cycles = detect_cycles(graph.sync_dependencies())
    if cycles:
        labels = tuple(graph.chunk(chunk_id).label for chunk_id in cycles[0])
        raise ChunkCycleError(ErrorTemplate.sync_load_cycle(labels))


def _in_chunk_children(
    registry: NodeRegistry,
    condensation: Condensation,
    members: set[int],
    index: int,
) -> list[tuple[int, int]]:
    """(edge position, target) for synchronous edges staying in the chunk.

    Targets outside the node's own unit come first: they cannot reach back
    into the unit, so they are fully built before the node is declared.
    """
    unit = condensation.unit_of[index]
    outer: list[tuple[int, int]] = []
    inner: list[tuple[int, int]] = []
    for position, edge in enumerate(registry.node(index).edges):
        if edge.kind is not EdgeKind.SYNC or edge.target not in members:
            continue
        if condensation.unit_of[edge.target] == unit:
            inner.append((position, edge.target))
        else:
            outer.append((position, edge.target))
    return outer + inner


def _start_order(chunk: Chunk) -> list[int]:
    return list(dict.fromkeys([*chunk.values, *chunk.exports, *chunk.members]))


def _rigid_units(registry: NodeRegistry, condensation: Condensation, members: Iterable[int]) -> set[int]:
    """Cyclic units holding a node that cannot be declared with placeholders."""
    return {
        condensation.unit_of[index]
        for index in members
        if not registry.node(index).patchable and condensation.is_cyclic(condensation.unit_of[index])
    }


def _find_heads(
    successors: Mapping[int, list[int]],
    starts: Iterable[int],
) -> set[int]:
    """Walk keys targeted by a back-edge in the emission walk order."""
    heads: set[int] = set()
    visited: set[int] = set()
    on_path: set[int] = set()
    for start in starts:
        if start in visited:
            continue
        visited.add(start)
        on_path.add(start)
        stack: list[tuple[int, Iterator[int]]] = [(start, iter(successors[start]))]
        while stack:
            key, pending = stack[-1]
            for target in pending:
                if target in on_path:
                    heads.add(target)
                elif target not in visited:
                    visited.add(target)
                    on_path.add(target)
                    stack.append((target, iter(successors[target])))
                    break
            else:
                stack.pop()
                on_path.discard(key)
    return heads


def _children_first(
    nodes: Sequence[int],
    children: Mapping[int, list[tuple[int, int]]],
) -> tuple[list[int], set[int]]:
    """Post-order of nodes over edges among themselves, plus nodes closing a loop."""
    within = set(nodes)
    order: list[int] = []
    looped: set[int] = set()
    seen: set[int] = set()
    on_path: set[int] = set()
    for start in nodes:
        if start in seen:
            continue
        seen.add(start)
        on_path.add(start)
        stack: list[tuple[int, Iterator[tuple[int, int]]]] = [(start, iter(children[start]))]
        while stack:
            index, pending = stack[-1]
            for _, target in pending:
                if target not in within:
                    continue
                if target in on_path:
                    looped.add(target)
                elif target not in seen:
                    seen.add(target)
                    on_path.add(target)
                    stack.append((target, iter(children[target])))
                    break
            else:
                stack.pop()
                on_path.discard(index)
                order.append(index)
    return order, looped


def plan_emission(
    registry: NodeRegistry,
    condensation: Condensation,
    chunk: Chunk,
) -> tuple[Step, ...]:
    """Order a chunk's members into DECLARE/BUILD/PATCH steps.

    Walks members depth-first from the chunk's module value and exports.
    Every member is emitted exactly once: a node with no pending references
    is BUILT after all its children; a cycle head is DECLARED once the
    children outside its cycle are built, and PATCHED for each slot that
    was still pending at declaration time.

    A cycle through a node that cannot be patched (a tuple) is emitted as
    one block instead: every patchable member is declared, the others are
    built against them, then the declared members are patched.

    Args:
        registry: Node registry
        condensation: Unit structure
        chunk: Chunk with members assigned

    Returns:
        Emission steps

    Raises:
        ChunkingInvariantError: If some member is not emitted
    """
    unit_of = condensation.unit_of
    members = set(chunk.members)
    children = {index: _in_chunk_children(registry, condensation, members, index) for index in chunk.members}
    rigid = _rigid_units(registry, condensation, chunk.members)

    # Walk keys: a node index, or -1 - unit for a rigid unit walked as one.
    def key_of(index: int) -> int:
        unit = unit_of[index]
        return -1 - unit if unit in rigid else index

    targets: dict[int, list[int]] = {}
    for index in chunk.members:
        key = key_of(index)
        if key == index:
            targets[key] = [target for _, target in children[index]]
        else:
            outer = [target for _, target in children[index] if unit_of[target] != unit_of[index]]
            targets.setdefault(key, []).extend(outer)
    successors = {key: [key_of(target) for target in found] for key, found in targets.items()}
    starts = list(dict.fromkeys(key_of(index) for index in _start_order(chunk)))
    heads = _find_heads(successors, starts)

    steps: list[Step] = []
    emitted: set[int] = set()
    walked: set[int] = set()
    # head -> pending edge positions, present once declared
    declared: dict[int, tuple[int, ...]] = {}

    def declare(index: int) -> None:
        pending = tuple(position for position, target in children[index] if target not in emitted)
        declared[index] = pending
        steps.append(Step(kind=StepKind.DECLARE, node=index, pending=pending))

    def patch(index: int) -> None:
        for position in declared[index]:
            steps.append(Step(kind=StepKind.PATCH, node=index, edge=position))

    def emit_block(unit: int) -> None:
        block = condensation.units[unit]
        patchable = [index for index in block if registry.node(index).patchable]
        for index in patchable:
            declare(index)
        order, looped = _children_first([index for index in block if index not in patchable], children)
        for index in order:
            # A loop of unpatchable nodes is declared so the renderer reports it.
            kind = StepKind.DECLARE if index in looped else StepKind.BUILD
            steps.append(Step(kind=kind, node=index))
        for index in patchable:
            patch(index)
        emitted.update(block)

    def finish(key: int) -> None:
        if key < 0:
            emit_block(-1 - key)
        elif key in heads:
            if key not in declared:
                declare(key)
            patch(key)
            emitted.add(key)
        else:
            steps.append(Step(kind=StepKind.BUILD, node=key))
            emitted.add(key)

    for start in starts:
        if start in walked:
            continue
        walked.add(start)
        stack: list[tuple[int, Iterator[int]]] = [(start, iter(targets[start]))]
        while stack:
            key, pending = stack[-1]
            for target in pending:
                if key in heads and key not in declared and unit_of[target] == unit_of[key]:
                    declare(key)
                target_key = key_of(target)
                if target_key in walked:
                    continue
                walked.add(target_key)
                stack.append((target_key, iter(targets[target_key])))
                break
            else:
                stack.pop()
                finish(key)

    if len(emitted) != len(members):
        raise ChunkingInvariantError(
            ErrorTemplate.invariant_violated(f"plan for {chunk.label} misses {len(members) - len(emitted)} members")
        )
    return tuple(steps)
