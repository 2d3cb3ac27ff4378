"""Chunk assignment policy.

Assigns every reached node to exactly one chunk. Units (strongly connected
components of the synchronous graph) are visited referencers-first, so when
a unit is placed, every chunk that references it is already known. Policy,
in order of precedence:

1. Forced extraction: a unit holding a materialized split point goes to that
   split point's own chunk.
2. Inline: a unit referenced from a single chunk joins it.
3. Host: a unit holding an entry's value is hosted by that entry's file, as
   long as the entry's value is the only thing other chunks need from it.
4. Group: anything else goes to a common chunk shared by all units with the
   same set of referencing chunks.

Python 3.13+.
"""

import logging
from collections.abc import Sequence

from ..enums import ChunkKind, EdgeKind, RootKind, SplitMode, SplitState
from .cycles import Condensation, check_cycle_merge, plan_emission, verify_load_graph
from .model import Chunk, ChunkGraph
from .reachability import Reachability
from .registry import NodeRegistry, Root

__all__ = ["assign_chunks"]

logger = logging.getLogger(__name__)


class _Assignor:
    """Working state for one assignment pass."""

    __slots__ = (
        "common_by_key",
        "condensation",
        "entry_chunks",
        "graph",
        "predecessors",
        "reachability",
        "registry",
        "roots_by_node",
    )

    def __init__(
        self,
        registry: NodeRegistry,
        reachability: Reachability,
        condensation: Condensation,
    ) -> None:
        self.registry = registry
        self.reachability = reachability
        self.condensation = condensation
        self.graph = ChunkGraph()
        self.entry_chunks: dict[int, Chunk] = {}
        self.common_by_key: dict[frozenset[int], Chunk] = {}

        roots = registry.roots
        self.roots_by_node: dict[int, list[Root]] = {}
        for root_index in reachability.materialized:
            root = roots[root_index]
            self.roots_by_node.setdefault(root.node, []).append(root)

        self.predecessors: dict[int, list[int]] = {}
        for source in sorted(reachability.reach):
            for target in registry.node(source).sync_targets():
                sources = self.predecessors.setdefault(target, [])
                if source not in sources:
                    sources.append(source)

    def run(self) -> ChunkGraph:
        graph = self.graph
        for entry in self.registry.entries:
            chunk = graph.new_chunk(ChunkKind.ENTRY, entry.name)
            chunk.primary = entry.node
            chunk.roots.append(entry.index)
            graph.root_chunks[entry.index] = chunk.id
            self.entry_chunks[entry.index] = chunk

        for position, unit in enumerate(self.condensation.units):
            self._assign_unit(position, unit)

        self._resolve_entry_proxies()
        self._resolve_async_targets()
        self._add_deferred_loads()

        for chunk in graph.chunks:
            if chunk.members:
                chunk.plan = plan_emission(self.registry, self.condensation, chunk)
                chunk.salt = str(min(chunk.members))
            else:
                chunk.salt = f"{chunk.proxy_of}:{chunk.roots[0]}"

        verify_load_graph(graph)
        return graph

    def _unit_roots(self, unit: Sequence[int]) -> list[Root]:
        roots = [root for member in unit for root in self.roots_by_node.get(member, ())]
        return sorted(roots, key=lambda root: root.index)

    def _referencers(self, unit: Sequence[int]) -> dict[int, list[int]]:
        """Member -> ids of chunks that reference it, in first-seen order."""
        members = set(unit)
        refs: dict[int, list[int]] = {}
        for member in unit:
            chunk_ids: list[int] = []
            for source in self.predecessors.get(member, ()):
                if source in members:
                    continue
                chunk_id = self.graph.owner[source]
                if chunk_id not in chunk_ids:
                    chunk_ids.append(chunk_id)
            for root in self.roots_by_node.get(member, ()):
                if root.kind is RootKind.ENTRY:
                    chunk_id = self.entry_chunks[root.index].id
                    if chunk_id not in chunk_ids:
                        chunk_ids.append(chunk_id)
            refs[member] = chunk_ids
        return refs

    def _assign_unit(self, position: int, unit: tuple[int, ...]) -> None:
        graph = self.graph
        roots = self._unit_roots(unit)
        refs = self._referencers(unit)
        referencers = list(dict.fromkeys(chunk_id for chunk_ids in refs.values() for chunk_id in chunk_ids))
        splits = [root for root in roots if root.kind is RootKind.SPLIT]
        entries = [root for root in roots if root.kind is RootKind.ENTRY]

        if splits:
            check_cycle_merge(self.registry, self.condensation, position, roots)
            chunk = self._split_chunk(splits)
            rule = "split"
        elif len(referencers) == 1:
            chunk = graph.chunk(referencers[0])
            rule = "inline"
        elif entries and self._can_host(entries[0], unit, refs):
            chunk = self.entry_chunks[entries[0].index]
            rule = "host"
        else:
            key = frozenset(referencers)
            existing = self.common_by_key.get(key)
            if existing is None:
                chunk = graph.new_chunk(ChunkKind.COMMON)
                self.common_by_key[key] = chunk
                rule = "common"
            else:
                chunk = existing
                rule = "group"

        logger.debug("Unit %s -> %s (%s, %d referencers)", unit, chunk.label, rule, len(referencers))

        for member in unit:
            chunk.members.append(member)
            graph.owner[member] = chunk.id
        for member in unit:
            for chunk_id in refs[member]:
                if chunk_id != chunk.id:
                    graph.chunk(chunk_id).add_load(chunk, EdgeKind.SYNC)
                    chunk.add_export(member)

    def _can_host(self, entry: Root, unit: Sequence[int], refs: dict[int, list[int]]) -> bool:
        """An entry hosts a shared unit only if its own value is all others need."""
        host_id = self.entry_chunks[entry.index].id
        for member in unit:
            if member == entry.node:
                continue
            if any(chunk_id != host_id for chunk_id in refs[member]):
                return False
        return True

    def _split_chunk(self, splits: list[Root]) -> Chunk:
        name = next((root.name for root in splits if root.name is not None), None)
        chunk = self.graph.new_chunk(ChunkKind.SPLIT, name)
        chunk.primary = splits[0].node
        for root in splits:
            chunk.roots.append(root.index)
            root.state = SplitState.ASSIGNED
            self.graph.root_chunks[root.index] = chunk.id
        return chunk

    def _resolve_entry_proxies(self) -> None:
        graph = self.graph
        for entry in self.registry.entries:
            chunk = self.entry_chunks[entry.index]
            if graph.owner[entry.node] != chunk.id:
                chunk.primary = None
                chunk.proxy_of = entry.node
                logger.debug("Entry '%s' re-exports node %d from %s", entry.name, entry.node, graph.owner_of(entry.node).label)

    def _resolve_async_targets(self) -> None:
        """Pick the file each async split's thunk loads.

        The module value of that file must be exactly the split's value. A
        split chunk holding one async split as its only export qualifies;
        otherwise every async split in that chunk gets a proxy file.
        """
        graph = self.graph
        roots = self.registry.roots
        by_chunk: dict[int, list[Root]] = {}
        for root_index in self.reachability.materialized:
            root = roots[root_index]
            if root.kind is RootKind.SPLIT and root.mode is SplitMode.ASYNC:
                by_chunk.setdefault(graph.owner[root.node], []).append(root)

        for chunk_id, async_roots in by_chunk.items():
            owner = graph.chunk(chunk_id)
            direct = (
                len(async_roots) == 1
                and owner.primary == async_roots[0].node
                and all(node == owner.primary for node in owner.exports)
            )
            for root in async_roots:
                if direct:
                    target = owner
                else:
                    target = graph.new_chunk(ChunkKind.SPLIT, root.name)
                    target.proxy_of = root.node
                    target.roots.append(root.index)
                    target.add_load(owner, EdgeKind.SYNC)
                    owner.add_export(root.node)
                    graph.root_chunks[root.index] = target.id
                target.is_async = True
                graph.async_chunks[root.node] = target.id

    def _add_deferred_loads(self) -> None:
        graph = self.graph
        for chunk in list(graph.chunks):
            for member in chunk.members:
                for target in self.registry.node(member).deferred_targets():
                    chunk.add_load(graph.chunk(graph.async_chunks[target]), EdgeKind.DEFERRED)


def assign_chunks(
    registry: NodeRegistry,
    reachability: Reachability,
    condensation: Condensation,
) -> ChunkGraph:
    """Assign every reached node to a chunk and plan each chunk's emission.

    Args:
        registry: Node registry
        reachability: Result of reachability analysis
        condensation: Assignment units in topological order

    Returns:
        Chunk graph with members, loads, exports and emission plans

    Raises:
        ChunkCycleError: If a synchronous cycle joins differently named split
            points, or the resulting load graph has a synchronous loop
    """
    graph = _Assignor(registry, reachability, condensation).run()
    kinds = [chunk.kind for chunk in graph.chunks]
    logger.info(
        "Assigned %d nodes to %d chunks (%d entry, %d common, %d split)",
        len(graph.owner),
        len(graph.chunks),
        kinds.count(ChunkKind.ENTRY),
        kinds.count(ChunkKind.COMMON),
        kinds.count(ChunkKind.SPLIT),
    )
    return graph
