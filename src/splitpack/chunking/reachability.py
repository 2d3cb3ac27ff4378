"""Reachability analysis over the node registry.

Walks from every root over synchronous edges and records, for each node,
the ordered set of roots that reach it. Split points materialize only when
reached: sync splits through a synchronous path from an entry or async
split, async splits through a deferred edge (or a synchronous path). The
rest are pruned and leave no trace in the output.

Python 3.13+.
"""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from ..diagnostics import ChunkingInvariantError, ErrorTemplate
from ..enums import SplitMode, SplitState
from .registry import NodeRegistry, Root

__all__ = [
    "Reachability",
    "analyze_reachability",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Reachability:
    """Result of walking every materialized root.

    Attributes:
        reach: Node index -> root indexes that reach it, in walk order.
            Unreached nodes are absent.
        root_exports: Node index -> materialized roots whose top-level value
            is exactly that node
        back_edges: (source, target) pairs closing a synchronous cycle
        materialized: Root indexes in the order they were walked
        pruned: Split root indexes that were never reached
    """

    reach: Mapping[int, tuple[int, ...]]
    root_exports: Mapping[int, tuple[int, ...]]
    back_edges: frozenset[tuple[int, int]]
    materialized: tuple[int, ...]
    pruned: tuple[int, ...]

    def reached(self, node: int) -> bool:
        """Return True if any materialized root reaches the node."""
        return node in self.reach

    def is_root_export(self, node: int) -> bool:
        """Return True if the node is the top-level value of a materialized root."""
        return node in self.root_exports


class _Walker:
    """Mutable state shared by all walks of one analysis."""

    __slots__ = ("back_edges", "deferred_from", "reach", "registry")

    def __init__(self, registry: NodeRegistry) -> None:
        self.registry = registry
        self.reach: dict[int, list[int]] = {}
        self.back_edges: set[tuple[int, int]] = set()
        # async split root index -> thunk nodes holding a deferred edge to it
        self.deferred_from: dict[int, list[int]] = {}

    def walk(self, root: Root) -> None:
        """Iterative DFS from a root's node over synchronous edges."""
        registry = self.registry
        visited: set[int] = set()
        path: list[int] = []
        on_path: set[int] = set()
        stack: list[tuple[int, Iterator[int]]] = []

        def enter(index: int) -> None:
            visited.add(index)
            self.reach.setdefault(index, []).append(root.index)
            path.append(index)
            on_path.add(index)
            node = registry.node(index)
            for target in node.deferred_targets():
                split = registry.split_at(target)
                if split is None or split.mode is not SplitMode.ASYNC:
                    raise ChunkingInvariantError(
                        ErrorTemplate.invariant_violated(
                            f"deferred edge from node {index} has no async split target"
                        )
                    )
                thunks = self.deferred_from.setdefault(split.index, [])
                if index not in thunks:
                    thunks.append(index)
            stack.append((index, node.sync_targets()))

        enter(root.node)
        while stack:
            index, targets = stack[-1]
            for target in targets:
                if target in on_path:
                    self._record_back_edge(index, target, path)
                elif target not in visited:
                    enter(target)
                    break
            else:
                stack.pop()
                path.pop()
                on_path.discard(index)

    def _record_back_edge(self, source: int, target: int, path: list[int]) -> None:
        self.back_edges.add((source, target))
        for index in path[path.index(target) :]:
            self.registry.node(index).cyclic = True


def analyze_reachability(registry: NodeRegistry) -> Reachability:
    """Walk all roots and decide which split points materialize.

    Entries are walked first in caller order. Split points are then
    examined in registration order, repeatedly, until no further split
    point materializes: walking an async split can reach new nodes and new
    deferred edges.

    Args:
        registry: Populated node registry

    Returns:
        Reachability result. Split roots are moved to MATERIALIZED or PRUNED.
    """
    walker = _Walker(registry)
    materialized: list[int] = []

    for entry in registry.entries:
        walker.walk(entry)
        materialized.append(entry.index)

    walked: set[int] = set()
    progressed = True
    while progressed:
        progressed = False
        for split in registry.splits:
            if split.index in walked:
                continue
            if split.index in walker.deferred_from or split.node in walker.reach:
                walker.walk(split)
                walked.add(split.index)
                materialized.append(split.index)
                split.state = SplitState.MATERIALIZED
                progressed = True

    pruned: list[int] = []
    for split in registry.splits:
        if split.index not in walked:
            split.state = SplitState.PRUNED
            pruned.append(split.index)
            if split.name is not None:
                logger.warning("Split point '%s' is unreachable and was pruned", split.name)
            else:
                logger.debug("Anonymous split point at node %d pruned", split.node)

    root_exports: dict[int, list[int]] = {}
    for root_index in materialized:
        root = registry.roots[root_index]
        root_exports.setdefault(root.node, []).append(root_index)

    logger.debug(
        "Reachability: %d of %d nodes reached, %d roots materialized, %d splits pruned",
        len(walker.reach),
        len(registry),
        len(materialized),
        len(pruned),
    )

    return Reachability(
        reach={node: tuple(roots) for node, roots in walker.reach.items()},
        root_exports={node: tuple(roots) for node, roots in root_exports.items()},
        back_edges=frozenset(walker.back_edges),
        materialized=tuple(materialized),
        pruned=tuple(pruned),
    )
