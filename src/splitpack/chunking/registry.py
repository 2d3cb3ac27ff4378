"""Node registry: the arena of value identities for one run.

Every distinct value identity gets one Node with a stable integer index
(its discovery order). Nodes reference each other through ordered Edges.
Roots bind names to nodes: entries first, then split points.

Python 3.13+.
"""

from collections.abc import Hashable, Iterator
from dataclasses import dataclass, field

from ..diagnostics import ChunkingInvariantError, ErrorTemplate
from ..enums import EdgeKind, RootKind, SplitMode, SplitState

__all__ = [
    "Edge",
    "Node",
    "NodeRegistry",
    "Root",
]


@dataclass(frozen=True, slots=True)
class Edge:
    """Ordered outgoing reference from one node to another.

    Attributes:
        target: Index of the referenced node
        path: Access key within the source (dict key, list index, attribute)
        kind: SYNC for ordinary references, DEFERRED for async split thunks
    """

    target: int
    path: Hashable
    kind: EdgeKind = EdgeKind.SYNC


@dataclass(slots=True, eq=False)
class Node:
    """One distinct value identity.

    Attributes:
        index: Discovery order; stable tie-break everywhere
        content: Opaque payload handed back to the renderer
        edges: Outgoing references in content order
        origin: Human-readable access path of first discovery
        cyclic: Set by reachability analysis when the node lies on a cycle
        patchable: False when a slot cannot be assigned after creation, so the
            node can never be declared with placeholders
    """

    index: int
    content: object = None
    edges: list[Edge] = field(default_factory=list)
    origin: str = ""
    cyclic: bool = False
    patchable: bool = True

    def sync_targets(self) -> Iterator[int]:
        """Yield targets of synchronous edges in edge order."""
        for edge in self.edges:
            if edge.kind is EdgeKind.SYNC:
                yield edge.target

    def deferred_targets(self) -> Iterator[int]:
        """Yield targets of deferred edges in edge order."""
        for edge in self.edges:
            if edge.kind is EdgeKind.DEFERRED:
                yield edge.target


@dataclass(slots=True, eq=False)
class Root:
    """Named binding into the value graph.

    Attributes:
        index: Position among all roots (entries first, then split points)
        kind: ENTRY or SPLIT
        node: Index of the bound node
        name: Entry name, or explicit split name (None for anonymous splits)
        mode: SYNC or ASYNC for split points, None for entries
        state: Split point lifecycle state, None for entries
    """

    index: int
    kind: RootKind
    node: int
    name: str | None = None
    mode: SplitMode | None = None
    state: SplitState | None = None

    @property
    def is_entry_like(self) -> bool:
        """Entries and async splits need a file whose value is exactly their node."""
        return self.kind is RootKind.ENTRY or self.mode is SplitMode.ASYNC

    @property
    def label(self) -> str:
        """Short description for logs and diagnostics."""
        if self.kind is RootKind.ENTRY:
            return f"entry '{self.name}'"
        return f"{self.mode} split '{self.name or '<anonymous>'}'"


class NodeRegistry:
    """Arena of nodes, edges and roots for a single run.

    Identities are memoized so that each value is analyzed once: a second
    lookup of the same identity returns the node created the first time.
    Entries must all be registered before the first split point, which keeps
    root indexes in discovery order.

    Example:
        >>> registry = NodeRegistry()
        >>> shared = registry.add_node(identity=1)
        >>> top = registry.add_node(identity=2)
        >>> registry.add_edge(top.index, shared.index, "x")
        >>> _ = registry.add_entry("one", top.index)
        >>> registry.lookup(1) == shared.index
        True
    """

    __slots__ = ("_by_identity", "_nodes", "_roots", "_split_by_node")

    def __init__(self) -> None:
        self._nodes: list[Node] = []
        self._by_identity: dict[Hashable, int] = {}
        self._roots: list[Root] = []
        self._split_by_node: dict[int, Root] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> tuple[Node, ...]:
        """All nodes in discovery order."""
        return tuple(self._nodes)

    @property
    def roots(self) -> tuple[Root, ...]:
        """All roots: entries in caller order, then split points."""
        return tuple(self._roots)

    @property
    def entries(self) -> tuple[Root, ...]:
        """Entry roots in caller order."""
        return tuple(root for root in self._roots if root.kind is RootKind.ENTRY)

    @property
    def splits(self) -> tuple[Root, ...]:
        """Split roots in registration order."""
        return tuple(root for root in self._roots if root.kind is RootKind.SPLIT)

    def node(self, index: int) -> Node:
        """Return the node with the given discovery index."""
        return self._nodes[index]

    def lookup(self, identity: Hashable) -> int | None:
        """Return the node index registered for an identity, if any."""
        return self._by_identity.get(identity)

    def add_node(
        self,
        content: object = None,
        *,
        identity: Hashable | None = None,
        origin: str = "",
    ) -> Node:
        """Create a node, memoized by identity when one is given.

        Args:
            content: Opaque renderer payload (may be filled in later)
            identity: Key of the value this node stands for. Nodes without
                an identity are never shared.
            origin: Access path of first discovery

        Returns:
            The new node, or the existing node for a known identity
        """
        if identity is not None:
            existing = self._by_identity.get(identity)
            if existing is not None:
                return self._nodes[existing]
        node = Node(index=len(self._nodes), content=content, origin=origin)
        self._nodes.append(node)
        if identity is not None:
            self._by_identity[identity] = node.index
        return node

    def add_edge(
        self,
        source: int,
        target: int,
        path: Hashable,
        kind: EdgeKind = EdgeKind.SYNC,
    ) -> int:
        """Append an edge to a node and return its position in the edge list."""
        edges = self._nodes[source].edges
        edges.append(Edge(target=target, path=path, kind=kind))
        return len(edges) - 1

    def add_entry(self, name: str, node: int) -> Root:
        """Register an entry root bound to a node.

        Raises:
            ChunkingInvariantError: If a split point was registered first
        """
        if self._split_by_node:
            raise ChunkingInvariantError(
                ErrorTemplate.invariant_violated("entries must be registered before split points")
            )
        root = Root(index=len(self._roots), kind=RootKind.ENTRY, node=node, name=name)
        self._roots.append(root)
        return root

    def add_split(self, node: int, name: str | None, mode: SplitMode) -> Root:
        """Register a split point, merging with an existing one for the same node.

        A node has at most one split point. A second registration fills in a
        missing name (the first explicit name wins) and upgrades SYNC to ASYNC.

        Returns:
            The split root for the node
        """
        existing = self._split_by_node.get(node)
        if existing is not None:
            if existing.name is None:
                existing.name = name
            if mode is SplitMode.ASYNC:
                existing.mode = SplitMode.ASYNC
            return existing
        root = Root(
            index=len(self._roots),
            kind=RootKind.SPLIT,
            node=node,
            name=name,
            mode=mode,
            state=SplitState.REGISTERED,
        )
        self._roots.append(root)
        self._split_by_node[node] = root
        return root

    def split_at(self, node: int) -> Root | None:
        """Return the split root bound to a node, if any."""
        return self._split_by_node.get(node)
