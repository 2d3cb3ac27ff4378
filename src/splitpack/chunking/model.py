"""Chunk graph data model.

A Chunk is one output file. The ChunkGraph is the complete plan handed to a
renderer: which nodes live in which chunk, which chunks load which, what each
chunk exports and in which order its members are built.

Python 3.13+.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Protocol, TypeAlias

from ..enums import ChunkKind, EdgeKind, ExportShape, StepKind

__all__ = [
    "Chunk",
    "ChunkGraph",
    "ChunkRenderer",
    "Load",
    "ManifestEntry",
    "Resolver",
    "Step",
]


@dataclass(frozen=True, slots=True)
class Load:
    """Dependency of one chunk on another.

    Attributes:
        target: Id of the loaded chunk
        kind: SYNC (loaded when the module executes) or DEFERRED (loaded by a thunk)
        binding: Suggested local name for the loaded module value
    """

    target: int
    kind: EdgeKind
    binding: str | None = None


@dataclass(frozen=True, slots=True)
class Step:
    """One emission step of a chunk plan.

    Attributes:
        kind: DECLARE, BUILD or PATCH
        node: Node the step emits
        pending: DECLARE only; edge positions rendered as placeholders
        edge: PATCH only; edge position whose placeholder is filled
    """

    kind: StepKind
    node: int
    pending: tuple[int, ...] = ()
    edge: int | None = None


@dataclass(slots=True, eq=False)
class Chunk:
    """One output file.

    Attributes:
        id: Creation order within the run
        kind: ENTRY, COMMON or SPLIT
        name: Entry name, explicit split name, or None for anonymous chunks
        members: Nodes emitted by this chunk, in assignment order
        exports: Members other chunks access, in first-use order
        primary: Node that is this chunk's own value (entry or split host)
        proxy_of: Node re-exported from another chunk; proxies have no members
        loads: Chunks this chunk depends on, in first-use order
        loaded_by: Ids of chunks that load this one
        roots: Root indexes served by this chunk
        plan: Emission steps, filled in by the cycle resolver
        salt: Identity salt mixed into the content hash
        is_async: True when this chunk is the target of a deferred load
        filename: Resolved filename, set by naming
    """

    id: int
    kind: ChunkKind
    name: str | None = None
    members: list[int] = field(default_factory=list)
    exports: list[int] = field(default_factory=list)
    primary: int | None = None
    proxy_of: int | None = None
    loads: list[Load] = field(default_factory=list)
    loaded_by: list[int] = field(default_factory=list)
    roots: list[int] = field(default_factory=list)
    plan: tuple[Step, ...] = ()
    salt: str = ""
    is_async: bool = False
    filename: str | None = None

    @property
    def is_proxy(self) -> bool:
        """True for chunks that only re-export a node hosted elsewhere."""
        return self.proxy_of is not None

    @property
    def shape(self) -> ExportShape:
        """Shape of the module value."""
        if self.proxy_of is not None:
            return ExportShape.SINGLE
        if self.primary is not None:
            single = not self.exports or self.exports == [self.primary]
        else:
            single = len(self.exports) == 1
        return ExportShape.SINGLE if single else ExportShape.ARRAY

    @property
    def values(self) -> list[int]:
        """Member nodes forming the module value (empty for proxies)."""
        if self.proxy_of is not None:
            return []
        if self.shape is ExportShape.SINGLE:
            if self.primary is not None:
                return [self.primary]
            return list(self.exports[:1])
        return list(self.exports)

    @property
    def label(self) -> str:
        """Short description for logs and diagnostics."""
        return f"{self.kind}:{self.name or self.id}"

    def access(self, node: int) -> int | None:
        """Return the index to access a node through, or None for direct access.

        Raises:
            KeyError: If the node is not part of this chunk's module value
        """
        if self.proxy_of is not None:
            if node != self.proxy_of:
                raise KeyError(node)
            return None
        values = self.values
        if node not in values:
            raise KeyError(node)
        if self.shape is ExportShape.SINGLE:
            return None
        return values.index(node)

    def add_export(self, node: int) -> None:
        """Expose a member to other chunks (idempotent)."""
        if node not in self.exports:
            self.exports.append(node)

    def add_load(self, target: "Chunk", kind: EdgeKind) -> None:
        """Record a load of another chunk (idempotent per target and kind)."""
        for load in self.loads:
            if load.target == target.id and load.kind is kind:
                return
        self.loads.append(Load(target=target.id, kind=kind, binding=target.name))
        if self.id not in target.loaded_by:
            target.loaded_by.append(self.id)


@dataclass(slots=True)
class ChunkGraph:
    """Complete chunk assignment for one run.

    Attributes:
        chunks: All chunks in creation order (index == chunk id)
        owner: Node index -> id of the chunk that emits it
        root_chunks: Root index -> id of the chunk whose value is the root's node
        async_chunks: Async split node -> id of the chunk a deferred load targets
    """

    chunks: list[Chunk] = field(default_factory=list)
    owner: dict[int, int] = field(default_factory=dict)
    root_chunks: dict[int, int] = field(default_factory=dict)
    async_chunks: dict[int, int] = field(default_factory=dict)

    def __iter__(self) -> Iterator[Chunk]:
        return iter(self.chunks)

    def __len__(self) -> int:
        return len(self.chunks)

    def chunk(self, chunk_id: int) -> Chunk:
        """Return a chunk by id."""
        return self.chunks[chunk_id]

    def owner_of(self, node: int) -> Chunk:
        """Return the chunk that emits a node."""
        return self.chunks[self.owner[node]]

    def new_chunk(self, kind: ChunkKind, name: str | None = None) -> Chunk:
        """Create and register a chunk."""
        chunk = Chunk(id=len(self.chunks), kind=kind, name=name)
        self.chunks.append(chunk)
        return chunk

    def sync_dependencies(self) -> dict[int, list[int]]:
        """Chunk id -> ids of chunks it loads synchronously."""
        return {
            chunk.id: [load.target for load in chunk.loads if load.kind is EdgeKind.SYNC]
            for chunk in self.chunks
        }


@dataclass(frozen=True, slots=True)
class ManifestEntry:
    """One output file.

    Attributes:
        filename: Relative path of the file
        content: Full file text
        kind: Chunk kind, or "stats"/"source-map" for auxiliary files
        name: Entry or split name, None for anonymous chunks
    """

    filename: str
    content: str
    kind: str
    name: str | None = None


Resolver: TypeAlias = Callable[[Chunk], str]
"""Maps a loaded chunk to its path relative to the loading chunk."""


class ChunkRenderer(Protocol):
    """Turns one chunk's plan into module text.

    The renderer must be deterministic: the same chunk and the same resolved
    filenames always produce the same text, which is what gets hashed.
    """

    def render(self, chunk: Chunk, resolve: Resolver) -> str:
        """Render module text for a chunk.

        Args:
            chunk: Chunk with its plan, loads and exports filled in
            resolve: Filename (or placeholder) for each chunk in chunk.loads

        Returns:
            Module source text
        """
        ...
