"""Chunk naming and content hashing.

Chunks are rendered deepest-first, so each loader's text already contains
the final filename of every chunk it loads synchronously. Deferred loads
may point at chunks that are not named yet; those are rendered as
placeholder tokens, hashed that way, and substituted at the end.

Python 3.13+.
"""

import base64
import hashlib
import logging
import posixpath
import re

from ..analysis import strongly_connected_components
from ..constants import (
    DEFAULT_COMMON_NAME,
    DEFAULT_SPLIT_NAME,
    HASH_LENGTH,
    PLACEHOLDER_PREFIX,
    PLACEHOLDER_SUFFIX,
)
from ..diagnostics import ChunkNamingError, ErrorTemplate
from ..enums import ChunkKind, RootKind, SplitState
from ..options import SerializeOptions, check_relative_path
from .model import Chunk, ChunkGraph, ChunkRenderer, ManifestEntry
from .registry import NodeRegistry

__all__ = [
    "content_hash",
    "name_chunks",
    "output_order",
]

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(re.escape(PLACEHOLDER_PREFIX) + r"(\d+)" + re.escape(PLACEHOLDER_SUFFIX))


def content_hash(text: str, chunk: Chunk, options: SerializeOptions) -> str:
    """Hash a chunk's text together with its kind, source-map mode and salt.

    Returns:
        Lowercase base32 digest truncated to HASH_LENGTH characters
    """
    hasher = hashlib.sha1(usedforsecurity=False)
    hasher.update(f"{chunk.kind}\n{options.source_maps}\n{chunk.salt}\n".encode())
    hasher.update(text.encode())
    return base64.b32encode(hasher.digest()).decode("ascii")[:HASH_LENGTH].lower()


def _display_name(chunk: Chunk) -> str:
    if chunk.name is not None:
        return chunk.name
    return DEFAULT_COMMON_NAME if chunk.kind is ChunkKind.COMMON else DEFAULT_SPLIT_NAME


def _filename(chunk: Chunk, digest: str, options: SerializeOptions) -> str:
    name = _display_name(chunk)
    reason = check_relative_path(name)
    if reason is not None:
        if chunk.kind is ChunkKind.ENTRY:
            raise ChunkNamingError(ErrorTemplate.entry_name_invalid(name, reason))
        raise ChunkNamingError(ErrorTemplate.split_filename_invalid(name, reason))
    return options.filename(chunk.kind, name, digest)


def _placeholder(chunk: Chunk) -> str:
    return f"{PLACEHOLDER_PREFIX}{chunk.id}{PLACEHOLDER_SUFFIX}"


def _relative(filename: str, directory: str) -> str:
    return posixpath.relpath(filename, directory or ".")


def output_order(graph: ChunkGraph) -> list[Chunk]:
    """Manifest order: entries, then async split chunks, then the rest by creation."""
    entries = [chunk for chunk in graph if chunk.kind is ChunkKind.ENTRY]
    deferred = [chunk for chunk in graph if chunk.kind is not ChunkKind.ENTRY and chunk.is_async]
    rest = [chunk for chunk in graph if chunk.kind is not ChunkKind.ENTRY and not chunk.is_async]
    return entries + deferred + rest


def name_chunks(
    graph: ChunkGraph,
    registry: NodeRegistry,
    renderer: ChunkRenderer,
    options: SerializeOptions,
) -> list[ManifestEntry]:
    """Render, hash and name every chunk.

    Args:
        graph: Chunk graph with plans
        registry: Node registry (split roots move to RENDERED)
        renderer: Produces module text for one chunk
        options: Filename patterns, extension and source-map mode

    Returns:
        Manifest entries in output order. Each chunk's filename is also
        stored on the chunk.

    Raises:
        ChunkNamingError: If two chunks resolve to the same filename, or a
            name cannot be used in a filename
    """
    # Loaded chunks come before their loaders.
    dependencies = graph.sync_dependencies()
    depth_first = [
        chunk_id
        for component in strongly_connected_components(dependencies, order=range(len(graph)))
        for chunk_id in component
    ]

    taken: dict[str, Chunk] = {}
    texts: dict[int, str] = {}
    directories: dict[int, str] = {}

    for chunk_id in depth_first:
        chunk = graph.chunk(chunk_id)
        # The directory never depends on the hash, so a dummy digest locates it.
        directory = posixpath.dirname(_filename(chunk, "0" * HASH_LENGTH, options))
        directories[chunk.id] = directory

        def resolve(target: Chunk, directory: str = directory) -> str:
            if target.filename is None:
                return _placeholder(target)
            return _relative(target.filename, directory)

        text = renderer.render(chunk, resolve)
        filename = _filename(chunk, content_hash(text, chunk, options), options)
        clash = taken.get(filename)
        if clash is not None:
            raise ChunkNamingError(ErrorTemplate.filename_collision(filename, (clash.label, chunk.label)))
        taken[filename] = chunk
        chunk.filename = filename
        texts[chunk.id] = text
        logger.debug("Named %s -> %s", chunk.label, filename)

    manifest: list[ManifestEntry] = []
    for chunk in output_order(graph):
        directory = directories[chunk.id]

        def substitute(match: re.Match[str], directory: str = directory) -> str:
            target = graph.chunk(int(match.group(1)))
            assert target.filename is not None  # Type narrowing: every chunk is named
            return _relative(target.filename, directory)

        content = _PLACEHOLDER_RE.sub(substitute, texts[chunk.id])
        assert chunk.filename is not None
        manifest.append(ManifestEntry(filename=chunk.filename, content=content, kind=chunk.kind, name=chunk.name))

    roots = registry.roots
    for chunk in graph:
        for root_index in chunk.roots:
            root = roots[root_index]
            if root.kind is RootKind.SPLIT:
                root.state = SplitState.RENDERED

    logger.info("Rendered %d files", len(manifest))
    return manifest
