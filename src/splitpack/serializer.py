"""Serializer facade.

serialize_entries() runs the whole pipeline for a set of named values:

    trace values -> reachability -> condensation -> chunk assignment
    -> emission plans -> render + hash + name -> manifest

The manifest lists files in output order: entry files in caller order,
then files loaded by async split thunks, then the remaining chunks in
creation order, then auxiliary files (source maps, stats). Nothing is
written to disk unless write_manifest() is called.

Python 3.13+.
"""

import base64
import json
import logging
import posixpath
from collections.abc import Iterable, Mapping
from pathlib import Path

from .chunking import ChunkGraph, ManifestEntry, NodeRegistry, build_chunk_graph, name_chunks
from .codegen import PythonChunkRenderer
from .diagnostics import ChunkNamingError, ErrorTemplate
from .enums import SourceMapMode
from .options import SerializeOptions, check_relative_path
from .split import SplitContext
from .tracing.tracer import ValueTracer

__all__ = [
    "serialize_entries",
    "write_manifest",
]

logger = logging.getLogger(__name__)

_SOURCE_MAP_COMMENT = "# splitpack-source-map: "
_SOURCE_MAP_KIND = "source-map"
_STATS_KIND = "stats"


def _validate_entry_names(entries: Mapping[str, object]) -> None:
    for name in entries:
        if not isinstance(name, str):
            raise ChunkNamingError(ErrorTemplate.entry_name_invalid(name, "must be a string"))
        reason = check_relative_path(name)
        if reason is not None:
            raise ChunkNamingError(ErrorTemplate.entry_name_invalid(name, reason))


def _attach_source_maps(
    manifest: list[ManifestEntry],
    graph: ChunkGraph,
    renderer: PythonChunkRenderer,
    mode: SourceMapMode,
) -> list[ManifestEntry]:
    """Append a source map to every chunk, inline or as a companion file.

    A source map lists, per emitted line, the access path of the value that
    line builds.
    """
    if mode is SourceMapMode.OFF:
        return manifest
    chunks = {chunk.filename: chunk for chunk in graph}
    files: list[ManifestEntry] = []
    maps: list[ManifestEntry] = []
    for entry in manifest:
        chunk = chunks[entry.filename]
        document = json.dumps(
            {
                "version": 1,
                "file": posixpath.basename(entry.filename),
                "mappings": [{"line": line, "source": origin} for line, origin in renderer.line_origins(chunk)],
            },
            ensure_ascii=False,
        )
        if mode is SourceMapMode.INLINE:
            encoded = base64.b64encode(document.encode()).decode("ascii")
            comment = f"{_SOURCE_MAP_COMMENT}data:application/json;base64,{encoded}"
        else:
            map_filename = f"{entry.filename}.map"
            comment = f"{_SOURCE_MAP_COMMENT}{posixpath.basename(map_filename)}"
            maps.append(ManifestEntry(filename=map_filename, content=document, kind=_SOURCE_MAP_KIND, name=entry.name))
        files.append(
            ManifestEntry(filename=entry.filename, content=f"{entry.content}{comment}\n", kind=entry.kind, name=entry.name)
        )
    return files + maps


def _stats_entry(manifest: Iterable[ManifestEntry], filename: str) -> ManifestEntry:
    files = [
        {"type": entry.kind, "name": entry.name, "filename": entry.filename}
        for entry in manifest
        if entry.kind != _SOURCE_MAP_KIND
    ]
    return ManifestEntry(filename=filename, content=json.dumps({"files": files}, indent=2) + "\n", kind=_STATS_KIND)


def serialize_entries(
    entries: Mapping[str, object],
    *,
    context: SplitContext | None = None,
    options: SerializeOptions | None = None,
) -> list[ManifestEntry]:
    """Serialize named values into a minimal set of module files.

    Args:
        entries: Entry name -> value. Names become filenames through the
            entry pattern and may contain '/' to place files in directories.
        context: Split points requested with split()/split_async()
        options: Filename patterns and output options

    Returns:
        Manifest of files to write, in output order

    Raises:
        UnsupportedValueError: If a value cannot be serialized
        SplitPointError: If a thunk belongs to another context
        ChunkCycleError: If a synchronous cycle joins differently named split points
        ChunkNamingError: If a name is unusable or two files collide

    Example:
        >>> shared = {"x": 1}
        >>> files = serialize_entries({"one": {"a": shared}, "two": {"b": shared}})
        >>> [entry.kind for entry in files]
        ['entry', 'entry', 'common']
    """
    options = options or SerializeOptions()
    _validate_entry_names(entries)

    registry = NodeRegistry()
    ValueTracer(registry, context).trace_entries(entries)
    graph = build_chunk_graph(registry)
    renderer = PythonChunkRenderer(registry, graph, inline=options.inline)
    manifest = name_chunks(graph, registry, renderer, options)
    manifest = _attach_source_maps(manifest, graph, renderer, options.source_maps)
    if options.stats is not None:
        if any(entry.filename == options.stats for entry in manifest):
            raise ChunkNamingError(ErrorTemplate.filename_collision(options.stats, (_STATS_KIND, options.stats)))
        manifest.append(_stats_entry(manifest, options.stats))

    logger.info("Serialized %d entries into %d files", len(entries), len(manifest))
    return manifest


def write_manifest(manifest: Iterable[ManifestEntry], directory: str | Path) -> list[Path]:
    """Write manifest files below a directory, creating subdirectories.

    Returns:
        Paths written, in manifest order
    """
    root = Path(directory)
    written: list[Path] = []
    for entry in manifest:
        path = root / entry.filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(entry.content, encoding="utf-8")
        written.append(path)
    logger.debug("Wrote %d files to %s", len(written), root)
    return written
