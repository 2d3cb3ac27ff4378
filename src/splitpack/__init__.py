"""splitpack - code-splitting serializer for Python values.

Serializes a set of named values into a minimal set of importable Python
module files. Values shared between entries are emitted once and loaded by
every file that needs them, so object identity survives the round trip;
reference cycles are rebuilt inside a single file; values marked with
split() or split_async() get files of their own.

Public API:
    serialize_entries - Serialize named values into a manifest of files
    write_manifest - Write a manifest below a directory
    SplitContext - Split point registry (split, split_async)
    SerializeOptions - Filename patterns and output options
    load_file - Load an emitted file and return its value

Exceptions:
    SplitPackError - Base exception class
    ChunkCycleError - Unresolvable synchronous cycle
    ChunkNamingError - Unusable name or filename collision
    SplitPointError - Invalid split point
    UnsupportedValueError - Value cannot be serialized

Submodules:
    splitpack.chunking - Chunking core (registry, reachability, assignment, naming)
    splitpack.analysis - Graph algorithms
    splitpack.codegen - Python module renderer
    splitpack.runtime - Loader used by emitted modules
    splitpack.diagnostics - Error types and diagnostic formatting
"""

from .chunking import ManifestEntry
from .diagnostics import (
    ChunkCycleError,
    ChunkingInvariantError,
    ChunkNamingError,
    SplitPackError,
    SplitPointError,
    UnsupportedValueError,
)
from .enums import ChunkKind, SourceMapMode
from .options import SerializeOptions
from .runtime import SplitModule, load_file
from .serializer import serialize_entries, write_manifest
from .split import SplitContext, SplitThunk

__all__ = [
    "ChunkCycleError",
    "ChunkKind",
    "ChunkNamingError",
    "ChunkingInvariantError",
    "ManifestEntry",
    "SerializeOptions",
    "SourceMapMode",
    "SplitContext",
    "SplitModule",
    "SplitPackError",
    "SplitPointError",
    "SplitThunk",
    "UnsupportedValueError",
    "load_file",
    "serialize_entries",
    "write_manifest",
]

# Version information - Auto-populated from package metadata
# SINGLE SOURCE OF TRUTH: pyproject.toml [project] version
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _get_version

try:
    __version__ = _get_version("splitpack")
except PackageNotFoundError:
    # Development mode: package not installed yet
    __version__ = "0.0.0+dev"
