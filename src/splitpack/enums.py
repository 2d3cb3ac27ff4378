"""Enumerations for splitpack type-safe constants.

Uses StrEnum (Python 3.11+) for automatic string conversion.
StrEnum members are strings themselves, so manifests and stats files can
carry them without conversion.

Python 3.13+.
"""

from enum import StrEnum

__all__ = [
    "ChunkKind",
    "EdgeKind",
    "ExportShape",
    "RootKind",
    "SourceMapMode",
    "SplitMode",
    "SplitState",
    "StepKind",
    "ValueKind",
]


class RootKind(StrEnum):
    """Kind of named binding into the value graph."""

    ENTRY = "entry"
    """Caller-supplied entry: always materializes a file named after it."""

    SPLIT = "split"
    """Requested split point: materializes only if reached from an entry."""


class SplitMode(StrEnum):
    """How a split point is loaded by the code that references it."""

    SYNC = "sync"
    """Loaded eagerly when the referencing module executes."""

    ASYNC = "async"
    """Loaded on demand through a zero-argument thunk."""


class SplitState(StrEnum):
    """Lifecycle of a split point within one run.

    REGISTERED -> PRUNED (terminal) or
    REGISTERED -> MATERIALIZED -> ASSIGNED -> RENDERED
    """

    REGISTERED = "registered"
    PRUNED = "pruned"
    MATERIALIZED = "materialized"
    ASSIGNED = "assigned"
    RENDERED = "rendered"


class EdgeKind(StrEnum):
    """Kind of reference between two nodes, or load between two chunks.

    StrEnum provides automatic string conversion: str(EdgeKind.SYNC) == "sync"
    """

    SYNC = "sync"
    """Resolved when the containing module executes."""

    DEFERRED = "deferred"
    """Resolved later, when an async split thunk is invoked."""


class ChunkKind(StrEnum):
    """Kind of output file."""

    ENTRY = "entry"
    COMMON = "common"
    SPLIT = "split"


class ExportShape(StrEnum):
    """Shape of a chunk's module value."""

    SINGLE = "single"
    """The module value is the exported node itself."""

    ARRAY = "array"
    """The module value is a list of exported nodes, accessed by index."""


class StepKind(StrEnum):
    """Emission step within a chunk plan."""

    DECLARE = "declare"
    """Bind a cycle head with placeholders for members not yet built."""

    BUILD = "build"
    """Build a node whose references are all available."""

    PATCH = "patch"
    """Fill one placeholder slot of a previously declared cycle head."""


class SourceMapMode(StrEnum):
    """Source map mode. Participates in chunk hashes."""

    OFF = "off"
    INLINE = "inline"
    EXTERNAL = "external"


class ValueKind(StrEnum):
    """Structural kind of a traced Python value."""

    PRIMITIVE = "primitive"
    DICT = "dict"
    LIST = "list"
    TUPLE = "tuple"
    NAMESPACE = "namespace"
    THUNK = "thunk"
