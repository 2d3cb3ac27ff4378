"""Serializer configuration.

Provides SerializeOptions, an immutable configuration object passed to
serialize_entries(). All fields have defaults; SerializeOptions() with no
arguments produces hash-named shared chunks next to entry files named after
their entries.

Python 3.13+. Zero external dependencies.
"""

import posixpath
from dataclasses import dataclass

from .constants import (
    DEFAULT_COMMON_PATTERN,
    DEFAULT_ENTRY_PATTERN,
    DEFAULT_EXT,
    DEFAULT_SPLIT_PATTERN,
    HASH_TOKEN,
    NAME_TOKEN,
)
from .diagnostics import ErrorTemplate
from .enums import ChunkKind, SourceMapMode

__all__ = ["SerializeOptions"]

_FORBIDDEN_FILENAME_CHARS = frozenset("'\"\\\n\r\t\0")


def check_relative_path(path: str) -> str | None:
    """Return why a path cannot be used as an output filename, or None if it can."""
    if not path:
        return "must not be empty"
    if path.startswith("/"):
        return "must be relative"
    if any(char in _FORBIDDEN_FILENAME_CHARS for char in path):
        return "must not contain quotes, backslashes or control characters"
    if ".." in path.split("/"):
        return "must not contain '..' segments"
    return None


@dataclass(frozen=True, slots=True)
class SerializeOptions:
    """Immutable configuration for serialize_entries().

    Attributes:
        entry_chunk_name: Filename pattern for entry files (default: "[name]")
        split_chunk_name: Filename pattern for split chunks (default: "[name]-[hash]")
        common_chunk_name: Filename pattern for common chunks (default: "[name]-[hash]")
        ext: Extension appended to every chunk filename, without the dot
        source_maps: OFF, INLINE (map appended as a comment) or EXTERNAL
            (map written to "<file>.map"). Participates in chunk hashes.
        inline: Inline values referenced once into the expression that uses
            them instead of binding them to a variable
        stats: Filename of a JSON stats file listing every output file, or
            None to skip it

    Example:
        >>> options = SerializeOptions(common_chunk_name="shared/[name]-[hash]")
        >>> options.pattern_for(ChunkKind.COMMON)
        'shared/[name]-[hash]'
        >>> SerializeOptions(split_chunk_name="fixed")
        Traceback (most recent call last):
        ...
        ValueError: Invalid split_chunk_name pattern 'fixed': must contain [name] or [hash]
    """

    entry_chunk_name: str = DEFAULT_ENTRY_PATTERN
    split_chunk_name: str = DEFAULT_SPLIT_PATTERN
    common_chunk_name: str = DEFAULT_COMMON_PATTERN
    ext: str = DEFAULT_EXT
    source_maps: SourceMapMode = SourceMapMode.OFF
    inline: bool = True
    stats: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration values at construction time.

        Raises:
            ValueError: If a pattern lacks both [name] and [hash], or is not a
                usable relative path, or if ext or stats is malformed.
        """
        for option in ("entry_chunk_name", "split_chunk_name", "common_chunk_name"):
            pattern = getattr(self, option)
            if NAME_TOKEN not in pattern and HASH_TOKEN not in pattern:
                raise ValueError(
                    ErrorTemplate.pattern_invalid(option, pattern, "must contain [name] or [hash]").message
                )
            reason = check_relative_path(pattern)
            if reason is not None:
                raise ValueError(ErrorTemplate.pattern_invalid(option, pattern, reason).message)
        if not self.ext or not self.ext.isalnum():
            msg = f"ext must be a non-empty alphanumeric extension, got {self.ext!r}"
            raise ValueError(msg)
        if not isinstance(self.source_maps, SourceMapMode):
            object.__setattr__(self, "source_maps", SourceMapMode(self.source_maps))
        if self.stats is not None:
            reason = check_relative_path(self.stats)
            if reason is not None:
                msg = f"stats filename {reason}, got {self.stats!r}"
                raise ValueError(msg)

    def pattern_for(self, kind: ChunkKind) -> str:
        """Return the filename pattern for a chunk kind."""
        match kind:
            case ChunkKind.ENTRY:
                return self.entry_chunk_name
            case ChunkKind.SPLIT:
                return self.split_chunk_name
            case ChunkKind.COMMON:
                return self.common_chunk_name

    def filename(self, kind: ChunkKind, name: str, digest: str) -> str:
        """Substitute tokens into the pattern for a kind and append the extension."""
        stem = self.pattern_for(kind).replace(NAME_TOKEN, name).replace(HASH_TOKEN, digest)
        return posixpath.normpath(f"{stem}.{self.ext}")
