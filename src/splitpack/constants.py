"""Shared constants for splitpack.

Centralized defaults used by the chunking core, the code generator and the
serializer facade. Placing them here avoids circular imports between those
packages.

Constants are grouped by domain:
- Filename patterns: default templates per chunk kind
- Hashing: digest length and alphabet handling
- Placeholders: tokens substituted after all chunk names are known
- Emitted modules: names the generated code relies on

Python 3.13+. Zero external dependencies.
"""

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Filename patterns
    "NAME_TOKEN",
    "HASH_TOKEN",
    "DEFAULT_ENTRY_PATTERN",
    "DEFAULT_SPLIT_PATTERN",
    "DEFAULT_COMMON_PATTERN",
    "DEFAULT_SPLIT_NAME",
    "DEFAULT_COMMON_NAME",
    "DEFAULT_EXT",
    # Hashing
    "HASH_LENGTH",
    # Placeholders
    "PLACEHOLDER_PREFIX",
    "PLACEHOLDER_SUFFIX",
    # Emitted modules
    "EXPORTS_NAME",
    "RUNTIME_MODULE",
    "LOAD_FUNCTION",
    "LOAD_ASYNC_FUNCTION",
    "MODULE_TYPE_TAG",
    "MAX_INLINE_DEPTH",
]

# ============================================================================
# FILENAME PATTERNS
# ============================================================================

NAME_TOKEN: str = "[name]"
HASH_TOKEN: str = "[hash]"

# Entry files are addressed by callers, so they carry no hash by default.
DEFAULT_ENTRY_PATTERN: str = "[name]"
DEFAULT_SPLIT_PATTERN: str = "[name]-[hash]"
DEFAULT_COMMON_PATTERN: str = "[name]-[hash]"

# Substituted for [name] when a chunk has no explicit name.
DEFAULT_SPLIT_NAME: str = "split"
DEFAULT_COMMON_NAME: str = "common"

DEFAULT_EXT: str = "py"

# ============================================================================
# HASHING
# ============================================================================

# Characters kept from the base32 encoded SHA-1 digest.
HASH_LENGTH: int = 8

# ============================================================================
# PLACEHOLDERS
# ============================================================================
#
# A deferred load may point at a chunk rendered later (deepest-first order only
# covers synchronous loads). Its filename is written as
# PLACEHOLDER_PREFIX + chunk id + PLACEHOLDER_SUFFIX and substituted once every
# chunk is named. The delimiters survive repr() unchanged.

PLACEHOLDER_PREFIX: str = "<<splitpack-chunk:"
PLACEHOLDER_SUFFIX: str = ">>"

# ============================================================================
# EMITTED MODULES
# ============================================================================

EXPORTS_NAME: str = "exports"
RUNTIME_MODULE: str = "splitpack.runtime"
LOAD_FUNCTION: str = "load_chunk"
LOAD_ASYNC_FUNCTION: str = "load_chunk_async"
MODULE_TYPE_TAG: str = "Module"

# Inlined expressions nest at most this deep; deeper values are bound to a
# variable. CPython's parser rejects roughly 200 levels of brackets.
MAX_INLINE_DEPTH: int = 32
