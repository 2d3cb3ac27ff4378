"""Variable name allocation for emitted modules.

Generated names run a..z, A..Z, aa, ba, ..., with the first character
varying fastest. Keywords, builtins and the names emitted modules rely on
are never handed out.

Python 3.13+.
"""

import builtins
import keyword
import string
from collections.abc import Iterable

from ..constants import EXPORTS_NAME, LOAD_ASYNC_FUNCTION, LOAD_FUNCTION

__all__ = [
    "RESERVED_NAMES",
    "VarNameAllocator",
    "var_name",
]

_ALPHABET = string.ascii_lowercase + string.ascii_uppercase

RESERVED_NAMES: frozenset[str] = frozenset(
    {
        EXPORTS_NAME,
        LOAD_FUNCTION,
        LOAD_ASYNC_FUNCTION,
        "SimpleNamespace",
        "__file__",
        *keyword.kwlist,
        *keyword.softkwlist,
        *dir(builtins),
    }
)


def var_name(counter: int) -> str:
    """Return the generated name at a position of the sequence.

    Example:
        >>> [var_name(n) for n in (0, 25, 26, 51, 52, 53)]
        ['a', 'z', 'A', 'Z', 'aa', 'ba']
    """
    chars: list[str] = []
    while True:
        chars.append(_ALPHABET[counter % len(_ALPHABET)])
        counter = counter // len(_ALPHABET) - 1
        if counter < 0:
            return "".join(chars)


def _sanitize(hint: str) -> str:
    cleaned = "".join(char if char.isalnum() or char == "_" else "_" for char in hint)
    if not cleaned or not cleaned.isidentifier():
        cleaned = f"_{cleaned}"
    return cleaned if cleaned.isidentifier() else ""


class VarNameAllocator:
    """Hands out unique identifiers for one module."""

    __slots__ = ("_counter", "_reserved", "_used")

    def __init__(self, reserved: Iterable[str] = RESERVED_NAMES) -> None:
        self._counter = 0
        self._reserved = frozenset(reserved)
        self._used: set[str] = set()

    def _available(self, name: str) -> bool:
        return bool(name) and name not in self._used and name not in self._reserved

    def allocate(self, hint: str | None = None) -> str:
        """Return a fresh name, preferring a sanitized hint when it is free."""
        if hint is not None:
            candidate = _sanitize(hint)
            if self._available(candidate):
                self._used.add(candidate)
                return candidate
        while True:
            name = var_name(self._counter)
            self._counter += 1
            if self._available(name):
                self._used.add(name)
                return name
