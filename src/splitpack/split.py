"""Split points.

A SplitContext records which values the caller wants in their own files.
split() marks a value for a synchronously loaded file and returns the value
unchanged. split_async() returns a zero-argument thunk that, once
serialized, loads the value's file on demand; called live, it behaves the
same way without any files involved.

The context is an explicit object passed to serialize_entries(): there is
no process-wide registry, and each run only reads the context.

Python 3.13+.
"""

from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar, final

from .diagnostics import ErrorTemplate, SplitPointError
from .enums import SplitMode
from .runtime import SplitModule
from .tracing.shapes import is_primitive

T = TypeVar("T")

__all__ = [
    "SplitContext",
    "SplitPoint",
    "SplitThunk",
]


@dataclass(slots=True, eq=False)
class SplitPoint:
    """A value registered for extraction.

    Attributes:
        value: The split value (kept alive by the context)
        name: Explicit name; the first one given wins
        mode: SYNC, or ASYNC once split_async() was called for the value
    """

    value: object
    name: str | None
    mode: SplitMode
    _module: SplitModule | None = None

    def module(self) -> SplitModule:
        """The point's module object; the same object for every load."""
        if self._module is None:
            self._module = SplitModule(self.value)
        return self._module


@final
class SplitThunk:
    """Zero-argument callable standing for a deferred load.

    Each call returns a new awaitable; every awaitable resolves to the same
    SplitModule for a given split point.

    Example:
        >>> import asyncio
        >>> context = SplitContext()
        >>> load = context.split_async({"x": 1}, "lazy")
        >>> module = asyncio.run(load())
        >>> module.default
        {'x': 1}
    """

    __slots__ = ("_point",)

    def __init__(self, point: SplitPoint) -> None:
        self._point = point

    @property
    def point(self) -> SplitPoint:
        """Split point this thunk loads."""
        return self._point

    def __call__(self) -> Coroutine[Any, Any, SplitModule]:
        return self._load()

    async def _load(self) -> SplitModule:
        return self._point.module()

    def __repr__(self) -> str:
        return f"SplitThunk(name={self._point.name!r})"


class SplitContext:
    """Registry of split points for one or more serialization runs.

    Example:
        >>> context = SplitContext()
        >>> shared = context.split({"big": list(range(3))}, "shared")
        >>> context.lookup(shared).name
        'shared'
    """

    __slots__ = ("_points",)

    def __init__(self) -> None:
        # Keyed by id(); each point holds its value, so ids stay unique.
        self._points: dict[int, SplitPoint] = {}

    def __len__(self) -> int:
        return len(self._points)

    def __contains__(self, value: object) -> bool:
        return self.lookup(value) is not None

    @property
    def points(self) -> tuple[SplitPoint, ...]:
        """Split points in registration order."""
        return tuple(self._points.values())

    def split(self, value: T, name: str | None = None) -> T:
        """Mark a value for extraction into its own synchronously loaded file.

        Args:
            value: Non-primitive value
            name: Optional filename stem; ignored if the value already has one

        Returns:
            The value itself

        Raises:
            SplitPointError: If the value is a primitive or the name is invalid
        """
        self._register(value, name, SplitMode.SYNC)
        return value

    def split_async(self, value: object, name: str | None = None) -> SplitThunk:
        """Mark a value for extraction into its own file, loaded on demand.

        Args:
            value: Non-primitive value
            name: Optional filename stem; ignored if the value already has one

        Returns:
            New thunk for every call. All thunks of one value load one module.

        Raises:
            SplitPointError: If the value is a primitive or the name is invalid
        """
        return SplitThunk(self._register(value, name, SplitMode.ASYNC))

    def lookup(self, value: object) -> SplitPoint | None:
        """Return the split point registered for a value, if any."""
        point = self._points.get(id(value))
        if point is not None and point.value is value:
            return point
        return None

    def owns(self, thunk: SplitThunk) -> bool:
        """Return True if the thunk was created by this context."""
        return self.lookup(thunk.point.value) is thunk.point

    def _register(self, value: object, name: str | None, mode: SplitMode) -> SplitPoint:
        if is_primitive(value):
            raise SplitPointError(ErrorTemplate.split_on_primitive(type(value).__name__))
        if name is not None and (not isinstance(name, str) or not name):
            raise SplitPointError(ErrorTemplate.split_name_invalid(name))
        point = self.lookup(value)
        if point is None:
            point = SplitPoint(value=value, name=name, mode=mode)
            self._points[id(value)] = point
            return point
        if point.name is None:
            point.name = name
        if mode is SplitMode.ASYNC:
            point.mode = SplitMode.ASYNC
        return point
