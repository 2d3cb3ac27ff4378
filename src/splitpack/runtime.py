"""Loader runtime imported by emitted chunk modules.

Emitted modules call load_chunk() for synchronous loads and wrap
load_chunk_async() in a thunk for deferred ones. Both resolve filenames
relative to the calling module's own file and execute each file at most
once per process; later loads return the cached module value.

Python 3.13+. Zero external dependencies.
"""

import hashlib
import logging
import os
import threading
from importlib.machinery import SourceFileLoader
from importlib.util import module_from_spec, spec_from_loader
from types import ModuleType
from typing import ClassVar, final

from .constants import EXPORTS_NAME, MODULE_TYPE_TAG

__all__ = [
    "SplitModule",
    "clear_cache",
    "load_chunk",
    "load_chunk_async",
    "load_file",
]

logger = logging.getLogger(__name__)

_lock = threading.RLock()
_modules: dict[str, ModuleType] = {}
_split_modules: dict[str, "SplitModule"] = {}


@final
class SplitModule:
    """Module object an async split thunk resolves to.

    Exactly one binding, ``default``, holding the split value. It can be
    reassigned but not deleted, and no other attribute can be added. The
    type tag lives on the class, so it never shows up as a binding.
    """

    __slots__ = ("default",)

    type_tag: ClassVar[str] = MODULE_TYPE_TAG

    def __init__(self, default: object) -> None:
        self.default = default

    def __delattr__(self, name: str) -> None:
        msg = f"cannot delete attribute {name!r} of {self.type_tag}"
        raise AttributeError(msg)

    def __repr__(self) -> str:
        return f"<{self.type_tag} default={type(self.default).__name__}>"


def _resolve(origin: str, filename: str) -> str:
    return os.path.normpath(os.path.join(os.path.dirname(os.path.abspath(origin)), filename))


def _execute(path: str) -> ModuleType:
    with _lock:
        cached = _modules.get(path)
        if cached is not None:
            return cached
        digest = hashlib.sha1(path.encode(), usedforsecurity=False).hexdigest()[:16]
        name = f"_splitpack_chunk_{digest}"
        loader = SourceFileLoader(name, path)
        spec = spec_from_loader(name, loader)
        if spec is None:  # pragma: no cover - SourceFileLoader always yields a spec
            msg = f"cannot load chunk {path}"
            raise ImportError(msg)
        module = module_from_spec(spec)
        _modules[path] = module
        try:
            loader.exec_module(module)
        except BaseException:
            del _modules[path]
            raise
        logger.debug("Loaded chunk %s", path)
        return module


def load_file(path: str | os.PathLike[str]) -> object:
    """Load a chunk file by path and return its module value.

    Args:
        path: Path to an emitted file, typically an entry file

    Returns:
        The file's module value

    Raises:
        AttributeError: If the file does not define a module value
    """
    module = _execute(os.path.abspath(os.fspath(path)))
    return getattr(module, EXPORTS_NAME)


def load_chunk(origin: str, filename: str) -> object:
    """Load a chunk relative to the calling module's file.

    Args:
        origin: __file__ of the calling module
        filename: Path of the chunk relative to origin's directory

    Returns:
        The chunk's module value
    """
    return load_file(_resolve(origin, filename))


async def load_chunk_async(origin: str, filename: str) -> SplitModule:
    """Deferred counterpart of load_chunk().

    Returns:
        The same SplitModule for every load of a given file
    """
    path = _resolve(origin, filename)
    with _lock:
        module = _split_modules.get(path)
        if module is None:
            module = SplitModule(load_file(path))
            _split_modules[path] = module
    return module


def clear_cache() -> None:
    """Forget every loaded chunk, so files are executed again on next load."""
    with _lock:
        _modules.clear()
        _split_modules.clear()
