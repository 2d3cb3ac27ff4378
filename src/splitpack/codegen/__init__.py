"""Python source generation for chunk plans.

Python 3.13+.
"""

from .renderer import PythonChunkRenderer
from .varnames import RESERVED_NAMES, VarNameAllocator, var_name

__all__ = [
    "RESERVED_NAMES",
    "PythonChunkRenderer",
    "VarNameAllocator",
    "var_name",
]
