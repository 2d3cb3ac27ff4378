"""Graph analysis utilities.

Provides cycle detection and strongly connected components used by the
chunking core.

Python 3.13+.
"""

from .graph import detect_cycles, strongly_connected_components

__all__ = [
    "detect_cycles",
    "strongly_connected_components",
]
