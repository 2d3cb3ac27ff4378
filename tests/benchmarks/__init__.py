"""Performance benchmarks for splitpack.

Benchmarks use pytest-benchmark to track the cost of tracing, chunk
assignment and rendering on large value graphs.

Python 3.13+.
"""

from __future__ import annotations

__all__: list[str] = []
