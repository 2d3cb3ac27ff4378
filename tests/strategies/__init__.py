"""Hypothesis strategies for splitpack property-based testing.

This package provides reusable strategies for generating test data
across multiple test modules. Strategies are organized by domain:

- graph: Adjacency lists for cycle detection and SCC computation
- values: Live value graphs with sharing and cycles, plus split points

Usage:
    from tests.strategies import dependency_graphs, value_graphs
    from tests.strategies.values import split_plans

Event-Emitting Strategies (HypoFuzz-Optimized):
    These strategies emit hypothesis.event() calls for coverage-guided fuzzing:
    - dependency_graphs, cycle_paths
    - primitive_values, value_graphs, split_plans
"""

from .graph import cycle_paths, dependency_graphs, node_names
from .values import ValueGraph, primitive_values, split_plans, value_graphs

__all__ = [
    "ValueGraph",
    "cycle_paths",
    "dependency_graphs",
    "node_names",
    "primitive_values",
    "split_plans",
    "value_graphs",
]
