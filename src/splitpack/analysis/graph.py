"""Graph algorithms for chunk and value graphs.

Provides cycle detection and strongly connected components using
iterative depth-first search, so deep value graphs never hit the
interpreter's recursion limit.

Python 3.13+.
"""

from collections.abc import Hashable, Iterable, Mapping
from enum import Enum, auto
from typing import TypeVar

__all__ = [
    "detect_cycles",
    "strongly_connected_components",
]

T = TypeVar("T", bound=Hashable)


class _NodeState(Enum):
    """DFS node visitation state for iterative cycle detection."""

    ENTER = auto()  # First visit to node
    EXIT = auto()  # Returning from node (all neighbors processed)


def detect_cycles(dependencies: Mapping[T, Iterable[T]]) -> list[list[T]]:
    """Detect cycles in a directed graph using iterative DFS.

    Args:
        dependencies: Mapping from node to the nodes it depends on.
                     Example: {"a": ["b"], "b": ["c"], "c": ["a"]}

    Returns:
        List of cycles, where each cycle is a list of nodes forming the
        cycle path and ending with its first node repeated. Empty list if
        the graph is acyclic.

    Example:
        >>> detect_cycles({"a": ["b"], "b": ["c"], "c": ["a"]})
        [['a', 'b', 'c', 'a']]

    Complexity:
        Time: O(V + E) where V = nodes, E = edges
        Space: O(V) for visited/recursion tracking
    """
    visited: set[T] = set()
    cycles: list[list[T]] = []
    seen_cycle_keys: set[frozenset[T]] = set()

    for start_node in dependencies:
        if start_node in visited:
            continue

        path: list[T] = []
        rec_stack: set[T] = set()
        stack: list[tuple[T, _NodeState]] = [(start_node, _NodeState.ENTER)]

        while stack:
            node, state = stack.pop()

            if state == _NodeState.EXIT:
                path.pop()
                rec_stack.discard(node)
                continue

            if node in visited:
                continue

            visited.add(node)
            rec_stack.add(node)
            path.append(node)
            stack.append((node, _NodeState.EXIT))

            # Reversed so neighbors are explored in declaration order
            for neighbor in reversed(list(dependencies.get(node, ()))):
                if neighbor not in visited:
                    stack.append((neighbor, _NodeState.ENTER))
                elif neighbor in rec_stack:
                    cycle = [*path[path.index(neighbor) :], neighbor]
                    cycle_key = frozenset(cycle)
                    if cycle_key not in seen_cycle_keys:
                        seen_cycle_keys.add(cycle_key)
                        cycles.append(cycle)

    return cycles


def strongly_connected_components(
    graph: Mapping[T, Iterable[T]],
    order: Iterable[T] | None = None,
) -> list[tuple[T, ...]]:
    """Compute strongly connected components with iterative Tarjan.

    Components come out in reverse topological order of the condensed
    graph: a component is listed before every component that has an edge
    into it. Reverse the result to process referencers first.

    Args:
        graph: Mapping from node to its successors. Successors missing from
               the mapping are treated as sinks.
        order: Start nodes in the order DFS roots are tried. Defaults to the
               mapping's iteration order. Fixes tie-breaks between otherwise
               unordered components.

    Returns:
        Components as tuples of nodes in the order they were popped.

    Example:
        >>> strongly_connected_components({"a": ["b"], "b": ["a", "c"], "c": []})
        [('c',), ('b', 'a')]
    """
    index: dict[T, int] = {}
    lowlink: dict[T, int] = {}
    on_stack: set[T] = set()
    stack: list[T] = []
    components: list[tuple[T, ...]] = []
    counter = 0

    for start in graph if order is None else order:
        if start in index:
            continue

        index[start] = lowlink[start] = counter
        counter += 1
        stack.append(start)
        on_stack.add(start)
        work = [(start, iter(graph.get(start, ())))]

        while work:
            node, successors = work[-1]
            descended = False
            for successor in successors:
                if successor not in index:
                    index[successor] = lowlink[successor] = counter
                    counter += 1
                    stack.append(successor)
                    on_stack.add(successor)
                    work.append((successor, iter(graph.get(successor, ()))))
                    descended = True
                    break
                if successor in on_stack:
                    lowlink[node] = min(lowlink[node], index[successor])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])

            if lowlink[node] == index[node]:
                component: list[T] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                components.append(tuple(component))

    return components
