"""Tests for analysis.graph cycle detection and strongly connected components.

Both algorithms back chunk planning: components become assignment units and
cycle detection guards the chunk load graph.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from splitpack.analysis.graph import detect_cycles, strongly_connected_components
from tests.strategies import cycle_paths, dependency_graphs, node_names

# ============================================================================
# UNIT TESTS - CYCLE DETECTION
# ============================================================================


class TestDetectCyclesBasic:
    """Basic unit tests for detect_cycles function."""

    def test_empty_graph_no_cycles(self) -> None:
        """Empty graph has no cycles."""
        deps: dict[str, list[str]] = {}
        assert detect_cycles(deps) == []

    def test_single_node_no_deps_no_cycles(self) -> None:
        """Single node with no dependencies has no cycles."""
        assert detect_cycles({"a": []}) == []

    def test_self_referencing_node_is_cycle(self) -> None:
        """Node referencing itself is a cycle closed on itself."""
        assert detect_cycles({"a": ["a"]}) == [["a", "a"]]

    def test_three_node_cycle_path(self) -> None:
        """Cycle path starts at the first node and repeats it at the end."""
        cycles = detect_cycles({"a": ["b"], "b": ["c"], "c": ["a"]})
        assert cycles == [["a", "b", "c", "a"]]

    def test_diamond_no_cycle(self) -> None:
        """Diamond pattern has no cycles."""
        deps = {"a": ["b", "c"], "b": ["d"], "c": ["d"], "d": []}
        assert detect_cycles(deps) == []

    def test_multiple_independent_cycles(self) -> None:
        """Multiple independent cycles are all detected."""
        deps = {"a": ["b"], "b": ["a"], "x": ["y"], "y": ["z"], "z": ["x"]}
        assert len(detect_cycles(deps)) == 2

    def test_node_with_missing_target_no_crash(self) -> None:
        """References to undefined nodes don't crash."""
        assert detect_cycles({"a": ["undefined"]}) == []

    def test_integer_nodes(self) -> None:
        """Chunk ids are plain integers."""
        assert detect_cycles({0: [1], 1: [2], 2: [1]}) == [[1, 2, 1]]


class TestDetectCyclesDeduplication:
    """Tests for cycle deduplication behavior."""

    def test_cycle_not_duplicated_from_different_start(self) -> None:
        """Same cycle detected from different start nodes is reported once."""
        deps = {"a": ["b"], "b": ["c"], "c": ["a"]}
        assert len(detect_cycles(deps)) == 1


# ============================================================================
# UNIT TESTS - STRONGLY CONNECTED COMPONENTS
# ============================================================================


class TestStronglyConnectedComponents:
    """Unit tests for strongly_connected_components."""

    def test_empty_graph(self) -> None:
        """Empty graph has no components."""
        assert strongly_connected_components({}) == []

    def test_sinks_come_first(self) -> None:
        """Components are listed before the components that reference them."""
        components = strongly_connected_components({"a": ["b"], "b": ["a", "c"], "c": []})
        assert components == [("c",), ("b", "a")]

    def test_chain_is_reverse_topological(self) -> None:
        """A chain comes out leaf first."""
        components = strongly_connected_components({1: [2], 2: [3], 3: []})
        assert components == [(3,), (2,), (1,)]

    def test_self_loop_is_single_component(self) -> None:
        """A self-loop forms a one-member component."""
        assert strongly_connected_components({"a": ["a"]}) == [("a",)]

    def test_missing_successor_is_sink(self) -> None:
        """Successors absent from the mapping are treated as sinks."""
        assert strongly_connected_components({"a": ["z"]}) == [("z",), ("a",)]

    def test_order_fixes_tie_breaks(self) -> None:
        """Start order decides the order of unrelated components."""
        graph: dict[str, list[str]] = {"a": [], "b": []}
        assert strongly_connected_components(graph) == [("a",), ("b",)]
        assert strongly_connected_components(graph, order=["b", "a"]) == [("b",), ("a",)]

    def test_deep_chain_does_not_recurse(self) -> None:
        """Very deep graphs do not hit the recursion limit."""
        depth = 20_000
        graph = {index: [index + 1] for index in range(depth)}
        graph[depth] = [0]
        components = strongly_connected_components(graph)
        assert len(components) == 1
        assert len(components[0]) == depth + 1


# ============================================================================
# PROPERTY TESTS - CYCLE DETECTION
# ============================================================================


class TestDetectCyclesProperties:
    """Property-based tests for detect_cycles."""

    @given(nodes=st.lists(node_names, min_size=1, max_size=5, unique=True))
    @settings(max_examples=100)
    def test_no_edges_no_cycles(self, nodes: list[str]) -> None:
        """PROPERTY: Graph with no edges has no cycles."""
        deps: dict[str, list[str]] = {node: [] for node in nodes}
        assert detect_cycles(deps) == []

    @given(graph=dependency_graphs(allow_cycles=False))
    @settings(max_examples=100)
    def test_acyclic_graphs_have_no_cycles(self, graph: dict[str, list[str]]) -> None:
        """PROPERTY: Generated acyclic graphs report no cycles."""
        assert detect_cycles(graph) == []

    @given(graph=dependency_graphs(allow_cycles=True))
    @settings(max_examples=100)
    def test_cyclic_graphs_have_cycles(self, graph: dict[str, list[str]]) -> None:
        """PROPERTY: Graphs with an injected cycle report at least one."""
        cycles = detect_cycles(graph)
        assert cycles
        for cycle in cycles:
            assert cycle[0] == cycle[-1]
            for source, target in zip(cycle, cycle[1:], strict=False):
                assert target in graph[source]

    @given(path=cycle_paths())
    @settings(max_examples=100)
    def test_closed_path_is_found(self, path: list[str]) -> None:
        """PROPERTY: A graph made of one closed path has exactly that cycle."""
        graph: dict[str, list[str]] = {}
        for source, target in zip(path, path[1:], strict=False):
            graph.setdefault(source, []).append(target)
        cycles = detect_cycles(graph)
        assert len(cycles) == 1
        assert set(cycles[0]) == set(path)


# ============================================================================
# PROPERTY TESTS - STRONGLY CONNECTED COMPONENTS
# ============================================================================


def _reachable(graph: dict[str, list[str]], start: str) -> set[str]:
    seen = {start}
    pending = [start]
    while pending:
        for target in graph.get(pending.pop(), ()):
            if target not in seen:
                seen.add(target)
                pending.append(target)
    return seen


class TestStronglyConnectedComponentsProperties:
    """Property-based tests for strongly_connected_components."""

    @given(graph=dependency_graphs())
    @settings(max_examples=100)
    def test_components_partition_nodes(self, graph: dict[str, list[str]]) -> None:
        """PROPERTY: Every node belongs to exactly one component."""
        members = [node for component in strongly_connected_components(graph) for node in component]
        assert sorted(members) == sorted(graph)

    @given(graph=dependency_graphs())
    @settings(max_examples=100)
    def test_members_are_mutually_reachable(self, graph: dict[str, list[str]]) -> None:
        """PROPERTY: Members of one component reach each other."""
        for component in strongly_connected_components(graph):
            for member in component:
                assert set(component) <= _reachable(graph, member)

    @given(graph=dependency_graphs())
    @settings(max_examples=100)
    def test_edges_point_to_earlier_components(self, graph: dict[str, list[str]]) -> None:
        """PROPERTY: Cross-component edges go to components listed earlier."""
        position = {
            node: index
            for index, component in enumerate(strongly_connected_components(graph))
            for node in component
        }
        for source, targets in graph.items():
            for target in targets:
                assert position[target] <= position[source]
