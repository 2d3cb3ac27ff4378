"""Tests for condensation, chunk assignment and emission planning.

Registries are built by hand: the chunking core never looks at node
content, so these tests cover the partitioning policy without any values.
"""

import pytest
from hypothesis import given, settings

from splitpack.analysis import detect_cycles
from splitpack.chunking import ChunkGraph, NodeRegistry, analyze_reachability, build_chunk_graph, condense
from splitpack.chunking.cycles import verify_load_graph
from splitpack.diagnostics import ChunkCycleError, DiagnosticCode
from splitpack.enums import ChunkKind, EdgeKind, ExportShape, SplitMode, SplitState, StepKind
from tests.strategies import dependency_graphs


def _registry(count: int, *edges: tuple[int, int] | tuple[int, int, EdgeKind]) -> NodeRegistry:
    """Registry with ``count`` nodes and the given edges, in order."""
    registry = NodeRegistry()
    for index in range(count):
        registry.add_node(identity=index, origin=f"n{index}")
    for edge in edges:
        source, target, *kind = edge
        registry.add_edge(source, target, f"k{target}", kind[0] if kind else EdgeKind.SYNC)
    return registry


def _steps(plan: tuple) -> list[tuple[StepKind, int]]:
    return [(step.kind, step.node) for step in plan]


# ============================================================================
# UNIT TESTS - CONDENSATION
# ============================================================================


class TestCondense:
    """Tests for condense."""

    def test_cycle_becomes_one_unit(self) -> None:
        """A synchronous cycle is a single cyclic unit."""
        registry = _registry(3, (0, 1), (1, 2), (2, 1))
        registry.add_entry("main", 0)
        condensation = condense(registry, analyze_reachability(registry))
        assert condensation.units == ((0,), (1, 2))
        assert condensation.is_cyclic(1)
        assert not condensation.is_cyclic(0)

    def test_self_loop_is_cyclic(self) -> None:
        """A self-reference makes a one-member unit cyclic."""
        registry = _registry(1, (0, 0))
        registry.add_entry("main", 0)
        condensation = condense(registry, analyze_reachability(registry))
        assert condensation.units == ((0,),)
        assert condensation.is_cyclic(0)

    def test_ready_units_ordered_by_discovery(self) -> None:
        """Among ready units the earliest discovered node comes first."""
        registry = _registry(3, (0, 2), (0, 1))
        registry.add_entry("main", 0)
        condensation = condense(registry, analyze_reachability(registry))
        assert condensation.units == ((0,), (1,), (2,))

    def test_unreached_nodes_left_out(self) -> None:
        """Only reached nodes are condensed."""
        registry = _registry(3, (0, 1))
        registry.add_entry("main", 0)
        condensation = condense(registry, analyze_reachability(registry))
        assert 2 not in condensation.unit_of

    @given(graph=dependency_graphs())
    @settings(max_examples=100)
    def test_referencers_come_first(self, graph: dict[str, list[str]]) -> None:
        """PROPERTY: Every cross-unit edge goes to a later unit."""
        names = list(graph)
        index = {name: position for position, name in enumerate(names)}
        edges = [(index[source], index[target]) for source, targets in graph.items() for target in targets]
        registry = _registry(len(names), *edges)
        for position in range(len(names)):
            registry.add_entry(f"e{position}", position)
        condensation = condense(registry, analyze_reachability(registry))
        for source, target in edges:
            assert condensation.unit_of[source] <= condensation.unit_of[target]


# ============================================================================
# UNIT TESTS - ASSIGNMENT POLICY
# ============================================================================


class TestAssignment:
    """Tests for the chunk assignment rules."""

    def test_private_values_inline(self) -> None:
        """Values used by one entry only stay in its file."""
        registry = _registry(3, (0, 1), (1, 2))
        registry.add_entry("main", 0)
        graph = build_chunk_graph(registry)
        assert len(graph) == 1
        main = graph.chunk(0)
        assert main.kind is ChunkKind.ENTRY
        assert main.members == [0, 1, 2]
        assert main.values == [0]
        assert main.loads == []

    def test_shared_value_gets_common_chunk(self) -> None:
        """A value two entries share moves to a common chunk."""
        registry = _registry(3, (0, 2), (1, 2))
        registry.add_entry("one", 0)
        registry.add_entry("two", 1)
        graph = build_chunk_graph(registry)
        assert [chunk.kind for chunk in graph] == [ChunkKind.ENTRY, ChunkKind.ENTRY, ChunkKind.COMMON]
        common = graph.chunk(2)
        assert common.members == [2]
        assert common.shape is ExportShape.SINGLE
        assert common.loaded_by == [0, 1]
        assert graph.sync_dependencies() == {0: [2], 1: [2], 2: []}

    def test_same_referencers_grouped(self) -> None:
        """Values with the same referencing files share one common chunk."""
        registry = _registry(4, (0, 2), (0, 3), (1, 2), (1, 3))
        registry.add_entry("one", 0)
        registry.add_entry("two", 1)
        graph = build_chunk_graph(registry)
        assert len(graph) == 3
        common = graph.chunk(2)
        assert common.members == [2, 3]
        assert common.shape is ExportShape.ARRAY
        assert common.access(2) == 0
        assert common.access(3) == 1
        with pytest.raises(KeyError):
            common.access(0)

    def test_partial_overlap_not_grouped(self) -> None:
        """Different referencer sets get different common chunks."""
        registry = _registry(5, (0, 3), (1, 3), (1, 4), (2, 4))
        for position, name in enumerate(["a", "b", "c"]):
            registry.add_entry(name, position)
        graph = build_chunk_graph(registry)
        commons = [chunk for chunk in graph if chunk.kind is ChunkKind.COMMON]
        assert [chunk.members for chunk in commons] == [[3], [4]]

    def test_entry_hosts_its_value(self) -> None:
        """An entry value referenced by another entry stays in its own file."""
        registry = _registry(2, (1, 0))
        registry.add_entry("a", 0)
        registry.add_entry("b", 1)
        graph = build_chunk_graph(registry)
        assert len(graph) == 2
        a, b = graph.chunk(0), graph.chunk(1)
        assert a.members == [0]
        assert a.exports == [0]
        assert a.shape is ExportShape.SINGLE
        assert [load.target for load in b.loads] == [a.id]

    def test_entry_does_not_host_other_shared_values(self) -> None:
        """An entry cannot host a cycle whose other members are shared."""
        registry = _registry(3, (0, 2), (2, 0), (1, 2))
        registry.add_entry("a", 0)
        registry.add_entry("b", 1)
        graph = build_chunk_graph(registry)
        a = graph.chunk(0)
        common = graph.chunk(2)
        assert common.kind is ChunkKind.COMMON
        assert common.members == [0, 2]
        assert a.is_proxy
        assert a.proxy_of == 0
        assert a.members == []
        assert common.values == [0, 2]

    def test_same_value_two_entries(self) -> None:
        """Two entries bound to one value: the first hosts, the second re-exports."""
        registry = _registry(1)
        registry.add_entry("a", 0)
        registry.add_entry("b", 0)
        graph = build_chunk_graph(registry)
        a, b = graph.chunk(0), graph.chunk(1)
        assert a.members == [0]
        assert b.proxy_of == 0
        assert [load.target for load in b.loads] == [a.id]

    def test_sync_split_extracted(self) -> None:
        """A materialized split point gets a file of its own."""
        registry = _registry(3, (0, 1), (1, 2))
        registry.add_entry("main", 0)
        split = registry.add_split(1, "big", SplitMode.SYNC)
        graph = build_chunk_graph(registry)
        chunk = graph.chunk(graph.root_chunks[split.index])
        assert chunk.kind is ChunkKind.SPLIT
        assert chunk.name == "big"
        assert chunk.members == [1, 2]
        assert chunk.primary == 1
        assert split.state is SplitState.ASSIGNED
        assert graph.sync_dependencies()[0] == [chunk.id]

    def test_async_split_direct_target(self) -> None:
        """A split chunk whose value is the async split is loaded directly."""
        registry = _registry(4, (0, 1), (1, 2, EdgeKind.DEFERRED), (2, 3))
        registry.add_entry("main", 0)
        registry.add_split(2, "lazy", SplitMode.ASYNC)
        graph = build_chunk_graph(registry)
        lazy = graph.chunk(graph.async_chunks[2])
        assert lazy.members == [2, 3]
        assert lazy.is_async
        assert not lazy.is_proxy
        main = graph.chunk(0)
        assert [(load.target, load.kind) for load in main.loads] == [(lazy.id, EdgeKind.DEFERRED)]

    def test_async_split_proxy(self) -> None:
        """An async split inside a chunk exporting more gets a proxy file."""
        registry = _registry(4, (0, 1), (1, 2, EdgeKind.DEFERRED), (2, 3), (3, 2), (0, 3))
        registry.add_entry("main", 0)
        registry.add_split(2, "lazy", SplitMode.ASYNC)
        graph = build_chunk_graph(registry)
        proxy = graph.chunk(graph.async_chunks[2])
        assert proxy.is_proxy
        assert proxy.proxy_of == 2
        assert proxy.is_async
        host = graph.owner_of(2)
        assert host.members == [2, 3]
        assert host.values == [3, 2]
        assert [load.target for load in proxy.loads] == [host.id]

    def test_named_splits_on_one_cycle_rejected(self) -> None:
        """Two differently named split points cannot share a cycle."""
        registry = _registry(3, (0, 1), (1, 2), (2, 1))
        registry.add_entry("main", 0)
        registry.add_split(1, "x", SplitMode.SYNC)
        registry.add_split(2, "y", SplitMode.SYNC)
        with pytest.raises(ChunkCycleError) as exc_info:
            build_chunk_graph(registry)
        assert exc_info.value.diagnostic is not None
        assert exc_info.value.diagnostic.code is DiagnosticCode.UNRESOLVABLE_CYCLE
        assert exc_info.value.diagnostic.names == ("x", "y")

    def test_one_named_split_on_cycle_allowed(self) -> None:
        """A cycle with one name and an anonymous split becomes one file."""
        registry = _registry(3, (0, 1), (1, 2), (2, 1))
        registry.add_entry("main", 0)
        registry.add_split(1, "x", SplitMode.SYNC)
        registry.add_split(2, None, SplitMode.SYNC)
        graph = build_chunk_graph(registry)
        splits = [chunk for chunk in graph if chunk.kind is ChunkKind.SPLIT]
        assert len(splits) == 1
        assert splits[0].name == "x"
        assert splits[0].members == [1, 2]

    def test_sync_load_loop_rejected(self) -> None:
        """Chunks loading each other synchronously cannot be emitted."""
        graph = ChunkGraph()
        first = graph.new_chunk(ChunkKind.COMMON)
        second = graph.new_chunk(ChunkKind.COMMON)
        first.add_load(second, EdgeKind.SYNC)
        second.add_load(first, EdgeKind.SYNC)
        with pytest.raises(ChunkCycleError) as exc_info:
            verify_load_graph(graph)
        assert exc_info.value.diagnostic is not None
        assert exc_info.value.diagnostic.code is DiagnosticCode.SYNC_LOAD_CYCLE
        assert exc_info.value.diagnostic.names == ("common:0", "common:1", "common:0")

    def test_deferred_load_loop_allowed(self) -> None:
        """A loop closed by a deferred load is fine."""
        graph = ChunkGraph()
        first = graph.new_chunk(ChunkKind.ENTRY, "main")
        second = graph.new_chunk(ChunkKind.SPLIT, "lazy")
        first.add_load(second, EdgeKind.DEFERRED)
        second.add_load(first, EdgeKind.SYNC)
        verify_load_graph(graph)

    @given(graph=dependency_graphs())
    @settings(max_examples=100)
    def test_every_node_owned_once_and_loads_acyclic(self, graph: dict[str, list[str]]) -> None:
        """PROPERTY: Each reached node has one owner and sync loads never loop."""
        names = list(graph)
        index = {name: position for position, name in enumerate(names)}
        edges = [(index[source], index[target]) for source, targets in graph.items() for target in targets]
        registry = _registry(len(names), *edges)
        registry.add_entry("first", 0)
        registry.add_entry("last", len(names) - 1)
        chunk_graph = build_chunk_graph(registry)
        members = [member for chunk in chunk_graph for member in chunk.members]
        assert len(members) == len(set(members))
        assert set(members) == set(chunk_graph.owner)
        assert detect_cycles(chunk_graph.sync_dependencies()) == []


# ============================================================================
# UNIT TESTS - EMISSION PLANS
# ============================================================================


class TestEmissionPlan:
    """Tests for plan_emission through build_chunk_graph."""

    def test_tree_built_bottom_up(self) -> None:
        """Children are built before their parents."""
        registry = _registry(3, (0, 1), (1, 2))
        registry.add_entry("main", 0)
        plan = build_chunk_graph(registry).chunk(0).plan
        assert _steps(plan) == [(StepKind.BUILD, 2), (StepKind.BUILD, 1), (StepKind.BUILD, 0)]

    def test_self_loop_declared_and_patched(self) -> None:
        """A self-reference is declared with a placeholder and patched."""
        registry = _registry(1, (0, 0))
        registry.add_entry("main", 0)
        plan = build_chunk_graph(registry).chunk(0).plan
        assert _steps(plan) == [(StepKind.DECLARE, 0), (StepKind.PATCH, 0)]
        assert plan[0].pending == (0,)
        assert plan[1].edge == 0

    def test_cycle_head_waits_for_outer_children(self) -> None:
        """Values outside the cycle are built before the head is declared."""
        registry = _registry(3, (0, 2), (0, 1), (1, 0))
        registry.add_entry("main", 0)
        plan = build_chunk_graph(registry).chunk(0).plan
        assert _steps(plan) == [
            (StepKind.BUILD, 2),
            (StepKind.DECLARE, 0),
            (StepKind.BUILD, 1),
            (StepKind.PATCH, 0),
        ]
        assert plan[1].pending == (1,)
        assert plan[3].edge == 1

    def test_every_member_emitted_once(self) -> None:
        """Shared and cyclic members appear exactly once outside patches."""
        registry = _registry(4, (0, 1), (0, 2), (1, 3), (2, 3), (3, 0))
        registry.add_entry("main", 0)
        plan = build_chunk_graph(registry).chunk(0).plan
        emitted = [step.node for step in plan if step.kind is not StepKind.PATCH]
        assert sorted(emitted) == [0, 1, 2, 3]

    def test_unpatchable_entry_on_cycle(self) -> None:
        """A cycle entered at an unpatchable node declares a patchable member instead."""
        registry = _registry(3, (0, 1), (1, 2), (1, 0))
        registry.node(0).patchable = False
        registry.add_entry("main", 0)
        plan = build_chunk_graph(registry).chunk(0).plan
        assert _steps(plan) == [
            (StepKind.BUILD, 2),
            (StepKind.DECLARE, 1),
            (StepKind.BUILD, 0),
            (StepKind.PATCH, 1),
        ]
        assert plan[1].pending == (1,)
        assert plan[3].edge == 1

    def test_unpatchable_node_never_declared_when_avoidable(self) -> None:
        """Only patchable members of a cycle through unpatchable nodes get placeholders."""
        registry = _registry(4, (0, 1), (1, 2), (2, 3), (3, 1), (2, 1))
        registry.node(1).patchable = False
        registry.node(3).patchable = False
        registry.add_entry("main", 0)
        plan = build_chunk_graph(registry).chunk(0).plan
        declared = {step.node for step in plan if step.kind is StepKind.DECLARE}
        assert declared == {2}
        assert _steps(plan)[-1] == (StepKind.BUILD, 0)

    def test_loop_of_unpatchable_nodes_declared(self) -> None:
        """A loop with no patchable member is left for the renderer to reject."""
        registry = _registry(2, (0, 1), (1, 0))
        registry.node(0).patchable = False
        registry.node(1).patchable = False
        registry.add_entry("main", 0)
        plan = build_chunk_graph(registry).chunk(0).plan
        assert (StepKind.DECLARE, 0) in _steps(plan)
