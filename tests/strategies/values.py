"""Hypothesis strategies for live value graphs.

Generates graphs of dicts, lists and namespaces that share references and
form cycles, together with the entry mapping and split points handed to
serialize_entries().

Event-Emitting Strategies (HypoFuzz-Optimized):
    - primitive_values: Emits ``strategy=primitive_{type}``
    - value_graphs: Emits ``strategy=values_{shape}``
    - split_plans: Emits ``strategy=splits_{count}``

Python 3.13+.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import SimpleNamespace

from hypothesis import event
from hypothesis import strategies as st
from hypothesis.strategies import composite

from splitpack import SplitContext

__all__ = [
    "ValueGraph",
    "primitive_values",
    "split_plans",
    "value_graphs",
]

_KEYS = st.one_of(
    st.sampled_from(["a", "b", "c", "self", "with space", "class"]),
    st.integers(min_value=-3, max_value=3),
)
_ATTRIBUTES = st.sampled_from(["x", "y", "z", "items", "parent"])


@composite
def primitive_values(draw: st.DrawFn) -> object:
    """Generate primitives that compare equal to their own literal.

    Events emitted:
        - ``strategy=primitive_{type}``: Primitive type.
    """
    value = draw(
        st.one_of(
            st.none(),
            st.booleans(),
            st.integers(min_value=-(2**70), max_value=2**70),
            st.floats(allow_nan=False),
            st.text(max_size=8),
            st.binary(max_size=4),
        )
    )
    event(f"strategy=primitive_{type(value).__name__}")
    return value


@dataclass(frozen=True)
class ValueGraph:
    """A generated value graph.

    Attributes:
        containers: Every container in creation order
        entries: Entry name -> value (a container or a primitive)
    """

    containers: tuple[object, ...]
    entries: dict[str, object]


def _attach(container: object, key: object, child: object) -> None:
    match container:
        case dict():
            container[key] = child
        case list():
            container.append(child)
        case SimpleNamespace():
            setattr(container, str(key), child)


@composite
def value_graphs(
    draw: st.DrawFn,
    *,
    max_containers: int = 8,
    max_entries: int = 3,
) -> ValueGraph:
    """Generate containers wired into a graph, plus entries bound to them.

    Any container may reference any other, so graphs include shared
    subtrees, self-references and longer cycles.

    Args:
        draw: Hypothesis draw function.
        max_containers: Maximum number of containers.
        max_entries: Maximum number of entries.

    Events emitted:
        - ``strategy=values_{shape}``: ``tree``, ``shared`` or ``cyclic``.
    """
    kinds = draw(
        st.lists(st.sampled_from(["dict", "list", "namespace"]), min_size=1, max_size=max_containers)
    )
    containers: list[object] = []
    for kind in kinds:
        match kind:
            case "dict":
                containers.append({})
            case "list":
                containers.append([])
            case _:
                containers.append(SimpleNamespace())

    n = len(containers)
    referenced: list[int] = []
    cyclic = False
    for position, container in enumerate(containers):
        slot_count = draw(st.integers(min_value=0, max_value=4))
        for _ in range(slot_count):
            key = draw(_ATTRIBUTES) if isinstance(container, SimpleNamespace) else draw(_KEYS)
            if draw(st.booleans()):
                target = draw(st.integers(min_value=0, max_value=n - 1))
                cyclic = cyclic or target <= position
                referenced.append(target)
                _attach(container, key, containers[target])
            else:
                _attach(container, key, draw(primitive_values()))

    if cyclic:
        event("strategy=values_cyclic")
    elif len(referenced) != len(set(referenced)):
        event("strategy=values_shared")
    else:
        event("strategy=values_tree")

    entry_count = draw(st.integers(min_value=1, max_value=max_entries))
    entries: dict[str, object] = {}
    for number in range(entry_count):
        if draw(st.integers(min_value=0, max_value=9)) == 0:
            entries[f"entry{number}"] = draw(primitive_values())
        else:
            entries[f"entry{number}"] = containers[draw(st.integers(min_value=0, max_value=n - 1))]

    return ValueGraph(containers=tuple(containers), entries=entries)


@composite
def split_plans(draw: st.DrawFn, graph: ValueGraph) -> SplitContext:
    """Mark a random subset of a graph's containers as anonymous sync splits.

    Anonymous split points never conflict on a shared cycle, so every plan
    serializes.

    Events emitted:
        - ``strategy=splits_{count}``: ``none``, ``one`` or ``many``.
    """
    context = SplitContext()
    picks = draw(
        st.lists(st.integers(min_value=0, max_value=len(graph.containers) - 1), max_size=3, unique=True)
    )
    for pick in picks:
        context.split(graph.containers[pick])
    if not picks:
        event("strategy=splits_none")
    elif len(picks) == 1:
        event("strategy=splits_one")
    else:
        event("strategy=splits_many")
    return context
