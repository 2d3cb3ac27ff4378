"""Chunking core: partitions a value graph into output files.

Consumes a NodeRegistry (nodes with opaque content and ordered edges, plus
entry and split roots) and produces a ChunkGraph: which file emits each
node, which files load which, what each file exports, and the emission plan
that resolves cycles inside a file. Naming renders each chunk through a
ChunkRenderer and turns the result into filenames.

Python 3.13+.
"""

from .assignor import assign_chunks
from .cycles import Condensation, condense
from .model import Chunk, ChunkGraph, ChunkRenderer, Load, ManifestEntry, Resolver, Step
from .naming import content_hash, name_chunks, output_order
from .reachability import Reachability, analyze_reachability
from .registry import Edge, Node, NodeRegistry, Root

__all__ = [
    "Chunk",
    "ChunkGraph",
    "ChunkRenderer",
    "Condensation",
    "Edge",
    "Load",
    "ManifestEntry",
    "Node",
    "NodeRegistry",
    "Reachability",
    "Resolver",
    "Root",
    "Step",
    "analyze_reachability",
    "assign_chunks",
    "build_chunk_graph",
    "condense",
    "content_hash",
    "name_chunks",
    "output_order",
]


def build_chunk_graph(registry: NodeRegistry) -> ChunkGraph:
    """Run reachability, condensation and assignment over a populated registry.

    Args:
        registry: Registry with all entries and split points added

    Returns:
        Chunk graph ready for naming

    Raises:
        ChunkCycleError: On an unresolvable synchronous cycle
    """
    reachability = analyze_reachability(registry)
    condensation = condense(registry, reachability)
    return assign_chunks(registry, reachability, condensation)
