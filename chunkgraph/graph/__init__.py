"""
Knowledge Graph Container

Modules:
    knowledge_graph: Graph with lazily rebuilt indexes, statistics, validation
"""

from chunkgraph.graph.knowledge_graph import Graph

__all__ = ["Graph"]
