"""
chunkgraph - Knowledge Graph Consolidation for Chunked Documents

Turns repeated, noisy entity mentions from parsed document chunks into a
deduplicated knowledge graph: entities with stable identity and
co-occurrence relationships with confidence and evidence.

Example:
    >>> from chunkgraph import GraphBuilder, GraphConfig
    >>> builder = GraphBuilder(GraphConfig(similarity_threshold=0.85))
    >>> result = builder.build(entities, chunks)
    >>> graph = result.graph
    >>> graph.get_entities_by_name("Microsoft Corp.", EntityType.ORGANIZATION)

Main Classes:
    GraphBuilder: Runs resolution, extraction, consolidation and assembly
    Graph: Entity/relationship container with lazy indexes
    GraphConfig: Configuration management
    InMemoryEnrichmentCache: TTL cache for upstream enrichment output
"""

__version__ = "0.1.0"

# Public API - lazy imports keep `import chunkgraph` light
def __getattr__(name: str):
    """Lazy import public API components."""

    if name == "GraphBuilder":
        from chunkgraph.ingestion.builder import GraphBuilder
        return GraphBuilder

    if name == "Graph":
        from chunkgraph.graph import Graph
        return Graph

    if name == "GraphConfig":
        from chunkgraph.config.settings import GraphConfig
        return GraphConfig

    if name in ("EntityNormalizer", "EntityResolver"):
        from chunkgraph.ingestion import resolution
        return getattr(resolution, name)

    if name in ("EntityExtractor", "KeywordExtractor"):
        from chunkgraph.ingestion import extraction
        return getattr(extraction, name)

    if name in ("CooccurrenceExtractor", "consolidate_relationships"):
        from chunkgraph.ingestion import relationships
        return getattr(relationships, name)

    if name in (
        "InMemoryEnrichmentCache",
        "ChunkEnricher",
        "enrich_chunks",
        "entities_from_enrichment",
    ):
        from chunkgraph.ingestion import enrichment
        return getattr(enrichment, name)

    if name == "CancellationToken":
        from chunkgraph.utils.cancellation import CancellationToken
        return CancellationToken

    # Types
    if name in (
        "Chunk",
        "Entity",
        "EntityType",
        "Relationship",
        "RelationshipType",
        "GraphStatistics",
        "GraphBuildResult",
        "BuildStatus",
    ):
        from chunkgraph import types
        return getattr(types, name)

    raise AttributeError(f"module 'chunkgraph' has no attribute {name!r}")


__all__ = [
    # Main classes
    "GraphBuilder",
    "Graph",
    "GraphConfig",

    # Pipeline components
    "EntityNormalizer",
    "EntityResolver",
    "EntityExtractor",
    "KeywordExtractor",
    "CooccurrenceExtractor",
    "consolidate_relationships",
    "InMemoryEnrichmentCache",
    "ChunkEnricher",
    "enrich_chunks",
    "entities_from_enrichment",
    "CancellationToken",

    # Types
    "Chunk",
    "Entity",
    "EntityType",
    "Relationship",
    "RelationshipType",
    "GraphStatistics",
    "GraphBuildResult",
    "BuildStatus",

    # Version
    "__version__",
]
