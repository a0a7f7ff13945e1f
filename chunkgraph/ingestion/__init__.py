"""
Consolidation Pipeline

Turns a finished batch of chunk-level candidate entities into a
deduplicated knowledge graph.

Stages:
    Extraction:
        - Optional EntityExtractors (TF-IDF keywords) add candidates

    Enrichment boundary (upstream):
        - Bounded, cache-first fan-out over a ChunkEnricher
        - Candidate (name, type-hint, confidence) -> raw Entity

    Resolution:
        - Type-aware normalization and alias generation
        - Greedy in-batch clustering, merge into highest-confidence member

    Relationships:
        - Co-occurrence within a bounded character distance
        - Consolidation of repeated edges, weight rescaling

    Assembly:
        - GraphBuilder populates, indexes, measures and validates a Graph

Modules:
    builder: GraphBuilder orchestrator
    enrichment/: Enrichment cache and conversion
    extraction/: Entity extractors
    resolution/: Normalizer and resolver
    relationships/: Extractors and consolidation
"""

from chunkgraph.ingestion.enrichment import (
    InMemoryEnrichmentCache,
    enrich_chunks,
    entities_from_enrichment,
)
from chunkgraph.ingestion.extraction import EntityExtractor, KeywordExtractor
from chunkgraph.ingestion.relationships import CooccurrenceExtractor, consolidate_relationships
from chunkgraph.ingestion.resolution import EntityNormalizer, EntityResolver


def __getattr__(name: str):
    # builder imports chunkgraph.graph, which imports the normalizer from here
    if name == "GraphBuilder":
        from chunkgraph.ingestion.builder import GraphBuilder
        return GraphBuilder

    raise AttributeError(f"module 'chunkgraph.ingestion' has no attribute {name!r}")


__all__ = [
    "CooccurrenceExtractor",
    "EntityExtractor",
    "EntityNormalizer",
    "EntityResolver",
    "GraphBuilder",
    "InMemoryEnrichmentCache",
    "KeywordExtractor",
    "consolidate_relationships",
    "enrich_chunks",
    "entities_from_enrichment",
]
