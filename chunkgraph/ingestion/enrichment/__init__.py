"""
Enrichment Boundary

Modules:
    cache: Thread-safe TTL cache of per-chunk enrichment output
    conversion: Bounded fan-out over a ChunkEnricher, and conversion of
        enrichment candidates into raw Entity records
"""

from chunkgraph.ingestion.enrichment.cache import CacheBackend, InMemoryEnrichmentCache
from chunkgraph.ingestion.enrichment.conversion import (
    ChunkEnricher,
    enrich_chunks,
    entities_from_enrichment,
    map_type_hint,
)

__all__ = [
    "CacheBackend",
    "ChunkEnricher",
    "InMemoryEnrichmentCache",
    "enrich_chunks",
    "entities_from_enrichment",
    "map_type_hint",
]
