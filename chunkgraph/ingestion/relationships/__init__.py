"""
Relationship Extraction and Consolidation

Modules:
    base: RelationshipExtractor interface
    cooccurrence: Proximity-based extractor (mentions within a chunk)
    consolidation: Merge repeated edges, rescale weights to max 1.0
"""

from chunkgraph.ingestion.relationships.base import RelationshipExtractor
from chunkgraph.ingestion.relationships.consolidation import (
    consolidate_relationships,
    normalize_weights,
)
from chunkgraph.ingestion.relationships.cooccurrence import CooccurrenceExtractor

__all__ = [
    "CooccurrenceExtractor",
    "RelationshipExtractor",
    "consolidate_relationships",
    "normalize_weights",
]
