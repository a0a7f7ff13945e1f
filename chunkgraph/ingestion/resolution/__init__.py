"""
Entity Normalization and Resolution

Modules:
    normalizer: Type-aware name canonicalization and alias generation
    entity_resolver: In-batch deduplication and merging

In-Batch Resolution:
    1. Partition entities by type
    2. Greedy clustering on normalized names, aliases and edit distance
    3. Merge each cluster into its highest-confidence member

Key Principle: Different types never merge
    "Apple" (organization) != "apple" (keyword)
"""

from chunkgraph.ingestion.resolution.entity_resolver import (
    EntityResolver,
    edit_distance,
    name_similarity,
)
from chunkgraph.ingestion.resolution.normalizer import EntityNormalizer, normalize_name

__all__ = [
    "EntityNormalizer",
    "EntityResolver",
    "edit_distance",
    "name_similarity",
    "normalize_name",
]
