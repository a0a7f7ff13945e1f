"""
Type Definitions

Pydantic models for all data structures.

Core Models:
    - Chunk - Source text unit (id + content)
    - Entity, EntityType, EntitySource, EntityMetadata - Deduplicated things
    - Relationship, RelationshipType, RelationshipEvidence, RelationshipMetadata - Edges
    - GraphMetadata, GraphStatistics - Graph descriptors

Enrichment Models (upstream boundary):
    - PreliminaryEntity, EnrichedChunk, CacheStatistics

Result Models:
    - BuildStatus, GraphExtractionStatistics, GraphBuildResult
"""

from chunkgraph.types.chunks import Chunk
from chunkgraph.types.enrichment import CacheStatistics, EnrichedChunk, PreliminaryEntity
from chunkgraph.types.entities import Entity, EntityMetadata, EntitySource, EntityType
from chunkgraph.types.graph import GraphMetadata, GraphStatistics
from chunkgraph.types.relationships import (
    MIN_DISTANCE_PROPERTY,
    Relationship,
    RelationshipEvidence,
    RelationshipMetadata,
    RelationshipType,
)
from chunkgraph.types.results import BuildStatus, GraphBuildResult, GraphExtractionStatistics

__all__ = [
    # Core Models
    "Chunk",
    "Entity",
    "EntityMetadata",
    "EntitySource",
    "EntityType",
    "Relationship",
    "RelationshipEvidence",
    "RelationshipMetadata",
    "RelationshipType",
    "MIN_DISTANCE_PROPERTY",
    "GraphMetadata",
    "GraphStatistics",
    # Enrichment Models
    "PreliminaryEntity",
    "EnrichedChunk",
    "CacheStatistics",
    # Result Models
    "BuildStatus",
    "GraphExtractionStatistics",
    "GraphBuildResult",
]
