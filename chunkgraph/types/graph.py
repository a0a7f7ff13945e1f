"""
Graph Types

Descriptive records attached to a Graph.

Models:
    - GraphMetadata: Who/when/what of a graph
    - GraphStatistics: Point-in-time snapshot computed by Graph.compute_statistics()
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, computed_field

from chunkgraph.types.entities import EntityType
from chunkgraph.types.relationships import RelationshipType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GraphMetadata(BaseModel):
    """Descriptive metadata for a graph."""

    created_at: datetime = Field(default_factory=_utcnow)
    last_updated_at: datetime | None = None
    version: str = "1.0"
    creator: str | None = None
    description: str | None = None
    source_documents: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class GraphStatistics(BaseModel):
    """
    Aggregate statistics over a graph.

    A snapshot: it is not refreshed when the graph changes.

    Attributes:
        total_entities: Number of entities
        total_relationships: Number of relationships
        entity_type_distribution: Entity count per type
        relationship_type_distribution: Relationship count per type
        average_entity_confidence: Mean entity confidence (0.0 when empty)
        average_relationship_confidence: Mean relationship confidence
        average_entity_frequency: Mean entity frequency
        total_entity_sources: Sum of source observations
        total_relationship_evidence: Sum of evidence entries
    """

    total_entities: int = 0
    total_relationships: int = 0
    entity_type_distribution: dict[EntityType, int] = Field(default_factory=dict)
    relationship_type_distribution: dict[RelationshipType, int] = Field(default_factory=dict)
    average_entity_confidence: float = 0.0
    average_relationship_confidence: float = 0.0
    average_entity_frequency: float = 0.0
    total_entity_sources: int = 0
    total_relationship_evidence: int = 0
    computed_at: datetime = Field(default_factory=_utcnow)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def average_degree(self) -> float:
        """Relationships per entity."""
        if self.total_entities == 0:
            return 0.0
        return self.total_relationships / self.total_entities

    @computed_field  # type: ignore[prop-decorator]
    @property
    def density(self) -> float:
        """Relationships over possible directed edges, 0.0 below two entities."""
        if self.total_entities < 2:
            return 0.0
        possible = self.total_entities * (self.total_entities - 1)
        return self.total_relationships / possible

    def __str__(self) -> str:
        return (
            f"Entities: {self.total_entities}, Relationships: {self.total_relationships}, "
            f"Avg Confidence: {self.average_entity_confidence:.2f}, Density: {self.density:.4f}"
        )
