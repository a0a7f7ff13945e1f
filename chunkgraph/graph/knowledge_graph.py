"""
Graph - Entity/Relationship Container

Owns resolved entities and consolidated relationships and answers lookups.

Indexes:
    - id -> Entity
    - normalized name (lowercased) -> [Entity]
    - source entity id -> [outgoing Relationship]

Indexes are a cached view: every mutator drops them and the next query
rebuilds them, so callers never observe stale results.

Example:
    >>> graph = Graph(name="quarterly_reports")
    >>> graph.add_entities(resolved)
    >>> graph.add_relationships(consolidated)
    >>> graph.get_entities_by_name("Microsoft Corp.", EntityType.ORGANIZATION)
    >>> stats = graph.compute_statistics()

Not thread-safe: use one Graph per writer.
"""

from __future__ import annotations

import logging
from collections import Counter
from uuid import uuid4

import numpy as np
from pydantic import BaseModel, Field, PrivateAttr

from chunkgraph.ingestion.resolution.normalizer import normalize_name
from chunkgraph.types import (
    Entity,
    EntityType,
    GraphMetadata,
    GraphStatistics,
    Relationship,
    RelationshipType,
)

logger = logging.getLogger(__name__)


class Graph(BaseModel):
    """
    A knowledge graph of entities and relationships.

    Attributes:
        id: Opaque identifier (immutable)
        name: Human-readable name
        entities: Owned entities
        relationships: Owned relationships
        metadata: Descriptive metadata
        statistics: Last snapshot from compute_statistics(), if any

    Mutate through the add_* methods and clear(). Indexes are also rebuilt
    when the list sizes change under them, but an in-place edit of an
    existing element is not detected.
    """

    id: str = Field(default_factory=lambda: str(uuid4()), frozen=True)
    name: str = "document_graph"
    entities: list[Entity] = Field(default_factory=list)
    relationships: list[Relationship] = Field(default_factory=list)
    metadata: GraphMetadata = Field(default_factory=GraphMetadata)
    statistics: GraphStatistics | None = None

    _entity_index: dict[str, Entity] | None = PrivateAttr(default=None)
    _name_index: dict[str, list[Entity]] | None = PrivateAttr(default=None)
    _outgoing_index: dict[str, list[Relationship]] | None = PrivateAttr(default=None)
    _indexed_sizes: tuple[int, int] = PrivateAttr(default=(0, 0))

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add_entity(self, entity: Entity) -> None:
        """Append an entity and invalidate indexes."""
        self.entities.append(entity)
        self._invalidate_indexes()

    def add_entities(self, entities: list[Entity]) -> None:
        """Append several entities."""
        self.entities.extend(entities)
        self._invalidate_indexes()

    def add_relationship(self, relationship: Relationship) -> None:
        """Append a relationship and invalidate indexes."""
        self.relationships.append(relationship)
        self._invalidate_indexes()

    def add_relationships(self, relationships: list[Relationship]) -> None:
        """Append several relationships."""
        self.relationships.extend(relationships)
        self._invalidate_indexes()

    def clear(self) -> None:
        """Remove all entities and relationships."""
        self.entities.clear()
        self.relationships.clear()
        self.statistics = None
        self._invalidate_indexes()

    def _invalidate_indexes(self) -> None:
        self._entity_index = None
        self._name_index = None
        self._outgoing_index = None

    # -------------------------------------------------------------------------
    # Indexes
    # -------------------------------------------------------------------------

    @property
    def indexes_built(self) -> bool:
        """True if the lookup indexes are current."""
        return self._entity_index is not None and self._indexed_sizes == (
            len(self.entities),
            len(self.relationships),
        )

    def build_indexes(self) -> None:
        """
        Build all lookup indexes.

        Called automatically by queries when indexes are stale. With
        duplicate ids the first entity wins.
        """
        entity_index: dict[str, Entity] = {}
        name_index: dict[str, list[Entity]] = {}
        outgoing_index: dict[str, list[Relationship]] = {}

        for entity in self.entities:
            entity_index.setdefault(entity.id, entity)
            key = entity.normalized_name.lower()
            if key:
                name_index.setdefault(key, []).append(entity)

        for relationship in self.relationships:
            outgoing_index.setdefault(relationship.source_id, []).append(relationship)

        self._entity_index = entity_index
        self._name_index = name_index
        self._outgoing_index = outgoing_index
        self._indexed_sizes = (len(self.entities), len(self.relationships))

        logger.debug(
            f"Indexed graph '{self.name}': {len(entity_index)} entities, "
            f"{len(name_index)} names, {len(outgoing_index)} sources"
        )

    def _ensure_indexes(self) -> None:
        if not self.indexes_built or self._name_index is None or self._outgoing_index is None:
            self.build_indexes()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_entity(self, entity_id: str) -> Entity | None:
        """Look up an entity by id."""
        self._ensure_indexes()
        assert self._entity_index is not None
        return self._entity_index.get(entity_id)

    def get_entities_by_name(
        self,
        name: str,
        entity_type: EntityType | None = None,
    ) -> list[Entity]:
        """
        Find entities whose normalized name matches ``name``.

        Args:
            name: Surface name; normalized before lookup
            entity_type: Normalize with this type's rules and only return
                entities of this type. Without it, generic rules apply.

        Returns:
            Matching entities (empty list for blank names)
        """
        key = normalize_name(name, entity_type or EntityType.UNKNOWN).lower()
        if not key:
            return []

        self._ensure_indexes()
        assert self._name_index is not None
        matches = self._name_index.get(key, [])
        if entity_type is not None:
            matches = [e for e in matches if e.entity_type == entity_type]
        return list(matches)

    def get_entities_by_type(self, entity_type: EntityType) -> list[Entity]:
        """All entities of one type."""
        return [e for e in self.entities if e.entity_type == entity_type]

    def get_relationships(
        self,
        entity_id: str,
        include_incoming: bool = True,
    ) -> list[Relationship]:
        """
        Relationships touching an entity.

        Outgoing relationships come from the index, incoming ones from a
        scan. A self-loop is returned once.
        """
        self._ensure_indexes()
        assert self._outgoing_index is not None
        result = list(self._outgoing_index.get(entity_id, []))

        if include_incoming:
            result.extend(
                r
                for r in self.relationships
                if r.target_id == entity_id and r.source_id != entity_id
            )
        return result

    def get_relationships_by_type(self, relationship_type: RelationshipType) -> list[Relationship]:
        """All relationships of one type."""
        return [r for r in self.relationships if r.relationship_type == relationship_type]

    def get_related_entities(self, entity_id: str) -> list[Entity]:
        """Entities on the other end of this entity's relationships."""
        related: list[Entity] = []
        seen: set[str] = set()
        for relationship in self.get_relationships(entity_id):
            other_id = (
                relationship.target_id
                if relationship.source_id == entity_id
                else relationship.source_id
            )
            if other_id in seen or other_id == entity_id:
                continue
            seen.add(other_id)
            other = self.get_entity(other_id)
            if other is not None:
                related.append(other)
        return related

    # -------------------------------------------------------------------------
    # Statistics & Validation
    # -------------------------------------------------------------------------

    def compute_statistics(self) -> GraphStatistics:
        """
        Compute and store a statistics snapshot.

        The snapshot is not refreshed by later mutations.
        """
        entity_confidences = np.array([e.confidence for e in self.entities], dtype=float)
        entity_frequencies = np.array([e.frequency for e in self.entities], dtype=float)
        relationship_confidences = np.array(
            [r.confidence for r in self.relationships], dtype=float
        )

        statistics = GraphStatistics(
            total_entities=len(self.entities),
            total_relationships=len(self.relationships),
            entity_type_distribution=dict(Counter(e.entity_type for e in self.entities)),
            relationship_type_distribution=dict(
                Counter(r.relationship_type for r in self.relationships)
            ),
            average_entity_confidence=_mean(entity_confidences),
            average_relationship_confidence=_mean(relationship_confidences),
            average_entity_frequency=_mean(entity_frequencies),
            total_entity_sources=sum(len(e.sources) for e in self.entities),
            total_relationship_evidence=sum(len(r.evidence) for r in self.relationships),
        )
        self.statistics = statistics
        return statistics

    def validate(self) -> list[str]:
        """
        Check structural integrity.

        Returns:
            Every violation found (duplicate entity ids, duplicate
            relationship ids, relationships with missing endpoints);
            empty for a well-formed graph
        """
        errors: list[str] = []

        entity_ids: set[str] = set()
        for entity in self.entities:
            if entity.id in entity_ids:
                errors.append(f"Duplicate entity id: {entity.id}")
            entity_ids.add(entity.id)

        relationship_ids: set[str] = set()
        for relationship in self.relationships:
            if relationship.id in relationship_ids:
                errors.append(f"Duplicate relationship id: {relationship.id}")
            relationship_ids.add(relationship.id)

            if relationship.source_id not in entity_ids:
                errors.append(
                    f"Relationship {relationship.id} references missing source entity "
                    f"{relationship.source_id}"
                )
            if relationship.target_id not in entity_ids:
                errors.append(
                    f"Relationship {relationship.id} references missing target entity "
                    f"{relationship.target_id}"
                )

        if errors:
            logger.warning(f"Graph '{self.name}' has {len(errors)} validation errors")
        return errors

    def __str__(self) -> str:
        return (
            f"Graph '{self.name}': {len(self.entities)} entities, "
            f"{len(self.relationships)} relationships"
        )


def _mean(values: np.ndarray) -> float:
    return float(values.mean()) if values.size else 0.0
