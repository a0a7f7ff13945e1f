"""
Relationship Types

Relationships are typed, weighted, evidenced edges between two entity ids.

Models:
    - RelationshipType: Closed classification enum
    - RelationshipEvidence: One supporting observation
    - RelationshipMetadata: Provenance of the extraction
    - Relationship: The edge itself, with merge semantics

Weight vs confidence:
    ``weight`` is accumulated strength and may exceed 1.0 until a batch is
    consolidated. ``confidence`` is a probability-like score in [0, 1].
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

# Property recording the closest observed co-occurrence distance
MIN_DISTANCE_PROPERTY = "MinDistance"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RelationshipType(str, Enum):
    """
    Relationship classification types.

    Co-occurrence extraction only produces MENTIONS, COOCCURS_WITH and
    RELATED_TO; the semantic types are reserved for typed extractors.
    """

    UNKNOWN = "unknown"
    MENTIONS = "mentions"
    RELATED_TO = "related_to"
    PART_OF = "part_of"
    IS_A = "is_a"
    HAS = "has"
    USES = "uses"
    CREATES = "creates"
    WORKS_FOR = "works_for"
    LOCATED_IN = "located_in"
    OWNS = "owns"
    MANAGES = "manages"
    REPORTS_TO = "reports_to"
    COLLABORATES_WITH = "collaborates_with"
    COMPETES_WITH = "competes_with"
    DEPENDS_ON = "depends_on"
    CAUSES = "causes"
    PREVENTS = "prevents"
    INFLUENCES = "influences"
    SUPPORTS = "supports"
    OPPOSES = "opposes"
    SIMILAR_TO = "similar_to"
    DIFFERENT_FROM = "different_from"
    EQUIVALENT_TO = "equivalent_to"
    PRECEDES = "precedes"
    FOLLOWS = "follows"
    COOCCURS_WITH = "cooccurs_with"
    AUTHOR_OF = "author_of"
    MEMBER_OF = "member_of"
    FOUNDED = "founded"
    ACQUIRED = "acquired"
    MERGED_WITH = "merged_with"
    SUBSIDIARY_OF = "subsidiary_of"
    PARENT_OF = "parent_of"
    COMPETITOR_OF = "competitor_of"
    SUPPLIER_OF = "supplier_of"
    CUSTOMER_OF = "customer_of"
    PARTNER_WITH = "partner_with"
    DERIVED_FROM = "derived_from"
    IMPLEMENTS = "implements"
    EXTENDS = "extends"


class RelationshipEvidence(BaseModel):
    """
    A piece of text supporting a relationship.

    Attributes:
        chunk_id: Chunk the evidence came from
        context: Text snippet containing both mentions
        confidence: Confidence of this single observation
        pattern: Optional tag of the rule or pattern that fired
        distance: Optional character distance between the mentions
    """

    chunk_id: str
    context: str = ""
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=_utcnow)
    pattern: str | None = None
    distance: int | None = None


class RelationshipMetadata(BaseModel):
    """Provenance of an extracted relationship."""

    extracted_at: datetime = Field(default_factory=_utcnow)
    extractor_name: str = ""
    extractor_version: str = ""
    model_name: str | None = None
    manually_verified: bool | None = None
    last_updated_at: datetime | None = None
    notes: str | None = None


class Relationship(BaseModel):
    """
    A relationship between two entities.

    Attributes:
        id: Opaque identifier (immutable)
        relationship_type: Classification
        source_id: Id of the source entity
        target_id: Id of the target entity
        weight: Accumulated, non-negative strength
        confidence: Confidence in [0, 1]
        bidirectional: True if the edge has no inherent direction
        evidence: Supporting observations, unique per (chunk_id, context)
        properties: Free-form attributes (e.g. MinDistance)
        metadata: Extraction provenance
    """

    id: str = Field(default_factory=lambda: str(uuid4()), frozen=True)
    relationship_type: RelationshipType
    source_id: str
    target_id: str
    weight: float = Field(default=1.0, ge=0.0)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    bidirectional: bool = False
    evidence: list[RelationshipEvidence] = Field(default_factory=list)
    properties: dict[str, Any] = Field(default_factory=dict)
    metadata: RelationshipMetadata = Field(default_factory=RelationshipMetadata)

    def add_evidence(
        self,
        chunk_id: str,
        context: str,
        confidence: float = 1.0,
        *,
        pattern: str | None = None,
        distance: int | None = None,
    ) -> bool:
        """
        Attach supporting evidence.

        Returns:
            False if evidence with the same (chunk_id, context) already exists
        """
        return self._append_evidence(
            RelationshipEvidence(
                chunk_id=chunk_id,
                context=context,
                confidence=confidence,
                pattern=pattern,
                distance=distance,
            )
        )

    def _append_evidence(self, evidence: RelationshipEvidence) -> bool:
        for existing in self.evidence:
            if existing.chunk_id == evidence.chunk_id and existing.context == evidence.context:
                return False
        self.evidence.append(evidence)
        return True

    def consolidation_key(self) -> tuple[str, str, str]:
        """
        Identity of the edge for consolidation.

        Bidirectional edges ignore endpoint order; directed edges keep it.
        """
        if self.bidirectional:
            first, second = sorted((self.source_id, self.target_id))
        else:
            first, second = self.source_id, self.target_id
        return (self.relationship_type.value, first, second)

    def is_equivalent_to(self, other: Relationship, ignore_direction: bool = False) -> bool:
        """True if ``other`` connects the same endpoints with the same type."""
        if other is None or other.relationship_type != self.relationship_type:
            return False
        if self.source_id == other.source_id and self.target_id == other.target_id:
            return True
        return (
            ignore_direction
            and self.source_id == other.target_id
            and self.target_id == other.source_id
        )

    def merge(self, other: Relationship) -> None:
        """
        Fold another observation of the same edge into this one.

        Weights add, confidence takes the max, evidence is unioned by
        (chunk_id, context). MinDistance keeps the smaller value; other
        properties keep the first value written.
        """
        if other is None or other.id == self.id:
            return

        self.weight += other.weight
        self.confidence = max(self.confidence, other.confidence)

        for evidence in other.evidence:
            self._append_evidence(evidence.model_copy())

        for key, value in other.properties.items():
            if key == MIN_DISTANCE_PROPERTY and key in self.properties:
                self.properties[key] = min(self.properties[key], value)
            else:
                self.properties.setdefault(key, value)

    def __str__(self) -> str:
        arrow = "<-->" if self.bidirectional else "-->"
        return (
            f"{self.source_id} {arrow}[{self.relationship_type.value}] {self.target_id} "
            f"(weight: {self.weight:.2f}, confidence: {self.confidence:.2f})"
        )
