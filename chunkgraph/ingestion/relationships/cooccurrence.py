"""
Co-occurrence Relationship Extraction

Infers an undirected relationship between two entities whenever they are
mentioned close to each other in the same chunk.

Algorithm:
    1. Group each entity's sources by chunk (only chunks that were supplied)
    2. For every unordered entity pair and every chunk they share, compute
       the distance matrix between mention midpoints
    3. Keep chunks whose closest pair of mentions is within max_distance;
       each one contributes a piece of evidence
    4. confidence = max(0, 1 - min_distance / max_distance) over all chunks
    5. Drop candidates below min_confidence

At most one relationship is produced per unordered pair. Endpoints are
ordered by entity id, so swapping the input order changes nothing but the
generated relationship ids.

Example:
    >>> extractor = CooccurrenceExtractor(max_distance=500)
    >>> relationships = extractor.extract_relationships(entities, chunks)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from scipy.spatial.distance import cdist

from chunkgraph.exceptions import InvalidArgumentError
from chunkgraph.ingestion.relationships.base import RelationshipExtractor
from chunkgraph.types import (
    MIN_DISTANCE_PROPERTY,
    Chunk,
    Entity,
    EntitySource,
    Relationship,
    RelationshipMetadata,
    RelationshipType,
)
from chunkgraph.utils.cancellation import CancellationToken, check_cancelled
from chunkgraph.utils.text import context_snippet

logger = logging.getLogger(__name__)

EVIDENCE_PATTERN = "cooccurrence"


@dataclass
class _ChunkMatch:
    """Closest pair of mentions of two entities within one chunk."""

    chunk_id: str
    distance: float
    first: EntitySource
    second: EntitySource


def _covering_span(first: EntitySource, second: EntitySource) -> tuple[int, int]:
    """Offsets spanning both mentions."""
    return (
        min(first.position, second.position),
        max(first.position + first.length, second.position + second.length),
    )


class CooccurrenceExtractor(RelationshipExtractor):
    """
    Proximity-based relationship extractor.

    Usage:
        extractor = CooccurrenceExtractor(max_distance=500, min_confidence=0.3)
        relationships = extractor.extract_relationships(entities, chunks)
    """

    def __init__(
        self,
        max_distance: int = 500,
        min_confidence: float = 0.3,
        context_window: int = 100,
        relationship_type: RelationshipType = RelationshipType.MENTIONS,
    ):
        if max_distance <= 0:
            raise InvalidArgumentError(f"max_distance must be positive, got {max_distance}")
        if not 0.0 <= min_confidence <= 1.0:
            raise InvalidArgumentError(
                f"min_confidence must be between 0.0 and 1.0, got {min_confidence}"
            )
        if relationship_type not in self.supported_relationship_types:
            raise InvalidArgumentError(
                f"Co-occurrence cannot produce {relationship_type.value} relationships"
            )
        self.max_distance = max_distance
        self.min_confidence = min_confidence
        self.context_window = context_window
        self.relationship_type = relationship_type

    @property
    def name(self) -> str:
        return "CooccurrenceExtractor"

    @property
    def version(self) -> str:
        return "1.0"

    @property
    def supported_relationship_types(self) -> tuple[RelationshipType, ...]:
        return (
            RelationshipType.MENTIONS,
            RelationshipType.COOCCURS_WITH,
            RelationshipType.RELATED_TO,
        )

    def extract_relationships(
        self,
        entities: list[Entity],
        chunks: list[Chunk],
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[Relationship]:
        """
        Extract co-occurrence relationships.

        Args:
            entities: Resolved entities with source observations
            chunks: Chunks the sources refer to
            cancel_token: Checked between entity pairs

        Returns:
            One relationship per qualifying unordered entity pair
        """
        if len(entities) < 2 or not chunks:
            return []

        chunk_order = {chunk.id: i for i, chunk in enumerate(chunks)}
        chunk_text = {chunk.id: chunk.content for chunk in chunks}
        mentions = [self._group_sources(entity, chunk_order) for entity in entities]

        relationships: list[Relationship] = []
        for i in range(len(entities)):
            for j in range(i + 1, len(entities)):
                check_cancelled(cancel_token, "Relationship extraction")

                if entities[i].id == entities[j].id:
                    continue
                shared = mentions[i].keys() & mentions[j].keys()
                if not shared:
                    continue

                relationship = self._relate(
                    entities[i],
                    mentions[i],
                    entities[j],
                    mentions[j],
                    sorted(shared, key=chunk_order.__getitem__),
                    chunk_text,
                )
                if relationship is not None:
                    relationships.append(relationship)

        logger.debug(
            f"Co-occurrence: {len(relationships)} relationships from "
            f"{len(entities)} entities over {len(chunks)} chunks"
        )
        return relationships

    def _group_sources(
        self,
        entity: Entity,
        chunk_order: dict[str, int],
    ) -> dict[str, list[EntitySource]]:
        """Sources of one entity keyed by chunk id, unknown chunks skipped."""
        grouped: dict[str, list[EntitySource]] = {}
        for source in entity.sources:
            if source.chunk_id in chunk_order:
                grouped.setdefault(source.chunk_id, []).append(source)
        return grouped

    def _closest_mentions(
        self,
        chunk_id: str,
        first: list[EntitySource],
        second: list[EntitySource],
    ) -> _ChunkMatch:
        """
        Closest midpoint pair between two mention lists of one chunk.

        Ties go to the pair whose covering span starts (then ends) first, so
        the result does not depend on which list is passed first.
        """
        a = np.array([[source.midpoint] for source in first], dtype=float)
        b = np.array([[source.midpoint] for source in second], dtype=float)
        distances = cdist(a, b, metric="cityblock")
        rows, cols = np.nonzero(distances == distances.min())
        row, col = min(
            zip(rows.tolist(), cols.tolist()),
            key=lambda rc: _covering_span(first[rc[0]], second[rc[1]]),
        )
        return _ChunkMatch(
            chunk_id=chunk_id,
            distance=float(distances[row, col]),
            first=first[row],
            second=second[col],
        )

    def _relate(
        self,
        entity1: Entity,
        mentions1: dict[str, list[EntitySource]],
        entity2: Entity,
        mentions2: dict[str, list[EntitySource]],
        shared_chunks: list[str],
        chunk_text: dict[str, str],
    ) -> Relationship | None:
        """Build the relationship for one entity pair, or None if too far apart."""
        matches = [
            self._closest_mentions(chunk_id, mentions1[chunk_id], mentions2[chunk_id])
            for chunk_id in shared_chunks
        ]
        matches = [m for m in matches if m.distance <= self.max_distance]
        if not matches:
            return None

        min_distance = min(m.distance for m in matches)
        confidence = self._confidence(min_distance)
        if confidence < self.min_confidence:
            return None

        # Endpoint order independent of input order
        if entity1.id <= entity2.id:
            source_id, target_id = entity1.id, entity2.id
        else:
            source_id, target_id = entity2.id, entity1.id

        relationship = Relationship(
            relationship_type=self.relationship_type,
            source_id=source_id,
            target_id=target_id,
            weight=float(len(matches)),
            confidence=confidence,
            bidirectional=True,
            properties={MIN_DISTANCE_PROPERTY: min_distance},
            metadata=RelationshipMetadata(
                extractor_name=self.name,
                extractor_version=self.version,
            ),
        )

        for match in matches:
            start, end = _covering_span(match.first, match.second)
            relationship.add_evidence(
                chunk_id=match.chunk_id,
                context=context_snippet(
                    chunk_text.get(match.chunk_id, ""), start, end, self.context_window
                ),
                confidence=self._confidence(match.distance),
                pattern=EVIDENCE_PATTERN,
                distance=int(round(match.distance)),
            )

        return relationship

    def _confidence(self, distance: float) -> float:
        """Linear decay: 1.0 at distance 0, 0.0 at max_distance."""
        return max(0.0, 1.0 - distance / self.max_distance)
