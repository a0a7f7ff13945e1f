"""
In-Batch Entity Resolution

Deduplicates entities extracted from one batch of chunks and merges each
group of duplicates into a single entity.

Algorithm (per entity type):
    1. Partition entities by type (different types never merge)
    2. Greedy clustering: take the next unprocessed entity, collect every
       remaining unprocessed entity that is a duplicate of it
    3. Merge each cluster (survivor = highest confidence, ties by input order)
    4. Repeat 2-3 until a pass merges nothing; a survivor can take a name
       that matches an entity its cluster pivot did not

Duplicate test (either condition suffices):
    - Normalized names equal (case-insensitive)
    - One entity's aliases contain a name equivalent to the other's name
      (stored aliases plus aliases generated by the normalizer)
    - Edit-distance similarity of normalized names >= threshold

Complexity is O(n^2) per type partition, fine at chunk-batch scale.

Example:
    >>> resolver = EntityResolver(similarity_threshold=0.85)
    >>> resolved = resolver.resolve(entities)
    >>> print(f"Reduced {len(entities)} mentions to {len(resolved)} entities")
"""

from __future__ import annotations

import logging

from rapidfuzz.distance import Levenshtein

from chunkgraph.exceptions import InvalidArgumentError
from chunkgraph.ingestion.resolution.normalizer import EntityNormalizer
from chunkgraph.types.entities import Entity, EntityType
from chunkgraph.utils.cancellation import CancellationToken, check_cancelled

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.85


# -----------------------------------------------------------------------------
# String Similarity
# -----------------------------------------------------------------------------


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance (single-character insert, delete, substitute)."""
    return Levenshtein.distance(a, b)


def name_similarity(a: str, b: str) -> float:
    """
    Similarity in [0, 1]: 1 - edit_distance / max(len(a), len(b)).

    Equal strings score 1.0; otherwise an empty string scores 0.0.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1.0 - edit_distance(a, b) / max(len(a), len(b))


# -----------------------------------------------------------------------------
# Resolver
# -----------------------------------------------------------------------------


class EntityResolver:
    """
    Deduplicates and merges entities within a batch.

    Usage:
        resolver = EntityResolver(normalizer, similarity_threshold=0.85)
        resolved = resolver.resolve(entities, cancel_token=token)

    Inputs are never mutated: merged entities are copies of their survivor.
    """

    def __init__(
        self,
        normalizer: EntityNormalizer | None = None,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ):
        if not 0.0 <= similarity_threshold <= 1.0:
            raise InvalidArgumentError(
                f"similarity_threshold must be between 0.0 and 1.0, got {similarity_threshold}"
            )
        self.normalizer = normalizer or EntityNormalizer()
        self.similarity_threshold = similarity_threshold

    def resolve(
        self,
        entities: list[Entity],
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[Entity]:
        """
        Deduplicate entities.

        Args:
            entities: Raw entities from one batch
            cancel_token: Checked between entity pairs

        Returns:
            Resolved entities, grouped by type in order of first appearance

        Raises:
            OperationCancelledError: If cancelled; no partial result is returned
        """
        if not entities:
            return []

        partitions: dict[EntityType, list[Entity]] = {}
        for entity in entities:
            partitions.setdefault(entity.entity_type, []).append(entity)

        resolved: list[Entity] = []
        for entity_type, group in partitions.items():
            merged = self._resolve_partition(group, cancel_token)
            logger.debug(
                f"Resolved {len(group)} {entity_type.value} entities into {len(merged)}"
            )
            resolved.extend(merged)

        return resolved

    def _resolve_partition(
        self,
        entities: list[Entity],
        cancel_token: CancellationToken | None,
    ) -> list[Entity]:
        """Cluster one type partition until a pass merges nothing."""
        resolved = self._cluster_pass(entities, cancel_token)
        passes = 1
        while len(resolved) < len(entities):
            entities = resolved
            resolved = self._cluster_pass(entities, cancel_token)
            passes += 1
        if passes > 2:
            logger.debug(f"Partition converged after {passes} passes")
        return resolved

    def _cluster_pass(
        self,
        entities: list[Entity],
        cancel_token: CancellationToken | None,
    ) -> list[Entity]:
        """One greedy clustering pass; each cluster is merged."""
        aliases = [self._candidate_aliases(entity) for entity in entities]
        processed = [False] * len(entities)
        resolved: list[Entity] = []

        for i, entity in enumerate(entities):
            if processed[i]:
                continue
            check_cancelled(cancel_token, "Entity resolution")

            processed[i] = True
            cluster = [entity]

            for j in range(i + 1, len(entities)):
                if processed[j]:
                    continue
                check_cancelled(cancel_token, "Entity resolution")
                if self._are_duplicates(entity, aliases[i], entities[j], aliases[j]):
                    cluster.append(entities[j])
                    processed[j] = True

            resolved.append(self.merge_entities(cluster))

        return resolved

    def _candidate_aliases(self, entity: Entity) -> list[str]:
        """Stored aliases plus those the normalizer derives from the name."""
        generated = self.normalizer.generate_aliases(entity.name, entity.entity_type)
        return list(entity.aliases) + generated

    def are_duplicates(self, entity1: Entity, entity2: Entity) -> bool:
        """True if the two entities refer to the same thing."""
        return self._are_duplicates(
            entity1,
            self._candidate_aliases(entity1),
            entity2,
            self._candidate_aliases(entity2),
        )

    def _are_duplicates(
        self,
        entity1: Entity,
        aliases1: list[str],
        entity2: Entity,
        aliases2: list[str],
    ) -> bool:
        if entity1.entity_type != entity2.entity_type:
            return False

        entity_type = entity1.entity_type
        normalized1 = self.normalizer.normalize(entity1.name, entity_type)
        normalized2 = self.normalizer.normalize(entity2.name, entity_type)

        if normalized1.lower() == normalized2.lower():
            return True

        if any(self.normalizer.are_equivalent(alias, entity2.name, entity_type) for alias in aliases1):
            return True
        if any(self.normalizer.are_equivalent(alias, entity1.name, entity_type) for alias in aliases2):
            return True

        return name_similarity(normalized1, normalized2) >= self.similarity_threshold

    def merge_entities(self, entities: list[Entity]) -> Entity:
        """
        Merge a group of duplicate entities into one.

        The survivor is the entity with the highest confidence (first in input
        order on ties); it keeps its id and name, everything else folds in.

        Args:
            entities: Entities judged to be duplicates

        Returns:
            The merged entity. A single-element list returns that element.

        Raises:
            InvalidArgumentError: If ``entities`` is empty
        """
        if not entities:
            raise InvalidArgumentError("Cannot merge an empty entity list")
        if len(entities) == 1:
            return entities[0]

        survivor = max(entities, key=lambda e: e.confidence)
        merged = survivor.model_copy(deep=True)
        for entity in entities:
            if entity is not survivor:
                merged.merge(entity)

        logger.debug(
            f"Merged {len(entities)} entities into '{merged.name}' "
            f"(aliases: {merged.aliases})"
        )
        return merged
