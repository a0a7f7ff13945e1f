"""
Graph Builder - Consolidation Pipeline

Turns one batch of raw entities and their chunks into a Graph.

Stages:
    0. Extract   - optional entity extractors add candidates from the chunks
    1. Filter    - drop entities below min_entity_confidence
    2. Resolve   - in-batch deduplication (EntityResolver)
    3. Extract   - co-occurrence relationships (one or more extractors)
    4. Consolidate - merge repeated edges, rescale weights
    5. Assemble  - link related entity ids, populate a fresh Graph,
                   build indexes, compute statistics, validate

All stages run on copies: a cancelled or failed build returns no graph and
leaves the caller's entities untouched.

Example:
    >>> builder = GraphBuilder(GraphConfig(similarity_threshold=0.9))
    >>> result = builder.build(entities, chunks, graph_name="q3_reports")
    >>> if result.success:
    ...     print(result.graph.statistics)
"""

from __future__ import annotations

import logging
import time

from chunkgraph.config import GraphConfig
from chunkgraph.exceptions import InvalidArgumentError, OperationCancelledError
from chunkgraph.graph import Graph
from chunkgraph.ingestion.extraction import EntityExtractor
from chunkgraph.ingestion.relationships import (
    CooccurrenceExtractor,
    RelationshipExtractor,
    consolidate_relationships,
)
from chunkgraph.ingestion.resolution import EntityNormalizer, EntityResolver
from chunkgraph.types import (
    BuildStatus,
    Chunk,
    Entity,
    GraphBuildResult,
    Relationship,
)
from chunkgraph.utils.cancellation import CancellationToken, check_cancelled

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class GraphBuilder:
    """
    Orchestrates resolution, relationship extraction and graph assembly.

    Usage:
        builder = GraphBuilder(config)
        result = builder.build(entities, chunks, cancel_token=token)
    """

    def __init__(
        self,
        config: GraphConfig | None = None,
        normalizer: EntityNormalizer | None = None,
        extractors: list[RelationshipExtractor] | None = None,
        entity_extractors: list[EntityExtractor] | None = None,
    ):
        """
        Initialize the builder.

        Args:
            config: Pipeline configuration (defaults + environment if None)
            normalizer: Shared normalizer
            extractors: Relationship extractors; a CooccurrenceExtractor
                configured from ``config`` when None
            entity_extractors: Run over the chunks before resolution; their
                entities join the ones passed to build()

        Raises:
            InvalidArgumentError: If ``config.validate()`` reports problems
        """
        self.config = config or GraphConfig()
        problems = self.config.validate()
        if problems:
            raise InvalidArgumentError(
                f"Invalid configuration: {'; '.join(problems)}",
                details={"problems": problems},
            )
        self.normalizer = normalizer or EntityNormalizer()
        self.resolver = EntityResolver(
            self.normalizer,
            similarity_threshold=self.config.similarity_threshold,
        )
        if extractors is None:
            extractors = [
                CooccurrenceExtractor(
                    max_distance=self.config.max_cooccurrence_distance,
                    min_confidence=self.config.min_relationship_confidence,
                    context_window=self.config.context_window,
                )
            ]
        self.extractors = extractors
        self.entity_extractors = list(entity_extractors or [])

    def build(
        self,
        entities: list[Entity],
        chunks: list[Chunk],
        graph_name: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> GraphBuildResult:
        """
        Build a graph from one batch.

        Args:
            entities: Raw entities, one or more source observations each
            chunks: Chunks the sources refer to
            graph_name: Name of the new graph (config default if None)
            cancel_token: Checked throughout every stage

        Returns:
            GraphBuildResult. Cancellation yields status CANCELLED and an
            unexpected error yields FAILED, both without a graph. Validation
            violations mark the result FAILED but the graph is still returned.
        """
        result = GraphBuildResult()
        stats = result.statistics
        stats.chunks_processed = len(chunks)
        name = graph_name or self.config.graph_name

        try:
            if not chunks:
                result.add_warning("No chunks provided; graph is empty")
                result.graph = Graph(name=name)
                return result

            # Stage 0: Entity extraction
            start = time.perf_counter()
            raw = list(entities)
            for entity_extractor in self.entity_extractors:
                found_entities = entity_extractor.extract_entities(
                    chunks, cancel_token=cancel_token
                )
                raw.extend(found_entities)
                stats.extractors_used.append(entity_extractor.name)
                logger.info(
                    f"{entity_extractor.name} extracted {len(found_entities)} entities"
                )
            stats.entity_extraction_time_ms = _elapsed_ms(start)

            # Work on copies; the caller's entities are never mutated
            candidates = [
                e.model_copy(deep=True)
                for e in raw
                if e.confidence >= self.config.min_entity_confidence
            ]
            stats.entities_extracted = len(candidates)
            if len(candidates) < len(raw):
                logger.debug(
                    f"Dropped {len(raw) - len(candidates)} entities below confidence "
                    f"{self.config.min_entity_confidence}"
                )
            if not candidates:
                result.add_warning("No entities to process")

            # Stage 1: Resolution
            start = time.perf_counter()
            if self.config.enable_entity_resolution:
                resolved = self.resolver.resolve(candidates, cancel_token=cancel_token)
            else:
                resolved = candidates
            stats.resolution_time_ms = _elapsed_ms(start)
            stats.entities_after_deduplication = len(resolved)
            stats.entities_merged = len(candidates) - len(resolved)
            logger.info(f"Resolved {len(candidates)} entities into {len(resolved)}")

            # Stage 2: Relationships
            start = time.perf_counter()
            relationships: list[Relationship] = []
            if self.config.enable_relationship_extraction:
                extracted: list[Relationship] = []
                for extractor in self.extractors:
                    found = extractor.extract_relationships(
                        resolved, chunks, cancel_token=cancel_token
                    )
                    extracted.extend(found)
                    stats.extractors_used.append(extractor.name)
                stats.relationships_extracted = len(extracted)
                relationships = consolidate_relationships(extracted, cancel_token=cancel_token)
            stats.relationship_extraction_time_ms = _elapsed_ms(start)
            stats.relationships_after_consolidation = len(relationships)
            stats.relationships_merged = stats.relationships_extracted - len(relationships)
            logger.info(
                f"Extracted {stats.relationships_extracted} relationships, "
                f"{len(relationships)} after consolidation"
            )

            # Stage 3: Assembly
            start = time.perf_counter()
            check_cancelled(cancel_token, "Graph building")
            _link_related_entities(resolved, relationships)

            graph = Graph(name=name)
            graph.add_entities(resolved)
            graph.add_relationships(relationships)

            if self.config.build_indexes:
                graph.build_indexes()
            if self.config.compute_statistics:
                graph.compute_statistics()
            if self.config.validate_graph:
                for error in graph.validate():
                    result.add_error(error)
            stats.graph_building_time_ms = _elapsed_ms(start)

            result.graph = graph

        except OperationCancelledError as e:
            logger.info(f"Graph build cancelled: {e.message}")
            result.status = BuildStatus.CANCELLED
            result.graph = None
        except Exception as e:
            logger.error(f"Graph build failed: {e}")
            result.add_error(f"Graph build failed: {e}")
            result.graph = None
        finally:
            result.complete()

        return result


def _link_related_entities(entities: list[Entity], relationships: list[Relationship]) -> None:
    """Record each relationship on both endpoint entities by id."""
    by_id = {entity.id: entity for entity in entities}
    for relationship in relationships:
        source = by_id.get(relationship.source_id)
        target = by_id.get(relationship.target_id)
        if source is not None:
            source.add_related_entity(relationship.target_id)
        if target is not None:
            target.add_related_entity(relationship.source_id)
