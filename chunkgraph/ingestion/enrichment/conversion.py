"""
Enrichment Fan-out and Conversion

Bridges the upstream enrichment layer and the resolution pipeline.

Functions:
    enrich_chunks: Run a ChunkEnricher over a batch with bounded concurrency,
        cache-first. Returns only when the whole batch is done.
    entities_from_enrichment: Turn (name, type-hint, confidence) candidates and
        keywords into Entity records with one source observation each.
    map_type_hint: Free-form type hint -> EntityType

Enricher failures are logged and replaced by an empty EnrichedChunk so one
bad chunk never sinks the batch. Cancellation is not a failure and
propagates.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from chunkgraph.exceptions import OperationCancelledError
from chunkgraph.ingestion.enrichment.cache import InMemoryEnrichmentCache
from chunkgraph.types import Chunk, EnrichedChunk, Entity, EntityMetadata, EntityType
from chunkgraph.utils.cancellation import CancellationToken, check_cancelled
from chunkgraph.utils.text import cache_key_for, context_snippet

logger = logging.getLogger(__name__)

ENRICHMENT_EXTRACTOR_NAME = "enrichment"

# Upstream labels (NER tag sets and common spellings) that differ from EntityType values
_TYPE_HINT_ALIASES: dict[str, EntityType] = {
    "org": EntityType.ORGANIZATION,
    "organisation": EntityType.ORGANIZATION,
    "company": EntityType.ORGANIZATION,
    "per": EntityType.PERSON,
    "people": EntityType.PERSON,
    "gpe": EntityType.LOCATION,
    "loc": EntityType.LOCATION,
    "place": EntityType.LOCATION,
    "country": EntityType.LOCATION,
    "city": EntityType.LOCATION,
    "time": EntityType.DATE,
    "work_of_art": EntityType.WORK,
    "norp": EntityType.NATIONALITY,
    "fac": EntityType.FACILITY,
    "quantity": EntityType.MEASUREMENT,
    "cardinal": EntityType.MEASUREMENT,
    "misc": EntityType.CONCEPT,
    "tech": EntityType.TECHNOLOGY,
    "website": EntityType.URL,
}


def map_type_hint(hint: str) -> EntityType:
    """
    Map a free-form type hint to an EntityType, case-insensitively.

    Unrecognized hints map to ``EntityType.UNKNOWN``.
    """
    key = hint.strip().lower().replace("-", "_").replace(" ", "_")
    if not key:
        return EntityType.UNKNOWN
    if key in _TYPE_HINT_ALIASES:
        return _TYPE_HINT_ALIASES[key]
    try:
        return EntityType(key)
    except ValueError:
        return EntityType.UNKNOWN


class ChunkEnricher(ABC):
    """Abstract interface for per-chunk enrichment (typically LLM-backed)."""

    @abstractmethod
    async def enrich(self, chunk: Chunk) -> EnrichedChunk:
        """Produce summary, keywords and candidate entities for one chunk."""
        ...


async def enrich_chunks(
    chunks: list[Chunk],
    enricher: ChunkEnricher,
    cache: InMemoryEnrichmentCache | None = None,
    *,
    concurrency: int = 5,
    ttl: float | None = None,
    cancel_token: CancellationToken | None = None,
) -> list[EnrichedChunk]:
    """
    Enrich a batch of chunks.

    Args:
        chunks: Chunks to enrich
        enricher: Upstream enrichment implementation
        cache: Optional cache consulted before calling the enricher
        concurrency: Max concurrent enricher calls
        ttl: Cache lifetime for new entries (cache default if None)
        cancel_token: Checked before each enricher call

    Returns:
        One EnrichedChunk per input chunk, in input order

    Raises:
        OperationCancelledError: If cancelled before the batch completes
    """
    if not chunks:
        return []

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def enrich_one(chunk: Chunk) -> EnrichedChunk:
        check_cancelled(cancel_token, "Chunk enrichment")
        key = cache_key_for(chunk.content)

        if cache is not None:
            hit, cached = cache.try_get(key)
            if hit and cached is not None:
                # Same text may belong to a different chunk
                return cached.model_copy(update={"chunk_id": chunk.id})

        async with semaphore:
            check_cancelled(cancel_token, "Chunk enrichment")
            try:
                enriched = await enricher.enrich(chunk)
            except OperationCancelledError:
                raise
            except Exception as e:
                logger.warning(f"Enrichment failed for chunk {chunk.id}: {e}")
                return EnrichedChunk(chunk_id=chunk.id, original_content=chunk.content)

        if cache is not None:
            cache.set(key, enriched, ttl)
        return enriched

    tasks = [asyncio.ensure_future(enrich_one(chunk)) for chunk in chunks]
    try:
        results = await asyncio.gather(*tasks)
    except BaseException:
        # The batch has failed; stop enricher calls still in flight
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    if cache is not None:
        stats = cache.get_statistics()
        logger.debug(
            f"Enriched {len(chunks)} chunks (cache hits: {stats.hits}, misses: {stats.misses})"
        )
    return list(results)


def _locate(text: str, name: str) -> int:
    """Offset of the first case-insensitive occurrence of name, or -1."""
    return text.lower().find(name.lower())


def entities_from_enrichment(
    enriched: list[EnrichedChunk],
    *,
    min_confidence: float = 0.0,
    include_keywords: bool = True,
    context_window: int = 100,
) -> list[Entity]:
    """
    Convert enrichment output into raw Entity records.

    Each candidate becomes one Entity with exactly one source observation.
    Positions come from the candidate when given, else from the first
    case-insensitive occurrence in the chunk text (0 when not found).
    Keywords that do not occur in the chunk text are skipped.

    Args:
        enriched: Enrichment output for a batch
        min_confidence: Candidates below this confidence are skipped
        include_keywords: Also emit Keyword entities for chunk keywords
        context_window: Characters of context kept around each mention

    Returns:
        Unresolved entities, ready for EntityResolver.resolve()
    """
    entities: list[Entity] = []

    for chunk in enriched:
        text = chunk.original_content

        for candidate in chunk.preliminary_entities:
            name = candidate.text.strip()
            if not name or candidate.confidence < min_confidence:
                continue

            if candidate.start_position is not None:
                position = candidate.start_position
            else:
                position = max(0, _locate(text, name))

            if candidate.end_position is not None and candidate.end_position >= position:
                length = candidate.end_position - position
            else:
                length = len(name)

            entity = Entity(
                entity_type=map_type_hint(candidate.type),
                name=name,
                confidence=candidate.confidence,
                metadata=EntityMetadata(extractor_name=ENRICHMENT_EXTRACTOR_NAME),
            )
            entity.add_source(
                chunk_id=chunk.chunk_id,
                position=position,
                length=length,
                context=context_snippet(text, position, position + length, context_window),
                confidence=candidate.confidence,
            )
            entities.append(entity)

        if not include_keywords:
            continue

        for keyword in chunk.keywords:
            name = keyword.strip()
            if not name:
                continue
            position = _locate(text, name)
            if position < 0:
                continue

            entity = Entity(
                entity_type=EntityType.KEYWORD,
                name=name,
                metadata=EntityMetadata(extractor_name=ENRICHMENT_EXTRACTOR_NAME),
            )
            entity.add_source(
                chunk_id=chunk.chunk_id,
                position=position,
                length=len(name),
                context=context_snippet(text, position, position + len(name), context_window),
            )
            entities.append(entity)

    logger.debug(f"Converted {len(enriched)} enriched chunks into {len(entities)} entities")
    return entities
