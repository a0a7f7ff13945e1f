"""Tests for enrichment fan-out and conversion into entities."""

import asyncio

import pytest

from chunkgraph.exceptions import OperationCancelledError
from chunkgraph.ingestion.enrichment import (
    ChunkEnricher,
    InMemoryEnrichmentCache,
    enrich_chunks,
    entities_from_enrichment,
    map_type_hint,
)
from chunkgraph.types import Chunk, EnrichedChunk, EntityType, PreliminaryEntity
from chunkgraph.utils.cancellation import CancellationToken


class RecordingEnricher(ChunkEnricher):
    """Enricher that records calls and peak concurrency."""

    def __init__(self, delay: float = 0.01, fail_on: set[str] | None = None):
        self.delay = delay
        self.fail_on = fail_on or set()
        self.calls: list[str] = []
        self.active = 0
        self.peak = 0

    async def enrich(self, chunk: Chunk) -> EnrichedChunk:
        self.calls.append(chunk.id)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
            if chunk.id in self.fail_on:
                raise RuntimeError("model timeout")
            return EnrichedChunk(
                chunk_id=chunk.id,
                original_content=chunk.content,
                keywords=["cloud"],
            )
        finally:
            self.active -= 1


class TestMapTypeHint:
    """Tests for map_type_hint."""

    @pytest.mark.parametrize(
        "hint,expected",
        [
            ("ORG", EntityType.ORGANIZATION),
            ("Organization", EntityType.ORGANIZATION),
            ("PER", EntityType.PERSON),
            ("person", EntityType.PERSON),
            ("GPE", EntityType.LOCATION),
            ("LOC", EntityType.LOCATION),
            ("Job Title", EntityType.JOB_TITLE),
            ("job-title", EntityType.JOB_TITLE),
            ("Product", EntityType.PRODUCT),
            ("gibberish", EntityType.UNKNOWN),
            ("", EntityType.UNKNOWN),
        ],
    )
    def test_mapping(self, hint, expected):
        """Hints map case-insensitively, unknown hints to UNKNOWN."""
        assert map_type_hint(hint) == expected


class TestEntitiesFromEnrichment:
    """Tests for entities_from_enrichment."""

    TEXT = "Microsoft launched Azure cloud platform in Seattle."

    def _chunk(self, **kwargs) -> EnrichedChunk:
        return EnrichedChunk(chunk_id="chunk1", original_content=self.TEXT, **kwargs)

    def test_candidates_become_entities_with_one_source(self):
        """Each candidate yields one entity with one located source."""
        enriched = self._chunk(
            preliminary_entities=[
                PreliminaryEntity(text="Microsoft", type="ORG", confidence=0.9),
                PreliminaryEntity(text="azure", type="Product", confidence=0.8),
            ]
        )

        entities = entities_from_enrichment([enriched], include_keywords=False)

        assert [e.name for e in entities] == ["Microsoft", "azure"]
        assert entities[0].entity_type == EntityType.ORGANIZATION
        assert entities[0].confidence == 0.9
        assert all(len(e.sources) == 1 for e in entities)
        assert entities[1].sources[0].position == self.TEXT.index("Azure")
        assert entities[1].sources[0].length == 5
        assert entities[1].sources[0].chunk_id == "chunk1"

    def test_explicit_positions_win(self):
        """Candidate offsets are used when provided."""
        enriched = self._chunk(
            preliminary_entities=[
                PreliminaryEntity(
                    text="Seattle", type="GPE", start_position=43, end_position=50
                )
            ]
        )

        source = entities_from_enrichment([enriched])[0].sources[0]

        assert source.position == 43
        assert source.length == 7

    def test_low_confidence_candidates_skipped(self):
        """Candidates below min_confidence are dropped."""
        enriched = self._chunk(
            preliminary_entities=[
                PreliminaryEntity(text="Microsoft", type="ORG", confidence=0.2),
                PreliminaryEntity(text="Azure", type="Product", confidence=0.7),
            ]
        )

        entities = entities_from_enrichment([enriched], min_confidence=0.5, include_keywords=False)

        assert [e.name for e in entities] == ["Azure"]

    def test_keywords_become_keyword_entities(self):
        """Keywords found in the text become Keyword entities."""
        enriched = self._chunk(keywords=["cloud", "quantum"])

        entities = entities_from_enrichment([enriched])

        assert [e.name for e in entities] == ["cloud"]
        assert entities[0].entity_type == EntityType.KEYWORD

    def test_keywords_can_be_excluded(self):
        """include_keywords=False skips keywords."""
        enriched = self._chunk(keywords=["cloud"])
        assert entities_from_enrichment([enriched], include_keywords=False) == []

    def test_blank_candidates_skipped(self):
        """Empty names are ignored."""
        enriched = self._chunk(preliminary_entities=[PreliminaryEntity(text="  ", type="ORG")])
        assert entities_from_enrichment([enriched]) == []


class TestEnrichChunks:
    """Tests for enrich_chunks."""

    @pytest.mark.asyncio
    async def test_results_in_input_order(self):
        """One result per chunk, in input order."""
        chunks = [Chunk(id=f"chunk{i}", content=f"text {i}") for i in range(6)]
        enricher = RecordingEnricher()

        results = await enrich_chunks(chunks, enricher, concurrency=3)

        assert [r.chunk_id for r in results] == [c.id for c in chunks]

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        """No more than `concurrency` enricher calls run at once."""
        chunks = [Chunk(id=f"chunk{i}", content=f"text {i}") for i in range(10)]
        enricher = RecordingEnricher(delay=0.02)

        await enrich_chunks(chunks, enricher, concurrency=2)

        assert enricher.peak <= 2
        assert len(enricher.calls) == 10

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        """No chunks, no calls."""
        enricher = RecordingEnricher()
        assert await enrich_chunks([], enricher) == []
        assert enricher.calls == []

    @pytest.mark.asyncio
    async def test_cache_hit_skips_enricher(self):
        """A second run over the same text is served from cache."""
        cache = InMemoryEnrichmentCache(default_ttl=60)
        enricher = RecordingEnricher()

        await enrich_chunks([Chunk(id="chunk1", content="same text")], enricher, cache)
        results = await enrich_chunks([Chunk(id="chunk2", content="same text")], enricher, cache)

        assert enricher.calls == ["chunk1"]
        assert results[0].chunk_id == "chunk2"
        assert cache.get_statistics().hits == 1

    @pytest.mark.asyncio
    async def test_enricher_failure_degrades_to_empty(self):
        """A failing chunk yields an empty result; the rest succeed."""
        chunks = [Chunk(id="ok", content="a"), Chunk(id="bad", content="b")]
        enricher = RecordingEnricher(fail_on={"bad"})
        cache = InMemoryEnrichmentCache(default_ttl=60)

        results = await enrich_chunks(chunks, enricher, cache)

        assert results[0].keywords == ["cloud"]
        assert results[1].chunk_id == "bad"
        assert results[1].keywords == []
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_cancelled_token_aborts(self):
        """A cancelled token raises instead of enriching."""
        token = CancellationToken()
        token.cancel()
        enricher = RecordingEnricher()

        with pytest.raises(OperationCancelledError):
            await enrich_chunks([Chunk(id="chunk1", content="x")], enricher, cancel_token=token)

        assert enricher.calls == []

    @pytest.mark.asyncio
    async def test_cancellation_stops_calls_in_flight(self):
        """Enricher calls still running are cancelled when the batch aborts."""
        started = asyncio.Event()
        interrupted: list[str] = []

        class StoppingEnricher(ChunkEnricher):
            async def enrich(self, chunk: Chunk) -> EnrichedChunk:
                if chunk.id == "stop":
                    await started.wait()
                    raise OperationCancelledError("Chunk enrichment")
                started.set()
                try:
                    await asyncio.sleep(10)
                except asyncio.CancelledError:
                    interrupted.append(chunk.id)
                    raise
                return EnrichedChunk(chunk_id=chunk.id, original_content=chunk.content)

        chunks = [Chunk(id="slow", content="slow text"), Chunk(id="stop", content="stop text")]

        with pytest.raises(OperationCancelledError):
            await asyncio.wait_for(
                enrich_chunks(chunks, StoppingEnricher(), concurrency=2), timeout=5
            )

        assert interrupted == ["slow"]
