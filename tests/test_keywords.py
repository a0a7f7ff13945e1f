"""Tests for TF-IDF keyword extraction."""

import math

import pytest

from chunkgraph.exceptions import InvalidArgumentError, OperationCancelledError
from chunkgraph.ingestion.extraction import KeywordExtractor
from chunkgraph.types import Chunk, EntityType
from chunkgraph.utils.cancellation import CancellationToken


def _by_name(entities):
    return {e.name: e for e in entities}


class TestTokenizing:
    """Tests for word filtering."""

    def test_stop_words_and_short_words_dropped(self):
        """Stop words and words under min_word_length are not keywords."""
        chunk = Chunk(id="chunk1", content="The cloud is big and the cloud grows at it")

        keywords = _by_name(KeywordExtractor().extract_entities([chunk]))

        assert set(keywords) == {"cloud", "big", "grows"}

    def test_min_word_length(self):
        """A higher minimum length drops shorter words."""
        chunk = Chunk(id="chunk1", content="The cloud is big and the cloud grows")

        keywords = _by_name(KeywordExtractor(min_word_length=5).extract_entities([chunk]))

        assert set(keywords) == {"cloud", "grows"}

    def test_words_must_start_with_a_letter(self):
        """Tokens starting with a digit are ignored."""
        chunk = Chunk(id="chunk1", content="Revenue rose 2024 in Q3 2025q")

        keywords = _by_name(KeywordExtractor().extract_entities([chunk]))

        assert set(keywords) == {"Revenue", "rose"}


class TestScoring:
    """Tests for TF-IDF ranking."""

    def test_top_keywords_ranked_by_score(self):
        """Only the best max_keywords terms are kept, ties by first occurrence."""
        chunk = Chunk(id="chunk1", content="cloud big cloud grows")

        keywords = KeywordExtractor(max_keywords=2).extract_entities([chunk])

        assert [k.name for k in keywords] == ["cloud", "big"]
        assert keywords[0].confidence == pytest.approx(1.0)
        assert keywords[1].confidence == pytest.approx(0.5)

    def test_rarer_terms_score_higher(self):
        """A term found in every chunk scores below one found in a single chunk."""
        chunks = [
            Chunk(id="chunk1", content="Azure Azure platform"),
            Chunk(id="chunk2", content="platform revenue"),
        ]

        keywords = _by_name(KeywordExtractor().extract_entities(chunks))

        rare_idf = math.log(3 / 2) + 1
        assert keywords["Azure"].confidence == pytest.approx(1.0)
        assert keywords["revenue"].confidence == pytest.approx(1.0)
        assert keywords["platform"].confidence == pytest.approx(1 / rare_idf)
        assert keywords["platform"].frequency == 2

    def test_min_confidence_filters(self):
        """Terms scoring below min_confidence are skipped in that chunk."""
        chunks = [
            Chunk(id="chunk1", content="Azure Azure platform"),
            Chunk(id="chunk2", content="platform revenue"),
        ]

        keywords = _by_name(KeywordExtractor(min_confidence=0.8).extract_entities(chunks))

        assert set(keywords) == {"Azure", "revenue"}


class TestEntities:
    """Tests for the produced entities."""

    def test_one_source_per_occurrence(self):
        """Each occurrence in a ranking chunk becomes a source."""
        text = "Cloud spending grew; cloud margins too."
        chunk = Chunk(id="chunk1", content=text)

        keywords = _by_name(KeywordExtractor().extract_entities([chunk]))

        cloud = keywords["Cloud"]
        assert [s.position for s in cloud.sources] == [0, text.index("cloud")]
        assert all(s.length == 5 for s in cloud.sources)
        assert "spending" in cloud.sources[0].context

    def test_terms_merge_case_insensitively(self):
        """Spellings differing only in case are one keyword."""
        chunks = [
            Chunk(id="chunk1", content="Azure growth"),
            Chunk(id="chunk2", content="azure pricing"),
        ]

        keywords = KeywordExtractor().extract_entities(chunks)

        azure = [k for k in keywords if k.name.lower() == "azure"]
        assert len(azure) == 1
        assert azure[0].name == "Azure"
        assert {s.chunk_id for s in azure[0].sources} == {"chunk1", "chunk2"}

    def test_type_and_metadata(self):
        """Keywords are KEYWORD entities tagged with the extractor."""
        chunk = Chunk(id="chunk1", content="quarterly revenue")

        keywords = KeywordExtractor().extract_entities([chunk])

        assert all(k.entity_type == EntityType.KEYWORD for k in keywords)
        assert keywords[0].metadata.extractor_name == "KeywordExtractor"
        assert keywords[0].metadata.extractor_version == "1.0"

    def test_empty_inputs(self):
        """No chunks, or chunks without words, yield nothing."""
        extractor = KeywordExtractor()

        assert extractor.extract_entities([]) == []
        assert extractor.extract_entities([Chunk(id="chunk1", content="the 42 of")]) == []


class TestArguments:
    """Tests for construction and cancellation."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_keywords": 0},
            {"min_word_length": 0},
            {"min_confidence": 1.5},
        ],
    )
    def test_invalid_arguments(self, kwargs):
        """Out-of-range settings are rejected."""
        with pytest.raises(InvalidArgumentError):
            KeywordExtractor(**kwargs)

    def test_cancelled_token_aborts(self):
        """A cancelled token raises OperationCancelledError."""
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            KeywordExtractor().extract_entities(
                [Chunk(id="chunk1", content="cloud revenue")], cancel_token=token
            )
