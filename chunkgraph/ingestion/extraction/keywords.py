"""
TF-IDF Keyword Extraction

Non-LLM entity extractor: scores the words of each chunk by TF-IDF against
the whole batch and keeps the top terms as KEYWORD entities.

Algorithm:
    1. Tokenize each chunk into words that start with a letter, dropping
       stop words and words shorter than min_word_length
    2. Document frequency = number of chunks containing each term
    3. Per chunk: tf * idf, idf = ln((1 + N) / (1 + df)) + 1, scaled so the
       best term scores 1.0
    4. Keep terms scoring >= min_confidence, best max_keywords per chunk
    5. One entity per term (case-insensitive) across the batch; every
       occurrence in a chunk where the term ranks becomes a source

The smoothed idf keeps scores meaningful for single-chunk batches, where
ln(N / df) would be zero for every term.

Example:
    >>> extractor = KeywordExtractor(max_keywords=5)
    >>> keywords = extractor.extract_entities(chunks)
"""

from __future__ import annotations

import logging
import math
import re
from collections import Counter

from chunkgraph.exceptions import InvalidArgumentError
from chunkgraph.ingestion.extraction.base import EntityExtractor
from chunkgraph.types import Chunk, Entity, EntityMetadata, EntityType
from chunkgraph.utils.cancellation import CancellationToken, check_cancelled
from chunkgraph.utils.text import context_snippet

logger = logging.getLogger(__name__)

_WORD = re.compile(r"\b[a-zA-Z][a-zA-Z0-9]*\b")

STOP_WORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "been", "but", "by", "for", "from",
    "has", "have", "he", "in", "is", "it", "its", "of", "on", "that", "the", "to",
    "was", "were", "will", "with", "this", "they", "their", "them", "these", "those",
    "what", "when", "where", "which", "who", "whom", "why", "would", "could", "should",
    "can", "may", "might", "must", "shall", "or", "not", "no", "yes", "also", "any",
    "some", "such", "into", "than", "then", "there", "more", "much", "very", "so",
    "do", "does", "did", "doing", "done", "am", "being", "had", "having",
    "if", "because", "while", "until", "since", "after", "before", "during", "through",
    "about", "above", "below", "between", "under", "over", "up", "down", "out", "off",
})


class KeywordExtractor(EntityExtractor):
    """
    TF-IDF keyword extractor.

    Usage:
        extractor = KeywordExtractor(max_keywords=10, min_word_length=3)
        entities = extractor.extract_entities(chunks)
    """

    def __init__(
        self,
        max_keywords: int = 10,
        min_word_length: int = 3,
        min_confidence: float = 0.0,
        context_window: int = 50,
    ):
        if max_keywords <= 0:
            raise InvalidArgumentError(f"max_keywords must be positive, got {max_keywords}")
        if min_word_length <= 0:
            raise InvalidArgumentError(
                f"min_word_length must be positive, got {min_word_length}"
            )
        if not 0.0 <= min_confidence <= 1.0:
            raise InvalidArgumentError(
                f"min_confidence must be between 0.0 and 1.0, got {min_confidence}"
            )
        self.max_keywords = max_keywords
        self.min_word_length = min_word_length
        self.min_confidence = min_confidence
        self.context_window = context_window

    @property
    def name(self) -> str:
        return "KeywordExtractor"

    @property
    def version(self) -> str:
        return "1.0"

    @property
    def supported_entity_types(self) -> tuple[EntityType, ...]:
        return (EntityType.KEYWORD,)

    def extract_entities(
        self,
        chunks: list[Chunk],
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[Entity]:
        """
        Extract the top keywords of every chunk.

        Args:
            chunks: Chunks to read
            cancel_token: Checked once per chunk

        Returns:
            KEYWORD entities in order of first appearance. Frequency is the
            number of chunks where the term ranked; confidence is its best
            score.
        """
        if not chunks:
            return []

        tokens = [self._tokenize(chunk.content) for chunk in chunks]
        document_frequency: Counter[str] = Counter()
        for matches in tokens:
            document_frequency.update({m.group().lower() for m in matches})

        keywords: dict[str, Entity] = {}
        for chunk, matches in zip(chunks, tokens):
            check_cancelled(cancel_token, "Keyword extraction")
            if not matches:
                continue

            scores = self._score(matches, document_frequency, len(chunks))
            for term, score in scores:
                entity = keywords.get(term)
                occurrences = [m for m in matches if m.group().lower() == term]
                if entity is None:
                    entity = Entity(
                        entity_type=EntityType.KEYWORD,
                        name=occurrences[0].group(),
                        confidence=score,
                        metadata=EntityMetadata(
                            extractor_name=self.name,
                            extractor_version=self.version,
                        ),
                    )
                    keywords[term] = entity
                else:
                    entity.frequency += 1
                    entity.confidence = max(entity.confidence, score)

                for match in occurrences:
                    entity.add_source(
                        chunk.id,
                        match.start(),
                        len(match.group()),
                        context=context_snippet(
                            chunk.content, match.start(), match.end(), self.context_window
                        ),
                        confidence=score,
                    )

        logger.debug(f"Keyword extraction: {len(keywords)} keywords from {len(chunks)} chunks")
        return list(keywords.values())

    def _tokenize(self, text: str) -> list[re.Match[str]]:
        return [
            m
            for m in _WORD.finditer(text)
            if len(m.group()) >= self.min_word_length and m.group().lower() not in STOP_WORDS
        ]

    def _score(
        self,
        matches: list[re.Match[str]],
        document_frequency: Counter[str],
        total_chunks: int,
    ) -> list[tuple[str, float]]:
        """Top (term, score) pairs of one chunk, best first, ties by first occurrence."""
        term_frequency = Counter(m.group().lower() for m in matches)
        raw = {
            term: tf * (math.log((1 + total_chunks) / (1 + document_frequency[term])) + 1)
            for term, tf in term_frequency.items()
        }
        best = max(raw.values())
        # Counter keeps first-occurrence order, so the stable sort breaks ties by it
        ranked = sorted(raw.items(), key=lambda item: -item[1])
        return [
            (term, score / best)
            for term, score in ranked
            if score / best >= self.min_confidence
        ][: self.max_keywords]
