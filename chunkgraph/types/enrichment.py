"""
Enrichment Types

Per-chunk output of the upstream language-model enrichment layer.

Models:
    - PreliminaryEntity: (name, type-hint, confidence) candidate from one chunk
    - EnrichedChunk: Everything enrichment produced for one chunk
    - CacheStatistics: Hit/miss counters of an enrichment cache
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, computed_field


class PreliminaryEntity(BaseModel):
    """
    A candidate entity proposed by enrichment.

    Positions are optional; when absent the mention is located in the
    chunk text during conversion.
    """

    text: str = Field(..., description="Entity surface text as it appears in the chunk")
    type: str = Field(..., description="Free-form type hint (e.g. 'ORG', 'Person')")
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    start_position: int | None = Field(default=None, ge=0)
    end_position: int | None = Field(default=None, ge=0)


class EnrichedChunk(BaseModel):
    """
    Enrichment output for a single chunk.

    Attributes:
        chunk_id: Chunk this output belongs to
        original_content: Chunk text that was enriched
        summary: Optional short summary
        keywords: Keywords proposed for the chunk
        preliminary_entities: Candidate entities
        tokens_used: LLM tokens consumed
        enrichment_duration_ms: Wall time of the enrichment call
    """

    chunk_id: str
    original_content: str = ""
    summary: str | None = None
    keywords: list[str] = Field(default_factory=list)
    preliminary_entities: list[PreliminaryEntity] = Field(default_factory=list)
    tokens_used: int = 0
    enrichment_duration_ms: int = 0
    enriched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CacheStatistics(BaseModel):
    """Point-in-time counters of an enrichment cache."""

    hits: int = 0
    misses: int = 0
    size: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hit_rate(self) -> float:
        """Fraction of lookups that hit, 0.0 before any lookup."""
        total = self.hits + self.misses
        return self.hits / total if total else 0.0
