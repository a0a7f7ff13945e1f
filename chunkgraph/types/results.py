"""
Result Types

Outcome records of the graph-building pipeline.

Models:
    - BuildStatus: succeeded / failed / cancelled
    - GraphExtractionStatistics: Counts and stage timings of one build
    - GraphBuildResult: The graph plus errors, warnings and statistics
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field


class BuildStatus(str, Enum):
    """Outcome of a build. Cancellation is not a failure."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class GraphExtractionStatistics(BaseModel):
    """
    Counters and timings collected while building one graph.

    Timings are in milliseconds.
    """

    chunks_processed: int = 0
    entities_extracted: int = 0
    entities_after_deduplication: int = 0
    entities_merged: int = 0
    relationships_extracted: int = 0
    relationships_after_consolidation: int = 0
    relationships_merged: int = 0
    entity_extraction_time_ms: float = 0.0
    resolution_time_ms: float = 0.0
    relationship_extraction_time_ms: float = 0.0
    graph_building_time_ms: float = 0.0
    extractors_used: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_time_ms(self) -> float:
        """Sum of all stage timings."""
        return (
            self.entity_extraction_time_ms
            + self.resolution_time_ms
            + self.relationship_extraction_time_ms
            + self.graph_building_time_ms
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def deduplication_ratio(self) -> float:
        """Entities kept per entity extracted (1.0 when nothing was extracted)."""
        if self.entities_extracted == 0:
            return 1.0
        return self.entities_after_deduplication / self.entities_extracted

    @computed_field  # type: ignore[prop-decorator]
    @property
    def consolidation_ratio(self) -> float:
        """Relationships kept per relationship extracted."""
        if self.relationships_extracted == 0:
            return 1.0
        return self.relationships_after_consolidation / self.relationships_extracted


class GraphBuildResult(BaseModel):
    """
    Result from GraphBuilder.build().

    ``graph`` is None unless the build ran to completion; a cancelled or
    failed build never exposes a partially populated graph.
    """

    status: BuildStatus = BuildStatus.SUCCEEDED
    graph: Any = None  # Avoid circular import
    statistics: GraphExtractionStatistics = Field(default_factory=GraphExtractionStatistics)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def success(self) -> bool:
        """True if the build succeeded."""
        return self.status == BuildStatus.SUCCEEDED

    @property
    def cancelled(self) -> bool:
        """True if the caller cancelled the build."""
        return self.status == BuildStatus.CANCELLED

    @property
    def duration_seconds(self) -> float | None:
        """Wall time of the build, None until complete."""
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def add_error(self, error: str) -> None:
        """Record an error and mark the build failed."""
        self.errors.append(error)
        self.status = BuildStatus.FAILED

    def add_warning(self, warning: str) -> None:
        """Record a non-fatal warning."""
        self.warnings.append(warning)

    def complete(self) -> None:
        """Stamp the completion time."""
        self.completed_at = datetime.now(timezone.utc)
