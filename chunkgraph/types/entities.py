"""
Entity Types

Entities represent deduplicated real-world things mentioned across chunks.

Models:
    - EntityType: Closed classification enum
    - EntitySource: One observation of an entity in a chunk
    - EntityMetadata: Provenance of the extraction
    - Entity: The entity itself, with merge semantics

Identity:
    ``Entity.id`` is assigned once and cannot be reassigned. Entities refer to
    one another only through ids (``related_entity_ids``), never by object.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, computed_field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class EntityType(str, Enum):
    """Entity classification types."""

    UNKNOWN = "unknown"
    KEYWORD = "keyword"
    PERSON = "person"
    ORGANIZATION = "organization"
    LOCATION = "location"
    DATE = "date"
    MONEY = "money"
    PERCENT = "percent"
    PRODUCT = "product"
    EVENT = "event"
    WORK = "work"  # Books, songs, papers
    LAW = "law"
    TECHNOLOGY = "technology"
    FRAMEWORK = "framework"
    LIBRARY = "library"
    VERSION = "version"
    FILE = "file"
    URL = "url"
    EMAIL = "email"
    PHONE = "phone"
    MEDICAL = "medical"
    CHEMICAL = "chemical"
    BIOLOGICAL = "biological"
    MATHEMATICAL = "mathematical"
    SCIENTIFIC = "scientific"
    BUSINESS = "business"
    LEGAL = "legal"
    EDUCATIONAL = "educational"
    DEPARTMENT = "department"
    JOB_TITLE = "job_title"
    SKILL = "skill"
    CERTIFICATION = "certification"
    PROJECT = "project"
    TASK = "task"
    MEASUREMENT = "measurement"
    UNIT = "unit"
    CURRENCY = "currency"
    LANGUAGE = "language"
    NATIONALITY = "nationality"
    RELIGION = "religion"
    POLITICAL = "political"
    FACILITY = "facility"
    VEHICLE = "vehicle"
    WEATHER = "weather"
    TOPIC = "topic"
    CONCEPT = "concept"


class EntitySource(BaseModel):
    """
    Where an entity was observed.

    Attributes:
        chunk_id: Id of the chunk containing the mention
        position: Zero-based character offset of the mention
        length: Span length in characters
        context: Snippet of surrounding text
        timestamp: When the observation was recorded
        confidence: Extractor confidence for this single mention
    """

    chunk_id: str
    position: int = Field(default=0, ge=0)
    length: int = Field(default=0, ge=0)
    context: str = ""
    timestamp: datetime = Field(default_factory=_utcnow)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)

    @property
    def midpoint(self) -> float:
        """Character offset of the middle of the mention span."""
        return self.position + self.length / 2


class EntityMetadata(BaseModel):
    """Provenance of an extracted entity."""

    extracted_at: datetime = Field(default_factory=_utcnow)
    extractor_name: str = ""
    extractor_version: str = ""
    model_name: str | None = None
    tags: list[str] = Field(default_factory=list)
    manually_verified: bool = False
    last_updated_at: datetime | None = None
    notes: str | None = None


class Entity(BaseModel):
    """
    A deduplicated entity in the knowledge graph.

    Attributes:
        id: Opaque identifier (immutable)
        entity_type: Classification
        name: Display name
        normalized_name: Comparison key, derived from name and type
        confidence: Extraction confidence (merge keeps the max)
        frequency: Number of mentions folded into this entity
        aliases: Alternative names (grows, never shrinks)
        sources: Observations, unique per (chunk_id, position)
        properties: Free-form attributes (first writer wins on merge)
        metadata: Extraction provenance
        related_entity_ids: Ids of entities linked by relationships
    """

    id: str = Field(default_factory=_new_id, frozen=True)
    entity_type: EntityType
    name: str
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    frequency: int = Field(default=1, ge=0)
    aliases: list[str] = Field(default_factory=list)
    sources: list[EntitySource] = Field(default_factory=list)
    properties: dict[str, Any] = Field(default_factory=dict)
    metadata: EntityMetadata = Field(default_factory=EntityMetadata)
    related_entity_ids: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def normalized_name(self) -> str:
        """Type-aware comparison key for ``name``."""
        # Deferred: the normalizer module imports EntityType from here
        from chunkgraph.ingestion.resolution.normalizer import normalize_name

        return normalize_name(self.name, self.entity_type)

    def add_source(
        self,
        chunk_id: str,
        position: int,
        length: int = 0,
        context: str = "",
        confidence: float = 1.0,
    ) -> bool:
        """
        Record an observation.

        Returns:
            False if an observation at (chunk_id, position) already exists
        """
        return self._append_source(
            EntitySource(
                chunk_id=chunk_id,
                position=position,
                length=length,
                context=context,
                confidence=confidence,
            )
        )

    def _append_source(self, source: EntitySource) -> bool:
        for existing in self.sources:
            if existing.chunk_id == source.chunk_id and existing.position == source.position:
                return False
        self.sources.append(source)
        return True

    def add_alias(self, alias: str) -> bool:
        """
        Add an alternative name.

        Blank strings, the entity's own name and existing aliases are ignored
        (case-insensitively).

        Returns:
            True if the alias was added
        """
        if not alias or not alias.strip():
            return False
        key = alias.strip().lower()
        if key == self.name.strip().lower():
            return False
        if any(existing.strip().lower() == key for existing in self.aliases):
            return False
        self.aliases.append(alias)
        return True

    def add_related_entity(self, entity_id: str) -> None:
        """Link another entity by id."""
        if entity_id != self.id and entity_id not in self.related_entity_ids:
            self.related_entity_ids.append(entity_id)

    def merge(self, other: Entity) -> None:
        """
        Fold ``other`` into this entity.

        Frequency adds, confidence takes the max, sources and aliases are
        unioned, ``other.name`` becomes an alias, and existing properties are
        never overwritten. Merging an entity with itself does nothing.
        """
        if other is None or other.id == self.id:
            return

        self.frequency += other.frequency
        self.confidence = max(self.confidence, other.confidence)

        for source in other.sources:
            self._append_source(source.model_copy())

        for alias in other.aliases:
            self.add_alias(alias)
        self.add_alias(other.name)

        for key, value in other.properties.items():
            self.properties.setdefault(key, value)

        for related_id in other.related_entity_ids:
            self.add_related_entity(related_id)

    def __str__(self) -> str:
        return (
            f"{self.entity_type.value}: {self.name} "
            f"(confidence: {self.confidence:.2f}, frequency: {self.frequency})"
        )
