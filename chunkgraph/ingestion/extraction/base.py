"""
Abstract Entity Extractor Interface

Base class for anything that reads chunks and produces raw candidate
entities for resolution.
"""

from abc import ABC, abstractmethod

from chunkgraph.types import Chunk, Entity, EntityType
from chunkgraph.utils.cancellation import CancellationToken


class EntityExtractor(ABC):
    """Abstract interface for entity extractors."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Extractor name, recorded in entity metadata."""
        ...

    @property
    @abstractmethod
    def version(self) -> str:
        """Extractor version, recorded in entity metadata."""
        ...

    @property
    @abstractmethod
    def supported_entity_types(self) -> tuple[EntityType, ...]:
        """Entity types this extractor can produce."""
        ...

    @abstractmethod
    def extract_entities(
        self,
        chunks: list[Chunk],
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[Entity]:
        """Extract candidate entities, each with its source observations."""
        ...
