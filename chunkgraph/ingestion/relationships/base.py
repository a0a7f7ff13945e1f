"""
Abstract Relationship Extractor Interface

Base class for anything that turns resolved entities plus their source
chunks into candidate relationships.
"""

from abc import ABC, abstractmethod

from chunkgraph.types import Chunk, Entity, Relationship, RelationshipType
from chunkgraph.utils.cancellation import CancellationToken


class RelationshipExtractor(ABC):
    """Abstract interface for relationship extractors."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Extractor name, recorded in relationship metadata."""
        ...

    @property
    @abstractmethod
    def version(self) -> str:
        """Extractor version, recorded in relationship metadata."""
        ...

    @property
    @abstractmethod
    def supported_relationship_types(self) -> tuple[RelationshipType, ...]:
        """Relationship types this extractor can produce."""
        ...

    @abstractmethod
    def extract_relationships(
        self,
        entities: list[Entity],
        chunks: list[Chunk],
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[Relationship]:
        """Extract candidate relationships. Must not mutate its inputs."""
        ...
