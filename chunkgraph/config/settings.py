"""
GraphConfig - Configuration Management

Sensible defaults with full override capability.

Example:
    >>> # Use defaults (reads from environment)
    >>> builder = GraphBuilder()

    >>> # Explicit configuration
    >>> config = GraphConfig(
    ...     similarity_threshold=0.9,
    ...     max_cooccurrence_distance=250,
    ... )
    >>> builder = GraphBuilder(config=config)

    >>> # From config file
    >>> config = GraphConfig.from_file("./chunkgraph.toml")

Environment Variables:
    CHUNKGRAPH_SIMILARITY_THRESHOLD - Entity name similarity threshold (0-1)
    CHUNKGRAPH_MAX_COOCCURRENCE_DISTANCE - Max character distance for co-occurrence
    CHUNKGRAPH_MIN_RELATIONSHIP_CONFIDENCE - Drop relationships below this (0-1)
    CHUNKGRAPH_MIN_ENTITY_CONFIDENCE - Drop candidate entities below this (0-1)
    CHUNKGRAPH_CACHE_TTL_SECONDS - Enrichment cache entry lifetime
    CHUNKGRAPH_ENRICHMENT_CONCURRENCY - Max concurrent enrichment calls
    CHUNKGRAPH_GRAPH_NAME - Default graph name
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, cast

# TOML support: tomllib is built-in for Python 3.11+, use tomli for 3.10
try:
    import tomllib

    def _load_toml(path: Path) -> dict[str, Any]:
        with open(path, "rb") as f:
            return cast(dict[str, Any], tomllib.load(f))

except ImportError:
    import tomli

    def _load_toml(path: Path) -> dict[str, Any]:
        with open(path, "rb") as f:
            return cast(dict[str, Any], tomli.load(f))


def _toml_scalar(value: str | int | float | bool) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return repr(value)


class GraphConfig:
    """Configuration for chunkgraph."""

    # === Resolution ===

    similarity_threshold: float = 0.85
    """Normalized-name similarity at or above which two entities are duplicates"""

    min_entity_confidence: float = 0.0
    """Candidate entities below this confidence are dropped before resolution"""

    enable_entity_resolution: bool = True
    """Deduplicate entities before relationship extraction"""

    # === Relationships ===

    max_cooccurrence_distance: int = 500
    """Maximum character distance between mention midpoints"""

    min_relationship_confidence: float = 0.3
    """Co-occurrence candidates below this confidence are dropped"""

    context_window: int = 100
    """Characters of surrounding text kept in evidence and source snippets"""

    enable_relationship_extraction: bool = True
    """Infer co-occurrence relationships"""

    # === Enrichment ===

    enable_caching: bool = True
    """Cache per-chunk enrichment output"""

    cache_ttl_seconds: float = 86400.0
    """Enrichment cache entry lifetime (24 hours)"""

    enrichment_concurrency: int = 5
    """Max concurrent per-chunk enrichment calls"""

    include_keywords: bool = True
    """Turn enrichment keywords into Keyword entities"""

    # === Graph ===

    graph_name: str = "document_graph"
    """Default name for built graphs"""

    build_indexes: bool = True
    """Build lookup indexes once the graph is populated"""

    compute_statistics: bool = True
    """Compute a statistics snapshot once the graph is populated"""

    validate_graph: bool = True
    """Validate the graph and report violations as errors"""

    def __init__(self, **kwargs: Any) -> None:
        """
        Initialize configuration.

        Args:
            **kwargs: Override any configuration option
        """
        # Load from environment first
        self._load_from_env()

        # Apply explicit overrides
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
            else:
                raise ValueError(f"Unknown configuration option: {key}")

    def _load_from_env(self) -> None:
        """Load configuration from environment variables."""
        import os

        if threshold := os.getenv("CHUNKGRAPH_SIMILARITY_THRESHOLD"):
            self.similarity_threshold = float(threshold)
        if distance := os.getenv("CHUNKGRAPH_MAX_COOCCURRENCE_DISTANCE"):
            self.max_cooccurrence_distance = int(distance)
        if confidence := os.getenv("CHUNKGRAPH_MIN_RELATIONSHIP_CONFIDENCE"):
            self.min_relationship_confidence = float(confidence)
        if confidence := os.getenv("CHUNKGRAPH_MIN_ENTITY_CONFIDENCE"):
            self.min_entity_confidence = float(confidence)
        if ttl := os.getenv("CHUNKGRAPH_CACHE_TTL_SECONDS"):
            self.cache_ttl_seconds = float(ttl)
        if concurrency := os.getenv("CHUNKGRAPH_ENRICHMENT_CONCURRENCY"):
            self.enrichment_concurrency = int(concurrency)
        if name := os.getenv("CHUNKGRAPH_GRAPH_NAME"):
            self.graph_name = name

    @classmethod
    def from_file(cls, path: str | Path) -> "GraphConfig":
        """
        Load configuration from TOML file.

        The TOML file can contain any configuration option as a key.
        Known sections are flattened into option names.

        Example TOML:
            [resolution]
            similarity_threshold = 0.9

            [relationships]
            max_cooccurrence_distance = 250
            min_relationship_confidence = 0.4

            [enrichment]
            cache_ttl_seconds = 3600

        Args:
            path: Path to TOML configuration file

        Returns:
            GraphConfig instance with values from file

        Raises:
            FileNotFoundError: If config file doesn't exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        data = _load_toml(path)

        flat_config: dict[str, Any] = {}
        sections = ("resolution", "relationships", "enrichment", "graph")

        for section in sections:
            if section in data:
                flat_config.update(data[section])

        # Also support flat top-level keys
        for key, value in data.items():
            if key not in sections and not isinstance(value, dict):
                flat_config[key] = value

        return cls(**flat_config)

    @classmethod
    def from_env(cls) -> "GraphConfig":
        """Load configuration from environment variables only."""
        return cls()

    def to_file(self, path: str | Path) -> None:
        """
        Save configuration to TOML file.

        Args:
            path: Path to write TOML configuration file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        sections: dict[str, dict[str, str | int | float | bool]] = {
            "resolution": {
                "similarity_threshold": self.similarity_threshold,
                "min_entity_confidence": self.min_entity_confidence,
                "enable_entity_resolution": self.enable_entity_resolution,
            },
            "relationships": {
                "max_cooccurrence_distance": self.max_cooccurrence_distance,
                "min_relationship_confidence": self.min_relationship_confidence,
                "context_window": self.context_window,
                "enable_relationship_extraction": self.enable_relationship_extraction,
            },
            "enrichment": {
                "enable_caching": self.enable_caching,
                "cache_ttl_seconds": self.cache_ttl_seconds,
                "enrichment_concurrency": self.enrichment_concurrency,
                "include_keywords": self.include_keywords,
            },
            "graph": {
                "graph_name": self.graph_name,
                "build_indexes": self.build_indexes,
                "compute_statistics": self.compute_statistics,
                "validate_graph": self.validate_graph,
            },
        }

        # tomllib cannot write TOML
        lines = ["# chunkgraph configuration", ""]
        for section_name, section_values in sections.items():
            lines.append(f"[{section_name}]")
            lines.extend(f"{key} = {_toml_scalar(value)}" for key, value in section_values.items())
            lines.append("")

        path.write_text("\n".join(lines))

    def with_overrides(self, **kwargs: Any) -> "GraphConfig":
        """Return new config with specified overrides."""
        new_config = GraphConfig.__new__(GraphConfig)
        for key in dir(self):
            if not key.startswith("_") and not callable(getattr(self, key)):
                setattr(new_config, key, getattr(self, key))
        for key, value in kwargs.items():
            if not hasattr(new_config, key):
                raise ValueError(f"Unknown configuration option: {key}")
            setattr(new_config, key, value)
        return new_config

    def validate(self) -> list[str]:
        """
        Check option ranges.

        Returns:
            List of problems; empty when the configuration is usable
        """
        errors: list[str] = []

        for name in (
            "similarity_threshold",
            "min_relationship_confidence",
            "min_entity_confidence",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                errors.append(f"{name} must be between 0.0 and 1.0 (got {value}).")

        if self.max_cooccurrence_distance < 1:
            errors.append("max_cooccurrence_distance must be at least 1.")
        if self.context_window < 0:
            errors.append("context_window cannot be negative.")
        if self.cache_ttl_seconds <= 0:
            errors.append("cache_ttl_seconds must be positive.")
        if self.enrichment_concurrency < 1:
            errors.append("enrichment_concurrency must be at least 1.")
        if not self.graph_name or not self.graph_name.strip():
            errors.append("graph_name cannot be empty.")

        return errors
