"""
Configuration System

Manages configuration for chunkgraph with a layered approach.

Configuration Priority (highest to lowest):
    1. Programmatic (passed to GraphConfig(), or read by GraphConfig.from_file)
    2. Environment variables (CHUNKGRAPH_* prefix)
    3. Built-in defaults

Modules:
    settings: GraphConfig class
"""

from chunkgraph.config.settings import GraphConfig

__all__ = ["GraphConfig"]
