"""
Entity Extraction

Modules:
    base: EntityExtractor interface
    keywords: TF-IDF keyword extractor (no model calls)
"""

from chunkgraph.ingestion.extraction.base import EntityExtractor
from chunkgraph.ingestion.extraction.keywords import KeywordExtractor

__all__ = [
    "EntityExtractor",
    "KeywordExtractor",
]
