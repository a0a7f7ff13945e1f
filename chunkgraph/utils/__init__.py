"""
Utility Functions

Helpers shared across the pipeline.

Modules:
    cancellation: Cooperative cancellation token
    text: Whitespace normalization, evidence snippets, cache keys
"""

from chunkgraph.utils.cancellation import CancellationToken, check_cancelled
from chunkgraph.utils.text import cache_key_for, collapse_whitespace, context_snippet

__all__ = [
    "CancellationToken",
    "check_cancelled",
    "cache_key_for",
    "collapse_whitespace",
    "context_snippet",
]
