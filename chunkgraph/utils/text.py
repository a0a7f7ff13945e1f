"""
Text Processing Utilities

Functions for whitespace normalization and evidence snippets.
"""

from __future__ import annotations

import hashlib
import re

_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Trim and collapse internal runs of whitespace to a single space."""
    return _WHITESPACE.sub(" ", text.strip())


def context_snippet(text: str, start: int, end: int, window: int = 100) -> str:
    """
    Cut a snippet covering ``text[start:end]`` plus ``window`` chars each side.

    Truncated edges are marked with "...".

    Args:
        text: Full chunk text
        start: Start offset of the region of interest
        end: End offset of the region of interest (exclusive)
        window: Characters of context to keep on each side

    Returns:
        The snippet, or "" for empty text
    """
    if not text:
        return ""
    lo = max(0, min(start, end) - window)
    hi = min(len(text), max(start, end) + window)
    snippet = text[lo:hi]
    if lo > 0:
        snippet = "..." + snippet
    if hi < len(text):
        snippet += "..."
    return snippet


def cache_key_for(content: str) -> str:
    """Stable cache key for a chunk's text: SHA-256 hex digest."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
