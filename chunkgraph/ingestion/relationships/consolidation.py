"""
Relationship Consolidation

Merges repeated observations of the same edge into one relationship and
rescales weights across the batch.

Steps:
    1. Group by consolidation key: (type, source, target), with the
       endpoints unordered for bidirectional edges
    2. Merge each group into its first member (weights add, confidence max,
       evidence unioned by (chunk_id, context))
    3. Rescale so the strongest edge has weight 1.0

Inputs are copied before merging; the caller's relationships are untouched.
"""

from __future__ import annotations

import logging

from chunkgraph.types import Relationship
from chunkgraph.utils.cancellation import CancellationToken, check_cancelled

logger = logging.getLogger(__name__)


def normalize_weights(relationships: list[Relationship]) -> None:
    """
    Scale weights in place so the maximum becomes 1.0.

    A batch whose maximum weight is 0 is left as is.
    """
    if not relationships:
        return
    max_weight = max(r.weight for r in relationships)
    if max_weight <= 0:
        return
    for relationship in relationships:
        relationship.weight = relationship.weight / max_weight


def consolidate_relationships(
    relationships: list[Relationship],
    *,
    cancel_token: CancellationToken | None = None,
) -> list[Relationship]:
    """
    Consolidate a batch of candidate relationships.

    Args:
        relationships: Candidates, possibly repeating the same edge
        cancel_token: Checked between relationships

    Returns:
        One relationship per edge, in order of first appearance, with
        weights rescaled to a maximum of 1.0
    """
    if not relationships:
        return []

    merged: dict[tuple[str, str, str], Relationship] = {}
    for relationship in relationships:
        check_cancelled(cancel_token, "Relationship consolidation")

        key = relationship.consolidation_key()
        existing = merged.get(key)
        if existing is None:
            merged[key] = relationship.model_copy(deep=True)
        else:
            existing.merge(relationship)

    consolidated = list(merged.values())
    normalize_weights(consolidated)

    logger.debug(
        f"Consolidated {len(relationships)} relationships into {len(consolidated)}"
    )
    return consolidated
