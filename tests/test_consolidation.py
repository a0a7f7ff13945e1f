"""Tests for relationship consolidation."""

import pytest

from chunkgraph.exceptions import OperationCancelledError
from chunkgraph.ingestion.relationships import consolidate_relationships, normalize_weights
from chunkgraph.types import MIN_DISTANCE_PROPERTY, Relationship, RelationshipType
from chunkgraph.utils.cancellation import CancellationToken


def _mention(
    source: str,
    target: str,
    weight: float = 1.0,
    confidence: float = 0.5,
    chunk_id: str = "chunk1",
    context: str = "ctx",
    relationship_type: RelationshipType = RelationshipType.MENTIONS,
    bidirectional: bool = True,
    properties: dict | None = None,
) -> Relationship:
    relationship = Relationship(
        relationship_type=relationship_type,
        source_id=source,
        target_id=target,
        weight=weight,
        confidence=confidence,
        bidirectional=bidirectional,
        properties=properties or {},
    )
    relationship.add_evidence(chunk_id, context, confidence)
    return relationship


class TestConsolidateRelationships:
    """Tests for consolidate_relationships."""

    def test_empty_batch(self):
        """Nothing in, nothing out."""
        assert consolidate_relationships([]) == []

    def test_same_pair_merges(self):
        """Repeated observations of one pair become a single edge."""
        first = _mention("a", "b", confidence=0.4, chunk_id="chunk1")
        second = _mention("a", "b", confidence=0.9, chunk_id="chunk2")

        consolidated = consolidate_relationships([first, second])

        assert len(consolidated) == 1
        edge = consolidated[0]
        assert edge.confidence == 0.9
        assert [e.chunk_id for e in edge.evidence] == ["chunk1", "chunk2"]
        assert edge.weight == pytest.approx(1.0)

    def test_reversed_bidirectional_pair_merges(self):
        """Bidirectional edges ignore endpoint order."""
        consolidated = consolidate_relationships([_mention("a", "b"), _mention("b", "a", chunk_id="chunk2")])
        assert len(consolidated) == 1

    def test_reversed_directed_pair_stays_apart(self):
        """Directed edges keep their direction."""
        consolidated = consolidate_relationships(
            [
                _mention("a", "b", relationship_type=RelationshipType.WORKS_FOR, bidirectional=False),
                _mention("b", "a", relationship_type=RelationshipType.WORKS_FOR, bidirectional=False),
            ]
        )
        assert len(consolidated) == 2

    def test_different_types_stay_apart(self):
        """Type is part of the edge identity."""
        consolidated = consolidate_relationships(
            [
                _mention("a", "b"),
                _mention("a", "b", relationship_type=RelationshipType.COOCCURS_WITH),
            ]
        )
        assert len(consolidated) == 2

    def test_duplicate_evidence_removed(self):
        """Evidence with the same (chunk, context) is kept once."""
        consolidated = consolidate_relationships(
            [_mention("a", "b", context="same"), _mention("a", "b", context="same")]
        )
        assert len(consolidated[0].evidence) == 1

    def test_weights_rescaled_to_max_one(self):
        """The strongest edge ends at 1.0, others scale proportionally."""
        consolidated = consolidate_relationships(
            [
                _mention("a", "b", weight=1.0),
                _mention("a", "b", weight=1.0, chunk_id="chunk2"),
                _mention("a", "c", weight=1.0),
            ]
        )

        weights = {(r.source_id, r.target_id): r.weight for r in consolidated}
        assert weights[("a", "b")] == pytest.approx(1.0)
        assert weights[("a", "c")] == pytest.approx(0.5)
        assert max(weights.values()) == pytest.approx(1.0)

    def test_min_distance_keeps_smallest(self):
        """MinDistance is the smallest observed distance."""
        consolidated = consolidate_relationships(
            [
                _mention("a", "b", properties={MIN_DISTANCE_PROPERTY: 120.0}),
                _mention("a", "b", chunk_id="chunk2", properties={MIN_DISTANCE_PROPERTY: 40.0}),
            ]
        )
        assert consolidated[0].properties[MIN_DISTANCE_PROPERTY] == 40.0

    def test_inputs_are_not_mutated(self):
        """The caller's relationships keep their weight and evidence."""
        first = _mention("a", "b", weight=3.0)
        second = _mention("a", "b", weight=1.0, chunk_id="chunk2")

        consolidate_relationships([first, second])

        assert first.weight == 3.0
        assert len(first.evidence) == 1

    def test_first_observation_keeps_its_id(self):
        """The merged edge carries the id of its first observation."""
        first = _mention("a", "b")
        consolidated = consolidate_relationships([first, _mention("b", "a", chunk_id="chunk2")])
        assert consolidated[0].id == first.id

    def test_cancelled_token_aborts(self):
        """A cancelled token raises."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            consolidate_relationships([_mention("a", "b")], cancel_token=token)


class TestNormalizeWeights:
    """Tests for normalize_weights."""

    def test_all_zero_weights_untouched(self):
        """A batch with max weight 0 is left alone."""
        relationships = [_mention("a", "b", weight=0.0), _mention("a", "c", weight=0.0)]
        normalize_weights(relationships)
        assert [r.weight for r in relationships] == [0.0, 0.0]

    def test_empty_list(self):
        """An empty batch is fine."""
        normalize_weights([])
