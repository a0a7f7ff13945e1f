"""Tests for in-batch entity resolution."""

import pytest

from chunkgraph.exceptions import InvalidArgumentError, OperationCancelledError
from chunkgraph.ingestion.resolution import EntityResolver, edit_distance, name_similarity
from chunkgraph.types import Entity, EntityType
from chunkgraph.utils.cancellation import CancellationToken


def _entity(
    name: str,
    entity_type: EntityType = EntityType.ORGANIZATION,
    confidence: float = 1.0,
    chunk_id: str = "chunk1",
    position: int = 0,
    **kwargs,
) -> Entity:
    entity = Entity(entity_type=entity_type, name=name, confidence=confidence, **kwargs)
    entity.add_source(chunk_id, position, len(name))
    return entity


class TestEditDistance:
    """Tests for edit_distance."""

    @pytest.mark.parametrize(
        "a,b,expected",
        [
            ("kitten", "sitting", 3),
            ("flaw", "lawn", 2),
            ("", "abc", 3),
            ("abc", "", 3),
            ("same", "same", 0),
            ("microsoft", "microsft", 1),
            ("a", "b", 1),
        ],
    )
    def test_known_distances(self, a, b, expected):
        """Classic Levenshtein distances."""
        assert edit_distance(a, b) == expected

    def test_symmetric(self):
        """Distance does not depend on argument order."""
        assert edit_distance("sunday", "saturday") == edit_distance("saturday", "sunday") == 3


class TestNameSimilarity:
    """Tests for name_similarity."""

    def test_identical_strings(self):
        """Equal strings score 1.0."""
        assert name_similarity("azure", "azure") == 1.0

    def test_empty_string_scores_zero(self):
        """An empty string against a non-empty one scores 0.0."""
        assert name_similarity("", "azure") == 0.0
        assert name_similarity("azure", "") == 0.0

    def test_symmetric(self):
        """Similarity is symmetric."""
        assert name_similarity("microsoft corp.", "microsoft corporation") == name_similarity(
            "microsoft corporation", "microsoft corp."
        )

    def test_value(self):
        """One edit in nine characters."""
        assert name_similarity("microsoft", "microsft") == pytest.approx(1 - 1 / 9)


class TestResolve:
    """Tests for EntityResolver.resolve."""

    def test_empty_input(self):
        """No entities in, no entities out."""
        assert EntityResolver().resolve([]) == []

    def test_legal_suffix_variants_merge(self):
        """'Microsoft Corporation' and 'Microsoft Corp.' become one entity."""
        corporation = _entity("Microsoft Corporation", confidence=0.9)
        corp = _entity("Microsoft Corp.", confidence=0.8, position=40)

        resolved = EntityResolver(similarity_threshold=0.85).resolve([corporation, corp])

        assert len(resolved) == 1
        merged = resolved[0]
        assert merged.id == corporation.id
        assert merged.name == "Microsoft Corporation"
        assert "Microsoft Corp." in merged.aliases
        assert merged.frequency == 2
        assert len(merged.sources) == 2

    def test_case_insensitive_names_merge(self):
        """Names equal after normalization merge."""
        resolved = EntityResolver().resolve([_entity("OpenAI"), _entity("openai ", position=30)])
        assert len(resolved) == 1

    def test_similar_names_merge_above_threshold(self):
        """A one-letter typo merges at the default threshold."""
        resolved = EntityResolver().resolve([_entity("Microsoft"), _entity("Microsft", position=20)])
        assert len(resolved) == 1

    def test_similar_names_stay_apart_at_strict_threshold(self):
        """The same typo does not merge at threshold 1.0."""
        resolver = EntityResolver(similarity_threshold=1.0)
        resolved = resolver.resolve([_entity("Microsoft"), _entity("Microsft", position=20)])
        assert len(resolved) == 2

    def test_stored_alias_matches_other_name(self):
        """An alias equivalent to the other entity's name is enough."""
        big_blue = _entity("Big Blue", aliases=["IBM"])
        ibm = _entity("ibm", position=50)
        resolved = EntityResolver().resolve([big_blue, ibm])
        assert len(resolved) == 1

    def test_different_types_never_merge(self):
        """Same name with different types stays separate."""
        resolved = EntityResolver().resolve(
            [_entity("Apple", EntityType.ORGANIZATION), _entity("Apple", EntityType.KEYWORD)]
        )
        assert len(resolved) == 2

    def test_unrelated_names_stay_apart(self):
        """Dissimilar names are not merged."""
        resolved = EntityResolver().resolve([_entity("Google"), _entity("Amazon")])
        assert len(resolved) == 2

    def test_never_grows(self):
        """Resolution never produces more entities than it received."""
        entities = [
            _entity("Google"),
            _entity("google", position=10),
            _entity("Alphabet Inc.", position=20),
            _entity("Alphabet", position=30),
            _entity("Seattle", EntityType.LOCATION, position=40),
        ]
        resolved = EntityResolver().resolve(entities)
        assert len(resolved) == 3

    def test_resolving_twice_changes_nothing(self):
        """Resolving an already resolved batch is a no-op."""
        entities = [
            _entity("Microsoft Corporation"),
            _entity("Microsoft Corp.", position=30),
            _entity("Azure", EntityType.PRODUCT, position=60),
            _entity("azure", EntityType.PRODUCT, position=90),
        ]
        resolver = EntityResolver()
        once = resolver.resolve(entities)
        twice = resolver.resolve(once)

        assert [e.id for e in twice] == [e.id for e in once]
        assert [e.frequency for e in twice] == [e.frequency for e in once]

    def test_survivor_name_chain_is_resolved(self):
        """A name close only to the merged survivor still joins its cluster."""
        entities = [
            _entity("abcdefghij", EntityType.CONCEPT, confidence=0.5),
            _entity("abcdefghik", EntityType.CONCEPT, confidence=0.9, position=20),
            _entity("abcdefghkk", EntityType.CONCEPT, confidence=0.5, position=40),
        ]
        resolver = EntityResolver()
        once = resolver.resolve(entities)
        twice = resolver.resolve(once)

        assert len(once) == 1
        assert once[0].name == "abcdefghik"
        assert once[0].frequency == 3
        assert [e.id for e in twice] == [e.id for e in once]
        assert twice[0].frequency == 3

    def test_inputs_are_not_mutated(self):
        """Merging copies the survivor instead of changing it."""
        first = _entity("OpenAI")
        second = _entity("openai", position=30)

        EntityResolver().resolve([first, second])

        assert first.frequency == 1
        assert first.aliases == []
        assert len(first.sources) == 1

    def test_cancelled_token_aborts(self):
        """A cancelled token raises OperationCancelledError."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            EntityResolver().resolve([_entity("A corp"), _entity("B corp")], cancel_token=token)

    def test_invalid_threshold(self):
        """Thresholds outside [0, 1] are rejected."""
        with pytest.raises(InvalidArgumentError):
            EntityResolver(similarity_threshold=1.5)


class TestMergeEntities:
    """Tests for EntityResolver.merge_entities."""

    def test_empty_list_raises(self):
        """Merging nothing is a programmer error."""
        with pytest.raises(InvalidArgumentError):
            EntityResolver().merge_entities([])

    def test_empty_list_is_value_error(self):
        """InvalidArgumentError is also a ValueError."""
        with pytest.raises(ValueError):
            EntityResolver().merge_entities([])

    def test_single_entity_returned_unchanged(self):
        """A one-element list returns that element."""
        entity = _entity("Azure")
        assert EntityResolver().merge_entities([entity]) is entity

    def test_highest_confidence_survives(self):
        """The most confident entity keeps its id and name."""
        low = _entity("MSFT", confidence=0.4)
        high = _entity("Microsoft", confidence=0.95, position=10)

        merged = EntityResolver().merge_entities([low, high])

        assert merged.id == high.id
        assert merged.name == "Microsoft"
        assert merged.confidence == 0.95
        assert "MSFT" in merged.aliases

    def test_tie_goes_to_first(self):
        """On equal confidence the first entity survives."""
        first = _entity("Alpha", confidence=0.7)
        second = _entity("Alpha Co.", confidence=0.7, position=10)

        merged = EntityResolver().merge_entities([first, second])

        assert merged.id == first.id

    def test_duplicate_sources_collapse(self):
        """The same (chunk, position) observation is kept once."""
        a = _entity("Azure", position=5)
        b = _entity("azure", position=5)

        merged = EntityResolver().merge_entities([a, b])

        assert len(merged.sources) == 1
        assert merged.frequency == 2

    def test_properties_first_writer_wins(self):
        """Existing properties are never overwritten."""
        a = _entity("Azure", properties={"ticker": "MSFT"})
        b = _entity("azure", position=9, properties={"ticker": "XXX", "region": "global"})

        merged = EntityResolver().merge_entities([a, b])

        assert merged.properties == {"ticker": "MSFT", "region": "global"}

    def test_merge_order_does_not_change_aggregate_state(self):
        """Frequency, names and sources do not depend on merge order."""
        entities = [
            _entity("Alpha", confidence=0.5, position=0),
            _entity("ALPHA", confidence=0.5, position=10),
            _entity("alpha ", confidence=0.5, chunk_id="chunk2", position=0),
        ]
        resolver = EntityResolver()

        forward = resolver.merge_entities(entities)
        backward = resolver.merge_entities(list(reversed(entities)))

        def names(entity: Entity) -> set[str]:
            return {entity.name.strip().lower(), *(a.strip().lower() for a in entity.aliases)}

        def sources(entity: Entity) -> set[tuple[str, int]]:
            return {(s.chunk_id, s.position) for s in entity.sources}

        assert forward.frequency == backward.frequency == 3
        assert names(forward) == names(backward)
        assert sources(forward) == sources(backward)


class TestAreDuplicates:
    """Tests for EntityResolver.are_duplicates."""

    def test_generated_alias_match(self):
        """Generated person aliases count as a match."""
        resolver = EntityResolver()
        assert resolver.are_duplicates(
            _entity("John Smith", EntityType.PERSON),
            _entity("Smith, John", EntityType.PERSON),
        )

    def test_type_mismatch(self):
        """Different types are never duplicates."""
        resolver = EntityResolver()
        assert not resolver.are_duplicates(
            _entity("Jordan", EntityType.PERSON),
            _entity("Jordan", EntityType.LOCATION),
        )
