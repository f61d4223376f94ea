"""Unit tests for result deduplication and entity cross-verification."""

import pytest

from skiptrace.errors import ContractViolationError
from skiptrace.normalization.schema import Entity, EntityType, SearchResult
from skiptrace.scoring.dedupe import cross_verify_entities, deduplicate_results
from skiptrace.settings import get_settings


def _result(title, snippet, confidence):
    return SearchResult(title=title, snippet=snippet, confidence=confidence)


def _phone(confidence, value="(217) 555-0199", source="extraction"):
    return Entity(type=EntityType.PHONE, value=value, confidence=confidence, source=source)


@pytest.mark.parametrize("reverse", [False, True])
def test_keeps_most_confident_duplicate_in_either_order(reverse):
    low = _result("John Smith - Springfield", "John Smith lives in Springfield", 60)
    high = _result("John Smith - Springfield IL", "John Smith lives in Springfield.", 90)
    results = [high, low] if reverse else [low, high]

    unique = deduplicate_results(results)

    assert [result.id for result in unique] == [high.id]


def test_similar_snippet_alone_is_a_duplicate():
    first = _result("Whitepages listing", "John Smith, age 34, Springfield IL", 70)
    second = _result("Court docket 2019", "John Smith, age 34, Springfield, IL", 50)
    assert [result.id for result in deduplicate_results([first, second])] == [first.id]


def test_distinct_results_are_all_kept():
    results = [
        _result("John Smith - Springfield", "John Smith lives in Springfield", 60),
        _result("Jane Doe court record", "Bryan County case filed against Jane Doe", 40),
        _result("Property search", "Parcel 44-1021 owned by a trust", 30),
    ]
    assert deduplicate_results(results) == results


def test_equal_confidence_keeps_first_seen():
    first = _result("John Smith - Springfield", "John Smith lives in Springfield", 60)
    second = _result("John Smith - Springfield", "John Smith lives in Springfield", 60)
    assert [result.id for result in deduplicate_results([first, second])] == [first.id]


def test_newcomer_bridging_two_results_evicts_both():
    """C shares A's snippet and B's title; A and B are unrelated to each other."""
    a = _result("Record one", "John Smith lives in Springfield", 60)
    b = _result("Phone listing", "Jane Doe, Bryan County court records", 50)
    strong = _result("Phone listing", "John Smith lives in Springfield", 90)
    weak = _result("Phone listing", "John Smith lives in Springfield", 55)

    assert [result.id for result in deduplicate_results([a, b, strong])] == [strong.id]
    assert [result.id for result in deduplicate_results([a, b, weak])] == [a.id, b.id]


def test_empty_input():
    assert deduplicate_results([]) == []


@pytest.mark.parametrize("bad", ["not a list", [{"title": "dict"}], None])
def test_dedupe_contract_violations(bad):
    with pytest.raises(ContractViolationError):
        deduplicate_results(bad)


def test_cross_verify_collapses_group():
    entities = [_phone(60, source="a"), _phone(70, source="b"), _phone(80, source="c")]

    verified = cross_verify_entities(entities)

    assert len(verified) == 1
    assert verified[0].confidence == 90
    assert verified[0].verified is True
    assert verified[0].source == "c"
    assert verified[0].metadata["corroborations"] == 3


def test_cross_verify_singleton_is_identity():
    entity = _phone(42)
    assert cross_verify_entities([entity])[0] is entity


def test_cross_verify_preserves_first_seen_order():
    email = Entity(type=EntityType.EMAIL, value="jsmith@acme.io", confidence=70)
    entities = [_phone(60), email, _phone(65)]
    verified = cross_verify_entities(entities)
    assert [entity.type for entity in verified] == [EntityType.PHONE, EntityType.EMAIL]


def test_same_value_different_type_not_grouped():
    name = Entity(type=EntityType.NAME, value="Jane Smith", confidence=50)
    relative = Entity(type=EntityType.RELATIVE, value="Jane Smith", confidence=55)
    assert len(cross_verify_entities([name, relative])) == 2


def test_cross_verify_boost_override_and_clamp():
    assert cross_verify_entities([_phone(60), _phone(60)], boost=15)[0].confidence == 75
    assert cross_verify_entities([_phone(98), _phone(97), _phone(96)])[0].confidence == 100


def test_cross_verify_boost_from_settings():
    base = get_settings()
    settings = base.model_copy(update={"scoring": base.scoring.model_copy(update={"corroboration_boost": 20})})
    assert cross_verify_entities([_phone(50), _phone(50)], settings=settings)[0].confidence == 70


def test_cross_verify_rejects_non_entities():
    with pytest.raises(ContractViolationError):
        cross_verify_entities(["(217) 555-0199"])
