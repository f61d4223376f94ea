"""Unit tests for the per-entity confidence heuristics."""

import pytest

from skiptrace.errors import ContractViolationError
from skiptrace.normalization.schema import Entity, EntityType, SearchContext
from skiptrace.scoring.confidence import (
    address_confidence,
    combine_confidence,
    cross_reference_entities,
    email_confidence,
    fixed_confidence,
    is_verified,
    name_confidence,
    phone_confidence,
    to_percent_scale,
    to_unit_scale,
    validate_entity,
)

SPRINGFIELD = SearchContext(name="John Smith", city="Springfield", state="IL")


@pytest.mark.parametrize(
    ("phone", "context", "expected"),
    [
        # base 50 + format 15 + known area code 15 + not toll-free 5
        ("(217) 555-0199", None, 85),
        # ... + city in region 20 + state match 10, clamped
        ("(217) 555-0199", SPRINGFIELD, 100),
        # unknown area code keeps the entity without the lookup bonus
        ("(999) 555-0100", None, 70),
        # toll-free, unknown: base + format only
        ("(800) 555-0100", None, 65),
        ("(800) 555-0100", SearchContext(name="A B", phone="800-555-9999"), 80),
        ("(800) 555-0100", SearchContext(name="A B", phone="1 (800) 555-0100"), 95),
    ],
)
def test_phone_confidence(phone, context, expected):
    assert phone_confidence(phone, context) == expected


@pytest.mark.parametrize(
    ("address", "context", "expected"),
    [
        # base 20 + house number 5 + street 10 + street format 10
        ("123 Main St", None, 45),
        # ... + searched city named in the address 20
        ("123 Main St, Springfield", SPRINGFIELD, 65),
        # base 20 + complete 30 + known state 15 + street format 10
        ("123 Main St, Springfield, IL 62701", None, 75),
        ("123 Main St Apt 4, Springfield, IL 62701", None, 75),
        ("PO Box 12", None, 20),
    ],
)
def test_address_confidence(address, context, expected):
    assert address_confidence(address, context) == expected


def test_address_context_state_by_name():
    context = SearchContext(name="John Smith", state="Illinois")
    # base 20 + house number 5 + state 10 + known state 15 + context state 10
    assert address_confidence("123 Main, IL", context) == 60


def test_address_in_searched_area_outscores_other_areas():
    address = "123 Main St, Springfield, IL 62701"
    elsewhere = SearchContext(name="John Smith", city="Tulsa", state="OK")

    matching = address_confidence(address, SPRINGFIELD)
    mismatching = address_confidence(address, elsewhere)

    assert matching > mismatching
    assert mismatching == address_confidence(address)


def test_bare_street_is_not_verified_by_itself():
    assert not is_verified(address_confidence("123 Main St"), 75)


@pytest.mark.parametrize(
    ("email", "context", "expected"),
    [
        ("jane@gmail.com", None, 60),
        ("jane@acme.io", None, 70),
        ("jane@acme.io", SearchContext(name="Jane Roe", email="JANE@acme.io"), 100),
    ],
)
def test_email_confidence(email, context, expected):
    assert email_confidence(email, context) == expected


def test_name_confidence():
    assert name_confidence("Jane Smith", SPRINGFIELD) == 65
    assert name_confidence("Mary Jones", SPRINGFIELD) == 50
    assert name_confidence("John Doe") == 40


def test_fixed_confidence_tiers():
    assert fixed_confidence(EntityType.VIN) == 95
    assert fixed_confidence(EntityType.VEHICLE) == 70
    assert fixed_confidence(EntityType.AGE) == 85
    for entity_type in (EntityType.RELATIVE, EntityType.EMPLOYMENT, EntityType.EDUCATION, EntityType.LEGAL):
        assert 55 <= fixed_confidence(entity_type) <= 75


def test_scale_conversion():
    assert to_unit_scale(85) == pytest.approx(0.85)
    assert to_unit_scale(150) == 1.0
    assert to_percent_scale(0.42) == 42


@pytest.mark.parametrize(
    ("original", "recalculated", "expected"),
    [
        (80, 40, 80),  # a weaker recalculation never lowers the score
        (50, 100, 65),  # 0.7 * 0.5 + 0.3 * 1.0
        (100, 100, 99),  # capped at MAX_CONFIDENCE
        (0, 0, 5),  # floored at MIN_CONFIDENCE
    ],
)
def test_combine_confidence(original, recalculated, expected):
    assert combine_confidence(original, recalculated) == expected


def test_validate_entity_noreply_penalty():
    entity = Entity(type=EntityType.EMAIL, value="noreply@acme.io", confidence=80, verified=True)
    validated = validate_entity(entity, threshold=75)
    assert validated.confidence == 60
    assert validated.verified is False
    assert entity.confidence == 80


def test_validate_entity_address_without_digits():
    entity = Entity(type=EntityType.ADDRESS, value="Main Street", confidence=10)
    assert validate_entity(entity).confidence == 0


def test_validate_entity_untouched_returns_same_object():
    entity = Entity(type=EntityType.PHONE, value="(217) 555-0199", confidence=72)
    assert validate_entity(entity) is entity


def test_cross_reference_enriches_phone_and_address():
    phone = Entity(type=EntityType.PHONE, value="(217) 555-0199", confidence=72, metadata={"area_code": "217"})
    address = Entity(type=EntityType.ADDRESS, value="123 Main St, Springfield, IL 62701", confidence=50)
    unknown = Entity(type=EntityType.PHONE, value="(999) 555-0100", confidence=70)

    enriched_phone, enriched_address, untouched = cross_reference_entities([phone, address, unknown], threshold=75)

    assert enriched_phone.confidence == 77
    assert enriched_phone.verified is True
    assert enriched_phone.metadata["state_code"] == "IL"
    assert enriched_phone.metadata["geographic_region"] == "Central Illinois"
    assert "Springfield" in enriched_phone.metadata["major_cities"]
    assert enriched_address.confidence == 55
    assert enriched_address.metadata["state_name"] == "Illinois"
    assert untouched.confidence == 70
    assert untouched.verified is False


def test_cross_reference_rejects_non_entities():
    with pytest.raises(ContractViolationError):
        cross_reference_entities([{"type": "phone"}])
