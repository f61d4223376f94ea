"""Unit tests for phone number intelligence."""

import pytest

from skiptrace.extraction.phone_intel import (
    INVALID_FORMAT,
    analyze_phone_batch,
    analyze_phone_number,
    determine_line_type,
    phone_recommendations,
)
from skiptrace.normalization.schema import SearchContext


def test_local_number_with_matching_context():
    context = SearchContext(name="John Smith", city="Springfield", state="IL")
    intel = analyze_phone_number("217-555-0199", context)

    assert intel.number == "(217) 555-0199"
    assert (intel.area_code, intel.exchange, intel.line_number) == ("217", "555", "0199")
    assert intel.region.region == "Central Illinois"
    assert intel.confidence == 100
    assert intel.risk_factors == [
        "Repetitive digit pattern (potentially fake)",
        "Common fake/test exchange",
    ]


def test_sequential_exchange_flagged():
    intel = analyze_phone_number("(212) 234-5678")
    # base 30 + known area code 25 + valid exchange 15 + standard line 10
    assert intel.confidence == 80
    assert intel.risk_factors == ["Sequential exchange pattern (potentially fake)"]


def test_toll_free_number():
    intel = analyze_phone_number("1-800-555-0100")
    assert intel.line_type == "toll-free"
    assert intel.region is None
    assert intel.confidence == 45
    assert "Toll-free number (business/service line)" in intel.risk_factors
    assert "Unknown or invalid area code" in intel.risk_factors


@pytest.mark.parametrize(
    ("area_code", "expected"),
    [("403", "canadian"), ("900", "premium"), ("888", "toll-free"), ("217", "unknown")],
)
def test_line_type(area_code, expected):
    assert determine_line_type(area_code) == expected


@pytest.mark.parametrize("phone", ["555-0199", "not a phone", "+44 20 7946 0958"])
def test_invalid_number(phone):
    intel = analyze_phone_number(phone)
    assert intel.number == phone
    assert intel.confidence == 0
    assert intel.risk_factors == [INVALID_FORMAT]


def test_related_numbers_share_area_code():
    intel = analyze_phone_number(
        "(217) 555-0199",
        known_numbers=["217.555.0100", "(217) 555-0199", "(212) 234-5678", "garbage"],
    )
    assert intel.related_numbers == ["(217) 555-0100"]


def test_batch_boosts_numbers_in_same_state():
    batch = analyze_phone_batch(["(217) 555-0199", "(217) 555-0100", "(212) 234-5678"])
    assert [item.confidence for item in batch] == [85, 85, 80]
    assert batch[0].related_numbers == ["(217) 555-0100"]


def test_recommendations():
    notes = phone_recommendations([analyze_phone_number("(217) 555-0199"), analyze_phone_number("bad")])

    assert any("Central Illinois, IL" in note and "Springfield, Champaign" in note for note in notes)
    assert any(note.startswith("(217) 555-0199 has risk factors") for note in notes)
    assert "Low confidence phone number bad - verify through additional sources" in notes


def test_recommendations_empty():
    assert phone_recommendations([]) == []
