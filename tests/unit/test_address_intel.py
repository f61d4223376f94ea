"""Unit tests for address and geographic-pattern intelligence."""

import pytest

from skiptrace.extraction.address_intel import (
    RISK_GENERIC_STREET,
    RISK_INCOMPLETE,
    RISK_INVALID_STATE,
    RISK_PO_BOX,
    RISK_RURAL,
    analyze_address,
    analyze_address_batch,
    analyze_geographic_pattern,
    determine_address_type,
    geographic_recommendations,
    summarize_geography,
)
from skiptrace.normalization.address import parse_address
from skiptrace.normalization.schema import SearchContext

SUBJECT = SearchContext(name="John Smith", city="Springfield", state="IL")

SPRINGFIELD = "123 Main St Apt 4, Springfield, IL 62701"
CHICAGO = "9 Oak Ave, Chicago, IL 60601"
DURANT = "9 Elm St, Durant, OK 74701"
DALLAS = "77 Pine Rd, Dallas, TX 75201"


def test_parse_full_address_with_unit():
    parts = parse_address(SPRINGFIELD)
    assert (parts.street_number, parts.street_name, parts.street_suffix) == ("123", "Main", "St")
    assert parts.unit == "4"
    assert (parts.city, parts.state, parts.zip_code) == ("Springfield", "IL", "62701")
    assert parts.is_complete


def test_parse_partial_address():
    parts = parse_address("12345 Main St")
    assert parts.street_number == "12345"
    assert parts.zip_code == ""
    assert not parts.is_complete


@pytest.mark.parametrize(
    ("address", "expected"),
    [
        ("PO Box 12, Durant, OK 74701", "po_box"),
        (SPRINGFIELD, "apartment"),
        ("500 Commerce Plaza, Tulsa, OK 74103", "commercial"),
        ("42 Elm St, Denver, CO 80202", "residential"),
        ("somewhere outside town", "unknown"),
    ],
)
def test_address_type(address, expected):
    assert determine_address_type(address) == expected


def test_apartment_in_searched_city():
    intel = analyze_address(SPRINGFIELD, SUBJECT)

    assert intel.address_type == "apartment"
    assert intel.is_complete
    assert (intel.city, intel.state, intel.zip_code) == ("Springfield", "IL", "62701")
    assert intel.confidence == 100
    assert intel.risk_factors == [RISK_GENERIC_STREET]


def test_po_box_uses_proximity_network():
    intel = analyze_address("PO Box 12, Durant, OK 74701")

    # base 20 + city 10 + state 10 + zip 15 + known state 15
    assert intel.confidence == 70
    assert intel.risk_factors == [RISK_INCOMPLETE, RISK_PO_BOX]
    assert intel.nearby_places == ["Calera", "Caddo", "Atoka"]


def test_invalid_state_and_rural_route_flagged():
    assert analyze_address("12 Elm St, Springfield, ZZ 62701").risk_factors == [RISK_INVALID_STATE]
    assert RISK_RURAL in analyze_address("Rural Route 2, Calera, OK 74730").risk_factors


def test_known_address_in_same_city_boosts_confidence():
    alone = analyze_address(DURANT)
    corroborated = analyze_address(DURANT, known_addresses=[DURANT, "PO Box 12, Durant, OK 74701"])

    assert alone.confidence == 75
    assert corroborated.confidence == 90


def test_single_address_is_stable():
    pattern = analyze_geographic_pattern([SPRINGFIELD])

    assert pattern.movement_pattern == "stable"
    assert pattern.proximity_score == 100
    assert pattern.search_radius == 15
    assert pattern.primary_region == "Springfield, IL"
    assert pattern.address_history[0].is_current


def test_move_within_state_is_recent_relocation():
    pattern = analyze_geographic_pattern([SPRINGFIELD, CHICAGO])

    assert pattern.movement_pattern == "recent_relocation"
    assert pattern.proximity_score == 90
    assert pattern.primary_region == "Springfield, IL"
    assert pattern.secondary_regions == ["Chicago, IL"]
    assert [item.is_current for item in pattern.address_history] == [True, False]


def test_three_states_is_frequent_mover():
    pattern = analyze_geographic_pattern([SPRINGFIELD, DURANT, DALLAS])

    assert pattern.movement_pattern == "frequent_mover"
    assert pattern.search_radius == 50
    # 100 - 2 extra states * 20 - 2 extra cities * 10
    assert pattern.proximity_score == 40


def test_state_network_widens_search_radius():
    assert analyze_geographic_pattern([DURANT]).search_radius == 30


def test_no_addresses():
    pattern = summarize_geography([])
    assert pattern.movement_pattern == "unknown"
    assert pattern.primary_region == "Unknown"
    assert pattern.address_history == []


def test_batch_matches_pattern_input_order():
    batch = analyze_address_batch([DURANT, SPRINGFIELD], SUBJECT)
    assert [item.address for item in batch] == [DURANT, SPRINGFIELD]
    assert summarize_geography(batch).primary_region == "Durant, OK"


def test_recommendations_for_spread_out_subject():
    notes = geographic_recommendations(analyze_geographic_pattern([SPRINGFIELD, DURANT, DALLAS]))

    assert notes[0] == "Focus search on Springfield, IL (primary region)"
    assert "Expand search to: Durant, OK, Dallas, TX" in notes
    assert any(note.startswith("Subject shows frequent relocation pattern") for note in notes)
    assert "Optimal search radius: 50 miles from known addresses" in notes
    assert any(note.startswith("Low proximity score") for note in notes)
    assert (
        "Oklahoma addresses detected - check Bryan County courthouse records and neighboring counties"
        " (Atoka County, Marshall County)"
    ) in notes
    assert "Search Calera, Caddo, Durant area networks - common migration pattern within this region" in notes


def test_recommendations_for_local_subject():
    notes = geographic_recommendations(analyze_geographic_pattern([SPRINGFIELD]))
    assert any(note.startswith("Stable residence pattern") for note in notes)
    assert any(note.startswith("High proximity score") for note in notes)
    assert not any("courthouse" in note for note in notes)
