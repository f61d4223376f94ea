"""Address and geographic-pattern intelligence for skip tracing.

The address counterpart of :mod:`skiptrace.extraction.phone_intel`. Single
addresses get a type, a confidence, nearby places from the proximity tables
and risk factors. A subject's set of addresses gets a movement pattern, a
suggested search radius, the regions they cluster in and a proximity score.
No geocoding or address-verification service is consulted.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Iterable, List, Sequence, Set

from skiptrace.normalization.address import AddressParts, parse_address
from skiptrace.normalization.reference_data import ReferenceData, get_reference_data
from skiptrace.normalization.schema import (
    AddressHistoryItem,
    AddressIntelligence,
    AddressType,
    GeographicPattern,
    MovementPattern,
    SearchContext,
    clamp_score,
)
from skiptrace.scoring.confidence import address_confidence

LOGGER = logging.getLogger(__name__)

# Thresholds and constants (tuneable)
KNOWN_ADDRESS_BOOST = 15
MAX_NEARBY_PLACES = 3
MAX_SECONDARY_REGIONS = 2

BASE_SEARCH_RADIUS = 15
MULTI_ADDRESS_SEARCH_RADIUS = 25
MULTI_STATE_SEARCH_RADIUS = 50

STATE_SPREAD_PENALTY = 20
CITY_SPREAD_PENALTY = 10
LOW_PROXIMITY_SCORE = 50
HIGH_PROXIMITY_SCORE = 80

BUSINESS_WORDS = (
    "llc", "inc", "corp", "company", "ltd", "office", "building", "plaza",
    "center", "mall", "store", "shop", "restaurant", "hotel", "motel",
)
GENERIC_STREETS = ("main st", "first st", "1st st", "oak st", "park ave")

# "Co." only with its period; a bare "CO" is Colorado.
_BUSINESS = re.compile(r"\b(?:" + "|".join(BUSINESS_WORDS) + r")\b|\bco\.", re.IGNORECASE)
_RURAL = re.compile(r"\b(?:rural\s+route|rr\s*\d+|county\s+road|cr\s*\d+)\b", re.IGNORECASE)
_HIGH_STREET_NUMBER = re.compile(r"^\d{5,}\s")

RISK_INCOMPLETE = "Incomplete address information"
RISK_PO_BOX = "PO Box address - no physical location"
RISK_INVALID_STATE = "Invalid state code"
RISK_HIGH_NUMBER = "Unusually high street number"
RISK_GENERIC_STREET = "Generic street name (verify authenticity)"
RISK_RURAL = "Rural address (may be difficult to verify)"

MOVEMENT_NOTES = {
    "frequent_mover": (
        "Subject shows frequent relocation pattern - check recent utility connections and mail forwarding"
    ),
    "recent_relocation": (
        "Recent relocation detected - verify current address through employment and school records"
    ),
    "stable": "Stable residence pattern - focus on local community connections and long-term records",
}


def determine_address_type(address: str, parts: AddressParts | None = None) -> AddressType:
    """Classify an address as PO box, apartment, commercial or residential."""
    parts = parts or parse_address(address)
    if parts.po_box:
        return "po_box"
    if parts.unit:
        return "apartment"
    if _BUSINESS.search(address):
        return "commercial"
    if parts.street_number and parts.street_suffix:
        return "residential"
    return "unknown"


def _risk_factors(address: str, parts: AddressParts, address_type: AddressType, reference: ReferenceData) -> List[str]:
    risks: List[str] = []
    if not parts.is_complete:
        risks.append(RISK_INCOMPLETE)
    if address_type == "po_box":
        risks.append(RISK_PO_BOX)
    if parts.state and reference.state_code(parts.state) is None:
        risks.append(RISK_INVALID_STATE)
    if _HIGH_STREET_NUMBER.match(address):
        risks.append(RISK_HIGH_NUMBER)
    lowered = address.lower()
    if any(street in lowered for street in GENERIC_STREETS):
        risks.append(RISK_GENERIC_STREET)
    if _RURAL.search(address):
        risks.append(RISK_RURAL)
    return risks


def _shares_locality(parts: AddressParts, address: str, known_addresses: Iterable[str]) -> bool:
    for known in known_addresses:
        if known.strip() == address.strip():
            continue
        other = parse_address(known)
        if (parts.city and other.city.lower() == parts.city.lower()) or (
            parts.zip_code and other.zip_code == parts.zip_code
        ):
            return True
    return False


def analyze_address(
    address: str,
    context: SearchContext | None = None,
    known_addresses: Sequence[str] = (),
    *,
    reference: ReferenceData | None = None,
) -> AddressIntelligence:
    """Analyze a single address.

    Args:
        address: Free-form US address.
        context: Search subject; a searched city or state named in the address
            lifts the confidence.
        known_addresses: Other addresses seen for the subject. Sharing a city
            or ZIP with one of them adds a small boost.
        reference: Geographic tables; defaults to the configured ones.

    Returns:
        An :class:`AddressIntelligence` record.
    """
    reference = reference or get_reference_data()
    cleaned = " ".join(address.split())
    parts = parse_address(cleaned)
    address_type = determine_address_type(cleaned, parts)

    confidence = address_confidence(cleaned, context, reference)
    if _shares_locality(parts, cleaned, known_addresses):
        confidence = clamp_score(confidence + KNOWN_ADDRESS_BOOST)

    state = reference.state_code(parts.state) or parts.state
    nearby = reference.proximity_terms(state, parts.city)[:MAX_NEARBY_PLACES] if parts.city else ()
    return AddressIntelligence(
        address=cleaned,
        address_type=address_type,
        confidence=confidence,
        is_complete=parts.is_complete,
        city=parts.city,
        state=state,
        zip_code=parts.zip_code,
        nearby_places=list(nearby),
        risk_factors=_risk_factors(cleaned, parts, address_type, reference),
    )


def _movement_pattern(count: int, states: int, cities: int) -> MovementPattern:
    if count == 0:
        return "unknown"
    if count == 1:
        return "stable"
    if states > 2 or cities > 3:
        return "frequent_mover"
    if cities > 1:
        return "recent_relocation"
    return "stable"


def _search_radius(analyses: Sequence[AddressIntelligence], states: Set[str], reference: ReferenceData) -> int:
    radius = BASE_SEARCH_RADIUS
    if len(states) > 1:
        radius = MULTI_STATE_SEARCH_RADIUS
    elif len(analyses) > 2:
        radius = MULTI_ADDRESS_SEARCH_RADIUS
    for state in states:
        network_radius = reference.search_radius(state)
        if network_radius is not None:
            radius = max(radius, network_radius)
    return radius


def _proximity_score(count: int, states: int, cities: int) -> int:
    if count <= 1:
        return 100
    score = 100
    if states > 1:
        score -= (states - 1) * STATE_SPREAD_PENALTY
    if cities > 1:
        score -= (cities - 1) * CITY_SPREAD_PENALTY
    return max(score, 0)


def analyze_address_batch(
    addresses: Sequence[str],
    context: SearchContext | None = None,
    *,
    reference: ReferenceData | None = None,
) -> List[AddressIntelligence]:
    """Analyze several addresses; each one treats the others as known addresses."""
    reference = reference or get_reference_data()
    return [analyze_address(address, context, addresses, reference=reference) for address in addresses]


def summarize_geography(
    analyses: Sequence[AddressIntelligence],
    *,
    reference: ReferenceData | None = None,
) -> GeographicPattern:
    """Build a :class:`GeographicPattern` from analyzed addresses, most-likely-current first."""
    reference = reference or get_reference_data()

    states = {item.state for item in analyses if item.state}
    cities = {item.city.lower() for item in analyses if item.city}
    regions = Counter(f"{item.city}, {item.state}" for item in analyses if item.city and item.state)
    ranked_regions = [region for region, _ in regions.most_common()]

    history = [
        AddressHistoryItem(
            address=item.address,
            confidence=item.confidence,
            city=item.city,
            state=item.state,
            is_current=index == 0,
        )
        for index, item in enumerate(analyses)
    ]
    pattern = GeographicPattern(
        address_history=history,
        movement_pattern=_movement_pattern(len(analyses), len(states), len(cities)),
        search_radius=_search_radius(analyses, states, reference),
        primary_region=ranked_regions[0] if ranked_regions else "Unknown",
        secondary_regions=ranked_regions[1 : 1 + MAX_SECONDARY_REGIONS],
        proximity_score=_proximity_score(len(analyses), len(states), len(cities)),
    )
    LOGGER.debug(
        "Geographic pattern over %d addresses: %s, radius %d",
        len(analyses),
        pattern.movement_pattern,
        pattern.search_radius,
    )
    return pattern


def analyze_geographic_pattern(
    addresses: Sequence[str],
    context: SearchContext | None = None,
    *,
    reference: ReferenceData | None = None,
) -> GeographicPattern:
    """Summarize how a subject's addresses are spread out.

    ``addresses`` is read most-likely-current first.
    """
    reference = reference or get_reference_data()
    return summarize_geography(analyze_address_batch(addresses, context, reference=reference), reference=reference)


def geographic_recommendations(
    pattern: GeographicPattern,
    *,
    reference: ReferenceData | None = None,
) -> List[str]:
    """Turn a geographic pattern into investigator-facing follow-up notes."""
    reference = reference or get_reference_data()
    notes: List[str] = []
    if pattern.primary_region != "Unknown":
        notes.append(f"Focus search on {pattern.primary_region} (primary region)")
    if pattern.secondary_regions:
        notes.append(f"Expand search to: {', '.join(pattern.secondary_regions)}")
    if pattern.movement_pattern in MOVEMENT_NOTES:
        notes.append(MOVEMENT_NOTES[pattern.movement_pattern])
    notes.append(f"Optimal search radius: {pattern.search_radius} miles from known addresses")

    if pattern.proximity_score < LOW_PROXIMITY_SCORE:
        notes.append(
            "Low proximity score indicates wide geographic spread - consider professional skip tracing services"
        )
    elif pattern.proximity_score > HIGH_PROXIMITY_SCORE:
        notes.append("High proximity score - concentrate search in local area and neighboring communities")

    states = list(dict.fromkeys(item.state for item in pattern.address_history if item.state))
    for state in states:
        network = reference.proximity_counties(state)
        if not network:
            continue
        counties = list(network)
        region = reference.lookup_state(state)
        name = region.state_name if region else state
        neighbours = f" and neighboring counties ({', '.join(counties[1:])})" if len(counties) > 1 else ""
        notes.append(f"{name} addresses detected - check {counties[0]} courthouse records{neighbours}")
        towns = network[counties[0]][:3]
        if towns:
            notes.append(f"Search {', '.join(towns)} area networks - common migration pattern within this region")
    return notes


__all__ = [
    "analyze_address",
    "analyze_address_batch",
    "analyze_geographic_pattern",
    "determine_address_type",
    "geographic_recommendations",
    "summarize_geography",
]
