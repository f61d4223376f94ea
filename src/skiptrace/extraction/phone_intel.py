"""Phone number intelligence for skip tracing.

Derives what can be known about a number without a carrier lookup: the
area code region, a coarse line type, an intelligence confidence, risk
factors that suggest a fake or non-personal line, and other numbers in the
same area code. Scores use the canonical 0-100 scale.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Sequence

from skiptrace.normalization.reference_data import (
    CANADIAN_AREA_CODES,
    PREMIUM_AREA_CODES,
    TOLL_FREE_AREA_CODES,
    ReferenceData,
    get_reference_data,
)
from skiptrace.normalization.schema import (
    GeographicRegion,
    LineType,
    PhoneIntelligence,
    SearchContext,
    clamp_score,
)

LOGGER = logging.getLogger(__name__)

# Thresholds and constants (tuneable)
BASE_CONFIDENCE = 30
KNOWN_AREA_CODE_BOOST = 25
VALID_EXCHANGE_BOOST = 15
STATE_MATCH_BOOST = 20
CITY_MATCH_BOOST = 15
COUNTY_MATCH_BOOST = 10
STANDARD_LINE_BOOST = 10
SAME_REGION_BOOST = 5
LOW_CONFIDENCE_THRESHOLD = 30

FAKE_EXCHANGES = frozenset({"555", "000", "111", "999"})
INVALID_FORMAT = "Invalid phone number format"


def _ten_digits(phone: str) -> str | None:
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    return digits if len(digits) == 10 else None


def _format(digits: str) -> str:
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"


def determine_line_type(area_code: str) -> LineType:
    """Classify by area code; mobile vs landline needs a carrier lookup we do not have."""
    if area_code in TOLL_FREE_AREA_CODES:
        return "toll-free"
    if area_code in PREMIUM_AREA_CODES:
        return "premium"
    if area_code in CANADIAN_AREA_CODES:
        return "canadian"
    return "unknown"


def _is_sequential(digits: str) -> bool:
    if len(digits) < 3:
        return False
    return all(int(digits[i]) == int(digits[i - 1]) + 1 for i in range(1, len(digits)))


def _risk_factors(exchange: str, line_type: LineType, region: GeographicRegion | None) -> List[str]:
    risks: List[str] = []
    if line_type == "toll-free":
        risks.append("Toll-free number (business/service line)")
    if line_type == "premium":
        risks.append("Premium rate number (potential scam)")
    if region is None:
        risks.append("Unknown or invalid area code")
    if _is_sequential(exchange):
        risks.append("Sequential exchange pattern (potentially fake)")
    if len(set(exchange)) == 1:
        risks.append("Repetitive digit pattern (potentially fake)")
    if exchange in FAKE_EXCHANGES:
        risks.append("Common fake/test exchange")
    return risks


def _confidence(
    area_code: str,
    exchange: str,
    region: GeographicRegion | None,
    context: SearchContext | None,
) -> int:
    score = BASE_CONFIDENCE
    if region is not None:
        score += KNOWN_AREA_CODE_BOOST
    if exchange[0] not in "01":
        score += VALID_EXCHANGE_BOOST

    location = context.location.lower() if context is not None else ""
    if location and region is not None:
        if re.search(rf"\b{re.escape(region.state.lower())}\b", location) or region.state_name.lower() in location:
            score += STATE_MATCH_BOOST
        if any(city.lower() in location for city in region.primary_cities):
            score += CITY_MATCH_BOOST
        if any(county.lower() in location for county in region.counties):
            score += COUNTY_MATCH_BOOST

    if area_code not in TOLL_FREE_AREA_CODES and area_code not in PREMIUM_AREA_CODES:
        score += STANDARD_LINE_BOOST
    return clamp_score(score)


def _related_numbers(digits: str, known_numbers: Iterable[str]) -> List[str]:
    related: List[str] = []
    for known in known_numbers:
        known_digits = _ten_digits(known)
        if known_digits is None or known_digits == digits:
            continue
        if known_digits[:3] == digits[:3]:
            formatted = _format(known_digits)
            if formatted not in related:
                related.append(formatted)
    return related


def analyze_phone_number(
    phone: str,
    context: SearchContext | None = None,
    known_numbers: Sequence[str] = (),
    *,
    reference: ReferenceData | None = None,
) -> PhoneIntelligence:
    """Analyze a single phone number.

    Args:
        phone: Number in any common surface format.
        context: Search subject; its city/state drive the geographic boosts.
        known_numbers: Other numbers seen for the subject, used to find
            numbers sharing the area code.
        reference: Geographic tables; defaults to the configured ones.

    Returns:
        A :class:`PhoneIntelligence`. Numbers that are not ten digits (after
        dropping a leading country code 1) get confidence 0 and a single
        ``"Invalid phone number format"`` risk factor.
    """
    digits = _ten_digits(phone)
    if digits is None:
        LOGGER.debug("Cannot analyze malformed phone number %r", phone)
        return PhoneIntelligence(number=phone, confidence=0, risk_factors=[INVALID_FORMAT])

    reference = reference or get_reference_data()
    area_code, exchange, line_number = digits[:3], digits[3:6], digits[6:]
    region = reference.lookup_area_code(area_code)
    line_type = determine_line_type(area_code)
    return PhoneIntelligence(
        number=_format(digits),
        area_code=area_code,
        exchange=exchange,
        line_number=line_number,
        region=region,
        line_type=line_type,
        confidence=_confidence(area_code, exchange, region, context),
        risk_factors=_risk_factors(exchange, line_type, region),
        related_numbers=_related_numbers(digits, known_numbers),
    )


def analyze_phone_batch(
    phones: Sequence[str],
    context: SearchContext | None = None,
    *,
    reference: ReferenceData | None = None,
) -> List[PhoneIntelligence]:
    """Analyze several numbers together; numbers sharing a state corroborate each other."""
    reference = reference or get_reference_data()
    analyzed = [analyze_phone_number(phone, context, phones, reference=reference) for phone in phones]

    boosted: List[PhoneIntelligence] = []
    for item in analyzed:
        if item.confidence > 0 and item.region is not None:
            peers = sum(
                1
                for other in analyzed
                if other.region is not None and other.region.state == item.region.state and other.number != item.number
            )
            if peers:
                item = item.model_copy(update={"confidence": clamp_score(item.confidence + peers * SAME_REGION_BOOST)})
        boosted.append(item)
    return boosted


def phone_recommendations(intelligence: Iterable[PhoneIntelligence]) -> List[str]:
    """Turn phone analyses into investigator-facing follow-up notes."""
    notes: List[str] = []
    for phone in intelligence:
        if phone.confidence < LOW_CONFIDENCE_THRESHOLD:
            notes.append(f"Low confidence phone number {phone.number} - verify through additional sources")
        if phone.risk_factors:
            notes.append(f"{phone.number} has risk factors: {', '.join(phone.risk_factors)}")
        if phone.region is not None and phone.region.primary_cities:
            notes.append(
                f"{phone.number} is associated with {phone.region.region}, {phone.region.state}"
                f" - check records in {', '.join(phone.region.primary_cities)}"
            )
        if phone.related_numbers:
            notes.append(
                f"{phone.number} has related numbers: {', '.join(phone.related_numbers)} - investigate connections"
            )
    return notes


__all__ = [
    "analyze_phone_batch",
    "analyze_phone_number",
    "determine_line_type",
    "phone_recommendations",
]
