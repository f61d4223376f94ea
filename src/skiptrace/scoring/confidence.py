"""Per-entity confidence heuristics.

Every formula has the same shape: a base score for the entity type plus
additive boosts for corroborating context, clamped to [0, 100]. Scores are
kept on the 0-100 integer scale throughout; ``combine_confidence`` is the only
helper that works on the 0.0-1.0 scale internally and it converts at its
boundary.

Free-text captures (relationships, employment, education, legal) carry a
fixed moderate score and are never boosted by the search context.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List

from skiptrace.errors import ContractViolationError
from skiptrace.normalization.address import parse_address
from skiptrace.normalization.reference_data import (
    PREMIUM_AREA_CODES,
    TOLL_FREE_AREA_CODES,
    ReferenceData,
    get_reference_data,
)
from skiptrace.normalization.schema import Entity, EntityType, SearchContext, clamp_score

LOGGER = logging.getLogger(__name__)

# --- Tunable weights ---
PHONE_BASE = 50
PHONE_FORMAT_BONUS = 15
PHONE_KNOWN_AREA_CODE_BONUS = 15
PHONE_CONTEXT_EXACT_BONUS = 30
PHONE_CONTEXT_AREA_CODE_BONUS = 15
PHONE_CITY_BONUS = 20
PHONE_STATE_BONUS = 10
PHONE_NOT_TOLL_FREE_BONUS = 5

ADDRESS_BASE = 20
ADDRESS_COMPLETE_BONUS = 30
ADDRESS_NUMBER_BONUS = 5
ADDRESS_STREET_BONUS = 10
ADDRESS_CITY_BONUS = 10
ADDRESS_STATE_BONUS = 10
ADDRESS_ZIP_BONUS = 15
ADDRESS_KNOWN_STATE_BONUS = 15
ADDRESS_FORMAT_BONUS = 10
ADDRESS_CONTEXT_CITY_BONUS = 20
ADDRESS_CONTEXT_STATE_BONUS = 10

EMAIL_BASE = 60
EMAIL_CUSTOM_DOMAIN_BONUS = 10
EMAIL_CONTEXT_EXACT_BONUS = 30
COMMON_EMAIL_DOMAINS = frozenset({"gmail.com", "yahoo.com", "hotmail.com", "outlook.com", "aol.com", "icloud.com"})

NAME_BASE = 40
NAME_NOT_PLACEHOLDER_BONUS = 10
NAME_SHARED_SURNAME_BONUS = 15
PLACEHOLDER_NAMES = frozenset({"john doe", "jane doe", "test user"})

# Label-triggered or unambiguous patterns get a fixed score.
FIXED_CONFIDENCE = {
    EntityType.AGE: 85,
    EntityType.DATE: 70,
    EntityType.VIN: 95,
    EntityType.VEHICLE: 70,
    EntityType.SSN_MASKED: 90,
    EntityType.SALARY: 70,
    EntityType.EMPLOYMENT: 65,
    EntityType.EDUCATION: 60,
    EntityType.RELATIVE: 55,
    EntityType.ASSOCIATE: 55,
    EntityType.LEGAL: 75,
}

# Post-extraction sanity adjustments.
NOREPLY_PENALTY = 20
ADDRESS_NO_DIGIT_PENALTY = 15
CROSS_REFERENCE_BOOST = 5

# Bounds of the 0.0-1.0 scale used by combine_confidence.
MIN_CONFIDENCE = 0.05
MAX_CONFIDENCE = 0.99
ORIGINAL_WEIGHT = 0.7

_FORMATTED_PHONE = re.compile(r"^\(\d{3}\) \d{3}-\d{4}$")
_STATE_ABBREVIATION = re.compile(r"\b([A-Z]{2})\b")


def to_unit_scale(score: float) -> float:
    """Convert a 0-100 score to the 0.0-1.0 scale."""
    return max(0.0, min(1.0, float(score) / 100.0))


def to_percent_scale(value: float) -> int:
    """Convert a 0.0-1.0 value to the canonical 0-100 integer scale."""
    return clamp_score(float(value) * 100.0)


def combine_confidence(original: float | None, recalculated: float) -> int:
    """Merge a prior score with a recalculated one without eroding earned trust.

    ``max(o, 0.7*o + 0.3*r)`` on the unit scale, clamped to
    [MIN_CONFIDENCE, MAX_CONFIDENCE]. Inputs and output are 0-100 scores; a
    missing original counts as the floor.
    """
    orig = to_unit_scale(original) if original is not None else MIN_CONFIDENCE
    recalc = to_unit_scale(recalculated)
    combined = max(orig, orig * ORIGINAL_WEIGHT + recalc * (1 - ORIGINAL_WEIGHT))
    return to_percent_scale(min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, combined)))


def is_verified(confidence: int, threshold: int) -> bool:
    return confidence >= threshold


def _digits(value: str) -> str:
    digits = re.sub(r"\D", "", value)
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    return digits


def _word_in(needle: str, haystack: str) -> bool:
    """Case-insensitive whole-word containment."""
    return re.search(rf"(?<!\w){re.escape(needle.strip())}(?!\w)", haystack, re.IGNORECASE) is not None


def phone_confidence(
    phone: str,
    context: SearchContext | None = None,
    reference: ReferenceData | None = None,
) -> int:
    """Score a normalized phone number against the search context."""
    reference = reference or get_reference_data()
    digits = _digits(phone)
    area_code = digits[:3]
    region = reference.lookup_area_code(area_code)

    score = PHONE_BASE
    if _FORMATTED_PHONE.match(phone):
        score += PHONE_FORMAT_BONUS
    if region is not None:
        score += PHONE_KNOWN_AREA_CODE_BONUS

    if context is not None:
        context_digits = context.phone_digits
        if context_digits:
            if context_digits == digits:
                score += PHONE_CONTEXT_EXACT_BONUS
            elif context_digits[:3] == area_code:
                score += PHONE_CONTEXT_AREA_CODE_BONUS
        if region is not None:
            if context.city and any(city.lower() == context.city.lower() for city in region.primary_cities):
                score += PHONE_CITY_BONUS
            if context.state and reference.state_code(context.state) == region.state:
                score += PHONE_STATE_BONUS

    if area_code not in TOLL_FREE_AREA_CODES and area_code not in PREMIUM_AREA_CODES:
        score += PHONE_NOT_TOLL_FREE_BONUS
    return clamp_score(score)


def address_confidence(
    address: str,
    context: SearchContext | None = None,
    reference: ReferenceData | None = None,
) -> int:
    """Score an address by component completeness and context match.

    A complete address (number, street, city, state, ZIP) earns one bonus in
    place of the per-component ones. Only a searched city or state named in
    the address lifts a complete address toward 100.
    """
    reference = reference or get_reference_data()
    parts = parse_address(address)

    score = ADDRESS_BASE
    if parts.is_complete:
        score += ADDRESS_COMPLETE_BONUS
    else:
        score += sum(
            bonus
            for present, bonus in (
                (parts.street_number, ADDRESS_NUMBER_BONUS),
                (parts.street_name, ADDRESS_STREET_BONUS),
                (parts.city, ADDRESS_CITY_BONUS),
                (parts.state, ADDRESS_STATE_BONUS),
                (parts.zip_code, ADDRESS_ZIP_BONUS),
            )
            if present
        )
    if parts.state and reference.state_code(parts.state):
        score += ADDRESS_KNOWN_STATE_BONUS
    if parts.street_name:
        score += ADDRESS_FORMAT_BONUS

    if context is not None:
        if context.city and _word_in(context.city, address):
            score += ADDRESS_CONTEXT_CITY_BONUS
        if context.state:
            state = reference.lookup_state(context.state)
            candidates = {context.state}
            if state is not None:
                candidates.update({state.state, state.state_name})
            if any(_word_in(candidate, address) for candidate in candidates):
                score += ADDRESS_CONTEXT_STATE_BONUS
    return clamp_score(score)


def email_confidence(email: str, context: SearchContext | None = None) -> int:
    """Score an email address; custom domains and exact context matches rank higher."""
    score = EMAIL_BASE
    domain = email.rsplit("@", 1)[-1].lower()
    if domain not in COMMON_EMAIL_DOMAINS:
        score += EMAIL_CUSTOM_DOMAIN_BONUS
    if context is not None and context.email and context.email.lower() == email.lower():
        score += EMAIL_CONTEXT_EXACT_BONUS
    return clamp_score(score)


def name_confidence(name: str, context: SearchContext | None = None) -> int:
    """Score a capitalised person name; a shared surname hints at a relative."""
    score = NAME_BASE
    if name.lower() not in PLACEHOLDER_NAMES:
        score += NAME_NOT_PLACEHOLDER_BONUS
    if context is not None:
        search_parts = {part for part in context.name.lower().split() if len(part) > 1}
        name_parts = set(name.lower().split())
        if search_parts & name_parts:
            score += NAME_SHARED_SURNAME_BONUS
    return clamp_score(score)


def fixed_confidence(entity_type: EntityType) -> int:
    """Return the fixed score for label-triggered entity types."""
    return FIXED_CONFIDENCE[entity_type]


def validate_entity(entity: Entity, threshold: int = 75) -> Entity:
    """Apply sanity penalties and recompute ``verified``; returns a new entity."""
    confidence = entity.confidence
    if entity.type == EntityType.EMAIL:
        lowered = entity.value.lower()
        if "noreply" in lowered or "donotreply" in lowered or "no-reply" in lowered:
            confidence -= NOREPLY_PENALTY
    elif entity.type == EntityType.ADDRESS and not re.search(r"\d", entity.value):
        confidence -= ADDRESS_NO_DIGIT_PENALTY
    if confidence == entity.confidence:
        return entity
    LOGGER.debug("Adjusted %s %r confidence %d -> %d", entity.type.value, entity.value, entity.confidence, confidence)
    clamped = clamp_score(confidence)
    return entity.with_confidence(clamped, verified=entity.verified and is_verified(clamped, threshold))


def cross_reference_entities(
    entities: Iterable[Entity],
    reference: ReferenceData | None = None,
    threshold: int = 75,
) -> List[Entity]:
    """Enrich phones and addresses with reference-data metadata.

    Phones with a known area code gain ``geographic_region``, ``state_code`` and
    ``major_cities``; addresses naming a known state abbreviation gain
    ``state_code`` and ``state_name``. Each enrichment adds a small boost and
    ``verified`` is recomputed against ``threshold`` (corroborated entities
    stay verified).
    """
    reference = reference or get_reference_data()
    enriched: List[Entity] = []
    for entity in entities:
        if not isinstance(entity, Entity):
            raise ContractViolationError(f"Expected Entity, got {type(entity).__name__}")
        metadata = dict(entity.metadata)
        confidence = entity.confidence

        if entity.type == EntityType.PHONE:
            region = reference.lookup_area_code(metadata.get("area_code") or _digits(entity.value)[:3])
            if region is not None:
                metadata.update(
                    geographic_region=region.region,
                    state_code=region.state,
                    major_cities=list(region.primary_cities),
                )
                confidence += CROSS_REFERENCE_BOOST
        elif entity.type == EntityType.ADDRESS:
            for code in _STATE_ABBREVIATION.findall(entity.value):
                state = reference.lookup_state(code)
                if state is not None:
                    metadata.update(state_code=state.state, state_name=state.state_name)
                    confidence += CROSS_REFERENCE_BOOST
                    break

        confidence = clamp_score(confidence)
        verified = entity.verified or is_verified(confidence, threshold)
        enriched.append(entity.with_confidence(confidence, verified=verified, metadata=metadata))
    return enriched


__all__ = [
    "FIXED_CONFIDENCE",
    "MAX_CONFIDENCE",
    "MIN_CONFIDENCE",
    "address_confidence",
    "combine_confidence",
    "cross_reference_entities",
    "email_confidence",
    "fixed_confidence",
    "is_verified",
    "name_confidence",
    "phone_confidence",
    "to_percent_scale",
    "to_unit_scale",
    "validate_entity",
]
