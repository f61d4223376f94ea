"""
Rule-based entity extraction for skip-tracing search results.

Regex and keyword heuristics (see :mod:`skiptrace.extraction.patterns`) turn a
text blob into scored :class:`~skiptrace.normalization.schema.Entity` objects:
phones, emails, addresses, masked SSNs, ages, dates, vehicles, employment,
education, relationships and legal references.

Captures that fail their bounds (age outside 1-120, free text too short or too
long) are dropped silently. Structural deduplication across calls is left to
:mod:`skiptrace.scoring.dedupe`; within one call only exact repeats collapse.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Set, Tuple

from skiptrace.errors import ContractViolationError
from skiptrace.extraction.patterns import (
    ADDRESS_PATTERNS,
    AGE_PATTERN,
    DATE_PATTERNS,
    EDUCATION_PATTERNS,
    EMAIL_PATTERN,
    EMPLOYMENT_PATTERNS,
    LEGAL_PATTERNS,
    LICENSE_PLATE_PATTERN,
    NAME_PATTERN,
    NAME_STOPWORDS,
    PHONE_PATTERNS,
    RELATIONSHIP_PATTERNS,
    SALARY_PATTERN,
    SSN_MASKED_PATTERN,
    VIN_PATTERN,
)
from skiptrace.normalization.reference_data import ReferenceData, get_reference_data
from skiptrace.normalization.schema import PERSON_TYPES, Entity, EntityType, SearchContext
from skiptrace.observability import get_observability
from skiptrace.scoring.confidence import (
    address_confidence,
    email_confidence,
    fixed_confidence,
    is_verified,
    name_confidence,
    phone_confidence,
    validate_entity,
)
from skiptrace.settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)

MIN_AGE = 1
MAX_AGE = 120

AGE_RANGES: Tuple[Tuple[int, str], ...] = (
    (18, "Minor"),
    (25, "Young Adult"),
    (35, "Adult"),
    (50, "Middle Age"),
    (65, "Mature Adult"),
)

DATE_FORMATS = ("%m/%d/%Y", "%m-%d-%Y", "%B %d, %Y", "%B %d %Y")

RELATIONSHIP_TYPES = {
    "relatives": EntityType.RELATIVE,
    "emergency": EntityType.RELATIVE,
    "associates": EntityType.ASSOCIATE,
}


@dataclass(frozen=True)
class ExtractionOptions:
    """Per-call extraction knobs.

    The interactive search path keeps only the top few entities; batch and
    report generation keep everything. Both caps come from settings.
    """

    max_entities: int | None = None
    verification_threshold: int = 75
    min_capture_length: int = 3
    max_capture_length: int = 99
    max_relationship_length: int = 49
    source: str = "extraction"

    @classmethod
    def _from_settings(cls, settings: Settings, cap: int | None) -> "ExtractionOptions":
        section = settings.extraction
        return cls(
            max_entities=cap,
            verification_threshold=section.verification_threshold,
            min_capture_length=section.min_capture_length,
            max_capture_length=section.max_capture_length,
            max_relationship_length=section.max_relationship_length,
        )

    @classmethod
    def interactive(cls, settings: Settings | None = None) -> "ExtractionOptions":
        resolved = settings or get_settings()
        return cls._from_settings(resolved, resolved.extraction.interactive_entity_cap)

    @classmethod
    def comprehensive(cls, settings: Settings | None = None) -> "ExtractionOptions":
        resolved = settings or get_settings()
        return cls._from_settings(resolved, resolved.extraction.comprehensive_entity_cap)


@dataclass
class _Run:
    """State shared by the per-type extractors during one call."""

    text: str
    context: SearchContext | None
    options: ExtractionOptions
    reference: ReferenceData
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def entity(self, entity_type: EntityType, value: str, confidence: int, pattern: str, **metadata: Any) -> Entity:
        return Entity(
            type=entity_type,
            value=value,
            confidence=confidence,
            source=self.options.source,
            timestamp=self.timestamp,
            verified=is_verified(confidence, self.options.verification_threshold),
            metadata={"pattern": pattern, **metadata},
        )

    def within_bounds(self, value: str, maximum: int | None = None) -> bool:
        upper = maximum if maximum is not None else self.options.max_capture_length
        if self.options.min_capture_length <= len(value) <= upper:
            return True
        LOGGER.debug("Dropped capture %r outside length bounds", value)
        return False


def _normalize_phone(raw: str) -> str | None:
    """Return ``(NNN) NNN-NNNN`` for a plausible NANP number, else ``None``."""
    digits = re.sub(r"\D", "", raw)
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) != 10 or digits[0] in "01":
        return None
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"


def _extract_phones(run: _Run) -> List[Entity]:
    entities: List[Entity] = []
    seen: Set[str] = set()
    for name, pattern in PHONE_PATTERNS.items():
        for match in pattern.finditer(run.text):
            phone = _normalize_phone(match.group(0))
            if phone is None or phone in seen:
                continue
            seen.add(phone)
            area_code = phone[1:4]
            region = run.reference.lookup_area_code(area_code)
            entities.append(
                run.entity(
                    EntityType.PHONE,
                    phone,
                    phone_confidence(phone, run.context, run.reference),
                    name,
                    area_code=area_code,
                    region=region.region if region else None,
                    state=region.state if region else None,
                )
            )
    return entities


def _extract_emails(run: _Run) -> List[Entity]:
    entities: List[Entity] = []
    seen: Set[str] = set()
    for match in EMAIL_PATTERN.finditer(run.text):
        email = match.group(0)
        if email.lower() in seen:
            continue
        seen.add(email.lower())
        entities.append(
            run.entity(
                EntityType.EMAIL,
                email,
                email_confidence(email, run.context),
                "email",
                domain=email.rsplit("@", 1)[-1].lower(),
            )
        )
    return entities


def _inside(span: Tuple[int, int], spans: Iterable[Tuple[int, int]]) -> bool:
    return any(start <= span[0] and span[1] <= end for start, end in spans)


def _extract_addresses(run: _Run) -> List[Entity]:
    entities: List[Entity] = []
    seen: Set[str] = set()
    claimed: List[Tuple[int, int]] = []
    for name, pattern in ADDRESS_PATTERNS.items():
        for match in pattern.finditer(run.text):
            if _inside(match.span(), claimed):
                continue
            claimed.append(match.span())
            address = match.group(0).strip().rstrip(",")
            if address in seen:
                continue
            seen.add(address)
            entities.append(
                run.entity(
                    EntityType.ADDRESS,
                    address,
                    address_confidence(address, run.context, run.reference),
                    name,
                )
            )
    return entities


def _extract_ssns(run: _Run) -> List[Entity]:
    values = dict.fromkeys(match.group(0) for match in SSN_MASKED_PATTERN.finditer(run.text))
    return [
        run.entity(EntityType.SSN_MASKED, value, fixed_confidence(EntityType.SSN_MASKED), "ssn_masked")
        for value in values
    ]


def _age_range(age: int) -> str:
    for upper, label in AGE_RANGES:
        if age < upper:
            return label
    return "Senior"


def _extract_ages(run: _Run) -> List[Entity]:
    entities: List[Entity] = []
    seen: Set[int] = set()
    for match in AGE_PATTERN.finditer(run.text):
        age = int(match.group(1))
        if not MIN_AGE <= age <= MAX_AGE:
            LOGGER.debug("Dropped age %d outside %d-%d", age, MIN_AGE, MAX_AGE)
            continue
        if age in seen:
            continue
        seen.add(age)
        entities.append(
            run.entity(
                EntityType.AGE,
                str(age),
                fixed_confidence(EntityType.AGE),
                "age",
                estimated_birth_year=run.timestamp.year - age,
                age_range=_age_range(age),
            )
        )
    return entities


def _parse_date(value: str) -> str | None:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date().isoformat()
        except ValueError:
            continue
    return None


def _extract_dates(run: _Run) -> List[Entity]:
    entities: List[Entity] = []
    seen: Set[str] = set()
    claimed: List[Tuple[int, int]] = []
    for name, pattern in DATE_PATTERNS.items():
        for match in pattern.finditer(run.text):
            if name == "born":
                # Labelled captures that merely wrap an already-found date add nothing.
                if any(match.start(1) <= start and end <= match.end(1) for start, end in claimed):
                    continue
                value = match.group(1).strip()
            else:
                value = match.group(0).strip()
                claimed.append(match.span())
            if value in seen:
                continue
            seen.add(value)
            metadata: Dict[str, Any] = {}
            parsed = _parse_date(value)
            if parsed:
                metadata["parsed_date"] = parsed
            entities.append(run.entity(EntityType.DATE, value, fixed_confidence(EntityType.DATE), name, **metadata))
    return entities


def _extract_vehicles(run: _Run) -> List[Entity]:
    entities: List[Entity] = []
    vins = list(dict.fromkeys(match.group(0) for match in VIN_PATTERN.finditer(run.text)))
    for vin in vins:
        entities.append(run.entity(EntityType.VIN, vin, fixed_confidence(EntityType.VIN), "vin"))
    plates: Set[str] = set()
    for match in LICENSE_PLATE_PATTERN.finditer(run.text):
        plate = match.group(1)
        if plate in plates or plate in vins:
            continue
        plates.add(plate)
        entities.append(
            run.entity(
                EntityType.VEHICLE,
                plate,
                fixed_confidence(EntityType.VEHICLE),
                "license_plate",
                kind="license_plate",
            )
        )
    return entities


def _labelled_captures(
    run: _Run,
    patterns: Dict[str, re.Pattern[str]],
    entity_type: EntityType,
    metadata_key: str,
) -> List[Entity]:
    entities: List[Entity] = []
    seen: Set[str] = set()
    for name, pattern in patterns.items():
        for match in pattern.finditer(run.text):
            value = match.group(1).strip()
            if value.lower() in seen or not run.within_bounds(value):
                continue
            seen.add(value.lower())
            entities.append(
                run.entity(entity_type, value, fixed_confidence(entity_type), name, **{metadata_key: name})
            )
    return entities


def _extract_employment(run: _Run) -> List[Entity]:
    entities = _labelled_captures(run, EMPLOYMENT_PATTERNS, EntityType.EMPLOYMENT, "field")
    salaries = dict.fromkeys(match.group(0).strip() for match in SALARY_PATTERN.finditer(run.text))
    entities.extend(
        run.entity(EntityType.SALARY, value, fixed_confidence(EntityType.SALARY), "salary", category="financial")
        for value in salaries
    )
    return entities


def _extract_education(run: _Run) -> List[Entity]:
    return _labelled_captures(run, EDUCATION_PATTERNS, EntityType.EDUCATION, "field")


def _extract_legal(run: _Run) -> List[Entity]:
    return _labelled_captures(run, LEGAL_PATTERNS, EntityType.LEGAL, "field")


def _is_subject(run: _Run, value: str) -> bool:
    return run.context is not None and value.lower() == run.context.name.lower()


def _extract_relationships(run: _Run) -> List[Entity]:
    entities: List[Entity] = []
    seen: Set[str] = set()
    for name, pattern in RELATIONSHIP_PATTERNS.items():
        entity_type = RELATIONSHIP_TYPES[name]
        for match in pattern.finditer(run.text):
            value = match.group(1).strip()
            if value.lower() in seen or _is_subject(run, value):
                continue
            if not run.within_bounds(value, run.options.max_relationship_length):
                continue
            seen.add(value.lower())
            entities.append(
                run.entity(entity_type, value, fixed_confidence(entity_type), name, relationship=name)
            )
    return entities


def _extract_names(run: _Run, known_people: Set[str]) -> List[Entity]:
    entities: List[Entity] = []
    for match in NAME_PATTERN.finditer(run.text):
        value = match.group(0)
        lowered = value.lower()
        if lowered in known_people or _is_subject(run, value):
            continue
        if any(token in NAME_STOPWORDS for token in lowered.split()):
            continue
        known_people.add(lowered)
        entities.append(run.entity(EntityType.NAME, value, name_confidence(value, run.context), "name"))
    return entities


def extract_entities(
    text: str | None,
    context: SearchContext | None = None,
    options: ExtractionOptions | None = None,
    *,
    reference: ReferenceData | None = None,
) -> List[Entity]:
    """Extract scored entities from ``text``.

    Args:
        text: Any text blob (result title plus snippet, scraped page text).
        context: The search subject; drives context boosts and excludes the
            subject's own name from person entities.
        options: Caps and bounds; defaults to the uncapped comprehensive path.
        reference: Geographic tables; defaults to the configured ones.

    Returns:
        Entities sorted by descending confidence (stable for ties), truncated to
        ``options.max_entities`` when set. Empty or missing text yields ``[]``.
    """
    if text is None:
        return []
    if not isinstance(text, str):
        raise ContractViolationError(f"text must be a string, got {type(text).__name__}")
    if not text.strip():
        return []

    options = options or ExtractionOptions.comprehensive()
    run = _Run(text=text, context=context, options=options, reference=reference or get_reference_data())

    entities: List[Entity] = []
    entities.extend(_extract_phones(run))
    entities.extend(_extract_emails(run))
    entities.extend(_extract_addresses(run))
    entities.extend(_extract_ssns(run))
    entities.extend(_extract_ages(run))
    entities.extend(_extract_dates(run))
    entities.extend(_extract_vehicles(run))
    entities.extend(_extract_employment(run))
    entities.extend(_extract_education(run))
    entities.extend(_extract_relationships(run))
    entities.extend(_extract_legal(run))
    known_people = {entity.value.lower() for entity in entities if entity.type in PERSON_TYPES}
    entities.extend(_extract_names(run, known_people))

    validated = [validate_entity(entity, options.verification_threshold) for entity in entities]
    ranked = sorted(validated, key=lambda entity: entity.confidence, reverse=True)
    if options.max_entities is not None:
        ranked = ranked[: options.max_entities]

    LOGGER.debug("Extracted %d entities (%d kept) from %d chars", len(validated), len(ranked), len(text))
    get_observability(component="extraction").emit_event(
        "extraction.completed",
        found=len(validated),
        kept=len(ranked),
        capped=options.max_entities,
    )
    return ranked


__all__ = ["ExtractionOptions", "extract_entities"]
