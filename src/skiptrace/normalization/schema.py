"""Canonical schema definitions for search results and extracted entities.

Every model here is frozen: pipeline stages never mutate an entity or result
in place, they build a new one with ``model_copy(update=...)``. Confidence and
relevance scores live on the 0-100 integer scale; the validators clamp rather
than reject out-of-range input.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_SCORE = 0
MAX_SCORE = 100


def clamp_score(value: float) -> int:
    """Round ``value`` and clamp it to the canonical 0-100 range."""

    return int(max(MIN_SCORE, min(MAX_SCORE, round(value))))


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EntityType(str, Enum):
    """Closed set of entity kinds produced by the extractor."""

    NAME = "name"
    PHONE = "phone"
    EMAIL = "email"
    ADDRESS = "address"
    SOCIAL = "social"
    VIN = "vin"
    SSN_MASKED = "ssn_masked"
    BUSINESS = "business"
    RELATIVE = "relative"
    ASSOCIATE = "associate"
    PROPERTY = "property"
    COURT_RECORD = "court_record"
    VOTER_RECORD = "voter_record"
    AGE = "age"
    DATE = "date"
    SALARY = "salary"
    EMPLOYMENT = "employment"
    EDUCATION = "education"
    LEGAL = "legal"
    VEHICLE = "vehicle"
    FINANCIAL = "financial"


PERSON_TYPES = frozenset({EntityType.NAME, EntityType.RELATIVE, EntityType.ASSOCIATE})


class Entity(BaseModel):
    """A single extracted fact.

    Attributes:
        id: Opaque unique identifier.
        type: Entity kind.
        value: Normalized value (phones are ``(NNN) NNN-NNNN``).
        confidence: Integer score in [0, 100].
        source: Provenance tag (extractor name or originating platform).
        timestamp: Creation time (UTC).
        verified: True once the score crosses the verification threshold or
            the entity was corroborated by several sources.
        metadata: Explainability bag (pattern name, area code, region, ...).
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    type: EntityType
    value: str
    confidence: int = 0
    source: str = "extraction"
    timestamp: datetime = Field(default_factory=_utcnow)
    verified: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> int:
        return clamp_score(float(value))

    def with_confidence(self, confidence: float, *, verified: bool | None = None, **updates: Any) -> "Entity":
        """Return a copy carrying a new (clamped) confidence."""

        update: Dict[str, Any] = {"confidence": clamp_score(confidence), **updates}
        if verified is not None:
            update["verified"] = verified
        return self.model_copy(update=update)


class SearchContext(BaseModel):
    """User-supplied query parameters used as the correlation anchor."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    city: str | None = None
    state: str | None = None
    phone: str | None = None
    email: str | None = None
    dob: str | None = None
    address: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("city", "state", "phone", "email", "dob", "address", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @property
    def phone_digits(self) -> str:
        """str: Context phone reduced to its ten significant digits."""

        if not self.phone:
            return ""
        digits = "".join(ch for ch in self.phone if ch.isdigit())
        if len(digits) == 11 and digits.startswith("1"):
            digits = digits[1:]
        return digits

    @property
    def location(self) -> str:
        """str: ``City, ST`` built from whichever location fields are present."""

        return ", ".join(part for part in (self.city, self.state) if part)


class SearchResult(BaseModel):
    """One item returned by a search or scrape call."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    title: str = ""
    snippet: str = ""
    url: str = ""
    source: str = ""
    confidence: int = 0
    relevance_score: int = Field(default=0, alias="relevanceScore")
    timestamp: datetime = Field(default_factory=_utcnow)
    query: str = ""
    extracted_entities: List[Entity] = Field(default_factory=list, alias="extractedEntities")

    @field_validator("confidence", "relevance_score", mode="before")
    @classmethod
    def _clamp_scores(cls, value: Any) -> int:
        return clamp_score(float(value))

    @property
    def text(self) -> str:
        """str: Title and snippet joined, the text entities are extracted from."""

        return f"{self.title}\n{self.snippet}".strip()


class GeographicRegion(BaseModel):
    """Static reference record for an area code or state."""

    model_config = ConfigDict(frozen=True)

    state: str
    state_name: str
    region: str
    primary_cities: List[str] = Field(default_factory=list)
    counties: List[str] = Field(default_factory=list)
    timezone: str = "Unknown"


class AccuracyMetrics(BaseModel):
    """Session-level roll-up of result confidence."""

    overall_confidence: int = 0
    data_quality_score: int = 0
    total_results: int = 0
    high_confidence_results: int = 0
    verified_entities: int = 0
    completeness: float = 0.0


class ConfidenceInterval(BaseModel):
    """Normal-approximation interval around the mean score."""

    mean: float = 0.0
    lower: float = 0.0
    upper: float = 0.0


LineType = Literal["landline", "mobile", "voip", "toll-free", "premium", "canadian", "unknown"]


class PhoneIntelligence(BaseModel):
    """Analysis of a single phone number."""

    number: str
    area_code: str = ""
    exchange: str = ""
    line_number: str = ""
    region: GeographicRegion | None = None
    line_type: LineType = "unknown"
    confidence: int = 0
    risk_factors: List[str] = Field(default_factory=list)
    related_numbers: List[str] = Field(default_factory=list)


AddressType = Literal["residential", "commercial", "po_box", "apartment", "unknown"]
MovementPattern = Literal["stable", "recent_relocation", "frequent_mover", "unknown"]


class AddressIntelligence(BaseModel):
    """Analysis of a single address."""

    address: str
    address_type: AddressType = "unknown"
    confidence: int = 0
    is_complete: bool = False
    city: str = ""
    state: str = ""
    zip_code: str = ""
    nearby_places: List[str] = Field(default_factory=list)
    risk_factors: List[str] = Field(default_factory=list)


class AddressHistoryItem(BaseModel):
    address: str
    confidence: int = 0
    city: str = ""
    state: str = ""
    is_current: bool = False


class GeographicPattern(BaseModel):
    """How a subject's known addresses are spread out."""

    address_history: List[AddressHistoryItem] = Field(default_factory=list)
    movement_pattern: MovementPattern = "unknown"
    search_radius: int = 0
    primary_region: str = "Unknown"
    secondary_regions: List[str] = Field(default_factory=list)
    proximity_score: int = 100


class LocationChain(BaseModel):
    """Most likely current location plus earlier sightings."""

    current_location: str | None = None
    previous_locations: List[str] = Field(default_factory=list)
    location_confidence: int = 0


class SkipTraceReport(BaseModel):
    """Compiled output of one search session."""

    report_id: str = Field(default_factory=_new_id)
    generated_at: datetime = Field(default_factory=_utcnow)
    context: SearchContext
    results: List[SearchResult] = Field(default_factory=list)
    entities: List[Entity] = Field(default_factory=list)
    metrics: AccuracyMetrics = Field(default_factory=AccuracyMetrics)
    confidence_interval: ConfidenceInterval = Field(default_factory=ConfidenceInterval)
    location_chain: LocationChain = Field(default_factory=LocationChain)
    phone_intelligence: List[PhoneIntelligence] = Field(default_factory=list)
    address_intelligence: List[AddressIntelligence] = Field(default_factory=list)
    geographic_pattern: GeographicPattern | None = None
    recommendations: List[str] = Field(default_factory=list)


__all__ = [
    "AccuracyMetrics",
    "AddressHistoryItem",
    "AddressIntelligence",
    "ConfidenceInterval",
    "Entity",
    "EntityType",
    "GeographicPattern",
    "GeographicRegion",
    "LocationChain",
    "PERSON_TYPES",
    "PhoneIntelligence",
    "SearchContext",
    "SearchResult",
    "SkipTraceReport",
    "clamp_score",
]
