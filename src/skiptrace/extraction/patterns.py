"""Compiled regular expressions used by the rule-based extractor.

Patterns are grouped by entity family; within a family the dict order is the
order in which patterns are tried, and the key is recorded on each entity as
``metadata["pattern"]``.
"""

import re
from typing import Dict, Pattern

from skiptrace.normalization.address import STREET_SUFFIXES, UNIT_LABELS

_SUFFIX = r"(?i:" + "|".join(STREET_SUFFIXES) + r")\b\.?"
# Street name words must start with a capital letter or digit ("Main", "5th").
_STREET_BODY = r"(?:[A-Z0-9][A-Za-z0-9.'#\-]*\s+){1,4}?"
_UNIT_LABELLED = r"(?i:" + "|".join(UNIT_LABELS) + r")\.?\s*#?\s*[A-Za-z0-9\-]*\d[A-Za-z0-9\-]*"
# "Apt 4", "Suite 200B" or "#12" directly after a street stays part of that address.
_UNIT = rf"(?:{_UNIT_LABELLED}|#\s*[A-Za-z0-9\-]*\d[A-Za-z0-9\-]*)"
_CITY = r"[A-Z][A-Za-z.]*(?:\s[A-Z][A-Za-z.]*){0,2}"
_PERSON = r"([A-Z][a-z]+(?:\s[A-Z][a-z]+){0,2})"
_FREE_TEXT = r"([A-Za-z0-9&'\- ]+)"

PHONE_PATTERNS: Dict[str, Pattern[str]] = {
    "standard": re.compile(r"(?<![\d+])(\+?1[-.\s]?)?\(?([0-9]{3})\)?[-.\s]?([0-9]{3})[-.\s]?([0-9]{4})(?!\d)"),
    "international": re.compile(r"(?<!\d)\+?1?[-.\s]?\(?([0-9]{3})\)?[-.\s]?([0-9]{3})[-.\s]?([0-9]{4})(?!\d)"),
    "formatted": re.compile(r"\(\d{3}\)\s?\d{3}-\d{4}(?!\d)"),
    "dotted": re.compile(r"(?<!\d)\d{3}\.\d{3}\.\d{4}(?!\d)"),
    "plain": re.compile(r"(?<!\d)\d{10}(?!\d)"),
}

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

ADDRESS_PATTERNS: Dict[str, Pattern[str]] = {
    "full": re.compile(
        rf"\b\d{{1,6}}\s+{_STREET_BODY}{_SUFFIX}(?:,?\s+{_UNIT})?,?\s+{_CITY},?\s+[A-Z]{{2}}\s+\d{{5}}(?:-\d{{4}})?\b"
    ),
    "street": re.compile(rf"\b\d{{1,6}}\s+{_STREET_BODY}{_SUFFIX}(?:,?\s+{_UNIT}\b)?"),
    "po_box": re.compile(r"\bP\.?\s?O\.?\s*Box\s+\d+\b", re.IGNORECASE),
    "unit": re.compile(rf"\b{_UNIT_LABELLED}\b"),
}

# Only masked or partial forms; a bare 123-45-6789 never matches.
SSN_MASKED_PATTERN = re.compile(r"\*{3}-\*{2}-\d{4}|\d{3}-\*{2}-\*{4}|(?i:XXX-XX-)\d{4}")

AGE_PATTERN = re.compile(r"\b(?:age|aged)[:\s]\s*(\d{1,3})\b", re.IGNORECASE)

DATE_PATTERNS: Dict[str, Pattern[str]] = {
    "mdy_slash": re.compile(r"\b(?:0?[1-9]|1[0-2])/(?:0?[1-9]|[12]\d|3[01])/(?:19|20)\d{2}\b"),
    "mdy_dash": re.compile(r"\b(?:0?[1-9]|1[0-2])-(?:0?[1-9]|[12]\d|3[01])-(?:19|20)\d{2}\b"),
    "written": re.compile(
        r"\b(?:January|February|March|April|May|June|July|August|September|October|November|December)"
        r"\s+\d{1,2},?\s+(?:19|20)\d{2}\b"
    ),
    "born": re.compile(r"\b(?:born|birth|DOB)[:\s]+(.{4,20})", re.IGNORECASE),
}

# VINs contain both letters and digits.
VIN_PATTERN = re.compile(r"\b(?=[A-HJ-NPR-Z0-9]*[A-HJ-NPR-Z])(?=[A-HJ-NPR-Z]*\d)[A-HJ-NPR-Z0-9]{17}\b")
# Plates are only taken when introduced by a label and must contain a digit.
LICENSE_PLATE_PATTERN = re.compile(
    r"\b(?i:license\s+plate|plate|tag)\s*(?i:#|no\.?|number)?\s*[:#]?\s*(?=[A-Z\-]*\d)([A-Z0-9][A-Z0-9\-]{1,7})\b"
)

EMPLOYMENT_PATTERNS: Dict[str, Pattern[str]] = {
    "company": re.compile(r"\b(?i:works?\s+(?:at|for)|employed\s+(?:at|by)|company)[:\s]+" + _FREE_TEXT),
    "title": re.compile(r"\b(?i:title|position|job)[:\s]+" + _FREE_TEXT),
}

SALARY_PATTERN = re.compile(r"\$[\d,]+(?:\.\d{2})?(?:\s*(?:per|/)\s*(?:year|yr|hour|hr|month|mo)\b)?", re.IGNORECASE)

EDUCATION_PATTERNS: Dict[str, Pattern[str]] = {
    "school": re.compile(
        r"\b(?i:graduated|attended|alumni|degree)(?:\s+(?i:from|at))?[:\s]+"
        r"([A-Za-z0-9&'\- ]+?(?:University|College|School|Institute))"
    ),
    "degree": re.compile(r"\b(?i:degree|diploma|certification)[:\s]+" + _FREE_TEXT),
}

RELATIONSHIP_PATTERNS: Dict[str, Pattern[str]] = {
    "relatives": re.compile(
        r"\b(?i:wife|husband|spouse|sons?|daughters?|mother|father|brothers?|sisters?|parents?|child|children"
        r"|relatives?|related\s+to)[:\s]+" + _PERSON
    ),
    "associates": re.compile(r"\b(?i:associates?|friends?|partners?|colleagues?)[:\s]+" + _PERSON),
    "emergency": re.compile(r"\b(?i:emergency\s+contact|next\s+of\s+kin)[:\s]+" + _PERSON),
}

LEGAL_PATTERNS: Dict[str, Pattern[str]] = {
    "case": re.compile(r"\b(?i:case\s+(?:number|no\.?|#))[:\s#]*(?=[A-Za-z\-]*\d)([A-Za-z0-9\-]+)"),
    "court": re.compile(r"\b((?:[A-Z][a-z]+\s+){1,4}(?:Court|Courthouse))\b"),
    "attorney": re.compile(r"\b(?i:attorney|lawyer)[:\s]+([A-Z][A-Za-z.]*(?:\s[A-Z][A-Za-z.]*){0,3})"),
}

NAME_PATTERN = re.compile(r"\b[A-Z][a-z]+ [A-Z][a-z]+(?: [A-Z][a-z]+)?\b")

# Capitalised words that make a two/three word match something other than a person.
NAME_STOPWORDS = frozenset(
    {suffix.lower() for suffix in STREET_SUFFIXES}
    | {
        "phone", "email", "address", "related", "relatives", "county", "city", "court", "courthouse",
        "university", "college", "school", "institute", "police", "department", "inc", "llc", "corp",
        "company", "age", "born", "lives", "current", "previous", "case", "box", "suite", "apt",
    }
)

# Mentions of a place a subject lives or lived, for location-chain analysis.
STATE_CODES = (
    "AL|AK|AZ|AR|CA|CO|CT|DE|DC|FL|GA|HI|ID|IL|IN|IA|KS|KY|LA|ME|MD|MA|MI|MN|MS|MO|MT|NE|NV|NH|NJ|NM|NY|"
    "NC|ND|OH|OK|OR|PA|RI|SC|SD|TN|TX|UT|VT|VA|WA|WV|WI|WY"
)
LOCATION_PATTERNS: Dict[str, Pattern[str]] = {
    "lives_in": re.compile(rf"\blives?\s+in\s+([A-Z][A-Za-z]*(?:\s[A-Z][A-Za-z]*){{0,2}},?\s+(?:{STATE_CODES}))\b"),
    "current_address": re.compile(
        rf"\b(?i:current\s+address)[:\s]+(?:[^,\n]*,\s*)?([A-Z][A-Za-z]*(?:\s[A-Z][A-Za-z]*){{0,2}},?\s+(?:{STATE_CODES}))\b"
    ),
    "city_state": re.compile(rf"\b([A-Z][a-z]+(?:\s[A-Z][a-z]+){{0,2}},\s+(?:{STATE_CODES}))\b"),
}

PHONE_SHAPE = re.compile(r"\(?\b\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b")
FORMATTED_PHONE = re.compile(r"\((\d{3})\)\s?\d{3}-\d{4}")
