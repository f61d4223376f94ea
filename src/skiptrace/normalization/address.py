"""Split US street addresses into their components.

Parsing is purely pattern based: components that cannot be found are empty
strings, never errors. Both the address confidence formula and address
intelligence read addresses through :func:`parse_address`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

STREET_SUFFIXES = (
    "Street", "St", "Avenue", "Ave", "Road", "Rd", "Boulevard", "Blvd", "Drive", "Dr",
    "Lane", "Ln", "Court", "Ct", "Circle", "Cir", "Way", "Place", "Pl", "Parkway",
    "Pkwy", "Highway", "Hwy",
)
UNIT_LABELS = ("Apartment", "Apt", "Unit", "Suite", "Ste")

_SUFFIX_GROUP = "(" + "|".join(STREET_SUFFIXES) + r")\b\.?"
_STREET_NUMBER = re.compile(r"^(\d+[A-Za-z]?)\s")
_STREET = re.compile(r"^\d+[A-Za-z]?\s+(.+?)\s+" + _SUFFIX_GROUP, re.IGNORECASE)
_UNIT = re.compile(r"\b(?:" + "|".join(UNIT_LABELS) + r")\.?\s*#?\s*([A-Za-z0-9\-]+)|#\s*([A-Za-z0-9\-]+)", re.IGNORECASE)
_CITY_STATE = re.compile(r",\s*([A-Z][A-Za-z.]*(?:\s[A-Z][A-Za-z.]*){0,2}),?\s+([A-Z]{2})\b")
_STATE = re.compile(r"(?:,\s*|\s)([A-Z]{2})(?=\s+\d{5}\b|\s*$)")
_ZIP = re.compile(r"(?<=[\s,])(\d{5}(?:-\d{4})?)\b")
_PO_BOX = re.compile(r"\bP\.?\s?O\.?\s*Box\s+(\d+)", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class AddressParts:
    street_number: str = ""
    street_name: str = ""
    street_suffix: str = ""
    unit: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    po_box: str = ""

    @property
    def is_complete(self) -> bool:
        """A house number, street, city, state and ZIP were all found."""
        return all((self.street_number, self.street_name, self.city, self.state, self.zip_code))


def parse_address(address: str) -> AddressParts:
    """Return the components found in ``address``.

    ``state`` is the two-letter token as written; whether it names a real
    state is for the caller to check against the reference tables.
    """
    text = _WHITESPACE.sub(" ", address).strip()

    number = _STREET_NUMBER.match(text)
    street = _STREET.match(text)
    unit = _UNIT.search(text)
    city_state = _CITY_STATE.search(text)
    state = city_state.group(2) if city_state else ""
    if not state:
        fallback = _STATE.search(text)
        state = fallback.group(1) if fallback else ""
    zip_code = _ZIP.search(text)
    po_box = _PO_BOX.search(text)

    return AddressParts(
        street_number=number.group(1) if number else "",
        street_name=street.group(1) if street else "",
        street_suffix=street.group(2) if street else "",
        unit=(unit.group(1) or unit.group(2)) if unit else "",
        city=city_state.group(1) if city_state else "",
        state=state,
        zip_code=zip_code.group(1) if zip_code else "",
        po_box=po_box.group(1) if po_box else "",
    )


__all__ = ["AddressParts", "STREET_SUFFIXES", "UNIT_LABELS", "parse_address"]
