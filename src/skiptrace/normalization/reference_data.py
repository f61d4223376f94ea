"""Geographic reference data for phone/address enrichment and scoring.

Three JSON assets ship with the package under ``normalization/data``:

* ``area_codes.json``: area code -> region descriptor
  (state, state_name, region, primary_cities, counties, timezone).
* ``states.json``: state abbreviation -> name, timezone and counties
  (each county lists its seat and major cities).
* ``proximity.json``: state -> ``cities`` / ``counties`` maps naming nearby
  towns and counties, used to widen geographic matches beyond the exact city,
  plus an optional ``search_radius`` in miles for the state's network.

The tables are loaded once per set of paths and exposed read-only. Point the
``reference`` settings section at other files to swap them per deployment.
Lookups never raise for unknown keys; they return ``None`` or an empty tuple.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

from pydantic import ValidationError

from skiptrace.errors import ReferenceDataError
from skiptrace.normalization.schema import GeographicRegion
from skiptrace.settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)

# Area code classes used for line-type detection.
TOLL_FREE_AREA_CODES = frozenset(
    {"800", "888", "877", "866", "855", "844", "833", "822", "880", "881", "882", "883", "884", "885", "886", "887", "889"}
)
PREMIUM_AREA_CODES = frozenset({"900", "976"})
CANADIAN_AREA_CODES = frozenset({"403", "587", "780", "825", "204", "431", "506", "709", "902", "782"})


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except FileNotFoundError as exc:
        raise ReferenceDataError(f"Reference data file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ReferenceDataError(f"Invalid JSON in reference data file {path}") from exc
    if not isinstance(payload, dict):
        raise ReferenceDataError(f"Reference data file {path} must contain a JSON object")
    return payload


class ReferenceData:
    """Read-only lookups over the area code, state, and proximity tables."""

    def __init__(
        self,
        area_codes: Mapping[str, GeographicRegion],
        states: Mapping[str, GeographicRegion],
        proximity: Mapping[str, Mapping[str, Mapping[str, Tuple[str, ...]]]],
        search_radii: Mapping[str, int] | None = None,
    ) -> None:
        self._area_codes = MappingProxyType(dict(area_codes))
        self._states = MappingProxyType(dict(states))
        self._proximity = MappingProxyType(dict(proximity))
        self._search_radii = MappingProxyType(dict(search_radii or {}))
        self._state_names = MappingProxyType({region.state_name.lower(): code for code, region in self._states.items()})

    @classmethod
    def from_files(cls, area_codes_path: Path, states_path: Path, proximity_path: Path) -> "ReferenceData":
        """Parse the three JSON assets into a :class:`ReferenceData` instance."""

        try:
            area_codes = {
                str(code): GeographicRegion(**record) for code, record in _read_json(area_codes_path).items()
            }
            states = {
                str(code).upper(): _state_region(str(code).upper(), record)
                for code, record in _read_json(states_path).items()
            }
        except (KeyError, TypeError, ValidationError) as exc:
            raise ReferenceDataError(f"Malformed geographic record: {exc}") from exc

        proximity: Dict[str, Dict[str, Dict[str, Tuple[str, ...]]]] = {}
        search_radii: Dict[str, int] = {}
        for state, sections in _read_json(proximity_path).items():
            proximity[state.upper()] = {
                section: {key: tuple(values) for key, values in (sections.get(section) or {}).items()}
                for section in ("cities", "counties")
            }
            if sections.get("search_radius") is not None:
                try:
                    search_radii[state.upper()] = int(sections["search_radius"])
                except (TypeError, ValueError) as exc:
                    raise ReferenceDataError(f"Invalid search_radius for {state}: {exc}") from exc

        LOGGER.debug(
            "Loaded reference data: %d area codes, %d states, %d proximity tables",
            len(area_codes),
            len(states),
            len(proximity),
        )
        return cls(area_codes, states, proximity, search_radii)

    @property
    def area_codes(self) -> Mapping[str, GeographicRegion]:
        return self._area_codes

    @property
    def states(self) -> Mapping[str, GeographicRegion]:
        return self._states

    def lookup_area_code(self, area_code: str | None) -> GeographicRegion | None:
        """Return the region for a three-digit area code, if known."""

        if not area_code:
            return None
        return self._area_codes.get(area_code.strip())

    def is_known_area_code(self, area_code: str | None) -> bool:
        return self.lookup_area_code(area_code) is not None

    def state_code(self, state: str | None) -> str | None:
        """Resolve a state abbreviation or full name to its two-letter code."""

        if not state:
            return None
        key = state.strip()
        if key.upper() in self._states:
            return key.upper()
        return self._state_names.get(key.lower())

    def lookup_state(self, state: str | None) -> GeographicRegion | None:
        """Return the region descriptor for a state code or name."""

        code = self.state_code(state)
        return self._states.get(code) if code else None

    def proximity_terms(self, state: str | None, city: str | None) -> Tuple[str, ...]:
        """Nearby towns and counties for ``city`` in ``state`` (never the city itself).

        Combines the city's explicit neighbour list with every county whose town
        list contains the city (the county name plus its other towns).
        """

        code = self.state_code(state)
        if not code or not city:
            return ()
        table = self._proximity.get(code)
        if not table:
            return ()

        city_key = city.strip().lower()
        terms: List[str] = []
        for name, neighbours in table["cities"].items():
            if name.lower() == city_key:
                terms.extend(neighbours)
        for county, towns in table["counties"].items():
            if any(town.lower() == city_key for town in towns):
                terms.append(county)
                terms.extend(towns)

        seen = {city_key}
        unique: List[str] = []
        for term in terms:
            lowered = term.lower()
            if lowered in seen:
                continue
            seen.add(lowered)
            unique.append(term)
        return tuple(unique)

    def proximity_counties(self, state: str | None) -> Mapping[str, Tuple[str, ...]]:
        """County -> towns map of the state's proximity network, in table order."""

        code = self.state_code(state)
        table = self._proximity.get(code) if code else None
        return MappingProxyType(dict(table["counties"])) if table else MappingProxyType({})

    def search_radius(self, state: str | None) -> int | None:
        code = self.state_code(state)
        return self._search_radii.get(code) if code else None


def _state_region(code: str, record: Mapping[str, Any]) -> GeographicRegion:
    counties = record.get("counties") or {}
    cities: List[str] = []
    for county in counties.values():
        for city in county.get("major_cities") or []:
            if city not in cities:
                cities.append(city)
    return GeographicRegion(
        state=code,
        state_name=record["name"],
        region=record["name"],
        primary_cities=cities,
        counties=list(counties),
        timezone=record.get("timezone") or "Unknown",
    )


@lru_cache(maxsize=4)
def load_reference_data(area_codes_path: Path, states_path: Path, proximity_path: Path) -> ReferenceData:
    """Load (once per path triple) and cache the reference tables."""

    return ReferenceData.from_files(area_codes_path, states_path, proximity_path)


def get_reference_data(settings: Settings | None = None) -> ReferenceData:
    """Return the process-wide reference tables configured in ``settings``."""

    resolved = settings or get_settings()
    return load_reference_data(resolved.area_codes_path, resolved.states_path, resolved.proximity_path)


__all__ = [
    "CANADIAN_AREA_CODES",
    "PREMIUM_AREA_CODES",
    "ReferenceData",
    "TOLL_FREE_AREA_CODES",
    "get_reference_data",
    "load_reference_data",
]
