"""Utilities for turning geocoding widget results into search inputs."""

import logging
from typing import Any, Dict, Iterable, NamedTuple, Optional, Tuple

from medsearch.models import AddressComponent, Geometry, PlaceSelection

logger = logging.getLogger(__name__)

_CITY_TYPES = ("locality", "administrative_area_level_2")


class CityResolution(NamedTuple):
    city: Optional[str]
    source_type: Optional[str]

    @property
    def resolved(self) -> bool:
        return self.city is not None


UNRESOLVED = CityResolution(None, None)


def parse_place(payload: Optional[Dict[str, Any]]) -> PlaceSelection:
    """Narrow a Places-shaped dict to a PlaceSelection, ignoring everything else."""
    if not payload:
        return PlaceSelection()

    components = []
    for raw in payload.get("address_components") or []:
        if not isinstance(raw, dict):
            continue
        long_name = (raw.get("long_name") or "").strip()
        if not long_name:
            continue
        components.append(
            AddressComponent(
                long_name=long_name,
                types=frozenset(raw.get("types") or ()),
                short_name=raw.get("short_name"),
            )
        )

    location = (payload.get("geometry") or {}).get("location") or {}
    geometry = None
    lat, lng = _safe_float(location.get("lat")), _safe_float(location.get("lng"))
    if lat is not None and lng is not None:
        geometry = Geometry(lat=lat, lng=lng)

    return PlaceSelection(
        address_components=tuple(components),
        geometry=geometry,
        formatted_address=payload.get("formatted_address"),
        place_id=payload.get("place_id"),
        name=payload.get("name"),
    )


def resolve_city(place: PlaceSelection) -> CityResolution:
    """Pick the city of a place: first locality, else first second-level admin area."""
    for type_name in _CITY_TYPES:
        for component in place.address_components:
            if type_name in component.types and component.long_name.strip():
                return CityResolution(component.long_name.strip(), type_name)
    logger.warning("No city component in place %s", place.formatted_address or place.place_id)
    return UNRESOLVED


def parse_city_region_country(
    address_components: Iterable[AddressComponent],
) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    city = None
    region = None
    country = None
    for component in address_components or []:
        if "locality" in component.types:
            city = component.long_name
        if "administrative_area_level_1" in component.types:
            region = component.long_name
        if "country" in component.types:
            country = component.long_name
    return city, region, country


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None
