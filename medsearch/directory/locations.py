"""Registering the places where a doctor attends, which the city search reads."""

import logging
from typing import Any, Dict, Union

from medsearch.core.db import TableStore
from medsearch.core.errors import ValidationError
from medsearch.etl.places import parse_city_region_country, parse_place
from medsearch.models import DoctorLocation, PlaceSelection

logger = logging.getLogger(__name__)


def to_location(doctor_id: str, place: PlaceSelection) -> DoctorLocation:
    city, region, country = parse_city_region_country(place.address_components)
    geometry = place.geometry
    return DoctorLocation(
        doctor_id=doctor_id,
        place_id=place.place_id or "",
        formatted_address=place.formatted_address or "",
        latitude=geometry.lat if geometry else 0.0,
        longitude=geometry.lng if geometry else 0.0,
        city=city,
        region=region,
        country=country,
    )


def register_location(
    store: TableStore, doctor_id: str, place: Union[PlaceSelection, Dict[str, Any]]
) -> DoctorLocation:
    """Persist a place for a doctor, refusing a second entry at the same coordinates."""
    if not isinstance(place, PlaceSelection):
        place = parse_place(place)
    if not doctor_id:
        raise ValidationError("doctor_id is required to register a location")
    if not place.place_id:
        raise ValidationError("The selected place has no place_id")

    location = to_location(doctor_id, place)
    existing = store.select(
        "doctor_locations",
        columns=("id",),
        eq={"doctor_id": doctor_id, "latitude": location.latitude, "longitude": location.longitude},
    )
    if existing:
        raise ValidationError("This location is already registered for the doctor")

    row = store.insert("doctor_locations", location.to_row())
    location.id = str(row["id"]) if row.get("id") is not None else None
    location.raw_row = row
    logger.info("Registered location %s for doctor %s (city=%s)", place.place_id, doctor_id, location.city)
    return location
