"""Core data models shared by the doctor search engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple


@dataclass(frozen=True, slots=True)
class Pathology:
    """Medical condition used as a doctor-search filter key."""

    id: str
    name: str
    code: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Optional["Pathology"]:
        pathology_id = _strip_or_none(row.get("id"))
        name = _strip_or_none(row.get("name"))
        if not pathology_id or not name:
            return None
        return cls(
            id=pathology_id,
            name=name,
            code=_strip_or_none(row.get("code")),
            description=_strip_or_none(row.get("description")),
        )


@dataclass(frozen=True, slots=True)
class DoctorSummary:
    """Doctor card shown in the search results."""

    id: str
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    specialty: Optional[str] = None
    experience_description: Optional[str] = None
    profile_photo_url: Optional[str] = None

    @property
    def display_name(self) -> str:
        full_name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return f"Dr(a). {full_name}"

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Optional["DoctorSummary"]:
        doctor_id = _strip_or_none(row.get("id"))
        if not doctor_id:
            return None
        return cls(
            id=doctor_id,
            first_name=_strip_or_none(row.get("first_name")) or "",
            last_name=_strip_or_none(row.get("last_name")) or "",
            email=_strip_or_none(row.get("email")),
            specialty=_strip_or_none(row.get("specialty")),
            experience_description=_strip_or_none(row.get("experience_description")),
            profile_photo_url=_strip_or_none(row.get("profile_photo_url")),
        )


@dataclass(frozen=True, slots=True)
class AddressComponent:
    long_name: str
    types: FrozenSet[str] = frozenset()
    short_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Geometry:
    lat: float
    lng: float


@dataclass(frozen=True, slots=True)
class PlaceSelection:
    """The part of a geocoding widget result the search engine relies on."""

    address_components: Tuple[AddressComponent, ...] = ()
    geometry: Optional[Geometry] = None
    formatted_address: Optional[str] = None
    place_id: Optional[str] = None
    name: Optional[str] = None


@dataclass(slots=True)
class DoctorLocation:
    """Place where a doctor attends patients; `city` feeds the city search."""

    doctor_id: str
    place_id: str
    formatted_address: str
    latitude: float
    longitude: float
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    id: Optional[str] = None
    raw_row: Optional[Dict[str, Any]] = field(default=None, repr=False)

    def to_row(self) -> Dict[str, Any]:
        return {
            "doctor_id": self.doctor_id,
            "place_id": self.place_id,
            "formatted_address": self.formatted_address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "city": self.city,
            "region": self.region,
            "country": self.country,
        }


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None
