"""Doctor lookups by pathology (matching service) or by city (location table)."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol

from medsearch.core.config import ConfigError
from medsearch.core.db import TableStore
from medsearch.core.errors import FetchError, ValidationError
from medsearch.models import DoctorSummary

logger = logging.getLogger(__name__)


class MatchingService(Protocol):
    def doctors_by_pathology(self, pathology_id: str) -> List[Dict[str, Any]]:
        ...


class DoctorMatchQuery:
    """Runs one lookup per call; callers decide which result is still current.

    The matching service is only needed for pathology lookups; city lookups
    work with the store alone.
    """

    def __init__(self, store: TableStore, service: Optional[MatchingService] = None) -> None:
        self._store = store
        self._service = service

    def by_pathology(self, pathology_id: str) -> List[DoctorSummary]:
        if not pathology_id:
            return []

        if self._service is None:
            raise ConfigError("MATCH_SERVICE_URL must be set in the environment for pathology searches.")
        logger.info("Searching doctors for pathology_id=%s", pathology_id)
        rows = self._service.doctors_by_pathology(pathology_id)
        doctors = normalize_doctors(rows)
        logger.info("Found %d doctors for pathology_id=%s", len(doctors), pathology_id)
        return doctors

    def by_city(self, city: str) -> List[DoctorSummary]:
        """Two-step lookup: doctor ids from locations in the city, then their records."""
        city = (city or "").strip()
        if not city:
            raise ValidationError("A city is required to search doctors by location.")

        logger.info("Searching doctors in city=%s", city)
        locations = self._store.select("doctor_locations", columns=("doctor_id",), ilike={"city": city})
        doctor_ids = list(dict.fromkeys(str(row["doctor_id"]) for row in locations if row.get("doctor_id")))
        if not doctor_ids:
            logger.info("No doctor locations in city=%s", city)
            return []

        logger.debug("Doctor ids located in %s: %s", city, doctor_ids)
        rows = self._store.select("doctors", in_={"id": doctor_ids}, order_by=("last_name", "first_name"))
        doctors = normalize_doctors(rows)
        logger.info("Found %d doctors in city=%s", len(doctors), city)
        return doctors


def normalize_doctors(rows: Iterable[Any]) -> List[DoctorSummary]:
    """Convert raw rows to DoctorSummary, dropping malformed rows and duplicate ids."""
    doctors: List[DoctorSummary] = []
    seen = set()
    for row in rows or []:
        if not isinstance(row, dict):
            raise FetchError(f"Unexpected doctor record: {row!r}")
        doctor = DoctorSummary.from_row(row)
        if doctor is None:
            logger.warning("Skipping doctor record without id: %s", row)
            continue
        if doctor.id in seen:
            continue
        seen.add(doctor.id)
        doctors.append(doctor)
    return doctors
