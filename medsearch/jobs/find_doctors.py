"""CLI job to search doctors by pathology or by location."""

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from medsearch.core.config import ConfigError, get_settings
from medsearch.core.db import PostgresStore, TableStore
from medsearch.core.errors import MedsearchError, ValidationError
from medsearch.etl.places import parse_place, resolve_city
from medsearch.models import DoctorSummary, Pathology
from medsearch.search.catalog import PathologyCatalog
from medsearch.search.matching import DoctorMatchQuery
from medsearch.vendors.matching_service import MatchingServiceClient

logger = logging.getLogger(__name__)


def resolve_pathology(catalog: PathologyCatalog, text: str) -> Pathology:
    """Exact name or code match if there is one, otherwise the first candidate."""
    candidates = catalog.filter(text)
    if not candidates:
        raise ValidationError(f"No pathology matches {text!r}")
    needle = text.lower()
    for pathology in candidates:
        if pathology.name.lower() == needle or (pathology.code and pathology.code.lower() == needle):
            return pathology
    return candidates[0]


def run_find_doctors_job(
    *,
    store: TableStore,
    matcher: DoctorMatchQuery,
    pathology: Optional[str] = None,
    city: Optional[str] = None,
    place: Optional[Dict[str, Any]] = None,
) -> List[DoctorSummary]:
    if pathology:
        catalog = PathologyCatalog()
        catalog.load(store)
        chosen = resolve_pathology(catalog, pathology)
        logger.info("Using pathology %s (%s)", chosen.name, chosen.code or chosen.id)
        return matcher.by_pathology(chosen.id)

    if place is not None:
        resolution = resolve_city(parse_place(place))
        if not resolution.resolved:
            raise ValidationError("Could not determine the city of the selected location.")
        city = resolution.city

    if not city:
        raise ValidationError("Either a pathology or a location is required")
    return matcher.by_city(city)


def format_doctor(doctor: DoctorSummary) -> str:
    parts = [doctor.display_name]
    if doctor.email:
        parts.append(f"<{doctor.email}>")
    if doctor.specialty:
        parts.append(f"- {doctor.specialty}")
    return " ".join(parts)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find doctors by pathology or location")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--pathology", dest="pathology", help="Pathology name or code (partial match allowed)")
    group.add_argument("--city", dest="city", help="City name")
    group.add_argument("--place-json", dest="place_json", type=Path, help="File with a Places result payload")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    try:
        place = None
        if args.place_json is not None:
            with args.place_json.open("r", encoding="utf-8") as fh:
                place = json.load(fh)

        store = PostgresStore()
        service = MatchingServiceClient.from_settings(get_settings()) if args.pathology else None
        matcher = DoctorMatchQuery(store, service)
        doctors = run_find_doctors_job(
            store=store, matcher=matcher, pathology=args.pathology, city=args.city, place=place
        )
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 2
    except (MedsearchError, OSError, ValueError) as exc:
        logger.error("Doctor search failed: %s", exc)
        return 1

    if not doctors:
        print("No doctors found.")
    for doctor in doctors:
        print(format_doctor(doctor))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
