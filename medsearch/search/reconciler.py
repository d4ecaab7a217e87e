"""Holds the displayed doctor list and decides which lookup results may replace it."""

import enum
import logging
import threading
from typing import Iterable, Optional, Tuple

from medsearch.models import DoctorSummary, Pathology

logger = logging.getLogger(__name__)

INITIAL_MESSAGE = (
    "Search doctors by location or pathology. "
    "Select a location or choose a pathology to see available doctors."
)
NO_PATHOLOGY_MATCHES = "No doctors specialize in this pathology."
NO_CITY_MATCHES = "No doctors found in {city}."
NO_COMBINED_MATCHES = "No doctors in {city} specialize in this pathology."


class SearchOutcome(str, enum.Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    FOUND = "found"
    EMPTY = "empty"
    FAILED = "failed"


class ResultReconciler:
    """Last-request-wins holder for the doctor list.

    Every lookup takes a ticket from `begin()`; its completion is only applied
    while that ticket is still the latest one handed out. Older completions are
    dropped, so a slow response can never overwrite a newer one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._generation = 0
        self.doctors: Tuple[DoctorSummary, ...] = ()
        self.pathology: Optional[Pathology] = None
        self.city: Optional[str] = None
        self.error: Optional[str] = None
        self.searching = False
        self._failed = False

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        with self._lock:
            self._generation += 1
            self.searching = True
            self.error = None
            self._failed = False
            return self._generation

    def apply(self, ticket: int, doctors: Iterable[DoctorSummary]) -> bool:
        with self._lock:
            if ticket != self._generation:
                logger.debug("Discarding stale result (ticket=%s, current=%s)", ticket, self._generation)
                return False
            self.doctors = tuple(doctors)
            self.searching = False
            self._failed = False
            return True

    def fail(self, ticket: int, message: str) -> bool:
        with self._lock:
            if ticket != self._generation:
                logger.debug("Discarding stale failure (ticket=%s, current=%s)", ticket, self._generation)
                return False
            self.doctors = ()
            self.error = message
            self.searching = False
            self._failed = True
            return True

    def invalidate(self) -> None:
        """Drop whatever is in flight and empty the list."""
        with self._lock:
            self._generation += 1
            self.doctors = ()
            self.searching = False
            self._failed = False

    def report(self, message: str) -> None:
        """Show an error that did not come from a lookup (e.g. an unresolved place)."""
        with self._lock:
            self.error = message

    def dismiss_error(self) -> None:
        with self._lock:
            self.error = None

    def set_pathology(self, pathology: Optional[Pathology]) -> None:
        self.pathology = pathology

    def set_city(self, city: Optional[str]) -> None:
        self.city = city

    @property
    def outcome(self) -> SearchOutcome:
        if self.searching:
            return SearchOutcome.SEARCHING
        if self._failed:
            return SearchOutcome.FAILED
        if self.doctors:
            return SearchOutcome.FOUND
        if self.pathology is None and self.city is None:
            return SearchOutcome.IDLE
        return SearchOutcome.EMPTY

    @property
    def status_message(self) -> Optional[str]:
        """Empty-state text for the current filters.

        None while searching, while results are shown, and after a failed lookup:
        a failure is reported through `error`, not as an empty result.
        """
        if self.searching or self.doctors or self._failed:
            return None
        if self.pathology is not None and self.city is not None:
            return NO_COMBINED_MATCHES.format(city=self.city)
        if self.pathology is not None:
            return NO_PATHOLOGY_MATCHES
        if self.city is not None:
            return NO_CITY_MATCHES.format(city=self.city)
        return INITIAL_MESSAGE
