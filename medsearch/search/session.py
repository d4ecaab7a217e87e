"""Doctor discovery session: the entry point the search screen talks to."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional, Union

from medsearch.core.config import Settings, get_settings
from medsearch.core.db import PostgresStore, TableStore
from medsearch.core.errors import FetchError, MedsearchError
from medsearch.etl.places import parse_place, resolve_city
from medsearch.models import Pathology, PlaceSelection
from medsearch.search.catalog import PathologyCatalog
from medsearch.search.combobox import Effect, Event, SelectorState, transition
from medsearch.search.matching import DoctorMatchQuery
from medsearch.search.reconciler import ResultReconciler
from medsearch.vendors.matching_service import MatchingServiceClient

logger = logging.getLogger(__name__)

UNRESOLVED_CITY_MESSAGE = "Could not determine the city of the selected location."
UNEXPECTED_ERROR_MESSAGE = "Unexpected error while searching doctors."


class DoctorDiscovery:
    """Wires the pathology combobox and the place picker to the doctor lookups.

    Lookups are submitted to an executor and never block the caller; their
    results reach the screen only through the reconciler's ticket check.
    """

    def __init__(
        self,
        catalog: PathologyCatalog,
        matcher: DoctorMatchQuery,
        store: TableStore,
        executor: Optional[Executor] = None,
        max_workers: int = 4,
    ) -> None:
        self.catalog = catalog
        self.matcher = matcher
        self.store = store
        self.selector = SelectorState()
        self.results = ResultReconciler()
        self.catalog_error: Optional[str] = None
        self.loading_catalog = False
        self.focus_requested = False
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "DoctorDiscovery":
        settings = settings or get_settings()
        store = PostgresStore(settings.database_url or None, statement_timeout=settings.request_timeout)
        matcher = DoctorMatchQuery(store, MatchingServiceClient.from_settings(settings))
        return cls(PathologyCatalog(), matcher, store, max_workers=settings.max_workers)

    @property
    def pathology_input_enabled(self) -> bool:
        return self.catalog.loaded and not self.loading_catalog

    def mount(self) -> bool:
        """Load the pathology catalog; a failure only disables the pathology input."""
        self.loading_catalog = True
        self.catalog_error = None
        try:
            self.catalog.load(self.store)
        except FetchError as exc:
            self.catalog_error = exc.message
            return False
        finally:
            self.loading_catalog = False
        self.selector = SelectorState(text=self.selector.text, candidates=self.catalog.filter(self.selector.text))
        return True

    def dispatch(self, event: Event) -> SelectorState:
        if not self.pathology_input_enabled:
            logger.debug("Ignoring %s while the pathology input is disabled", event)
            return self.selector

        self.selector, effects = transition(self.selector, event, self.catalog)
        for effect in effects:
            if effect is Effect.QUERY_PATHOLOGY and self.selector.selected is not None:
                self.search_pathology(self.selector.selected)
            elif effect is Effect.CLEAR_RESULTS:
                self.results.set_pathology(None)
                self.results.invalidate()
            elif effect is Effect.FOCUS_INPUT:
                self.focus_requested = True
        return self.selector

    def search_pathology(self, pathology: Pathology) -> int:
        self.results.set_pathology(pathology)
        return self._submit(self.matcher.by_pathology, pathology.id)

    def select_place(self, place: Union[PlaceSelection, Dict[str, Any], None]) -> Optional[int]:
        """Handle a geocoding widget commit. Returns the lookup ticket, if any."""
        if place is None:
            return None
        if not isinstance(place, PlaceSelection):
            place = parse_place(place)

        resolution = resolve_city(place)
        if not resolution.resolved:
            self.results.report(UNRESOLVED_CITY_MESSAGE)
            return None

        logger.info("Place %s resolved to city=%s (%s)", place.place_id, resolution.city, resolution.source_type)
        return self.search_city(resolution.city)

    def search_city(self, city: str) -> int:
        self.results.set_city(city)
        return self._submit(self.matcher.by_city, city)

    def dismiss_error(self) -> None:
        self.results.dismiss_error()
        self.catalog_error = None

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def _submit(self, lookup: Callable[[str], Any], argument: str) -> int:
        ticket = self.results.begin()
        future = self._executor.submit(lookup, argument)
        future.add_done_callback(lambda done: self._complete(ticket, done))
        return ticket

    def _complete(self, ticket: int, future: Future) -> None:
        if future.cancelled():
            self.results.fail(ticket, UNEXPECTED_ERROR_MESSAGE)
            return
        exc = future.exception()
        if exc is None:
            self.results.apply(ticket, future.result())
        elif isinstance(exc, MedsearchError):
            logger.error("Doctor lookup failed: %s", exc)
            self.results.fail(ticket, str(exc))
        else:
            logger.error("Doctor lookup crashed", exc_info=exc)
            self.results.fail(ticket, UNEXPECTED_ERROR_MESSAGE)
