"""In-memory pathology catalog backing the pathology combobox."""

import logging
from typing import List, Tuple

from medsearch.core.db import TableStore
from medsearch.core.errors import FetchError
from medsearch.models import Pathology

logger = logging.getLogger(__name__)


class PathologyCatalog:
    """Read-only snapshot of every pathology, loaded once per session."""

    def __init__(self) -> None:
        self._items: Tuple[Pathology, ...] = ()
        self.loaded = False

    @property
    def items(self) -> Tuple[Pathology, ...]:
        return self._items

    def load(self, store: TableStore) -> Tuple[Pathology, ...]:
        """Fetch all pathologies ordered by name. Empties the cache on failure."""
        self._items = ()
        self.loaded = False
        try:
            rows = store.select("pathologies", order_by=("name",))
        except FetchError:
            logger.error("Failed to load pathology catalog")
            raise

        items: List[Pathology] = []
        for row in rows:
            pathology = Pathology.from_row(row)
            if pathology is None:
                logger.warning("Skipping pathology row without id or name: %s", row)
                continue
            items.append(pathology)

        self._items = tuple(items)
        self.loaded = True
        logger.info("Loaded %d pathologies", len(self._items))
        return self._items

    def filter(self, query: str) -> Tuple[Pathology, ...]:
        if not query:
            return self._items
        needle = query.lower()
        return tuple(
            pathology
            for pathology in self._items
            if needle in pathology.name.lower() or (pathology.code and needle in pathology.code.lower())
        )
