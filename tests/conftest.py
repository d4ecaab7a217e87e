import sys
from pathlib import Path

import pytest

# Ensure the `medsearch` package is importable when running pytest from the repository root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from medsearch.core.errors import FetchError  # noqa: E402


class DummyStore:
    """In-memory TableStore recording every call."""

    def __init__(self, tables=None, fail_on=()):
        self.tables = {name: [dict(row) for row in rows] for name, rows in (tables or {}).items()}
        self.fail_on = set(fail_on)
        self.calls = []
        self.inserted = []

    def select(self, table, *, columns=("*",), eq=None, ilike=None, in_=None, order_by=()):
        self.calls.append((table, {"columns": tuple(columns), "eq": eq, "ilike": ilike, "in_": in_, "order_by": order_by}))
        if table in self.fail_on:
            raise FetchError(f"{table} unavailable")

        rows = list(self.tables.get(table, []))
        for column, value in (eq or {}).items():
            rows = [row for row in rows if row.get(column) == value]
        for column, value in (ilike or {}).items():
            rows = [row for row in rows if str(row.get(column) or "").lower() == value.lower()]
        for column, values in (in_ or {}).items():
            wanted = set(values)
            rows = [row for row in rows if row.get(column) in wanted]
        for column in reversed(tuple(order_by)):
            rows.sort(key=lambda row: str(row.get(column) or ""))
        if tuple(columns) != ("*",):
            rows = [{column: row.get(column) for column in columns} for row in rows]
        return rows

    def insert(self, table, row):
        if table in self.fail_on:
            raise FetchError(f"{table} unavailable")
        new_row = dict(row, id=f"{table}-{len(self.inserted) + 1}")
        self.tables.setdefault(table, []).append(new_row)
        self.inserted.append((table, new_row))
        return new_row

    def calls_for(self, table):
        return [kwargs for name, kwargs in self.calls if name == table]


@pytest.fixture
def make_store():
    return DummyStore
