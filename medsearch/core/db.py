"""Table-style access to the directory database."""

import logging
import re
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

import psycopg2
from psycopg2 import extras, pool

from medsearch.core.config import ConfigError, get_settings
from medsearch.core.errors import FetchError

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

Row = Dict[str, Any]


class TableStore(Protocol):
    """The filtered/sortable table interface the search engine consumes."""

    def select(
        self,
        table: str,
        *,
        columns: Sequence[str] = ("*",),
        eq: Optional[Mapping[str, Any]] = None,
        ilike: Optional[Mapping[str, str]] = None,
        in_: Optional[Mapping[str, Iterable[Any]]] = None,
        order_by: Sequence[str] = (),
    ) -> List[Row]:
        ...

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        ...


def _ident(name: str) -> str:
    if name != "*" and not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ILIKE behaves as a case-insensitive equality."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_select(
    table: str,
    *,
    columns: Sequence[str] = ("*",),
    eq: Optional[Mapping[str, Any]] = None,
    ilike: Optional[Mapping[str, str]] = None,
    in_: Optional[Mapping[str, Iterable[Any]]] = None,
    order_by: Sequence[str] = (),
) -> Tuple[str, Dict[str, Any]]:
    clauses: List[str] = []
    params: Dict[str, Any] = {}

    for column, value in (eq or {}).items():
        key = f"eq_{_ident(column)}"
        clauses.append(f"{column} = %({key})s")
        params[key] = value
    for column, value in (ilike or {}).items():
        key = f"ilike_{_ident(column)}"
        clauses.append(f"{column} ILIKE %({key})s")
        params[key] = escape_like(value)
    for column, values in (in_ or {}).items():
        key = f"in_{_ident(column)}"
        values = tuple(values)
        if not values:
            clauses.append("FALSE")
            continue
        clauses.append(f"{column} IN %({key})s")
        params[key] = values

    sql = f"SELECT {', '.join(_ident(c) for c in columns)} FROM {_ident(table)}"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    if order_by:
        sql += " ORDER BY " + ", ".join(_ident(c) for c in order_by)
    return sql, params


def build_insert(table: str, row: Mapping[str, Any]) -> Tuple[str, Dict[str, Any]]:
    if not row:
        raise ValueError("row must contain at least one column")
    columns = [_ident(column) for column in row]
    placeholders = ", ".join(f"%({column})s" for column in columns)
    sql = f"INSERT INTO {_ident(table)} ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *"
    return sql, dict(row)


class PostgresStore:
    """TableStore backed by a psycopg2 connection pool.

    The pool is shared by the lookup threads, so it is a
    ``ThreadedConnectionPool`` created at most once under a lock. Every
    session gets a server-side ``statement_timeout``; a cancelled query is a
    ``psycopg2.Error`` and surfaces as ``FetchError`` like any other.
    """

    def __init__(
        self,
        dsn: Optional[str] = None,
        minconn: int = 1,
        maxconn: int = 5,
        statement_timeout: Optional[float] = None,
    ) -> None:
        self._dsn = dsn
        self._minconn = minconn
        self._maxconn = maxconn
        self._statement_timeout = statement_timeout
        self._pool: Optional[pool.ThreadedConnectionPool] = None
        self._lock = threading.Lock()

    def init_pool(self) -> pool.ThreadedConnectionPool:
        """Initialise and return this store's connection pool."""
        with self._lock:
            if self._pool is None:
                settings = get_settings()
                dsn = self._dsn or settings.database_url
                if not dsn:
                    raise ConfigError("DATABASE_URL is required for database connections")
                timeout = self._statement_timeout
                if timeout is None:
                    timeout = settings.request_timeout
                self._pool = pool.ThreadedConnectionPool(
                    self._minconn,
                    self._maxconn,
                    dsn=dsn,
                    connect_timeout=10,
                    options=f"-c statement_timeout={int(timeout * 1000)}",
                )
                logger.info("Database connection pool initialised")
            return self._pool

    @contextmanager
    def get_connection(self):
        """Context manager yielding a pooled connection."""
        pg_pool = self.init_pool()
        conn = pg_pool.getconn()
        try:
            yield conn
        finally:
            pg_pool.putconn(conn)

    def select(self, table, *, columns=("*",), eq=None, ilike=None, in_=None, order_by=()) -> List[Row]:
        sql, params = build_select(table, columns=columns, eq=eq, ilike=ilike, in_=in_, order_by=order_by)
        try:
            with self.get_connection() as conn:
                with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                    cur.execute(sql, params)
                    rows = [dict(row) for row in cur.fetchall()]
                conn.rollback()
        except psycopg2.Error as exc:
            logger.error("Select on %s failed: %s", table, exc)
            raise FetchError(f"Could not read {table}: {exc}") from exc
        logger.debug("Selected %d rows from %s", len(rows), table)
        return rows

    def insert(self, table, row) -> Row:
        sql, params = build_insert(table, row)
        try:
            with self.get_connection() as conn:
                with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                    cur.execute(sql, params)
                    inserted = dict(cur.fetchone())
                conn.commit()
        except psycopg2.Error as exc:
            logger.error("Insert into %s failed: %s", table, exc)
            raise FetchError(f"Could not write {table}: {exc}") from exc
        logger.debug("Inserted row into %s", table)
        return inserted
