"""Database helpers backing the CRUD routes."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2 import extras, pool, sql

from prosperian.core.config import get_settings

logger = logging.getLogger(__name__)

TABLES = {"clients", "company", "file", "subscription", "liste"}

_connection_pool: Optional[pool.SimpleConnectionPool] = None


class RecordNotFound(LookupError):
    """Raised when no row matches the requested id."""


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


def _table(name: str) -> sql.Identifier:
    if name not in TABLES:
        raise ValueError(f"unknown table: {name}")
    return sql.Identifier(name)


def _prepare_params(row: Dict[str, Any]) -> Dict[str, Any]:
    params = {}
    for key, value in row.items():
        if isinstance(value, (dict, list)):
            value = extras.Json(value)
        params[key] = value
    return params


def _run(query: sql.Composable, params: Any = None, fetch: str = "all") -> Any:
    with get_connection() as conn:
        try:
            with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                cur.execute(query, params)
                if fetch == "all":
                    result = [dict(r) for r in cur.fetchall()]
                elif fetch == "one":
                    found = cur.fetchone()
                    result = dict(found) if found is not None else None
                else:
                    result = cur.rowcount
            conn.commit()
        except psycopg2.Error:
            conn.rollback()
            raise
    return result


def select(
    table: str,
    filters: Optional[Dict[str, Any]] = None,
    order_by: Optional[str] = None,
    descending: bool = False,
) -> List[Dict[str, Any]]:
    """Return every row of ``table`` matching the equality ``filters``."""
    query = sql.SQL("SELECT * FROM {}").format(_table(table))
    params: Dict[str, Any] = {}
    if filters:
        conditions = [
            sql.SQL("{} = {}").format(sql.Identifier(column), sql.Placeholder(column))
            for column in filters
        ]
        query += sql.SQL(" WHERE ") + sql.SQL(" AND ").join(conditions)
        params.update(filters)
    if order_by:
        query += sql.SQL(" ORDER BY {} ").format(sql.Identifier(order_by))
        query += sql.SQL("DESC" if descending else "ASC")
    return _run(query, params)


def select_one(table: str, record_id: Any) -> Dict[str, Any]:
    rows = select(table, {"id": record_id})
    if not rows:
        raise RecordNotFound(f"{table} {record_id} not found")
    return rows[0]


def insert(table: str, row: Dict[str, Any]) -> Dict[str, Any]:
    if not row:
        raise ValueError("cannot insert an empty row")
    params = _prepare_params(row)
    query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
        _table(table),
        sql.SQL(", ").join(sql.Identifier(column) for column in params),
        sql.SQL(", ").join(sql.Placeholder(column) for column in params),
    )
    created = _run(query, params, fetch="one")
    logger.debug("Inserted into %s: id=%s", table, created.get("id"))
    return created


def update(table: str, record_id: Any, patch: Dict[str, Any]) -> Dict[str, Any]:
    patch = {key: value for key, value in patch.items() if key != "id"}
    if not patch:
        raise ValueError("nothing to update")
    params = _prepare_params(patch)
    assignments = sql.SQL(", ").join(
        sql.SQL("{} = {}").format(sql.Identifier(column), sql.Placeholder(column)) for column in params
    )
    query = sql.SQL("UPDATE {} SET {} WHERE id = {} RETURNING *").format(
        _table(table), assignments, sql.Placeholder("__id")
    )
    params["__id"] = record_id
    updated = _run(query, params, fetch="one")
    if updated is None:
        raise RecordNotFound(f"{table} {record_id} not found")
    return updated


def delete(table: str, record_id: Any) -> None:
    query = sql.SQL("DELETE FROM {} WHERE id = %(id)s").format(_table(table))
    deleted = _run(query, {"id": record_id}, fetch="count")
    if not deleted:
        raise RecordNotFound(f"{table} {record_id} not found")
    logger.debug("Deleted %s id=%s", table, record_id)
