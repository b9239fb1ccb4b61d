"""
DB connection helpers for the backing PostgreSQL store.

Uses psycopg directly; the pool calls ``connect`` through a zero-argument
connector so tests can substitute fake connections.
"""

from typing import Any

import psycopg

from .errors import DatabaseConnectionError


def connect(
    dsn: str,
    *,
    connect_timeout: int = 10,
    statement_timeout: float | None = None,
) -> Any:
    """
    Open one read-only connection from a conninfo string or postgresql:// URL.

    - statement_timeout: seconds; applied server-side for the whole session
      (Postgres ``statement_timeout``). None = no limit.
    """
    kwargs: dict[str, Any] = {"connect_timeout": connect_timeout}
    if statement_timeout is not None and statement_timeout > 0:
        kwargs["options"] = f"-c statement_timeout={int(statement_timeout * 1000)}"
    try:
        conn = psycopg.connect(dsn, **kwargs)
    except psycopg.Error as e:
        raise DatabaseConnectionError(f"Could not connect to database: {e}") from e
    conn.read_only = True
    return conn


def execute(
    conn: Any,
    sql: str,
    params: dict | list | tuple | None = None,
) -> Any:
    """Execute SQL and return the cursor. Caller uses cursor_to_dicts(cursor)."""
    cur = conn.cursor()
    try:
        if params is not None:
            cur.execute(sql, params)
        else:
            cur.execute(sql)
    except BaseException:
        cur.close()
        raise
    return cur


def cursor_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor result to list of dicts keyed by column name."""
    desc = cursor.description
    if not desc:
        return []
    names = [d[0] for d in desc]
    return [dict(zip(names, row, strict=True)) for row in cursor.fetchall()]


def is_broken(conn: Any) -> bool:
    """True if the driver already knows the connection is unusable."""
    return bool(getattr(conn, "closed", False) or getattr(conn, "broken", False))
