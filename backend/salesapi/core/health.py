"""
Health-check helpers for liveness and readiness probes.

Liveness:  is the process alive and not deadlocked?  (cheap, no I/O)
Readiness: can it serve traffic?  (a pooled connection answers SELECT 1)
"""

import logging

from salesapi.core.pool import ConnectionPool, PoolError, health_check

logger = logging.getLogger(__name__)


def check_database(pool: ConnectionPool) -> str | None:
    """Borrow a connection and ping it. Returns a failure label or None if ok."""
    try:
        with pool.connection() as conn:
            if not health_check(conn):
                return "database"
    except PoolError as e:
        logger.warning("Readiness check could not get a connection: %s", e)
        return type(e).__name__
    return None


def liveness_check() -> tuple[bool, list[str]]:
    """
    Lightweight liveness probe, just confirms the Python process is responsive.
    No I/O, no DB calls.  Return format matches readiness_check for consistency.
    """
    return (True, [])


def readiness_check(pool: ConnectionPool) -> tuple[bool, list[str]]:
    """
    Returns (ok, list of failure messages). ok is False if any required check fails.
    """
    failures: list[str] = []

    if pool.closed:
        failures.append("pool_closed")
    else:
        failure = check_database(pool)
        if failure:
            failures.append(failure)

    return (len(failures) == 0, failures)
