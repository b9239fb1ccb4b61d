"""
Connection Manager and bounded connection pool for the backing store.

psycopg opens the physical connections; ConnectionPool bounds and recycles them.
"""

from .connect import connect, cursor_to_dicts, execute
from .errors import DatabaseConnectionError, PoolClosed, PoolError, PoolExhausted
from .health import health_check
from .manager import ConnectionPool, create_pool

__all__ = [
    "connect",
    "execute",
    "cursor_to_dicts",
    "health_check",
    "ConnectionPool",
    "create_pool",
    "PoolError",
    "PoolExhausted",
    "PoolClosed",
    "DatabaseConnectionError",
]
