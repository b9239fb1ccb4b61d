"""Error taxonomy for the connection pool."""


class PoolError(Exception):
    """Base class for pool failures."""


class PoolExhausted(PoolError):
    """No connection became available within the acquire timeout. Retryable."""


class PoolClosed(PoolError):
    """The pool has been shut down."""


class DatabaseConnectionError(PoolError, ConnectionError):
    """The backing store is unreachable or the connection broke. Retryable."""
