"""
Bounded connection pool for the backing store.

Hands out at most ``max_size`` connections at a time, keeps ``min_idle``
connections warm and recycles connections that sat idle longer than
``idle_timeout`` or lived longer than ``max_lifetime``.

Waiters are served in arrival order: a released connection, or the slot
freed by discarding a broken one, is handed straight to the oldest waiter.
"""

import logging
import threading
import time
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import partial
from typing import Any, NamedTuple

from salesapi.core.config import Settings

from .connect import connect, is_broken
from .errors import DatabaseConnectionError, PoolClosed, PoolError, PoolExhausted
from .health import health_check

_log = logging.getLogger(__name__)

_PING_IDLE_THRESHOLD = 30.0  # only ping connections idle longer than this (seconds)
_REAPER_JOIN_TIMEOUT = 5.0


class _PoolEntry(NamedTuple):
    conn: Any
    created_at: float  # time.monotonic() when the connection was opened
    last_used: float  # time.monotonic() when last returned to pool


class _Waiter:
    """A blocked acquirer. Filled in under the pool lock, then woken."""

    __slots__ = ("event", "entry", "slot", "error")

    def __init__(self) -> None:
        self.event = threading.Event()
        self.entry: _PoolEntry | None = None
        self.slot = False  # granted a free slot: open a new connection
        self.error: PoolError | None = None


class ConnectionPool:
    """
    Thread-safe pool of DB-API connections.

    - connector: zero-argument callable opening one connection.
    - max_size: hard cap on open connections (idle + checked out).
    - min_idle: connections kept warm by open() and the reaper.
    - acquire_timeout: seconds acquire() waits for a free connection.
    - idle_timeout: seconds an idle connection beyond min_idle may sit unused (0 = never reaped).
    - max_lifetime: seconds after which a connection is recycled (0 = unlimited).
    - reap_interval: seconds between background reaper runs.
    """

    def __init__(
        self,
        connector: Callable[[], Any],
        *,
        max_size: int,
        min_idle: int,
        acquire_timeout: float,
        idle_timeout: float,
        max_lifetime: float,
        reap_interval: float = 30.0,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        if not 0 <= min_idle <= max_size:
            raise ValueError("min_idle must be between 0 and max_size")
        for name, value in (
            ("acquire_timeout", acquire_timeout),
            ("idle_timeout", idle_timeout),
            ("max_lifetime", max_lifetime),
        ):
            if value < 0:
                raise ValueError(f"{name} must be >= 0")
        if reap_interval <= 0:
            raise ValueError("reap_interval must be > 0")

        self.max_size = max_size
        self.min_idle = min_idle
        self.acquire_timeout = float(acquire_timeout)
        self.idle_timeout = float(idle_timeout)
        self.max_lifetime = float(max_lifetime)
        self.reap_interval = float(reap_interval)

        self._connector = connector
        self._lock = threading.Lock()
        self._idle: list[_PoolEntry] = []  # last item = most recently used
        self._in_use: dict[int, _PoolEntry] = {}
        self._waiters: deque[_Waiter] = deque()
        self._size = 0  # open connections plus slots reserved for opening
        self._closed = False
        self._stop = threading.Event()
        self._reaper: threading.Thread | None = None

    def __enter__(self) -> "ConnectionPool":
        self.open()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Open the warm set and start the reaper. Raises DatabaseConnectionError."""
        with self._lock:
            if self._closed:
                raise PoolClosed("Connection pool is closed")
            if self._reaper is not None:
                return
        self._fill()
        self._reaper = threading.Thread(
            target=self._reap_loop, name="pool-reaper", daemon=True
        )
        self._reaper.start()
        _log.info(
            "Connection pool opened (max_size=%s, min_idle=%s)",
            self.max_size,
            self.min_idle,
        )

    def close(self) -> None:
        """Close idle connections and fail waiters. Later releases close their connection."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            idle, self._idle = self._idle, []
            self._size -= len(idle)
            waiters, self._waiters = list(self._waiters), deque()
            for waiter in waiters:
                waiter.error = PoolClosed("Connection pool is closed")
                waiter.event.set()
        self._stop.set()
        reaper = self._reaper
        if reaper is not None and reaper is not threading.current_thread():
            reaper.join(timeout=_REAPER_JOIN_TIMEOUT)
        for entry in idle:
            self._close_quiet(entry.conn)
        _log.info("Connection pool closed")

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Checkout / checkin
    # ------------------------------------------------------------------

    def acquire(self, timeout: float | None = None) -> Any:
        """
        Return a usable connection.

        Raises PoolExhausted when none is free within *timeout* (default
        acquire_timeout), DatabaseConnectionError when opening a new one
        fails, PoolClosed after close().
        """
        wait = self.acquire_timeout if timeout is None else timeout
        deadline = time.monotonic() + wait

        entry = self._checkout(deadline)
        if entry is not None and not self._usable(entry):
            # keep the slot, replace the dead connection
            self._close_quiet(entry.conn)
            entry = None
        if entry is None:
            entry = self._open_entry()

        with self._lock:
            self._in_use[id(entry.conn)] = entry
        return entry.conn

    def release(self, conn: Any) -> None:
        """Return *conn* to the pool, or discard it if broken. Never raises."""
        try:
            self._checkin(conn)
        except Exception:
            _log.exception("Unexpected error while releasing a connection")

    @contextmanager
    def connection(self, timeout: float | None = None) -> Iterator[Any]:
        """Acquire a connection for the duration of the block."""
        conn = self.acquire(timeout)
        try:
            yield conn
        finally:
            self.release(conn)

    def stats(self) -> dict[str, int]:
        """Return pool statistics for monitoring."""
        with self._lock:
            return {
                "size": self._size,
                "idle": len(self._idle),
                "checked_out": len(self._in_use),
                "waiting": len(self._waiters),
                "max_size": self.max_size,
                "min_idle": self.min_idle,
            }

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def reap(self) -> None:
        """
        Close idle connections past max_lifetime, and those past idle_timeout
        beyond the min_idle warm set; then top the idle set up to min_idle.
        """
        now = time.monotonic()
        stale: list[_PoolEntry] = []
        with self._lock:
            if self._closed:
                return
            keep: list[_PoolEntry] = []
            remaining = len(self._idle)
            # oldest-used first so the most recently used survive
            for entry in self._idle:
                if self._expired(entry, now) or (
                    self.idle_timeout > 0
                    and remaining > self.min_idle
                    and now - entry.last_used > self.idle_timeout
                ):
                    stale.append(entry)
                    remaining -= 1
                else:
                    keep.append(entry)
            self._idle = keep
            self._size -= len(stale)

        for entry in stale:
            self._close_quiet(entry.conn)
        if stale:
            _log.debug("Reaped %s idle connection(s)", len(stale))
        self._fill()

    def _reap_loop(self) -> None:
        while not self._stop.wait(self.reap_interval):
            try:
                self.reap()
            except DatabaseConnectionError as e:
                _log.warning("Could not refill idle connections: %s", e)
            except Exception:
                _log.exception("Connection reaper failed")

    def _fill(self) -> None:
        """Open connections until min_idle are idle (bounded by max_size)."""
        while True:
            with self._lock:
                if (
                    self._closed
                    or len(self._idle) >= self.min_idle
                    or self._size >= self.max_size
                ):
                    return
                self._size += 1
            self._put_back(self._open_entry())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _checkout(self, deadline: float) -> _PoolEntry | None:
        """Take an idle entry, or reserve a slot (None), or wait for a handoff."""
        stale: list[_PoolEntry] = []
        waiter: _Waiter | None = None
        try:
            with self._lock:
                if self._closed:
                    raise PoolClosed("Connection pool is closed")
                now = time.monotonic()
                while self._idle:
                    entry = self._idle.pop()
                    if self._expired(entry, now):
                        stale.append(entry)
                        self._size -= 1
                        continue
                    return entry
                if self._size < self.max_size and not self._waiters:
                    self._size += 1
                    return None
                waiter = _Waiter()
                self._waiters.append(waiter)
        finally:
            for entry in stale:
                self._close_quiet(entry.conn)

        waiter.event.wait(max(deadline - time.monotonic(), 0.0))
        with self._lock:
            if waiter.error is not None:
                raise waiter.error
            if waiter.entry is not None or waiter.slot:
                return waiter.entry
            self._waiters.remove(waiter)
            stats = (self._size, len(self._in_use), len(self._waiters))
        _log.warning(
            "Connection pool exhausted (size=%s, checked_out=%s, waiting=%s)", *stats
        )
        raise PoolExhausted("No database connection available within the acquire timeout")

    def _checkin(self, conn: Any) -> None:
        with self._lock:
            entry = self._in_use.pop(id(conn), None)
        if entry is None:
            # already released, or never ours: leave it alone
            _log.warning("Ignoring release of a connection that is not checked out")
            return
        if not self._reset(conn) or self._expired(entry, time.monotonic()):
            self._discard(entry)
            return
        self._put_back(entry._replace(last_used=time.monotonic()))

    def _put_back(self, entry: _PoolEntry) -> None:
        """Hand *entry* to the oldest waiter, or park it in the idle set."""
        with self._lock:
            if not self._closed:
                if self._waiters:
                    waiter = self._waiters.popleft()
                    waiter.entry = entry
                    waiter.event.set()
                else:
                    self._idle.append(entry)
                return
            self._size -= 1
        self._close_quiet(entry.conn)

    def _discard(self, entry: _PoolEntry) -> None:
        _log.debug("Discarding connection")
        self._close_quiet(entry.conn)
        self._free_slot()

    def _free_slot(self) -> None:
        """Give a reserved-but-unused slot to the oldest waiter, or drop it."""
        with self._lock:
            if self._waiters:
                waiter = self._waiters.popleft()
                waiter.slot = True
                waiter.event.set()
                return
            self._size -= 1

    def _open_entry(self) -> _PoolEntry:
        """Open a connection for an already reserved slot."""
        try:
            conn = self._connector()
        except Exception as e:
            self._free_slot()
            if isinstance(e, DatabaseConnectionError):
                raise
            raise DatabaseConnectionError(f"Could not open connection: {e}") from e
        now = time.monotonic()
        return _PoolEntry(conn=conn, created_at=now, last_used=now)

    def _expired(self, entry: _PoolEntry, now: float) -> bool:
        return self.max_lifetime > 0 and now - entry.created_at > self.max_lifetime

    @staticmethod
    def _usable(entry: _PoolEntry) -> bool:
        if is_broken(entry.conn):
            return False
        idle_sec = time.monotonic() - entry.last_used
        return idle_sec <= _PING_IDLE_THRESHOLD or health_check(entry.conn)

    @staticmethod
    def _reset(conn: Any) -> bool:
        """End the implicit read transaction; False if the connection is unusable."""
        if is_broken(conn):
            return False
        try:
            conn.rollback()
        except Exception:
            return False
        return not is_broken(conn)

    @staticmethod
    def _close_quiet(conn: Any) -> None:
        try:
            conn.close()
        except Exception:
            pass


def create_pool(settings: Settings) -> ConnectionPool:
    """Build the application pool from settings. Call open() before use."""
    connector = partial(
        connect,
        settings.DATABASE_URL,
        connect_timeout=settings.DB_CONNECT_TIMEOUT,
        statement_timeout=settings.DB_STATEMENT_TIMEOUT,
    )
    return ConnectionPool(
        connector,
        max_size=settings.DB_POOL_MAX_SIZE,
        min_idle=settings.DB_POOL_MIN_IDLE,
        acquire_timeout=settings.DB_POOL_ACQUIRE_TIMEOUT,
        idle_timeout=settings.DB_POOL_IDLE_TIMEOUT,
        max_lifetime=settings.DB_POOL_MAX_LIFETIME,
        reap_interval=settings.DB_POOL_REAP_INTERVAL,
    )
