"""
Async bridge between request handlers and the blocking query path.

psycopg and the pool are blocking, so each query runs on a worker thread:
acquire -> QueryExecutor.run -> release, all inside that thread.

The acquire timeout is measured from the moment the request asks for a
query, so time spent queued for a worker thread counts against it. There are
more worker threads than connections: surplus requests wait in
``pool.acquire`` (FIFO, bounded) and fail with PoolExhausted when the pool
stays full.

If the awaiting request is cancelled, the worker still finishes and releases
its connection; only the result is dropped.
"""

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any

from sqlmodel import SQLModel

from salesapi.core.pool import ConnectionPool, PoolExhausted

from .catalog import QueryName
from .executor import QueryExecutor

_log = logging.getLogger(__name__)


class QueryRunner:
    """
    - max_workers: worker threads; default twice the pool's max_size so
      waiters beyond the pool bound block in acquire, not in the thread queue.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        *,
        max_workers: int | None = None,
        executor: QueryExecutor | None = None,
    ) -> None:
        self.pool = pool
        self.executor = executor or QueryExecutor()
        self._threads = ThreadPoolExecutor(
            max_workers=max_workers or 2 * pool.max_size,
            thread_name_prefix="query",
        )

    def run_sync(
        self,
        name: QueryName | str,
        params: SQLModel,
        *,
        deadline: float | None = None,
    ) -> Any:
        """
        Acquire, run and release on the calling thread.

        deadline: time.monotonic() value by which a connection must be
        acquired; None = now + pool.acquire_timeout.
        """
        timeout = None
        if deadline is not None:
            timeout = deadline - time.monotonic()
            if timeout <= 0 and self.pool.acquire_timeout > 0:
                _log.warning(
                    "Query %s waited %.3fs for a worker thread; acquire timeout spent",
                    QueryName(name).value,
                    self.pool.acquire_timeout - timeout,
                )
                raise PoolExhausted(
                    "No database connection available within the acquire timeout"
                )
            timeout = max(timeout, 0.0)
        with self.pool.connection(timeout) as conn:
            return self.executor.run(conn, name, params)

    async def run(self, name: QueryName | str, params: SQLModel) -> Any:
        deadline = time.monotonic() + self.pool.acquire_timeout
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._threads, partial(self.run_sync, name, params, deadline=deadline)
        )

    def shutdown(self) -> None:
        """Wait for in-flight queries, then stop the worker threads."""
        self._threads.shutdown(wait=True)
        _log.debug("Query worker threads stopped")
