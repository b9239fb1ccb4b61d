"""
Query Executor: run one catalog query on an acquired connection and map rows.

Absent results are None (single-row queries) or [] (list queries), never an
error. Driver failures surface as QueryError or DatabaseConnectionError; the
executor never retries.
"""

import logging
from typing import Any

import psycopg
from pydantic import ValidationError
from sqlmodel import SQLModel

from salesapi.core.pool import DatabaseConnectionError, cursor_to_dicts, execute

from .catalog import CATALOG, ORDER_DETAILS_WITH_PRODUCTS_SQL, QueryDef, QueryName
from .mapping import first_record, order_with_details, to_records

_log = logging.getLogger(__name__)


class QueryError(Exception):
    """Statement execution failed (including malformed search syntax). Not retryable."""

    def __init__(self, query: QueryName | str, message: str) -> None:
        self.query = QueryName(query)
        super().__init__(f"{self.query.value}: {message}")


class QueryExecutor:
    """
    run(conn, name, params) -> list[record] | record | None

    The connection is borrowed; acquiring and releasing it is the caller's job.
    """

    def run(self, conn: Any, name: QueryName | str, params: SQLModel) -> Any:
        qdef = CATALOG[QueryName(name)]
        if not isinstance(params, qdef.params_type):
            raise TypeError(
                f"{qdef.name.value} expects {qdef.params_type.__name__}, "
                f"got {type(params).__name__}"
            )
        bind = params.model_dump()
        try:
            if qdef.name == QueryName.ORDER_WITH_DETAILS_AND_PRODUCTS:
                return self._order_with_details_and_products(conn, qdef, bind)
            rows = self._fetch(conn, qdef.sql, bind)
            if qdef.many:
                return to_records(qdef.record_type, rows)
            return first_record(qdef.record_type, rows)
        except psycopg.errors.QueryCanceled as e:
            _log.warning("Query %s timed out: %s", qdef.name.value, e)
            raise QueryError(qdef.name, "query timed out (statement_timeout)") from e
        except (psycopg.OperationalError, psycopg.InterfaceError) as e:
            _log.error("Connection failed during %s: %s", qdef.name.value, e, exc_info=True)
            raise DatabaseConnectionError(f"Database connection failed: {e}") from e
        except (psycopg.errors.SyntaxError, psycopg.DataError) as e:
            # to_tsquery rejects malformed search expressions with these
            _log.warning("Query %s rejected its input: %s", qdef.name.value, e)
            raise QueryError(qdef.name, f"invalid query input: {e}") from e
        except psycopg.Error as e:
            _log.error("Query %s failed: %s", qdef.name.value, e, exc_info=True)
            raise QueryError(qdef.name, f"SQL execution failed: {e}") from e
        except ValidationError as e:
            _log.error("Query %s returned unexpected rows: %s", qdef.name.value, e)
            raise QueryError(qdef.name, "result did not match the expected shape") from e

    def _order_with_details_and_products(
        self, conn: Any, qdef: QueryDef, bind: dict[str, Any]
    ) -> Any:
        order_rows = self._fetch(conn, qdef.sql, bind)
        if not order_rows:
            return None
        detail_rows = self._fetch(conn, ORDER_DETAILS_WITH_PRODUCTS_SQL, bind)
        return order_with_details(order_rows[0], detail_rows)

    @staticmethod
    def _fetch(conn: Any, sql: str, bind: dict[str, Any]) -> list[dict[str, Any]]:
        cur = execute(conn, sql, bind)
        try:
            return cursor_to_dicts(cur)
        finally:
            cur.close()
