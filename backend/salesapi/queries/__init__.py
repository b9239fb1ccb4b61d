"""
Query Executor: fixed catalog of read queries, row mapping and the async runner.
"""

from .catalog import CATALOG, IdParams, PageParams, QueryDef, QueryName, SearchParams
from .executor import QueryError, QueryExecutor
from .runner import QueryRunner

__all__ = [
    "CATALOG",
    "QueryDef",
    "QueryName",
    "PageParams",
    "IdParams",
    "SearchParams",
    "QueryExecutor",
    "QueryError",
    "QueryRunner",
]
