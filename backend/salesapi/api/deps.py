from typing import Annotated

from fastapi import Depends, Query, Request

from salesapi.core.pool import ConnectionPool
from salesapi.core.stats import CpuStats
from salesapi.queries import IdParams, PageParams, QueryRunner, SearchParams
from salesapi.queries.catalog import DEFAULT_LIMIT, DEFAULT_OFFSET


def get_pool(request: Request) -> ConnectionPool:
    return request.app.state.pool


def get_runner(request: Request) -> QueryRunner:
    return request.app.state.runner


def get_cpu_stats(request: Request) -> CpuStats:
    return request.app.state.cpu_stats


PoolDep = Annotated[ConnectionPool, Depends(get_pool)]
RunnerDep = Annotated[QueryRunner, Depends(get_runner)]
CpuStatsDep = Annotated[CpuStats, Depends(get_cpu_stats)]


def page_params(
    limit: Annotated[int, Query(ge=0)] = DEFAULT_LIMIT,
    offset: Annotated[int, Query(ge=0)] = DEFAULT_OFFSET,
) -> PageParams:
    return PageParams(limit=limit, offset=offset)


def id_params(id: int) -> IdParams:
    return IdParams(id=id)


def search_params(term: str) -> SearchParams:
    return SearchParams(term=term)


PageDep = Annotated[PageParams, Depends(page_params)]
IdDep = Annotated[IdParams, Depends(id_params)]
SearchDep = Annotated[SearchParams, Depends(search_params)]
