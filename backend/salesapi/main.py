import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.middleware.cors import CORSMiddleware

from salesapi.api.main import api_router
from salesapi.core.config import settings
from salesapi.core.pool import (
    DatabaseConnectionError,
    PoolError,
    PoolExhausted,
    create_pool,
)
from salesapi.core.stats import CpuStats
from salesapi.queries import QueryError, QueryRunner

_logger = logging.getLogger(__name__)


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}"


if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the connection pool and shared CPU sampler; close them on shutdown."""
    pool = create_pool(settings)
    await asyncio.to_thread(pool.open)
    runner = QueryRunner(pool)
    app.state.pool = pool
    app.state.runner = runner
    app.state.cpu_stats = CpuStats(warmup_delay=settings.STATS_WARMUP_DELAY)
    try:
        yield
    finally:
        await asyncio.to_thread(runner.shutdown)
        await asyncio.to_thread(pool.close)


app = FastAPI(
    title=settings.PROJECT_NAME,
    generate_unique_id_function=custom_generate_unique_id,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Exception handlers: every core failure is a 500 with {"detail": ...}
# Driver messages stay in the log; only the catch-all echoes them, and only locally.
# ---------------------------------------------------------------------------


def _error_response(detail: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with a human-readable detail string instead of raw Pydantic errors."""
    errors = exc.errors()
    messages = []
    for err in errors:
        loc = " → ".join(str(l) for l in err.get("loc", []) if l != "query")
        msg = err.get("msg", "Invalid value")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return JSONResponse(
        status_code=422,
        content={"detail": "; ".join(messages)},
    )


@app.exception_handler(PoolError)
async def pool_exception_handler(request: Request, exc: PoolError) -> JSONResponse:
    _logger.warning(
        "Database unavailable on %s %s: %s", request.method, request.url.path, exc
    )
    if isinstance(exc, PoolExhausted):
        return _error_response("Database busy")
    if isinstance(exc, DatabaseConnectionError):
        return _error_response("Database connection failed")
    return _error_response("Database unavailable")


@app.exception_handler(QueryError)
async def query_exception_handler(request: Request, exc: QueryError) -> JSONResponse:
    _logger.warning("Query failed on %s %s: %s", request.method, request.url.path, exc)
    return _error_response(f"Query failed: {exc.query.value}")


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Catch-all for unhandled exceptions: log and return 500 with safe message."""
    _logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    detail = "Internal server error"
    if settings.ENVIRONMENT == "local":
        detail = f"Internal server error: {exc}"
    return _error_response(detail)


if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

app.include_router(api_router)
