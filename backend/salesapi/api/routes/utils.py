import asyncio

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from salesapi.api.deps import PoolDep
from salesapi.core.health import liveness_check, readiness_check

router = APIRouter(prefix="/utils", tags=["utils"])


@router.get("/liveness/", response_model=None)
async def liveness() -> bool | JSONResponse:
    """
    Liveness probe: is the process alive and responsive?

    Lightweight: no DB I/O.  If this fails the container should be
    restarted by the orchestrator.
    """
    ok, failures = liveness_check()
    if not ok:
        return JSONResponse(
            status_code=503,
            content={"success": False, "message": "Process unhealthy", "data": failures},
        )
    return True


@router.get("/health-check/", response_model=None)
async def health_check(pool: PoolDep) -> bool | JSONResponse:
    """
    Readiness probe: can the service handle traffic?

    Borrows a pooled connection and runs SELECT 1.
    Returns 200 with true if the database answers; 503 otherwise.
    """
    ok, failures = await asyncio.to_thread(readiness_check, pool)
    if not ok:
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "message": "Service Unavailable",
                "data": failures,
            },
        )
    return True


@router.get("/pool-stats/")
async def pool_stats(pool: PoolDep) -> dict[str, int]:
    """Connection pool counters: size, idle, checked_out, waiting, max_size, min_idle."""
    return pool.stats()
