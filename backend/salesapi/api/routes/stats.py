from fastapi import APIRouter

from salesapi.api.deps import CpuStatsDep

router = APIRouter(tags=["stats"])


@router.get("/stats", response_model=list[int])
async def get_stats(cpu_stats: CpuStatsDep) -> list[int]:
    """Per-core CPU usage in percent. The first call takes ~200ms longer."""
    return await cpu_stats.read()
