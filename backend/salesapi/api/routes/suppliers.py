from fastapi import APIRouter

from salesapi.api.deps import IdDep, PageDep, RunnerDep
from salesapi.models import Supplier
from salesapi.queries import QueryName

router = APIRouter(tags=["suppliers"])


@router.get("/suppliers", response_model=list[Supplier])
async def get_suppliers(runner: RunnerDep, page: PageDep) -> list[Supplier]:
    return await runner.run(QueryName.LIST_SUPPLIERS, page)


@router.get("/supplier-by-id", response_model=Supplier | None)
async def get_supplier_by_id(runner: RunnerDep, params: IdDep) -> Supplier | None:
    return await runner.run(QueryName.SUPPLIER_BY_ID, params)
