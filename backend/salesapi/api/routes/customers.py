from fastapi import APIRouter

from salesapi.api.deps import IdDep, PageDep, RunnerDep, SearchDep
from salesapi.models import Customer, CustomerSearchResult
from salesapi.queries import QueryName

router = APIRouter(tags=["customers"])


@router.get("/customers", response_model=list[Customer])
async def get_customers(runner: RunnerDep, page: PageDep) -> list[Customer]:
    """Customers ordered by id; limit defaults to 100, offset to 0."""
    return await runner.run(QueryName.LIST_CUSTOMERS, page)


@router.get("/customer-by-id", response_model=Customer | None)
async def get_customer_by_id(runner: RunnerDep, params: IdDep) -> Customer | None:
    """One customer, or null when the id does not exist."""
    return await runner.run(QueryName.CUSTOMER_BY_ID, params)


@router.get("/search-customer", response_model=list[CustomerSearchResult])
async def search_customer(
    runner: RunnerDep, params: SearchDep
) -> list[CustomerSearchResult]:
    """
    Full-text search on company_name. `term` is a tsquery expression
    (e.g. `alfreds`, `ernst & handel`); malformed syntax yields 500.
    """
    return await runner.run(QueryName.SEARCH_CUSTOMERS, params)
