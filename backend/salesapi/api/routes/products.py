from fastapi import APIRouter

from salesapi.api.deps import IdDep, PageDep, RunnerDep, SearchDep
from salesapi.models import Product, ProductSearchResult, ProductWithSupplier
from salesapi.queries import QueryName

router = APIRouter(tags=["products"])


@router.get("/products", response_model=list[Product])
async def get_products(runner: RunnerDep, page: PageDep) -> list[Product]:
    return await runner.run(QueryName.LIST_PRODUCTS, page)


@router.get("/product-with-supplier", response_model=ProductWithSupplier | None)
async def get_product_with_supplier(
    runner: RunnerDep, params: IdDep
) -> ProductWithSupplier | None:
    """Product joined with its supplier; null if either is missing."""
    return await runner.run(QueryName.PRODUCT_WITH_SUPPLIER, params)


@router.get("/search-product", response_model=list[ProductSearchResult])
async def search_product(
    runner: RunnerDep, params: SearchDep
) -> list[ProductSearchResult]:
    """Full-text search on product name (tsquery syntax)."""
    return await runner.run(QueryName.SEARCH_PRODUCTS, params)
