from fastapi import APIRouter

from salesapi.api.deps import IdDep, PageDep, RunnerDep
from salesapi.models import OrderAggregate, OrderWithDetailsAndProducts
from salesapi.queries import QueryName

router = APIRouter(tags=["orders"])


@router.get("/orders-with-details", response_model=list[OrderAggregate])
async def get_orders_with_details(
    runner: RunnerDep, page: PageDep
) -> list[OrderAggregate]:
    """
    Orders by id with products_count, quantity_sum and total_price over
    their details. The sums are null for orders without details.
    """
    return await runner.run(QueryName.ORDERS_WITH_DETAILS, page)


@router.get("/order-with-details", response_model=OrderAggregate | None)
async def get_order_with_details(
    runner: RunnerDep, params: IdDep
) -> OrderAggregate | None:
    return await runner.run(QueryName.ORDER_WITH_DETAILS_BY_ID, params)


@router.get(
    "/order-with-details-and-products",
    response_model=OrderWithDetailsAndProducts | None,
)
async def get_order_with_details_and_products(
    runner: RunnerDep, params: IdDep
) -> OrderWithDetailsAndProducts | None:
    """Order with its details, each carrying the product's columns."""
    return await runner.run(QueryName.ORDER_WITH_DETAILS_AND_PRODUCTS, params)
