from fastapi import APIRouter

from salesapi.api.routes import (
    customers,
    employees,
    orders,
    products,
    stats,
    suppliers,
    utils,
)

api_router = APIRouter()
api_router.include_router(stats.router)
api_router.include_router(customers.router)
api_router.include_router(employees.router)
api_router.include_router(suppliers.router)
api_router.include_router(products.router)
api_router.include_router(orders.router)
api_router.include_router(utils.router)
