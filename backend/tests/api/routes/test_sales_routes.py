"""Tests for the read endpoints: parameter binding, null results and error mapping."""

from collections.abc import Generator
from unittest.mock import MagicMock

import psycopg
import pytest
from fastapi.testclient import TestClient

from salesapi.api.deps import get_pool, get_runner
from salesapi.core.pool import (
    ConnectionPool,
    DatabaseConnectionError,
    PoolClosed,
    PoolExhausted,
)
from salesapi.main import app
from salesapi.models import Customer, OrderAggregate, Product
from salesapi.queries import IdParams, PageParams, QueryError, QueryName, QueryRunner, SearchParams
from tests.utils.fakedb import FakeConnector, empty, rows_of
from tests.utils.rows import (
    customer_row,
    detail_with_product_row,
    order_aggregate_row,
    order_row,
    product_row,
    product_with_supplier_row,
    supplier_row,
)

LIST_ENDPOINTS = [
    ("/customers", QueryName.LIST_CUSTOMERS),
    ("/employees", QueryName.LIST_EMPLOYEES),
    ("/suppliers", QueryName.LIST_SUPPLIERS),
    ("/products", QueryName.LIST_PRODUCTS),
    ("/orders-with-details", QueryName.ORDERS_WITH_DETAILS),
]

ID_ENDPOINTS = [
    ("/customer-by-id", QueryName.CUSTOMER_BY_ID),
    ("/employee-with-recipient", QueryName.EMPLOYEE_WITH_RECIPIENT),
    ("/supplier-by-id", QueryName.SUPPLIER_BY_ID),
    ("/product-with-supplier", QueryName.PRODUCT_WITH_SUPPLIER),
    ("/order-with-details", QueryName.ORDER_WITH_DETAILS_BY_ID),
    ("/order-with-details-and-products", QueryName.ORDER_WITH_DETAILS_AND_PRODUCTS),
]

SEARCH_ENDPOINTS = [
    ("/search-customer", QueryName.SEARCH_CUSTOMERS),
    ("/search-product", QueryName.SEARCH_PRODUCTS),
]


# --- parameter binding ---


@pytest.mark.parametrize("path,name", LIST_ENDPOINTS)
def test_list_endpoint_defaults(client: TestClient, runner: MagicMock, path: str, name: QueryName) -> None:
    r = client.get(path)
    assert r.status_code == 200
    assert r.json() == []
    runner.run.assert_awaited_once_with(name, PageParams(limit=100, offset=0))


@pytest.mark.parametrize("path,name", LIST_ENDPOINTS)
def test_list_endpoint_paging(client: TestClient, runner: MagicMock, path: str, name: QueryName) -> None:
    r = client.get(path, params={"limit": 5, "offset": 10})
    assert r.status_code == 200
    runner.run.assert_awaited_once_with(name, PageParams(limit=5, offset=10))


@pytest.mark.parametrize("path,name", ID_ENDPOINTS)
def test_id_endpoint_absent_returns_null(client: TestClient, runner: MagicMock, path: str, name: QueryName) -> None:
    runner.run.return_value = None
    r = client.get(path, params={"id": 999999})
    assert r.status_code == 200
    assert r.json() is None
    runner.run.assert_awaited_once_with(name, IdParams(id=999999))


@pytest.mark.parametrize("path,name", SEARCH_ENDPOINTS)
def test_search_endpoint_passes_term(client: TestClient, runner: MagicMock, path: str, name: QueryName) -> None:
    r = client.get(path, params={"term": "chai & tea"})
    assert r.status_code == 200
    assert r.json() == []
    runner.run.assert_awaited_once_with(name, SearchParams(term="chai & tea"))


def test_customers_serializes_nulls(client: TestClient, runner: MagicMock) -> None:
    runner.run.return_value = [Customer.model_validate(customer_row(1))]
    r = client.get("/customers")
    body = r.json()
    assert r.status_code == 200
    assert body[0]["company_name"] == "Alfreds Futterkiste"
    assert "fax" in body[0] and body[0]["fax"] is None


def test_customer_by_id_found(client: TestClient, runner: MagicMock) -> None:
    runner.run.return_value = Customer.model_validate(customer_row(7))
    r = client.get("/customer-by-id", params={"id": 7})
    assert r.status_code == 200
    assert r.json()["id"] == 7


def test_orders_with_details_aggregate_nulls(client: TestClient, runner: MagicMock) -> None:
    runner.run.return_value = [OrderAggregate.model_validate(order_aggregate_row(10248))]
    r = client.get("/orders-with-details")
    row = r.json()[0]
    assert row["products_count"] == 0
    assert row["quantity_sum"] is None
    assert row["total_price"] is None
    assert row["shipped_date"] is None


def test_search_product_returns_matches(client: TestClient, runner: MagicMock) -> None:
    runner.run.return_value = [Product.model_validate(product_row(1))]
    r = client.get("/search-product", params={"term": "chai"})
    assert [p["name"] for p in r.json()] == ["Chai"]


# --- 422: malformed parameters ---


@pytest.mark.parametrize(
    "path,params",
    [
        ("/customer-by-id", {}),
        ("/customer-by-id", {"id": "abc"}),
        ("/order-with-details", {"id": "1.5"}),
        ("/customers", {"limit": -1}),
        ("/products", {"offset": -5}),
        ("/employees", {"limit": "many"}),
        ("/search-customer", {}),
        ("/search-product", {}),
    ],
)
def test_invalid_parameters_are_rejected(
    client: TestClient, runner: MagicMock, path: str, params: dict
) -> None:
    r = client.get(path, params=params)
    assert r.status_code == 422
    assert isinstance(r.json()["detail"], str)
    runner.run.assert_not_awaited()


def test_validation_detail_names_the_parameter(client: TestClient) -> None:
    r = client.get("/supplier-by-id", params={"id": "x"})
    assert r.status_code == 422
    assert r.json()["detail"].startswith("id:")


# --- 500: core failures ---


@pytest.mark.parametrize(
    "error,detail",
    [
        (PoolExhausted("No database connection available within the acquire timeout"), "Database busy"),
        (DatabaseConnectionError("Could not connect to database"), "Database connection failed"),
        (PoolClosed("Connection pool is closed"), "Database unavailable"),
        (QueryError(QueryName.SEARCH_PRODUCTS, "invalid query input"), "Query failed"),
    ],
)
def test_core_failures_are_500(
    client: TestClient, runner: MagicMock, error: Exception, detail: str
) -> None:
    runner.run.side_effect = error
    r = client.get("/search-product", params={"term": "chai &"})
    assert r.status_code == 500
    assert r.json()["detail"].startswith(detail)


@pytest.mark.parametrize(
    "error,detail",
    [
        (
            QueryError(QueryName.SEARCH_PRODUCTS, 'SQL execution failed: relation "products" does not exist'),
            "Query failed: search_products",
        ),
        (
            DatabaseConnectionError('Could not connect to database: password authentication failed for user "sales"'),
            "Database connection failed",
        ),
    ],
)
def test_500_body_does_not_echo_driver_messages(
    client: TestClient, runner: MagicMock, error: Exception, detail: str
) -> None:
    runner.run.side_effect = error
    r = client.get("/search-product", params={"term": "chai"})
    assert r.status_code == 500
    assert r.json() == {"detail": detail}


def test_unexpected_exception_is_500(runner: MagicMock) -> None:
    runner.run.side_effect = RuntimeError("boom")
    app.dependency_overrides[get_runner] = lambda: runner
    try:
        c = TestClient(app, raise_server_exceptions=False)
        r = c.get("/customers")
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 500
    assert r.json()["detail"].startswith("Internal server error")


# --- end to end through a real runner and pool (fake connections) ---


def _responder(sql: str, params: dict):
    if "FROM customers" in sql and "WHERE id" in sql:
        return rows_of(customer_row(params["id"])) if params["id"] == 1 else empty("id")
    if "FROM products p" in sql:
        return rows_of(product_with_supplier_row(product_row(1), supplier_row(1)))
    if "FROM order_details d" in sql:
        return rows_of(
            detail_with_product_row(1, 10248, product_row(11, name="Queso Cabrales"), 12, 14.0)
        )
    if "FROM orders" in sql and "LEFT JOIN" not in sql:
        return rows_of(order_row(10248)) if params["id"] == 10248 else empty("id")
    if "to_tsquery" in sql and params["term"].endswith("&"):
        return psycopg.errors.SyntaxError('syntax error in tsquery: "chai &"')
    return empty("id")


@pytest.fixture
def live(connector_live: FakeConnector) -> Generator[tuple[TestClient, ConnectionPool], None, None]:
    pool = ConnectionPool(
        connector_live,
        max_size=2,
        min_idle=0,
        acquire_timeout=0.2,
        idle_timeout=300,
        max_lifetime=1800,
    )
    runner = QueryRunner(pool)
    app.dependency_overrides[get_runner] = lambda: runner
    app.dependency_overrides[get_pool] = lambda: pool
    yield TestClient(app), pool
    app.dependency_overrides.clear()
    runner.shutdown()
    pool.close()


@pytest.fixture
def connector_live() -> FakeConnector:
    return FakeConnector(responder=_responder)


def test_live_customer_found_and_absent(live: tuple[TestClient, ConnectionPool]) -> None:
    c, pool = live
    assert c.get("/customer-by-id", params={"id": 1}).json()["id"] == 1
    r = c.get("/customer-by-id", params={"id": 2})
    assert r.status_code == 200
    assert r.json() is None
    assert pool.stats()["checked_out"] == 0


def test_live_product_with_supplier(live: tuple[TestClient, ConnectionPool]) -> None:
    c, _ = live
    body = c.get("/product-with-supplier", params={"id": 1}).json()
    assert body["name"] == "Chai"
    assert body["supplier_supplier_id"] == 1
    assert body["supplier_company_name"] == "Exotic Liquids"


def test_live_order_with_details_and_products(live: tuple[TestClient, ConnectionPool]) -> None:
    c, _ = live
    body = c.get("/order-with-details-and-products", params={"id": 10248}).json()
    assert body["id"] == 10248
    assert body["order_date"] == "1996-07-04"
    assert len(body["details"]) == 1
    assert body["details"][0]["product_name"] == "Queso Cabrales"
    assert body["details"][0]["quantity"] == 12

    assert c.get("/order-with-details-and-products", params={"id": 1}).json() is None


def test_live_malformed_search_is_500_and_releases(live: tuple[TestClient, ConnectionPool]) -> None:
    c, pool = live
    r = c.get("/search-product", params={"term": "chai &"})
    assert r.status_code == 500
    assert r.json()["detail"].startswith("Query failed")
    assert pool.stats()["checked_out"] == 0


def test_live_exhausted_pool_is_500(live: tuple[TestClient, ConnectionPool]) -> None:
    c, pool = live
    held = [pool.acquire(), pool.acquire()]
    try:
        r = c.get("/customers")
    finally:
        for conn in held:
            pool.release(conn)
    assert r.status_code == 500
    assert r.json()["detail"].startswith("Database busy")
    assert c.get("/customers").status_code == 200
