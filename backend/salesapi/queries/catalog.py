"""
Fixed catalog of parameterized read queries.

Each QueryName maps to one QueryDef: the SQL text (psycopg named
placeholders), the parameter struct it accepts and the record type its rows
map to. order_with_details_and_products runs two statements and is
assembled by the executor.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import Field
from sqlmodel import SQLModel

from salesapi import models

DEFAULT_LIMIT = 100
DEFAULT_OFFSET = 0


class QueryName(str, Enum):
    LIST_CUSTOMERS = "list_customers"
    CUSTOMER_BY_ID = "customer_by_id"
    SEARCH_CUSTOMERS = "search_customers"
    LIST_EMPLOYEES = "list_employees"
    EMPLOYEE_WITH_RECIPIENT = "employee_with_recipient"
    LIST_SUPPLIERS = "list_suppliers"
    SUPPLIER_BY_ID = "supplier_by_id"
    LIST_PRODUCTS = "list_products"
    PRODUCT_WITH_SUPPLIER = "product_with_supplier"
    SEARCH_PRODUCTS = "search_products"
    ORDERS_WITH_DETAILS = "orders_with_details"
    ORDER_WITH_DETAILS_BY_ID = "order_with_details_by_id"
    ORDER_WITH_DETAILS_AND_PRODUCTS = "order_with_details_and_products"


# ---------------------------------------------------------------------------
# Parameter structs
# ---------------------------------------------------------------------------


class PageParams(SQLModel):
    limit: int = Field(default=DEFAULT_LIMIT, ge=0)
    offset: int = Field(default=DEFAULT_OFFSET, ge=0)


class IdParams(SQLModel):
    id: int


class SearchParams(SQLModel):
    term: str


QueryParams = PageParams | IdParams | SearchParams


@dataclass(frozen=True)
class QueryDef:
    name: QueryName
    sql: str
    params_type: type[SQLModel]
    record_type: type[SQLModel]
    many: bool


# ---------------------------------------------------------------------------
# Column lists
# ---------------------------------------------------------------------------

_CUSTOMER_COLUMNS = """
    id, company_name, contact_name, contact_title, address, city,
    postal_code, region, country, phone, fax
"""

_EMPLOYEE_COLUMNS = """
    id, last_name, first_name, title, title_of_courtesy, birth_date,
    hire_date, address, city, postal_code, country, home_phone, extension,
    notes, recipient_id
"""

_SUPPLIER_COLUMNS = """
    id, company_name, contact_name, contact_title, address, city, region,
    postal_code, country, phone
"""

_PRODUCT_COLUMNS = """
    id, name, qt_per_unit, unit_price, units_in_stock, units_on_order,
    reorder_level, discontinued, supplier_id
"""

_ORDER_COLUMNS = """
    id, order_date, required_date, shipped_date, ship_via, freight,
    ship_name, ship_city, ship_region, ship_postal_code, ship_country,
    customer_id, employee_id
"""

_EMPLOYEE_FIELDS = [c.strip() for c in _EMPLOYEE_COLUMNS.split(",")]

_ORDER_AGGREGATE_SELECT = """
SELECT o.id, o.shipped_date, o.ship_name, o.ship_city, o.ship_country,
       COUNT(d.id) AS products_count,
       SUM(d.quantity) AS quantity_sum,
       SUM(d.quantity::double precision * d.unit_price) AS total_price
FROM orders o
LEFT JOIN order_details d ON d.order_id = o.id
"""

# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

LIST_CUSTOMERS_SQL = f"""
SELECT {_CUSTOMER_COLUMNS}
FROM customers
ORDER BY id ASC
LIMIT %(limit)s OFFSET %(offset)s
"""

CUSTOMER_BY_ID_SQL = f"""
SELECT {_CUSTOMER_COLUMNS}
FROM customers
WHERE id = %(id)s
LIMIT 1
"""

SEARCH_CUSTOMERS_SQL = f"""
SELECT {_CUSTOMER_COLUMNS}
FROM customers
WHERE to_tsvector('english', company_name) @@ to_tsquery('english', %(term)s)
"""

LIST_EMPLOYEES_SQL = f"""
SELECT {_EMPLOYEE_COLUMNS}
FROM employees
ORDER BY id ASC
LIMIT %(limit)s OFFSET %(offset)s
"""

# Same table twice: e is the employee, r the employee its recipient_id points to.
EMPLOYEE_WITH_RECIPIENT_SQL = """
SELECT {employee},
       r.id AS recipient_employee_id,
       {recipient}
FROM employees e
LEFT JOIN employees r ON r.id = e.recipient_id
WHERE e.id = %(id)s
LIMIT 1
""".format(
    employee=", ".join(f"e.{c}" for c in _EMPLOYEE_FIELDS),
    recipient=", ".join(
        f"r.{c} AS recipient_{c}" for c in _EMPLOYEE_FIELDS if c != "id"
    ),
)

LIST_SUPPLIERS_SQL = f"""
SELECT {_SUPPLIER_COLUMNS}
FROM suppliers
ORDER BY id ASC
LIMIT %(limit)s OFFSET %(offset)s
"""

SUPPLIER_BY_ID_SQL = f"""
SELECT {_SUPPLIER_COLUMNS}
FROM suppliers
WHERE id = %(id)s
LIMIT 1
"""

LIST_PRODUCTS_SQL = f"""
SELECT {_PRODUCT_COLUMNS}
FROM products
ORDER BY id ASC
LIMIT %(limit)s OFFSET %(offset)s
"""

PRODUCT_WITH_SUPPLIER_SQL = """
SELECT p.id, p.name, p.qt_per_unit, p.unit_price, p.units_in_stock,
       p.units_on_order, p.reorder_level, p.discontinued, p.supplier_id,
       s.id AS supplier_supplier_id,
       s.company_name AS supplier_company_name,
       s.contact_name AS supplier_contact_name,
       s.contact_title AS supplier_contact_title,
       s.address AS supplier_address,
       s.city AS supplier_city,
       s.region AS supplier_region,
       s.postal_code AS supplier_postal_code,
       s.country AS supplier_country,
       s.phone AS supplier_phone
FROM products p
JOIN suppliers s ON s.id = p.supplier_id
WHERE p.id = %(id)s
LIMIT 1
"""

SEARCH_PRODUCTS_SQL = f"""
SELECT {_PRODUCT_COLUMNS}
FROM products
WHERE to_tsvector('english', name) @@ to_tsquery('english', %(term)s)
"""

ORDERS_WITH_DETAILS_SQL = (
    _ORDER_AGGREGATE_SELECT
    + """
GROUP BY o.id
ORDER BY o.id ASC
LIMIT %(limit)s OFFSET %(offset)s
"""
)

ORDER_WITH_DETAILS_BY_ID_SQL = (
    _ORDER_AGGREGATE_SELECT
    + """
WHERE o.id = %(id)s
GROUP BY o.id
"""
)

ORDER_BY_ID_SQL = f"""
SELECT {_ORDER_COLUMNS}
FROM orders
WHERE id = %(id)s
LIMIT 1
"""

ORDER_DETAILS_WITH_PRODUCTS_SQL = """
SELECT d.id, d.order_id, d.product_id, d.unit_price, d.quantity, d.discount,
       p.id AS product_product_id,
       p.name AS product_name,
       p.qt_per_unit AS product_qt_per_unit,
       p.unit_price AS product_unit_price,
       p.units_in_stock AS product_units_in_stock,
       p.units_on_order AS product_units_on_order,
       p.reorder_level AS product_reorder_level,
       p.discontinued AS product_discontinued,
       p.supplier_id AS product_supplier_id
FROM order_details d
JOIN products p ON p.id = d.product_id
WHERE d.order_id = %(id)s
ORDER BY d.id ASC
"""


def _def(
    name: QueryName,
    sql: str,
    params_type: type[SQLModel],
    record_type: type[SQLModel],
    *,
    many: bool,
) -> QueryDef:
    return QueryDef(
        name=name,
        sql=sql,
        params_type=params_type,
        record_type=record_type,
        many=many,
    )


CATALOG: dict[QueryName, QueryDef] = {
    d.name: d
    for d in (
        _def(QueryName.LIST_CUSTOMERS, LIST_CUSTOMERS_SQL, PageParams, models.Customer, many=True),
        _def(QueryName.CUSTOMER_BY_ID, CUSTOMER_BY_ID_SQL, IdParams, models.Customer, many=False),
        _def(
            QueryName.SEARCH_CUSTOMERS,
            SEARCH_CUSTOMERS_SQL,
            SearchParams,
            models.CustomerSearchResult,
            many=True,
        ),
        _def(QueryName.LIST_EMPLOYEES, LIST_EMPLOYEES_SQL, PageParams, models.Employee, many=True),
        _def(
            QueryName.EMPLOYEE_WITH_RECIPIENT,
            EMPLOYEE_WITH_RECIPIENT_SQL,
            IdParams,
            models.EmployeeWithRecipient,
            many=False,
        ),
        _def(QueryName.LIST_SUPPLIERS, LIST_SUPPLIERS_SQL, PageParams, models.Supplier, many=True),
        _def(QueryName.SUPPLIER_BY_ID, SUPPLIER_BY_ID_SQL, IdParams, models.Supplier, many=False),
        _def(QueryName.LIST_PRODUCTS, LIST_PRODUCTS_SQL, PageParams, models.Product, many=True),
        _def(
            QueryName.PRODUCT_WITH_SUPPLIER,
            PRODUCT_WITH_SUPPLIER_SQL,
            IdParams,
            models.ProductWithSupplier,
            many=False,
        ),
        _def(
            QueryName.SEARCH_PRODUCTS,
            SEARCH_PRODUCTS_SQL,
            SearchParams,
            models.ProductSearchResult,
            many=True,
        ),
        _def(
            QueryName.ORDERS_WITH_DETAILS,
            ORDERS_WITH_DETAILS_SQL,
            PageParams,
            models.OrderAggregate,
            many=True,
        ),
        _def(
            QueryName.ORDER_WITH_DETAILS_BY_ID,
            ORDER_WITH_DETAILS_BY_ID_SQL,
            IdParams,
            models.OrderAggregate,
            many=False,
        ),
        # First statement only; the details statement runs when the order exists.
        _def(
            QueryName.ORDER_WITH_DETAILS_AND_PRODUCTS,
            ORDER_BY_ID_SQL,
            IdParams,
            models.OrderWithDetailsAndProducts,
            many=False,
        ),
    )
}
