"""
Typed records returned by the query catalog.

Entities: Customer, Employee, Supplier, Product, Order, OrderDetail.
Derived shapes: search projections, join projections and order aggregates.

Nullable columns are ``X | None`` without a default, so a missing column is a
mapping error and NULL is serialized as an explicit JSON null.
"""

from datetime import date

from sqlmodel import SQLModel

# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class Customer(SQLModel):
    id: int
    company_name: str
    contact_name: str
    contact_title: str
    address: str
    city: str
    postal_code: str | None
    region: str | None
    country: str
    phone: str
    fax: str | None


class Employee(SQLModel):
    id: int
    last_name: str
    first_name: str | None
    title: str
    title_of_courtesy: str
    birth_date: date
    hire_date: date
    address: str
    city: str
    postal_code: str
    country: str
    home_phone: str
    extension: int
    notes: str
    recipient_id: int | None


class Supplier(SQLModel):
    id: int
    company_name: str
    contact_name: str
    contact_title: str
    address: str
    city: str
    region: str | None
    postal_code: str
    country: str
    phone: str


class Product(SQLModel):
    id: int
    name: str
    qt_per_unit: str
    unit_price: float
    units_in_stock: int
    units_on_order: int
    reorder_level: int
    discontinued: int
    supplier_id: int


class Order(SQLModel):
    id: int
    order_date: date
    required_date: date
    shipped_date: date | None
    ship_via: int
    freight: float
    ship_name: str
    ship_city: str
    ship_region: str | None
    ship_postal_code: str | None
    ship_country: str
    customer_id: int
    employee_id: int


class OrderDetail(SQLModel):
    id: int
    order_id: int
    product_id: int
    unit_price: float
    quantity: int
    discount: float


# ---------------------------------------------------------------------------
# Search projections
# ---------------------------------------------------------------------------


class CustomerSearchResult(Customer):
    """Row of a full-text match on customers.company_name."""


class ProductSearchResult(Product):
    """Row of a full-text match on products.name."""


# ---------------------------------------------------------------------------
# Join projections
# ---------------------------------------------------------------------------


class EmployeeWithRecipient(Employee):
    """Employee left-joined with the employee its recipient_id points to.

    Every recipient_* field is None when the employee has no recipient.
    """

    recipient_employee_id: int | None
    recipient_last_name: str | None
    recipient_first_name: str | None
    recipient_title: str | None
    recipient_title_of_courtesy: str | None
    recipient_birth_date: date | None
    recipient_hire_date: date | None
    recipient_address: str | None
    recipient_city: str | None
    recipient_postal_code: str | None
    recipient_country: str | None
    recipient_home_phone: str | None
    recipient_extension: int | None
    recipient_notes: str | None
    recipient_recipient_id: int | None


class ProductWithSupplier(Product):
    """Product inner-joined with its supplier."""

    supplier_supplier_id: int
    supplier_company_name: str
    supplier_contact_name: str
    supplier_contact_title: str
    supplier_address: str
    supplier_city: str
    supplier_region: str | None
    supplier_postal_code: str
    supplier_country: str
    supplier_phone: str


class OrderDetailWithProduct(OrderDetail):
    """Order detail enriched with the joined product's columns."""

    product_product_id: int
    product_name: str
    product_qt_per_unit: str
    product_unit_price: float
    product_units_in_stock: int
    product_units_on_order: int
    product_reorder_level: int
    product_discontinued: int
    product_supplier_id: int


# ---------------------------------------------------------------------------
# Order aggregates
# ---------------------------------------------------------------------------


class OrderAggregate(SQLModel):
    """Order summary over its detail rows.

    quantity_sum and total_price are None when the order has no details.
    """

    id: int
    shipped_date: date | None
    ship_name: str
    ship_city: str
    ship_country: str
    products_count: int
    quantity_sum: int | None
    total_price: float | None


class OrderWithDetailsAndProducts(Order):
    details: list[OrderDetailWithProduct]
