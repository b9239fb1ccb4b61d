"""
Row mapping: column-keyed dicts (see core.pool.cursor_to_dicts) -> records.

NULL columns stay None; nothing is coerced to a zero value or empty string.
"""

from collections.abc import Iterable
from typing import Any, TypeVar

from sqlmodel import SQLModel

from salesapi.models import Order, OrderDetailWithProduct, OrderWithDetailsAndProducts

R = TypeVar("R", bound=SQLModel)


def to_record(record_type: type[R], row: dict[str, Any]) -> R:
    return record_type.model_validate(row)


def to_records(record_type: type[R], rows: Iterable[dict[str, Any]]) -> list[R]:
    return [record_type.model_validate(row) for row in rows]


def first_record(record_type: type[R], rows: list[dict[str, Any]]) -> R | None:
    """First row as a record, or None when the query matched nothing."""
    if not rows:
        return None
    return record_type.model_validate(rows[0])


def order_with_details(
    order_row: dict[str, Any], detail_rows: Iterable[dict[str, Any]]
) -> OrderWithDetailsAndProducts:
    """Embed the joined detail+product rows into the order."""
    order = Order.model_validate(order_row)
    return OrderWithDetailsAndProducts(
        **order.model_dump(),
        details=to_records(OrderDetailWithProduct, detail_rows),
    )
