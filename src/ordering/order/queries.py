"""Read paths over orders: public tracking, customer history, admin lists."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.order.order import Order
from ordering.shared.pagination import Page, paginate_query

NEWEST_FIRST = "-ordered_at"


def track_order(tracking_code: str, email: str) -> Order:
    """Public lookup: both the code and the contact email must match.

    Both are compared case-insensitively. Callers must not expose the admin note.
    """
    order = current_domain.repository_for(Order).by_tracking_code(tracking_code)
    if order is None or order.contact_email != (email or "").strip().lower():
        raise ObjectNotFoundError("Order not found. Please check your order ID and email.")
    return order


def list_customer_orders(customer_id, page: int = 1, limit: int = 10, status: str | None = None) -> Page:
    filters = {"customer_id": str(customer_id)}
    if status:
        filters["order_status"] = status
    query = current_domain.repository_for(Order)._dao.query.filter(**filters)
    return paginate_query(query, page, limit, order_by=NEWEST_FIRST)


def get_customer_order(customer_id, order_id) -> Order:
    """A customer's own order; anyone else's is reported as missing."""
    order = get_order(order_id)
    if not order.belongs_to(customer_id):
        raise ObjectNotFoundError("Order not found")
    return order


def list_orders(
    page: int = 1,
    limit: int = 20,
    status: str | None = None,
    payment_status: str | None = None,
) -> Page:
    query = current_domain.repository_for(Order)._dao.query
    if status:
        query = query.filter(order_status=status)
    if payment_status:
        query = query.filter(payment_status=payment_status)
    return paginate_query(query, page, limit, order_by=NEWEST_FIRST)


def get_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise ObjectNotFoundError("Order not found") from None
