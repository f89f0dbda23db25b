"""Domain events for the Order aggregate.

All events are versioned, immutable facts about an order's lifecycle.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A checkout produced a new order and reserved its stock."""

    __version__ = 1

    order_id = Identifier(required=True)
    tracking_code = String(required=True)
    customer_id = Identifier()
    contact_email = String(required=True)
    payment_method = String(required=True)
    total = Float(required=True)
    discount_code = String()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The order moved to a new status (or re-entered its current one)."""

    __version__ = 1

    order_id = Identifier(required=True)
    tracking_code = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    note = String()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaymentReceived:
    """The payment gateway confirmed payment for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    tracking_code = String(required=True)
    transaction_id = String()
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaymentFailed:
    """Payment failed or was abandoned at the gateway; stock went back on sale."""

    __version__ = 1

    order_id = Identifier(required=True)
    tracking_code = String(required=True)
    reason = String()
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStockReleased:
    """The order's reservation was returned to the catalogue."""

    __version__ = 1

    order_id = Identifier(required=True)
    tracking_code = String(required=True)
    items = Text(required=True)  # JSON: list of {"product_id", "quantity"}
    released_at = DateTime(required=True)
