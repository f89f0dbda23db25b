"""Admin order status updates: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.config import get_settings
from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.reservations import restore_stock
from ordering.order.status import OrderStatus

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    note = String(max_length=500)
    admin_note = Text()


@ordering.command(part_of="Order")
class AnnotateOrder:
    order_id = Identifier(required=True)
    admin_note = Text(required=True)


@ordering.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.order_status

        released = order.set_status(
            command.status,
            command.note,
            strict=get_settings().strict_status_transitions,
        )
        if command.admin_note is not None:
            order.annotate(command.admin_note)
        restore_stock(released, reason="Order cancelled", tracking_code=order.tracking_code)
        repo.add(order)

        logger.info(
            "order_status_updated",
            tracking_code=order.tracking_code,
            from_status=previous,
            to_status=order.order_status,
            stock_restored=bool(released),
        )

    @handle(AnnotateOrder)
    def annotate(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.annotate(command.admin_note)
        repo.add(order)
