"""Gateway payment outcomes: commands and handler.

Callbacks are verified before these commands are issued; the handler only
decides what a trusted outcome means for the order. Every outcome is safe
to apply more than once.
"""

from enum import Enum

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.reservations import restore_stock
from ordering.order.status import PaymentMethod, PaymentStatus

logger = structlog.get_logger(__name__)

COMPLETE = "COMPLETE"


class PaymentOutcome(Enum):
    CONFIRMED = "confirmed"
    ALREADY_PAID = "already_paid"
    NOT_PAYABLE = "not_payable"
    INCOMPLETE = "incomplete"


@ordering.command(part_of="Order")
class ConfirmGatewayPayment:
    tracking_code = String(required=True, max_length=32)
    gateway_status = String(required=True, max_length=50)
    transaction_id = String(max_length=100)
    gateway_response = Text()  # JSON: the verified callback payload


@ordering.command(part_of="Order")
class RecordGatewayPaymentFailure:
    tracking_code = String(required=True, max_length=32)
    note = String(max_length=500)


def _order_by_tracking_code(tracking_code) -> Order:
    order = current_domain.repository_for(Order).by_tracking_code(tracking_code)
    if order is None:
        raise ObjectNotFoundError(f"Order {tracking_code} not found")
    return order


@ordering.command_handler(part_of=Order)
class GatewayPaymentHandler:
    @handle(ConfirmGatewayPayment)
    def confirm_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = _order_by_tracking_code(command.tracking_code)

        if command.gateway_status != COMPLETE:
            released = order.record_payment_failure(f"eSewa payment status: {command.gateway_status}")
            restore_stock(released, reason="Payment incomplete", tracking_code=order.tracking_code)
            repo.add(order)
            logger.warning(
                "gateway_payment_incomplete",
                tracking_code=order.tracking_code,
                gateway_status=command.gateway_status,
            )
            return PaymentOutcome.INCOMPLETE

        if order.payment_status == PaymentStatus.PAID.value:
            return PaymentOutcome.ALREADY_PAID
        if not order.is_payable:
            logger.warning(
                "gateway_payment_not_applicable",
                tracking_code=order.tracking_code,
                payment_status=order.payment_status,
                order_status=order.order_status,
            )
            return PaymentOutcome.NOT_PAYABLE

        order.record_gateway_payment(command.transaction_id, command.gateway_response)
        repo.add(order)
        logger.info("gateway_payment_confirmed", tracking_code=order.tracking_code, transaction_id=command.transaction_id)
        return PaymentOutcome.CONFIRMED

    @handle(RecordGatewayPaymentFailure)
    def record_failure(self, command):
        """Returns True when the failure changed the order."""
        repo = current_domain.repository_for(Order)
        order = _order_by_tracking_code(command.tracking_code)

        if order.payment_status != PaymentStatus.PENDING.value:
            return False
        # Cash-on-delivery orders never went to the gateway
        if order.payment_method != PaymentMethod.ESEWA.value:
            logger.warning("gateway_failure_for_offline_order", tracking_code=order.tracking_code)
            return False

        released = order.record_payment_failure(command.note or "Payment failed/cancelled via eSewa")
        restore_stock(released, reason="Payment failed", tracking_code=order.tracking_code)
        repo.add(order)
        logger.info("gateway_payment_failed", tracking_code=order.tracking_code)
        return True
