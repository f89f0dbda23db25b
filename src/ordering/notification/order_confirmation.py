"""Order confirmation email: sent once an order is confirmed.

Delivery problems never fail the operation that confirmed the order; they are
logged and reported to the caller as `False`.
"""

import structlog

from ordering.notification import get_mailer
from ordering.shared.money import format_amount

logger = structlog.get_logger(__name__)


class OrderConfirmationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        tracking_code = context.get("tracking_code", "N/A")
        name = context.get("name") or "there"
        lines = "\n".join(
            f"- {line['name']} x {line['quantity']}: Rs. {format_amount(line['line_total'])}"
            for line in context.get("items", [])
        )
        discount = ""
        if context.get("discount_amount"):
            discount = f"Discount: -Rs. {format_amount(context['discount_amount'])}\n"
        return {
            "subject": f"Order Confirmed - #{tracking_code}",
            "body": (
                f"Hi {name},\n\n"
                f"Your order #{tracking_code} has been confirmed.\n\n"
                f"{lines}\n\n"
                f"Subtotal: Rs. {format_amount(context.get('subtotal', 0))}\n"
                f"{discount}"
                f"Total: Rs. {format_amount(context.get('total', 0))}\n"
                f"Payment: {context.get('payment_method', '').upper()}\n\n"
                "Track your order any time with your order number and email address.\n\n"
                "Thank you for shopping with us!"
            ),
        }


def confirmation_context(order) -> dict:
    return {
        "tracking_code": order.tracking_code,
        "name": order.contact_name,
        "items": [
            {"name": item.name, "quantity": item.quantity, "line_total": item.line_total}
            for item in sorted(order.items, key=lambda item: item.line_number)
        ],
        "subtotal": order.pricing.subtotal,
        "discount_amount": order.pricing.discount_amount,
        "total": order.pricing.total,
        "payment_method": order.payment_method,
    }


def send_order_confirmation(order) -> bool:
    """Email the order confirmation to the order's contact address."""
    try:
        message = OrderConfirmationTemplate.render(confirmation_context(order))
        result = get_mailer().send(
            to=order.contact_email,
            subject=message["subject"],
            body=message["body"],
        )
    except Exception:
        logger.exception("order_confirmation_failed", tracking_code=order.tracking_code)
        return False

    if result.get("status") != "sent":
        logger.warning(
            "order_confirmation_not_sent",
            tracking_code=order.tracking_code,
            error=result.get("error"),
        )
        return False

    logger.info("order_confirmation_sent", tracking_code=order.tracking_code, message_id=result.get("message_id"))
    return True
