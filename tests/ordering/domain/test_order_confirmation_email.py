"""Tests for the order confirmation email."""

from ordering.notification import get_mailer
from ordering.notification.order_confirmation import (
    OrderConfirmationTemplate,
    confirmation_context,
    send_order_confirmation,
)
from ordering.order.order import Order


def _order():
    return Order.place(
        tracking_code="AUTEST0005",
        items=[{"product_id": "prod-001", "name": "Teal Kurta", "unit_price": 1000.0, "quantity": 2}],
        shipping_address={
            "full_name": "Sita Sharma",
            "phone": "9800000000",
            "address_line1": "Jhamsikhel Road 12",
            "city": "Lalitpur",
            "postal_code": "44700",
        },
        pricing={"subtotal": 2000.0, "discount_amount": 200.0, "total": 1800.0},
        payment_method="cod",
        guest={"email": "sita@example.com", "first_name": "Sita"},
    )


class TestTemplate:
    def test_subject_and_body(self):
        message = OrderConfirmationTemplate.render(confirmation_context(_order()))
        assert message["subject"] == "Order Confirmed - #AUTEST0005"
        assert "Teal Kurta x 2: Rs. 2000" in message["body"]
        assert "Discount: -Rs. 200" in message["body"]
        assert "Total: Rs. 1800" in message["body"]
        assert "Payment: COD" in message["body"]


class TestSend:
    def test_sent(self, mailer):
        assert send_order_confirmation(_order()) is True
        assert get_mailer() is mailer
        assert mailer.sent_emails[0]["to"] == "sita@example.com"

    def test_failed_delivery_returns_false(self, mailer):
        mailer.configure(should_succeed=False)
        assert send_order_confirmation(_order()) is False
        assert mailer.sent_emails == []

    def test_exception_returns_false(self, mailer, monkeypatch):
        def _boom(**kwargs):
            raise ConnectionError("SMTP down")

        monkeypatch.setattr(mailer, "send", _boom)
        assert send_order_confirmation(_order()) is False
