"""Application tests for admin status updates and stock restoration."""

import json

import pytest
from ordering.catalogue.product import Product
from ordering.config import StoreSettings, configure_settings
from ordering.order.checkout import PlaceGuestOrder, place_order
from ordering.order.order import Order
from ordering.order.status_update import AnnotateOrder, UpdateOrderStatus
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _place(product, address, quantity=2, payment_method="cod"):
    return place_order(
        PlaceGuestOrder(
            email="sita@example.com",
            items=json.dumps([{"product_id": product.id, "quantity": quantity}]),
            shipping_address=json.dumps(address),
            payment_method=payment_method,
        )
    )["order_id"]


def _update(order_id, status, **kwargs):
    current_domain.process(UpdateOrderStatus(order_id=order_id, status=status, **kwargs), asynchronous=False)
    return current_domain.repository_for(Order).get(order_id)


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).stock


class TestUpdateStatus:
    def test_forward_moves(self, make_product, shipping_address):
        order_id = _place(make_product(), shipping_address)
        _update(order_id, "processing")
        order = _update(order_id, "shipped", note="Handed to courier")
        assert order.order_status == "shipped"
        assert order.history()[-1].note == "Handed to courier"
        assert order.shipped_at is not None

    def test_admin_note(self, make_product, shipping_address):
        order_id = _place(make_product(), shipping_address)
        order = _update(order_id, "processing", admin_note="Gift wrap")
        assert order.admin_note == "Gift wrap"

    def test_cod_delivery_marks_paid(self, make_product, shipping_address):
        order_id = _place(make_product(), shipping_address)
        order = _update(order_id, "delivered")
        assert order.payment_status == "paid"

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            _update("missing", "confirmed")

    def test_strict_policy(self, make_product, shipping_address):
        order_id = _place(make_product(), shipping_address)
        configure_settings(StoreSettings(strict_status_transitions=True))
        with pytest.raises(ValidationError):
            _update(order_id, "delivered")
        assert current_domain.repository_for(Order).get(order_id).order_status == "confirmed"


class TestCancellation:
    def test_cancel_restores_stock(self, make_product, shipping_address):
        product = make_product(stock=5)
        order_id = _place(product, shipping_address, quantity=2)
        assert _stock(product.id) == 3

        order = _update(order_id, "cancelled")
        assert order.stock_released is True
        assert _stock(product.id) == 5

    def test_double_cancel_restores_once(self, make_product, shipping_address):
        product = make_product(stock=5)
        order_id = _place(product, shipping_address, quantity=2)
        _update(order_id, "cancelled")
        order = _update(order_id, "cancelled")
        assert _stock(product.id) == 5
        assert [entry.status for entry in order.history()].count("cancelled") == 2

    def test_reopen_and_cancel_again_restores_once(self, make_product, shipping_address):
        product = make_product(stock=5)
        order_id = _place(product, shipping_address, quantity=2)
        _update(order_id, "cancelled")
        _update(order_id, "pending")
        _update(order_id, "cancelled")
        assert _stock(product.id) == 5


class TestAnnotate:
    def test_annotate(self, make_product, shipping_address):
        order_id = _place(make_product(), shipping_address)
        current_domain.process(AnnotateOrder(order_id=order_id, admin_note="Call before delivery"), asynchronous=False)
        assert current_domain.repository_for(Order).get(order_id).admin_note == "Call before delivery"
