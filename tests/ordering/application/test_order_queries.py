"""Application tests for order tracking, customer history and admin lists."""

import json

import pytest
from ordering.cart.items import AddToCart
from ordering.order.checkout import PlaceCustomerOrder, PlaceGuestOrder, place_order
from ordering.order.queries import get_customer_order, get_order, list_customer_orders, list_orders, track_order
from ordering.order.status_update import UpdateOrderStatus
from protean import current_domain
from protean.exceptions import ObjectNotFoundError


def _guest_order(product, address, email="sita@example.com", payment_method="cod"):
    return place_order(
        PlaceGuestOrder(
            email=email,
            items=json.dumps([{"product_id": product.id, "quantity": 1}]),
            shipping_address=json.dumps(address),
            payment_method=payment_method,
        )
    )


def _customer_order(product, address, customer_id):
    current_domain.process(AddToCart(customer_id=customer_id, product_id=product.id), asynchronous=False)
    return place_order(
        PlaceCustomerOrder(
            customer_id=customer_id,
            email=f"{customer_id}@example.com",
            shipping_address=json.dumps(address),
            payment_method="cod",
        )
    )


class TestTrackOrder:
    def test_code_and_email_match(self, make_product, shipping_address):
        result = _guest_order(make_product(), shipping_address)
        order = track_order(result["tracking_code"].lower(), " SITA@example.com ")
        assert str(order.id) == result["order_id"]

    def test_wrong_email(self, make_product, shipping_address):
        result = _guest_order(make_product(), shipping_address)
        with pytest.raises(ObjectNotFoundError) as exc:
            track_order(result["tracking_code"], "someone@example.com")
        assert exc.value.args[0] == "Order not found. Please check your order ID and email."

    def test_unknown_code(self):
        with pytest.raises(ObjectNotFoundError):
            track_order("AUNOPE", "sita@example.com")


class TestCustomerOrders:
    def test_own_orders_newest_first(self, make_product, shipping_address):
        product = make_product(stock=10)
        first = _customer_order(product, shipping_address, "cust-001")
        second = _customer_order(product, shipping_address, "cust-001")
        _customer_order(product, shipping_address, "cust-002")

        page = list_customer_orders("cust-001")
        assert page.total == 2
        assert [str(order.id) for order in page.items] == [second["order_id"], first["order_id"]]

    def test_status_filter(self, make_product, shipping_address):
        product = make_product(stock=10)
        kept = _customer_order(product, shipping_address, "cust-001")
        cancelled = _customer_order(product, shipping_address, "cust-001")
        current_domain.process(
            UpdateOrderStatus(order_id=cancelled["order_id"], status="cancelled"), asynchronous=False
        )
        page = list_customer_orders("cust-001", status="confirmed")
        assert [str(order.id) for order in page.items] == [kept["order_id"]]

    def test_pagination(self, make_product, shipping_address):
        product = make_product(stock=10)
        for _ in range(3):
            _customer_order(product, shipping_address, "cust-001")
        page = list_customer_orders("cust-001", page=2, limit=2)
        assert page.total == 3
        assert page.pages == 2
        assert len(page.items) == 1

    def test_single_own_order(self, make_product, shipping_address):
        result = _customer_order(make_product(), shipping_address, "cust-001")
        assert str(get_customer_order("cust-001", result["order_id"]).id) == result["order_id"]

    def test_someone_elses_order_is_missing(self, make_product, shipping_address):
        result = _customer_order(make_product(), shipping_address, "cust-001")
        with pytest.raises(ObjectNotFoundError):
            get_customer_order("cust-002", result["order_id"])


class TestAdminOrders:
    def test_filters(self, make_product, shipping_address):
        product = make_product(stock=10)
        _guest_order(product, shipping_address)
        esewa = _guest_order(product, shipping_address, payment_method="esewa")

        assert list_orders().total == 2
        pending = list_orders(status="pending")
        assert [str(order.id) for order in pending.items] == [esewa["order_id"]]
        assert list_orders(payment_status="paid").total == 0
        assert list_orders(status="pending", payment_status="pending").total == 1

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            get_order("missing")
