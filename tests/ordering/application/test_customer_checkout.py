"""Application tests for checkout from a signed-in customer's cart."""

import json

import pytest
from ordering.addresses.management import AddAddress
from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart
from ordering.catalogue.product import Product
from ordering.errors import InsufficientStockError
from ordering.order.checkout import PlaceCustomerOrder, place_order
from ordering.order.order import Order
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

CUSTOMER = "cust-001"


def _add_to_cart(product_id, quantity=1, variant=None, customer_id=CUSTOMER):
    current_domain.process(
        AddToCart(
            customer_id=customer_id,
            product_id=product_id,
            quantity=quantity,
            variant=json.dumps(variant) if variant else None,
        ),
        asynchronous=False,
    )


def _save_address(address, customer_id=CUSTOMER, **overrides):
    return current_domain.process(
        AddAddress(customer_id=customer_id, **{**address, "state": "Bagmati", **overrides}),
        asynchronous=False,
    )


def _checkout(payment_method="cod", **kwargs):
    return place_order(
        PlaceCustomerOrder(
            customer_id=CUSTOMER,
            email="Ram@Example.com",
            first_name="Ram",
            last_name="Thapa",
            payment_method=payment_method,
            **kwargs,
        )
    )


class TestCartCheckout:
    def test_cart_becomes_order(self, make_product, shipping_address):
        kurta = make_product(name="Teal Kurta", price=1000.0, stock=5)
        shawl = make_product(name="Shawl", price=500.0, stock=5)
        _add_to_cart(kurta.id, 2, {"color": "Teal"})
        _add_to_cart(shawl.id, 1)
        address_id = _save_address(shipping_address)

        result = _checkout(shipping_address_id=address_id)

        order = current_domain.repository_for(Order).get(result["order_id"])
        assert order.customer_id == CUSTOMER
        assert order.guest is None
        assert order.contact_email == "ram@example.com"
        assert order.contact_name == "Ram Thapa"
        assert order.pricing.subtotal == 2500.0
        assert len(order.items) == 2
        assert order.shipping_address.full_name == "Sita Sharma"

    def test_cart_is_cleared(self, make_product, shipping_address):
        product = make_product()
        _add_to_cart(product.id)
        _checkout(shipping_address=json.dumps(shipping_address))
        cart = current_domain.repository_for(ShoppingCart).for_customer(CUSTOMER)
        assert len(cart.items) == 0

    def test_stock_is_decremented(self, make_product, shipping_address):
        product = make_product(stock=5)
        _add_to_cart(product.id, 3)
        _checkout(shipping_address=json.dumps(shipping_address))
        assert current_domain.repository_for(Product).get(product.id).stock == 2

    def test_unknown_billing_address_falls_back_to_shipping(self, make_product, shipping_address):
        product = make_product()
        _add_to_cart(product.id)
        address_id = _save_address(shipping_address)
        result = _checkout(shipping_address_id=address_id, use_same_address=False, billing_address_id="missing")
        order = current_domain.repository_for(Order).get(result["order_id"])
        assert order.billing_address.address_line1 == order.shipping_address.address_line1

    def test_saved_billing_address(self, make_product, shipping_address):
        product = make_product()
        _add_to_cart(product.id)
        shipping_id = _save_address(shipping_address)
        billing_id = _save_address(shipping_address, city="Pokhara")
        result = _checkout(shipping_address_id=shipping_id, use_same_address=False, billing_address_id=billing_id)
        order = current_domain.repository_for(Order).get(result["order_id"])
        assert order.billing_address.city == "Pokhara"


class TestCartCheckoutFailures:
    def test_empty_cart(self, shipping_address):
        with pytest.raises(ValidationError) as exc:
            _checkout(shipping_address=json.dumps(shipping_address))
        assert exc.value.messages == {"cart": ["Your cart is empty"]}

    def test_someone_elses_address(self, make_product, shipping_address):
        product = make_product()
        _add_to_cart(product.id)
        address_id = _save_address(shipping_address, customer_id="cust-002")
        with pytest.raises(ObjectNotFoundError):
            _checkout(shipping_address_id=address_id)

    def test_address_required(self, make_product):
        product = make_product()
        _add_to_cart(product.id)
        with pytest.raises(ValidationError):
            _checkout()

    def test_stock_sold_out_after_adding_to_cart(self, make_product, shipping_address):
        product = make_product(stock=2)
        _add_to_cart(product.id, 2)
        stored = current_domain.repository_for(Product).get(product.id)
        stored.adjust_stock(-1)
        current_domain.repository_for(Product).add(stored)

        with pytest.raises(InsufficientStockError):
            _checkout(shipping_address=json.dumps(shipping_address))

        cart = current_domain.repository_for(ShoppingCart).for_customer(CUSTOMER)
        assert cart.total_items == 2
