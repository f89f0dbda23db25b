"""Shared BDD fixtures and step definitions for checkout and payment scenarios."""

import pytest
from ordering.catalogue.product import Product
from ordering.order.order import Order
from protean import current_domain
from pytest_bdd import given, parsers, then


@pytest.fixture()
def world():
    """Scenario state shared between steps: products by name, the order, outcomes."""
    return {"products": {}, "tracking_code": None, "result": None, "error": None, "redirect": None}


def _current_order(world) -> Order:
    return current_domain.repository_for(Order).by_tracking_code(world["tracking_code"])


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price:d} with {stock:d} in stock'))
def _(world, make_product, name, price, stock):
    world["products"][name] = make_product(name=name, price=float(price), stock=stock)


@given(parsers.cfparse('a discount "{code}" of {percentage:d} percent with a minimum order of {minimum:d}'))
def _(make_discount, code, percentage, minimum):
    make_discount(code=code, percentage=float(percentage), minimum_order_amount=float(minimum))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(world, status):
    assert _current_order(world).order_status == status


@then(parsers.cfparse('the order payment status is "{status}"'))
def _(world, status):
    assert _current_order(world).payment_status == status


@then(parsers.cfparse('"{name}" has {stock:d} in stock'))
def _(world, name, stock):
    product_id = world["products"][name].id
    assert current_domain.repository_for(Product).get(product_id).stock == stock


@then("a confirmation email was sent")
def _(mailer):
    assert len(mailer.sent_emails) >= 1
    assert mailer.sent_emails[-1]["subject"].startswith("Order Confirmed - #")


@then("no confirmation email was sent")
def _(mailer):
    assert mailer.sent_emails == []
