"""Checkout: turn a guest's item list or a customer's cart into an order.

Both entry points run one command inside one unit of work: every line is
validated before anything is written, then the order is created, stock is
reserved, discount usage is counted and (for customers) the cart is emptied.
If any step raises, none of it is persisted.

Cash-on-delivery orders are confirmed straight away and the confirmation
email goes out after the unit of work has committed (see place_order()).
Gateway orders stay pending; the caller receives a signed payment request
to forward to the gateway.
"""

import json
from collections import defaultdict

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.addresses.address import ADDRESS_FIELDS, SavedAddress
from ordering.cart.cart import ShoppingCart
from ordering.catalogue.product import Product
from ordering.config import get_settings
from ordering.discount.discount import Discount
from ordering.domain import ordering
from ordering.errors import InsufficientStockError
from ordering.notification.order_confirmation import send_order_confirmation
from ordering.order.order import Order
from ordering.order.pricing import price_order
from ordering.order.status import OrderStatus, PaymentMethod
from ordering.order.tracking import new_tracking_code
from ordering.payment.gateway import get_gateway
from ordering.shared.variant import variant_to_json

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceGuestOrder:
    email = String(required=True, max_length=254)
    first_name = String(max_length=50)
    last_name = String(max_length=50)
    phone = String(max_length=20)
    items = Text(required=True)  # JSON: list of {"product_id", "quantity", "variant"}
    shipping_address = Text(required=True)  # JSON: address dict
    billing_address = Text()  # JSON: address dict
    use_same_address = Boolean(default=True)
    payment_method = String(required=True, choices=PaymentMethod)
    discount_code = String(max_length=20)
    customer_note = String(max_length=500)


@ordering.command(part_of="Order")
class PlaceCustomerOrder:
    customer_id = Identifier(required=True)
    email = String(required=True, max_length=254)
    first_name = String(max_length=50)
    last_name = String(max_length=50)
    shipping_address_id = Identifier()
    shipping_address = Text()  # JSON: address dict
    billing_address_id = Identifier()
    billing_address = Text()  # JSON: address dict
    use_same_address = Boolean(default=True)
    payment_method = String(required=True, choices=PaymentMethod)
    discount_code = String(max_length=20)
    customer_note = String(max_length=500)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _load_json(value, field_name):
    if value is None or isinstance(value, dict | list):
        return value
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        raise ValidationError({field_name: ["Must be valid JSON"]}) from None


def _address(data) -> dict:
    """Keep only address fields; blank optional fields are dropped."""
    if not isinstance(data, dict):
        raise ValidationError({"address": ["Address must be an object"]})
    address = {name: data.get(name) for name in ADDRESS_FIELDS if data.get(name) not in (None, "")}
    address.setdefault("country", "Nepal")
    return address


def _resolve_lines(requested):
    """Validate every requested line against the catalogue before any write.

    Quantities of a product requested on several lines are checked together.
    Returns the item snapshots and, per product, the loaded aggregate and the
    total quantity to reserve.
    """
    if not requested or not isinstance(requested, list):
        raise ValidationError({"items": ["At least one item is required"]})
    if not all(isinstance(line, dict) for line in requested):
        raise ValidationError({"items": ["Each item must be an object"]})

    repo = current_domain.repository_for(Product)
    products = {}
    wanted = defaultdict(int)
    for line in requested:
        product_id = str(line.get("product_id") or "")
        quantity = line.get("quantity") or 0
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if product_id not in products:
            try:
                products[product_id] = repo.get(product_id)
            except ObjectNotFoundError:
                raise ObjectNotFoundError(f"Product not found: {product_id}") from None
        wanted[product_id] += quantity

    for product_id, quantity in wanted.items():
        product = products[product_id]
        if quantity > product.stock:
            raise InsufficientStockError(product.name, available=product.stock, requested=quantity)

    snapshots = [
        {
            "product_id": str(line["product_id"]),
            "name": products[str(line["product_id"])].name,
            "unit_price": products[str(line["product_id"])].price,
            "quantity": line["quantity"],
            "variant": variant_to_json(line.get("variant")),
            "image": products[str(line["product_id"])].primary_image,
        }
        for line in requested
    ]
    return snapshots, products, wanted


def _place(
    lines,
    shipping_address,
    billing_address,
    payment_method,
    discount_code,
    customer_note,
    contact_email,
    contact_name=None,
    customer_id=None,
    guest=None,
):
    """Shared core of both checkouts. Runs inside the caller's unit of work."""
    snapshots, products, wanted = _resolve_lines(lines)
    quote = price_order(snapshots, discount_code)

    order = Order.place(
        tracking_code=new_tracking_code(),
        items=snapshots,
        shipping_address=shipping_address,
        billing_address=billing_address,
        pricing=quote.as_pricing(),
        payment_method=payment_method,
        customer_id=customer_id,
        guest=guest,
        contact_email=contact_email,
        contact_name=contact_name,
        applied_discount=quote.applied_discount,
        customer_note=customer_note,
    )

    product_repo = current_domain.repository_for(Product)
    for product_id, quantity in wanted.items():
        product = products[product_id]
        product.reserve(quantity)
        product_repo.add(product)

    if quote.discount is not None:
        quote.discount.increment_usage()
        current_domain.repository_for(Discount).add(quote.discount)

    payment_request = None
    if payment_method == PaymentMethod.COD.value:
        order.set_status(
            OrderStatus.CONFIRMED.value,
            "Cash on Delivery order confirmed",
            strict=get_settings().strict_status_transitions,
        )
    else:
        payment_request = get_gateway().build_payment_request(order).as_dict()

    current_domain.repository_for(Order).add(order)

    logger.info(
        "order_placed",
        order_id=str(order.id),
        tracking_code=order.tracking_code,
        payment_method=order.payment_method,
        total=order.pricing.total,
        guest=order.is_guest_order,
    )

    rejection = None
    if quote.rejection is not None:
        rejection = {
            "code": (discount_code or "").strip().upper(),
            "reason": quote.rejection.reason,
            "message": quote.rejection.message,
        }
        logger.info("discount_ignored", tracking_code=order.tracking_code, **rejection)

    return {
        "order_id": str(order.id),
        "tracking_code": order.tracking_code,
        "order_status": order.order_status,
        "payment_method": order.payment_method,
        "total": order.pricing.total,
        "email": order.contact_email,
        "discount_rejection": rejection,
        "payment_request": payment_request,
    }


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------
@ordering.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(PlaceGuestOrder)
    def place_guest_order(self, command):
        shipping = _address(_load_json(command.shipping_address, "shipping_address") or {})
        billing = shipping
        if command.use_same_address is False and command.billing_address:
            billing = _address(_load_json(command.billing_address, "billing_address"))

        email = command.email.strip().lower()
        return _place(
            lines=_load_json(command.items, "items"),
            shipping_address=shipping,
            billing_address=billing,
            payment_method=command.payment_method,
            discount_code=command.discount_code,
            customer_note=command.customer_note,
            contact_email=email,
            guest={
                "email": email,
                "first_name": command.first_name,
                "last_name": command.last_name,
                "phone": command.phone,
            },
        )

    @handle(PlaceCustomerOrder)
    def place_customer_order(self, command):
        cart = current_domain.repository_for(ShoppingCart).for_customer(command.customer_id)
        if cart is None or not cart.items:
            raise ValidationError({"cart": ["Your cart is empty"]})

        addresses = current_domain.repository_for(SavedAddress)
        if command.shipping_address_id:
            saved = addresses.find_for_owner(command.shipping_address_id, command.customer_id)
            if saved is None:
                raise ObjectNotFoundError("Shipping address not found")
            shipping = saved.snapshot()
        elif command.shipping_address:
            shipping = _load_json(command.shipping_address, "shipping_address")
        else:
            raise ValidationError({"shipping_address": ["A shipping address is required"]})
        shipping = _address(shipping)

        billing = shipping
        if command.use_same_address is False:
            if command.billing_address_id:
                # An unknown billing address falls back to the shipping address
                saved = addresses.find_for_owner(command.billing_address_id, command.customer_id)
                if saved is not None:
                    billing = _address(saved.snapshot())
            elif command.billing_address:
                billing = _address(_load_json(command.billing_address, "billing_address"))

        lines = [
            {"product_id": str(item.product_id), "quantity": item.quantity, "variant": item.variant_dict}
            for item in cart.items
        ]
        name = " ".join(part for part in (command.first_name, command.last_name) if part) or None
        result = _place(
            lines=lines,
            shipping_address=shipping,
            billing_address=billing,
            payment_method=command.payment_method,
            discount_code=command.discount_code,
            customer_note=command.customer_note,
            contact_email=command.email,
            contact_name=name,
            customer_id=command.customer_id,
        )

        cart.clear()
        current_domain.repository_for(ShoppingCart).add(cart)
        return result


# ---------------------------------------------------------------------------
# Application service
# ---------------------------------------------------------------------------
def place_order(command) -> dict:
    """Process a checkout command, then notify once the order is committed.

    Returns the checkout result with `email_sent`, which is only ever True for
    cash-on-delivery orders (gateway orders are confirmed by the callback).
    """
    result = current_domain.process(command, asynchronous=False)

    result["email_sent"] = False
    if result["payment_method"] == PaymentMethod.COD.value:
        order = current_domain.repository_for(Order).get(result["order_id"])
        result["email_sent"] = send_order_confirmation(order)
    return result
