"""Cart item management: commands and handler.

Stock is checked when a line is added or resized so customers learn early;
the authoritative check happens again at checkout.
"""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart, cart_for
from ordering.catalogue.product import Product
from ordering.domain import ordering
from ordering.errors import InsufficientStockError


@ordering.command(part_of="ShoppingCart")
class AddToCart:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)
    variant = Text()  # JSON: {"color", "size", "material"}


@ordering.command(part_of="ShoppingCart")
class UpdateCartItem:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="ShoppingCart")
class RemoveFromCart:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.command(part_of="ShoppingCart")
class ClearCart:
    customer_id = Identifier(required=True)


def _existing_cart(customer_id) -> ShoppingCart:
    cart = current_domain.repository_for(ShoppingCart).for_customer(customer_id)
    if cart is None:
        raise ObjectNotFoundError("Cart not found")
    return cart


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = current_domain.repository_for(Product).get(command.product_id)
        variant = json.loads(command.variant) if command.variant else {}
        quantity = command.quantity or 1

        cart = cart_for(command.customer_id)
        existing = cart.find_line(command.product_id, variant)
        wanted = quantity + (existing.quantity if existing else 0)
        if wanted > product.stock:
            raise InsufficientStockError(product.name, available=product.stock, requested=wanted)

        item = cart.add_item(product_id=command.product_id, quantity=quantity, variant=variant)
        current_domain.repository_for(ShoppingCart).add(cart)
        return str(item.id)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        cart = _existing_cart(command.customer_id)
        item = cart.get_item(command.item_id)
        product = current_domain.repository_for(Product).get(item.product_id)
        if command.quantity > product.stock:
            raise InsufficientStockError(product.name, available=product.stock, requested=command.quantity)

        cart.update_item_quantity(command.item_id, command.quantity)
        current_domain.repository_for(ShoppingCart).add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = _existing_cart(command.customer_id)
        cart.remove_item(command.item_id)
        current_domain.repository_for(ShoppingCart).add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = _existing_cart(command.customer_id)
        cart.clear()
        current_domain.repository_for(ShoppingCart).add(cart)
