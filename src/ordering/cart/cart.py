"""Shopping Cart aggregate: one per customer, emptied when it becomes an order.

A line is identified by product plus canonical variant: adding the same
product with the same options (in any key order) grows the existing line.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, Text
from protean.utils.globals import current_domain

from ordering.cart.events import CartCleared, CartItemAdded, CartItemRemoved
from ordering.domain import ordering
from ordering.shared.variant import same_variant, variant_from_json, variant_to_json


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    variant = Text()  # JSON: canonical {"color", "size", "material"} subset
    added_at = DateTime()

    @property
    def variant_dict(self) -> dict:
        return variant_from_json(self.variant)


@ordering.aggregate
class ShoppingCart:
    customer_id = Identifier(required=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(customer_id=customer_id, created_at=now, updated_at=now)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    def find_line(self, product_id, variant=None):
        return next(
            (
                item
                for item in self.items
                if str(item.product_id) == str(product_id) and same_variant(item.variant, variant)
            ),
            None,
        )

    def get_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ObjectNotFoundError(f"Item {item_id} not found in cart")
        return item

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, variant=None):
        """Add a line, or increase the quantity of a matching one. Returns the line."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = self.find_line(product_id, variant)
        if existing:
            existing.quantity += quantity
            item = existing
        else:
            item = CartItem(
                product_id=product_id,
                quantity=quantity,
                variant=variant_to_json(variant),
                added_at=now,
            )
            self.add_items(item)

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product_id),
                variant=item.variant,
                quantity=item.quantity,
            )
        )
        return item

    def update_item_quantity(self, item_id, quantity):
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        item = self.get_item(item_id)
        item.quantity = quantity
        self.updated_at = datetime.now(UTC)
        return item

    def remove_item(self, item_id):
        item = self.get_item(item_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def clear(self):
        """Empty the cart. The cart itself survives for the next purchase."""
        removed = len(self.items)
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                customer_id=str(self.customer_id),
                items_removed=removed,
            )
        )


@ordering.repository(part_of=ShoppingCart)
class ShoppingCartRepository:
    def for_customer(self, customer_id) -> ShoppingCart | None:
        return self._dao.query.filter(customer_id=str(customer_id)).all().first


def cart_for(customer_id) -> ShoppingCart:
    """The customer's cart, created (unsaved) when they have none yet."""
    cart = current_domain.repository_for(ShoppingCart).for_customer(customer_id)
    return cart if cart is not None else ShoppingCart.create(customer_id=customer_id)
