"""Product aggregate: the slice of the catalogue that checkout depends on.

Checkout reads name, price and primary image to snapshot order lines and
moves stock on hand. Stock never goes negative: a reservation larger than
what is available raises InsufficientStockError and changes nothing.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Integer, String, Text

from ordering.catalogue.events import PriceChanged, ProductAdded, StockAdjusted
from ordering.domain import ordering
from ordering.errors import InsufficientStockError


@ordering.entity(part_of="Product")
class ProductImage:
    url = String(required=True, max_length=500)
    is_primary = Boolean(default=False)


@ordering.aggregate
class Product:
    name = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    images = HasMany(ProductImage)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def stock_cannot_be_negative(self):
        if self.stock is not None and self.stock < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})

    @classmethod
    def create(cls, name, price, stock=0, description=None, images=None, is_active=True):
        """Register a product. The first image is primary unless one is flagged."""
        now = datetime.now(UTC)
        product = cls(
            name=name,
            description=description,
            price=price,
            stock=stock,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )

        images = list(images or [])
        has_primary = any(img.get("is_primary") for img in images)
        for index, img in enumerate(images):
            product.add_images(
                ProductImage(
                    url=img["url"],
                    is_primary=bool(img.get("is_primary")) or (not has_primary and index == 0),
                )
            )

        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                name=name,
                price=price,
                stock=stock,
            )
        )
        return product

    @property
    def primary_image(self) -> str | None:
        """URL of the primary image, falling back to the first one."""
        if not self.images:
            return None
        primary = next((img for img in self.images if img.is_primary), self.images[0])
        return primary.url

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    def reserve(self, quantity):
        """Decrement stock for an order line, refusing to oversell."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if quantity > self.stock:
            raise InsufficientStockError(self.name, available=self.stock, requested=quantity)
        self._move_stock(-quantity, reason="Order placed")

    def restock(self, quantity, reason="Order stock released"):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        self._move_stock(quantity, reason=reason)

    def adjust_stock(self, delta, reason="Manual adjustment"):
        """Apply a signed adjustment; the result may not drop below zero."""
        if delta == 0:
            raise ValidationError({"delta": ["Adjustment must not be zero"]})
        if self.stock + delta < 0:
            raise ValidationError({"delta": [f"Adjustment would result in negative stock: {self.stock + delta}"]})
        self._move_stock(delta, reason=reason)

    def _move_stock(self, delta, reason):
        self.stock += delta
        self.updated_at = datetime.now(UTC)
        self.raise_(
            StockAdjusted(
                product_id=str(self.id),
                delta=delta,
                stock=self.stock,
                reason=reason,
            )
        )

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def change_price(self, new_price):
        if new_price is None or new_price < 0:
            raise ValidationError({"price": ["Price must be zero or more"]})
        previous = self.price
        self.price = new_price
        self.updated_at = datetime.now(UTC)
        self.raise_(
            PriceChanged(
                product_id=str(self.id),
                previous_price=previous,
                new_price=new_price,
            )
        )
