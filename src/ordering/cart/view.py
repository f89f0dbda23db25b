"""Cart read model: lines priced at current catalogue prices."""

from dataclasses import dataclass, field

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.catalogue.product import Product
from ordering.shared.money import round_amount


@dataclass(frozen=True)
class CartLine:
    item_id: str
    product_id: str
    name: str
    unit_price: float
    quantity: int
    variant: dict
    image: str | None
    stock: int

    @property
    def line_total(self) -> float:
        return round_amount(self.unit_price * self.quantity)


@dataclass(frozen=True)
class CartView:
    cart_id: str | None
    lines: list[CartLine] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def subtotal(self) -> float:
        return round_amount(sum(line.unit_price * line.quantity for line in self.lines))


def view_cart(customer_id) -> CartView:
    """The customer's cart with live prices. Lines whose product is gone are left out."""
    cart = current_domain.repository_for(ShoppingCart).for_customer(customer_id)
    if cart is None:
        return CartView(cart_id=None)

    products = current_domain.repository_for(Product)
    lines = []
    for item in cart.items:
        try:
            product = products.get(item.product_id)
        except ObjectNotFoundError:
            continue
        lines.append(
            CartLine(
                item_id=str(item.id),
                product_id=str(item.product_id),
                name=product.name,
                unit_price=product.price,
                quantity=item.quantity,
                variant=item.variant_dict,
                image=product.primary_image,
                stock=product.stock,
            )
        )
    return CartView(cart_id=str(cart.id), lines=lines)


def cart_subtotal(customer_id) -> float:
    return view_cart(customer_id).subtotal
