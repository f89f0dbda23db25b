"""Domain events for the Product aggregate."""

from protean.fields import Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Product")
class ProductAdded:
    """A product was registered in the catalogue."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    price = Float(required=True)
    stock = Integer(required=True)


@ordering.event(part_of="Product")
class StockAdjusted:
    """Stock on hand changed, by an order, a restore or a manual adjustment."""

    __version__ = 1

    product_id = Identifier(required=True)
    delta = Integer(required=True)
    stock = Integer(required=True)
    reason = String(max_length=100)


@ordering.event(part_of="Product")
class PriceChanged:
    __version__ = 1

    product_id = Identifier(required=True)
    previous_price = Float(required=True)
    new_price = Float(required=True)
