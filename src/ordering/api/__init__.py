"""Storefront HTTP API package."""

from ordering.api.routes import (
    address_router,
    cart_router,
    discount_router,
    order_router,
    payment_router,
    product_router,
)

# Order matters: payment callbacks live under /orders and must win over /orders/{order_id}
ROUTERS = [payment_router, order_router, discount_router, cart_router, address_router, product_router]

__all__ = [
    "ROUTERS",
    "address_router",
    "cart_router",
    "discount_router",
    "order_router",
    "payment_router",
    "product_router",
]
