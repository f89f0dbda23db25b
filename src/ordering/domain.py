"""Ordering bounded context: checkout, orders, discounts and gateway payments.

Handles the order lifecycle (status machine with stock side effects), the
checkout flow that snapshots carts into immutable orders, discount redemption,
and reconciliation of signed payment-gateway callbacks. Catalogue stock, carts
and saved addresses live here as thin collaborators so that a checkout runs in
a single unit of work.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
