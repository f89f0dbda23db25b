"""Returning an order's reserved stock to the catalogue."""

import structlog
from protean.utils.globals import current_domain

from ordering.catalogue.product import Product

logger = structlog.get_logger(__name__)


def restore_stock(lines, reason, tracking_code=None) -> None:
    """Put (product_id, quantity) lines back on sale within the current unit of work."""
    repo = current_domain.repository_for(Product)
    for product_id, quantity in lines:
        product = repo.get(product_id)
        product.restock(quantity, reason=reason)
        repo.add(product)
    if lines:
        logger.info("stock_restored", tracking_code=tracking_code, lines=len(lines), reason=reason)
