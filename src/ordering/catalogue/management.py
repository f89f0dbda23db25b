"""Catalogue management: commands and handler."""

import json

import structlog
from protean import handle
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.catalogue.product import Product
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Product")
class AddProduct:
    name = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    images = Text()  # JSON: list of {"url", "is_primary"}
    is_active = Boolean(default=True)


@ordering.command(part_of="Product")
class AdjustStock:
    product_id = Identifier(required=True)
    delta = Integer(required=True)
    reason = String(max_length=100)


@ordering.command(part_of="Product")
class ChangePrice:
    product_id = Identifier(required=True)
    new_price = Float(required=True, min_value=0.0)


@ordering.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        images = json.loads(command.images) if command.images else []
        product = Product.create(
            name=command.name,
            description=command.description,
            price=command.price,
            stock=command.stock or 0,
            images=images,
            is_active=command.is_active if command.is_active is not None else True,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("product_added", product_id=str(product.id), stock=product.stock)
        return str(product.id)

    @handle(AdjustStock)
    def adjust_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.adjust_stock(command.delta, reason=command.reason or "Manual adjustment")
        repo.add(product)
        logger.info("stock_adjusted", product_id=str(product.id), delta=command.delta, stock=product.stock)

    @handle(ChangePrice)
    def change_price(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.change_price(command.new_price)
        repo.add(product)
