"""Discount administration: commands and handler."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.discount.discount import Discount, normalize_code
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Discount")
class CreateDiscount:
    code = String(required=True, max_length=20)
    description = String(max_length=200)
    percentage = Float(required=True, min_value=1.0, max_value=100.0)
    minimum_order_amount = Float(default=0.0, min_value=0.0)
    max_usage_limit = Integer(min_value=1)
    expiry_date = DateTime(required=True)
    is_active = Boolean(default=True)
    created_by = Identifier()


@ordering.command(part_of="Discount")
class UpdateDiscount:
    discount_id = Identifier(required=True)
    code = String(max_length=20)
    description = String(max_length=200)
    percentage = Float(min_value=1.0, max_value=100.0)
    minimum_order_amount = Float(min_value=0.0)
    max_usage_limit = Integer(min_value=1)
    clear_usage_limit = Boolean(default=False)
    expiry_date = DateTime()
    is_active = Boolean()


@ordering.command(part_of="Discount")
class DeleteDiscount:
    discount_id = Identifier(required=True)


def _ensure_code_is_free(code, current_id=None):
    existing = current_domain.repository_for(Discount).by_code(code)
    if existing is not None and str(existing.id) != str(current_id):
        raise ValidationError({"code": ["A discount with this code already exists"]})


@ordering.command_handler(part_of=Discount)
class ManageDiscountHandler:
    @handle(CreateDiscount)
    def create_discount(self, command):
        _ensure_code_is_free(command.code)

        discount = Discount.create(
            code=command.code,
            description=command.description,
            percentage=command.percentage,
            minimum_order_amount=command.minimum_order_amount,
            max_usage_limit=command.max_usage_limit,
            expiry_date=command.expiry_date,
            is_active=command.is_active if command.is_active is not None else True,
            created_by=command.created_by,
        )
        current_domain.repository_for(Discount).add(discount)
        logger.info("discount_created", discount_id=str(discount.id), code=discount.code)
        return str(discount.id)

    @handle(UpdateDiscount)
    def update_discount(self, command):
        repo = current_domain.repository_for(Discount)
        discount = repo.get(command.discount_id)

        changes = {
            name: getattr(command, name)
            for name in ("code", "description", "percentage", "minimum_order_amount", "expiry_date", "is_active")
            if getattr(command, name) is not None
        }
        if "code" in changes and normalize_code(changes["code"]) != discount.code:
            _ensure_code_is_free(changes["code"], current_id=discount.id)
        if command.clear_usage_limit:
            changes["max_usage_limit"] = None
        elif command.max_usage_limit is not None:
            changes["max_usage_limit"] = command.max_usage_limit

        discount.update(**changes)
        repo.add(discount)

    @handle(DeleteDiscount)
    def delete_discount(self, command):
        repo = current_domain.repository_for(Discount)
        discount = repo.get(command.discount_id)
        repo._dao.delete(discount)
        logger.info("discount_deleted", discount_id=str(command.discount_id), code=discount.code)
