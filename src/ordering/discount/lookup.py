"""Read-side helpers for discount codes: lookup, validation and quoting."""

from dataclasses import dataclass
from datetime import UTC, datetime

from protean.utils.globals import current_domain

from ordering.discount.discount import Discount, DiscountRejection, DiscountValidation
from ordering.shared.money import round_amount
from ordering.shared.pagination import Page, paginate_list


@dataclass(frozen=True)
class DiscountQuote:
    """A validated code priced against a subtotal."""

    code: str
    validation: DiscountValidation
    discount: Discount | None = None
    subtotal: float = 0.0
    discount_amount: float = 0.0

    @property
    def valid(self) -> bool:
        return self.validation.valid

    @property
    def total(self) -> float:
        return round_amount(self.subtotal - self.discount_amount)


def find_discount(code) -> Discount | None:
    return current_domain.repository_for(Discount).by_code(code)


def check_code(code, subtotal: float, now: datetime | None = None) -> DiscountQuote:
    """Look a code up and validate it; unknown codes are a rejection, not an error."""
    discount = find_discount(code)
    if discount is None:
        return DiscountQuote(
            code=(code or "").strip().upper(),
            validation=DiscountValidation.rejected(DiscountRejection.NOT_FOUND, "Invalid discount code"),
            subtotal=subtotal,
        )

    validation = discount.validate_for(subtotal, now or datetime.now(UTC))
    return DiscountQuote(
        code=discount.code,
        validation=validation,
        discount=discount,
        subtotal=subtotal,
        discount_amount=discount.price(subtotal) if validation.valid else 0.0,
    )


def _matches_status(discount: Discount, status: str | None, now: datetime) -> bool:
    if status == "active":
        return discount.is_active and not discount.is_expired(now)
    if status == "expired":
        return discount.is_expired(now)
    if status == "inactive":
        return not discount.is_active
    return True


def list_discounts(status: str | None = None, page: int = 1, limit: int = 20, now: datetime | None = None) -> Page:
    """Discounts newest first, optionally filtered by `active`, `expired` or `inactive`."""
    now = now or datetime.now(UTC)
    discounts = current_domain.repository_for(Discount)._dao.query.order_by("-created_at").all().items
    return paginate_list([d for d in discounts if _matches_status(d, status, now)], page, limit)
