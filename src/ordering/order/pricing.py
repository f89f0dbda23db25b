"""Order pricing: subtotal, discount, shipping and tax for a set of lines."""

from dataclasses import dataclass

from ordering.discount.discount import Discount, DiscountValidation
from ordering.discount.lookup import check_code
from ordering.shared.money import round_amount

# Flat rates; kept as separate components so they can vary later
SHIPPING_COST = 0.0
TAX = 0.0


@dataclass(frozen=True)
class PricingQuote:
    subtotal: float
    discount_amount: float = 0.0
    shipping_cost: float = SHIPPING_COST
    tax: float = TAX
    discount: Discount | None = None
    rejection: DiscountValidation | None = None

    @property
    def total(self) -> float:
        return round_amount(self.subtotal - self.discount_amount + self.shipping_cost + self.tax)

    def as_pricing(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "discount_amount": self.discount_amount,
            "shipping_cost": self.shipping_cost,
            "tax": self.tax,
            "total": self.total,
        }

    @property
    def applied_discount(self) -> dict | None:
        if self.discount is None:
            return None
        return {"code": self.discount.code, "percentage": self.discount.percentage}


def subtotal_of(lines) -> float:
    """Sum of unit_price * quantity over dicts or objects exposing those keys."""
    total = 0.0
    for line in lines:
        if isinstance(line, dict):
            total += line["unit_price"] * line["quantity"]
        else:
            total += line.unit_price * line.quantity
    return round_amount(total)


def price_order(lines, discount_code=None) -> PricingQuote:
    """Price the lines, redeeming `discount_code` when it validates.

    A code that does not validate is left out of the price; the rejection is
    carried on the quote for the caller to report.
    """
    subtotal = subtotal_of(lines)
    if not discount_code or not discount_code.strip():
        return PricingQuote(subtotal=subtotal)

    quote = check_code(discount_code, subtotal)
    if not quote.valid:
        return PricingQuote(subtotal=subtotal, rejection=quote.validation)

    return PricingQuote(
        subtotal=subtotal,
        discount_amount=quote.discount_amount,
        discount=quote.discount,
    )
