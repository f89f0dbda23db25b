"""Discount aggregate: percentage codes redeemed at checkout.

Validity is derived on demand and never stored: a code is usable while it is
active, unexpired, below its usage limit, and the order subtotal meets its
minimum. Validation reports the first failing rule instead of raising, so
callers decide whether a rejected code is an error or simply ignored.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering
from ordering.shared.money import format_amount, percentage_of


class DiscountRejection(Enum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    USAGE_LIMIT_REACHED = "usage_limit_reached"
    MINIMUM_NOT_MET = "minimum_not_met"


@dataclass(frozen=True)
class DiscountValidation:
    """Outcome of checking a code against a subtotal."""

    valid: bool
    message: str
    reason: str | None = None

    @classmethod
    def rejected(cls, reason: DiscountRejection, message: str) -> "DiscountValidation":
        return cls(valid=False, message=message, reason=reason.value)


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def _aware(moment: datetime) -> datetime:
    # Expiry dates without a zone are taken to be UTC
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)


@ordering.aggregate
class Discount:
    code = String(required=True, max_length=20)
    description = String(max_length=200)
    percentage = Float(required=True, min_value=1.0, max_value=100.0)
    minimum_order_amount = Float(default=0.0, min_value=0.0)
    max_usage_limit = Integer(min_value=1)
    current_usage_count = Integer(default=0, min_value=0)
    expiry_date = DateTime(required=True)
    is_active = Boolean(default=True)
    created_by = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def usage_cannot_exceed_limit(self):
        if self.max_usage_limit is not None and (self.current_usage_count or 0) > self.max_usage_limit:
            raise ValidationError({"current_usage_count": ["Usage count cannot exceed the usage limit"]})

    @classmethod
    def create(
        cls,
        code,
        percentage,
        expiry_date,
        description=None,
        minimum_order_amount=0.0,
        max_usage_limit=None,
        is_active=True,
        created_by=None,
    ):
        now = datetime.now(UTC)
        return cls(
            code=normalize_code(code),
            description=description,
            percentage=percentage,
            minimum_order_amount=minimum_order_amount or 0.0,
            max_usage_limit=max_usage_limit or None,
            current_usage_count=0,
            expiry_date=expiry_date,
            is_active=is_active,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------
    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(UTC)
        return _aware(now) > _aware(self.expiry_date)

    @property
    def usage_limit_reached(self) -> bool:
        if not self.max_usage_limit:
            return False
        return self.current_usage_count >= self.max_usage_limit

    def validate_for(self, subtotal: float, now: datetime | None = None) -> DiscountValidation:
        """Check the code against an order subtotal; the first failing rule wins."""
        if not self.is_active:
            return DiscountValidation.rejected(DiscountRejection.INACTIVE, "This discount code is no longer active")
        if self.is_expired(now):
            return DiscountValidation.rejected(DiscountRejection.EXPIRED, "This discount code has expired")
        if self.usage_limit_reached:
            return DiscountValidation.rejected(
                DiscountRejection.USAGE_LIMIT_REACHED, "This discount code has reached its usage limit"
            )
        if subtotal < (self.minimum_order_amount or 0):
            return DiscountValidation.rejected(
                DiscountRejection.MINIMUM_NOT_MET,
                f"Minimum order amount of Rs. {format_amount(self.minimum_order_amount)} required",
            )
        return DiscountValidation(valid=True, message="Discount code is valid")

    def price(self, subtotal: float) -> float:
        """Discount amount for a subtotal, rounded to whole units."""
        return percentage_of(subtotal, self.percentage)

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def increment_usage(self):
        if self.usage_limit_reached:
            raise ValidationError({"code": ["This discount code has reached its usage limit"]})
        self.current_usage_count = (self.current_usage_count or 0) + 1
        self.updated_at = datetime.now(UTC)

    def update(self, **changes):
        """Apply admin edits. Only keys present in `changes` are touched."""
        if "code" in changes and changes["code"]:
            self.code = normalize_code(changes["code"])
        for name in ("description", "percentage", "minimum_order_amount", "expiry_date", "is_active"):
            if name in changes and changes[name] is not None:
                setattr(self, name, changes[name])
        if "max_usage_limit" in changes:
            self.max_usage_limit = changes["max_usage_limit"] or None
        self.updated_at = datetime.now(UTC)


@ordering.repository(part_of=Discount)
class DiscountRepository:
    def by_code(self, code) -> Discount | None:
        """Case-insensitive lookup; codes are stored uppercase."""
        normalized = normalize_code(code)
        if not normalized:
            return None
        return self._dao.query.filter(code=normalized).all().first
