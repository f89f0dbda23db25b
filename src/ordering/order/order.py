"""Order aggregate: the immutable record of a checkout plus its status trail.

Items, addresses and pricing are snapshots taken at checkout and never change
afterwards, whatever happens to the catalogue, the address book or discount
codes. What does change is tracked explicitly:

- order_status, through set_status() and the transition table in status.py;
  every call appends exactly one status_history entry.
- payment_status, through record_gateway_payment() / record_payment_failure()
  or, for cash on delivery, on delivery.
- stock_released, set once when the reservation goes back to the catalogue
  (payment failure or cancellation), so stock is restored exactly once.
"""

import json
from datetime import UTC, datetime

import structlog
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.events import (
    OrderPaymentFailed,
    OrderPaymentReceived,
    OrderPlaced,
    OrderStatusChanged,
    OrderStockReleased,
)
from ordering.order.status import (
    MILESTONES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    is_allowed,
    is_forward,
)
from ordering.shared.variant import variant_from_json

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class GuestContact:
    """Who placed a guest order. Guests are found again by tracking code and email."""

    first_name = String(max_length=50)
    last_name = String(max_length=50)
    email = String(required=True, max_length=254)
    phone = String(max_length=20)


@ordering.value_object(part_of="Order")
class OrderAddress:
    """A delivery or billing address captured at checkout time."""

    full_name = String(required=True, max_length=100)
    phone = String(required=True, max_length=20)
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(max_length=100, default="Nepal")


@ordering.value_object(part_of="Order")
class OrderPricing:
    """Financial summary of an order, locked at checkout.

    total = subtotal - discount_amount + shipping_cost + tax
    """

    subtotal = Float(required=True, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    shipping_cost = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)

    @invariant.post
    def total_must_balance(self):
        expected = self.subtotal - (self.discount_amount or 0) + (self.shipping_cost or 0) + (self.tax or 0)
        if abs(expected - self.total) > 0.005:
            raise ValidationError({"total": [f"Total {self.total} does not match its components ({expected})"]})


@ordering.value_object(part_of="Order")
class AppliedDiscount:
    code = String(required=True, max_length=20)
    percentage = Float(required=True)


@ordering.value_object(part_of="Order")
class PaymentDetails:
    transaction_id = String(max_length=100)
    reference_id = String(max_length=100)
    paid_at = DateTime()
    gateway_response = Text()  # Raw callback payload, JSON


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line of the order: what was bought, at which price, in which variant."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    variant = Text()  # JSON: canonical variant
    image = String(max_length=500)
    line_number = Integer(required=True, min_value=1)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    @property
    def variant_dict(self) -> dict:
        return variant_from_json(self.variant)


@ordering.entity(part_of="Order")
class StatusHistoryEntry:
    sequence = Integer(required=True, min_value=1)
    status = String(required=True, choices=OrderStatus)
    note = String(max_length=500)
    timestamp = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    tracking_code = String(required=True, max_length=32, unique=True)
    customer_id = Identifier()
    guest = ValueObject(GuestContact)
    contact_email = String(required=True, max_length=254)
    contact_name = String(max_length=100)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(OrderAddress, required=True)
    billing_address = ValueObject(OrderAddress)
    pricing = ValueObject(OrderPricing, required=True)
    applied_discount = ValueObject(AppliedDiscount)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_details = ValueObject(PaymentDetails)
    order_status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    status_history = HasMany(StatusHistoryEntry)
    stock_released = Boolean(default=False)
    customer_note = String(max_length=500)
    admin_note = Text()
    ordered_at = DateTime()
    confirmed_at = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_exactly_one_owner(self):
        if bool(self.customer_id) == bool(self.guest):
            raise ValidationError({"customer_id": ["An order belongs to either a customer or a guest"]})

    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["An order must have at least one item"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        tracking_code,
        items,
        shipping_address,
        pricing,
        payment_method,
        billing_address=None,
        customer_id=None,
        guest=None,
        contact_email=None,
        contact_name=None,
        applied_discount=None,
        customer_note=None,
    ):
        """Create a new order in pending/pending with its first history entry.

        Args:
            items: List of dicts with product_id, name, unit_price, quantity,
                   variant (JSON text) and image.
            shipping_address, billing_address: Address dicts.
            pricing: Dict with subtotal, discount_amount, shipping_cost, tax, total.
            guest: Dict with first_name, last_name, email, phone, for guest orders.
            applied_discount: Dict with code and percentage, if a code was redeemed.
        """
        now = datetime.now(UTC)
        email = (contact_email or (guest or {}).get("email") or "").strip().lower()
        if guest:
            guest = {**guest, "email": email}
            contact_name = contact_name or " ".join(
                part for part in (guest.get("first_name"), guest.get("last_name")) if part
            )

        order = cls(
            tracking_code=tracking_code,
            customer_id=customer_id,
            guest=GuestContact(**guest) if guest else None,
            contact_email=email,
            contact_name=contact_name,
            items=[
                OrderItem(
                    product_id=item["product_id"],
                    name=item["name"],
                    unit_price=item["unit_price"],
                    quantity=item["quantity"],
                    variant=item.get("variant"),
                    image=item.get("image"),
                    line_number=index,
                )
                for index, item in enumerate(items, start=1)
            ],
            shipping_address=OrderAddress(**shipping_address),
            billing_address=OrderAddress(**(billing_address or shipping_address)),
            pricing=OrderPricing(**pricing),
            applied_discount=AppliedDiscount(**applied_discount) if applied_discount else None,
            payment_method=PaymentMethod(payment_method).value,
            payment_status=PaymentStatus.PENDING.value,
            order_status=OrderStatus.PENDING.value,
            status_history=[
                StatusHistoryEntry(
                    sequence=1,
                    status=OrderStatus.PENDING.value,
                    note="Order placed",
                    timestamp=now,
                )
            ],
            stock_released=False,
            customer_note=customer_note,
            ordered_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                tracking_code=order.tracking_code,
                customer_id=str(customer_id) if customer_id else None,
                contact_email=order.contact_email,
                payment_method=order.payment_method,
                total=order.pricing.total,
                discount_code=order.applied_discount.code if order.applied_discount else None,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_guest_order(self) -> bool:
        return self.guest is not None

    def history(self) -> list:
        return sorted(self.status_history, key=lambda entry: entry.sequence)

    def belongs_to(self, customer_id) -> bool:
        return bool(self.customer_id) and str(self.customer_id) == str(customer_id)

    @property
    def is_payable(self) -> bool:
        """Whether a gateway payment can still be applied to this order."""
        return (
            self.payment_status == PaymentStatus.PENDING.value
            and self.order_status != OrderStatus.CANCELLED.value
        )

    # -------------------------------------------------------------------
    # Status machine
    # -------------------------------------------------------------------
    def _append_history(self, status, note, timestamp):
        sequence = max((entry.sequence for entry in self.status_history), default=0) + 1
        self.add_status_history(
            StatusHistoryEntry(
                sequence=sequence,
                status=status,
                note=note,
                timestamp=timestamp,
            )
        )

    def set_status(self, new_status, note=None, strict=False):
        """Move the order to `new_status` and apply the side effects of entering it.

        Returns the stock lines to put back on sale: non-empty only the first
        time the order is cancelled while its reservation is still held.
        """
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {new_status}"]}) from None
        current = OrderStatus(self.order_status)

        if not is_allowed(current, target, strict):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})
        if current != target and not is_forward(current, target):
            logger.warning(
                "irregular_status_transition",
                tracking_code=self.tracking_code,
                from_status=current.value,
                to_status=target.value,
            )

        now = datetime.now(UTC)
        note = note or f"Status updated to {target.value}"
        self._append_history(target.value, note, now)
        self.order_status = target.value

        milestone = MILESTONES.get(target)
        if milestone and getattr(self, milestone) is None:
            setattr(self, milestone, now)

        if (
            target == OrderStatus.DELIVERED
            and self.payment_method == PaymentMethod.COD.value
            and self.payment_status != PaymentStatus.PAID.value
        ):
            self.payment_status = PaymentStatus.PAID.value
            self._stamp_paid_at(now)

        released = []
        if target == OrderStatus.CANCELLED and current != OrderStatus.CANCELLED:
            released = self.release_stock()

        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                tracking_code=self.tracking_code,
                previous_status=current.value,
                new_status=target.value,
                note=note,
                changed_at=now,
            )
        )
        return released

    def _stamp_paid_at(self, moment):
        details = self.payment_details
        self.payment_details = PaymentDetails(
            transaction_id=details.transaction_id if details else None,
            reference_id=details.reference_id if details else None,
            gateway_response=details.gateway_response if details else None,
            paid_at=moment,
        )

    def release_stock(self) -> list[tuple[str, int]]:
        """Mark the reservation as returned and list (product_id, quantity) to restock.

        Returns an empty list when the stock was already released.
        """
        if self.stock_released:
            return []

        lines = [(str(item.product_id), item.quantity) for item in self.items]
        now = datetime.now(UTC)
        self.stock_released = True
        self.updated_at = now
        self.raise_(
            OrderStockReleased(
                order_id=str(self.id),
                tracking_code=self.tracking_code,
                items=json.dumps([{"product_id": pid, "quantity": qty} for pid, qty in lines]),
                released_at=now,
            )
        )
        return lines

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_gateway_payment(self, transaction_id, gateway_response=None, note="Payment confirmed via eSewa"):
        """Mark the order paid from a verified gateway callback and confirm it.

        Returns False when the payment was already recorded, so repeated
        callbacks are harmless.
        """
        if self.payment_status == PaymentStatus.PAID.value:
            return False
        if not self.is_payable:
            raise ValidationError({"payment_status": [f"Order {self.tracking_code} cannot accept a payment"]})

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        self.payment_details = PaymentDetails(
            transaction_id=transaction_id,
            reference_id=transaction_id,
            paid_at=now,
            gateway_response=json.dumps(gateway_response) if isinstance(gateway_response, dict) else gateway_response,
        )
        self.raise_(
            OrderPaymentReceived(
                order_id=str(self.id),
                tracking_code=self.tracking_code,
                transaction_id=transaction_id,
                amount=self.pricing.total,
                paid_at=now,
            )
        )
        self.set_status(OrderStatus.CONFIRMED.value, note)
        return True

    def record_payment_failure(self, note="Payment failed/cancelled via eSewa"):
        """Mark a pending payment as failed and release the stock reservation.

        Returns the stock lines to put back on sale; empty when the payment was
        not pending, in which case nothing changes.
        """
        if self.payment_status != PaymentStatus.PENDING.value:
            return []

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.FAILED.value
        # A payment outcome is not a status change; the entry repeats the current status
        self._append_history(self.order_status, note, now)
        self.updated_at = now
        self.raise_(
            OrderPaymentFailed(
                order_id=str(self.id),
                tracking_code=self.tracking_code,
                reason=note,
                failed_at=now,
            )
        )
        return self.release_stock()

    def annotate(self, admin_note):
        self.admin_note = admin_note
        self.updated_at = datetime.now(UTC)


@ordering.repository(part_of=Order)
class OrderRepository:
    def by_tracking_code(self, tracking_code) -> Order | None:
        if not tracking_code:
            return None
        return self._dao.query.filter(tracking_code=str(tracking_code).strip().upper()).all().first

    def tracking_code_taken(self, tracking_code) -> bool:
        return self.by_tracking_code(tracking_code) is not None
