"""Saved Address aggregate: a customer's address book entry.

Checkout can reference a saved address by id instead of sending it inline;
the address is copied onto the order, so later edits never touch past orders.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Identifier, String

from ordering.domain import ordering

ADDRESS_FIELDS = (
    "full_name",
    "phone",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "country",
)


class AddressLabel(Enum):
    HOME = "home"
    WORK = "work"
    FAMILY = "family"
    OTHER = "other"


@ordering.aggregate
class SavedAddress:
    customer_id = Identifier(required=True)
    label = String(max_length=20, choices=AddressLabel, default=AddressLabel.HOME.value)
    full_name = String(required=True, max_length=100)
    phone = String(required=True, max_length=20)
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(max_length=100, default="Nepal")
    is_default = Boolean(default=False)
    created_at = DateTime()

    @classmethod
    def create(cls, customer_id, is_default=False, **fields):
        return cls(
            customer_id=customer_id,
            is_default=is_default,
            created_at=datetime.now(UTC),
            **fields,
        )

    def snapshot(self) -> dict:
        """The address fields alone, ready to be copied onto an order."""
        return {name: getattr(self, name) for name in ADDRESS_FIELDS}


@ordering.repository(part_of=SavedAddress)
class SavedAddressRepository:
    def for_customer(self, customer_id) -> list[SavedAddress]:
        return self._dao.query.filter(customer_id=str(customer_id)).all().items

    def find_for_owner(self, address_id, customer_id) -> SavedAddress | None:
        """The address if it exists and belongs to the customer, else None."""
        if not address_id:
            return None
        return (
            self._dao.query.filter(id=str(address_id), customer_id=str(customer_id)).all().first
        )
