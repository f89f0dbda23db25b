"""Payment gateway port (abstract interface).

Defines the contract a redirect-style payment gateway adapter implements:
build the signed form the customer is sent to, and decode and verify the
signed payload the gateway sends back on its callbacks.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PaymentRequest:
    """Signed form fields to post to the gateway's payment page."""

    payment_url: str
    fields: dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, str]:
        return {**self.fields, "payment_url": self.payment_url}


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def build_payment_request(self, order) -> PaymentRequest:
        """Build the signed payment request for a pending order."""
        ...

    @abstractmethod
    def decode_callback(self, data: str | None) -> dict:
        """Decode a callback payload into a mapping.

        Raises PaymentVerificationError with code `missing_data` or
        `invalid_response`.
        """
        ...

    @abstractmethod
    def verify_callback(self, payload: dict) -> bool:
        """Verify that a decoded payload is authentically from the gateway."""
        ...
