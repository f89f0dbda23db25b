"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations. The default
is the eSewa adapter built from the active settings.
"""

from ordering.config import get_settings
from ordering.payment.gateway.esewa_adapter import EsewaGateway
from ordering.payment.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = EsewaGateway(get_settings().gateway)
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
