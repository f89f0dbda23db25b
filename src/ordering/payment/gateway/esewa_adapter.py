"""eSewa ePay v2 adapter.

Outbound, the customer's browser posts a signed form to eSewa. Inbound, eSewa
redirects back with a single `data` query parameter: base64-encoded JSON
whose `signature` is an HMAC-SHA256 (base64) over the fields listed in its
own `signed_field_names`, rendered as `name=value` and joined with commas.
"""

import base64
import binascii
import hashlib
import hmac
import json

from ordering.config import GatewaySettings
from ordering.errors import PaymentVerificationError
from ordering.payment.gateway.port import PaymentGateway, PaymentRequest
from ordering.shared.money import format_amount

REQUEST_SIGNED_FIELDS = ("total_amount", "transaction_uuid", "product_code")


def render_value(value) -> str:
    """Render a payload value the way eSewa did when it signed it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return format_amount(value) if isinstance(value, float) else str(value)
    if value is None:
        return "null"
    return str(value)


def signing_message(payload: dict, field_names) -> str | None:
    """`name=value` pairs joined by commas, or None if a named field is absent."""
    parts = []
    for name in field_names:
        name = name.strip()
        if name not in payload:
            return None
        parts.append(f"{name}={render_value(payload[name])}")
    return ",".join(parts)


class EsewaGateway(PaymentGateway):
    def __init__(self, settings: GatewaySettings) -> None:
        self.settings = settings

    def sign(self, message: str) -> str:
        digest = hmac.new(self.settings.secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).digest()
        return base64.b64encode(digest).decode("ascii")

    def build_payment_request(self, order) -> PaymentRequest:
        pricing = order.pricing
        fields = {
            "amount": format_amount(pricing.subtotal - pricing.discount_amount),
            "tax_amount": format_amount(pricing.tax),
            "product_service_charge": "0",
            "product_delivery_charge": format_amount(pricing.shipping_cost),
            "total_amount": format_amount(pricing.total),
            "transaction_uuid": order.tracking_code,
            "product_code": self.settings.merchant_id,
            "success_url": self.settings.success_callback_url,
            "failure_url": self.settings.failure_callback_url,
            "signed_field_names": ",".join(REQUEST_SIGNED_FIELDS),
        }
        fields["signature"] = self.sign(signing_message(fields, REQUEST_SIGNED_FIELDS))
        return PaymentRequest(payment_url=self.settings.payment_url, fields=fields)

    def decode_callback(self, data: str | None) -> dict:
        if not data:
            raise PaymentVerificationError("missing_data", "Callback carried no payload")

        # Query strings turn '+' into spaces; eSewa also omits padding at times
        encoded = data.strip().replace(" ", "+")
        encoded += "=" * (-len(encoded) % 4)
        try:
            decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
            payload = json.loads(decoded)
        except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
            raise PaymentVerificationError("invalid_response", f"Undecodable callback payload: {exc}") from exc

        if not isinstance(payload, dict):
            raise PaymentVerificationError("invalid_response", "Callback payload is not an object")
        return payload

    def verify_callback(self, payload: dict) -> bool:
        field_names = payload.get("signed_field_names")
        signature = payload.get("signature")
        if not isinstance(field_names, str) or not isinstance(signature, str) or not field_names:
            return False

        message = signing_message(payload, field_names.split(","))
        if message is None:
            return False
        return hmac.compare_digest(self.sign(message).encode("utf-8"), signature.encode("utf-8"))
