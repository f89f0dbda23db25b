"""Handling of the customer's return from the payment gateway.

The customer arrives here mid-redirect, so nothing is ever reported as an
error body: every path ends in a redirect to the storefront, with a coarse
`error` code when the payment could not be applied.
"""

import json
from urllib.parse import quote, urlencode

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.config import get_settings
from ordering.errors import PaymentVerificationError
from ordering.notification.order_confirmation import send_order_confirmation
from ordering.order.order import Order
from ordering.order.payment import ConfirmGatewayPayment, PaymentOutcome, RecordGatewayPaymentFailure
from ordering.payment.gateway import get_gateway

logger = structlog.get_logger(__name__)


def failure_redirect(code: str) -> str:
    return f"{get_settings().frontend_url}/checkout/payment-failed?{urlencode({'error': code})}"


def success_redirect(order, email_sent: bool) -> str:
    query = urlencode({"email": order.contact_email, "emailSent": "true" if email_sent else "false"})
    return f"{get_settings().frontend_url}/order-confirmation/{quote(order.tracking_code)}?{query}"


def verify_success_payload(data: str | None) -> dict:
    """Decode and authenticate a success callback, or raise PaymentVerificationError."""
    gateway = get_gateway()
    payload = gateway.decode_callback(data)
    if not gateway.verify_callback(payload):
        raise PaymentVerificationError("signature_mismatch", "Callback signature does not match")
    if not payload.get("transaction_uuid"):
        raise PaymentVerificationError("order_not_found", "Callback carried no transaction id")
    return payload


def process_success_callback(data: str | None) -> str:
    """Apply a success callback and return the storefront URL to redirect to."""
    try:
        payload = verify_success_payload(data)
        tracking_code = str(payload["transaction_uuid"])
        try:
            outcome = current_domain.process(
                ConfirmGatewayPayment(
                    tracking_code=tracking_code,
                    gateway_status=str(payload.get("status") or ""),
                    transaction_id=payload.get("transaction_code"),
                    gateway_response=json.dumps(payload),
                ),
                asynchronous=False,
            )
        except ObjectNotFoundError:
            raise PaymentVerificationError("order_not_found", f"No order for {tracking_code}") from None
        except ValidationError as exc:
            # Signed but malformed, e.g. no status or an oversized transaction id
            raise PaymentVerificationError("invalid_response", str(exc.messages)) from None

        if outcome == PaymentOutcome.INCOMPLETE:
            raise PaymentVerificationError("payment_incomplete", f"Gateway status {payload.get('status')}")
        if outcome == PaymentOutcome.NOT_PAYABLE:
            raise PaymentVerificationError("order_not_payable", f"Order {tracking_code} cannot accept a payment")
    except PaymentVerificationError as exc:
        logger.warning("payment_callback_rejected", code=exc.code, detail=exc.detail)
        return failure_redirect(exc.code)

    order = current_domain.repository_for(Order).by_tracking_code(tracking_code)
    # Replays land on the same page but report no email, since none was attempted
    email_sent = False
    if outcome == PaymentOutcome.CONFIRMED:
        email_sent = send_order_confirmation(order)
    return success_redirect(order, email_sent)


def process_failure_callback(data: str | None) -> str:
    """Record a failed or cancelled payment, best effort, and return the redirect URL."""
    tracking_code = ""
    if data:
        try:
            payload = get_gateway().decode_callback(data)
        except PaymentVerificationError as exc:
            logger.info("payment_failure_payload_unreadable", detail=exc.detail)
        else:
            tracking_code = str(payload.get("transaction_uuid") or "")

    if tracking_code:
        try:
            current_domain.process(RecordGatewayPaymentFailure(tracking_code=tracking_code), asynchronous=False)
        except ObjectNotFoundError:
            logger.info("payment_failure_for_unknown_order", tracking_code=tracking_code)
        except ValidationError as exc:
            logger.info("payment_failure_payload_invalid", tracking_code=tracking_code, errors=exc.messages)

    return f"{get_settings().frontend_url}/checkout/payment-failed?{urlencode({'orderId': tracking_code})}"
