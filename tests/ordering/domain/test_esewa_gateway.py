"""Tests for the eSewa adapter: signing, payment requests and callbacks."""

import base64
import json

import pytest
from ordering.config import GatewaySettings
from ordering.errors import PaymentVerificationError
from ordering.order.order import Order
from ordering.payment.gateway.esewa_adapter import EsewaGateway, render_value, signing_message


@pytest.fixture()
def gateway():
    return EsewaGateway(GatewaySettings())


def _order(total=1000.0):
    return Order.place(
        tracking_code="AUTEST0004",
        items=[{"product_id": "prod-001", "name": "Teal Kurta", "unit_price": total, "quantity": 1}],
        shipping_address={
            "full_name": "Sita Sharma",
            "phone": "9800000000",
            "address_line1": "Jhamsikhel Road 12",
            "city": "Lalitpur",
            "postal_code": "44700",
        },
        pricing={"subtotal": total, "total": total},
        payment_method="esewa",
        guest={"email": "sita@example.com"},
    )


def _encode(payload):
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


class TestSigning:
    def test_known_signature(self, gateway):
        # base64(HMAC-SHA256) under the sandbox secret
        message = "total_amount=100,transaction_uuid=11-201-13,product_code=EPAYTEST"
        assert gateway.sign(message) == "5DZywcrTKD0gia/rsSMcrRHmJl+4Tbol6S+lWgdJ94E="

    def test_render_value(self):
        assert render_value(1000.0) == "1000"
        assert render_value(True) == "true"
        assert render_value(None) == "null"
        assert render_value("1,000.0") == "1,000.0"

    def test_missing_field(self):
        assert signing_message({"a": 1}, ["a", "b"]) is None


class TestPaymentRequest:
    def test_fields(self, gateway):
        request = gateway.build_payment_request(_order())
        fields = request.fields
        assert request.payment_url == GatewaySettings().payment_url
        assert fields["total_amount"] == "1000"
        assert fields["amount"] == "1000"
        assert fields["tax_amount"] == "0"
        assert fields["product_code"] == "EPAYTEST"
        assert fields["transaction_uuid"] == "AUTEST0004"
        assert fields["signed_field_names"] == "total_amount,transaction_uuid,product_code"

    def test_signature_covers_signed_fields(self, gateway):
        fields = gateway.build_payment_request(_order()).fields
        expected = gateway.sign("total_amount=1000,transaction_uuid=AUTEST0004,product_code=EPAYTEST")
        assert fields["signature"] == expected

    def test_as_dict(self, gateway):
        data = gateway.build_payment_request(_order()).as_dict()
        assert data["payment_url"] == GatewaySettings().payment_url
        assert data["signature"]


class TestCallbacks:
    def _payload(self, gateway):
        payload = {
            "transaction_code": "000AWEO",
            "status": "COMPLETE",
            "total_amount": "1000.0",
            "transaction_uuid": "AUTEST0004",
            "product_code": "EPAYTEST",
            "signed_field_names": "transaction_code,status,total_amount,transaction_uuid,product_code,signed_field_names",
        }
        payload["signature"] = gateway.sign(signing_message(payload, payload["signed_field_names"].split(",")))
        return payload

    def test_decode_and_verify(self, gateway):
        payload = gateway.decode_callback(_encode(self._payload(gateway)))
        assert payload["transaction_uuid"] == "AUTEST0004"
        assert gateway.verify_callback(payload)

    def test_spaces_and_missing_padding_are_tolerated(self, gateway):
        data = _encode(self._payload(gateway)).rstrip("=").replace("+", " ")
        assert gateway.verify_callback(gateway.decode_callback(data))

    def test_tampered_amount_fails(self, gateway):
        payload = self._payload(gateway)
        payload["total_amount"] = "1.0"
        assert not gateway.verify_callback(payload)

    def test_wrong_key_fails(self, gateway):
        payload = self._payload(EsewaGateway(GatewaySettings(secret_key="other")))
        assert not gateway.verify_callback(payload)

    def test_missing_signature_fails(self, gateway):
        payload = self._payload(gateway)
        del payload["signature"]
        assert not gateway.verify_callback(payload)

    def test_missing_data(self, gateway):
        with pytest.raises(PaymentVerificationError) as exc:
            gateway.decode_callback(None)
        assert exc.value.code == "missing_data"

    def test_garbage(self, gateway):
        with pytest.raises(PaymentVerificationError) as exc:
            gateway.decode_callback("%%%not-base64%%%")
        assert exc.value.code == "invalid_response"

    def test_non_object_payload(self, gateway):
        with pytest.raises(PaymentVerificationError):
            gateway.decode_callback(_encode([1, 2]))
