import pytest
from ordering.config import StoreSettings, configure_settings, reset_settings
from ordering.notification import reset_mailer, set_mailer
from ordering.notification.fake_email import FakeEmailAdapter
from ordering.payment.gateway import reset_gateway
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(scope="session", autouse=True)
def setup_db(ordering_bed):
    from ordering.domain import ordering
    from ordering.utils.db import drop_db, setup_db

    setup_db(ordering)

    yield

    drop_db(ordering)


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def settings():
    """Sandbox gateway credentials and local URLs, independent of os.environ."""
    store_settings = StoreSettings()
    configure_settings(store_settings)
    reset_gateway()
    yield store_settings
    reset_settings()
    reset_gateway()


@pytest.fixture(autouse=True)
def mailer():
    fake = FakeEmailAdapter()
    set_mailer(fake)
    yield fake
    reset_mailer()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_product():
    from ordering.catalogue.product import Product
    from protean import current_domain

    def _make(name="Teal Kurta", price=1000.0, stock=10, images=None, **kwargs):
        product = Product.create(
            name=name,
            price=price,
            stock=stock,
            images=images if images is not None else [{"url": f"https://cdn.example.com/{name}.jpg"}],
            **kwargs,
        )
        current_domain.repository_for(Product).add(product)
        return current_domain.repository_for(Product).get(product.id)

    return _make


@pytest.fixture()
def make_discount():
    from datetime import UTC, datetime, timedelta

    from ordering.discount.discount import Discount
    from protean import current_domain

    def _make(code="SAVE10", percentage=10.0, minimum_order_amount=0.0, expiry_date=None, **kwargs):
        discount = Discount.create(
            code=code,
            percentage=percentage,
            minimum_order_amount=minimum_order_amount,
            expiry_date=expiry_date or datetime.now(UTC) + timedelta(days=30),
            **kwargs,
        )
        current_domain.repository_for(Discount).add(discount)
        return current_domain.repository_for(Discount).get(discount.id)

    return _make


@pytest.fixture()
def shipping_address():
    return {
        "full_name": "Sita Sharma",
        "phone": "9800000000",
        "address_line1": "Jhamsikhel Road 12",
        "city": "Lalitpur",
        "state": "Bagmati",
        "postal_code": "44700",
        "country": "Nepal",
    }


@pytest.fixture()
def esewa_callback(settings):
    """Encode a callback payload the way eSewa does, signing it with the sandbox key."""
    import base64
    import json

    from ordering.payment.gateway.esewa_adapter import EsewaGateway, signing_message

    def _encode(tracking_code, total_amount, status="COMPLETE", transaction_code="000AWEO", tamper=None):
        payload = {
            "transaction_code": transaction_code,
            "status": status,
            "total_amount": total_amount,
            "transaction_uuid": tracking_code,
            "product_code": settings.gateway.merchant_id,
            "signed_field_names": "transaction_code,status,total_amount,transaction_uuid,product_code,signed_field_names",
        }
        gateway = EsewaGateway(settings.gateway)
        payload["signature"] = gateway.sign(signing_message(payload, payload["signed_field_names"].split(",")))
        if tamper:
            payload.update(tamper)
        return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")

    return _encode
