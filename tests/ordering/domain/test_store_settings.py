"""Tests for settings read from the environment."""

import pytest
from ordering.config import SANDBOX_MERCHANT_ID, ConfigurationError, StoreSettings


class TestFromEnv:
    def test_defaults(self):
        settings = StoreSettings.from_env({})
        assert settings.environment == "development"
        assert settings.frontend_url == "http://localhost:5173"
        assert settings.gateway.merchant_id == SANDBOX_MERCHANT_ID
        assert "rc-epay.esewa.com.np" in settings.gateway.payment_url
        assert settings.strict_status_transitions is False

    def test_callback_urls_follow_backend(self):
        settings = StoreSettings.from_env({"BACKEND_URL": "https://api.shop.np/"})
        assert settings.gateway.success_callback_url == "https://api.shop.np/api/v1/orders/esewa/success"
        assert settings.gateway.failure_callback_url == "https://api.shop.np/api/v1/orders/esewa/failure"

    def test_production_requires_secret(self):
        with pytest.raises(ConfigurationError):
            StoreSettings.from_env({"PROTEAN_ENV": "production"})

    def test_production_uses_live_endpoints(self):
        settings = StoreSettings.from_env(
            {"PROTEAN_ENV": "production", "ESEWA_SECRET_KEY": "live-secret", "ESEWA_MERCHANT_ID": "SHOP"}
        )
        assert settings.is_production
        assert settings.gateway.payment_url.startswith("https://epay.esewa.com.np")
        assert settings.gateway.merchant_id == "SHOP"

    def test_flags_and_prefix(self):
        settings = StoreSettings.from_env({"STRICT_ORDER_TRANSITIONS": "true", "ORDER_TRACKING_PREFIX": "np"})
        assert settings.strict_status_transitions is True
        assert settings.tracking_code_prefix == "NP"
