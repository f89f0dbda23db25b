"""Runtime settings for the storefront, read once from the environment.

Provides get_settings() / configure_settings() / reset_settings() so tests
can install explicit settings without touching os.environ.
"""

import os
from dataclasses import dataclass, field

# eSewa ePay v2 merchant credentials published for the sandbox.
SANDBOX_MERCHANT_ID = "EPAYTEST"
SANDBOX_SECRET_KEY = "8gBm/:&EnhH.1/q"

_GATEWAY_ENDPOINTS = {
    "sandbox": {
        "payment_url": "https://rc-epay.esewa.com.np/api/epay/main/v2/form",
        "status_url": "https://rc.esewa.com.np/api/epay/transaction/status/",
    },
    "production": {
        "payment_url": "https://epay.esewa.com.np/api/epay/main/v2/form",
        "status_url": "https://esewa.com.np/api/epay/transaction/status/",
    },
}


class ConfigurationError(Exception):
    """Raised when the environment does not describe a usable configuration."""


def _flag(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class GatewaySettings:
    """Credentials and endpoints of the payment gateway."""

    merchant_id: str = SANDBOX_MERCHANT_ID
    secret_key: str = SANDBOX_SECRET_KEY
    payment_url: str = _GATEWAY_ENDPOINTS["sandbox"]["payment_url"]
    status_url: str = _GATEWAY_ENDPOINTS["sandbox"]["status_url"]
    success_callback_url: str = "http://localhost:8000/api/v1/orders/esewa/success"
    failure_callback_url: str = "http://localhost:8000/api/v1/orders/esewa/failure"


@dataclass(frozen=True)
class StoreSettings:
    environment: str = "development"
    frontend_url: str = "http://localhost:5173"
    backend_url: str = "http://localhost:8000"
    tracking_code_prefix: str = "AU"
    strict_status_transitions: bool = False
    gateway: GatewaySettings = field(default_factory=GatewaySettings)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls, environ=None) -> "StoreSettings":
        """Build settings from environment variables.

        Production switches the gateway to its live endpoints and refuses to
        start without an explicit merchant secret.
        """
        env = os.environ if environ is None else environ

        environment = (env.get("PROTEAN_ENV") or "development").lower()
        frontend_url = (env.get("FRONTEND_URL") or "http://localhost:5173").rstrip("/")
        backend_url = (env.get("BACKEND_URL") or "http://localhost:8000").rstrip("/")

        endpoints = _GATEWAY_ENDPOINTS["production" if environment == "production" else "sandbox"]
        secret_key = env.get("ESEWA_SECRET_KEY")
        if environment == "production" and not secret_key:
            raise ConfigurationError("ESEWA_SECRET_KEY must be set in production")

        gateway = GatewaySettings(
            merchant_id=env.get("ESEWA_MERCHANT_ID") or SANDBOX_MERCHANT_ID,
            secret_key=secret_key or SANDBOX_SECRET_KEY,
            payment_url=endpoints["payment_url"],
            status_url=endpoints["status_url"],
            success_callback_url=f"{backend_url}/api/v1/orders/esewa/success",
            failure_callback_url=f"{backend_url}/api/v1/orders/esewa/failure",
        )

        return cls(
            environment=environment,
            frontend_url=frontend_url,
            backend_url=backend_url,
            tracking_code_prefix=(env.get("ORDER_TRACKING_PREFIX") or "AU").upper(),
            strict_status_transitions=_flag(env.get("STRICT_ORDER_TRANSITIONS")),
            gateway=gateway,
        )


_current_settings: StoreSettings | None = None


def get_settings() -> StoreSettings:
    """Return the active settings, loading them from the environment on first use."""
    global _current_settings
    if _current_settings is None:
        _current_settings = StoreSettings.from_env()
    return _current_settings


def configure_settings(settings: StoreSettings) -> None:
    """Override the active settings (useful for tests)."""
    global _current_settings
    _current_settings = settings


def reset_settings() -> None:
    global _current_settings
    _current_settings = None
