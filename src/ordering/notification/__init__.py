"""Mailer registry.

Provides get_mailer() / set_mailer() / reset_mailer(). The fake adapter is the
default; a real delivery adapter is installed at application start-up.
"""

from ordering.notification.email_port import EmailPort
from ordering.notification.fake_email import FakeEmailAdapter

_current_mailer: EmailPort | None = None


def get_mailer() -> EmailPort:
    global _current_mailer
    if _current_mailer is None:
        _current_mailer = FakeEmailAdapter()
    return _current_mailer


def set_mailer(mailer: EmailPort) -> None:
    """Override the active mailer (useful for tests)."""
    global _current_mailer
    _current_mailer = mailer


def reset_mailer() -> None:
    global _current_mailer
    _current_mailer = None
