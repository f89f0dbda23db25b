"""Order tracking codes: short, uppercase and safe to read out over the phone.

Format: <prefix><base-36 millisecond timestamp><4 random base-36 characters>,
e.g. AUMC3K9Z1QX7F2. Codes are checked against stored orders before use.
"""

import secrets
import string
import time

from protean.utils.globals import current_domain

from ordering.config import get_settings
from ordering.order.order import Order

_ALPHABET = string.digits + string.ascii_uppercase
_MAX_ATTEMPTS = 5


def to_base36(number: int) -> str:
    if number < 0:
        raise ValueError("Only non-negative numbers have a base-36 form")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_tracking_code(prefix: str | None = None, now_ms: int | None = None) -> str:
    prefix = (prefix if prefix is not None else get_settings().tracking_code_prefix).upper()
    timestamp = to_base36(now_ms if now_ms is not None else time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(4))
    return f"{prefix}{timestamp}{suffix}"


def new_tracking_code() -> str:
    """A tracking code no stored order uses yet."""
    repo = current_domain.repository_for(Order)
    for _ in range(_MAX_ATTEMPTS):
        code = generate_tracking_code()
        if not repo.tracking_code_taken(code):
            return code
    raise RuntimeError("Could not generate a unique tracking code")
