"""Request principal.

Authentication happens upstream; the gateway in front of this service
forwards the authenticated customer as X-Customer-* headers.
"""

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Principal:
    customer_id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def current_principal(
    x_customer_id: str | None = Header(default=None),
    x_customer_email: str | None = Header(default=None),
    x_customer_first_name: str | None = Header(default=None),
    x_customer_last_name: str | None = Header(default=None),
    x_customer_phone: str | None = Header(default=None),
    x_customer_role: str | None = Header(default=None),
) -> Principal:
    if not x_customer_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return Principal(
        customer_id=x_customer_id,
        email=x_customer_email.strip().lower() if x_customer_email else None,
        first_name=x_customer_first_name,
        last_name=x_customer_last_name,
        phone=x_customer_phone,
        role=(x_customer_role or "customer").lower(),
    )


def require_admin(principal: Principal = Depends(current_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return principal
