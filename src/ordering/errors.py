"""Domain errors that carry more meaning than a plain ValidationError.

Missing objects are reported with protean's ObjectNotFoundError and invalid
input with its ValidationError; the API layer maps all of them to HTTP codes.
"""

from protean.exceptions import ValidationError


class InsufficientStockError(ValidationError):
    """Requested quantity exceeds what the catalogue has in stock."""

    def __init__(self, product_name: str, available: int, requested: int) -> None:
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            {
                "stock": [
                    f"Insufficient stock for {product_name}. Available: {available}, Requested: {requested}"
                ]
            }
        )


class PaymentVerificationError(Exception):
    """A gateway callback could not be trusted or applied.

    `code` is the coarse reason forwarded to the storefront on redirect.
    """

    def __init__(self, code: str, detail: str | None = None) -> None:
        self.code = code
        self.detail = detail
        super().__init__(detail or code)
