"""Pydantic request/response schemas for the storefront API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

PaymentMethodLiteral = Literal["cod", "esewa"]
OrderStatusLiteral = Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

_ADDRESS_EXAMPLE = {
    "full_name": "Sita Sharma",
    "phone": "9800000000",
    "address_line1": "Jhamsikhel Road 12",
    "city": "Lalitpur",
    "state": "Bagmati",
    "postal_code": "44700",
    "country": "Nepal",
}


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    full_name: str = Field(..., max_length=100)
    phone: str = Field(..., max_length=20)
    address_line1: str = Field(..., max_length=255)
    address_line2: str | None = Field(None, max_length=255)
    city: str = Field(..., max_length=100)
    state: str | None = Field(None, max_length=100)
    postal_code: str = Field(..., max_length=20)
    country: str = Field("Nepal", max_length=100)


class VariantSchema(BaseModel):
    color: str | None = None
    size: str | None = None
    material: str | None = None


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class StatusResponse(BaseModel):
    status: str = "ok"
    message: str | None = None


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutItemSchema(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)
    variant: VariantSchema | None = None


class GuestCheckoutRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "email": "sita@example.com",
                    "first_name": "Sita",
                    "last_name": "Sharma",
                    "phone": "9800000000",
                    "items": [{"product_id": "prod-001", "quantity": 2, "variant": {"color": "Teal"}}],
                    "shipping_address": _ADDRESS_EXAMPLE,
                    "use_same_address": True,
                    "payment_method": "cod",
                    "discount_code": "SAVE10",
                }
            ]
        }
    }

    email: str = Field(..., max_length=254, pattern=_EMAIL_PATTERN)
    first_name: str = Field(..., max_length=50)
    last_name: str = Field(..., max_length=50)
    phone: str = Field(..., max_length=20)
    items: list[CheckoutItemSchema] = Field(..., min_length=1)
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    use_same_address: bool = True
    payment_method: PaymentMethodLiteral
    discount_code: str | None = Field(None, max_length=20)
    customer_note: str | None = Field(None, max_length=500)


class CustomerCheckoutRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address_id": "addr-001",
                    "use_same_address": True,
                    "payment_method": "esewa",
                }
            ]
        }
    }

    shipping_address_id: str | None = None
    shipping_address: AddressSchema | None = None
    billing_address_id: str | None = None
    billing_address: AddressSchema | None = None
    use_same_address: bool = True
    payment_method: PaymentMethodLiteral
    discount_code: str | None = Field(None, max_length=20)
    customer_note: str | None = Field(None, max_length=500)


class DiscountRejectionResponse(BaseModel):
    code: str
    reason: str | None = None
    message: str


class CheckoutResponse(BaseModel):
    order_id: str
    tracking_code: str
    order_status: str
    payment_method: str
    total: float
    email: str
    email_sent: bool = False
    discount_rejection: DiscountRejectionResponse | None = None
    payment_request: dict[str, str] | None = None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class TrackOrderRequest(BaseModel):
    tracking_code: str = Field(..., max_length=32)
    email: str = Field(..., max_length=254)


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatusLiteral
    note: str | None = Field(None, max_length=500)
    admin_note: str | None = None


class OrderItemResponse(BaseModel):
    product_id: str
    name: str
    unit_price: float
    quantity: int
    variant: dict[str, str] = Field(default_factory=dict)
    image: str | None = None
    line_number: int


class StatusHistoryResponse(BaseModel):
    status: str
    note: str | None = None
    timestamp: datetime


class PricingResponse(BaseModel):
    subtotal: float
    discount_amount: float
    shipping_cost: float
    tax: float
    total: float


class AppliedDiscountResponse(BaseModel):
    code: str
    percentage: float


class PaymentDetailsResponse(BaseModel):
    transaction_id: str | None = None
    reference_id: str | None = None
    paid_at: datetime | None = None


class GuestContactResponse(BaseModel):
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    tracking_code: str
    customer_id: str | None = None
    guest: GuestContactResponse | None = None
    contact_email: str
    items: list[OrderItemResponse]
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    pricing: PricingResponse
    applied_discount: AppliedDiscountResponse | None = None
    payment_method: str
    payment_status: str
    payment_details: PaymentDetailsResponse | None = None
    order_status: str
    status_history: list[StatusHistoryResponse]
    customer_note: str | None = None
    admin_note: str | None = None
    ordered_at: datetime | None = None
    confirmed_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    pagination: PaginationResponse


# ---------------------------------------------------------------------------
# Discounts
# ---------------------------------------------------------------------------
class CreateDiscountRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "code": "SAVE10",
                    "description": "10% off orders over Rs. 500",
                    "percentage": 10,
                    "minimum_order_amount": 500,
                    "max_usage_limit": 100,
                    "expiry_date": "2030-12-31T23:59:59Z",
                }
            ]
        }
    }

    code: str = Field(..., min_length=1, max_length=20)
    description: str | None = Field(None, max_length=200)
    percentage: float = Field(..., ge=1, le=100)
    minimum_order_amount: float = Field(0.0, ge=0)
    max_usage_limit: int | None = Field(None, ge=1)
    expiry_date: datetime
    is_active: bool = True


class UpdateDiscountRequest(BaseModel):
    code: str | None = Field(None, min_length=1, max_length=20)
    description: str | None = Field(None, max_length=200)
    percentage: float | None = Field(None, ge=1, le=100)
    minimum_order_amount: float | None = Field(None, ge=0)
    max_usage_limit: int | None = Field(None, ge=1)
    clear_usage_limit: bool = False
    expiry_date: datetime | None = None
    is_active: bool | None = None


class DiscountResponse(BaseModel):
    discount_id: str
    code: str
    description: str | None = None
    percentage: float
    minimum_order_amount: float
    max_usage_limit: int | None = None
    current_usage_count: int
    expiry_date: datetime
    is_active: bool
    is_expired: bool
    created_by: str | None = None


class DiscountListResponse(BaseModel):
    discounts: list[DiscountResponse]
    pagination: PaginationResponse


class ApplyDiscountRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)


class DiscountCheckResponse(BaseModel):
    valid: bool
    message: str
    reason: str | None = None
    code: str
    percentage: float | None = None
    minimum_order_amount: float | None = None
    subtotal: float
    discount_amount: float
    total: float


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)
    variant: VariantSchema | None = None


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(..., ge=1)


class CartLineResponse(BaseModel):
    item_id: str
    product_id: str
    name: str
    unit_price: float
    quantity: int
    variant: dict[str, str] = Field(default_factory=dict)
    image: str | None = None
    stock: int
    line_total: float


class CartResponse(BaseModel):
    cart_id: str | None = None
    items: list[CartLineResponse]
    total_items: int
    subtotal: float


# ---------------------------------------------------------------------------
# Address book
# ---------------------------------------------------------------------------
class AddAddressRequest(AddressSchema):
    label: Literal["home", "work", "family", "other"] = "home"
    is_default: bool = False


class SavedAddressResponse(AddressSchema):
    address_id: str
    label: str
    is_default: bool


class AddressListResponse(BaseModel):
    addresses: list[SavedAddressResponse]


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
class ProductImageSchema(BaseModel):
    url: str = Field(..., max_length=500)
    is_primary: bool = False


class CreateProductRequest(BaseModel):
    name: str = Field(..., max_length=255)
    description: str | None = None
    price: float = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    images: list[ProductImageSchema] = Field(default_factory=list)
    is_active: bool = True


class AdjustStockRequest(BaseModel):
    delta: int
    reason: str | None = Field(None, max_length=100)


class ChangePriceRequest(BaseModel):
    price: float = Field(..., ge=0)


class ProductResponse(BaseModel):
    product_id: str
    name: str
    description: str | None = None
    price: float
    stock: int
    images: list[ProductImageSchema] = Field(default_factory=list)
    is_active: bool


class IdResponse(BaseModel):
    id: str
