"""FastAPI routes for the storefront: checkout, orders, payments, discounts,
carts, saved addresses and the product catalogue."""

import json

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.addresses.address import SavedAddress
from ordering.addresses.management import AddAddress, RemoveAddress
from ordering.api.auth import Principal, current_principal, require_admin
from ordering.api.schemas import (
    AddAddressRequest,
    AddressListResponse,
    AddToCartRequest,
    AdjustStockRequest,
    ApplyDiscountRequest,
    CartResponse,
    ChangePriceRequest,
    CheckoutResponse,
    CreateDiscountRequest,
    CreateProductRequest,
    CustomerCheckoutRequest,
    DiscountCheckResponse,
    DiscountListResponse,
    DiscountResponse,
    GuestCheckoutRequest,
    IdResponse,
    OrderListResponse,
    OrderResponse,
    ProductResponse,
    SavedAddressResponse,
    StatusResponse,
    TrackOrderRequest,
    UpdateCartItemRequest,
    UpdateDiscountRequest,
    UpdateOrderStatusRequest,
)
from ordering.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem
from ordering.cart.view import view_cart
from ordering.catalogue.management import AddProduct, AdjustStock, ChangePrice
from ordering.catalogue.product import Product
from ordering.discount.discount import Discount
from ordering.discount.lookup import check_code, list_discounts
from ordering.discount.management import CreateDiscount, DeleteDiscount, UpdateDiscount
from ordering.order.checkout import PlaceCustomerOrder, PlaceGuestOrder, place_order
from ordering.order.queries import (
    get_customer_order,
    get_order,
    list_customer_orders,
    list_orders,
    track_order,
)
from ordering.order.status_update import UpdateOrderStatus
from ordering.payment.callbacks import process_failure_callback, process_success_callback
from ordering.shared.pagination import Page


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------
def _pagination(page: Page) -> dict:
    return {"page": page.page, "limit": page.limit, "total": page.total, "pages": page.pages}


def _value(vo) -> dict | None:
    return vo.to_dict() if vo is not None else None


def _order_response(order, include_admin_note: bool = False) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        tracking_code=order.tracking_code,
        customer_id=str(order.customer_id) if order.customer_id else None,
        guest=_value(order.guest),
        contact_email=order.contact_email,
        items=[
            {
                "product_id": str(item.product_id),
                "name": item.name,
                "unit_price": item.unit_price,
                "quantity": item.quantity,
                "variant": item.variant_dict,
                "image": item.image,
                "line_number": item.line_number,
            }
            for item in sorted(order.items, key=lambda item: item.line_number)
        ],
        shipping_address=_value(order.shipping_address),
        billing_address=_value(order.billing_address),
        pricing=_value(order.pricing),
        applied_discount=_value(order.applied_discount),
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        payment_details=_value(order.payment_details),
        order_status=order.order_status,
        status_history=[
            {"status": entry.status, "note": entry.note, "timestamp": entry.timestamp} for entry in order.history()
        ],
        customer_note=order.customer_note,
        admin_note=order.admin_note if include_admin_note else None,
        ordered_at=order.ordered_at,
        confirmed_at=order.confirmed_at,
        shipped_at=order.shipped_at,
        delivered_at=order.delivered_at,
        cancelled_at=order.cancelled_at,
    )


def _discount_response(discount) -> DiscountResponse:
    return DiscountResponse(
        discount_id=str(discount.id),
        code=discount.code,
        description=discount.description,
        percentage=discount.percentage,
        minimum_order_amount=discount.minimum_order_amount,
        max_usage_limit=discount.max_usage_limit,
        current_usage_count=discount.current_usage_count,
        expiry_date=discount.expiry_date,
        is_active=discount.is_active,
        is_expired=discount.is_expired(),
        created_by=str(discount.created_by) if discount.created_by else None,
    )


def _discount_check_response(quote) -> DiscountCheckResponse:
    return DiscountCheckResponse(
        valid=quote.valid,
        message=quote.validation.message,
        reason=quote.validation.reason,
        code=quote.code,
        percentage=quote.discount.percentage if quote.valid else None,
        minimum_order_amount=quote.discount.minimum_order_amount if quote.discount is not None else None,
        subtotal=quote.subtotal,
        discount_amount=quote.discount_amount,
        total=quote.total,
    )


def _cart_response(customer_id) -> CartResponse:
    cart = view_cart(customer_id)
    return CartResponse(
        cart_id=cart.cart_id,
        items=[
            {
                "item_id": line.item_id,
                "product_id": line.product_id,
                "name": line.name,
                "unit_price": line.unit_price,
                "quantity": line.quantity,
                "variant": line.variant,
                "image": line.image,
                "stock": line.stock,
                "line_total": line.line_total,
            }
            for line in cart.lines
        ],
        total_items=cart.total_items,
        subtotal=cart.subtotal,
    )


def _address_response(address) -> SavedAddressResponse:
    return SavedAddressResponse(
        address_id=str(address.id),
        label=address.label,
        is_default=address.is_default,
        **address.snapshot(),
    )


def _product_response(product) -> ProductResponse:
    return ProductResponse(
        product_id=str(product.id),
        name=product.name,
        description=product.description,
        price=product.price,
        stock=product.stock,
        images=[{"url": image.url, "is_primary": image.is_primary} for image in product.images],
        is_active=product.is_active,
    )


def _json(model) -> str | None:
    return json.dumps(model.model_dump(exclude_none=True)) if model is not None else None


# ---------------------------------------------------------------------------
# Payment callback Router
# ---------------------------------------------------------------------------
# Included before order_router so /orders/esewa/* is not read as an order id.
payment_router = APIRouter(prefix="/orders/esewa", tags=["payments"])


@payment_router.get("/success")
async def esewa_success(data: str | None = None) -> RedirectResponse:
    return RedirectResponse(process_success_callback(data), status_code=302)


@payment_router.get("/failure")
async def esewa_failure(data: str | None = None) -> RedirectResponse:
    return RedirectResponse(process_failure_callback(data), status_code=302)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("/guest-checkout", status_code=201, response_model=CheckoutResponse)
async def guest_checkout(body: GuestCheckoutRequest) -> CheckoutResponse:
    command = PlaceGuestOrder(
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        items=json.dumps([item.model_dump(exclude_none=True) for item in body.items]),
        shipping_address=_json(body.shipping_address),
        billing_address=_json(body.billing_address),
        use_same_address=body.use_same_address,
        payment_method=body.payment_method,
        discount_code=body.discount_code,
        customer_note=body.customer_note,
    )
    return CheckoutResponse(**place_order(command))


@order_router.post("/checkout", status_code=201, response_model=CheckoutResponse)
async def customer_checkout(
    body: CustomerCheckoutRequest,
    principal: Principal = Depends(current_principal),
) -> CheckoutResponse:
    if not principal.email:
        raise ValidationError({"email": ["A contact email is required"]})
    command = PlaceCustomerOrder(
        customer_id=principal.customer_id,
        email=principal.email,
        first_name=principal.first_name,
        last_name=principal.last_name,
        shipping_address_id=body.shipping_address_id,
        shipping_address=_json(body.shipping_address),
        billing_address_id=body.billing_address_id,
        billing_address=_json(body.billing_address),
        use_same_address=body.use_same_address,
        payment_method=body.payment_method,
        discount_code=body.discount_code,
        customer_note=body.customer_note,
    )
    return CheckoutResponse(**place_order(command))


@order_router.post("/track", response_model=OrderResponse)
async def track(body: TrackOrderRequest) -> OrderResponse:
    return _order_response(track_order(body.tracking_code, body.email))


@order_router.get("/my-orders", response_model=OrderListResponse)
async def my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: str | None = None,
    principal: Principal = Depends(current_principal),
) -> OrderListResponse:
    result = list_customer_orders(principal.customer_id, page=page, limit=limit, status=status)
    return OrderListResponse(
        orders=[_order_response(order) for order in result.items],
        pagination=_pagination(result),
    )


@order_router.get("", response_model=OrderListResponse)
async def all_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: str | None = None,
    payment_status: str | None = None,
    admin: Principal = Depends(require_admin),
) -> OrderListResponse:
    result = list_orders(page=page, limit=limit, status=status, payment_status=payment_status)
    return OrderListResponse(
        orders=[_order_response(order, include_admin_note=True) for order in result.items],
        pagination=_pagination(result),
    )


@order_router.get("/admin/{order_id}", response_model=OrderResponse)
async def admin_order_detail(order_id: str, admin: Principal = Depends(require_admin)) -> OrderResponse:
    return _order_response(get_order(order_id), include_admin_note=True)


@order_router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    admin: Principal = Depends(require_admin),
) -> OrderResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        note=body.note,
        admin_note=body.admin_note,
    )
    current_domain.process(command, asynchronous=False)
    return _order_response(get_order(order_id), include_admin_note=True)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def my_order_detail(order_id: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    return _order_response(get_customer_order(principal.customer_id, order_id))


# ---------------------------------------------------------------------------
# Discount Router
# ---------------------------------------------------------------------------
discount_router = APIRouter(prefix="/discounts", tags=["discounts"])


@discount_router.get("/validate/{code}", response_model=DiscountCheckResponse)
async def validate_discount(code: str, principal: Principal = Depends(current_principal)) -> DiscountCheckResponse:
    """Check a code against the caller's current cart. Rejections are not errors."""
    return _discount_check_response(check_code(code, view_cart(principal.customer_id).subtotal))


@discount_router.post("/apply", response_model=DiscountCheckResponse)
async def apply_discount(
    body: ApplyDiscountRequest,
    principal: Principal = Depends(current_principal),
) -> DiscountCheckResponse:
    cart = view_cart(principal.customer_id)
    if not cart.lines:
        raise ValidationError({"cart": ["Your cart is empty"]})
    return _discount_check_response(check_code(body.code, cart.subtotal))


@discount_router.get("", response_model=DiscountListResponse)
async def all_discounts(
    status: str | None = Query(None, pattern="^(active|expired|inactive)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Principal = Depends(require_admin),
) -> DiscountListResponse:
    result = list_discounts(status=status, page=page, limit=limit)
    return DiscountListResponse(
        discounts=[_discount_response(discount) for discount in result.items],
        pagination=_pagination(result),
    )


@discount_router.post("", status_code=201, response_model=DiscountResponse)
async def create_discount(
    body: CreateDiscountRequest,
    admin: Principal = Depends(require_admin),
) -> DiscountResponse:
    command = CreateDiscount(created_by=admin.customer_id, **body.model_dump())
    discount_id = current_domain.process(command, asynchronous=False)
    return _discount_response(current_domain.repository_for(Discount).get(discount_id))


@discount_router.get("/{discount_id}", response_model=DiscountResponse)
async def discount_detail(discount_id: str, admin: Principal = Depends(require_admin)) -> DiscountResponse:
    return _discount_response(current_domain.repository_for(Discount).get(discount_id))


@discount_router.put("/{discount_id}", response_model=DiscountResponse)
async def update_discount(
    discount_id: str,
    body: UpdateDiscountRequest,
    admin: Principal = Depends(require_admin),
) -> DiscountResponse:
    command = UpdateDiscount(discount_id=discount_id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return _discount_response(current_domain.repository_for(Discount).get(discount_id))


@discount_router.delete("/{discount_id}", response_model=StatusResponse)
async def delete_discount(discount_id: str, admin: Principal = Depends(require_admin)) -> StatusResponse:
    current_domain.process(DeleteDiscount(discount_id=discount_id), asynchronous=False)
    return StatusResponse(message="Discount deleted")


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(principal: Principal = Depends(current_principal)) -> CartResponse:
    return _cart_response(principal.customer_id)


@cart_router.post("", response_model=CartResponse)
async def add_to_cart(body: AddToCartRequest, principal: Principal = Depends(current_principal)) -> CartResponse:
    command = AddToCart(
        customer_id=principal.customer_id,
        product_id=body.product_id,
        quantity=body.quantity,
        variant=_json(body.variant),
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(principal.customer_id)


@cart_router.patch("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: str,
    body: UpdateCartItemRequest,
    principal: Principal = Depends(current_principal),
) -> CartResponse:
    command = UpdateCartItem(customer_id=principal.customer_id, item_id=item_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return _cart_response(principal.customer_id)


@cart_router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(item_id: str, principal: Principal = Depends(current_principal)) -> CartResponse:
    current_domain.process(RemoveFromCart(customer_id=principal.customer_id, item_id=item_id), asynchronous=False)
    return _cart_response(principal.customer_id)


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(principal: Principal = Depends(current_principal)) -> CartResponse:
    current_domain.process(ClearCart(customer_id=principal.customer_id), asynchronous=False)
    return _cart_response(principal.customer_id)


# ---------------------------------------------------------------------------
# Address Router
# ---------------------------------------------------------------------------
address_router = APIRouter(prefix="/addresses", tags=["addresses"])


@address_router.get("", response_model=AddressListResponse)
async def my_addresses(principal: Principal = Depends(current_principal)) -> AddressListResponse:
    addresses = current_domain.repository_for(SavedAddress).for_customer(principal.customer_id)
    return AddressListResponse(addresses=[_address_response(address) for address in addresses])


@address_router.post("", status_code=201, response_model=SavedAddressResponse)
async def add_address(
    body: AddAddressRequest,
    principal: Principal = Depends(current_principal),
) -> SavedAddressResponse:
    command = AddAddress(customer_id=principal.customer_id, **body.model_dump(exclude_none=True))
    address_id = current_domain.process(command, asynchronous=False)
    return _address_response(current_domain.repository_for(SavedAddress).get(address_id))


@address_router.delete("/{address_id}", response_model=StatusResponse)
async def remove_address(address_id: str, principal: Principal = Depends(current_principal)) -> StatusResponse:
    command = RemoveAddress(customer_id=principal.customer_id, address_id=address_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(message="Address removed")


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=IdResponse)
async def add_product(body: CreateProductRequest, admin: Principal = Depends(require_admin)) -> IdResponse:
    command = AddProduct(
        name=body.name,
        description=body.description,
        price=body.price,
        stock=body.stock,
        images=json.dumps([image.model_dump() for image in body.images]),
        is_active=body.is_active,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@product_router.get("/{product_id}", response_model=ProductResponse)
async def product_detail(product_id: str) -> ProductResponse:
    return _product_response(current_domain.repository_for(Product).get(product_id))


@product_router.post("/{product_id}/stock", response_model=ProductResponse)
async def adjust_stock(
    product_id: str,
    body: AdjustStockRequest,
    admin: Principal = Depends(require_admin),
) -> ProductResponse:
    command = AdjustStock(product_id=product_id, delta=body.delta, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return _product_response(current_domain.repository_for(Product).get(product_id))


@product_router.put("/{product_id}/price", response_model=ProductResponse)
async def change_price(
    product_id: str,
    body: ChangePriceRequest,
    admin: Principal = Depends(require_admin),
) -> ProductResponse:
    current_domain.process(ChangePrice(product_id=product_id, new_price=body.price), asynchronous=False)
    return _product_response(current_domain.repository_for(Product).get(product_id))
