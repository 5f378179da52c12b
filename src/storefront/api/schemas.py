"""Pydantic request/response schemas for the Storefront API.

These are the external contracts; the cart and checkout models stay internal.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from storefront.cart.cart import Cart, OwnerKind
from storefront.checkout.order import OrderConfirmation
from storefront.checkout.session import CheckoutSession
from storefront.pricing.models import PricingBreakdown


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)
    variant: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "quantity": 2,
                    "variant": "blue",
                }
            ]
        }
    }


class UpdateCartQuantityRequest(BaseModel):
    # Zero removes the line.
    new_quantity: int = Field(ge=0)


class MergeCartsRequest(BaseModel):
    guest_session_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Checkout Request Schemas
# ---------------------------------------------------------------------------
class BeginCheckoutRequest(BaseModel):
    owner_kind: OwnerKind
    owner_id: str = Field(min_length=1)


class AddressSchema(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class BillingAddressRequest(AddressSchema):
    same_as_shipping: bool | None = None


class ShippingMethodRequest(BaseModel):
    shipping_method: str


class PaymentRequest(BaseModel):
    payment_method: str | None = None
    cardholder_name: str | None = None
    card_number: str | None = None
    expiry: str | None = None
    cvv: str | None = None

    def card_details(self) -> dict:
        return self.model_dump(exclude={"payment_method"}, exclude_unset=True)


class CouponRequest(BaseModel):
    code: str = Field(min_length=1)


class GoToStepRequest(BaseModel):
    step: int


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    error: str
    messages: dict[str, list[str]]


class CartItemResponse(BaseModel):
    id: str
    product_id: str
    title: str
    variant: str | None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class CartResponse(BaseModel):
    key: str
    owner_kind: OwnerKind
    owner_id: str
    items: list[CartItemResponse]
    total_items: int
    total_price: Decimal

    @classmethod
    def from_cart(cls, cart: Cart) -> "CartResponse":
        return cls(
            key=cart.key,
            owner_kind=cart.owner.kind,
            owner_id=cart.owner.identity,
            items=[
                CartItemResponse(
                    id=item.id,
                    product_id=item.product_id,
                    title=item.title,
                    variant=item.variant,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    line_total=item.line_total,
                )
                for item in cart.items
            ],
            total_items=cart.total_items(),
            total_price=cart.total_price(),
        )


class CheckoutSessionResponse(BaseModel):
    session_id: str
    cart_key: str
    step: int
    step_name: str
    status: str
    shipping_address: dict[str, str]
    same_as_shipping: bool
    billing_address: dict[str, str]
    shipping_method: str | None
    payment_method: str
    coupon_code: str | None
    pricing: PricingBreakdown
    last_error: str | None
    order_id: str | None

    @classmethod
    def from_session(cls, session: CheckoutSession) -> "CheckoutSessionResponse":
        # Card details are never echoed back.
        return cls(
            session_id=session.session_id,
            cart_key=session.owner.storage_key,
            step=int(session.step),
            step_name=session.step.name.lower(),
            status=session.status.value,
            shipping_address=session.shipping_address.model_dump(),
            same_as_shipping=session.same_as_shipping,
            billing_address=session.effective_billing_address.model_dump(),
            shipping_method=session.shipping_method,
            payment_method=session.payment_method,
            coupon_code=session.coupon.code if session.coupon else None,
            pricing=session.pricing,
            last_error=session.last_error,
            order_id=session.order_id,
        )


class OrderConfirmationResponse(BaseModel):
    order_id: str
    total: Decimal

    @classmethod
    def from_confirmation(cls, confirmation: OrderConfirmation) -> "OrderConfirmationResponse":
        return cls(order_id=confirmation.order_id, total=confirmation.total)
