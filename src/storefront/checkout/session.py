"""Checkout session state. Lives in memory for one checkout and is never persisted."""

from enum import Enum, IntEnum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from storefront.cart.cart import CartOwner
from storefront.pricing.models import Coupon, PricingBreakdown


class CheckoutStep(IntEnum):
    SHIPPING = 1
    DELIVERY = 2
    PAYMENT = 3
    REVIEW = 4


class CheckoutStatus(Enum):
    ACTIVE = "active"
    PLACED = "placed"
    ABANDONED = "abandoned"


class Address(BaseModel):
    model_config = ConfigDict(frozen=True)

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = "United States"


class PaymentDetails(BaseModel):
    """Card fields as typed by the customer; only their presence is checked."""

    model_config = ConfigDict(frozen=True)

    cardholder_name: str = ""
    card_number: str = ""
    expiry: str = ""
    cvv: str = ""


class CheckoutSession(BaseModel):
    session_id: str = Field(default_factory=lambda: uuid4().hex)
    owner: CartOwner
    step: CheckoutStep = CheckoutStep.SHIPPING
    status: CheckoutStatus = CheckoutStatus.ACTIVE
    shipping_address: Address = Field(default_factory=Address)
    same_as_shipping: bool = True
    billing_address: Address = Field(default_factory=Address)
    shipping_method: str | None = None
    payment_method: str = "card"
    payment_details: PaymentDetails = Field(default_factory=PaymentDetails)
    coupon: Coupon | None = None
    pricing: PricingBreakdown = Field(default_factory=PricingBreakdown)
    last_error: str | None = None
    order_id: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == CheckoutStatus.ACTIVE

    @property
    def effective_billing_address(self) -> Address:
        return self.shipping_address if self.same_as_shipping else self.billing_address
