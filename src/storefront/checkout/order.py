"""Order submission contract: the payload handed to the order service."""

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from storefront.checkout.session import Address


class OrderLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_id: str
    product_id: str
    title: str
    variant: str | None = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderPayload(BaseModel):
    """Everything the order service needs to place an order.

    ``idempotency_key`` stays the same across retries of an unchanged
    checkout, so a resubmission is recognisable as the same order.
    """

    model_config = ConfigDict(frozen=True)

    idempotency_key: str
    owner_key: str
    items: list[OrderLine]
    shipping_address: Address
    billing_address: Address
    payment_method: str
    shipping_method: str
    coupon_code: str | None = None
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    shipping_cost: Decimal
    total: Decimal


class OrderConfirmation(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str
    placed_at: datetime
    total: Decimal


class OrderSubmissionError(Exception):
    """The order service refused or failed to place the order."""


class OrderDesk(Protocol):
    async def place_order(self, payload: OrderPayload) -> OrderConfirmation:
        """Place the order, raising ``OrderSubmissionError`` on failure."""
        ...
