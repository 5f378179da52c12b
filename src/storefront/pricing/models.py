"""Pricing configuration and the itemized pricing result."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(BaseModel):
    """A discount code. Codes compare case-insensitively."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(min_length=1)
    discount_type: DiscountType
    amount: Decimal = Field(ge=0)
    min_amount: Decimal = Field(default=Decimal("0"), ge=0)
    max_discount: Decimal | None = Field(default=None, ge=0)
    active: bool = True
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    name: str | None = None
    description: str | None = None

    @property
    def normalized_code(self) -> str:
        return self.code.strip().upper()


class TaxRule(BaseModel):
    """Tax rate for discounted subtotals within ``[min, max]``; no ``max`` means open-ended."""

    model_config = ConfigDict(frozen=True)

    min: Decimal = Field(ge=0)
    max: Decimal | None = None
    rate: Decimal = Field(ge=0)

    @model_validator(mode="after")
    def check_range(self):
        if self.max is not None and self.max < self.min:
            raise ValueError("max must not be lower than min")
        return self

    def contains(self, amount: Decimal) -> bool:
        return amount >= self.min and (self.max is None or amount <= self.max)


class ShippingMethod(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    cost: Decimal = Field(ge=0)
    min_free: Decimal | None = Field(default=None, ge=0)
    description: str | None = None


class PricingBreakdown(BaseModel):
    """Itemized totals. Values carry full precision; round only for display."""

    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    discounted_subtotal: Decimal = Decimal("0")
    tax_rate: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    shipping_cost: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
