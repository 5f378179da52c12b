"""Catalogue contract consumed by the cart.

Products are owned by the catalogue service. The cart only reads them: a
snapshot is copied into each line item at add time, and the live record is
looked up again whenever a quantity has to be checked against stock.
"""

from decimal import Decimal
from enum import Enum
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field


class ProductStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    price: Decimal = Field(ge=0)
    sale_price: Decimal | None = Field(default=None, ge=0)
    stock: int = Field(default=0, ge=0)
    category_id: str | None = None
    status: ProductStatus = ProductStatus.ACTIVE

    @property
    def effective_price(self) -> Decimal:
        """Sale price always takes precedence when present."""
        return self.sale_price if self.sale_price is not None else self.price

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE


class ProductNotFound(LookupError):
    pass


class CatalogueLookup(Protocol):
    async def get_product(self, product_id: str) -> Product:
        """Return the live product, raising ``ProductNotFound`` if it is unknown."""
        ...
