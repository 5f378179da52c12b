"""Checkout configuration: coupons, tax rules and shipping methods.

The three lists come from an external provider and are fetched once per
checkout session. They need not be consistent with each other. A failed or
malformed fetch is fatal to the operation that needed it.
"""

from typing import Protocol

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from storefront.exceptions import ConfigurationError
from storefront.pricing.models import Coupon, ShippingMethod, TaxRule

logger = structlog.get_logger(__name__)


class CheckoutConfiguration(Protocol):
    async def list_coupons(self) -> list[Coupon]: ...

    async def list_tax_rules(self) -> list[TaxRule]: ...

    async def list_shipping_methods(self) -> list[ShippingMethod]: ...


class CheckoutConfig(BaseModel):
    """Snapshot of the configuration used for one checkout session."""

    model_config = ConfigDict(frozen=True)

    coupons: list[Coupon] = []
    tax_rules: list[TaxRule] = []
    shipping_methods: list[ShippingMethod] = []

    def shipping_method(self, name: str) -> ShippingMethod | None:
        return next((m for m in self.shipping_methods if m.name == name), None)


async def load_checkout_config(provider: CheckoutConfiguration) -> CheckoutConfig:
    try:
        coupons = [Coupon.model_validate(c) for c in await provider.list_coupons()]
        tax_rules = [TaxRule.model_validate(r) for r in await provider.list_tax_rules()]
        shipping_methods = [ShippingMethod.model_validate(m) for m in await provider.list_shipping_methods()]
    except ValidationError as exc:
        logger.error("Malformed checkout configuration", error=str(exc))
        raise ConfigurationError(f"Malformed checkout configuration: {exc}") from exc
    except ConfigurationError:
        raise
    except Exception as exc:
        logger.error("Checkout configuration fetch failed", error=str(exc))
        raise ConfigurationError(f"Could not fetch checkout configuration: {exc}") from exc

    return CheckoutConfig(coupons=coupons, tax_rules=tax_rules, shipping_methods=shipping_methods)
