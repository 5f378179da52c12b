"""In-memory collaborators for development and tests.

They stand in for the catalogue, the checkout configuration service and the
order service of a deployed storefront.
"""

from collections import defaultdict
from datetime import UTC, datetime
from uuid import uuid4

import structlog

from storefront.catalogue import Product, ProductNotFound
from storefront.checkout.order import OrderConfirmation, OrderPayload, OrderSubmissionError
from storefront.pricing.models import Coupon, ShippingMethod, TaxRule

logger = structlog.get_logger(__name__)


class InMemoryCatalogue:
    def __init__(self, products: list[Product] | None = None):
        self._products: dict[str, Product] = {p.id: p for p in products or []}

    async def get_product(self, product_id: str) -> Product:
        try:
            return self._products[str(product_id)]
        except KeyError:
            raise ProductNotFound(product_id) from None

    def put(self, product: Product) -> None:
        self._products[product.id] = product

    def set_stock(self, product_id: str, stock: int) -> Product:
        """Replace the stock level; a negative level raises pydantic's ``ValidationError``."""
        product = Product.model_validate({**self._products[product_id].model_dump(), "stock": stock})
        self._products[product_id] = product
        return product


class StaticCheckoutConfiguration:
    def __init__(
        self,
        coupons: list[Coupon] | None = None,
        tax_rules: list[TaxRule] | None = None,
        shipping_methods: list[ShippingMethod] | None = None,
    ):
        self.coupons = list(coupons or [])
        self.tax_rules = list(tax_rules or [])
        self.shipping_methods = list(shipping_methods or [])

    async def list_coupons(self) -> list[Coupon]:
        return list(self.coupons)

    async def list_tax_rules(self) -> list[TaxRule]:
        return list(self.tax_rules)

    async def list_shipping_methods(self) -> list[ShippingMethod]:
        return list(self.shipping_methods)


class InMemoryOrderDesk:
    """Accepts orders, deduplicating them by idempotency key.

    With a catalogue attached, every line is checked against current stock and
    stock is decremented once the order is accepted.
    """

    def __init__(self, catalogue: InMemoryCatalogue | None = None):
        self.catalogue = catalogue
        self.orders: dict[str, OrderPayload] = {}
        self._confirmations: dict[str, OrderConfirmation] = {}

    async def place_order(self, payload: OrderPayload) -> OrderConfirmation:
        if payload.idempotency_key in self._confirmations:
            return self._confirmations[payload.idempotency_key]

        if self.catalogue is not None:
            # Variant lines of one product draw on the same stock.
            wanted: dict[str, int] = defaultdict(int)
            for line in payload.items:
                wanted[line.product_id] += line.quantity

            products: dict[str, Product] = {}
            for product_id, quantity in wanted.items():
                try:
                    product = await self.catalogue.get_product(product_id)
                except ProductNotFound:
                    raise OrderSubmissionError(f"Product '{product_id}' no longer exists") from None
                if product.stock < quantity:
                    raise OrderSubmissionError(f"Stock changed for '{product.title}'; only {product.stock} left")
                products[product_id] = product
            for product_id, quantity in wanted.items():
                self.catalogue.set_stock(product_id, products[product_id].stock - quantity)

        confirmation = OrderConfirmation(order_id=uuid4().hex, placed_at=datetime.now(UTC), total=payload.total)
        self.orders[confirmation.order_id] = payload
        self._confirmations[payload.idempotency_key] = confirmation
        logger.info("Order accepted", order_id=confirmation.order_id, owner_key=payload.owner_key)
        return confirmation
