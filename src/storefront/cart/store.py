"""Cart store: owner-scoped cart operations backed by the cart repository.

Each instance serves a single owner identity. Every successful mutation is
written through the repository before the call returns; a rejected mutation
writes nothing, so the stored cart is always the last accepted state.
Operations must run inside a storefront domain context.
"""

from decimal import Decimal

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart, CartOwner
from storefront.cart.stock import StockGuard
from storefront.catalogue import CatalogueLookup, Product, ProductNotFound
from storefront.exceptions import InsufficientStock, ProductUnavailable, StorefrontError, ValidationFailed
from storefront.results import Accepted, Rejected, Result

logger = structlog.get_logger(__name__)


class CartStore:
    def __init__(self, owner: CartOwner, catalogue: CatalogueLookup, guard: StockGuard | None = None):
        self.owner = owner
        self.catalogue = catalogue
        self.guard = guard or StockGuard()

    @property
    def repository(self):
        return current_domain.repository_for(Cart)

    async def cart(self) -> Cart:
        """Current cart for the owner; an empty one if nothing is stored yet."""
        cart = self.repository.find_for(self.owner)
        return cart if cart is not None else Cart.create(self.owner)

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    async def add_item(self, product: Product, quantity: int = 1, variant: str | None = None) -> Result[Cart]:
        """Add ``product`` to the cart, checked against its live catalogue record."""
        cart = await self.cart()
        try:
            try:
                live = await self.catalogue.get_product(product.id)
            except ProductNotFound:
                raise ProductUnavailable({"product_id": [f"Product '{product.id}' not found or inactive"]}) from None
            cart.add_item(live, quantity=quantity, variant=variant, guard=self.guard)
        except ValidationError as exc:
            return self._reject("add_item", exc, product_id=product.id, quantity=quantity)
        return self._persist(cart)

    async def update_quantity(self, item_id: str, new_quantity: int) -> Result[Cart]:
        if new_quantity <= 0:
            return await self.remove_item(item_id)

        cart = await self.cart()
        try:
            item = cart.get_item(item_id)
            if item is None:
                raise ValidationFailed({"item_id": ["Item not found in cart"]})
            product = await self._live_product(item.product_id)
            cart.update_item_quantity(item_id, new_quantity, product=product, guard=self.guard)
        except ValidationError as exc:
            return self._reject("update_quantity", exc, item_id=item_id, quantity=new_quantity)
        return self._persist(cart)

    async def remove_item(self, item_id: str) -> Result[Cart]:
        cart = await self.cart()
        if not cart.remove_item(item_id):
            return Accepted(cart)
        return self._persist(cart)

    async def clear(self) -> Result[Cart]:
        cart = await self.cart()
        cart.clear()
        return self._persist(cart)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    async def total_items(self) -> int:
        return (await self.cart()).total_items()

    async def total_price(self) -> Decimal:
        return (await self.cart()).total_price()

    async def verify(self) -> Result[Cart]:
        """Check every line against the live catalogue before checkout."""
        cart = await self.cart()
        problems: dict[str, list[str]] = {}
        for item in cart.items:
            try:
                product = await self.catalogue.get_product(item.product_id)
            except ProductNotFound:
                problems[str(item.id)] = ["Out of stock or missing product"]
                continue
            if not product.is_active:
                problems[str(item.id)] = ["Out of stock or missing product"]
                continue
            decision = self.guard.can_set_quantity(product, item.quantity)
            if not decision.allowed:
                problems[str(item.id)] = [decision.reason]

        if problems:
            return self._reject("verify", InsufficientStock(problems))
        return Accepted(cart)

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    async def _live_product(self, product_id: str) -> Product:
        try:
            return await self.catalogue.get_product(product_id)
        except ProductNotFound:
            # A product removed from the catalogue has no stock left to sell.
            raise InsufficientStock({"product_id": [f"Product '{product_id}' is no longer available"]}) from None

    def _persist(self, cart: Cart) -> Accepted[Cart]:
        self.repository.add(cart)
        return Accepted(cart)

    def _reject(self, operation: str, exc: ValidationError, **context) -> Rejected:
        if not isinstance(exc, StorefrontError):
            exc = ValidationFailed.from_error(exc)
        logger.warning(
            "Cart operation rejected",
            operation=operation,
            cart_key=self.owner.storage_key,
            reason=exc.code,
            error=str(exc),
            **context,
        )
        return Rejected(exc)
