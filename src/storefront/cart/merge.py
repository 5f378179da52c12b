"""Guest → user cart reconciliation, run once when a guest logs in.

The default policy is presence based: whichever record exists wins, and no
line-level merge happens.

    user cart exists (even empty)  -> keep it, delete the guest record unread
    only the guest cart exists     -> move it to the user key, delete the guest record
    neither exists                 -> empty user cart

The ``union`` policy folds guest lines into an existing user cart instead,
summing quantities of matching product+variant lines as long as the stock
guard allows the sum.

Merges run inside a storefront domain context.
"""

import structlog
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart, CartOwner
from storefront.cart.events import CartsMerged
from storefront.cart.stock import StockGuard
from storefront.catalogue import CatalogueLookup, ProductNotFound
from storefront.config import MergePolicy
from storefront.results import Accepted

logger = structlog.get_logger(__name__)


class CartMerger:
    def __init__(
        self,
        catalogue: CatalogueLookup | None = None,
        policy: MergePolicy = MergePolicy.PRESENCE,
        guard: StockGuard | None = None,
    ):
        if policy == MergePolicy.UNION and catalogue is None:
            raise ValueError("The union merge policy needs a catalogue to check stock")
        self.catalogue = catalogue
        self.policy = policy
        self.guard = guard or StockGuard()

    async def merge(self, guest: CartOwner, user: CartOwner) -> Accepted[Cart]:
        """Reconcile ``guest``'s cart into ``user``'s and return the user's cart.

        Must complete before any other mutation of the user's cart.
        """
        if not guest.is_guest or user.is_guest:
            raise ValueError("merge expects a guest owner and a user owner")

        repo = current_domain.repository_for(Cart)
        user_cart = repo.find_for(user)

        if user_cart is not None and self.policy == MergePolicy.PRESENCE:
            # The guest record is deleted without being read.
            discarded = repo.delete_for(guest)
            logger.info("User cart kept at login", user_cart_key=user.storage_key, guest_cart_discarded=discarded)
            return Accepted(user_cart)

        guest_cart = repo.find_for(guest)

        if user_cart is not None and guest_cart is not None:
            merged = await self._union(guest_cart, user_cart)
            repo.add(merged)
            repo.delete_for(guest)
            return Accepted(merged)

        if user_cart is not None:
            return Accepted(user_cart)

        if guest_cart is not None:
            adopted = guest_cart.transfer_to(user)
            adopted.raise_(
                CartsMerged(
                    cart_key=adopted.key,
                    source_cart_key=guest.storage_key,
                    policy=self.policy.value,
                    items_merged_count=len(adopted.items),
                )
            )
            repo.add(adopted)
            repo.delete_for(guest)
            return Accepted(adopted)

        logger.info("No carts found at login", user_cart_key=user.storage_key)
        return Accepted(Cart.create(user))

    async def _union(self, guest_cart: Cart, user_cart: Cart) -> Cart:
        merged_count = 0
        for guest_item in guest_cart.items:
            try:
                product = await self.catalogue.get_product(guest_item.product_id)
            except ProductNotFound:
                logger.warning("Dropped guest line for unknown product", item_id=str(guest_item.id))
                continue

            existing = user_cart.find_item(guest_item.product_id, guest_item.variant)
            requested = guest_item.quantity + (existing.quantity if existing else 0)
            decision = self.guard.can_set_quantity(product, requested)
            if not product.is_active or not decision.allowed:
                logger.warning(
                    "Dropped guest line",
                    reason="inactive" if not product.is_active else "insufficient_stock",
                    item_id=str(guest_item.id),
                    product_id=str(guest_item.product_id),
                    requested=requested,
                    stock=product.stock,
                )
                continue

            if existing:
                existing.quantity = requested
            else:
                user_cart.add_items(guest_item.copy_line())
            merged_count += 1

        user_cart.raise_(
            CartsMerged(
                cart_key=user_cart.key,
                source_cart_key=guest_cart.key,
                policy=self.policy.value,
                items_merged_count=merged_count,
            )
        )
        return user_cart
