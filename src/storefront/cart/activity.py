"""Cart activity log: every committed cart event is written to the log."""

import structlog
from protean.utils.mixins import handle

from storefront.cart.cart import Cart
from storefront.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated, CartsMerged
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.event_handler(part_of=Cart)
class CartActivityLog:
    @handle(CartItemAdded)
    def item_added(self, event: CartItemAdded) -> None:
        logger.info(
            "Cart item added",
            cart_key=event.cart_key,
            item_id=str(event.item_id),
            product_id=str(event.product_id),
            variant=event.variant,
            quantity=event.quantity,
        )

    @handle(CartQuantityUpdated)
    def quantity_updated(self, event: CartQuantityUpdated) -> None:
        logger.info(
            "Cart quantity updated",
            cart_key=event.cart_key,
            item_id=str(event.item_id),
            previous_quantity=event.previous_quantity,
            new_quantity=event.new_quantity,
        )

    @handle(CartItemRemoved)
    def item_removed(self, event: CartItemRemoved) -> None:
        logger.info("Cart item removed", cart_key=event.cart_key, item_id=str(event.item_id))

    @handle(CartCleared)
    def cleared(self, event: CartCleared) -> None:
        logger.info("Cart cleared", cart_key=event.cart_key, items_removed=event.items_removed_count)

    @handle(CartsMerged)
    def merged(self, event: CartsMerged) -> None:
        logger.info(
            "Carts merged at login",
            cart_key=event.cart_key,
            source_cart_key=event.source_cart_key,
            policy=event.policy,
            items_merged=event.items_merged_count,
        )
