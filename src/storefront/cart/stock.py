"""Stock guard: checks a requested line quantity against available stock."""

from dataclasses import dataclass

from storefront.catalogue import Product


@dataclass(frozen=True)
class StockDecision:
    allowed: bool
    reason: str | None = None


class StockGuard:
    """Pure predicate consulted before every quantity change.

    The requested quantity is the quantity the line would end up with, not the
    delta: callers adding to an existing line pass ``existing + added``.
    """

    def can_set_quantity(self, product: Product, requested_quantity: int) -> StockDecision:
        if requested_quantity > product.stock:
            return StockDecision(
                allowed=False,
                reason=f"Only {product.stock} of '{product.title}' available, {requested_quantity} requested",
            )
        return StockDecision(allowed=True)
