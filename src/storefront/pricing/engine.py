"""Pricing engine: turns a cart snapshot into an itemized total.

The stages run in a fixed order and each consumes the previous one's output:

    subtotal -> discount -> discounted subtotal -> tax -> shipping -> total

Tax is computed on the discounted subtotal, while the free-shipping threshold
is checked against the subtotal *before* discount. The asymmetry is a business
rule: a coupon must never be what unlocks free shipping.
"""

from decimal import Decimal

from storefront.cart.cart import Cart
from storefront.pricing.models import Coupon, DiscountType, PricingBreakdown, ShippingMethod, TaxRule

FREE_SHIPPING = "Free Shipping"

ZERO = Decimal("0")


class PricingEngine:
    def __init__(self, free_shipping_method: str = FREE_SHIPPING):
        self.free_shipping_method = free_shipping_method

    def price(
        self,
        cart: Cart,
        coupon: Coupon | None,
        tax_rules: list[TaxRule],
        shipping_method: ShippingMethod | None,
    ) -> PricingBreakdown:
        subtotal = cart.total_price()
        discount = self.discount_for(coupon, subtotal)
        discounted_subtotal = subtotal - discount
        rule = self.tax_rule_for(tax_rules, discounted_subtotal)
        tax_rate = rule.rate if rule else ZERO
        shipping_cost = self.shipping_cost_for(shipping_method, subtotal)

        return PricingBreakdown(
            subtotal=subtotal,
            discount=discount,
            discounted_subtotal=discounted_subtotal,
            tax_rate=tax_rate,
            tax=discounted_subtotal * tax_rate,
            shipping_cost=shipping_cost,
            total=discounted_subtotal + discounted_subtotal * tax_rate + shipping_cost,
        )

    # -------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------
    @staticmethod
    def discount_for(coupon: Coupon | None, subtotal: Decimal) -> Decimal:
        """Discount granted by an already accepted coupon.

        The minimum order amount is enforced when the coupon is applied, not
        here. A configuration whose fixed discount exceeds the subtotal is a
        configuration error and is not clamped.
        """
        if coupon is None:
            return ZERO
        if coupon.discount_type == DiscountType.PERCENTAGE:
            discount = subtotal * coupon.amount / 100
            if coupon.max_discount is not None:
                discount = min(discount, coupon.max_discount)
            return discount
        return coupon.amount

    @staticmethod
    def tax_rule_for(tax_rules: list[TaxRule], amount: Decimal) -> TaxRule | None:
        """First rule whose range contains ``amount``; ``None`` means no tax."""
        return next((rule for rule in tax_rules if rule.contains(amount)), None)

    def shipping_cost_for(self, method: ShippingMethod | None, subtotal: Decimal) -> Decimal:
        if method is None:
            return ZERO
        if self.qualifies_for_free_shipping(method, subtotal):
            return ZERO
        return method.cost

    def qualifies_for_free_shipping(self, method: ShippingMethod, subtotal: Decimal) -> bool:
        """Pass the pre-discount subtotal; see the module docstring."""
        return method.name == self.free_shipping_method and method.min_free is not None and subtotal >= method.min_free

    def free_shipping_shortfall(self, method: ShippingMethod, subtotal: Decimal) -> Decimal:
        """Amount still missing to unlock a free-shipping method, 0 when met or not applicable."""
        if method.name != self.free_shipping_method or method.min_free is None:
            return ZERO
        return max(method.min_free - subtotal, ZERO)
