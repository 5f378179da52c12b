"""Per-step checkout validation.

Each validator raises the matching ``StorefrontError`` and otherwise returns
``None``. Only presence is checked; formats (emails, card numbers) are not.
"""

from decimal import Decimal

from storefront.checkout.session import Address, CheckoutSession, CheckoutStep
from storefront.exceptions import ShippingThresholdUnmet, ValidationFailed
from storefront.pricing.configuration import CheckoutConfig
from storefront.pricing.engine import PricingEngine

REQUIRED_ADDRESS_FIELDS = ("first_name", "last_name", "email", "street", "city", "state", "postal_code")
REQUIRED_CARD_FIELDS = ("cardholder_name", "card_number", "expiry", "cvv")


def _missing(model, fields, prefix: str) -> dict[str, list[str]]:
    return {f"{prefix}.{name}": ["This field is required"] for name in fields if not str(getattr(model, name)).strip()}


def missing_address_fields(address: Address, prefix: str = "shipping_address") -> dict[str, list[str]]:
    return _missing(address, REQUIRED_ADDRESS_FIELDS, prefix)


def validate_shipping(session: CheckoutSession) -> None:
    errors = missing_address_fields(session.shipping_address)
    if not session.same_as_shipping:
        errors.update(missing_address_fields(session.billing_address, prefix="billing_address"))
    if errors:
        raise ValidationFailed(errors)


def validate_delivery(session: CheckoutSession, config: CheckoutConfig, subtotal: Decimal, engine: PricingEngine) -> None:
    if not session.shipping_method:
        raise ValidationFailed({"shipping_method": ["Select a shipping method"]})

    method = config.shipping_method(session.shipping_method)
    if method is None:
        raise ValidationFailed({"shipping_method": [f"Unknown shipping method '{session.shipping_method}'"]})

    # Checked here as well as in the engine: the customer has to pick another
    # method rather than be charged for the one they selected.
    shortfall = engine.free_shipping_shortfall(method, subtotal)
    if shortfall > 0:
        raise ShippingThresholdUnmet(
            {
                "shipping_method": [
                    f"{method.name} requires an order of at least {method.min_free}; add {shortfall} more"
                ]
            }
        )


def validate_payment(session: CheckoutSession, accepted_methods: list[str], card_method: str) -> None:
    if session.payment_method not in accepted_methods:
        raise ValidationFailed({"payment_method": [f"Unsupported payment method '{session.payment_method}'"]})
    if session.payment_method == card_method:
        errors = _missing(session.payment_details, REQUIRED_CARD_FIELDS, "payment_details")
        if errors:
            raise ValidationFailed(errors)


class StepValidator:
    """Validates every step up to and including a given one."""

    def __init__(self, config: CheckoutConfig, engine: PricingEngine, accepted_methods: list[str], card_method: str):
        self.config = config
        self.engine = engine
        self.accepted_methods = accepted_methods
        self.card_method = card_method

    def validate_through(self, step: CheckoutStep, session: CheckoutSession, subtotal: Decimal) -> None:
        if step >= CheckoutStep.SHIPPING:
            validate_shipping(session)
        if step >= CheckoutStep.DELIVERY:
            validate_delivery(session, self.config, subtotal, self.engine)
        if step >= CheckoutStep.PAYMENT:
            validate_payment(session, self.accepted_methods, self.card_method)
