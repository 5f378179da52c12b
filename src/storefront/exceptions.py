"""Storefront error taxonomy.

Business rejections are protean ``ValidationError``s carrying a ``messages``
mapping of field name to a list of human readable messages, plus a stable
``code``. They are raised inside the domain model and turned into ``Rejected``
results at the service boundary. ``ConfigurationError`` is the exception: it
signals a broken collaborator and always propagates.
"""

from protean.exceptions import ValidationError


class StorefrontError(ValidationError):
    code = "storefront_error"

    def __init__(self, messages: dict[str, list[str]] | str):
        if isinstance(messages, str):
            messages = {"_entity": [messages]}
        super().__init__(messages)

    def __str__(self) -> str:
        return "; ".join(f"{field}: {', '.join(errors)}" for field, errors in self.messages.items())


class InsufficientStock(StorefrontError):
    code = "insufficient_stock"


class ProductUnavailable(StorefrontError):
    code = "product_unavailable"


class ValidationFailed(StorefrontError):
    code = "validation_failed"

    @classmethod
    def from_error(cls, exc: ValidationError) -> "ValidationFailed":
        """Wrap a field-level error raised by the domain model."""
        messages = exc.messages
        if not isinstance(messages, dict):
            messages = {"_entity": [str(m) for m in messages] if isinstance(messages, list) else [str(messages)]}
        return cls(dict(messages))


class InvalidCoupon(StorefrontError):
    code = "invalid_coupon"


class ShippingThresholdUnmet(StorefrontError):
    code = "shipping_threshold_unmet"


class SubmissionFailed(StorefrontError):
    code = "submission_failed"


class ConfigurationError(Exception):
    """Checkout configuration could not be fetched or is malformed."""
