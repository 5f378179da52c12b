"""Checkout flow: a linear four-step state machine ending in order submission.

    Shipping(1) -> Delivery(2) -> Payment(3) -> Review(4) -> submit

Moving forward is one step at a time and only after every step up to the
current one validates; moving back to any earlier step is always allowed.
Coupons can be applied or removed at any step. The pricing snapshot on the
session is recomputed after every change that can affect it.

A failed submission leaves the session at Review with the cart intact, so the
customer can simply retry. Retrying an unchanged checkout re-sends the same
payload, idempotency key included.
"""

from collections.abc import Callable
from uuid import uuid4

import structlog

from storefront.cart.cart import Cart
from storefront.cart.store import CartStore
from storefront.checkout.order import OrderConfirmation, OrderDesk, OrderLine, OrderPayload, OrderSubmissionError
from storefront.checkout.session import CheckoutSession, CheckoutStatus, CheckoutStep
from storefront.checkout.validation import StepValidator
from storefront.config import Settings, settings as default_settings
from storefront.exceptions import StorefrontError, SubmissionFailed, ValidationFailed
from storefront.pricing.configuration import CheckoutConfig, CheckoutConfiguration, load_checkout_config
from storefront.pricing.coupons import accept_coupon
from storefront.pricing.engine import PricingEngine
from storefront.results import Accepted, Rejected, Result

logger = structlog.get_logger(__name__)


class CheckoutFlow:
    def __init__(
        self,
        session: CheckoutSession,
        cart_store: CartStore,
        config: CheckoutConfig,
        orders: OrderDesk,
        engine: PricingEngine | None = None,
        settings: Settings | None = None,
        on_end: Callable[[CheckoutSession], None] | None = None,
    ):
        self.settings = settings or default_settings
        self.session = session
        self.cart_store = cart_store
        self.config = config
        self.orders = orders
        self.engine = engine or PricingEngine(free_shipping_method=self.settings.free_shipping_method)
        self.validator = StepValidator(
            config,
            self.engine,
            accepted_methods=self.settings.accepted_payment_methods,
            card_method=self.settings.card_payment_method,
        )
        self.on_end = on_end
        self._submitted_payload: OrderPayload | None = None
        self.log = logger.bind(checkout_session=session.session_id, cart_key=session.owner.storage_key)

    @classmethod
    async def begin(
        cls,
        cart_store: CartStore,
        configuration: CheckoutConfiguration,
        orders: OrderDesk,
        engine: PricingEngine | None = None,
        settings: Settings | None = None,
        on_end: Callable[[CheckoutSession], None] | None = None,
    ) -> Result["CheckoutFlow"]:
        """Start checking out the cart behind ``cart_store``.

        Raises ``ConfigurationError`` when the checkout configuration cannot be
        fetched; an empty cart is a rejection. ``on_end`` is called with the
        session once it is placed or abandoned.
        """
        config = await load_checkout_config(configuration)

        cart = await cart_store.cart()
        if not cart.items:
            return Rejected(ValidationFailed({"cart": ["Cart is empty"]}))

        flow = cls(CheckoutSession(owner=cart_store.owner), cart_store, config, orders, engine, settings, on_end)
        flow.refresh_pricing(cart)
        flow.log.info("Checkout started", item_count=cart.total_items(), subtotal=str(flow.session.pricing.subtotal))
        return Accepted(flow)

    # -------------------------------------------------------------------
    # Step navigation
    # -------------------------------------------------------------------
    async def advance(self) -> Result[CheckoutSession]:
        try:
            self._ensure_active()
            if self.session.step == CheckoutStep.REVIEW:
                raise ValidationFailed({"step": ["Already at review; submit the order instead"]})

            cart = await self.cart_store.cart()
            self.validator.validate_through(self.session.step, self.session, cart.total_price())
        except StorefrontError as exc:
            return self._reject("advance", exc)

        previous = self.session.step
        self.session.step = CheckoutStep(previous + 1)
        self.refresh_pricing(cart)
        self.log.info("Checkout advanced", from_step=previous.name, to_step=self.session.step.name)
        return Accepted(self.session)

    async def go_to(self, step: CheckoutStep | int) -> Result[CheckoutSession]:
        """Return to an earlier (or the current) step."""
        try:
            self._ensure_active()
            try:
                target = CheckoutStep(step)
            except ValueError:
                raise ValidationFailed({"step": [f"Unknown checkout step {step}"]}) from None
            if target > self.session.step:
                raise ValidationFailed({"step": ["Steps cannot be skipped; complete the current step first"]})
        except StorefrontError as exc:
            return self._reject("go_to", exc)

        self.session.step = target
        return Accepted(self.session)

    async def go_back(self) -> Result[CheckoutSession]:
        return await self.go_to(max(self.session.step - 1, CheckoutStep.SHIPPING))

    # -------------------------------------------------------------------
    # Session edits
    # -------------------------------------------------------------------
    async def update_shipping_address(self, **changes) -> Result[CheckoutSession]:
        try:
            self._ensure_active()
            self.session.shipping_address = _updated(self.session.shipping_address, changes, "shipping_address")
        except StorefrontError as exc:
            return self._reject("update_shipping_address", exc)
        return Accepted(self.session)

    async def update_billing_address(self, same_as_shipping: bool | None = None, **changes) -> Result[CheckoutSession]:
        try:
            self._ensure_active()
            self.session.billing_address = _updated(self.session.billing_address, changes, "billing_address")
            if same_as_shipping is not None:
                self.session.same_as_shipping = same_as_shipping
        except StorefrontError as exc:
            return self._reject("update_billing_address", exc)
        return Accepted(self.session)

    async def select_shipping_method(self, name: str) -> Result[CheckoutSession]:
        try:
            self._ensure_active()
            if self.config.shipping_method(name) is None:
                raise ValidationFailed({"shipping_method": [f"Unknown shipping method '{name}'"]})
        except StorefrontError as exc:
            return self._reject("select_shipping_method", exc)

        self.session.shipping_method = name
        self.refresh_pricing(await self.cart_store.cart())
        return Accepted(self.session)

    async def select_payment_method(self, method: str) -> Result[CheckoutSession]:
        try:
            self._ensure_active()
            if method not in self.settings.accepted_payment_methods:
                raise ValidationFailed({"payment_method": [f"Unsupported payment method '{method}'"]})
        except StorefrontError as exc:
            return self._reject("select_payment_method", exc)

        self.session.payment_method = method
        return Accepted(self.session)

    async def update_payment_details(self, **changes) -> Result[CheckoutSession]:
        try:
            self._ensure_active()
            self.session.payment_details = _updated(self.session.payment_details, changes, "payment_details")
        except StorefrontError as exc:
            return self._reject("update_payment_details", exc)
        return Accepted(self.session)

    # -------------------------------------------------------------------
    # Coupons (available at every step)
    # -------------------------------------------------------------------
    async def apply_coupon(self, code: str) -> Result[CheckoutSession]:
        cart = await self.cart_store.cart()
        try:
            self._ensure_active()
            coupon = accept_coupon(self.config.coupons, code, cart.total_price())
        except StorefrontError as exc:
            return self._reject("apply_coupon", exc, code=code)

        self.session.coupon = coupon
        self.refresh_pricing(cart)
        self.log.info("Coupon applied", code=coupon.code, discount=str(self.session.pricing.discount))
        return Accepted(self.session)

    async def remove_coupon(self) -> Result[CheckoutSession]:
        try:
            self._ensure_active()
        except StorefrontError as exc:
            return self._reject("remove_coupon", exc)

        self.session.coupon = None
        self.refresh_pricing(await self.cart_store.cart())
        return Accepted(self.session)

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def refresh_pricing(self, cart: Cart) -> None:
        method = self.config.shipping_method(self.session.shipping_method) if self.session.shipping_method else None
        self.session.pricing = self.engine.price(cart, self.session.coupon, self.config.tax_rules, method)

    # -------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------
    async def submit(self) -> Result[OrderConfirmation]:
        cart = await self.cart_store.cart()
        try:
            self._ensure_active()
            if self.session.step != CheckoutStep.REVIEW:
                raise ValidationFailed({"step": ["Review the order before submitting"]})
            if not cart.items:
                raise ValidationFailed({"cart": ["Cart is empty"]})
            self.validator.validate_through(CheckoutStep.PAYMENT, self.session, cart.total_price())
        except StorefrontError as exc:
            return self._reject("submit", exc)

        self.refresh_pricing(cart)
        payload = self._payload_for(cart)

        try:
            confirmation = await self.orders.place_order(payload)
        except (OrderSubmissionError, ConnectionError, TimeoutError) as exc:
            self.session.last_error = str(exc) or "Order submission failed"
            return self._reject("submit", SubmissionFailed({"order": [self.session.last_error]}))

        self.session.status = CheckoutStatus.PLACED
        self.session.order_id = confirmation.order_id
        self.session.last_error = None
        self.log.info("Order placed", order_id=confirmation.order_id, total=str(payload.total))

        await self.cart_store.clear()
        self._end()
        return Accepted(confirmation)

    async def abandon(self) -> Result[CheckoutSession]:
        if self.session.is_active:
            self.session.status = CheckoutStatus.ABANDONED
            self.log.info("Checkout abandoned", step=self.session.step.name)
            self._end()
        return Accepted(self.session)

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _end(self) -> None:
        if self.on_end is not None:
            self.on_end(self.session)

    def _ensure_active(self) -> None:
        if not self.session.is_active:
            raise ValidationFailed({"session": [f"Checkout session is {self.session.status.value}"]})

    def _payload_for(self, cart: Cart) -> OrderPayload:
        pricing = self.session.pricing
        payload = OrderPayload(
            idempotency_key=uuid4().hex,
            owner_key=self.session.owner.storage_key,
            items=[
                OrderLine(
                    item_id=item.id,
                    product_id=item.product_id,
                    title=item.title,
                    variant=item.variant,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    line_total=item.line_total,
                )
                for item in cart.items
            ],
            shipping_address=self.session.shipping_address,
            billing_address=self.session.effective_billing_address,
            payment_method=self.session.payment_method,
            shipping_method=self.session.shipping_method,
            coupon_code=self.session.coupon.code if self.session.coupon else None,
            subtotal=pricing.subtotal,
            discount=pricing.discount,
            tax=pricing.tax,
            shipping_cost=pricing.shipping_cost,
            total=pricing.total,
        )

        previous = self._submitted_payload
        if previous is not None and _same_order(previous, payload):
            return previous
        self._submitted_payload = payload
        return payload

    def _reject(self, operation: str, exc: StorefrontError, **context) -> Rejected:
        self.log.warning(
            "Checkout operation rejected",
            operation=operation,
            step=self.session.step.name,
            reason=exc.code,
            error=str(exc),
            **context,
        )
        return Rejected(exc)


def _updated(model, changes: dict, field: str):
    unknown = sorted(set(changes) - set(type(model).model_fields))
    if unknown:
        raise ValidationFailed({f"{field}.{name}": ["Unknown field"] for name in unknown})
    return model.model_copy(update={name: "" if value is None else str(value) for name, value in changes.items()})


def _same_order(first: OrderPayload, second: OrderPayload) -> bool:
    return first.model_dump(exclude={"idempotency_key"}) == second.model_dump(exclude={"idempotency_key"})


