"""FastAPI routes for the Storefront: carts and checkout sessions."""

from fastapi import APIRouter, Depends, HTTPException, Request

from storefront.api.errors import unwrap
from storefront.api.schemas import (
    AddressSchema,
    AddToCartRequest,
    BeginCheckoutRequest,
    BillingAddressRequest,
    CartResponse,
    CheckoutSessionResponse,
    CouponRequest,
    GoToStepRequest,
    MergeCartsRequest,
    OrderConfirmationResponse,
    PaymentRequest,
    ShippingMethodRequest,
    UpdateCartQuantityRequest,
)
from storefront.cart.cart import CartOwner, OwnerKind
from storefront.cart.store import CartStore
from storefront.catalogue import ProductNotFound
from storefront.checkout.flow import CheckoutFlow
from storefront.shop import Storefront
from storefront.exceptions import ProductUnavailable


def get_storefront(request: Request) -> Storefront:
    return request.app.state.storefront


def get_cart_store(owner_kind: OwnerKind, owner_id: str, storefront: Storefront = Depends(get_storefront)) -> CartStore:
    return storefront.cart_store(CartOwner(kind=owner_kind, identity=owner_id))


def get_checkout(session_id: str, storefront: Storefront = Depends(get_storefront)) -> CheckoutFlow:
    flow = storefront.checkout(session_id)
    if flow is None:
        raise HTTPException(status_code=404, detail=f"Checkout session {session_id} not found")
    return flow


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("/merge", response_model=CartResponse)
async def merge_carts(body: MergeCartsRequest, storefront: Storefront = Depends(get_storefront)) -> CartResponse:
    result = await storefront.login(CartOwner.guest(body.guest_session_id), CartOwner.user(body.user_id))
    return CartResponse.from_cart(unwrap(result))


@cart_router.get("/{owner_kind}/{owner_id}", response_model=CartResponse)
async def get_cart(store: CartStore = Depends(get_cart_store)) -> CartResponse:
    return CartResponse.from_cart(await store.cart())


@cart_router.post("/{owner_kind}/{owner_id}/items", response_model=CartResponse)
async def add_cart_item(
    body: AddToCartRequest,
    store: CartStore = Depends(get_cart_store),
) -> CartResponse:
    try:
        product = await store.catalogue.get_product(body.product_id)
    except ProductNotFound:
        raise ProductUnavailable({"product_id": [f"Product {body.product_id} not found"]}) from None

    result = await store.add_item(product, quantity=body.quantity, variant=body.variant)
    return CartResponse.from_cart(unwrap(result))


@cart_router.put("/{owner_kind}/{owner_id}/items/{item_id}", response_model=CartResponse)
async def update_cart_item_quantity(
    item_id: str,
    body: UpdateCartQuantityRequest,
    store: CartStore = Depends(get_cart_store),
) -> CartResponse:
    result = await store.update_quantity(item_id, body.new_quantity)
    return CartResponse.from_cart(unwrap(result))


@cart_router.delete("/{owner_kind}/{owner_id}/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(item_id: str, store: CartStore = Depends(get_cart_store)) -> CartResponse:
    return CartResponse.from_cart(unwrap(await store.remove_item(item_id)))


@cart_router.delete("/{owner_kind}/{owner_id}", response_model=CartResponse)
async def clear_cart(store: CartStore = Depends(get_cart_store)) -> CartResponse:
    return CartResponse.from_cart(unwrap(await store.clear()))


@cart_router.post("/{owner_kind}/{owner_id}/verify", response_model=CartResponse)
async def verify_cart(store: CartStore = Depends(get_cart_store)) -> CartResponse:
    return CartResponse.from_cart(unwrap(await store.verify()))


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutSessionResponse)
async def begin_checkout(
    body: BeginCheckoutRequest,
    storefront: Storefront = Depends(get_storefront),
) -> CheckoutSessionResponse:
    owner = CartOwner(kind=body.owner_kind, identity=body.owner_id)
    flow = unwrap(await storefront.begin_checkout(owner))
    return CheckoutSessionResponse.from_session(flow.session)


@checkout_router.get("/{session_id}", response_model=CheckoutSessionResponse)
async def get_checkout_session(flow: CheckoutFlow = Depends(get_checkout)) -> CheckoutSessionResponse:
    return CheckoutSessionResponse.from_session(flow.session)


@checkout_router.put("/{session_id}/shipping-address", response_model=CheckoutSessionResponse)
async def update_shipping_address(
    body: AddressSchema,
    flow: CheckoutFlow = Depends(get_checkout),
) -> CheckoutSessionResponse:
    result = await flow.update_shipping_address(**body.model_dump(exclude_unset=True))
    return CheckoutSessionResponse.from_session(unwrap(result))


@checkout_router.put("/{session_id}/billing-address", response_model=CheckoutSessionResponse)
async def update_billing_address(
    body: BillingAddressRequest,
    flow: CheckoutFlow = Depends(get_checkout),
) -> CheckoutSessionResponse:
    changes = body.model_dump(exclude={"same_as_shipping"}, exclude_unset=True)
    result = await flow.update_billing_address(same_as_shipping=body.same_as_shipping, **changes)
    return CheckoutSessionResponse.from_session(unwrap(result))


@checkout_router.put("/{session_id}/delivery", response_model=CheckoutSessionResponse)
async def select_shipping_method(
    body: ShippingMethodRequest,
    flow: CheckoutFlow = Depends(get_checkout),
) -> CheckoutSessionResponse:
    result = await flow.select_shipping_method(body.shipping_method)
    return CheckoutSessionResponse.from_session(unwrap(result))


@checkout_router.put("/{session_id}/payment", response_model=CheckoutSessionResponse)
async def update_payment(
    body: PaymentRequest,
    flow: CheckoutFlow = Depends(get_checkout),
) -> CheckoutSessionResponse:
    if body.payment_method is not None:
        unwrap(await flow.select_payment_method(body.payment_method))
    result = await flow.update_payment_details(**body.card_details())
    return CheckoutSessionResponse.from_session(unwrap(result))


@checkout_router.post("/{session_id}/coupon", response_model=CheckoutSessionResponse)
async def apply_coupon(body: CouponRequest, flow: CheckoutFlow = Depends(get_checkout)) -> CheckoutSessionResponse:
    return CheckoutSessionResponse.from_session(unwrap(await flow.apply_coupon(body.code)))


@checkout_router.delete("/{session_id}/coupon", response_model=CheckoutSessionResponse)
async def remove_coupon(flow: CheckoutFlow = Depends(get_checkout)) -> CheckoutSessionResponse:
    return CheckoutSessionResponse.from_session(unwrap(await flow.remove_coupon()))


@checkout_router.post("/{session_id}/advance", response_model=CheckoutSessionResponse)
async def advance_checkout(flow: CheckoutFlow = Depends(get_checkout)) -> CheckoutSessionResponse:
    return CheckoutSessionResponse.from_session(unwrap(await flow.advance()))


@checkout_router.post("/{session_id}/back", response_model=CheckoutSessionResponse)
async def go_back(flow: CheckoutFlow = Depends(get_checkout)) -> CheckoutSessionResponse:
    return CheckoutSessionResponse.from_session(unwrap(await flow.go_back()))


@checkout_router.put("/{session_id}/step", response_model=CheckoutSessionResponse)
async def go_to_step(body: GoToStepRequest, flow: CheckoutFlow = Depends(get_checkout)) -> CheckoutSessionResponse:
    return CheckoutSessionResponse.from_session(unwrap(await flow.go_to(body.step)))


@checkout_router.post("/{session_id}/submit", response_model=OrderConfirmationResponse)
async def submit_order(flow: CheckoutFlow = Depends(get_checkout)) -> OrderConfirmationResponse:
    confirmation = unwrap(await flow.submit())
    return OrderConfirmationResponse.from_confirmation(confirmation)


@checkout_router.delete("/{session_id}", response_model=CheckoutSessionResponse)
async def abandon_checkout(flow: CheckoutFlow = Depends(get_checkout)) -> CheckoutSessionResponse:
    return CheckoutSessionResponse.from_session(unwrap(await flow.abandon()))
