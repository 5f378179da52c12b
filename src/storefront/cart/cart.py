"""Cart aggregate: the line items held for one owner identity.

A cart belongs to exactly one owner: a guest session or an authenticated user.
Its identity is the owner's storage key, so there is at most one cart per
owner. Line items carry a snapshot of the product title and effective price
taken when they were added, so later catalogue price changes never reprice
what is already in the cart. Stock, on the other hand, is always checked
against the live product at the moment of the mutation.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String
from protean.fields import Decimal as DecimalField
from pydantic import BaseModel, ConfigDict, Field

from storefront.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from storefront.cart.stock import StockGuard
from storefront.catalogue import Product
from storefront.config import settings
from storefront.domain import storefront
from storefront.exceptions import InsufficientStock, ProductUnavailable

USER_CART_KEY = "cart_user"


class OwnerKind(Enum):
    GUEST = "guest"
    USER = "user"


class CartOwner(BaseModel):
    """Either a guest session or a user, never both."""

    model_config = ConfigDict(frozen=True)

    kind: OwnerKind
    identity: str = Field(min_length=1)

    @classmethod
    def guest(cls, session_id: str) -> "CartOwner":
        return cls(kind=OwnerKind.GUEST, identity=session_id)

    @classmethod
    def user(cls, user_id: str) -> "CartOwner":
        return cls(kind=OwnerKind.USER, identity=user_id)

    @property
    def is_guest(self) -> bool:
        return self.kind == OwnerKind.GUEST

    @property
    def storage_key(self) -> str:
        # Guest keys live under the sentinel namespace so they can never
        # collide with a user's key.
        prefix = settings.guest_cart_key if self.is_guest else USER_CART_KEY
        return f"{prefix}:{self.identity}"


@storefront.entity(part_of="Cart")
class CartLineItem:
    product_id = Identifier(required=True)
    title = String(max_length=255, required=True, sanitize=False)
    unit_price = DecimalField(required=True, min_value=0, precision=12, scale=2)
    quantity = Integer(required=True, min_value=1)
    variant = String(max_length=100)
    added_at = DateTime()

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def copy_line(self, quantity: int | None = None) -> "CartLineItem":
        """Unattached copy of this line for another cart, with a fresh id."""
        return CartLineItem(
            product_id=self.product_id,
            title=self.title,
            unit_price=self.unit_price,
            quantity=quantity if quantity is not None else self.quantity,
            variant=self.variant,
            added_at=self.added_at,
        )


@storefront.aggregate
class Cart:
    key = Identifier(identifier=True)
    owner_kind = String(max_length=10, required=True, choices=OwnerKind)
    owner_identity = String(max_length=255, required=True)
    items = HasMany(CartLineItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def one_line_per_product_variant(self):
        lines = [(str(i.product_id), i.variant) for i in self.items]
        if len(lines) != len(set(lines)):
            raise ValidationError({"items": ["A product variant can only appear on one line"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, owner: CartOwner) -> "Cart":
        now = datetime.now(UTC)
        return cls(
            key=owner.storage_key,
            owner_kind=owner.kind.value,
            owner_identity=owner.identity,
            created_at=now,
            updated_at=now,
        )

    @property
    def owner(self) -> CartOwner:
        return CartOwner(kind=OwnerKind(self.owner_kind), identity=self.owner_identity)

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    def find_item(self, product_id: str, variant: str | None = None) -> CartLineItem | None:
        return next(
            (i for i in self.items if str(i.product_id) == str(product_id) and i.variant == variant),
            None,
        )

    def get_item(self, item_id: str) -> CartLineItem | None:
        return next((i for i in self.items if str(i.id) == str(item_id)), None)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product: Product, quantity: int = 1, variant: str | None = None, guard: StockGuard | None = None):
        """Add a product to the cart, or top up the line with the same variant.

        ``product`` must be the live catalogue record. The whole operation is
        rejected when the resulting quantity would exceed its stock; nothing is
        partially added.
        """
        guard = guard or StockGuard()

        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if not product.is_active:
            raise ProductUnavailable({"product_id": [f"Product '{product.id}' not found or inactive"]})

        existing = self.find_item(product.id, variant)
        requested = existing.quantity + quantity if existing else quantity

        decision = guard.can_set_quantity(product, requested)
        if not decision.allowed:
            raise InsufficientStock({"quantity": [decision.reason]})

        now = datetime.now(UTC)
        if existing:
            existing.quantity = requested
            item = existing
        else:
            item = CartLineItem(
                product_id=product.id,
                title=product.title,
                unit_price=product.effective_price,
                quantity=quantity,
                variant=variant,
                added_at=now,
            )
            self.add_items(item)

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                cart_key=self.key,
                item_id=str(item.id),
                product_id=product.id,
                variant=variant,
                quantity=quantity,
            )
        )
        return item

    def update_item_quantity(self, item_id: str, new_quantity: int, product: Product, guard: StockGuard | None = None):
        """Set a line's quantity, checked against the live ``product``.

        A rejected update leaves the previous quantity in place.
        """
        guard = guard or StockGuard()

        item = self.get_item(item_id)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        if new_quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        decision = guard.can_set_quantity(product, new_quantity)
        if not decision.allowed:
            raise InsufficientStock({"quantity": [decision.reason]})

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_key=self.key,
                item_id=str(item.id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )
        return item

    def remove_item(self, item_id: str) -> bool:
        """Remove a line. Removing an absent line is a no-op."""
        item = self.get_item(item_id)
        if item is None:
            return False

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemRemoved(cart_key=self.key, item_id=str(item.id)))
        return True

    def clear(self):
        removed = list(self.items)
        for item in removed:
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(cart_key=self.key, items_removed_count=len(removed)))

    # -------------------------------------------------------------------
    # Ownership transfer
    # -------------------------------------------------------------------
    def transfer_to(self, owner: CartOwner) -> "Cart":
        """Return a new cart owned by ``owner`` holding the same lines."""
        cart = Cart.create(owner)
        cart.created_at = self.created_at
        for item in self.items:
            cart.add_items(item.copy_line())
        return cart

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    def total_price(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))
