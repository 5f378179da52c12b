"""Domain events for the Cart aggregate."""

from protean.fields import Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartItemAdded:
    """A product was added to the cart, or an existing line was topped up."""

    __version__ = 1

    cart_key = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant = String(max_length=100)
    quantity = Integer(required=True)


@storefront.event(part_of="Cart")
class CartQuantityUpdated:
    """The quantity of a cart line was changed."""

    __version__ = 1

    cart_key = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="Cart")
class CartItemRemoved:
    """A line was removed from the cart."""

    __version__ = 1

    cart_key = Identifier(required=True)
    item_id = Identifier(required=True)


@storefront.event(part_of="Cart")
class CartCleared:
    """All lines were removed from the cart."""

    __version__ = 1

    cart_key = Identifier(required=True)
    items_removed_count = Integer(required=True)


@storefront.event(part_of="Cart")
class CartsMerged:
    """A guest cart was reconciled into a user's cart at login."""

    __version__ = 1

    cart_key = Identifier(required=True)
    source_cart_key = Identifier(required=True)
    policy = String(max_length=20, required=True)
    items_merged_count = Integer(required=True)
