"""Cart repository: one record per owner key.

A missing record (``find_for`` returning ``None``) is distinct from an empty
cart record; the login merge depends on that distinction.
"""

from protean.utils.query import Q

from storefront.cart.cart import Cart, CartLineItem, CartOwner
from storefront.domain import storefront


@storefront.repository(part_of=Cart)
class CartRepository:
    def find_for(self, owner: CartOwner) -> Cart | None:
        return self.get_or_none(owner.storage_key)

    def delete_for(self, owner: CartOwner) -> bool:
        """Hard delete the owner's cart and its lines without loading them.

        Returns whether a cart record existed.
        """
        self._domain.repository_for(CartLineItem)._dao._delete_all(Q(cart_key=owner.storage_key))
        return self._dao._delete_all(Q(key=owner.storage_key)) > 0

    def keys(self) -> list[str]:
        return [cart.key for cart in self._dao.query.all().items]
