"""Application tests for merging a guest cart into a user cart at login."""

import pytest

from storefront.cart.merge import CartMerger
from storefront.config import MergePolicy


@pytest.fixture()
def merger(catalogue):
    return CartMerger(catalogue=catalogue)


class TestPresenceMerge:
    async def test_user_cart_wins_when_both_exist(self, merger, guest, user, guest_store, user_store, laptop, mouse):
        await guest_store.add_item(mouse, quantity=4)
        await user_store.add_item(laptop, quantity=1)

        result = await merger.merge(guest, user)

        assert result.ok
        assert [(i.product_id, i.quantity) for i in result.value.items] == [("prod-laptop", 1)]
        assert (await user_store.cart()).total_items() == 1

    async def test_guest_record_deleted_when_user_cart_wins(
        self, merger, guest, user, guest_store, user_store, carts, laptop, mouse
    ):
        await guest_store.add_item(mouse, quantity=4)
        await user_store.add_item(laptop)

        await merger.merge(guest, user)

        assert carts.find_for(guest) is None
        assert carts.keys() == [user.storage_key]

    async def test_empty_user_cart_still_wins(self, merger, guest, user, guest_store, user_store, laptop, mouse):
        await guest_store.add_item(mouse, quantity=4)
        await user_store.add_item(laptop)
        await user_store.clear()

        result = await merger.merge(guest, user)

        assert result.value.total_items() == 0

    async def test_guest_cart_transferred_when_user_has_none(self, merger, guest, user, guest_store, carts, mouse):
        await guest_store.add_item(mouse, quantity=2)

        result = await merger.merge(guest, user)

        assert result.value.key == user.storage_key
        assert [(i.product_id, i.quantity) for i in result.value.items] == [("prod-mouse", 2)]
        assert carts.find_for(user).total_items() == 2
        assert carts.find_for(guest) is None

    async def test_no_carts_yields_empty_unsaved_cart(self, merger, guest, user, carts):
        result = await merger.merge(guest, user)

        assert len(result.value.items) == 0
        assert result.value.key == user.storage_key
        assert carts.keys() == []

    async def test_second_merge_is_a_noop(self, merger, guest, user, guest_store, mouse):
        await guest_store.add_item(mouse, quantity=2)

        await merger.merge(guest, user)
        again = await merger.merge(guest, user)

        assert again.value.total_items() == 2

    async def test_owners_must_be_guest_then_user(self, merger, guest, user):
        with pytest.raises(ValueError):
            await merger.merge(user, guest)


class TestUnionMerge:
    @pytest.fixture()
    def merger(self, catalogue):
        return CartMerger(catalogue=catalogue, policy=MergePolicy.UNION)

    async def test_union_sums_lines_and_adds_new_ones(
        self, merger, guest, user, guest_store, user_store, carts, laptop, mouse
    ):
        await guest_store.add_item(laptop, quantity=2)
        await guest_store.add_item(mouse, quantity=1)
        await user_store.add_item(laptop, quantity=1)

        result = await merger.merge(guest, user)

        quantities = {i.product_id: i.quantity for i in result.value.items}
        assert quantities == {"prod-laptop": 3, "prod-mouse": 1}
        assert carts.find_for(guest) is None
        assert carts.find_for(user).total_items() == 4

    async def test_union_drops_lines_that_would_exceed_stock(
        self, merger, guest, user, guest_store, user_store, laptop, mouse
    ):
        await guest_store.add_item(laptop, quantity=3)
        await guest_store.add_item(mouse, quantity=1)
        await user_store.add_item(laptop, quantity=3)

        result = await merger.merge(guest, user)

        quantities = {i.product_id: i.quantity for i in result.value.items}
        assert quantities == {"prod-laptop": 3, "prod-mouse": 1}

    async def test_guest_cart_adopted_when_user_has_none(self, merger, guest, user, guest_store, carts, mouse):
        await guest_store.add_item(mouse, quantity=2)

        result = await merger.merge(guest, user)

        assert result.value.total_items() == 2
        assert carts.keys() == [user.storage_key]

    def test_union_needs_a_catalogue(self):
        with pytest.raises(ValueError):
            CartMerger(policy=MergePolicy.UNION)
