"""Carts persisted through the SQLite provider instead of the in-memory one."""

import pytest
from protean import current_domain

from storefront.cart.cart import Cart, CartLineItem, CartOwner
from storefront.cart.merge import CartMerger
from storefront.cart.store import CartStore
from storefront.domain import storefront
from storefront.utils.db import configure_database, drop_db, setup_db


@pytest.fixture()
def sqlite_carts(tmp_path):
    configure_database(storefront, f"sqlite:///{tmp_path / 'carts.db'}")
    setup_db(storefront)
    yield storefront.repository_for(Cart)
    drop_db(storefront)
    configure_database(storefront, None)


class TestCartRepository:
    def test_missing_cart(self, sqlite_carts):
        assert sqlite_carts.find_for(CartOwner.user("nobody")) is None

    def test_save_and_load(self, sqlite_carts, laptop, mouse):
        cart = Cart.create(CartOwner.user("user-001"))
        cart.add_item(laptop, quantity=2)
        cart.add_item(mouse, variant="black")
        sqlite_carts.add(cart)

        loaded = sqlite_carts.find_for(CartOwner.user("user-001"))

        assert loaded.owner == cart.owner
        assert sorted((str(i.product_id), i.quantity, i.variant) for i in loaded.items) == [
            ("prod-laptop", 2, None),
            ("prod-mouse", 1, "black"),
        ]
        assert loaded.total_price() == cart.total_price()

    def test_save_overwrites(self, sqlite_carts, laptop):
        cart = Cart.create(CartOwner.user("user-001"))
        cart.add_item(laptop)
        sqlite_carts.add(cart)

        cart = sqlite_carts.find_for(CartOwner.user("user-001"))
        cart.clear()
        sqlite_carts.add(cart)

        assert len(sqlite_carts.find_for(CartOwner.user("user-001")).items) == 0

    def test_delete_removes_cart_and_lines(self, sqlite_carts, laptop):
        owner = CartOwner.guest("sess-001")
        cart = Cart.create(owner)
        cart.add_item(laptop)
        sqlite_carts.add(cart)

        assert sqlite_carts.delete_for(owner) is True
        assert sqlite_carts.delete_for(owner) is False
        assert sqlite_carts.find_for(owner) is None
        assert current_domain.repository_for(CartLineItem)._dao.query.all().total == 0


class TestStoreOnSqlite:
    async def test_store_and_merge_survive_reload(self, sqlite_carts, catalogue, guest, user, mouse):
        await CartStore(guest, catalogue).add_item(mouse, quantity=3)

        await CartMerger(catalogue=catalogue).merge(guest, user)

        reloaded = await CartStore(user, catalogue).cart()
        assert reloaded.total_items() == 3
        assert sqlite_carts.find_for(guest) is None
