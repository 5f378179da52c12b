"""Integration tests for the cart endpoints."""

from decimal import Decimal


def _add(client, owner="guest/sess-001", **body):
    return client.post(f"/carts/{owner}/items", json=body)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["domain"] == "storefront"
        assert response.json()["status"] == "ok"
        assert response.json()["merge_policy"] == "presence"


class TestCartEndpoints:
    def test_get_empty_cart(self, client):
        response = client.get("/carts/user/user-001")

        assert response.status_code == 200
        data = response.json()
        assert data["key"] == "cart_user:user-001"
        assert data["items"] == []
        assert Decimal(data["total_price"]) == Decimal("0")

    def test_unknown_owner_kind(self, client):
        assert client.get("/carts/admin/x").status_code == 422

    def test_add_item(self, client):
        response = _add(client, product_id="prod-mouse", quantity=2)

        assert response.status_code == 200
        data = response.json()
        assert data["total_items"] == 2
        assert Decimal(data["total_price"]) == Decimal("40")
        assert data["items"][0]["title"] == "Mouse"

    def test_add_above_stock_is_conflict(self, client):
        response = _add(client, product_id="prod-cable", quantity=2)

        assert response.status_code == 409
        assert response.json() == {
            "error": "insufficient_stock",
            "messages": {"quantity": ["Only 1 of 'Cable' available, 2 requested"]},
        }
        assert client.get("/carts/guest/sess-001").json()["items"] == []

    def test_add_unknown_product(self, client):
        response = _add(client, product_id="prod-ghost")

        assert response.status_code == 409
        assert response.json()["error"] == "product_unavailable"

    def test_add_inactive_product(self, client):
        response = _add(client, product_id="prod-retired")
        assert response.json()["error"] == "product_unavailable"

    def test_add_zero_quantity_is_invalid(self, client):
        assert _add(client, product_id="prod-mouse", quantity=0).status_code == 422

    def test_update_quantity(self, client):
        item_id = _add(client, product_id="prod-mouse").json()["items"][0]["id"]

        response = client.put(f"/carts/guest/sess-001/items/{item_id}", json={"new_quantity": 5})

        assert response.status_code == 200
        assert response.json()["items"][0]["quantity"] == 5

    def test_update_unknown_item(self, client):
        response = client.put("/carts/guest/sess-001/items/missing", json={"new_quantity": 2})

        assert response.status_code == 422
        assert response.json()["messages"] == {"item_id": ["Item not found in cart"]}

    def test_remove_item_twice(self, client):
        item_id = _add(client, product_id="prod-mouse").json()["items"][0]["id"]

        assert client.delete(f"/carts/guest/sess-001/items/{item_id}").status_code == 200
        response = client.delete(f"/carts/guest/sess-001/items/{item_id}")

        assert response.status_code == 200
        assert response.json()["items"] == []

    def test_clear_cart(self, client):
        _add(client, product_id="prod-mouse")
        _add(client, product_id="prod-laptop")

        response = client.delete("/carts/guest/sess-001")

        assert response.status_code == 200
        assert response.json()["total_items"] == 0

    def test_verify_cart(self, client, catalogue):
        _add(client, product_id="prod-laptop", quantity=3)
        assert client.post("/carts/guest/sess-001/verify").status_code == 200

        catalogue.set_stock("prod-laptop", 2)
        response = client.post("/carts/guest/sess-001/verify")

        assert response.status_code == 409
        assert response.json()["error"] == "insufficient_stock"


class TestMergeEndpoint:
    def test_guest_cart_moves_to_user(self, client):
        _add(client, product_id="prod-mouse", quantity=2)

        response = client.post("/carts/merge", json={"guest_session_id": "sess-001", "user_id": "user-001"})

        assert response.status_code == 200
        assert response.json()["key"] == "cart_user:user-001"
        assert response.json()["total_items"] == 2
        assert client.get("/carts/guest/sess-001").json()["items"] == []

    def test_existing_user_cart_wins(self, client):
        _add(client, product_id="prod-mouse", quantity=2)
        _add(client, owner="user/user-001", product_id="prod-laptop")

        response = client.post("/carts/merge", json={"guest_session_id": "sess-001", "user_id": "user-001"})

        assert [i["product_id"] for i in response.json()["items"]] == ["prod-laptop"]
