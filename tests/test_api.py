import uuid
from decimal import Decimal

import pytest


@pytest.fixture()
def user_id(client):
    resp = client.post("/users", json={"email": "buyer@example.com", "name": "Buyer"})
    assert resp.status_code == 201
    return resp.json()["id"]


@pytest.fixture()
def product_id(client):
    resp = client.post(
        "/products",
        json={"name": "Travel Mug", "sku": "MUG-1", "price": "12.50", "status": "active", "initial_stock": 5},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["slug"] == "travel-mug"
    assert body["inventory"]["available"] == 5
    return body["id"]


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}


class TestUsers:
    def test_same_email_returns_same_user(self, client, user_id):
        again = client.post("/users", json={"email": "buyer@example.com"})
        assert again.json()["id"] == user_id

    def test_unknown_user(self, client):
        resp = client.get(f"/users/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "User not found"}


class TestGuestCheckoutFlow:
    def test_guest_cart_merge_and_order(self, client, guest_store, user_id, product_id):
        #gosc dostaje ciasteczko z sesja przy pierwszym wejsciu
        resp = client.get("/cart")
        assert resp.status_code == 200
        session_id = resp.cookies.get("cart_session_id")
        assert session_id
        assert resp.json()["owner"] == "guest"

        resp = client.post("/cart/items", json={"product_id": product_id, "quantity": 2})
        body = resp.json()
        assert body["session_id"] == session_id
        assert body["item_count"] == 2
        assert Decimal(body["subtotal"]) == Decimal("25.00")

        #logowanie: user_id w query, sesja dalej w ciasteczku
        resp = client.post(f"/cart/merge?user_id={user_id}")
        assert resp.status_code == 200
        merged = resp.json()
        assert (merged["merged"], merged["added"], merged["skipped"]) == (0, 1, 0)
        assert merged["cart"]["owner"] == "user"
        assert merged["cart"]["item_count"] == 2
        assert guest_store.load(session_id) == []

        resp = client.post(f"/orders?user_id={user_id}", json={"payment_method": "card"})
        assert resp.status_code == 201
        order = resp.json()
        assert order["order_number"] == "OR000001"
        assert Decimal(order["total_amount"]) == Decimal("34.99")

        resp = client.get(f"/products/{product_id}/availability")
        assert resp.json()["available"] == 3
        assert resp.json()["stock_level"] == "low_stock"

        resp = client.get(f"/inventory/{product_id}/reconcile")
        assert resp.json()["consistent"] is True
        assert resp.json()["actual_reserved"] == 2

        resp = client.post(f"/orders?user_id={user_id}", json={})
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Cart is empty"}

    def test_order_requires_user(self, client):
        resp = client.post("/orders", json={})
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Authentication required"}

    def test_guest_cannot_exceed_stock(self, client, product_id):
        resp = client.post("/cart/items", json={"product_id": product_id, "quantity": 6})

        assert resp.status_code == 400
        assert resp.json()["detail"].startswith("Insufficient inventory")

    def test_guest_update_to_zero_removes_line(self, client, product_id):
        item_id = client.post("/cart/items", json={"product_id": product_id, "quantity": 1}).json()["items"][0]["id"]

        resp = client.patch(f"/cart/items/{item_id}", json={"quantity": 0})

        assert resp.json()["items"] == []

    def test_guest_discount_needs_login(self, client):
        resp = client.post("/cart/discount", json={"code": "ANY"})
        assert resp.status_code == 401


class TestUserCartApi:
    def test_user_cart_lifecycle(self, client, user_id, product_id):
        resp = client.post(f"/cart/items?user_id={user_id}", json={"product_id": product_id, "quantity": 1})
        cart = resp.json()
        assert cart["owner"] == "user"
        item_id = cart["items"][0]["id"]

        resp = client.patch(f"/cart/items/{item_id}?user_id={user_id}", json={"quantity": 4})
        assert Decimal(resp.json()["subtotal"]) == Decimal("50.00")

        resp = client.delete(f"/cart/items/{item_id}?user_id={user_id}")
        assert resp.json()["items"] == []

    def test_discount_round_trip(self, client, user_id, product_id):
        client.post("/discounts", json={"code": "FIVE", "name": "Five off", "type": "fixed_amount", "value": "5"})
        client.post(f"/cart/items?user_id={user_id}", json={"product_id": product_id, "quantity": 2})

        resp = client.post(f"/discounts/validate?user_id={user_id}", json={"code": "five"})
        assert Decimal(resp.json()["discount_amount"]) == Decimal("5.00")

        resp = client.post(f"/cart/discount?user_id={user_id}", json={"code": "five"})
        cart = resp.json()
        assert cart["discount_code"] == "FIVE"
        assert Decimal(cart["total_amount"]) == Decimal("20.00")

        resp = client.post(f"/cart/discount?user_id={user_id}", json={"code": "NOPE"})
        assert resp.status_code == 400


class TestInventoryApi:
    def test_adjust_and_transactions(self, client, product_id):
        resp = client.post(f"/inventory/{product_id}/adjust", json={"quantity": 3, "type": "in", "notes": "Delivery"})
        assert resp.json()["quantity"] == 8

        resp = client.post(f"/inventory/{product_id}/adjust", json={"quantity": -20})
        assert resp.status_code == 400

        txs = client.get(f"/inventory/transactions?product_id={product_id}").json()
        assert sorted(tx["type"] for tx in txs) == ["in", "in"]

    def test_unknown_product_inventory(self, client):
        assert client.get(f"/inventory/{uuid.uuid4()}").status_code == 404


class TestReviewsApi:
    def test_review_moderation_flow(self, client, user_id, product_id):
        resp = client.post(f"/reviews?user_id={user_id}", json={"product_id": product_id, "rating": 4, "title": "Ok"})
        assert resp.status_code == 201
        review = resp.json()
        assert (review["status"], review["verified_purchase"]) == ("pending", False)

        resp = client.post(f"/reviews?user_id={user_id}", json={"product_id": product_id, "rating": 2})
        assert resp.status_code == 400
        assert resp.json() == {"detail": "You have already reviewed this product"}

        assert client.get(f"/reviews/product/{product_id}").json() == []
        client.patch(f"/reviews/{review['id']}/moderation", json={"status": "approved"})
        assert [r["id"] for r in client.get(f"/reviews/product/{product_id}").json()] == [review["id"]]

        stats = client.get(f"/reviews/product/{product_id}/stats").json()
        assert stats["total_reviews"] == 1
        assert stats["rating_distribution"]["4"] == 1

    def test_review_needs_user(self, client, product_id):
        resp = client.post("/reviews", json={"product_id": product_id, "rating": 5})
        assert resp.status_code == 401

    def test_rating_out_of_range(self, client, user_id, product_id):
        resp = client.post(f"/reviews?user_id={user_id}", json={"product_id": product_id, "rating": 6})
        assert resp.status_code == 422


class TestWishlistApi:
    def test_wishlist_to_cart(self, client, user_id, product_id):
        resp = client.post(f"/wishlist/items?user_id={user_id}", json={"product_id": product_id})
        assert resp.status_code == 201
        assert [i["product_id"] for i in resp.json()["items"]] == [product_id]

        resp = client.post(f"/wishlist/items?user_id={user_id}", json={"product_id": product_id})
        assert resp.status_code == 400

        resp = client.post(f"/wishlist/items/{product_id}/move-to-cart?user_id={user_id}&quantity=2")
        cart = resp.json()
        assert cart["item_count"] == 2
        assert Decimal(cart["subtotal"]) == Decimal("25.00")
        assert client.get(f"/wishlist?user_id={user_id}").json()["items"] == []

    def test_private_wishlist_is_hidden(self, client, user_id):
        wishlist = client.get(f"/wishlist?user_id={user_id}").json()
        assert client.get(f"/wishlist/{wishlist['id']}").status_code == 404

        client.patch(f"/wishlist?user_id={user_id}", json={"is_public": True})
        assert client.get(f"/wishlist/{wishlist['id']}").json()["is_public"] is True
