import json
from datetime import timedelta

import pytest

from storefront.domain.errors import NotFoundError
from storefront.services.guest_cart import GuestCartStore
from storefront.utils.time import now_utc

SESSION = "session-1"


class TestGuestCartStorage:
    def test_missing_cart_is_empty(self, guest_store):
        assert guest_store.load(SESSION) == []
        assert guest_store.item_count(SESSION) == 0

    def test_blob_shape_and_ttl(self, guest_store, redis_client):
        guest_store.add_item(SESSION, "p-1", 2, "4.50")

        raw = json.loads(redis_client.get("guest_cart:session-1"))
        assert set(raw) == {"items", "expiry"}
        item = raw["items"][0]
        assert item["id"].startswith("guest_")
        assert (item["product_id"], item["quantity"], item["unit_price"]) == ("p-1", 2, "4.50")
        assert 29 * 24 * 3600 < redis_client.ttl("guest_cart:session-1") <= 30 * 24 * 3600

    def test_expired_cart_reads_empty_and_is_cleared(self, guest_store, redis_client):
        blob = {
            "items": [{"id": "guest_1", "product_id": "p-1", "quantity": 1, "unit_price": "1.00"}],
            "expiry": (now_utc() - timedelta(minutes=1)).isoformat(),
        }
        redis_client.set("guest_cart:session-1", json.dumps(blob))

        assert guest_store.load(SESSION) == []
        assert redis_client.get("guest_cart:session-1") is None

    def test_unreadable_cart_is_cleared(self, guest_store, redis_client):
        redis_client.set("guest_cart:session-1", "{not json")

        assert guest_store.load(SESSION) == []
        assert redis_client.exists("guest_cart:session-1") == 0

    def test_sessions_are_isolated(self, guest_store):
        guest_store.add_item("a", "p-1", 1, "1.00")
        assert guest_store.load("b") == []


class TestGuestCartItems:
    def test_same_product_accumulates(self, guest_store):
        guest_store.add_item(SESSION, "p-1", 1, "3.00")
        items = guest_store.add_item(SESSION, "p-1", 2, "5.00")

        assert len(items) == 1
        assert items[0]["quantity"] == 3
        assert items[0]["unit_price"] == "3.00"

    def test_counts_and_lookup(self, guest_store):
        guest_store.add_item(SESSION, "p-1", 2, "1.00")
        guest_store.add_item(SESSION, "p-2", 3, "1.00")

        assert guest_store.item_count(SESSION) == 5
        assert guest_store.quantity_of(SESSION, "p-2") == 3
        assert guest_store.contains(SESSION, "p-1")
        assert not guest_store.contains(SESSION, "p-3")

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_non_positive_quantity_removes_item(self, guest_store, quantity):
        items = guest_store.add_item(SESSION, "p-1", 2, "1.00")

        items = guest_store.update_item(SESSION, items[0]["id"], quantity)

        assert items == []
        assert guest_store.load(SESSION) == []

    def test_update_and_remove(self, guest_store):
        guest_store.add_item(SESSION, "p-1", 1, "1.00")
        items = guest_store.add_item(SESSION, "p-2", 1, "1.00")
        first, second = items

        guest_store.update_item(SESSION, first["id"], 7)
        items = guest_store.remove_item(SESSION, second["id"])

        assert [(i["product_id"], i["quantity"]) for i in items] == [("p-1", 7)]

    def test_unknown_item(self, guest_store):
        guest_store.add_item(SESSION, "p-1", 1, "1.00")
        with pytest.raises(NotFoundError):
            guest_store.update_item(SESSION, "guest_missing", 2)
        with pytest.raises(NotFoundError):
            guest_store.remove_item(SESSION, "guest_missing")

    def test_clear(self, guest_store):
        guest_store.add_item(SESSION, "p-1", 1, "1.00")
        guest_store.clear(SESSION)
        assert guest_store.load(SESSION) == []


class TestGuestCartEvents:
    def test_listeners_see_every_change(self, guest_store):
        seen = []
        guest_store.add_listener(lambda session_id, items: seen.append((session_id, len(items))))

        items = guest_store.add_item(SESSION, "p-1", 1, "1.00")
        guest_store.update_item(SESSION, items[0]["id"], 4)
        guest_store.clear(SESSION)

        assert seen == [(SESSION, 1), (SESSION, 1), (SESSION, 0)]

    def test_removed_listener_is_not_called(self, guest_store):
        seen = []

        def listener(session_id, items):
            seen.append(session_id)

        guest_store.add_listener(listener)
        guest_store.remove_listener(listener)
        guest_store.add_item(SESSION, "p-1", 1, "1.00")

        assert seen == []

    def test_change_is_published(self, guest_store, redis_client):
        pubsub = redis_client.pubsub()
        pubsub.subscribe("cart_events")
        pubsub.get_message(timeout=1)

        guest_store.add_item(SESSION, "p-1", 2, "1.00")

        message = pubsub.get_message(timeout=1)
        assert json.loads(message["data"]) == {"type": "cart_changed", "session_id": SESSION, "item_count": 2}

    def test_clear_if_unchanged(self, guest_store):
        guest_store.add_item(SESSION, "p-1", 1, "1.00")
        snapshot = guest_store.snapshot(SESSION)

        guest_store.add_item(SESSION, "p-2", 1, "1.00")
        assert guest_store.clear_if_unchanged(SESSION, snapshot) is False
        assert guest_store.item_count(SESSION) == 2

        assert guest_store.clear_if_unchanged(SESSION, guest_store.snapshot(SESSION)) is True
        assert guest_store.load(SESSION) == []

    def test_new_session_ids_are_unique(self):
        assert GuestCartStore.new_session_id() != GuestCartStore.new_session_id()
