# storefront/services/guest_cart.py
import json
import time
import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, List

import redis
from redis.exceptions import WatchError

from storefront.domain.errors import NotFoundError
from storefront.utils.logging import get_logger
from storefront.utils.retry import redis_retry
from storefront.utils.settings import (
    REDIS_URL,
    GUEST_CART_TTL_DAYS,
    GUEST_CART_KEY_PREFIX,
    CART_EVENTS_CHANNEL,
)
from storefront.utils.time import now_utc, as_utc

logger = get_logger(__name__)

#callback(session_id, items) wolany po kazdej zmianie koszyka goscia
CartListener = Callable[[str, List[dict]], None]


class GuestCartStore:
    """
    Koszyk goscia (przed zalogowaniem), jeden blob JSON na sesje:

        guest_cart:{session_id} -> {"items": [...], "expiry": "<ISO>"}

    -kazda zmiana przepisuje caly blob i przedluza waznosc o 30 dni
    -przeterminowany albo uszkodzony blob jest kasowany i traktowany jak pusty
    -po zmianie idzie "cart changed" na kanal pub/sub i do listenerow w procesie
    """

    def __init__(self, client: redis.Redis | None = None, url: str | None = None, ttl_days: int = GUEST_CART_TTL_DAYS):
        self.redis = client or redis.Redis.from_url(url or REDIS_URL, decode_responses=True)
        self.ttl = timedelta(days=ttl_days)
        self._listeners: list[CartListener] = []

    @staticmethod
    def new_session_id() -> str:
        return uuid.uuid4().hex

    @staticmethod
    def key(session_id: str) -> str:
        return f"{GUEST_CART_KEY_PREFIX}:{session_id}"

    # ---------- listenery ----------
    def add_listener(self, callback: CartListener):
        self._listeners.append(callback)

    def remove_listener(self, callback: CartListener):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self, session_id: str, items: list[dict]):
        event = {
            "type": "cart_changed",
            "session_id": session_id,
            "item_count": sum(i["quantity"] for i in items),
        }
        try:
            self.redis.publish(CART_EVENTS_CHANNEL, json.dumps(event))
        except redis.RedisError as e:
            #zmiana juz zapisana, brak powiadomienia nie cofa jej
            logger.warning(f"Failed to publish cart event for session {session_id}: {e}")
        for callback in list(self._listeners):
            callback(session_id, items)

    # ---------- odczyt ----------
    @redis_retry()
    def snapshot(self, session_id: str) -> str | None:
        """Surowy blob, do porownania przy czyszczeniu po merge."""
        return self.redis.get(self.key(session_id))

    def load(self, session_id: str) -> list[dict]:
        raw = self.snapshot(session_id)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
            expiry = as_utc(datetime.fromisoformat(data["expiry"]))
            items = list(data["items"])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Unreadable guest cart for session {session_id}, clearing: {e}")
            self._delete(session_id)
            return []

        if expiry < now_utc():
            logger.info(f"Guest cart for session {session_id} expired at {expiry.isoformat()}, clearing")
            self._delete(session_id)
            return []
        return items

    def item_count(self, session_id: str) -> int:
        return sum(item["quantity"] for item in self.load(session_id))

    def quantity_of(self, session_id: str, product_id) -> int:
        for item in self.load(session_id):
            if item["product_id"] == str(product_id):
                return item["quantity"]
        return 0

    def contains(self, session_id: str, product_id) -> bool:
        return self.quantity_of(session_id, product_id) > 0

    # ---------- zapis ----------
    @redis_retry()
    def _write(self, session_id: str, items: list[dict]):
        blob = {"items": items, "expiry": (now_utc() + self.ttl).isoformat()}
        self.redis.set(self.key(session_id), json.dumps(blob), ex=int(self.ttl.total_seconds()))

    @redis_retry()
    def _delete(self, session_id: str):
        self.redis.delete(self.key(session_id))

    def _save(self, session_id: str, items: list[dict]) -> list[dict]:
        if items:
            self._write(session_id, items)
        else:
            self._delete(session_id)
        self._notify(session_id, items)
        return items

    def add_item(self, session_id: str, product_id, quantity: int, unit_price) -> list[dict]:
        items = self.load(session_id)
        stamp = now_utc().isoformat()
        for item in items:
            if item["product_id"] == str(product_id):
                #cena zostaje z pierwszego dodania
                item["quantity"] += quantity
                item["updated_at"] = stamp
                break
        else:
            items.append(
                {
                    "id": f"guest_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}",
                    "product_id": str(product_id),
                    "quantity": quantity,
                    "unit_price": str(Decimal(str(unit_price))),
                    "created_at": stamp,
                    "updated_at": stamp,
                }
            )
        logger.info(f"Guest cart {session_id}: added {quantity} x {product_id}")
        return self._save(session_id, items)

    def update_item(self, session_id: str, item_id: str, quantity: int) -> list[dict]:
        if quantity <= 0:
            return self.remove_item(session_id, item_id)
        items = self.load(session_id)
        for item in items:
            if item["id"] == item_id:
                item["quantity"] = quantity
                item["updated_at"] = now_utc().isoformat()
                break
        else:
            raise NotFoundError("Cart item not found")
        return self._save(session_id, items)

    def remove_item(self, session_id: str, item_id: str) -> list[dict]:
        current = self.load(session_id)
        items = [i for i in current if i["id"] != item_id]
        if len(items) == len(current):
            raise NotFoundError("Cart item not found")
        return self._save(session_id, items)

    def clear(self, session_id: str):
        self._delete(session_id)
        self._notify(session_id, [])

    @redis_retry()
    def clear_if_unchanged(self, session_id: str, snapshot: str | None) -> bool:
        """
        Kasuje blob tylko jesli nadal jest taki jak `snapshot` (WATCH/MULTI).
        Zwraca False gdy w miedzyczasie inna karta dopisala cos do koszyka.
        """
        key = self.key(session_id)
        with self.redis.pipeline() as pipe:
            try:
                pipe.watch(key)
                if pipe.get(key) != snapshot:
                    pipe.unwatch()
                    return False
                pipe.multi()
                pipe.delete(key)
                pipe.execute()
            except WatchError:
                return False
        self._notify(session_id, [])
        return True
