import os
import uuid
from decimal import Decimal

#przed importem storefront, settings czyta env przy imporcie
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import storefront.data.models  # noqa: F401
from storefront.api.deps import get_guest_store
from storefront.data.database import Base, get_db
from storefront.data.models import UserModel
from storefront.domain.schemas import ProductCreate
from storefront.main import app
from storefront.services.catalog_service import CatalogService
from storefront.services.guest_cart import GuestCartStore


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def guest_store(redis_client):
    return GuestCartStore(client=redis_client)


@pytest.fixture()
def client(session_factory, guest_store):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_guest_store] = lambda: guest_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    def _make(email: str | None = None) -> UserModel:
        user = UserModel(email=email or f"{uuid.uuid4().hex[:8]}@example.com", name="Test User")
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture()
def make_product(db):
    def _make(name: str = "Widget", price: str = "10.00", stock: int = 10, status: str = "active", **kw):
        payload = ProductCreate(
            name=name,
            sku=kw.pop("sku", f"SKU-{uuid.uuid4().hex[:8]}"),
            price=Decimal(price),
            initial_stock=stock,
            status=status,
            **kw,
        )
        return CatalogService(db).create_product(payload)

    return _make


class RecordingNotifications:
    def __init__(self):
        self.orders = []
        self.low_stock = []

    def send_order_notification(self, user_id, order_id, order_number):
        self.orders.append((user_id, order_id, order_number))

    def send_low_stock_alert(self, product_id, sku, available, threshold):
        self.low_stock.append((sku, available, threshold))


@pytest.fixture()
def notifications():
    return RecordingNotifications()
