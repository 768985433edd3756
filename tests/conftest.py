import os

os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_lock_service, get_notification_service
from app.data.database import Base, SessionLocal, engine, get_db, init_db
from app.data.models import CartItemModel, ProductModel, ProfileModel, UserRoleModel
from app.main import create_app


class FakeLockService:
    def __init__(self):
        self.locks = {}

    def acquire_checkout_lock(self, user_id, token, ttl):
        if user_id in self.locks:
            return False
        self.locks[user_id] = token
        return True

    def release_checkout_lock(self, user_id, token):
        if self.locks.get(user_id) == token:
            del self.locks[user_id]
            return True
        return False


class FakeNotificationService:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send_order_notification(self, payload):
        if self.fail:
            raise ConnectionError("broker unavailable")
        self.sent.append(payload)


@pytest.fixture()
def db():
    init_db()
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def lock_service():
    return FakeLockService()


@pytest.fixture()
def notifier():
    return FakeNotificationService()


@pytest.fixture()
def client(db, lock_service, notifier):
    app = create_app()
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_notification_service] = lambda: notifier
    return TestClient(app)


@pytest.fixture()
def products(db):
    a = ProductModel(name="A", category="phone", price=Decimal("100000"), stock=10)
    b = ProductModel(name="B", category="laptop", price=Decimal("50000"), stock=5)
    db.add_all([a, b])
    db.commit()
    return a, b


@pytest.fixture()
def admin(db):
    db.add(ProfileModel(id="admin-1", email="admin@shop.vn", full_name="Admin"))
    db.add(UserRoleModel(user_id="admin-1", role="admin"))
    db.commit()
    return "admin-1"


def add_to_cart(db, user_id, product, quantity):
    item = CartItemModel(user_id=user_id, product_id=product.id, quantity=quantity)
    db.add(item)
    db.commit()
    return item


def auth(user_id="user-1", **extra):
    return {"X-User-Id": user_id, **extra}


SHIPPING = {
    "customer_name": "Nguyễn Văn A",
    "phone": "0912345678",
    "address": "12 Lê Lợi",
    "city": "TP. Hồ Chí Minh",
    "district": "Quận 1",
}
