"""Checkout: cart snapshot -> order -> items -> empty cart, in one transaction."""

from decimal import Decimal

import pytest
import redis
from sqlalchemy.exc import SQLAlchemyError

from app.data.models import CartItemModel, OrderItemModel, OrderModel
from app.repos.order_repo import OrderRepo
from app.services.order_service import CheckoutInProgress, OrderService
from conftest import SHIPPING, add_to_cart, auth


@pytest.fixture()
def service(db, lock_service, notifier):
    return OrderService(db, notification_service=notifier, lock_service=lock_service)


@pytest.fixture()
def cart(db, products):
    a, b = products
    add_to_cart(db, "user-1", a, 2)
    add_to_cart(db, "user-1", b, 1)
    return a, b


def _cart_lines(db, user_id="user-1"):
    return db.query(CartItemModel).filter(CartItemModel.user_id == user_id).count()


class TestPlaceOrder:
    def test_total_is_sum_of_quantity_times_price(self, service, cart):
        order, created = service.checkout("user-1", SHIPPING, "key-1")

        assert created is True
        assert order["total"] == Decimal("250000")
        assert order["status"] == "pending"
        assert sorted((i["name"], i["quantity"], i["price"]) for i in order["items"]) == [
            ("A", 2, Decimal("100000")),
            ("B", 1, Decimal("50000")),
        ]

    def test_one_order_and_one_item_per_line(self, db, service, cart):
        service.checkout("user-1", SHIPPING, "key-1")

        assert db.query(OrderModel).count() == 1
        assert db.query(OrderItemModel).count() == 2
        assert _cart_lines(db) == 0

    def test_other_users_cart_untouched(self, db, service, cart):
        a, _ = cart
        add_to_cart(db, "user-2", a, 3)

        service.checkout("user-1", SHIPPING, "key-1")

        assert _cart_lines(db, "user-2") == 1

    def test_shipping_fields_are_stored(self, db, service, cart):
        order, _ = service.checkout("user-1", {**SHIPPING, "notes": "  "}, "key-1")

        stored = db.get(OrderModel, order["id"])
        assert stored.customer_name == "Nguyễn Văn A"
        assert stored.district == "Quận 1"
        assert stored.ward is None
        assert stored.notes is None
        assert stored.idempotency_key == "key-1"

    def test_total_does_not_follow_later_price_changes(self, db, service, cart):
        a, _ = cart
        order, _ = service.checkout("user-1", SHIPPING, "key-1")

        a.price = Decimal("999000")
        db.commit()
        db.expire_all()

        again = service.get_order(order["id"], "user-1")
        assert again["total"] == Decimal("250000")
        assert {i["name"]: i["price"] for i in again["items"]}["A"] == Decimal("100000")

    def test_generated_key_when_none_given(self, db, service, cart):
        order, created = service.checkout("user-1", SHIPPING)

        assert created is True
        assert db.get(OrderModel, order["id"]).idempotency_key


class TestValidation:
    def test_empty_cart_is_rejected(self, db, service, products):
        with pytest.raises(ValueError, match="trống"):
            service.checkout("user-1", SHIPPING, "key-1")

        assert db.query(OrderModel).count() == 0

    @pytest.mark.parametrize("field", ["customer_name", "phone", "address", "city"])
    def test_missing_required_shipping_field(self, db, service, cart, field):
        with pytest.raises(ValueError):
            service.checkout("user-1", {**SHIPPING, field: ""}, "key-1")

        assert db.query(OrderModel).count() == 0
        assert _cart_lines(db) == 2


class TestIdempotency:
    def test_same_key_twice_yields_one_order(self, db, service, cart):
        first, created_first = service.checkout("user-1", SHIPPING, "key-1")
        second, created_second = service.checkout("user-1", SHIPPING, "key-1")

        assert created_first is True
        assert created_second is False
        assert first["id"] == second["id"]
        assert db.query(OrderModel).count() == 1

    def test_duplicate_losing_the_race_returns_winner(self, db, service, cart, monkeypatch):
        winner = OrderModel(
            user_id="user-1",
            status="pending",
            total=Decimal("1"),
            customer_name="x",
            phone="x",
            address="x",
            city="x",
            idempotency_key="key-1",
        )
        db.add(winner)
        db.commit()

        original = OrderRepo.get_by_idempotency_key
        calls = {"n": 0}

        def first_lookup_misses(self, user_id, key):
            calls["n"] += 1
            if calls["n"] == 1:
                return None
            return original(self, user_id, key)

        monkeypatch.setattr(OrderRepo, "get_by_idempotency_key", first_lookup_misses)

        order, created = service.checkout("user-1", SHIPPING, "key-1")

        assert created is False
        assert order["id"] == winner.id
        assert db.query(OrderModel).count() == 1
        assert _cart_lines(db) == 2

    def test_same_key_for_different_users_is_independent(self, db, service, cart):
        a, _ = cart
        add_to_cart(db, "user-2", a, 1)

        service.checkout("user-1", SHIPPING, "key-1")
        service.checkout("user-2", SHIPPING, "key-1")

        assert db.query(OrderModel).count() == 2


class TestFailures:
    def test_failure_at_item_step_leaves_no_order(self, db, service, cart, lock_service, monkeypatch):
        def broken(self, items):
            raise SQLAlchemyError("insert into order_items failed")

        monkeypatch.setattr(OrderRepo, "add_order_items", broken)

        with pytest.raises(SQLAlchemyError):
            service.checkout("user-1", SHIPPING, "key-1")

        assert db.query(OrderModel).count() == 0
        assert db.query(OrderItemModel).count() == 0
        assert _cart_lines(db) == 2
        assert lock_service.locks == {}

    def test_in_flight_checkout_is_rejected(self, db, service, cart, lock_service):
        lock_service.locks["user-1"] = "other-submission"

        with pytest.raises(CheckoutInProgress):
            service.checkout("user-1", SHIPPING, "key-1")

        assert db.query(OrderModel).count() == 0
        assert lock_service.locks == {"user-1": "other-submission"}

    def test_notification_failure_does_not_fail_checkout(self, db, service, cart, notifier):
        notifier.fail = True

        order, created = service.checkout("user-1", SHIPPING, "key-1")

        assert created is True
        assert db.get(OrderModel, order["id"]) is not None


class TestNotification:
    def test_payload_sent_after_commit(self, service, cart, notifier):
        order, _ = service.checkout("user-1", SHIPPING, "key-1")

        assert len(notifier.sent) == 1
        payload = notifier.sent[0]
        assert payload["order_id"] == order["id"]
        assert payload["customer_name"] == "Nguyễn Văn A"
        assert payload["total"] == 250000.0
        assert sorted(i["name"] for i in payload["items"]) == ["A", "B"]

    def test_duplicate_submission_does_not_notify_twice(self, service, cart, notifier):
        service.checkout("user-1", SHIPPING, "key-1")
        service.checkout("user-1", SHIPPING, "key-1")

        assert len(notifier.sent) == 1


class TestCheckoutApi:
    def test_scenario_two_products(self, client, db, cart):
        resp = client.post("/checkout", json=SHIPPING, headers=auth(**{"Idempotency-Key": "k1"}))

        assert resp.status_code == 201
        body = resp.json()
        assert Decimal(body["total"]) == Decimal("250000")
        assert len(body["items"]) == 2
        assert client.get("/cart/", headers=auth()).json()["items"] == []

    def test_repeated_request_returns_200_with_same_order(self, client, db, cart):
        headers = auth(**{"Idempotency-Key": "k1"})
        first = client.post("/checkout", json=SHIPPING, headers=headers)
        second = client.post("/checkout", json=SHIPPING, headers=headers)

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["id"] == second.json()["id"]
        assert db.query(OrderModel).count() == 1

    def test_key_in_body(self, client, db, cart):
        body = {**SHIPPING, "idempotency_key": "body-key"}
        client.post("/checkout", json=body, headers=auth())
        resp = client.post("/checkout", json=body, headers=auth())

        assert resp.status_code == 200
        assert db.query(OrderModel).count() == 1

    def test_empty_cart(self, client, db, products):
        resp = client.post("/checkout", json=SHIPPING, headers=auth())

        assert resp.status_code == 400
        assert db.query(OrderModel).count() == 0

    def test_missing_field_is_422(self, client, db, cart):
        resp = client.post("/checkout", json={**SHIPPING, "city": "   "}, headers=auth())

        assert resp.status_code == 422
        assert db.query(OrderModel).count() == 0

    def test_in_flight_is_409(self, client, cart, lock_service):
        lock_service.locks["user-1"] = "busy"

        resp = client.post("/checkout", json=SHIPPING, headers=auth())

        assert resp.status_code == 409

    def test_store_failure_is_500_and_cart_kept(self, client, db, cart, monkeypatch):
        def broken(self, items):
            raise SQLAlchemyError("boom")

        monkeypatch.setattr(OrderRepo, "add_order_items", broken)

        resp = client.post("/checkout", json=SHIPPING, headers=auth())

        assert resp.status_code == 500
        assert resp.json()["detail"] == "Không thể đặt hàng"
        assert db.query(OrderModel).count() == 0
        assert _cart_lines(db) == 2

    def test_lock_store_down_is_500_and_cart_kept(self, client, db, cart, lock_service, monkeypatch):
        def unreachable(user_id, token, ttl):
            raise redis.ConnectionError("redis down")

        monkeypatch.setattr(lock_service, "acquire_checkout_lock", unreachable)

        resp = client.post("/checkout", json=SHIPPING, headers=auth())

        assert resp.status_code == 500
        assert resp.json()["detail"] == "Không thể đặt hàng"
        assert db.query(OrderModel).count() == 0
        assert _cart_lines(db) == 2

    def test_requires_identity(self, client, cart):
        resp = client.post("/checkout", json=SHIPPING)

        assert resp.status_code == 401
