# app/services/order_service.py
import uuid
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.order import OrderModel, ORDER_STATUSES
from app.data.models.order_item import OrderItemModel
from app.repos.cart_repo import CartRepo
from app.repos.order_repo import OrderRepo
from app.services.lock_service import LockService
from app.services.notification_service import NotificationService
from app.utils.settings import CHECKOUT_TIMEOUT_SECONDS
from app.utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_SHIPPING_FIELDS = ("customer_name", "phone", "address", "city")
OPTIONAL_SHIPPING_FIELDS = ("district", "ward", "notes")


class CheckoutInProgress(RuntimeError):
    pass


def order_to_dict(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "user_id": order.user_id,
        "status": order.status,
        "total": order.total,
        "customer_name": order.customer_name,
        "phone": order.phone,
        "address": order.address,
        "city": order.city,
        "district": order.district,
        "ward": order.ward,
        "notes": order.notes,
        "created_at": order.created_at,
        "items": [
            {
                "id": i.id,
                "product_id": i.product_id,
                "name": i.product.name if i.product else "Unknown",
                "quantity": i.quantity,
                "price": i.price,
            }
            for i in order.items
        ],
    }


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.
    Checkout (koszyk -> zamowienie) oraz odczyt i zmiana statusu.
    """

    def __init__(
        self,
        db: Session,
        notification_service: NotificationService | None = None,
        lock_service: LockService | None = None,
        lock_ttl: int = CHECKOUT_TIMEOUT_SECONDS,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.notification_service = notification_service or NotificationService()
        self.lock_service = lock_service or LockService()
        self.lock_ttl = lock_ttl

    def checkout(
        self,
        user_id: str,
        shipping: Dict[str, Any],
        idempotency_key: str | None = None,
    ) -> tuple[Dict[str, Any], bool]:
        """
        Use Case: Złożenie zamówienia z koszyka.

        1. Snapshot koszyka z aktualnymi cenami, total
        2. Zamówienie w stanie pending
        3. Pozycje zamówienia z cenami ze snapshotu
        4. Czyszczenie koszyka
        5. Powiadomienie (best-effort, po commicie)

        Kroki 2-4 to jedna transakcja. Zwraca (zamowienie, created);
        created=False gdy klucz idempotencji wskazuje istniejace zamowienie.
        """
        shipping = self._validate_shipping(shipping)
        key = idempotency_key or uuid.uuid4().hex

        existing = self.repo.get_by_idempotency_key(user_id, key)
        if existing:
            logger.info(f"Checkout {key} for user {user_id} already placed as order {existing.id}")
            return order_to_dict(existing), False

        token = uuid.uuid4().hex
        if not self.lock_service.acquire_checkout_lock(user_id, token, self.lock_ttl):
            raise CheckoutInProgress("Đơn hàng đang được xử lý")

        try:
            order, created = self._place_order(user_id, shipping, key)
        finally:
            self._release_lock(user_id, token)

        if created:
            self._notify(order)

        return order_to_dict(order), created

    def _validate_shipping(self, shipping: Dict[str, Any]) -> Dict[str, Any]:
        cleaned = {}
        for field in REQUIRED_SHIPPING_FIELDS:
            value = (shipping.get(field) or "").strip()
            if not value:
                raise ValueError("Vui lòng điền đầy đủ thông tin giao hàng")
            cleaned[field] = value
        for field in OPTIONAL_SHIPPING_FIELDS:
            value = (shipping.get(field) or "").strip()
            cleaned[field] = value or None
        return cleaned

    def _place_order(self, user_id: str, shipping: Dict[str, Any], key: str) -> tuple[OrderModel, bool]:
        lines = self.cart_repo.get_cart_items(user_id)
        if not lines:
            raise ValueError("Giỏ hàng của bạn đang trống")

        # snapshot cen, total liczony raz i nie przeliczany pozniej
        snapshot = [
            (line.product_id, line.quantity, Decimal(line.product.price))
            for line in lines
        ]
        total = sum((qty * price for _, qty, price in snapshot), Decimal("0.00"))

        try:
            order = self.repo.create_order(
                OrderModel(
                    user_id=user_id,
                    status="pending",
                    total=total,
                    idempotency_key=key,
                    **shipping,
                )
            )

            self.repo.add_order_items(
                [
                    OrderItemModel(
                        order=order,
                        order_id=order.id,
                        product_id=product_id,
                        quantity=qty,
                        price=price,
                    )
                    for product_id, qty, price in snapshot
                ]
            )

            removed = self.cart_repo.clear_cart(user_id)
            self.repo.commit()

        except IntegrityError:
            # rownolegly duplikat wygral wyscig na unique (user_id, idempotency_key)
            self.repo.rollback()
            winner = self.repo.get_by_idempotency_key(user_id, key)
            if winner is None:
                raise
            logger.info(f"Checkout {key} for user {user_id} collapsed into order {winner.id}")
            return winner, False

        except Exception as e:
            self.repo.rollback()
            logger.error(f"Checkout for user {user_id} rolled back: {e}")
            raise

        logger.info(
            f"Order {order.id} created for user {user_id}: "
            f"{len(snapshot)} items, total {total}, {removed} cart lines cleared"
        )
        return order, True

    def _release_lock(self, user_id: str, token: str):
        try:
            self.lock_service.release_checkout_lock(user_id, token)
        except Exception as e:
            # lock i tak wygasnie po TTL
            logger.warning(f"Failed to release checkout lock for user {user_id}: {e}")

    def _notify(self, order: OrderModel):
        payload = {
            "order_id": order.id,
            "customer_name": order.customer_name,
            "total": float(order.total),
            "items": [
                {
                    "name": i.product.name if i.product else "Unknown",
                    "quantity": i.quantity,
                    "price": float(i.price),
                }
                for i in order.items
            ],
        }
        try:
            self.notification_service.send_order_notification(payload)
        except Exception as e:
            logger.warning(f"Order {order.id} notification not sent: {e}")

    def get_order(self, order_id: int, user_id: str) -> Dict[str, Any]:
        """
        Use Case: Pobranie zamówienia (Query).
        """
        order = self.repo.get_order(order_id)

        if not order:
            raise LookupError("Không tìm thấy đơn hàng")

        if order.user_id != user_id:
            raise PermissionError("Brak dostępu do zamówienia")

        return order_to_dict(order)

    def list_orders(self, user_id: str) -> list[Dict[str, Any]]:
        return [order_to_dict(o) for o in self.repo.list_orders(user_id)]

    def list_all_orders(self) -> list[Dict[str, Any]]:
        return [order_to_dict(o) for o in self.repo.list_orders()]

    def update_status(self, order_id: int, status: str) -> Dict[str, Any]:
        if status not in ORDER_STATUSES:
            raise ValueError(f"Trạng thái không hợp lệ: {status}")

        order = self.repo.update_order_status(order_id, status)
        if not order:
            raise LookupError("Không tìm thấy đơn hàng")

        logger.info(f"Order {order_id} status -> {status}")
        return order_to_dict(order)
