# app/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_lock_service, get_notification_service
from app.data.database import get_db
from app.domain.schemas import CheckoutIn, OrderOut
from app.services.lock_service import LockService
from app.services.notification_service import NotificationService
from app.services.order_service import CheckoutInProgress, OrderService
from app.services.session_service import CurrentUser
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["orders"])


@router.post("/checkout", response_model=OrderOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    response: Response,
    idempotency_key: str | None = Header(None, max_length=64),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    Składa zamówienie z koszyka użytkownika.
    Ten sam Idempotency-Key zwraca istniejące zamówienie (200).
    """
    svc = OrderService(db, notification_service=notification_service, lock_service=lock_service)
    shipping = payload.model_dump(exclude={"idempotency_key"})
    try:
        order, created = svc.checkout(
            user.id,
            shipping,
            idempotency_key=idempotency_key or payload.idempotency_key,
        )
    except CheckoutInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (SQLAlchemyError, RedisError) as e:
        logger.error(f"Checkout failed for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Không thể đặt hàng")

    if not created:
        response.status_code = 200
    return order


@router.get("/orders", response_model=List[OrderOut])
def list_orders(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return OrderService(db).list_orders(user.id)


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Pobiera szczegóły zamówienia.
    """
    svc = OrderService(db)
    try:
        return svc.get_order(order_id, user.id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
