# app/api/deps.py
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.repos.user_repo import UserRepo
from app.services.lock_service import LockService
from app.services.notification_service import NotificationService
from app.services.session_service import AuthorizationService, CurrentUser, SessionContext


def get_session(
    x_user_id: str | None = Header(None),
    x_user_email: str | None = Header(None),
):
    # tozsamosc ustawia gateway auth przed API
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Vui lòng đăng nhập")

    # sesja zyje tyle co request, subskrybenci dostaja wylogowanie na koncu
    session = SessionContext(CurrentUser(id=x_user_id, email=x_user_email))
    try:
        yield session
    finally:
        session.clear()


def get_current_user(session: SessionContext = Depends(get_session)) -> CurrentUser:
    return session.require_user()


def require_admin(
    session: SessionContext = Depends(get_session),
    db: Session = Depends(get_db),
) -> CurrentUser:
    try:
        return AuthorizationService(UserRepo(db)).require_admin(session)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))


def get_lock_service() -> LockService:
    return LockService()


def get_notification_service() -> NotificationService:
    return NotificationService()
