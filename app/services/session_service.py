# app/services/session_service.py
from dataclasses import dataclass
from typing import Callable

from app.repos.user_repo import UserRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: str | None = None


Listener = Callable[[CurrentUser | None], None]


class NotAuthenticated(PermissionError):
    pass


class SessionContext:
    """
    Jawny kontekst sesji przekazywany do serwisow.
    Subskrybenci dostaja zmiany sesji i funkcje do wypisania sie.
    """

    def __init__(self, user: CurrentUser | None = None):
        self._user = user
        self._listeners: list[Listener] = []

    @property
    def user(self) -> CurrentUser | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def require_user(self) -> CurrentUser:
        if self._user is None:
            raise NotAuthenticated("Vui lòng đăng nhập")
        return self._user

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_user(self, user: CurrentUser | None):
        if user == self._user:
            return
        self._user = user
        for listener in list(self._listeners):
            listener(user)

    def clear(self):
        self.set_user(None)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


class AuthorizationService:
    """Sprawdzenie roli admina po stronie API."""

    def __init__(self, repo: UserRepo):
        self.repo = repo

    def require_admin(self, session: SessionContext) -> CurrentUser:
        user = session.require_user()
        if not self.repo.is_admin(user.id):
            logger.warning(f"User {user.id} denied admin access")
            raise PermissionError("Bạn không có quyền truy cập trang này")
        return user
