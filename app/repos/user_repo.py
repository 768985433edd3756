from sqlalchemy import select
from sqlalchemy.orm import Session

from app.data.models.profile import ProfileModel, UserRoleModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def is_admin(self, user_id: str) -> bool:
        stmt = select(UserRoleModel.id).where(
            UserRoleModel.user_id == user_id,
            UserRoleModel.role == "admin",
        )
        return self.db.execute(stmt).first() is not None

    def get_admin_emails(self) -> list[str]:
        stmt = (
            select(ProfileModel.email)
            .join(UserRoleModel, UserRoleModel.user_id == ProfileModel.id)
            .where(UserRoleModel.role == "admin")
        )
        return [email for email in self.db.execute(stmt).scalars().all() if email]
