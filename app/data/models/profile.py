from sqlalchemy import Column, String, Integer, ForeignKey, UniqueConstraint

from app.data.database import Base


class ProfileModel(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)  # id uzytkownika z auth
    email = Column(String, nullable=True)
    full_name = Column(String, nullable=True)


class UserRoleModel(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String, nullable=False)  # admin, user

    __table_args__ = (UniqueConstraint("user_id", "role", name="u_user_roles_user_role"),)
