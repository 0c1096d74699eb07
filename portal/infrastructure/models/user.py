"""SQLAlchemy model for the user table."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from portal.infrastructure.database import Base
from portal.utils import now_in_app_naive_datetime


class UserModel(Base):
    """Database representation of a portal member account."""

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True)
    role_id = Column(Integer, ForeignKey("role.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(120), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, nullable=False, default=now_in_app_naive_datetime)

    role = relationship("RoleModel", lazy="joined")


__all__ = ["UserModel"]
