"""SQLAlchemy model for the Notification Ledger."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from portal.infrastructure.database import Base
from portal.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation for notification-center entries."""

    __tablename__ = "user_notification"
    __table_args__ = (
        UniqueConstraint(
            "communication_id", "user_id", name="uq_user_notification_communication"
        ),
        Index("ix_user_notification_user_read", "user_id", "is_read"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    communication_id = Column(
        Integer, ForeignKey("communication.id"), nullable=True, index=True
    )
    type = Column(String(20), nullable=False, default="communication")
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(String(20), nullable=False, default="normal", index=True)
    payload = Column(JSON, nullable=False, default=dict)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(), nullable=True)
    is_displayed = Column(Boolean, nullable=False, default=False)
    displayed_at = Column(DateTime(), nullable=True)
    # Rows past this instant are invisible to every active query; the TTL
    # sweep deletes them physically.
    expires_at = Column(DateTime(), nullable=True, index=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)


__all__ = ["NotificationModel"]
