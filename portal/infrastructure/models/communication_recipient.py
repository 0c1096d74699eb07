"""SQLAlchemy model for the Recipient Ledger."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from portal.infrastructure.database import Base
from portal.utils import now_in_app_naive_datetime


class CommunicationRecipientModel(Base):
    """One row per (communication, user) tracking read status."""

    __tablename__ = "communication_recipient"
    __table_args__ = (
        UniqueConstraint(
            "communication_id", "user_id", name="uq_communication_recipient_user"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    communication_id = Column(
        Integer, ForeignKey("communication.id"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    read_status = Column(Boolean, nullable=False, default=False, index=True)
    read_time = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=now_in_app_naive_datetime)

    user = relationship("UserModel", lazy="joined")


__all__ = ["CommunicationRecipientModel"]
