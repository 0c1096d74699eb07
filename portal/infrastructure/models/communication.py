"""SQLAlchemy model for authored communications."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from portal.infrastructure.database import Base
from portal.utils import now_in_app_naive_datetime


class CommunicationModel(Base):
    """Database representation of a communication and its lifecycle."""

    __tablename__ = "communication"

    id = Column(Integer, primary_key=True, index=True)
    subject = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    sender_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    recipient_type = Column(String(20), nullable=False)
    recipient_ids = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="draft", index=True)
    priority = Column(String(20), nullable=False, default="normal")
    message_type = Column(String(20), nullable=False, index=True)
    sent_date = Column(DateTime, nullable=True, index=True)
    scheduled_for = Column(DateTime, nullable=True, index=True)
    attachment_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(DateTime, nullable=True, onupdate=now_in_app_naive_datetime)

    sender = relationship("UserModel", lazy="joined")


__all__ = ["CommunicationModel"]
