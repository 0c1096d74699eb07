"""Repositories translating between ORM models and domain entities."""

from .communication_recipient_repository import CommunicationRecipientRepository
from .communication_repository import CommunicationRepository
from .notification_repository import NotificationRepository
from .role_repository import RoleRepository
from .user_repository import UserRepository

__all__ = [
    "CommunicationRecipientRepository",
    "CommunicationRepository",
    "NotificationRepository",
    "RoleRepository",
    "UserRepository",
]
