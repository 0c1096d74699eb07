"""ORM models used by the application infrastructure."""

from .communication import CommunicationModel
from .communication_recipient import CommunicationRecipientModel
from .notification import NotificationModel
from .role import RoleModel
from .user import UserModel

__all__ = [
    "CommunicationModel",
    "CommunicationRecipientModel",
    "NotificationModel",
    "RoleModel",
    "UserModel",
]
