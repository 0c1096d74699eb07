from .auth import Token
from .communication import (
    CommunicationCreate,
    CommunicationListResponse,
    CommunicationRead,
    CommunicationSchedule,
    CommunicationUpdate,
    CommunicationWithStatsRead,
    DispatchDueResponse,
    FanOutResponse,
    InboxItemRead,
    InboxResponse,
    ReadStatsRead,
    RecipientListResponse,
    RecipientRead,
)
from .notification import (
    CreateForCommunicationRequest,
    CreateForCommunicationResponse,
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationRead,
    NotificationStatsRead,
)
from .stats import CommunicationStatsRead, ReadRateRead

__all__ = [
    "CommunicationCreate",
    "CommunicationListResponse",
    "CommunicationRead",
    "CommunicationSchedule",
    "CommunicationStatsRead",
    "CommunicationUpdate",
    "CommunicationWithStatsRead",
    "CreateForCommunicationRequest",
    "CreateForCommunicationResponse",
    "DispatchDueResponse",
    "FanOutResponse",
    "InboxItemRead",
    "InboxResponse",
    "MarkAllReadResponse",
    "NotificationListResponse",
    "NotificationRead",
    "NotificationStatsRead",
    "ReadRateRead",
    "ReadStatsRead",
    "RecipientListResponse",
    "RecipientRead",
    "Token",
]
