"""
Database Models
"""
from .notification import NotificationLog
from .envelope import Channel, NotificationStatus, RecipientInfo, NotificationEnvelope

__all__ = [
    "NotificationLog",
    "Channel",
    "NotificationStatus",
    "RecipientInfo",
    "NotificationEnvelope",
]
