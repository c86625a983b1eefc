"""
In-flight delivery types (never persisted as a whole)
"""
import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class Channel(str, Enum):
    SMS = "SMS"
    EMAIL = "EMAIL"


class NotificationStatus(str, Enum):
    CREATED = "CREATED"
    PROCESSING = "PROCESSING"
    SENT = "SENT"
    FAILED = "FAILED"


@dataclass
class RecipientInfo:
    """Who the code is for and how to reach them"""
    channel: Channel
    first_name: str
    last_name: str
    locale: Optional[str] = None


@dataclass
class NotificationEnvelope:
    channel: Channel
    identifier: str
    otp: str
    first_name: str
    last_name: str
    locale: str
    orig_system: str
    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: NotificationStatus = NotificationStatus.CREATED

    def to_dict(self) -> dict:
        """JSON-safe form, used to hand the envelope to a Celery worker"""
        data = asdict(self)
        data["channel"] = self.channel.value
        data["status"] = self.status.value
        data["created_at"] = self.created_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "NotificationEnvelope":
        data = dict(data)
        data["channel"] = Channel(data["channel"])
        data["status"] = NotificationStatus(data.get("status", NotificationStatus.CREATED.value))
        if isinstance(data.get("created_at"), str):
            data["created_at"] = datetime.fromisoformat(data["created_at"])
        return cls(**data)

    def __repr__(self) -> str:
        # Keep the plaintext code out of logs and tracebacks
        return (
            f"NotificationEnvelope(correlation_id={self.correlation_id!r}, "
            f"channel={self.channel.value}, identifier={self.identifier!r}, status={self.status.value})"
        )
