"""In-app notification model."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid


class NotificationType(Enum):
    MESSAGE = "message"
    PROPOSAL = "proposal"
    CONTRACT = "contract"
    PAYMENT = "payment"
    REVIEW = "review"
    DISPUTE = "dispute"
    SUPPORT = "support"
    SYSTEM = "system"


class NotificationPriority(Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


@dataclass
class Notification:
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str = ""
    type: NotificationType = NotificationType.SYSTEM
    title: str = ""
    message: str = ""
    link: Optional[str] = None
    priority: NotificationPriority = NotificationPriority.NORMAL
    metadata: dict = field(default_factory=dict)

    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    def mark_read(self) -> bool:
        if self.is_read:
            return False

        self.is_read = True
        self.read_at = datetime.utcnow()
        return True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "link": self.link,
            "priority": self.priority.value,
            "metadata": self.metadata,
            "is_read": self.is_read,
            "read_at": self.read_at.isoformat() if self.read_at else None,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Notification":
        notification = cls(
            id=data.get("id", str(uuid.uuid4())),
            user_id=data.get("user_id", ""),
            type=NotificationType(data.get("type", "system")),
            title=data.get("title", ""),
            message=data.get("message", ""),
            link=data.get("link"),
            priority=NotificationPriority(data.get("priority", "normal")),
            metadata=data.get("metadata", {}),
            is_read=data.get("is_read", False),
        )
        for field_name in ["read_at", "created_at"]:
            if data.get(field_name):
                setattr(notification, field_name, datetime.fromisoformat(data[field_name]))
        return notification
