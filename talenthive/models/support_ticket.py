"""Support ticket model."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid


class TicketStatus(Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketCategory(Enum):
    TECHNICAL = "technical"
    BILLING = "billing"
    ACCOUNT = "account"
    PROJECT = "project"
    OTHER = "other"


class TicketPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


def format_ticket_id(sequence: int) -> str:
    """Human-facing ticket number, e.g. TKT-00042."""
    return f"TKT-{sequence:05d}"


@dataclass
class SupportTicket:
    """A user's request for help, answered by admins."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    ticket_id: str = ""
    user_id: str = ""

    subject: str = ""
    category: TicketCategory = TicketCategory.OTHER
    priority: TicketPriority = TicketPriority.MEDIUM
    status: TicketStatus = TicketStatus.OPEN

    messages: list[dict] = field(default_factory=list)
    # Each message: {"sender_id", "message", "is_admin_response", "attachments", "created_at"}

    assigned_admin_id: Optional[str] = None
    tags: list[str] = field(default_factory=list)

    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    last_response_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    def add_message(self, sender_id: str, message: str, is_admin_response: bool = False,
                    attachments: list[dict] = None) -> dict:
        """Append a message; an admin reply moves an open ticket to in-progress."""
        entry = {
            "sender_id": sender_id,
            "message": message,
            "is_admin_response": is_admin_response,
            "attachments": attachments or [],
            "created_at": datetime.utcnow().isoformat(),
        }
        self.messages.append(entry)
        self.last_response_at = datetime.utcnow()
        self.updated_at = datetime.utcnow()

        if is_admin_response and self.status == TicketStatus.OPEN:
            self.status = TicketStatus.IN_PROGRESS

        return entry

    def set_status(self, status: TicketStatus) -> None:
        self.status = status
        if status == TicketStatus.RESOLVED:
            self.resolved_at = datetime.utcnow()
        elif status == TicketStatus.CLOSED:
            self.closed_at = datetime.utcnow()
        self.updated_at = datetime.utcnow()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ticket_id": self.ticket_id,
            "user_id": self.user_id,
            "subject": self.subject,
            "category": self.category.value,
            "priority": self.priority.value,
            "status": self.status.value,
            "messages": self.messages,
            "assigned_admin_id": self.assigned_admin_id,
            "tags": self.tags,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "last_response_at": self.last_response_at.isoformat() if self.last_response_at else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "closed_at": self.closed_at.isoformat() if self.closed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SupportTicket":
        ticket = cls(
            id=data.get("id", str(uuid.uuid4())),
            ticket_id=data.get("ticket_id", ""),
            user_id=data.get("user_id", ""),
            subject=data.get("subject", ""),
            category=TicketCategory(data.get("category", "other")),
            priority=TicketPriority(data.get("priority", "medium")),
            status=TicketStatus(data.get("status", "open")),
            messages=data.get("messages", []),
            assigned_admin_id=data.get("assigned_admin_id"),
            tags=data.get("tags", []),
        )
        for field_name in ["created_at", "updated_at", "last_response_at", "resolved_at", "closed_at"]:
            if data.get(field_name):
                setattr(ticket, field_name, datetime.fromisoformat(data[field_name]))
        return ticket
