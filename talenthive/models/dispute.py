"""Dispute model for conflicts between users, mediated by admins."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid


class DisputeType(Enum):
    PROJECT = "project"
    CONTRACT = "contract"
    PAYMENT = "payment"
    USER = "user"
    OTHER = "other"


class DisputeStatus(Enum):
    """Dispute lifecycle status."""

    OPEN = "open"              # Filed, not yet picked up
    IN_REVIEW = "in_review"    # Assigned to an admin
    RESOLVED = "resolved"      # Decision made
    CLOSED = "closed"          # Closed without further action


class DisputePriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


@dataclass
class Dispute:
    """A dispute filed by one user against another."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    title: str = ""
    description: str = ""
    type: DisputeType = DisputeType.OTHER
    status: DisputeStatus = DisputeStatus.OPEN
    priority: DisputePriority = DisputePriority.MEDIUM

    # Parties
    filed_by: str = ""
    against: Optional[str] = None

    # Subject
    project_id: Optional[str] = None
    contract_id: Optional[str] = None
    payment_id: Optional[str] = None

    evidence: list[dict] = field(default_factory=list)
    # Each item: {"description": str, "url": str}
    messages: list[dict] = field(default_factory=list)
    # Each message: {"sender_id", "message", "is_admin", "created_at"}

    # Handling
    assigned_admin_id: Optional[str] = None
    resolution: str = ""
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None

    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def is_party(self, user_id: str) -> bool:
        return user_id in (self.filed_by, self.against)

    @property
    def is_closed(self) -> bool:
        return self.status in (DisputeStatus.RESOLVED, DisputeStatus.CLOSED)

    def add_message(self, sender_id: str, message: str, is_admin: bool = False) -> dict:
        entry = {
            "sender_id": sender_id,
            "message": message,
            "is_admin": is_admin,
            "created_at": datetime.utcnow().isoformat(),
        }
        self.messages.append(entry)
        self.updated_at = datetime.utcnow()
        return entry

    def assign(self, admin_id: str) -> bool:
        if self.is_closed:
            return False

        self.assigned_admin_id = admin_id
        self.status = DisputeStatus.IN_REVIEW
        self.updated_at = datetime.utcnow()
        return True

    def set_status(self, status: DisputeStatus, admin_id: str, resolution: str = "") -> None:
        """Admin status change; closing statuses stamp who and when."""
        self.status = status
        if resolution:
            self.resolution = resolution
        if status in (DisputeStatus.RESOLVED, DisputeStatus.CLOSED):
            self.resolved_at = datetime.utcnow()
            self.resolved_by = admin_id
        self.updated_at = datetime.utcnow()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type.value,
            "status": self.status.value,
            "priority": self.priority.value,
            "filed_by": self.filed_by,
            "against": self.against,
            "project_id": self.project_id,
            "contract_id": self.contract_id,
            "payment_id": self.payment_id,
            "evidence": self.evidence,
            "messages": self.messages,
            "assigned_admin_id": self.assigned_admin_id,
            "resolution": self.resolution,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "resolved_by": self.resolved_by,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Dispute":
        dispute = cls(
            id=data.get("id", str(uuid.uuid4())),
            title=data.get("title", ""),
            description=data.get("description", ""),
            type=DisputeType(data.get("type", "other")),
            status=DisputeStatus(data.get("status", "open")),
            priority=DisputePriority(data.get("priority", "medium")),
            filed_by=data.get("filed_by", ""),
            against=data.get("against"),
            project_id=data.get("project_id"),
            contract_id=data.get("contract_id"),
            payment_id=data.get("payment_id"),
            evidence=data.get("evidence", []),
            messages=data.get("messages", []),
            assigned_admin_id=data.get("assigned_admin_id"),
            resolution=data.get("resolution", ""),
            resolved_by=data.get("resolved_by"),
        )
        for field_name in ["resolved_at", "created_at", "updated_at"]:
            if data.get(field_name):
                setattr(dispute, field_name, datetime.fromisoformat(data[field_name]))
        return dispute
