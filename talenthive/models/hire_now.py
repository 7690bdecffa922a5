"""Hire-now request: a client's direct offer to a specific freelancer."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid

from .project import Timeline


class HireNowStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class HireNowRequest:
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    client_id: str = ""
    freelancer_id: str = ""

    project_title: str = ""
    project_description: str = ""
    budget: float = 0.0
    timeline: Timeline = field(default_factory=Timeline)
    milestones: list[dict] = field(default_factory=list)
    # Each milestone: {"title", "description", "amount", "due_date"}
    message: str = ""

    status: HireNowStatus = HireNowStatus.PENDING
    response_message: str = ""
    responded_at: Optional[datetime] = None

    # Populated on acceptance
    project_id: Optional[str] = None
    proposal_id: Optional[str] = None
    contract_id: Optional[str] = None

    created_at: datetime = field(default_factory=datetime.utcnow)

    def accept(self, response_message: str = "") -> bool:
        if self.status != HireNowStatus.PENDING:
            return False

        self.status = HireNowStatus.ACCEPTED
        self.response_message = response_message
        self.responded_at = datetime.utcnow()
        return True

    def reject(self, response_message: str = "") -> bool:
        if self.status != HireNowStatus.PENDING:
            return False

        self.status = HireNowStatus.REJECTED
        self.response_message = response_message
        self.responded_at = datetime.utcnow()
        return True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "freelancer_id": self.freelancer_id,
            "project_title": self.project_title,
            "project_description": self.project_description,
            "budget": self.budget,
            "timeline": self.timeline.to_dict(),
            "milestones": self.milestones,
            "message": self.message,
            "status": self.status.value,
            "response_message": self.response_message,
            "responded_at": self.responded_at.isoformat() if self.responded_at else None,
            "project_id": self.project_id,
            "proposal_id": self.proposal_id,
            "contract_id": self.contract_id,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HireNowRequest":
        request = cls(
            id=data.get("id", str(uuid.uuid4())),
            client_id=data.get("client_id", ""),
            freelancer_id=data.get("freelancer_id", ""),
            project_title=data.get("project_title", ""),
            project_description=data.get("project_description", ""),
            budget=data.get("budget", 0.0),
            timeline=Timeline.from_dict(data.get("timeline", {})),
            milestones=data.get("milestones", []),
            message=data.get("message", ""),
            status=HireNowStatus(data.get("status", "pending")),
            response_message=data.get("response_message", ""),
            project_id=data.get("project_id"),
            proposal_id=data.get("proposal_id"),
            contract_id=data.get("contract_id"),
        )
        for field_name in ["responded_at", "created_at"]:
            if data.get(field_name):
                setattr(request, field_name, datetime.fromisoformat(data[field_name]))
        return request
