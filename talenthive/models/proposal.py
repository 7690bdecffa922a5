"""Proposal model: a freelancer's bid on a project."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid

from .project import Timeline


class ProposalStatus(Enum):
    """Status of a proposal."""

    SUBMITTED = "submitted"    # Awaiting client decision
    ACCEPTED = "accepted"      # Client hired this freelancer
    REJECTED = "rejected"      # Declined, or another proposal won
    WITHDRAWN = "withdrawn"    # Pulled back by the freelancer


@dataclass
class Proposal:
    """A bid on a project."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    project_id: str = ""
    freelancer_id: str = ""

    cover_letter: str = ""
    bid_amount: float = 0.0
    timeline: Timeline = field(default_factory=Timeline)

    milestones: list[dict] = field(default_factory=list)
    # Each milestone: {"title", "description", "amount", "due_date"}
    attachments: list[dict] = field(default_factory=list)

    status: ProposalStatus = ProposalStatus.SUBMITTED
    is_highlighted: bool = False
    client_feedback: str = ""

    submitted_at: datetime = field(default_factory=datetime.utcnow)
    responded_at: Optional[datetime] = None
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_pending(self) -> bool:
        return self.status == ProposalStatus.SUBMITTED

    def accept(self) -> bool:
        if self.status != ProposalStatus.SUBMITTED:
            return False

        self.status = ProposalStatus.ACCEPTED
        self.responded_at = datetime.utcnow()
        return True

    def reject(self, feedback: str = "") -> bool:
        if self.status != ProposalStatus.SUBMITTED:
            return False

        self.status = ProposalStatus.REJECTED
        self.client_feedback = feedback
        self.responded_at = datetime.utcnow()
        return True

    def withdraw(self) -> bool:
        if self.status != ProposalStatus.SUBMITTED:
            return False

        self.status = ProposalStatus.WITHDRAWN
        self.updated_at = datetime.utcnow()
        return True

    def to_dict(self) -> dict:
        """Serialize proposal to dictionary."""
        return {
            "id": self.id,
            "project_id": self.project_id,
            "freelancer_id": self.freelancer_id,
            "cover_letter": self.cover_letter,
            "bid_amount": self.bid_amount,
            "timeline": self.timeline.to_dict(),
            "milestones": self.milestones,
            "attachments": self.attachments,
            "status": self.status.value,
            "is_highlighted": self.is_highlighted,
            "client_feedback": self.client_feedback,
            "submitted_at": self.submitted_at.isoformat(),
            "responded_at": self.responded_at.isoformat() if self.responded_at else None,
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Proposal":
        """Deserialize proposal from dictionary."""
        proposal = cls(
            id=data.get("id", str(uuid.uuid4())),
            project_id=data.get("project_id", ""),
            freelancer_id=data.get("freelancer_id", ""),
            cover_letter=data.get("cover_letter", ""),
            bid_amount=data.get("bid_amount", 0.0),
            timeline=Timeline.from_dict(data.get("timeline", {})),
            milestones=data.get("milestones", []),
            attachments=data.get("attachments", []),
            status=ProposalStatus(data.get("status", "submitted")),
            is_highlighted=data.get("is_highlighted", False),
            client_feedback=data.get("client_feedback", ""),
        )

        for field_name in ["submitted_at", "responded_at", "updated_at"]:
            if data.get(field_name):
                setattr(proposal, field_name, datetime.fromisoformat(data[field_name]))

        return proposal
