"""
Contract and milestone models.

A contract binds a client and a freelancer to a set of milestones. Milestones
move through pending -> submitted -> approved -> paid; a rejected milestone
may be resubmitted. The contract becomes active once both parties sign and
completed once every milestone is paid.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid


DEFAULT_TERMS = (
    "1. The freelancer will deliver the work described in each milestone by its due date.\n"
    "2. The client will review submitted milestones promptly and approve or request changes.\n"
    "3. Milestone payments are funded into escrow and released to the freelancer after approval.\n"
    "4. Either party may open a dispute through the platform if a disagreement cannot be resolved.\n"
    "5. Intellectual property in the delivered work transfers to the client upon full payment."
)

AMOUNT_TOLERANCE = 0.01


class ContractStatus(Enum):
    """Contract lifecycle status."""

    DRAFT = "draft"            # Awaiting signatures
    ACTIVE = "active"          # Both parties signed
    COMPLETED = "completed"    # All milestones paid
    CANCELLED = "cancelled"
    DISPUTED = "disputed"      # A dispute is open against it


class ContractSource(Enum):
    PROPOSAL = "proposal"
    HIRE_NOW = "hire_now"


class MilestoneStatus(Enum):
    """Milestone workflow status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"    # Work delivered, awaiting client review
    APPROVED = "approved"      # Ready to be funded
    PAID = "paid"              # Funded into escrow
    REJECTED = "rejected"      # Client requested changes


class AmendmentStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class Milestone:
    """A payable sub-deliverable of a contract."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    title: str = ""
    description: str = ""
    amount: float = 0.0
    due_date: Optional[datetime] = None
    status: MilestoneStatus = MilestoneStatus.PENDING

    deliverables: list[dict] = field(default_factory=list)
    freelancer_notes: str = ""
    client_feedback: str = ""

    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None

    @property
    def is_overdue(self) -> bool:
        if not self.due_date:
            return False
        if self.status in (MilestoneStatus.APPROVED, MilestoneStatus.PAID):
            return False
        return datetime.utcnow() > self.due_date

    def start(self) -> bool:
        if self.status != MilestoneStatus.PENDING:
            return False

        self.status = MilestoneStatus.IN_PROGRESS
        return True

    def submit(self, notes: str = "", deliverables: list[dict] = None) -> bool:
        """Deliver work for client review."""
        if self.status not in (MilestoneStatus.PENDING, MilestoneStatus.IN_PROGRESS, MilestoneStatus.REJECTED):
            return False

        self.status = MilestoneStatus.SUBMITTED
        self.freelancer_notes = notes
        if deliverables:
            self.deliverables = deliverables
        self.submitted_at = datetime.utcnow()
        return True

    def approve(self, feedback: str = "") -> bool:
        if self.status != MilestoneStatus.SUBMITTED:
            return False

        self.status = MilestoneStatus.APPROVED
        self.client_feedback = feedback
        self.approved_at = datetime.utcnow()
        return True

    def reject(self, feedback: str) -> bool:
        if self.status != MilestoneStatus.SUBMITTED:
            return False

        self.status = MilestoneStatus.REJECTED
        self.client_feedback = feedback
        return True

    def mark_paid(self) -> bool:
        """Only approved milestones can be paid."""
        if self.status != MilestoneStatus.APPROVED:
            return False

        self.status = MilestoneStatus.PAID
        self.paid_at = datetime.utcnow()
        return True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "amount": self.amount,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "status": self.status.value,
            "deliverables": self.deliverables,
            "freelancer_notes": self.freelancer_notes,
            "client_feedback": self.client_feedback,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Milestone":
        milestone = cls(
            id=data.get("id", str(uuid.uuid4())),
            title=data.get("title", ""),
            description=data.get("description", ""),
            amount=data.get("amount", 0.0),
            status=MilestoneStatus(data.get("status", "pending")),
            deliverables=data.get("deliverables", []),
            freelancer_notes=data.get("freelancer_notes", ""),
            client_feedback=data.get("client_feedback", ""),
        )

        for field_name in ["due_date", "submitted_at", "approved_at", "paid_at"]:
            if data.get(field_name):
                setattr(milestone, field_name, datetime.fromisoformat(data[field_name]))

        return milestone


@dataclass
class Amendment:
    """A proposed change to a contract."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    proposed_by: str = ""
    description: str = ""
    changes: dict = field(default_factory=dict)
    status: AmendmentStatus = AmendmentStatus.PENDING
    responded_by: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    responded_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "proposed_by": self.proposed_by,
            "description": self.description,
            "changes": self.changes,
            "status": self.status.value,
            "responded_by": self.responded_by,
            "created_at": self.created_at.isoformat(),
            "responded_at": self.responded_at.isoformat() if self.responded_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Amendment":
        amendment = cls(
            id=data.get("id", str(uuid.uuid4())),
            proposed_by=data.get("proposed_by", ""),
            description=data.get("description", ""),
            changes=data.get("changes", {}),
            status=AmendmentStatus(data.get("status", "pending")),
            responded_by=data.get("responded_by"),
        )
        for field_name in ["created_at", "responded_at"]:
            if data.get(field_name):
                setattr(amendment, field_name, datetime.fromisoformat(data[field_name]))
        return amendment


@dataclass
class Contract:
    """An agreement between a client and a freelancer."""

    # Identity
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    project_id: str = ""
    proposal_id: Optional[str] = None
    client_id: str = ""
    freelancer_id: str = ""
    source: ContractSource = ContractSource.PROPOSAL

    # Terms
    title: str = ""
    description: str = ""
    total_amount: float = 0.0
    currency: str = "USD"
    terms: str = DEFAULT_TERMS
    start_date: datetime = field(default_factory=datetime.utcnow)
    end_date: Optional[datetime] = None

    status: ContractStatus = ContractStatus.DRAFT
    milestones: list[Milestone] = field(default_factory=list)

    signatures: list[dict] = field(default_factory=list)
    # Each signature: {"user_id": str, "signed_at": iso, "ip_address": str}
    amendments: list[Amendment] = field(default_factory=list)

    # Dates
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    activated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.client_id, self.freelancer_id)

    def other_party(self, user_id: str) -> str:
        return self.freelancer_id if user_id == self.client_id else self.client_id

    def has_signed(self, user_id: str) -> bool:
        return any(s["user_id"] == user_id for s in self.signatures)

    @property
    def is_fully_signed(self) -> bool:
        return self.has_signed(self.client_id) and self.has_signed(self.freelancer_id)

    @property
    def milestones_total(self) -> float:
        return round(sum(m.amount for m in self.milestones), 2)

    @property
    def milestones_balanced(self) -> bool:
        """Milestone amounts add up to the contract total."""
        return abs(self.milestones_total - self.total_amount) <= AMOUNT_TOLERANCE

    @property
    def total_paid(self) -> float:
        return round(sum(m.amount for m in self.milestones if m.status == MilestoneStatus.PAID), 2)

    @property
    def remaining_amount(self) -> float:
        return round(self.total_amount - self.total_paid, 2)

    @property
    def progress(self) -> float:
        """Percentage of milestones paid."""
        if not self.milestones:
            return 0.0
        paid = sum(1 for m in self.milestones if m.status == MilestoneStatus.PAID)
        return round(paid / len(self.milestones) * 100, 1)

    @property
    def overdue_milestones(self) -> list[Milestone]:
        return [m for m in self.milestones if m.is_overdue]

    @property
    def all_milestones_paid(self) -> bool:
        return bool(self.milestones) and all(m.status == MilestoneStatus.PAID for m in self.milestones)

    def get_milestone(self, milestone_id: str) -> Optional[Milestone]:
        return next((m for m in self.milestones if m.id == milestone_id), None)

    def sign(self, user_id: str, ip_address: str = "") -> bool:
        """Add a signature; activates the contract once both parties signed."""
        if self.status != ContractStatus.DRAFT:
            return False
        if not self.is_participant(user_id) or self.has_signed(user_id):
            return False

        self.signatures.append({
            "user_id": user_id,
            "signed_at": datetime.utcnow().isoformat(),
            "ip_address": ip_address,
        })

        if self.is_fully_signed:
            self.status = ContractStatus.ACTIVE
            self.activated_at = datetime.utcnow()

        self.updated_at = datetime.utcnow()
        return True

    def complete(self) -> bool:
        if self.status != ContractStatus.ACTIVE or not self.all_milestones_paid:
            return False

        self.status = ContractStatus.COMPLETED
        self.completed_at = datetime.utcnow()
        self.updated_at = datetime.utcnow()
        return True

    def cancel(self) -> bool:
        if self.status not in (ContractStatus.DRAFT, ContractStatus.ACTIVE):
            return False

        self.status = ContractStatus.CANCELLED
        self.cancelled_at = datetime.utcnow()
        self.updated_at = datetime.utcnow()
        return True

    def to_dict(self) -> dict:
        """Serialize contract to dictionary, including computed progress."""
        return {
            "id": self.id,
            "project_id": self.project_id,
            "proposal_id": self.proposal_id,
            "client_id": self.client_id,
            "freelancer_id": self.freelancer_id,
            "source": self.source.value,
            "title": self.title,
            "description": self.description,
            "total_amount": self.total_amount,
            "currency": self.currency,
            "terms": self.terms,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "status": self.status.value,
            "milestones": [m.to_dict() for m in self.milestones],
            "signatures": self.signatures,
            "amendments": [a.to_dict() for a in self.amendments],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "activated_at": self.activated_at.isoformat() if self.activated_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            # Computed
            "progress": self.progress,
            "total_paid": self.total_paid,
            "remaining_amount": self.remaining_amount,
            "overdue_milestones": [m.id for m in self.overdue_milestones],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Contract":
        """Deserialize contract from dictionary."""
        contract = cls(
            id=data.get("id", str(uuid.uuid4())),
            project_id=data.get("project_id", ""),
            proposal_id=data.get("proposal_id"),
            client_id=data.get("client_id", ""),
            freelancer_id=data.get("freelancer_id", ""),
            source=ContractSource(data.get("source", "proposal")),
            title=data.get("title", ""),
            description=data.get("description", ""),
            total_amount=data.get("total_amount", 0.0),
            currency=data.get("currency", "USD"),
            terms=data.get("terms", DEFAULT_TERMS),
            status=ContractStatus(data.get("status", "draft")),
            milestones=[Milestone.from_dict(m) for m in data.get("milestones", [])],
            signatures=data.get("signatures", []),
            amendments=[Amendment.from_dict(a) for a in data.get("amendments", [])],
        )

        for field_name in [
            "start_date", "end_date", "created_at", "updated_at",
            "activated_at", "completed_at", "cancelled_at",
        ]:
            if data.get(field_name):
                setattr(contract, field_name, datetime.fromisoformat(data[field_name]))

        return contract
