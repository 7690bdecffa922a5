"""
Project model for client job postings.

A project is authored by a client, receives proposals from freelancers and
moves to in-progress once a proposal is accepted.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional
import uuid


class ProjectStatus(Enum):
    """Project lifecycle status."""
    DRAFT = "draft"                # Not yet published
    OPEN = "open"                  # Accepting proposals
    IN_PROGRESS = "in_progress"    # Freelancer selected
    COMPLETED = "completed"        # All contract work paid
    CANCELLED = "cancelled"        # Withdrawn by client
    ON_HOLD = "on_hold"            # Temporarily closed to proposals


class BudgetType(Enum):
    FIXED = "fixed"
    HOURLY = "hourly"


class ProjectVisibility(Enum):
    PUBLIC = "public"
    INVITE_ONLY = "invite_only"


class TimelineUnit(Enum):
    """Units for project and proposal timelines."""
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"

    @property
    def days(self) -> int:
        """Approximate length of one unit in days."""
        lengths = {
            TimelineUnit.DAYS: 1,
            TimelineUnit.WEEKS: 7,
            TimelineUnit.MONTHS: 30,
        }
        return lengths[self]


@dataclass
class Budget:
    """Budget range for a project."""
    type: BudgetType = BudgetType.FIXED
    min: float = 0.0
    max: float = 0.0

    @property
    def is_valid(self) -> bool:
        return 0 <= self.min <= self.max

    def to_dict(self) -> dict:
        return {"type": self.type.value, "min": self.min, "max": self.max}

    @classmethod
    def from_dict(cls, data: dict) -> "Budget":
        return cls(
            type=BudgetType(data.get("type", "fixed")),
            min=data.get("min", 0.0),
            max=data.get("max", 0.0),
        )


@dataclass
class Timeline:
    """A duration such as "3 weeks"."""
    duration: int = 1
    unit: TimelineUnit = TimelineUnit.WEEKS

    @property
    def total_days(self) -> int:
        return self.duration * self.unit.days

    def end_date_from(self, start: datetime) -> datetime:
        return start + timedelta(days=self.total_days)

    def to_dict(self) -> dict:
        return {"duration": self.duration, "unit": self.unit.value}

    @classmethod
    def from_dict(cls, data: dict) -> "Timeline":
        return cls(
            duration=data.get("duration", 1),
            unit=TimelineUnit(data.get("unit", "weeks")),
        )


@dataclass
class Project:
    """A job posting authored by a client."""

    # Identity
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    title: str = ""
    description: str = ""
    client_id: str = ""

    # Classification
    category: str = ""
    skills: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    # Terms
    budget: Budget = field(default_factory=Budget)
    timeline: Timeline = field(default_factory=Timeline)

    # State
    status: ProjectStatus = ProjectStatus.OPEN
    visibility: ProjectVisibility = ProjectVisibility.PUBLIC
    selected_freelancer_id: Optional[str] = None

    # Flags
    is_urgent: bool = False
    is_featured: bool = False
    view_count: int = 0

    attachments: list[dict] = field(default_factory=list)
    # Each attachment: {"name": str, "url": str}

    # Dates
    application_deadline: Optional[datetime] = None
    published_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_accepting_proposals(self) -> bool:
        """Open and before any application deadline."""
        if self.status != ProjectStatus.OPEN:
            return False
        if self.application_deadline and datetime.utcnow() > self.application_deadline:
            return False
        return True

    @property
    def is_editable(self) -> bool:
        return self.status in (ProjectStatus.DRAFT, ProjectStatus.OPEN, ProjectStatus.ON_HOLD)

    def publish(self) -> bool:
        """Move a draft to open."""
        if self.status != ProjectStatus.DRAFT:
            return False

        self.status = ProjectStatus.OPEN
        self.published_at = datetime.utcnow()
        self.updated_at = datetime.utcnow()
        return True

    def start(self, freelancer_id: str) -> bool:
        """Mark in progress with the selected freelancer."""
        if self.status not in (ProjectStatus.OPEN, ProjectStatus.ON_HOLD):
            return False

        self.status = ProjectStatus.IN_PROGRESS
        self.selected_freelancer_id = freelancer_id
        self.updated_at = datetime.utcnow()
        return True

    def complete(self) -> bool:
        if self.status != ProjectStatus.IN_PROGRESS:
            return False

        self.status = ProjectStatus.COMPLETED
        self.updated_at = datetime.utcnow()
        return True

    def toggle_hold(self) -> bool:
        """Switch between open and on hold."""
        if self.status == ProjectStatus.OPEN:
            self.status = ProjectStatus.ON_HOLD
        elif self.status == ProjectStatus.ON_HOLD:
            self.status = ProjectStatus.OPEN
        else:
            return False

        self.updated_at = datetime.utcnow()
        return True

    def matches_search(self, text: str) -> bool:
        """Case-insensitive match against title, description, skills and tags."""
        needle = text.lower()
        haystack = [self.title, self.description] + self.skills + self.tags
        return any(needle in h.lower() for h in haystack)

    def to_dict(self) -> dict:
        """Serialize project to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "client_id": self.client_id,
            "category": self.category,
            "skills": self.skills,
            "tags": self.tags,
            "budget": self.budget.to_dict(),
            "timeline": self.timeline.to_dict(),
            "status": self.status.value,
            "visibility": self.visibility.value,
            "selected_freelancer_id": self.selected_freelancer_id,
            "is_urgent": self.is_urgent,
            "is_featured": self.is_featured,
            "view_count": self.view_count,
            "attachments": self.attachments,
            "application_deadline": self.application_deadline.isoformat() if self.application_deadline else None,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        """Deserialize project from dictionary."""
        project = cls(
            id=data.get("id", str(uuid.uuid4())),
            title=data.get("title", ""),
            description=data.get("description", ""),
            client_id=data.get("client_id", ""),
            category=data.get("category", ""),
            skills=data.get("skills", []),
            tags=data.get("tags", []),
            budget=Budget.from_dict(data.get("budget", {})),
            timeline=Timeline.from_dict(data.get("timeline", {})),
            status=ProjectStatus(data.get("status", "open")),
            visibility=ProjectVisibility(data.get("visibility", "public")),
            selected_freelancer_id=data.get("selected_freelancer_id"),
            is_urgent=data.get("is_urgent", False),
            is_featured=data.get("is_featured", False),
            view_count=data.get("view_count", 0),
            attachments=data.get("attachments", []),
        )

        for field_name in ["application_deadline", "published_at", "created_at", "updated_at"]:
            if data.get(field_name):
                setattr(project, field_name, datetime.fromisoformat(data[field_name]))

        return project
