"""Proposal submission and client decisions."""

import logging
from collections import Counter
from datetime import datetime
from typing import Optional

from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..models.notification import NotificationType
from ..models.project import BudgetType, Project, ProjectStatus
from ..models.proposal import Proposal, ProposalStatus
from ..models.user import User, UserRole
from ..storage import JsonStore
from .common import require_role
from .notifications import NotificationCenter
from .project_manager import build_timeline

logger = logging.getLogger(__name__)


# Fixed-price bids may exceed the posted maximum by this factor
MAX_BID_MULTIPLIER = 1.5


class ProposalManager:
    """Handles bids from freelancers and the client's response."""

    COLLECTION = "proposals"

    def __init__(self, store: JsonStore, notifications: NotificationCenter):
        self.store = store
        self.notifications = notifications

    def get_proposal(self, proposal_id: str) -> Proposal:
        proposal = self.store.get(self.COLLECTION, Proposal, proposal_id)
        if not proposal:
            raise NotFoundError("Proposal not found")
        return proposal

    def _project(self, project_id: str) -> Project:
        project = self.store.get("projects", Project, project_id)
        if not project:
            raise NotFoundError("Project not found")
        return project

    def _validate_bid(self, project: Project, bid_amount: float) -> None:
        if bid_amount is None or bid_amount <= 0:
            raise ValidationError("Bid amount must be greater than 0")

        if project.budget.type == BudgetType.FIXED:
            ceiling = project.budget.max * MAX_BID_MULTIPLIER
            if bid_amount < project.budget.min or bid_amount > ceiling:
                raise ValidationError(
                    f"Bid must be between {project.budget.min:.2f} and {ceiling:.2f} for this project"
                )

    def submit_proposal(
        self,
        freelancer: User,
        project_id: str,
        cover_letter: str,
        bid_amount: float,
        timeline: dict,
        milestones: list[dict] = None,
        attachments: list[dict] = None,
    ) -> Proposal:
        """Submit a bid on an open project."""
        require_role(freelancer, UserRole.FREELANCER, message="Only freelancers can submit proposals")

        with self.store.lock:
            project = self._project(project_id)

            if project.status != ProjectStatus.OPEN:
                raise ValidationError("This project is not accepting proposals")
            if project.client_id == freelancer.id:
                raise ForbiddenError("You cannot submit a proposal to your own project")
            if project.application_deadline and project.application_deadline < datetime.utcnow():
                raise ValidationError("The application deadline has passed")

            existing = [
                p for p in self.store.load(self.COLLECTION, Proposal)
                if p.project_id == project_id and p.freelancer_id == freelancer.id
            ]
            if existing:
                raise ConflictError("You have already submitted a proposal for this project")

            self._validate_bid(project, bid_amount)
            if not (cover_letter or "").strip():
                raise ValidationError("Cover letter is required")

            proposal = Proposal(
                project_id=project_id,
                freelancer_id=freelancer.id,
                cover_letter=cover_letter.strip(),
                bid_amount=bid_amount,
                timeline=build_timeline(timeline),
                milestones=milestones or [],
                attachments=attachments or [],
            )
            self.store.insert(self.COLLECTION, proposal)

        self.notifications.notify(
            project.client_id,
            NotificationType.PROPOSAL,
            "New proposal received",
            f"{freelancer.full_name} submitted a proposal for {project.title}",
            link=f"/projects/{project.id}/proposals",
            metadata={"proposal_id": proposal.id, "project_id": project.id},
        )
        logger.info("Proposal %s submitted on project %s", proposal.id, project_id)
        return proposal

    def list_for_project(self, project_id: str, user: User, status: Optional[ProposalStatus] = None) -> list[Proposal]:
        """Proposals on a project, visible to its owner and admins."""
        project = self._project(project_id)
        if project.client_id != user.id and not user.is_admin:
            raise ForbiddenError("Only the project owner can view its proposals")

        proposals = [
            p for p in self.store.load(self.COLLECTION, Proposal)
            if p.project_id == project_id and (status is None or p.status == status)
        ]
        return sorted(proposals, key=lambda p: (p.is_highlighted, p.submitted_at), reverse=True)

    def list_for_freelancer(self, freelancer_id: str, status: Optional[ProposalStatus] = None) -> list[Proposal]:
        proposals = [
            p for p in self.store.load(self.COLLECTION, Proposal)
            if p.freelancer_id == freelancer_id and (status is None or p.status == status)
        ]
        return sorted(proposals, key=lambda p: p.submitted_at, reverse=True)

    def get_for_user(self, proposal_id: str, user: User) -> Proposal:
        """A proposal visible to its author, the project owner or an admin."""
        proposal = self.get_proposal(proposal_id)
        project = self._project(proposal.project_id)
        if user.id not in (proposal.freelancer_id, project.client_id) and not user.is_admin:
            raise ForbiddenError("You do not have access to this proposal")
        return proposal

    def update_proposal(self, proposal_id: str, freelancer: User, changes: dict) -> Proposal:
        with self.store.lock:
            proposal = self.get_proposal(proposal_id)
            if proposal.freelancer_id != freelancer.id:
                raise ForbiddenError("You can only edit your own proposals")
            if not proposal.is_pending:
                raise ValidationError("Only submitted proposals can be edited")

            if "bid_amount" in changes:
                self._validate_bid(self._project(proposal.project_id), changes["bid_amount"])
                proposal.bid_amount = changes["bid_amount"]
            if changes.get("cover_letter"):
                proposal.cover_letter = changes["cover_letter"]
            if changes.get("timeline"):
                proposal.timeline = build_timeline(changes["timeline"])
            if "milestones" in changes:
                proposal.milestones = changes["milestones"] or []

            proposal.updated_at = datetime.utcnow()
            self.store.update(self.COLLECTION, proposal)

        return proposal

    def withdraw_proposal(self, proposal_id: str, freelancer: User) -> Proposal:
        with self.store.lock:
            proposal = self.get_proposal(proposal_id)
            if proposal.freelancer_id != freelancer.id:
                raise ForbiddenError("You can only withdraw your own proposals")
            if not proposal.withdraw():
                raise ValidationError(f"Cannot withdraw a proposal that is {proposal.status.value}")
            self.store.update(self.COLLECTION, proposal)

        return proposal

    def accept_proposal(self, proposal_id: str, client: User) -> Proposal:
        """Hire the freelancer: project goes in progress, competing bids are rejected."""
        with self.store.lock:
            proposals = self.store.load(self.COLLECTION, Proposal)
            proposal = next((p for p in proposals if p.id == proposal_id), None)
            if not proposal:
                raise NotFoundError("Proposal not found")

            project = self._project(proposal.project_id)
            if project.client_id != client.id:
                raise ForbiddenError("Only the project owner can accept proposals")
            if project.status != ProjectStatus.OPEN:
                raise ValidationError("Project is no longer open")
            if not proposal.accept():
                raise ValidationError(f"Cannot accept a proposal that is {proposal.status.value}")

            rejected = []
            for other in proposals:
                if other.project_id == project.id and other.id != proposal.id and other.is_pending:
                    other.reject("Another proposal was accepted")
                    rejected.append(other)

            project.start(proposal.freelancer_id)
            self.store.save(self.COLLECTION, proposals)
            self.store.update("projects", project)

        self.notifications.notify(
            proposal.freelancer_id,
            NotificationType.PROPOSAL,
            "Proposal accepted",
            f"Your proposal for {project.title} was accepted",
            link=f"/projects/{project.id}",
            metadata={"proposal_id": proposal.id, "project_id": project.id},
        )
        for other in rejected:
            self.notifications.notify(
                other.freelancer_id,
                NotificationType.PROPOSAL,
                "Proposal not selected",
                f"The client chose another proposal for {project.title}",
                metadata={"proposal_id": other.id, "project_id": project.id},
            )

        logger.info("Proposal %s accepted; %d others rejected", proposal.id, len(rejected))
        return proposal

    def reject_proposal(self, proposal_id: str, client: User, feedback: str = "") -> Proposal:
        with self.store.lock:
            proposal = self.get_proposal(proposal_id)
            project = self._project(proposal.project_id)
            if project.client_id != client.id:
                raise ForbiddenError("Only the project owner can reject proposals")
            if not proposal.reject(feedback):
                raise ValidationError(f"Cannot reject a proposal that is {proposal.status.value}")
            self.store.update(self.COLLECTION, proposal)

        self.notifications.notify(
            proposal.freelancer_id,
            NotificationType.PROPOSAL,
            "Proposal declined",
            f"Your proposal for {project.title} was declined",
            metadata={"proposal_id": proposal.id, "project_id": project.id},
        )
        return proposal

    def highlight_proposal(self, proposal_id: str, client: User) -> Proposal:
        """Toggle the client's shortlist marker."""
        with self.store.lock:
            proposal = self.get_proposal(proposal_id)
            project = self._project(proposal.project_id)
            if project.client_id != client.id:
                raise ForbiddenError("Only the project owner can highlight proposals")

            proposal.is_highlighted = not proposal.is_highlighted
            self.store.update(self.COLLECTION, proposal)

        return proposal

    def get_statistics(self, freelancer_id: Optional[str] = None) -> dict:
        """Get proposal statistics, optionally for one freelancer."""
        proposals = self.store.load(self.COLLECTION, Proposal)
        if freelancer_id:
            proposals = [p for p in proposals if p.freelancer_id == freelancer_id]

        by_status = Counter(p.status.value for p in proposals)
        decided = by_status.get("accepted", 0) + by_status.get("rejected", 0)

        return {
            "total": len(proposals),
            "by_status": dict(by_status),
            "acceptance_rate": round(by_status.get("accepted", 0) / decided * 100, 1) if decided else 0.0,
            "average_bid": round(sum(p.bid_amount for p in proposals) / len(proposals), 2) if proposals else 0.0,
        }
