"""Contract creation, signing, milestone workflow and amendments."""

import logging
from datetime import datetime, timezone
from typing import Optional, Union

from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..models.contract import (
    Amendment, AmendmentStatus, Contract, ContractSource, ContractStatus, Milestone,
)
from ..models.notification import NotificationType
from ..models.project import Project
from ..models.proposal import Proposal, ProposalStatus
from ..models.user import User
from ..storage import JsonStore
from .notifications import NotificationCenter
from .project_manager import ProjectManager

logger = logging.getLogger(__name__)


# Amendment changes that are applied to the contract when accepted
AMENDABLE_FIELDS = ("title", "description", "end_date", "terms")


def _parse_date(value: Union[str, datetime, None]) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, datetime):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            raise ValidationError(f"Invalid date: {value}")
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def build_milestones(items: list[dict]) -> list[Milestone]:
    """Turn request or proposal milestone dicts into Milestone objects."""
    milestones = []
    for item in items:
        amount = item.get("amount")
        if not item.get("title") or amount is None or amount <= 0:
            raise ValidationError("Each milestone needs a title and a positive amount")
        milestones.append(Milestone(
            title=item["title"],
            description=item.get("description", ""),
            amount=float(amount),
            due_date=_parse_date(item.get("due_date")),
        ))
    return milestones


def single_milestone(amount: float, due_date: Optional[datetime]) -> list[Milestone]:
    return [Milestone(
        title="Project Completion",
        description="Complete delivery of the project",
        amount=amount,
        due_date=due_date,
    )]


class ContractManager:
    """Manages contracts between clients and freelancers."""

    COLLECTION = "contracts"

    def __init__(self, store: JsonStore, notifications: NotificationCenter, projects: ProjectManager):
        self.store = store
        self.notifications = notifications
        self.projects = projects

    def get_contract(self, contract_id: str) -> Contract:
        contract = self.store.get(self.COLLECTION, Contract, contract_id)
        if not contract:
            raise NotFoundError("Contract not found")
        return contract

    def get_for_user(self, contract_id: str, user: User) -> Contract:
        """A contract visible to its participants and admins."""
        contract = self.get_contract(contract_id)
        if not contract.is_participant(user.id) and not user.is_admin:
            raise ForbiddenError("You do not have access to this contract")
        return contract

    def list_for_user(self, user_id: str, status: Optional[ContractStatus] = None) -> list[Contract]:
        contracts = [
            c for c in self.store.load(self.COLLECTION, Contract)
            if c.is_participant(user_id) and (status is None or c.status == status)
        ]
        return sorted(contracts, key=lambda c: c.created_at, reverse=True)

    def list_all(self, status: Optional[ContractStatus] = None) -> list[Contract]:
        contracts = [
            c for c in self.store.load(self.COLLECTION, Contract)
            if status is None or c.status == status
        ]
        return sorted(contracts, key=lambda c: c.created_at, reverse=True)

    def _notify_other(self, contract: Contract, actor_id: str, title: str, message: str) -> None:
        self.notifications.notify(
            contract.other_party(actor_id),
            NotificationType.CONTRACT,
            title,
            message,
            link=f"/contracts/{contract.id}",
            metadata={"contract_id": contract.id},
        )

    def create_contract(
        self,
        proposal_id: str,
        client: User,
        title: Optional[str] = None,
        description: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        milestones: Optional[list[dict]] = None,
        terms: Optional[str] = None,
    ) -> Contract:
        """Draft a contract from an accepted proposal."""
        with self.store.lock:
            proposal = self.store.get("proposals", Proposal, proposal_id)
            if not proposal:
                raise NotFoundError("Proposal not found")
            if proposal.status != ProposalStatus.ACCEPTED:
                raise ValidationError("Contracts can only be created from accepted proposals")

            project = self.store.get("projects", Project, proposal.project_id)
            if not project:
                raise NotFoundError("Project not found")
            if project.client_id != client.id:
                raise ForbiddenError("Only the project owner can create the contract")

            if any(c.proposal_id == proposal_id for c in self.store.load(self.COLLECTION, Contract)):
                raise ConflictError("A contract already exists for this proposal")

            start = start_date or datetime.utcnow()
            end = end_date or proposal.timeline.end_date_from(start)
            if end <= start:
                raise ValidationError("End date must be after start date")

            if milestones:
                contract_milestones = build_milestones(milestones)
            elif proposal.milestones:
                contract_milestones = build_milestones(proposal.milestones)
            else:
                contract_milestones = single_milestone(proposal.bid_amount, end)

            contract = Contract(
                project_id=project.id,
                proposal_id=proposal.id,
                client_id=client.id,
                freelancer_id=proposal.freelancer_id,
                source=ContractSource.PROPOSAL,
                title=title or project.title,
                description=description or project.description,
                total_amount=proposal.bid_amount,
                start_date=start,
                end_date=end,
                milestones=contract_milestones,
            )
            if terms:
                contract.terms = terms

            if not contract.milestones_balanced:
                raise ValidationError(
                    f"Milestone amounts ({contract.milestones_total:.2f}) must equal "
                    f"the contract total ({contract.total_amount:.2f})"
                )

            self.store.insert(self.COLLECTION, contract)

        self._notify_other(contract, client.id, "New contract", f"A contract for {contract.title} is ready to sign")
        logger.info("Contract %s created from proposal %s", contract.id, proposal_id)
        return contract

    def sign_contract(self, contract_id: str, user: User, ip_address: str = "") -> Contract:
        with self.store.lock:
            contract = self.get_contract(contract_id)
            if not contract.is_participant(user.id):
                raise ForbiddenError("Only contract participants can sign")
            if contract.has_signed(user.id):
                raise ConflictError("You have already signed this contract")
            if not contract.sign(user.id, ip_address):
                raise ValidationError(f"Cannot sign a contract that is {contract.status.value}")
            self.store.update(self.COLLECTION, contract)

        if contract.status == ContractStatus.ACTIVE:
            for party in (contract.client_id, contract.freelancer_id):
                self.notifications.notify(
                    party, NotificationType.CONTRACT, "Contract active",
                    f"{contract.title} is now active", link=f"/contracts/{contract.id}",
                    metadata={"contract_id": contract.id},
                )
        else:
            self._notify_other(contract, user.id, "Contract signed", f"{user.full_name} signed {contract.title}")

        return contract

    def _milestone_action(self, contract_id: str, milestone_id: str):
        contract = self.get_contract(contract_id)
        if contract.status != ContractStatus.ACTIVE:
            raise ValidationError("Contract is not active")
        milestone = contract.get_milestone(milestone_id)
        if not milestone:
            raise NotFoundError("Milestone not found")
        return contract, milestone

    def start_milestone(self, contract_id: str, milestone_id: str, freelancer: User) -> Contract:
        """Freelancer begins work on a pending milestone."""
        with self.store.lock:
            contract, milestone = self._milestone_action(contract_id, milestone_id)
            if contract.freelancer_id != freelancer.id:
                raise ForbiddenError("Only the freelancer can start milestones")
            if not milestone.start():
                raise ValidationError(f"Cannot start a milestone that is {milestone.status.value}")
            contract.updated_at = datetime.utcnow()
            self.store.update(self.COLLECTION, contract)

        self._notify_other(contract, freelancer.id, "Milestone started", f"Work on {milestone.title} has started")
        return contract

    def submit_milestone(
        self,
        contract_id: str,
        milestone_id: str,
        freelancer: User,
        notes: str = "",
        deliverables: list[dict] = None,
    ) -> Contract:
        """Freelancer delivers a milestone for review."""
        with self.store.lock:
            contract, milestone = self._milestone_action(contract_id, milestone_id)
            if contract.freelancer_id != freelancer.id:
                raise ForbiddenError("Only the freelancer can submit milestones")
            if not milestone.submit(notes, deliverables):
                raise ValidationError(f"Cannot submit a milestone that is {milestone.status.value}")
            contract.updated_at = datetime.utcnow()
            self.store.update(self.COLLECTION, contract)

        self._notify_other(contract, freelancer.id, "Milestone submitted", f"{milestone.title} is ready for review")
        return contract

    def approve_milestone(self, contract_id: str, milestone_id: str, client: User, feedback: str = "") -> Contract:
        with self.store.lock:
            contract, milestone = self._milestone_action(contract_id, milestone_id)
            if contract.client_id != client.id:
                raise ForbiddenError("Only the client can approve milestones")
            if not milestone.approve(feedback):
                raise ValidationError(f"Cannot approve a milestone that is {milestone.status.value}")
            contract.updated_at = datetime.utcnow()
            self.store.update(self.COLLECTION, contract)

        self._notify_other(contract, client.id, "Milestone approved", f"{milestone.title} was approved")
        return contract

    def reject_milestone(self, contract_id: str, milestone_id: str, client: User, feedback: str) -> Contract:
        if not (feedback or "").strip():
            raise ValidationError("Feedback is required when requesting changes")

        with self.store.lock:
            contract, milestone = self._milestone_action(contract_id, milestone_id)
            if contract.client_id != client.id:
                raise ForbiddenError("Only the client can reject milestones")
            if not milestone.reject(feedback):
                raise ValidationError(f"Cannot reject a milestone that is {milestone.status.value}")
            contract.updated_at = datetime.utcnow()
            self.store.update(self.COLLECTION, contract)

        self._notify_other(contract, client.id, "Changes requested", f"{milestone.title} needs changes")
        return contract

    def mark_milestone_paid(self, contract_id: str, milestone_id: str) -> Contract:
        """Called by the payment flow once funds are in escrow.

        Completes the contract and its project when it was the last unpaid
        milestone.
        """
        with self.store.lock:
            contract, milestone = self._milestone_action(contract_id, milestone_id)
            if not milestone.mark_paid():
                raise ValidationError(f"Cannot pay a milestone that is {milestone.status.value}")

            if contract.complete():
                self.projects.mark_completed(contract.project_id)
                logger.info("Contract %s completed", contract.id)

            contract.updated_at = datetime.utcnow()
            self.store.update(self.COLLECTION, contract)

        return contract

    def propose_amendment(self, contract_id: str, user: User, description: str, changes: dict) -> Contract:
        unknown = set(changes) - set(AMENDABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot amend: {', '.join(sorted(unknown))}")

        with self.store.lock:
            contract = self.get_contract(contract_id)
            if not contract.is_participant(user.id):
                raise ForbiddenError("Only contract participants can propose amendments")
            if contract.status not in (ContractStatus.DRAFT, ContractStatus.ACTIVE):
                raise ValidationError(f"Cannot amend a contract that is {contract.status.value}")
            if any(a.status == AmendmentStatus.PENDING for a in contract.amendments):
                raise ConflictError("An amendment is already awaiting a response")

            contract.amendments.append(Amendment(proposed_by=user.id, description=description, changes=changes))
            contract.updated_at = datetime.utcnow()
            self.store.update(self.COLLECTION, contract)

        self._notify_other(contract, user.id, "Amendment proposed", description)
        return contract

    def respond_to_amendment(self, contract_id: str, amendment_id: str, user: User, accept: bool) -> Contract:
        with self.store.lock:
            contract = self.get_contract(contract_id)
            amendment = next((a for a in contract.amendments if a.id == amendment_id), None)
            if not amendment:
                raise NotFoundError("Amendment not found")
            if not contract.is_participant(user.id) or amendment.proposed_by == user.id:
                raise ForbiddenError("Only the other party can respond to this amendment")
            if amendment.status != AmendmentStatus.PENDING:
                raise ValidationError("Amendment has already been answered")

            amendment.status = AmendmentStatus.ACCEPTED if accept else AmendmentStatus.REJECTED
            amendment.responded_by = user.id
            amendment.responded_at = datetime.utcnow()

            if accept:
                for key, value in amendment.changes.items():
                    setattr(contract, key, _parse_date(value) if key == "end_date" else value)
                if contract.end_date and contract.end_date <= contract.start_date:
                    raise ValidationError("End date must be after start date")

            contract.updated_at = datetime.utcnow()
            self.store.update(self.COLLECTION, contract)

        verdict = "accepted" if accept else "rejected"
        self._notify_other(contract, user.id, f"Amendment {verdict}", f"Your amendment to {contract.title} was {verdict}")
        return contract

    def cancel_contract(self, contract_id: str, user: User, reason: str = "") -> Contract:
        with self.store.lock:
            contract = self.get_contract(contract_id)
            if not contract.is_participant(user.id) and not user.is_admin:
                raise ForbiddenError("Only contract participants can cancel")
            if not contract.cancel():
                raise ValidationError(f"Cannot cancel a contract that is {contract.status.value}")

            contract.amendments.append(Amendment(
                proposed_by=user.id,
                description=f"Contract cancelled: {reason}" if reason else "Contract cancelled",
                changes={"status": ContractStatus.CANCELLED.value},
                status=AmendmentStatus.ACCEPTED,
                responded_by=user.id,
                responded_at=datetime.utcnow(),
            ))
            self.store.update(self.COLLECTION, contract)

        recipients = [contract.other_party(user.id)] if contract.is_participant(user.id) else [
            contract.client_id, contract.freelancer_id,
        ]
        for recipient in recipients:
            self.notifications.notify(
                recipient,
                NotificationType.CONTRACT,
                "Contract cancelled",
                reason or f"{contract.title} was cancelled",
                link=f"/contracts/{contract.id}",
                metadata={"contract_id": contract.id},
            )
        return contract

    def mark_disputed(self, contract_id: str) -> None:
        with self.store.lock:
            contract = self.store.get(self.COLLECTION, Contract, contract_id)
            if contract and contract.status == ContractStatus.ACTIVE:
                contract.status = ContractStatus.DISPUTED
                contract.updated_at = datetime.utcnow()
                self.store.update(self.COLLECTION, contract)
