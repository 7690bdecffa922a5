"""
Hire-now requests.

A client can skip the public posting and make a direct offer to a
freelancer. Accepting it creates an in-progress project, an accepted
proposal and an active contract in one step.
"""

import logging
from datetime import datetime
from typing import Optional

from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..models.contract import Contract, ContractSource, ContractStatus
from ..models.hire_now import HireNowRequest, HireNowStatus
from ..models.notification import NotificationPriority, NotificationType
from ..models.project import Budget, BudgetType, Project, ProjectStatus, ProjectVisibility
from ..models.proposal import Proposal, ProposalStatus
from ..models.user import User, UserRole
from ..storage import JsonStore
from .common import get_user, require_role
from .contract_manager import build_milestones, single_milestone
from .notifications import NotificationCenter
from .project_manager import build_timeline

logger = logging.getLogger(__name__)


class HireNowManager:
    """Direct offers from clients to freelancers."""

    COLLECTION = "hire_now_requests"

    def __init__(self, store: JsonStore, notifications: NotificationCenter):
        self.store = store
        self.notifications = notifications

    def _get(self, request_id: str) -> HireNowRequest:
        request = self.store.get(self.COLLECTION, HireNowRequest, request_id)
        if not request:
            raise NotFoundError("Hire request not found")
        return request

    def create_request(
        self,
        client: User,
        freelancer_id: str,
        project_title: str,
        project_description: str,
        budget: float,
        timeline: dict,
        milestones: Optional[list[dict]] = None,
        message: str = "",
    ) -> HireNowRequest:
        require_role(client, UserRole.CLIENT, message="Only clients can send hire requests")

        freelancer = get_user(self.store, freelancer_id)
        if freelancer.role != UserRole.FREELANCER:
            raise ValidationError("Hire requests can only be sent to freelancers")
        if not freelancer.can_login:
            raise ValidationError("This freelancer is not available")
        if not (project_title or "").strip() or not (project_description or "").strip():
            raise ValidationError("Project title and description are required")
        if budget is None or budget <= 0:
            raise ValidationError("Budget must be greater than 0")

        if milestones:
            total = sum(m.amount for m in build_milestones(milestones))
            if abs(total - budget) > 0.01:
                raise ValidationError("Milestone amounts must add up to the budget")

        request = HireNowRequest(
            client_id=client.id,
            freelancer_id=freelancer_id,
            project_title=project_title.strip(),
            project_description=project_description.strip(),
            budget=budget,
            timeline=build_timeline(timeline),
            milestones=milestones or [],
            message=message,
        )
        self.store.insert(self.COLLECTION, request)

        self.notifications.notify(
            freelancer_id,
            NotificationType.PROPOSAL,
            "New hire request",
            f"{client.full_name} wants to hire you for {request.project_title}",
            link=f"/hire-now/{request.id}",
            priority=NotificationPriority.HIGH,
            metadata={"hire_now_request_id": request.id},
        )
        return request

    def list_sent(self, client_id: str) -> list[HireNowRequest]:
        requests = [r for r in self.store.load(self.COLLECTION, HireNowRequest) if r.client_id == client_id]
        return sorted(requests, key=lambda r: r.created_at, reverse=True)

    def list_received(self, freelancer_id: str, status: Optional[HireNowStatus] = None) -> list[HireNowRequest]:
        requests = [
            r for r in self.store.load(self.COLLECTION, HireNowRequest)
            if r.freelancer_id == freelancer_id and (status is None or r.status == status)
        ]
        return sorted(requests, key=lambda r: r.created_at, reverse=True)

    def accept_request(self, request_id: str, freelancer: User, response_message: str = "") -> HireNowRequest:
        """Accept the offer and set up project, proposal and active contract."""
        with self.store.lock:
            request = self._get(request_id)
            if request.freelancer_id != freelancer.id:
                raise ForbiddenError("Only the requested freelancer can accept")
            if not request.accept(response_message):
                raise ValidationError(f"Request has already been {request.status.value}")

            now = datetime.utcnow()
            end_date = request.timeline.end_date_from(now)

            project = Project(
                title=request.project_title,
                description=request.project_description,
                client_id=request.client_id,
                category="Direct Hire",
                budget=Budget(type=BudgetType.FIXED, min=request.budget, max=request.budget),
                timeline=request.timeline,
                status=ProjectStatus.IN_PROGRESS,
                visibility=ProjectVisibility.INVITE_ONLY,
                selected_freelancer_id=freelancer.id,
                published_at=now,
            )

            proposal = Proposal(
                project_id=project.id,
                freelancer_id=freelancer.id,
                cover_letter=response_message or "Accepted direct hire request",
                bid_amount=request.budget,
                timeline=request.timeline,
                milestones=request.milestones,
                status=ProposalStatus.ACCEPTED,
                responded_at=now,
            )

            if request.milestones:
                milestones = build_milestones(request.milestones)
            else:
                milestones = single_milestone(request.budget, end_date)

            signatures = [
                {"user_id": request.client_id, "signed_at": now.isoformat(), "ip_address": ""},
                {"user_id": freelancer.id, "signed_at": now.isoformat(), "ip_address": ""},
            ]
            contract = Contract(
                project_id=project.id,
                proposal_id=proposal.id,
                client_id=request.client_id,
                freelancer_id=freelancer.id,
                source=ContractSource.HIRE_NOW,
                title=request.project_title,
                description=request.project_description,
                total_amount=request.budget,
                start_date=now,
                end_date=end_date,
                status=ContractStatus.ACTIVE,
                milestones=milestones,
                signatures=signatures,
                activated_at=now,
            )

            request.project_id = project.id
            request.proposal_id = proposal.id
            request.contract_id = contract.id

            self.store.insert("projects", project)
            self.store.insert("proposals", proposal)
            self.store.insert("contracts", contract)
            self.store.update(self.COLLECTION, request)

        self.notifications.notify(
            request.client_id,
            NotificationType.CONTRACT,
            "Hire request accepted",
            f"{freelancer.full_name} accepted {request.project_title}; the contract is active",
            link=f"/contracts/{contract.id}",
            metadata={"hire_now_request_id": request.id, "contract_id": contract.id},
        )
        logger.info("Hire request %s accepted; contract %s", request.id, contract.id)
        return request

    def reject_request(self, request_id: str, freelancer: User, response_message: str = "") -> HireNowRequest:
        with self.store.lock:
            request = self._get(request_id)
            if request.freelancer_id != freelancer.id:
                raise ForbiddenError("Only the requested freelancer can reject")
            if not request.reject(response_message):
                raise ValidationError(f"Request has already been {request.status.value}")
            self.store.update(self.COLLECTION, request)

        self.notifications.notify(
            request.client_id,
            NotificationType.PROPOSAL,
            "Hire request declined",
            f"{freelancer.full_name} declined {request.project_title}",
            metadata={"hire_now_request_id": request.id},
        )
        return request
