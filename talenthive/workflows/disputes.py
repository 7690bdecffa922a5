"""Dispute filing and admin mediation."""

import logging
from collections import Counter
from typing import Optional

from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..models.dispute import Dispute, DisputePriority, DisputeStatus, DisputeType
from ..models.notification import NotificationPriority, NotificationType
from ..models.user import User, UserRole
from ..storage import JsonStore
from .common import find_user, paginate
from .contract_manager import ContractManager
from .notifications import NotificationCenter

logger = logging.getLogger(__name__)


class DisputeManager:
    """Handles disputes between users."""

    COLLECTION = "disputes"

    def __init__(self, store: JsonStore, notifications: NotificationCenter, contracts: ContractManager):
        self.store = store
        self.notifications = notifications
        self.contracts = contracts

    def _get(self, dispute_id: str) -> Dispute:
        dispute = self.store.get(self.COLLECTION, Dispute, dispute_id)
        if not dispute:
            raise NotFoundError("Dispute not found")
        return dispute

    def _visible(self, dispute: Dispute, user: User) -> None:
        if not dispute.is_party(user.id) and not user.is_admin:
            raise ForbiddenError("You do not have access to this dispute")

    def create_dispute(
        self,
        user: User,
        title: str,
        description: str,
        type: DisputeType = DisputeType.OTHER,
        priority: DisputePriority = DisputePriority.MEDIUM,
        against: Optional[str] = None,
        project_id: Optional[str] = None,
        contract_id: Optional[str] = None,
        payment_id: Optional[str] = None,
        evidence: Optional[list[dict]] = None,
    ) -> Dispute:
        """File a dispute. A linked contract is marked disputed."""
        if not (title or "").strip() or not (description or "").strip():
            raise ValidationError("Title and description are required")

        if contract_id:
            contract = self.contracts.get_contract(contract_id)
            if not contract.is_participant(user.id):
                raise ForbiddenError("You can only dispute your own contracts")
            against = against or contract.other_party(user.id)
            project_id = project_id or contract.project_id

        if against:
            if against == user.id:
                raise ValidationError("You cannot file a dispute against yourself")
            if not find_user(self.store, against):
                raise NotFoundError("User not found")

        dispute = Dispute(
            title=title.strip(),
            description=description.strip(),
            type=type,
            priority=priority,
            filed_by=user.id,
            against=against,
            project_id=project_id,
            contract_id=contract_id,
            payment_id=payment_id,
            evidence=evidence or [],
        )
        self.store.insert(self.COLLECTION, dispute)

        if contract_id:
            self.contracts.mark_disputed(contract_id)

        urgent = priority in (DisputePriority.HIGH, DisputePriority.URGENT)
        self.notifications.notify_admins(
            NotificationType.DISPUTE,
            "New dispute filed",
            f"{user.full_name}: {dispute.title}",
            link=f"/admin/disputes/{dispute.id}",
            priority=NotificationPriority.HIGH if urgent else NotificationPriority.NORMAL,
            metadata={"dispute_id": dispute.id},
        )
        if against:
            self.notifications.notify(
                against,
                NotificationType.DISPUTE,
                "A dispute was filed",
                f"A dispute involving you was filed: {dispute.title}",
                link=f"/disputes/{dispute.id}",
                metadata={"dispute_id": dispute.id},
            )

        logger.info("Dispute %s filed by %s", dispute.id, user.id)
        return dispute

    def get_dispute(self, dispute_id: str, user: User) -> Dispute:
        dispute = self._get(dispute_id)
        self._visible(dispute, user)
        return dispute

    def list_for_user(self, user_id: str) -> list[Dispute]:
        disputes = [d for d in self.store.load(self.COLLECTION, Dispute) if d.is_party(user_id)]
        return sorted(disputes, key=lambda d: d.created_at, reverse=True)

    def list_disputes(
        self,
        status: Optional[DisputeStatus] = None,
        type: Optional[DisputeType] = None,
        priority: Optional[DisputePriority] = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        """Admin listing with filters."""
        disputes = [
            d for d in self.store.load(self.COLLECTION, Dispute)
            if (status is None or d.status == status)
            and (type is None or d.type == type)
            and (priority is None or d.priority == priority)
        ]
        disputes.sort(key=lambda d: d.created_at, reverse=True)
        result = paginate(disputes, page, limit)
        result["items"] = [d.to_dict() for d in result["items"]]
        return result

    def add_message(self, dispute_id: str, user: User, message: str) -> Dispute:
        if not (message or "").strip():
            raise ValidationError("Message cannot be empty")

        with self.store.lock:
            dispute = self._get(dispute_id)
            self._visible(dispute, user)
            if dispute.status == DisputeStatus.CLOSED:
                raise ValidationError("Dispute is closed")

            dispute.add_message(user.id, message.strip(), is_admin=user.is_admin)
            self.store.update(self.COLLECTION, dispute)

        recipients = {dispute.filed_by, dispute.against} - {user.id, None}
        for recipient in recipients:
            self.notifications.notify(
                recipient,
                NotificationType.DISPUTE,
                "New dispute message",
                f"New message on dispute: {dispute.title}",
                link=f"/disputes/{dispute.id}",
                metadata={"dispute_id": dispute.id},
            )
        return dispute

    def update_status(self, dispute_id: str, admin: User, status: DisputeStatus, resolution: str = "") -> Dispute:
        if not admin.is_admin:
            raise ForbiddenError("Only admins can update dispute status")

        with self.store.lock:
            dispute = self._get(dispute_id)
            dispute.set_status(status, admin.id, resolution)
            self.store.update(self.COLLECTION, dispute)

        for party in {dispute.filed_by, dispute.against} - {None}:
            self.notifications.notify(
                party,
                NotificationType.DISPUTE,
                "Dispute updated",
                f"Dispute '{dispute.title}' is now {status.value.replace('_', ' ')}",
                link=f"/disputes/{dispute.id}",
                metadata={"dispute_id": dispute.id},
            )
        logger.info("Dispute %s -> %s by %s", dispute_id, status.value, admin.id)
        return dispute

    def assign(self, dispute_id: str, admin: User, assignee_id: Optional[str] = None) -> Dispute:
        """Assign to an admin (the caller by default) and start review."""
        if not admin.is_admin:
            raise ForbiddenError("Only admins can assign disputes")

        assignee_id = assignee_id or admin.id
        assignee = find_user(self.store, assignee_id)
        if not assignee or assignee.role != UserRole.ADMIN:
            raise ValidationError("Disputes can only be assigned to admins")

        with self.store.lock:
            dispute = self._get(dispute_id)
            if not dispute.assign(assignee_id):
                raise ValidationError(f"Cannot assign a dispute that is {dispute.status.value}")
            self.store.update(self.COLLECTION, dispute)

        return dispute

    def get_statistics(self) -> dict:
        """Get dispute statistics."""
        disputes = self.store.load(self.COLLECTION, Dispute)
        return {
            "total": len(disputes),
            "by_status": dict(Counter(d.status.value for d in disputes)),
            "by_type": dict(Counter(d.type.value for d in disputes)),
            "by_priority": dict(Counter(d.priority.value for d in disputes)),
        }
