"""Support tickets raised by users and handled by admins."""

import logging
from collections import Counter
from typing import Optional

from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..models.notification import NotificationPriority, NotificationType
from ..models.support_ticket import (
    SupportTicket, TicketCategory, TicketPriority, TicketStatus, format_ticket_id,
)
from ..models.user import User, UserRole
from ..storage import JsonStore
from .common import find_user, paginate
from .notifications import NotificationCenter

logger = logging.getLogger(__name__)


class SupportManager:
    """Ticket creation, replies and admin triage."""

    COLLECTION = "support_tickets"

    def __init__(self, store: JsonStore, notifications: NotificationCenter):
        self.store = store
        self.notifications = notifications

    def _get(self, ticket_id: str) -> SupportTicket:
        """Look up by internal ID or by the TKT number."""
        ticket = next(
            (t for t in self.store.load(self.COLLECTION, SupportTicket) if ticket_id in (t.id, t.ticket_id)),
            None,
        )
        if not ticket:
            raise NotFoundError("Ticket not found")
        return ticket

    def _require_admin(self, user: User) -> None:
        if not user.is_admin:
            raise ForbiddenError("Only admins can manage tickets")

    def create_ticket(
        self,
        user: User,
        subject: str,
        message: str,
        category: TicketCategory = TicketCategory.OTHER,
        priority: TicketPriority = TicketPriority.MEDIUM,
        attachments: Optional[list[dict]] = None,
    ) -> SupportTicket:
        if not (subject or "").strip() or not (message or "").strip():
            raise ValidationError("Subject and message are required")

        with self.store.lock:
            ticket = SupportTicket(
                ticket_id=format_ticket_id(self.store.count(self.COLLECTION) + 1),
                user_id=user.id,
                subject=subject.strip(),
                category=category,
                priority=priority,
            )
            ticket.add_message(user.id, message.strip(), attachments=attachments)
            self.store.insert(self.COLLECTION, ticket)

        self.notifications.notify_admins(
            NotificationType.SUPPORT,
            f"New support ticket {ticket.ticket_id}",
            ticket.subject,
            link=f"/admin/support/{ticket.id}",
            priority=NotificationPriority.HIGH if priority == TicketPriority.URGENT else NotificationPriority.NORMAL,
            metadata={"ticket_id": ticket.ticket_id},
        )
        logger.info("Support ticket %s opened by %s", ticket.ticket_id, user.id)
        return ticket

    def list_tickets(
        self,
        user: User,
        status: Optional[TicketStatus] = None,
        category: Optional[TicketCategory] = None,
        priority: Optional[TicketPriority] = None,
        assigned_to: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        """Own tickets for users; every ticket for admins."""
        tickets = []
        for t in self.store.load(self.COLLECTION, SupportTicket):
            if not user.is_admin and t.user_id != user.id:
                continue
            if status and t.status != status:
                continue
            if category and t.category != category:
                continue
            if priority and t.priority != priority:
                continue
            if assigned_to and t.assigned_admin_id != assigned_to:
                continue
            tickets.append(t)

        tickets.sort(key=lambda t: t.updated_at, reverse=True)
        result = paginate(tickets, page, limit)
        result["items"] = [t.to_dict() for t in result["items"]]
        return result

    def get_ticket(self, ticket_id: str, user: User) -> SupportTicket:
        ticket = self._get(ticket_id)
        if ticket.user_id != user.id and not user.is_admin:
            raise ForbiddenError("You do not have access to this ticket")
        return ticket

    def add_message(self, ticket_id: str, user: User, message: str,
                    attachments: Optional[list[dict]] = None) -> SupportTicket:
        if not (message or "").strip():
            raise ValidationError("Message cannot be empty")

        with self.store.lock:
            ticket = self.get_ticket(ticket_id, user)
            if ticket.status == TicketStatus.CLOSED:
                raise ValidationError("Ticket is closed")

            ticket.add_message(user.id, message.strip(), is_admin_response=user.is_admin, attachments=attachments)
            self.store.update(self.COLLECTION, ticket)

        if user.is_admin:
            self.notifications.notify(
                ticket.user_id,
                NotificationType.SUPPORT,
                f"Reply on {ticket.ticket_id}",
                ticket.subject,
                link=f"/support/{ticket.id}",
                metadata={"ticket_id": ticket.ticket_id},
            )
        elif ticket.assigned_admin_id:
            self.notifications.notify(
                ticket.assigned_admin_id,
                NotificationType.SUPPORT,
                f"User replied on {ticket.ticket_id}",
                ticket.subject,
                link=f"/admin/support/{ticket.id}",
                metadata={"ticket_id": ticket.ticket_id},
            )
        return ticket

    def update_status(self, ticket_id: str, admin: User, status: TicketStatus) -> SupportTicket:
        self._require_admin(admin)

        with self.store.lock:
            ticket = self._get(ticket_id)
            ticket.set_status(status)
            self.store.update(self.COLLECTION, ticket)

        self.notifications.notify(
            ticket.user_id,
            NotificationType.SUPPORT,
            f"{ticket.ticket_id} is now {status.value}",
            ticket.subject,
            link=f"/support/{ticket.id}",
            metadata={"ticket_id": ticket.ticket_id},
        )
        return ticket

    def assign(self, ticket_id: str, admin: User, assignee_id: str) -> SupportTicket:
        self._require_admin(admin)
        assignee = find_user(self.store, assignee_id)
        if not assignee or assignee.role != UserRole.ADMIN:
            raise ValidationError("Tickets can only be assigned to admins")

        with self.store.lock:
            ticket = self._get(ticket_id)
            ticket.assigned_admin_id = assignee_id
            if ticket.status == TicketStatus.OPEN:
                ticket.set_status(TicketStatus.IN_PROGRESS)
            self.store.update(self.COLLECTION, ticket)

        if assignee_id != admin.id:
            self.notifications.notify(
                assignee_id,
                NotificationType.SUPPORT,
                f"{ticket.ticket_id} assigned to you",
                ticket.subject,
                link=f"/admin/support/{ticket.id}",
                metadata={"ticket_id": ticket.ticket_id},
            )
        return ticket

    def update_tags(self, ticket_id: str, admin: User, tags: list[str]) -> SupportTicket:
        self._require_admin(admin)

        with self.store.lock:
            ticket = self._get(ticket_id)
            ticket.tags = sorted({t.strip().lower() for t in tags if t.strip()})
            self.store.update(self.COLLECTION, ticket)
        return ticket

    def get_statistics(self) -> dict:
        """Get ticket statistics."""
        tickets = self.store.load(self.COLLECTION, SupportTicket)
        return {
            "total": len(tickets),
            "by_status": dict(Counter(t.status.value for t in tickets)),
            "by_category": dict(Counter(t.category.value for t in tickets)),
            "by_priority": dict(Counter(t.priority.value for t in tickets)),
            "unassigned": sum(1 for t in tickets if not t.assigned_admin_id and t.status != TicketStatus.CLOSED),
        }
