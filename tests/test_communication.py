"""Tests for notifications, messaging, hire-now requests and support tickets."""
from __future__ import annotations

import pytest

from talenthive.errors import ForbiddenError, NotFoundError, ValidationError
from talenthive.models import (
    Contract,
    ContractSource,
    ContractStatus,
    HireNowStatus,
    NotificationType,
    Project,
    ProjectStatus,
    ProjectVisibility,
    Proposal,
    ProposalStatus,
    TicketCategory,
    TicketPriority,
    TicketStatus,
)


class TestNotifications:
    def test_subscribers_receive_new_notifications(self, platform, freelancer):
        received = []
        platform.notifications.subscribe(received.append)
        note = platform.notifications.notify(freelancer.id, NotificationType.SYSTEM, "Hello", "Welcome aboard")
        platform.notifications.unsubscribe(received.append)
        platform.notifications.notify(freelancer.id, NotificationType.SYSTEM, "Again", "Not delivered")

        assert [n.id for n in received] == [note.id]

    def test_failing_subscriber_is_isolated(self, platform, freelancer):
        def broken(_):
            raise RuntimeError("socket closed")

        platform.notifications.subscribe(broken)
        note = platform.notifications.notify(freelancer.id, NotificationType.SYSTEM, "Hello", "Still stored")
        assert platform.notifications.list_for_user(freelancer.id)["items"][0]["id"] == note.id

    def test_read_state(self, platform, freelancer, client_user):
        first = platform.notifications.notify(freelancer.id, NotificationType.SYSTEM, "One", "1")
        platform.notifications.notify(freelancer.id, NotificationType.SYSTEM, "Two", "2")
        assert platform.notifications.unread_count(freelancer.id) == 2

        platform.notifications.mark_read(first.id, freelancer.id)
        assert platform.notifications.unread_count(freelancer.id) == 1
        unread = platform.notifications.list_for_user(freelancer.id, unread_only=True)
        assert [n["title"] for n in unread["items"]] == ["Two"]
        assert unread["unread_count"] == 1

        with pytest.raises(NotFoundError):
            platform.notifications.mark_read(first.id, client_user.id)

        assert platform.notifications.mark_all_read(freelancer.id) == 1
        assert platform.notifications.mark_all_read(freelancer.id) == 0

    def test_delete_own_only(self, platform, freelancer, client_user):
        note = platform.notifications.notify(freelancer.id, NotificationType.SYSTEM, "Bye", "x")
        with pytest.raises(NotFoundError):
            platform.notifications.delete(note.id, client_user.id)
        platform.notifications.delete(note.id, freelancer.id)
        assert platform.notifications.list_for_user(freelancer.id)["items"] == []

    def test_notify_admins(self, platform, admin, make_user):
        second = make_user("admin")
        notes = platform.notifications.notify_admins(NotificationType.SYSTEM, "Heads up", "Deploy at noon")
        assert {n.user_id for n in notes} == {admin.id, second.id}


class TestMessaging:
    def test_conversation_is_reused(self, platform, client_user, freelancer):
        first = platform.messaging.get_or_create_conversation(client_user.id, freelancer.id)
        again = platform.messaging.get_or_create_conversation(freelancer.id, client_user.id)
        assert first.id == again.id

    def test_project_scoped_conversations(self, platform, client_user, freelancer, project):
        general = platform.messaging.get_or_create_conversation(client_user.id, freelancer.id)
        scoped = platform.messaging.get_or_create_conversation(client_user.id, freelancer.id, project.id)
        assert general.id != scoped.id

    def test_cannot_message_yourself(self, platform, client_user):
        with pytest.raises(ValidationError):
            platform.messaging.get_or_create_conversation(client_user.id, client_user.id)

    def test_unknown_recipient(self, platform, client_user):
        with pytest.raises(NotFoundError):
            platform.messaging.get_or_create_conversation(client_user.id, "nobody")

    def test_send_and_read(self, platform, client_user, freelancer):
        conversation = platform.messaging.get_or_create_conversation(client_user.id, freelancer.id)
        platform.messaging.send_message(conversation.id, client_user, "Hi there")
        platform.messaging.send_message(conversation.id, client_user, "Are you free next week?")

        listed = platform.messaging.list_conversations(freelancer.id)
        assert listed[0]["unread_count"] == 2
        assert listed[0]["last_message"] == "Are you free next week?"
        assert platform.messaging.list_conversations(client_user.id)[0]["unread_count"] == 0

        history = platform.messaging.get_messages(conversation.id, freelancer.id)
        assert [m["content"] for m in history["items"]] == ["Hi there", "Are you free next week?"]

        assert platform.messaging.mark_read(conversation.id, freelancer.id) == 2
        assert platform.messaging.list_conversations(freelancer.id)[0]["unread_count"] == 0

        titles = [n["title"] for n in platform.notifications.list_for_user(freelancer.id)["items"]]
        assert titles.count(f"New message from {client_user.full_name}") == 2

    def test_outsiders_locked_out(self, platform, client_user, freelancer, make_user):
        conversation = platform.messaging.get_or_create_conversation(client_user.id, freelancer.id)
        outsider = make_user("freelancer")
        with pytest.raises(ForbiddenError):
            platform.messaging.send_message(conversation.id, outsider, "Hello?")
        with pytest.raises(ForbiddenError):
            platform.messaging.get_messages(conversation.id, outsider.id)

    def test_empty_message(self, platform, client_user, freelancer):
        conversation = platform.messaging.get_or_create_conversation(client_user.id, freelancer.id)
        with pytest.raises(ValidationError):
            platform.messaging.send_message(conversation.id, client_user, "   ")


class TestHireNow:
    @pytest.fixture
    def offer(self, platform, client_user, freelancer):
        return platform.hire_now.create_request(
            client_user, freelancer.id, "Logo refresh", "New logo and brand colours",
            budget=800, timeline={"duration": 10, "unit": "days"}, message="Loved your portfolio",
        )

    def test_create_notifies_freelancer(self, platform, offer, freelancer):
        assert offer.status == HireNowStatus.PENDING
        notes = platform.notifications.list_for_user(freelancer.id)["items"]
        assert notes[0]["title"] == "New hire request"
        assert notes[0]["priority"] == "high"

    def test_validation(self, platform, client_user, freelancer, make_user):
        timeline = {"duration": 1, "unit": "weeks"}
        with pytest.raises(ForbiddenError):
            platform.hire_now.create_request(freelancer, client_user.id, "T", "D", 100, timeline)
        with pytest.raises(ValidationError):
            platform.hire_now.create_request(client_user, make_user("client").id, "T", "D", 100, timeline)
        with pytest.raises(ValidationError):
            platform.hire_now.create_request(client_user, freelancer.id, "T", "D", 0, timeline)
        with pytest.raises(ValidationError):
            platform.hire_now.create_request(
                client_user, freelancer.id, "T", "D", 100, timeline,
                milestones=[{"title": "Half", "amount": 50}],
            )

    def test_bad_milestones_rejected_up_front(self, platform, client_user, freelancer):
        timeline = {"duration": 1, "unit": "weeks"}
        for milestones in (
            [{"title": "", "amount": 100}],
            [{"title": "Free", "amount": 0}, {"title": "All", "amount": 100}],
            [{"title": "Untitled amount"}, {"title": "All", "amount": 100}],
        ):
            with pytest.raises(ValidationError):
                platform.hire_now.create_request(
                    client_user, freelancer.id, "T", "D", 100, timeline, milestones=milestones,
                )
        assert platform.hire_now.list_sent(client_user.id) == []

    def test_accept_creates_active_contract(self, platform, offer, client_user, freelancer):
        accepted = platform.hire_now.accept_request(offer.id, freelancer, "Let's do it")
        assert accepted.status == HireNowStatus.ACCEPTED

        project = platform.store.get("projects", Project, accepted.project_id)
        assert project.status == ProjectStatus.IN_PROGRESS
        assert project.visibility == ProjectVisibility.INVITE_ONLY
        assert project.category == "Direct Hire"

        proposal = platform.store.get("proposals", Proposal, accepted.proposal_id)
        assert proposal.status == ProposalStatus.ACCEPTED
        assert proposal.bid_amount == 800

        contract = platform.store.get("contracts", Contract, accepted.contract_id)
        assert contract.status == ContractStatus.ACTIVE
        assert contract.source == ContractSource.HIRE_NOW
        assert {s["user_id"] for s in contract.signatures} == {client_user.id, freelancer.id}
        assert [m.amount for m in contract.milestones] == [800]

        # Invite-only projects stay out of the public listing
        assert platform.projects.list_projects(status=None)["items"] == []

    def test_accepted_contract_can_be_funded(self, platform, offer, client_user, freelancer):
        accepted = platform.hire_now.accept_request(offer.id, freelancer)
        contract = platform.contracts.get_contract(accepted.contract_id)
        milestone_id = contract.milestones[0].id

        platform.contracts.submit_milestone(contract.id, milestone_id, freelancer)
        platform.contracts.approve_milestone(contract.id, milestone_id, client_user)
        result = platform.payments.create_payment_intent(contract.id, milestone_id, client_user)
        assert result["transaction"].amount == 80_000

    def test_reject(self, platform, offer, freelancer, client_user):
        rejected = platform.hire_now.reject_request(offer.id, freelancer, "Fully booked")
        assert rejected.status == HireNowStatus.REJECTED
        with pytest.raises(ValidationError):
            platform.hire_now.accept_request(offer.id, freelancer)

    def test_only_recipient_responds(self, platform, offer, make_user):
        with pytest.raises(ForbiddenError):
            platform.hire_now.accept_request(offer.id, make_user("freelancer"))

    def test_listing(self, platform, offer, client_user, freelancer):
        assert [r.id for r in platform.hire_now.list_sent(client_user.id)] == [offer.id]
        assert [r.id for r in platform.hire_now.list_received(freelancer.id, HireNowStatus.PENDING)] == [offer.id]
        assert platform.hire_now.list_received(freelancer.id, HireNowStatus.ACCEPTED) == []


class TestSupport:
    def test_ticket_numbers_are_sequential(self, platform, client_user, admin):
        first = platform.support.create_ticket(client_user, "Cannot log in", "Password reset never arrives")
        second = platform.support.create_ticket(
            client_user, "Refund", "Charged twice", category=TicketCategory.BILLING, priority=TicketPriority.URGENT,
        )
        assert (first.ticket_id, second.ticket_id) == ("TKT-00001", "TKT-00002")

        admin_notes = platform.notifications.list_for_user(admin.id)["items"]
        assert {n["title"] for n in admin_notes} == {"New support ticket TKT-00001", "New support ticket TKT-00002"}

    def test_lookup_by_ticket_number(self, platform, client_user):
        ticket = platform.support.create_ticket(client_user, "Help", "Please")
        assert platform.support.get_ticket("TKT-00001", client_user).id == ticket.id

    def test_visibility(self, platform, client_user, freelancer, admin):
        ticket = platform.support.create_ticket(client_user, "Help", "Please")
        platform.support.create_ticket(freelancer, "Other", "Mine")

        with pytest.raises(ForbiddenError):
            platform.support.get_ticket(ticket.id, freelancer)
        assert platform.support.list_tickets(client_user)["pagination"]["total"] == 1
        assert platform.support.list_tickets(admin)["pagination"]["total"] == 2

    def test_admin_reply_starts_progress(self, platform, client_user, admin):
        ticket = platform.support.create_ticket(client_user, "Help", "Please")
        updated = platform.support.add_message(ticket.id, admin, "Looking into it")

        assert updated.status == TicketStatus.IN_PROGRESS
        assert updated.messages[-1]["is_admin_response"]
        titles = [n["title"] for n in platform.notifications.list_for_user(client_user.id)["items"]]
        assert "Reply on TKT-00001" in titles

    def test_assign_requires_admin_assignee(self, platform, client_user, admin, make_user):
        ticket = platform.support.create_ticket(client_user, "Help", "Please")
        with pytest.raises(ValidationError):
            platform.support.assign(ticket.id, admin, client_user.id)
        with pytest.raises(ForbiddenError):
            platform.support.assign(ticket.id, client_user, admin.id)

        colleague = make_user("admin")
        assigned = platform.support.assign(ticket.id, admin, colleague.id)
        assert assigned.assigned_admin_id == colleague.id
        assert assigned.status == TicketStatus.IN_PROGRESS

        platform.support.add_message(ticket.id, client_user, "Any news?")
        titles = [n["title"] for n in platform.notifications.list_for_user(colleague.id)["items"]]
        assert "User replied on TKT-00001" in titles

    def test_closed_ticket(self, platform, client_user, admin):
        ticket = platform.support.create_ticket(client_user, "Help", "Please")
        closed = platform.support.update_status(ticket.id, admin, TicketStatus.CLOSED)
        assert closed.closed_at is not None
        with pytest.raises(ValidationError):
            platform.support.add_message(ticket.id, client_user, "Reopen?")

    def test_tags(self, platform, client_user, admin):
        ticket = platform.support.create_ticket(client_user, "Help", "Please")
        tagged = platform.support.update_tags(ticket.id, admin, ["Login", "login ", "  ", "Email"])
        assert tagged.tags == ["email", "login"]

    def test_statistics(self, platform, client_user, admin):
        ticket = platform.support.create_ticket(client_user, "Help", "Please", category=TicketCategory.ACCOUNT)
        platform.support.create_ticket(client_user, "More help", "Please")
        platform.support.assign(ticket.id, admin, admin.id)

        stats = platform.support.get_statistics()
        assert stats["total"] == 2
        assert stats["by_status"] == {"in-progress": 1, "open": 1}
        assert stats["by_category"] == {"account": 1, "other": 1}
        assert stats["unassigned"] == 1
