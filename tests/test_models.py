"""Tests for marketplace model state transitions and serialization."""
from __future__ import annotations

from datetime import datetime, timedelta

from talenthive.models import (
    Budget,
    BudgetType,
    Contract,
    ContractStatus,
    Dispute,
    DisputeStatus,
    Milestone,
    MilestoneStatus,
    PlatformSettings,
    Review,
    SupportTicket,
    TicketStatus,
    Timeline,
    TimelineUnit,
    Transaction,
    TransactionStatus,
    User,
    UserRole,
)
from talenthive.models.support_ticket import format_ticket_id
from talenthive.models.user import MAX_TRACKED_VIEWS, PROFILE_VIEW_RETENTION_DAYS


class TestUser:
    def test_rating_running_average(self):
        user = User()
        user.update_rating(5)
        user.update_rating(4)
        user.update_rating(4)
        assert user.rating_count == 3
        assert user.rating_average == 4.33

    def test_self_view_not_recorded(self):
        user = User()
        assert not user.record_profile_view(user.id)
        assert user.record_profile_view("someone-else")
        assert len(user.profile_viewers) == 1

    def test_view_history_is_bounded(self):
        stale = (datetime.utcnow() - timedelta(days=PROFILE_VIEW_RETENTION_DAYS + 1)).isoformat()
        user = User(profile_viewers=[{"viewer_id": "old", "viewed_at": stale}], profile_view_count=1)

        for n in range(MAX_TRACKED_VIEWS + 5):
            user.record_profile_view(f"viewer-{n}")

        assert len(user.profile_viewers) == MAX_TRACKED_VIEWS
        assert "old" not in {v["viewer_id"] for v in user.profile_viewers}
        assert user.profile_viewers[-1]["viewer_id"] == f"viewer-{MAX_TRACKED_VIEWS + 4}"
        assert user.profile_view_count == MAX_TRACKED_VIEWS + 6
        assert user.to_public_dict()["profile_views"] == MAX_TRACKED_VIEWS + 6

    def test_view_count_survives_round_trip(self):
        user = User()
        user.record_profile_view("someone-else")
        assert User.from_dict(user.to_dict()).profile_view_count == 1
        assert User.from_dict({"profile_viewers": [{"viewer_id": "a", "viewed_at": "2024-01-01"}]}).profile_view_count == 1

    def test_public_dict_hides_secrets(self):
        user = User(email="a@example.com", password_hash="hash", password_reset_token="tok")
        data = user.to_public_dict()
        assert "password_hash" not in data
        assert "password_reset_token" not in data
        assert "profile_viewers" not in data
        assert data["profile_views"] == 0

    def test_round_trip(self):
        user = User(
            email="a@example.com",
            role=UserRole.CLIENT,
            profile={"first_name": "Ada", "last_name": "Lovelace"},
            rating_average=4.5,
            rating_count=2,
            last_login_at=datetime(2024, 1, 2, 3, 4, 5),
        )
        restored = User.from_dict(user.to_dict())
        assert restored == user
        assert restored.full_name == "Ada Lovelace"

    def test_onboarding_steps_by_role(self):
        assert UserRole.FREELANCER.onboarding_steps == 5
        assert UserRole.CLIENT.onboarding_steps == 4
        assert UserRole.ADMIN.onboarding_steps == 3


class TestBudgetAndTimeline:
    def test_budget_validity(self):
        assert Budget(BudgetType.FIXED, 100, 200).is_valid
        assert not Budget(BudgetType.FIXED, 300, 200).is_valid

    def test_timeline_end_date(self):
        start = datetime(2024, 1, 1)
        assert Timeline(2, TimelineUnit.WEEKS).end_date_from(start) == datetime(2024, 1, 15)
        assert Timeline(1, TimelineUnit.MONTHS).total_days == 30


class TestMilestone:
    def test_happy_path(self):
        m = Milestone(title="Design", amount=100)
        assert m.submit("notes")
        assert m.approve()
        assert m.mark_paid()
        assert m.status == MilestoneStatus.PAID
        assert m.paid_at is not None

    def test_pending_cannot_be_paid(self):
        m = Milestone(title="Design", amount=100)
        assert not m.mark_paid()
        assert m.status == MilestoneStatus.PENDING

    def test_submitted_cannot_be_paid(self):
        m = Milestone(title="Design", amount=100)
        m.submit()
        assert not m.mark_paid()

    def test_rejected_can_be_resubmitted(self):
        m = Milestone(title="Design", amount=100)
        m.submit()
        assert m.reject("Needs work")
        assert m.client_feedback == "Needs work"
        assert m.submit("Fixed")
        assert m.status == MilestoneStatus.SUBMITTED

    def test_overdue(self):
        m = Milestone(due_date=datetime.utcnow() - timedelta(days=1))
        assert m.is_overdue
        m.status = MilestoneStatus.APPROVED
        assert not m.is_overdue


class TestContract:
    def _contract(self):
        return Contract(
            client_id="client",
            freelancer_id="freelancer",
            total_amount=1000,
            milestones=[Milestone(title="A", amount=600), Milestone(title="B", amount=400)],
        )

    def test_activates_after_both_signatures(self):
        contract = self._contract()
        assert contract.sign("client")
        assert contract.status == ContractStatus.DRAFT
        assert contract.sign("freelancer")
        assert contract.status == ContractStatus.ACTIVE
        assert contract.activated_at is not None

    def test_double_signature_rejected(self):
        contract = self._contract()
        contract.sign("client")
        assert not contract.sign("client")
        assert len(contract.signatures) == 1

    def test_outsider_cannot_sign(self):
        assert not self._contract().sign("stranger")

    def test_balanced_milestones(self):
        contract = self._contract()
        assert contract.milestones_balanced
        contract.milestones[0].amount = 650
        assert not contract.milestones_balanced

    def test_progress_and_completion(self):
        contract = self._contract()
        contract.status = ContractStatus.ACTIVE
        contract.milestones[0].status = MilestoneStatus.PAID
        assert contract.progress == 50.0
        assert contract.total_paid == 600
        assert contract.remaining_amount == 400
        assert not contract.complete()

        contract.milestones[1].status = MilestoneStatus.PAID
        assert contract.complete()
        assert contract.status == ContractStatus.COMPLETED

    def test_round_trip(self):
        contract = self._contract()
        contract.sign("client")
        restored = Contract.from_dict(contract.to_dict())
        assert restored.signatures == contract.signatures
        assert [m.amount for m in restored.milestones] == [600, 400]
        assert restored.start_date == contract.start_date


class TestTransaction:
    def test_id_prefix(self):
        assert Transaction().id.startswith("TXN-")

    def test_escrow_lifecycle(self):
        txn = Transaction(amount=10000)
        release = datetime.utcnow() + timedelta(days=7)
        assert txn.hold_in_escrow(release, "ch_1")
        assert not txn.is_due_for_release(datetime.utcnow())
        assert txn.is_due_for_release(release + timedelta(seconds=1))
        assert txn.release("tr_1", "system")
        assert txn.status == TransactionStatus.RELEASED
        assert not txn.refund("re_1")

    def test_pending_never_due(self):
        txn = Transaction(escrow_release_date=datetime.utcnow() - timedelta(days=1))
        assert not txn.is_due_for_release(datetime.utcnow())

    def test_failed_only_from_pending_or_processing(self):
        txn = Transaction()
        assert txn.mark_processing()
        assert txn.fail("card declined")
        assert not txn.fail("again")

    def test_live_statuses(self):
        assert TransactionStatus.HELD_IN_ESCROW.is_live
        assert not TransactionStatus.FAILED.is_live
        assert not TransactionStatus.REFUNDED.is_live


class TestReview:
    def test_respond_once(self):
        review = Review(rating=4)
        assert review.respond("Thanks!")
        assert not review.respond("Thanks again!")
        assert review.response == "Thanks!"


class TestDispute:
    def test_assign_moves_to_review(self):
        dispute = Dispute(filed_by="a", against="b")
        assert dispute.assign("admin")
        assert dispute.status == DisputeStatus.IN_REVIEW

    def test_closed_cannot_be_assigned(self):
        dispute = Dispute()
        dispute.set_status(DisputeStatus.RESOLVED, "admin", "Refund issued")
        assert dispute.resolved_by == "admin"
        assert dispute.resolution == "Refund issued"
        assert not dispute.assign("admin")


class TestSupportTicket:
    def test_ticket_number_format(self):
        assert format_ticket_id(42) == "TKT-00042"

    def test_admin_reply_starts_progress(self):
        ticket = SupportTicket(user_id="u")
        ticket.add_message("u", "Help")
        assert ticket.status == TicketStatus.OPEN
        ticket.add_message("admin", "On it", is_admin_response=True)
        assert ticket.status == TicketStatus.IN_PROGRESS


class TestPlatformSettings:
    def test_round_trip(self):
        settings = PlatformSettings(commission_rate=12.5, escrow_hold_days=3)
        restored = PlatformSettings.from_dict(settings.to_dict())
        assert restored == settings

    def test_public_dict_has_fee_rates(self):
        public = PlatformSettings().to_public_dict()
        assert public["commission_rate"] == 10.0
        assert "maintenance_mode" not in public
