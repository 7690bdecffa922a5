"""Tests for reviews and dispute mediation."""
from __future__ import annotations

import pytest

from talenthive.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from talenthive.models import ContractStatus, DisputePriority, DisputeStatus, DisputeType, User


class TestReviews:
    def test_review_updates_rating(self, platform, completed_contract, client_user, freelancer):
        review = platform.reviews.create_review(
            completed_contract.id, client_user, 4, "Solid work",
            category_ratings={"communication": 5, "quality": 4},
        )
        assert review.reviewee_id == freelancer.id
        assert review.project_id == completed_contract.project_id

        rated = platform.store.get("users", User, freelancer.id)
        assert rated.rating_average == 4.0
        assert rated.rating_count == 1

        titles = [n["title"] for n in platform.notifications.list_for_user(freelancer.id)["items"]]
        assert "New review" in titles

    def test_both_parties_review_each_other(self, platform, completed_contract, client_user, freelancer):
        platform.reviews.create_review(completed_contract.id, client_user, 5)
        platform.reviews.create_review(completed_contract.id, freelancer, 3)

        assert platform.store.get("users", User, client_user.id).rating_average == 3.0
        assert len(platform.reviews.list_for_contract(completed_contract.id)) == 2

    def test_duplicate_review(self, platform, completed_contract, client_user):
        platform.reviews.create_review(completed_contract.id, client_user, 5)
        with pytest.raises(ConflictError):
            platform.reviews.create_review(completed_contract.id, client_user, 1)

    def test_contract_must_be_completed(self, platform, active_contract, client_user):
        with pytest.raises(ValidationError):
            platform.reviews.create_review(active_contract.id, client_user, 5)

    def test_outsider_cannot_review(self, platform, completed_contract, make_user):
        with pytest.raises(ForbiddenError):
            platform.reviews.create_review(completed_contract.id, make_user("client"), 5)

    @pytest.mark.parametrize("rating,categories", [
        (0, None),
        (6, None),
        (4.5, None),
        (True, None),
        (4, {"speed": 5}),
        (4, {"quality": 9}),
    ])
    def test_invalid_ratings(self, platform, completed_contract, client_user, rating, categories):
        with pytest.raises(ValidationError):
            platform.reviews.create_review(completed_contract.id, client_user, rating, category_ratings=categories)

    def test_response_once_by_reviewee(self, platform, completed_contract, client_user, freelancer):
        review = platform.reviews.create_review(completed_contract.id, client_user, 4)

        with pytest.raises(ForbiddenError):
            platform.reviews.respond_to_review(review.id, client_user, "Replying to myself")

        answered = platform.reviews.respond_to_review(review.id, freelancer, "  Thanks!  ")
        assert answered.response == "Thanks!"
        with pytest.raises(ConflictError):
            platform.reviews.respond_to_review(review.id, freelancer, "Again")

    def test_list_summary(self, platform, completed_contract, client_user, freelancer):
        platform.reviews.create_review(completed_contract.id, client_user, 4)
        result = platform.reviews.list_for_user(freelancer.id)

        assert result["summary"]["average"] == 4.0
        assert result["summary"]["count"] == 1
        assert result["summary"]["distribution"] == {1: 0, 2: 0, 3: 0, 4: 1, 5: 0}
        assert result["items"][0]["rating"] == 4


class TestDisputes:
    def test_contract_dispute(self, platform, active_contract, client_user, freelancer, admin):
        dispute = platform.disputes.create_dispute(
            client_user, "Missed deadline", "Design is two weeks late",
            type=DisputeType.CONTRACT, priority=DisputePriority.HIGH, contract_id=active_contract.id,
        )

        assert dispute.status == DisputeStatus.OPEN
        assert dispute.against == freelancer.id
        assert dispute.project_id == active_contract.project_id
        assert platform.contracts.get_contract(active_contract.id).status == ContractStatus.DISPUTED

        admin_notes = platform.notifications.list_for_user(admin.id)["items"]
        assert admin_notes[0]["title"] == "New dispute filed"
        assert admin_notes[0]["priority"] == "high"
        freelancer_titles = [n["title"] for n in platform.notifications.list_for_user(freelancer.id)["items"]]
        assert "A dispute was filed" in freelancer_titles

    def test_not_against_yourself(self, platform, client_user):
        with pytest.raises(ValidationError):
            platform.disputes.create_dispute(client_user, "Me", "Myself", against=client_user.id)

    def test_unknown_party(self, platform, client_user):
        with pytest.raises(NotFoundError):
            platform.disputes.create_dispute(client_user, "Ghost", "Who?", against="missing-user")

    def test_only_own_contracts(self, platform, active_contract, make_user):
        with pytest.raises(ForbiddenError):
            platform.disputes.create_dispute(make_user("client"), "Nosy", "Not mine", contract_id=active_contract.id)

    def test_requires_title(self, platform, client_user):
        with pytest.raises(ValidationError):
            platform.disputes.create_dispute(client_user, " ", "Description")

    def test_visibility(self, platform, client_user, freelancer, admin, make_user):
        dispute = platform.disputes.create_dispute(client_user, "Rude messages", "See thread", against=freelancer.id)

        assert platform.disputes.get_dispute(dispute.id, freelancer).id == dispute.id
        assert platform.disputes.get_dispute(dispute.id, admin).id == dispute.id
        with pytest.raises(ForbiddenError):
            platform.disputes.get_dispute(dispute.id, make_user("client"))
        assert [d.id for d in platform.disputes.list_for_user(freelancer.id)] == [dispute.id]

    def test_messages(self, platform, client_user, freelancer, admin):
        dispute = platform.disputes.create_dispute(client_user, "Scope", "Disagreement", against=freelancer.id)
        platform.disputes.add_message(dispute.id, freelancer, "I delivered what was agreed")
        updated = platform.disputes.add_message(dispute.id, admin, "Please upload the brief")

        assert [m["is_admin"] for m in updated.messages] == [False, True]
        client_titles = [n["title"] for n in platform.notifications.list_for_user(client_user.id)["items"]]
        assert client_titles.count("New dispute message") == 2

    def test_closed_dispute_rejects_messages(self, platform, client_user, freelancer, admin):
        dispute = platform.disputes.create_dispute(client_user, "Scope", "Disagreement", against=freelancer.id)
        platform.disputes.update_status(dispute.id, admin, DisputeStatus.CLOSED)
        with pytest.raises(ValidationError):
            platform.disputes.add_message(dispute.id, client_user, "Wait")

    def test_resolve(self, platform, client_user, freelancer, admin):
        dispute = platform.disputes.create_dispute(client_user, "Scope", "Disagreement", against=freelancer.id)

        with pytest.raises(ForbiddenError):
            platform.disputes.update_status(dispute.id, client_user, DisputeStatus.RESOLVED)

        resolved = platform.disputes.update_status(dispute.id, admin, DisputeStatus.RESOLVED, "Partial refund")
        assert resolved.resolution == "Partial refund"
        assert resolved.resolved_by == admin.id
        assert resolved.resolved_at is not None

    def test_assign(self, platform, client_user, freelancer, admin):
        dispute = platform.disputes.create_dispute(client_user, "Scope", "Disagreement", against=freelancer.id)

        with pytest.raises(ValidationError):
            platform.disputes.assign(dispute.id, admin, assignee_id=freelancer.id)

        assigned = platform.disputes.assign(dispute.id, admin)
        assert assigned.assigned_admin_id == admin.id
        assert assigned.status == DisputeStatus.IN_REVIEW

    def test_admin_listing_and_stats(self, platform, client_user, freelancer):
        platform.disputes.create_dispute(client_user, "Late", "Late work", type=DisputeType.PROJECT, against=freelancer.id)
        platform.disputes.create_dispute(
            freelancer, "Unpaid", "No payment", type=DisputeType.PAYMENT,
            priority=DisputePriority.URGENT, against=client_user.id,
        )

        urgent = platform.disputes.list_disputes(priority=DisputePriority.URGENT)
        assert [d["title"] for d in urgent["items"]] == ["Unpaid"]
        assert platform.disputes.list_disputes(type=DisputeType.PROJECT)["pagination"]["total"] == 1

        stats = platform.disputes.get_statistics()
        assert stats["total"] == 2
        assert stats["by_status"] == {"open": 2}
        assert stats["by_type"] == {"project": 1, "payment": 1}
