"""Reviews between contract participants."""

import logging
from typing import Optional

from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..models.contract import Contract, ContractStatus
from ..models.notification import NotificationType
from ..models.review import Review, RATING_CATEGORIES
from ..models.user import User
from ..storage import JsonStore
from .common import get_user, paginate
from .notifications import NotificationCenter

logger = logging.getLogger(__name__)


def _check_rating(value, name: str = "rating") -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= 5:
        raise ValidationError(f"{name} must be an integer between 1 and 5")


class ReviewManager:
    """Creates reviews and keeps user rating averages current."""

    COLLECTION = "reviews"

    def __init__(self, store: JsonStore, notifications: NotificationCenter):
        self.store = store
        self.notifications = notifications

    def create_review(
        self,
        contract_id: str,
        reviewer: User,
        rating: int,
        comment: str = "",
        category_ratings: Optional[dict] = None,
    ) -> Review:
        """Review the other party of a completed contract."""
        _check_rating(rating)
        category_ratings = category_ratings or {}
        for name, value in category_ratings.items():
            if name not in RATING_CATEGORIES:
                raise ValidationError(f"Unknown rating category: {name}")
            _check_rating(value, name)

        with self.store.lock:
            contract = self.store.get("contracts", Contract, contract_id)
            if not contract:
                raise NotFoundError("Contract not found")
            if not contract.is_participant(reviewer.id):
                raise ForbiddenError("Only contract participants can leave a review")
            if contract.status != ContractStatus.COMPLETED:
                raise ValidationError("Reviews can only be left on completed contracts")

            already = any(
                r.contract_id == contract_id and r.reviewer_id == reviewer.id
                for r in self.store.load(self.COLLECTION, Review)
            )
            if already:
                raise ConflictError("You have already reviewed this contract")

            review = Review(
                contract_id=contract.id,
                project_id=contract.project_id,
                reviewer_id=reviewer.id,
                reviewee_id=contract.other_party(reviewer.id),
                rating=rating,
                comment=comment,
                category_ratings=category_ratings,
            )
            self.store.insert(self.COLLECTION, review)

            reviewee = get_user(self.store, review.reviewee_id)
            reviewee.update_rating(rating)
            self.store.update("users", reviewee)

        self.notifications.notify(
            review.reviewee_id,
            NotificationType.REVIEW,
            "New review",
            f"{reviewer.full_name} left you a {rating}-star review",
            link=f"/reviews/{review.id}",
            metadata={"review_id": review.id},
        )
        logger.info("Review %s left on contract %s", review.id, contract_id)
        return review

    def respond_to_review(self, review_id: str, user: User, response: str) -> Review:
        if not (response or "").strip():
            raise ValidationError("Response cannot be empty")

        with self.store.lock:
            review = self.store.get(self.COLLECTION, Review, review_id)
            if not review:
                raise NotFoundError("Review not found")
            if review.reviewee_id != user.id:
                raise ForbiddenError("Only the reviewed user can respond")
            if not review.respond(response.strip()):
                raise ConflictError("You have already responded to this review")
            self.store.update(self.COLLECTION, review)

        return review

    def list_for_user(self, user_id: str, page: int = 1, limit: int = 10) -> dict:
        """Reviews received by a user, newest first, with a rating summary."""
        reviews = [r for r in self.store.load(self.COLLECTION, Review) if r.reviewee_id == user_id]
        reviews.sort(key=lambda r: r.created_at, reverse=True)

        distribution = {star: 0 for star in range(1, 6)}
        for r in reviews:
            distribution[r.rating] += 1

        result = paginate(reviews, page, limit)
        result["items"] = [r.to_dict() for r in result["items"]]
        result["summary"] = {
            "average": round(sum(r.rating for r in reviews) / len(reviews), 2) if reviews else 0.0,
            "count": len(reviews),
            "distribution": distribution,
        }
        return result

    def list_for_contract(self, contract_id: str) -> list[Review]:
        return [r for r in self.store.load(self.COLLECTION, Review) if r.contract_id == contract_id]
