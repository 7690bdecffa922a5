"""Review model left by a contract participant for the other party."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import uuid


RATING_CATEGORIES = ("communication", "quality", "professionalism", "deadline")


@dataclass
class Review:
    """A 1-5 star review tied to a completed contract."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    contract_id: str = ""
    project_id: str = ""
    reviewer_id: str = ""
    reviewee_id: str = ""

    rating: int = 5
    comment: str = ""
    category_ratings: dict = field(default_factory=dict)
    # Keys from RATING_CATEGORIES, values 1-5

    response: Optional[str] = None
    responded_at: Optional[datetime] = None

    created_at: datetime = field(default_factory=datetime.utcnow)

    def respond(self, text: str) -> bool:
        """Reviewee reply; allowed once."""
        if self.response:
            return False

        self.response = text
        self.responded_at = datetime.utcnow()
        return True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "contract_id": self.contract_id,
            "project_id": self.project_id,
            "reviewer_id": self.reviewer_id,
            "reviewee_id": self.reviewee_id,
            "rating": self.rating,
            "comment": self.comment,
            "category_ratings": self.category_ratings,
            "response": self.response,
            "responded_at": self.responded_at.isoformat() if self.responded_at else None,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Review":
        review = cls(
            id=data.get("id", str(uuid.uuid4())),
            contract_id=data.get("contract_id", ""),
            project_id=data.get("project_id", ""),
            reviewer_id=data.get("reviewer_id", ""),
            reviewee_id=data.get("reviewee_id", ""),
            rating=data.get("rating", 5),
            comment=data.get("comment", ""),
            category_ratings=data.get("category_ratings", {}),
            response=data.get("response"),
        )
        for field_name in ["responded_at", "created_at"]:
            if data.get(field_name):
                setattr(review, field_name, datetime.fromisoformat(data[field_name]))
        return review
