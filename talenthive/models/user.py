"""User model for clients, freelancers and admins."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional
import uuid


# Per-view records kept for analytics; older ones only count toward the total
PROFILE_VIEW_RETENTION_DAYS = 90
MAX_TRACKED_VIEWS = 1000


class UserRole(Enum):
    """Marketplace roles."""

    ADMIN = "admin"
    FREELANCER = "freelancer"
    CLIENT = "client"

    @property
    def onboarding_steps(self) -> int:
        """Number of onboarding wizard steps for this role."""
        steps = {
            UserRole.FREELANCER: 5,
            UserRole.CLIENT: 4,
            UserRole.ADMIN: 3,
        }
        return steps[self]


class AccountStatus(Enum):
    """Administrative account state."""

    ACTIVE = "active"
    SUSPENDED = "suspended"        # Blocked by an admin
    DEACTIVATED = "deactivated"    # Closed by the user or an admin


@dataclass
class User:
    """A marketplace account."""

    # Identity
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    email: str = ""
    password_hash: str = ""
    role: UserRole = UserRole.FREELANCER

    # Public profile
    profile: dict = field(default_factory=dict)
    # {"first_name", "last_name", "avatar", "bio", "location", "phone", "timezone"}

    # Role-specific profiles, only the one matching `role` is populated
    freelancer_profile: dict = field(default_factory=dict)
    # {"title", "hourly_rate", "skills", "experience", "portfolio",
    #  "availability", "languages"}
    client_profile: dict = field(default_factory=dict)
    # {"company_name", "company_size", "industry", "website"}
    admin_profile: dict = field(default_factory=dict)
    # {"permissions", "department"}

    # Reputation
    rating_average: float = 0.0
    rating_count: int = 0

    # Account state
    is_verified: bool = False
    is_active: bool = True
    account_status: AccountStatus = AccountStatus.ACTIVE

    # Public URL and analytics
    profile_slug: Optional[str] = None
    profile_viewers: list[dict] = field(default_factory=list)
    # Each viewer: {"viewer_id": str, "viewed_at": iso}
    profile_view_count: int = 0

    # Onboarding wizard
    onboarding_completed: bool = False
    onboarding_step: int = 0
    onboarding_skipped_at: Optional[datetime] = None

    # Payments
    stripe_connected_account_id: Optional[str] = None

    # Tokens
    email_verification_token: Optional[str] = None
    email_verification_expires: Optional[datetime] = None
    password_reset_token: Optional[str] = None
    password_reset_expires: Optional[datetime] = None

    # Timestamps
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    last_login_at: Optional[datetime] = None

    @property
    def first_name(self) -> str:
        return self.profile.get("first_name", "")

    @property
    def last_name(self) -> str:
        return self.profile.get("last_name", "")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def skills(self) -> list[str]:
        return self.freelancer_profile.get("skills", [])

    @property
    def can_login(self) -> bool:
        """Whether the account may authenticate."""
        return self.is_active and self.account_status == AccountStatus.ACTIVE

    def update_rating(self, new_rating: float) -> None:
        """Fold a new review score into the running average."""
        total = self.rating_average * self.rating_count + new_rating
        self.rating_count += 1
        self.rating_average = round(total / self.rating_count, 2)
        self.updated_at = datetime.utcnow()

    def record_profile_view(self, viewer_id: str) -> bool:
        """Record a profile view. Self-views are ignored."""
        if viewer_id == self.id:
            return False

        now = datetime.utcnow()
        cutoff = (now - timedelta(days=PROFILE_VIEW_RETENTION_DAYS)).isoformat()
        recent = [v for v in self.profile_viewers if v["viewed_at"] >= cutoff]
        recent.append({"viewer_id": viewer_id, "viewed_at": now.isoformat()})
        self.profile_viewers = recent[-MAX_TRACKED_VIEWS:]
        self.profile_view_count += 1
        return True

    def to_public_dict(self) -> dict:
        """Serialize without credentials or tokens."""
        data = self.to_dict()
        for secret in (
            "password_hash",
            "email_verification_token",
            "email_verification_expires",
            "password_reset_token",
            "password_reset_expires",
            "profile_viewers",
        ):
            data.pop(secret, None)
        data["full_name"] = self.full_name
        data["profile_views"] = self.profile_view_count
        return data

    def to_dict(self) -> dict:
        """Serialize user to dictionary."""
        return {
            "id": self.id,
            "email": self.email,
            "password_hash": self.password_hash,
            "role": self.role.value,
            "profile": self.profile,
            "freelancer_profile": self.freelancer_profile,
            "client_profile": self.client_profile,
            "admin_profile": self.admin_profile,
            "rating": {"average": self.rating_average, "count": self.rating_count},
            "is_verified": self.is_verified,
            "is_active": self.is_active,
            "account_status": self.account_status.value,
            "profile_slug": self.profile_slug,
            "profile_viewers": self.profile_viewers,
            "profile_view_count": self.profile_view_count,
            "onboarding_completed": self.onboarding_completed,
            "onboarding_step": self.onboarding_step,
            "onboarding_skipped_at": self.onboarding_skipped_at.isoformat() if self.onboarding_skipped_at else None,
            "stripe_connected_account_id": self.stripe_connected_account_id,
            "email_verification_token": self.email_verification_token,
            "email_verification_expires": (
                self.email_verification_expires.isoformat() if self.email_verification_expires else None
            ),
            "password_reset_token": self.password_reset_token,
            "password_reset_expires": self.password_reset_expires.isoformat() if self.password_reset_expires else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        """Deserialize user from dictionary."""
        rating = data.get("rating", {})
        user = cls(
            id=data.get("id", str(uuid.uuid4())),
            email=data.get("email", ""),
            password_hash=data.get("password_hash", ""),
            role=UserRole(data.get("role", "freelancer")),
            profile=data.get("profile", {}),
            freelancer_profile=data.get("freelancer_profile", {}),
            client_profile=data.get("client_profile", {}),
            admin_profile=data.get("admin_profile", {}),
            rating_average=rating.get("average", 0.0),
            rating_count=rating.get("count", 0),
            is_verified=data.get("is_verified", False),
            is_active=data.get("is_active", True),
            account_status=AccountStatus(data.get("account_status", "active")),
            profile_slug=data.get("profile_slug"),
            profile_viewers=data.get("profile_viewers", []),
            profile_view_count=data.get("profile_view_count", len(data.get("profile_viewers", []))),
            onboarding_completed=data.get("onboarding_completed", False),
            onboarding_step=data.get("onboarding_step", 0),
            stripe_connected_account_id=data.get("stripe_connected_account_id"),
            email_verification_token=data.get("email_verification_token"),
            password_reset_token=data.get("password_reset_token"),
        )

        for field_name in [
            "onboarding_skipped_at",
            "email_verification_expires",
            "password_reset_expires",
            "created_at",
            "updated_at",
            "last_login_at",
        ]:
            if data.get(field_name):
                setattr(user, field_name, datetime.fromisoformat(data[field_name]))

        return user
