"""
Public profiles: slugs, profile updates, freelancer search and view analytics.

Also hosts the admin-side account status controls.
"""

import logging
import re
from collections import Counter
from datetime import datetime, timedelta
from typing import Optional

from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..models.user import User, UserRole, AccountStatus
from ..storage import JsonStore
from .common import get_user, paginate

logger = logging.getLogger(__name__)


SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 50
SLUG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

RESERVED_SLUGS = frozenset({
    "admin", "api", "auth", "login", "register", "signup", "signin",
    "dashboard", "profile", "settings", "help", "support", "about",
    "terms", "privacy", "contact", "blog", "docs", "documentation",
    "freelancer", "client", "user", "users", "account", "accounts",
})

# Fields a user may edit on each embedded profile
PROFILE_FIELDS = {"first_name", "last_name", "avatar", "bio", "location", "phone", "timezone"}
FREELANCER_FIELDS = {"title", "hourly_rate", "skills", "experience", "portfolio", "availability", "languages"}
CLIENT_FIELDS = {"company_name", "company_size", "industry", "website"}


def generate_slug(text: str) -> str:
    """Lower-case, hyphen-separated slug of at most 50 characters."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower())
    slug = slug.strip("-")[:SLUG_MAX_LENGTH]
    return slug.strip("-")


def validate_slug(slug: str) -> Optional[str]:
    """Return an error message, or None when the slug is acceptable."""
    if len(slug) < SLUG_MIN_LENGTH:
        return f"Slug must be at least {SLUG_MIN_LENGTH} characters"
    if len(slug) > SLUG_MAX_LENGTH:
        return f"Slug must be at most {SLUG_MAX_LENGTH} characters"
    if not SLUG_PATTERN.match(slug):
        return "Slug may contain only lowercase letters, numbers and single hyphens"
    if slug in RESERVED_SLUGS:
        return "This slug is reserved"
    return None


class ProfileManager:
    """Profile editing, slugs and admin account controls."""

    def __init__(self, store: JsonStore):
        self.store = store

    def _slug_taken(self, slug: str, exclude_user_id: Optional[str] = None) -> bool:
        return any(
            u.profile_slug == slug and u.id != exclude_user_id
            for u in self.store.load("users", User)
        )

    def unique_slug(self, base: str, exclude_user_id: Optional[str] = None) -> str:
        """Turn `base` into a valid slug not used by anyone else."""
        slug = generate_slug(base)
        if len(slug) < SLUG_MIN_LENGTH or slug in RESERVED_SLUGS:
            slug = f"{slug}-profile".strip("-") if slug else "user-profile"

        candidate = slug
        suffix = 2
        while self._slug_taken(candidate, exclude_user_id):
            tail = f"-{suffix}"
            candidate = f"{slug[:SLUG_MAX_LENGTH - len(tail)]}{tail}"
            suffix += 1
        return candidate

    def check_slug(self, slug: str, user_id: Optional[str] = None) -> dict:
        """Availability check used by the profile settings form."""
        error = validate_slug(slug)
        if error:
            return {"slug": slug, "available": False, "reason": error}
        if self._slug_taken(slug, user_id):
            return {"slug": slug, "available": False, "reason": "Slug is already taken"}
        return {"slug": slug, "available": True, "reason": None}

    def update_slug(self, user_id: str, slug: str) -> User:
        slug = slug.strip().lower()
        error = validate_slug(slug)
        if error:
            raise ValidationError(error)

        with self.store.lock:
            if self._slug_taken(slug, user_id):
                raise ConflictError("Slug is already taken")

            user = get_user(self.store, user_id)
            user.profile_slug = slug
            user.updated_at = datetime.utcnow()
            self.store.update("users", user)

        return user

    def slug_suggestions(self, user_id: str, count: int = 5) -> list[str]:
        """Available slug ideas based on the user's name and title."""
        user = get_user(self.store, user_id)
        bases = [
            user.full_name,
            f"{user.first_name}{user.last_name}",
            f"{user.first_name}-{user.freelancer_profile.get('title', '')}",
            f"{user.full_name}-{user.role.value}",
        ]

        suggestions = []
        for base in bases:
            if not base.strip("- "):
                continue
            slug = self.unique_slug(base, exclude_user_id=user_id)
            if slug not in suggestions:
                suggestions.append(slug)

        number = 1
        while len(suggestions) < count and user.full_name:
            slug = self.unique_slug(f"{user.full_name}-{number}", exclude_user_id=user_id)
            if slug not in suggestions:
                suggestions.append(slug)
            number += 1

        return suggestions[:count]

    def get_by_slug(self, slug: str) -> User:
        user = next((u for u in self.store.load("users", User) if u.profile_slug == slug), None)
        if not user or user.account_status != AccountStatus.ACTIVE:
            raise NotFoundError("Profile not found")
        return user

    def update_profile(self, user_id: str, changes: dict) -> User:
        """Merge allowed fields into the embedded profiles."""
        with self.store.lock:
            user = get_user(self.store, user_id)

            for key, value in changes.get("profile", {}).items():
                if key in PROFILE_FIELDS:
                    user.profile[key] = value

            if user.role == UserRole.FREELANCER:
                for key, value in changes.get("freelancer_profile", {}).items():
                    if key in FREELANCER_FIELDS:
                        user.freelancer_profile[key] = value
                rate = user.freelancer_profile.get("hourly_rate")
                if rate is not None and rate < 0:
                    raise ValidationError("hourly_rate cannot be negative")

            if user.role == UserRole.CLIENT:
                for key, value in changes.get("client_profile", {}).items():
                    if key in CLIENT_FIELDS:
                        user.client_profile[key] = value

            if "stripe_connected_account_id" in changes and user.role == UserRole.FREELANCER:
                user.stripe_connected_account_id = changes["stripe_connected_account_id"]

            user.updated_at = datetime.utcnow()
            self.store.update("users", user)

        return user

    def list_freelancers(
        self,
        skills: Optional[list[str]] = None,
        search: Optional[str] = None,
        min_rating: Optional[float] = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        """Active freelancers, best rated first."""
        wanted = {s.lower() for s in skills or []}

        freelancers = []
        for user in self.store.load("users", User):
            if user.role != UserRole.FREELANCER or not user.can_login:
                continue

            if wanted and not wanted & {s.lower() for s in user.skills}:
                continue

            if search:
                needle = search.lower()
                haystack = [user.full_name, user.freelancer_profile.get("title", ""), user.profile.get("bio", "")]
                if not any(needle in h.lower() for h in haystack + user.skills):
                    continue

            if min_rating is not None and user.rating_average < min_rating:
                continue

            freelancers.append(user)

        freelancers.sort(key=lambda u: (u.rating_average, u.rating_count), reverse=True)
        result = paginate(freelancers, page, limit)
        result["items"] = [u.to_public_dict() for u in result["items"]]
        return result

    def track_profile_view(self, profile_id: str, viewer_id: str) -> bool:
        with self.store.lock:
            user = get_user(self.store, profile_id)
            if not user.record_profile_view(viewer_id):
                return False
            self.store.update("users", user)
            return True

    def get_profile_analytics(self, user_id: str, days: int = 30) -> dict:
        """View counts for the owner's dashboard."""
        user = get_user(self.store, user_id)
        cutoff = datetime.utcnow() - timedelta(days=days)

        recent = [
            v for v in user.profile_viewers
            if datetime.fromisoformat(v["viewed_at"]) >= cutoff
        ]
        per_day = Counter(v["viewed_at"][:10] for v in recent)

        return {
            "total_views": user.profile_view_count,
            "recent_views": len(recent),
            "unique_viewers": len({v["viewer_id"] for v in recent}),
            "views_by_day": dict(sorted(per_day.items())),
            "period_days": days,
        }

    # === Admin ===

    def list_users(
        self,
        role: Optional[UserRole] = None,
        status: Optional[AccountStatus] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        users = []
        for user in self.store.load("users", User):
            if role and user.role != role:
                continue
            if status and user.account_status != status:
                continue
            if search and search.lower() not in f"{user.full_name} {user.email}".lower():
                continue
            users.append(user)

        users.sort(key=lambda u: u.created_at, reverse=True)
        result = paginate(users, page, limit)
        result["items"] = [u.to_public_dict() for u in result["items"]]
        return result

    def set_account_status(self, user_id: str, status: AccountStatus, admin_id: str) -> User:
        if user_id == admin_id:
            raise ForbiddenError("Admins cannot change their own account status")

        with self.store.lock:
            user = get_user(self.store, user_id)
            user.account_status = status
            user.is_active = status != AccountStatus.DEACTIVATED
            user.updated_at = datetime.utcnow()
            self.store.update("users", user)

        logger.info("Account %s set to %s by %s", user_id, status.value, admin_id)
        return user

    def get_user_statistics(self) -> dict:
        users = self.store.load("users", User)
        return {
            "total": len(users),
            "by_role": dict(Counter(u.role.value for u in users)),
            "by_status": dict(Counter(u.account_status.value for u in users)),
            "verified": sum(1 for u in users if u.is_verified),
        }
