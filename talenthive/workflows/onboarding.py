"""Onboarding wizard progress per user."""

from datetime import datetime

from ..errors import ValidationError
from ..models.user import User
from ..storage import JsonStore
from .common import get_user


class OnboardingManager:
    """Tracks which wizard step a user is on."""

    def __init__(self, store: JsonStore):
        self.store = store

    def get_status(self, user_id: str) -> dict:
        user = get_user(self.store, user_id)
        return self._status(user)

    def _status(self, user: User) -> dict:
        total = user.role.onboarding_steps
        return {
            "onboarding_completed": user.onboarding_completed,
            "onboarding_step": user.onboarding_step,
            "total_steps": total,
            "skipped": user.onboarding_skipped_at is not None,
            "skipped_at": user.onboarding_skipped_at.isoformat() if user.onboarding_skipped_at else None,
            "role": user.role.value,
        }

    def update_step(self, user_id: str, step) -> dict:
        """Record the step the user reached."""
        if not isinstance(step, int) or isinstance(step, bool) or step < 0:
            raise ValidationError("Step must be a non-negative integer")

        with self.store.lock:
            user = get_user(self.store, user_id)
            if step > user.role.onboarding_steps:
                raise ValidationError(f"Step cannot exceed {user.role.onboarding_steps}")

            user.onboarding_step = step
            user.updated_at = datetime.utcnow()
            self.store.update("users", user)

        return self._status(user)

    def complete(self, user_id: str) -> dict:
        with self.store.lock:
            user = get_user(self.store, user_id)
            user.onboarding_completed = True
            user.onboarding_step = user.role.onboarding_steps
            user.updated_at = datetime.utcnow()
            self.store.update("users", user)

        return self._status(user)

    def skip(self, user_id: str) -> dict:
        with self.store.lock:
            user = get_user(self.store, user_id)
            user.onboarding_skipped_at = datetime.utcnow()
            user.updated_at = datetime.utcnow()
            self.store.update("users", user)

        return self._status(user)
