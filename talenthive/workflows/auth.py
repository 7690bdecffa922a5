"""Registration, login, tokens, email verification and password resets."""

import logging
import re
from datetime import datetime, timedelta
from typing import Optional

from ..errors import AuthenticationError, ConflictError, ForbiddenError, ValidationError
from ..models.user import User, UserRole, AccountStatus
from ..security import TokenService, generate_token, hash_password, verify_password
from ..storage import JsonStore
from .common import get_user
from .profiles import ProfileManager
from .settings import SettingsManager

logger = logging.getLogger(__name__)


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8
VERIFICATION_TTL = timedelta(hours=24)
RESET_TTL = timedelta(hours=1)

INVALID_CREDENTIALS = "Invalid email or password"


def _validate_password(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class AuthService:
    """Account creation and credential checks."""

    def __init__(
        self,
        store: JsonStore,
        tokens: TokenService,
        profiles: ProfileManager,
        settings: SettingsManager,
    ):
        self.store = store
        self.tokens = tokens
        self.profiles = profiles
        self.settings = settings

    def _find_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        return next((u for u in self.store.load("users", User) if u.email == email), None)

    def _session(self, user: User) -> dict:
        return {"user": user.to_public_dict(), **self.tokens.issue_pair(user.id, user.role.value)}

    def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: str = "freelancer",
        company_name: Optional[str] = None,
        title: Optional[str] = None,
        enforce_registration_switch: bool = True,
    ) -> tuple[User, dict]:
        """Create an account and return it with a fresh session."""
        email = (email or "").strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("A valid email is required")
        _validate_password(password)
        if not (first_name or "").strip() or not (last_name or "").strip():
            raise ValidationError("First and last name are required")

        try:
            user_role = UserRole(role)
        except ValueError:
            raise ValidationError(f"Invalid role: {role}")

        if enforce_registration_switch and not self.settings.get_settings().registration_enabled:
            raise ForbiddenError("Registration is currently disabled")

        with self.store.lock:
            if self._find_by_email(email):
                raise ConflictError("User with this email already exists")

            user = User(
                email=email,
                password_hash=hash_password(password),
                role=user_role,
                profile={"first_name": first_name.strip(), "last_name": last_name.strip()},
            )

            if user_role == UserRole.FREELANCER:
                user.freelancer_profile = {
                    "title": title or "",
                    "hourly_rate": 0,
                    "skills": [],
                    "experience": [],
                    "portfolio": [],
                    "availability": "available",
                    "languages": [],
                }
            elif user_role == UserRole.CLIENT:
                user.client_profile = {"company_name": company_name or "", "industry": ""}
            else:
                user.admin_profile = {"permissions": ["all"], "department": ""}

            user.profile_slug = self.profiles.unique_slug(f"{first_name} {last_name}")
            user.email_verification_token = generate_token()
            user.email_verification_expires = datetime.utcnow() + VERIFICATION_TTL

            self.store.insert("users", user)

        logger.info("Registered %s user %s", user_role.value, user.id)
        return user, self._session(user)

    def login(self, email: str, password: str) -> dict:
        """Check credentials. Unknown email and wrong password fail identically."""
        user = self._find_by_email(email or "")
        if not user or not verify_password(password or "", user.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        if user.account_status != AccountStatus.ACTIVE:
            raise ForbiddenError(f"Account is {user.account_status.value}")

        with self.store.lock:
            user = get_user(self.store, user.id)
            user.last_login_at = datetime.utcnow()
            self.store.update("users", user)

        return self._session(user)

    def refresh(self, refresh_token: str) -> dict:
        payload = self.tokens.decode(refresh_token, expected_type="refresh")
        user = self.store.get("users", User, payload["sub"])
        if not user or not user.can_login:
            raise AuthenticationError("Invalid token")
        return self.tokens.issue_pair(user.id, user.role.value)

    def authenticate(self, access_token: str) -> User:
        """Resolve a bearer token to an active user."""
        payload = self.tokens.decode(access_token, expected_type="access")
        user = self.store.get("users", User, payload["sub"])
        if not user:
            raise AuthenticationError("User no longer exists")
        if not user.can_login:
            raise AuthenticationError("Account is deactivated")
        return user

    def verify_email(self, token: str) -> User:
        with self.store.lock:
            user = next(
                (u for u in self.store.load("users", User) if token and u.email_verification_token == token),
                None,
            )
            if not user or not user.email_verification_expires or user.email_verification_expires < datetime.utcnow():
                raise ValidationError("Invalid or expired verification token")

            user.is_verified = True
            user.email_verification_token = None
            user.email_verification_expires = None
            self.store.update("users", user)

        return user

    def forgot_password(self, email: str) -> Optional[str]:
        """Issue a reset token when the account exists.

        Callers respond identically either way; the token is returned so it
        can be delivered by email.
        """
        with self.store.lock:
            user = self._find_by_email(email or "")
            if not user:
                return None

            user.password_reset_token = generate_token()
            user.password_reset_expires = datetime.utcnow() + RESET_TTL
            self.store.update("users", user)

        return user.password_reset_token

    def reset_password(self, token: str, new_password: str) -> User:
        _validate_password(new_password)

        with self.store.lock:
            user = next(
                (u for u in self.store.load("users", User) if token and u.password_reset_token == token),
                None,
            )
            if not user or not user.password_reset_expires or user.password_reset_expires < datetime.utcnow():
                raise ValidationError("Invalid or expired reset token")

            user.password_hash = hash_password(new_password)
            user.password_reset_token = None
            user.password_reset_expires = None
            user.updated_at = datetime.utcnow()
            self.store.update("users", user)

        return user

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        _validate_password(new_password)

        with self.store.lock:
            user = get_user(self.store, user_id)
            if not verify_password(current_password or "", user.password_hash):
                raise AuthenticationError("Current password is incorrect")

            user.password_hash = hash_password(new_password)
            user.updated_at = datetime.utcnow()
            self.store.update("users", user)
