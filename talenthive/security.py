"""Password hashing and JWT helpers."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

from .errors import AuthenticationError


ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def generate_token() -> str:
    """Random URL-safe token for email verification and password resets."""
    return secrets.token_urlsafe(32)


class TokenService:
    """Issues and decodes access and refresh tokens."""

    def __init__(self, secret: str, access_minutes: int = 60, refresh_days: int = 30):
        self.secret = secret
        self.access_ttl = timedelta(minutes=access_minutes)
        self.refresh_ttl = timedelta(days=refresh_days)

    def _encode(self, user_id: str, role: str, token_type: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "role": role,
            "type": token_type,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def create_access_token(self, user_id: str, role: str) -> str:
        return self._encode(user_id, role, "access", self.access_ttl)

    def create_refresh_token(self, user_id: str, role: str) -> str:
        return self._encode(user_id, role, "refresh", self.refresh_ttl)

    def issue_pair(self, user_id: str, role: str) -> dict:
        """Create both tokens for a user."""
        return {
            "access_token": self.create_access_token(user_id, role),
            "refresh_token": self.create_refresh_token(user_id, role),
            "token_type": "bearer",
        }

    def decode(self, token: str, expected_type: Optional[str] = "access") -> dict:
        """Decode a token, raising AuthenticationError when invalid."""
        try:
            payload = jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token")

        if expected_type and payload.get("type") != expected_type:
            raise AuthenticationError("Invalid token type")
        if not payload.get("sub"):
            raise AuthenticationError("Invalid token")
        return payload
