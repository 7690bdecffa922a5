"""Helpers shared by the workflow managers."""

import math
from typing import Optional

from ..errors import NotFoundError, ForbiddenError
from ..models.user import User, UserRole
from ..storage import JsonStore


DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def paginate(items: list, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> dict:
    """Slice a list into a page and describe the pagination."""
    page = max(1, int(page or 1))
    limit = min(MAX_PAGE_SIZE, max(1, int(limit or DEFAULT_PAGE_SIZE)))
    total = len(items)
    start = (page - 1) * limit

    return {
        "items": items[start:start + limit],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
        },
    }


def get_user(store: JsonStore, user_id: str) -> User:
    """Load a user or raise NotFoundError."""
    user = store.get("users", User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def find_user(store: JsonStore, user_id: Optional[str]) -> Optional[User]:
    if not user_id:
        return None
    return store.get("users", User, user_id)


def require_role(user: User, *roles: UserRole, message: Optional[str] = None) -> None:
    if user.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise ForbiddenError(message or f"Only {allowed} users can perform this action")


def list_admins(store: JsonStore) -> list[User]:
    return [u for u in store.load("users", User) if u.role == UserRole.ADMIN and u.is_active]
