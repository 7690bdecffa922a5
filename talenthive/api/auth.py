"""Bearer-token authentication decorators for Flask views."""

from functools import wraps
from typing import Optional

from flask import g, request

from ..errors import AuthenticationError, ForbiddenError
from ..models.user import User


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip() or None


def login_required(view):
    """Reject the request unless it carries a valid access token."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = _bearer_token()
        if not token:
            raise AuthenticationError("Authentication required")
        g.current_user = g.platform.auth.authenticate(token)
        return view(*args, **kwargs)
    return wrapper


def roles_required(*roles: str):
    """Require login and one of the given role names."""
    def decorator(view):
        @wraps(view)
        @login_required
        def wrapper(*args, **kwargs):
            if g.current_user.role.value not in roles:
                raise ForbiddenError("You do not have permission to perform this action")
            return view(*args, **kwargs)
        return wrapper
    return decorator


admin_required = roles_required("admin")


def optional_user() -> Optional[User]:
    """The authenticated user if a valid token was sent, else None."""
    token = _bearer_token()
    if not token:
        return None
    try:
        return g.platform.auth.authenticate(token)
    except AuthenticationError:
        return None
