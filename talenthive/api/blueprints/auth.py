"""Registration, login and account credential endpoints."""

from flask import Blueprint, g

from ..auth import login_required
from ..schemas import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenRequest,
)
from ..utils import parse_body, success

bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@bp.route("/register", methods=["POST"])
def register():
    """Create an account and sign it in."""
    body = parse_body(RegisterRequest)
    user, session = g.platform.auth.register(
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        role=body.role.value,
        company_name=body.company_name,
        title=body.title,
    )
    return success(session, status=201, message="Registration successful")


@bp.route("/login", methods=["POST"])
def login():
    body = parse_body(LoginRequest)
    return success(g.platform.auth.login(body.email, body.password))


@bp.route("/refresh", methods=["POST"])
def refresh():
    body = parse_body(RefreshRequest)
    return success(g.platform.auth.refresh(body.refresh_token))


@bp.route("/verify-email", methods=["POST"])
def verify_email():
    body = parse_body(TokenRequest)
    user = g.platform.auth.verify_email(body.token)
    return success(user.to_public_dict(), message="Email verified")


@bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    """Always answers the same way so accounts cannot be enumerated."""
    body = parse_body(ForgotPasswordRequest)
    g.platform.auth.forgot_password(body.email)
    return success(message="If that email is registered, a reset link has been sent")


@bp.route("/reset-password", methods=["POST"])
def reset_password():
    body = parse_body(ResetPasswordRequest)
    g.platform.auth.reset_password(body.token, body.password)
    return success(message="Password has been reset")


@bp.route("/change-password", methods=["POST"])
@login_required
def change_password():
    body = parse_body(ChangePasswordRequest)
    g.platform.auth.change_password(g.current_user.id, body.current_password, body.new_password)
    return success(message="Password changed")


@bp.route("/me", methods=["GET"])
@login_required
def me():
    return success(g.current_user.to_public_dict())
