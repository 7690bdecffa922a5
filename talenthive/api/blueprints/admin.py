"""Administration: users, platform settings, money and curation."""

from flask import Blueprint, g, request

from ...models.contract import ContractStatus
from ...models.transaction import TransactionStatus
from ...models.user import AccountStatus, UserRole
from ..auth import admin_required
from ..schemas import AccountStatusRequest, ProjectFlagsRequest, SettingsUpdateRequest
from ..utils import date_arg, enum_arg, list_arg, page_args, parse_body, success

bp = Blueprint("admin", __name__, url_prefix="/api/v1/admin")


@bp.route("/users", methods=["GET"])
@admin_required
def list_users():
    page, limit = page_args()
    result = g.platform.profiles.list_users(
        role=enum_arg(UserRole, "role"),
        status=enum_arg(AccountStatus, "status"),
        search=request.args.get("search"),
        page=page,
        limit=limit,
    )
    return success(result)


@bp.route("/users/<user_id>/status", methods=["PUT"])
@admin_required
def set_user_status(user_id: str):
    body = parse_body(AccountStatusRequest)
    user = g.platform.profiles.set_account_status(user_id, body.status, g.current_user.id)
    return success(user.to_public_dict())


@bp.route("/settings", methods=["GET"])
@admin_required
def get_settings():
    return success(g.platform.settings.get_settings().to_dict())


@bp.route("/settings", methods=["PUT"])
@admin_required
def update_settings():
    body = parse_body(SettingsUpdateRequest)
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    settings = g.platform.settings.update_settings(changes, g.current_user.id)
    return success(settings.to_dict(), message="Settings updated")


@bp.route("/settings/history", methods=["GET"])
@admin_required
def settings_history():
    limit = request.args.get("limit", 20, type=int)
    return success(g.platform.settings.get_history(limit))


@bp.route("/transactions", methods=["GET"])
@admin_required
def list_transactions():
    page, limit = page_args()
    result = g.platform.payments.list_all_transactions(
        status=enum_arg(TransactionStatus, "status"),
        start_date=date_arg("start_date"),
        end_date=date_arg("end_date"),
        page=page,
        limit=limit,
    )
    return success(result)


@bp.route("/contracts", methods=["GET"])
@admin_required
def list_contracts():
    contracts = g.platform.contracts.list_all(status=enum_arg(ContractStatus, "status"))
    return success([c.to_dict() for c in contracts])


@bp.route("/transactions/stats", methods=["GET"])
@admin_required
def transaction_stats():
    return success(g.platform.payments.get_transaction_stats())


@bp.route("/escrow/release", methods=["POST"])
@admin_required
def release_escrow():
    """Run the escrow auto-release sweep now."""
    return success(g.platform.payments.auto_release_escrow_payments())


@bp.route("/stats", methods=["GET"])
@admin_required
def platform_stats():
    return success(g.platform.get_statistics(include=list_arg("include") or None))


@bp.route("/projects/<project_id>/flags", methods=["PUT"])
@admin_required
def project_flags(project_id: str):
    body = parse_body(ProjectFlagsRequest)
    project = g.platform.projects.set_flags(project_id, featured=body.is_featured, urgent=body.is_urgent)
    return success(project.to_dict())
