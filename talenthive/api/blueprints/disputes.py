"""Disputes between contract parties, resolved by admins."""

from flask import Blueprint, g

from ...models.dispute import DisputePriority, DisputeStatus, DisputeType
from ..auth import admin_required, login_required
from ..schemas import AssignRequest, DisputeCreateRequest, DisputeStatusRequest, MessageRequest
from ..utils import enum_arg, page_args, parse_body, success

bp = Blueprint("disputes", __name__, url_prefix="/api/v1/disputes")


@bp.route("", methods=["POST"])
@login_required
def create_dispute():
    body = parse_body(DisputeCreateRequest)
    dispute = g.platform.disputes.create_dispute(
        user=g.current_user,
        title=body.title,
        description=body.description,
        type=body.type,
        priority=body.priority,
        against=body.against,
        project_id=body.project_id,
        contract_id=body.contract_id,
        payment_id=body.payment_id,
        evidence=body.evidence,
    )
    return success(dispute.to_dict(), status=201)


@bp.route("/mine", methods=["GET"])
@login_required
def my_disputes():
    return success([d.to_dict() for d in g.platform.disputes.list_for_user(g.current_user.id)])


@bp.route("", methods=["GET"])
@admin_required
def list_disputes():
    page, limit = page_args()
    result = g.platform.disputes.list_disputes(
        status=enum_arg(DisputeStatus, "status"),
        type=enum_arg(DisputeType, "type"),
        priority=enum_arg(DisputePriority, "priority"),
        page=page,
        limit=limit,
    )
    return success(result)


@bp.route("/stats", methods=["GET"])
@admin_required
def stats():
    return success(g.platform.disputes.get_statistics())


@bp.route("/<dispute_id>", methods=["GET"])
@login_required
def get_dispute(dispute_id: str):
    return success(g.platform.disputes.get_dispute(dispute_id, g.current_user).to_dict())


@bp.route("/<dispute_id>/messages", methods=["POST"])
@login_required
def add_message(dispute_id: str):
    body = parse_body(MessageRequest)
    dispute = g.platform.disputes.add_message(dispute_id, g.current_user, body.message)
    return success(dispute.to_dict(), status=201)


@bp.route("/<dispute_id>/status", methods=["PUT"])
@admin_required
def update_status(dispute_id: str):
    body = parse_body(DisputeStatusRequest)
    dispute = g.platform.disputes.update_status(dispute_id, g.current_user, body.status, body.resolution)
    return success(dispute.to_dict())


@bp.route("/<dispute_id>/assign", methods=["POST"])
@admin_required
def assign(dispute_id: str):
    body = parse_body(AssignRequest)
    dispute = g.platform.disputes.assign(dispute_id, g.current_user, body.admin_id)
    return success(dispute.to_dict())
