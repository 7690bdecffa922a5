"""Support tickets."""

from flask import Blueprint, g, request

from ...models.support_ticket import TicketCategory, TicketPriority, TicketStatus
from ..auth import admin_required, login_required
from ..schemas import (
    MessageRequest,
    TicketAssignRequest,
    TicketCreateRequest,
    TicketStatusRequest,
    TicketTagsRequest,
)
from ..utils import enum_arg, page_args, parse_body, success

bp = Blueprint("support", __name__, url_prefix="/api/v1/support")


@bp.route("/tickets", methods=["POST"])
@login_required
def create_ticket():
    body = parse_body(TicketCreateRequest)
    ticket = g.platform.support.create_ticket(
        g.current_user,
        body.subject,
        body.message,
        category=body.category,
        priority=body.priority,
        attachments=body.attachments,
    )
    return success(ticket.to_dict(), status=201)


@bp.route("/tickets", methods=["GET"])
@login_required
def list_tickets():
    page, limit = page_args()
    result = g.platform.support.list_tickets(
        g.current_user,
        status=enum_arg(TicketStatus, "status"),
        category=enum_arg(TicketCategory, "category"),
        priority=enum_arg(TicketPriority, "priority"),
        assigned_to=request.args.get("assigned_to"),
        page=page,
        limit=limit,
    )
    return success(result)


@bp.route("/tickets/stats", methods=["GET"])
@admin_required
def stats():
    return success(g.platform.support.get_statistics())


@bp.route("/tickets/<ticket_id>", methods=["GET"])
@login_required
def get_ticket(ticket_id: str):
    return success(g.platform.support.get_ticket(ticket_id, g.current_user).to_dict())


@bp.route("/tickets/<ticket_id>/messages", methods=["POST"])
@login_required
def add_message(ticket_id: str):
    body = parse_body(MessageRequest)
    ticket = g.platform.support.add_message(ticket_id, g.current_user, body.message, attachments=body.attachments)
    return success(ticket.to_dict(), status=201)


@bp.route("/tickets/<ticket_id>/status", methods=["PUT"])
@admin_required
def update_status(ticket_id: str):
    body = parse_body(TicketStatusRequest)
    return success(g.platform.support.update_status(ticket_id, g.current_user, body.status).to_dict())


@bp.route("/tickets/<ticket_id>/assign", methods=["POST"])
@admin_required
def assign(ticket_id: str):
    body = parse_body(TicketAssignRequest)
    return success(g.platform.support.assign(ticket_id, g.current_user, body.admin_id).to_dict())


@bp.route("/tickets/<ticket_id>/tags", methods=["PUT"])
@admin_required
def update_tags(ticket_id: str):
    body = parse_body(TicketTagsRequest)
    return success(g.platform.support.update_tags(ticket_id, g.current_user, body.tags).to_dict())
