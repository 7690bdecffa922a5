"""Direct messaging between users."""

from flask import Blueprint, g

from ..auth import login_required
from ..schemas import ConversationRequest, SendMessageRequest
from ..utils import page_args, parse_body, success

bp = Blueprint("messages", __name__, url_prefix="/api/v1/messages")


@bp.route("/conversations", methods=["GET"])
@login_required
def list_conversations():
    return success(g.platform.messaging.list_conversations(g.current_user.id))


@bp.route("/conversations", methods=["POST"])
@login_required
def start_conversation():
    body = parse_body(ConversationRequest)
    conversation = g.platform.messaging.get_or_create_conversation(
        g.current_user.id, body.participant_id, project_id=body.project_id,
    )
    return success(conversation.to_dict())


@bp.route("/conversations/<conversation_id>", methods=["GET"])
@login_required
def get_messages(conversation_id: str):
    page, limit = page_args(default_limit=50)
    return success(g.platform.messaging.get_messages(conversation_id, g.current_user.id, page=page, limit=limit))


@bp.route("/conversations/<conversation_id>", methods=["POST"])
@login_required
def send_message(conversation_id: str):
    body = parse_body(SendMessageRequest)
    message = g.platform.messaging.send_message(
        conversation_id, g.current_user, body.content, attachments=body.attachments,
    )
    return success(message.to_dict(), status=201)


@bp.route("/conversations/<conversation_id>/read", methods=["POST"])
@login_required
def mark_read(conversation_id: str):
    changed = g.platform.messaging.mark_read(conversation_id, g.current_user.id)
    return success({"updated": changed})
