"""In-app notification inbox."""

from flask import Blueprint, g

from ..auth import login_required
from ..utils import bool_arg, page_args, success

bp = Blueprint("notifications", __name__, url_prefix="/api/v1/notifications")


@bp.route("", methods=["GET"])
@login_required
def list_notifications():
    page, limit = page_args()
    result = g.platform.notifications.list_for_user(
        g.current_user.id, unread_only=bool(bool_arg("unread")), page=page, limit=limit,
    )
    return success(result)


@bp.route("/unread-count", methods=["GET"])
@login_required
def unread_count():
    return success({"unread_count": g.platform.notifications.unread_count(g.current_user.id)})


@bp.route("/read-all", methods=["POST"])
@login_required
def mark_all_read():
    changed = g.platform.notifications.mark_all_read(g.current_user.id)
    return success({"updated": changed})


@bp.route("/<notification_id>/read", methods=["POST"])
@login_required
def mark_read(notification_id: str):
    notification = g.platform.notifications.mark_read(notification_id, g.current_user.id)
    return success(notification.to_dict())


@bp.route("/<notification_id>", methods=["DELETE"])
@login_required
def delete(notification_id: str):
    g.platform.notifications.delete(notification_id, g.current_user.id)
    return success(message="Notification deleted")
