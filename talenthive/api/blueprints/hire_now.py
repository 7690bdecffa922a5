"""Direct hire offers from clients to freelancers."""

from flask import Blueprint, g

from ...models.hire_now import HireNowStatus
from ..auth import roles_required
from ..schemas import HireNowCreateRequest, HireNowResponseRequest
from ..utils import enum_arg, parse_body, success

bp = Blueprint("hire_now", __name__, url_prefix="/api/v1/hire-now")


@bp.route("", methods=["POST"])
@roles_required("client")
def create_request():
    body = parse_body(HireNowCreateRequest)
    data = body.model_dump(mode="json")
    hire = g.platform.hire_now.create_request(
        client=g.current_user,
        freelancer_id=body.freelancer_id,
        project_title=body.project_title,
        project_description=body.project_description,
        budget=body.budget,
        timeline=data["timeline"],
        milestones=data["milestones"],
        message=body.message,
    )
    return success(hire.to_dict(), status=201)


@bp.route("/sent", methods=["GET"])
@roles_required("client")
def sent():
    return success([r.to_dict() for r in g.platform.hire_now.list_sent(g.current_user.id)])


@bp.route("/received", methods=["GET"])
@roles_required("freelancer")
def received():
    requests = g.platform.hire_now.list_received(g.current_user.id, status=enum_arg(HireNowStatus, "status"))
    return success([r.to_dict() for r in requests])


@bp.route("/<request_id>/accept", methods=["POST"])
@roles_required("freelancer")
def accept(request_id: str):
    body = parse_body(HireNowResponseRequest)
    hire = g.platform.hire_now.accept_request(request_id, g.current_user, body.message)
    return success(hire.to_dict(), message="Hire request accepted")


@bp.route("/<request_id>/reject", methods=["POST"])
@roles_required("freelancer")
def reject(request_id: str):
    body = parse_body(HireNowResponseRequest)
    hire = g.platform.hire_now.reject_request(request_id, g.current_user, body.message)
    return success(hire.to_dict())
