"""Project postings."""

from flask import Blueprint, g, request

from ...models.project import BudgetType, ProjectStatus
from ..auth import login_required, optional_user, roles_required
from ..schemas import ProjectCreateRequest, ProjectUpdateRequest
from ..utils import bool_arg, enum_arg, float_arg, list_arg, page_args, parse_body, success

bp = Blueprint("projects", __name__, url_prefix="/api/v1/projects")


@bp.route("", methods=["GET"])
def list_projects():
    """Browse projects. Defaults to open, public postings."""
    page, limit = page_args()
    result = g.platform.projects.list_projects(
        status=enum_arg(ProjectStatus, "status", default=ProjectStatus.OPEN),
        category=request.args.get("category"),
        skills=list_arg("skills"),
        budget_type=enum_arg(BudgetType, "budget_type"),
        budget_min=float_arg("budget_min"),
        budget_max=float_arg("budget_max"),
        search=request.args.get("search"),
        featured=bool_arg("featured"),
        urgent=bool_arg("urgent"),
        client_id=request.args.get("client_id"),
        sort=request.args.get("sort", "newest"),
        page=page,
        limit=limit,
    )
    return success(result)


@bp.route("", methods=["POST"])
@roles_required("client")
def create_project():
    body = parse_body(ProjectCreateRequest)
    data = body.model_dump(mode="json")
    project = g.platform.projects.create_project(
        client=g.current_user,
        title=body.title,
        description=body.description,
        category=body.category,
        budget=data["budget"],
        timeline=data["timeline"],
        skills=body.skills,
        tags=body.tags,
        visibility=body.visibility.value,
        is_urgent=body.is_urgent,
        application_deadline=body.application_deadline,
        publish=body.publish,
        attachments=body.attachments,
    )
    return success(project.to_dict(), status=201)


@bp.route("/categories", methods=["GET"])
def categories():
    return success(g.platform.projects.categories())


@bp.route("/mine", methods=["GET"])
@roles_required("client")
def my_projects():
    """Every project the client owns, in any status."""
    page, limit = page_args()
    result = g.platform.projects.list_projects(
        status=enum_arg(ProjectStatus, "status"),
        client_id=g.current_user.id,
        sort=request.args.get("sort", "newest"),
        page=page,
        limit=limit,
    )
    return success(result)


@bp.route("/stats", methods=["GET"])
@roles_required("client")
def my_stats():
    return success(g.platform.projects.get_client_stats(g.current_user.id))


@bp.route("/<project_id>", methods=["GET"])
def get_project(project_id: str):
    viewer = optional_user()
    project = g.platform.projects.get_project(project_id, viewer_id=viewer.id if viewer else None)
    return success(project.to_dict())


@bp.route("/<project_id>", methods=["PUT"])
@login_required
def update_project(project_id: str):
    body = parse_body(ProjectUpdateRequest)
    changes = body.model_dump(mode="json", exclude_unset=True)
    if "application_deadline" in changes:
        changes["application_deadline"] = body.application_deadline
    project = g.platform.projects.update_project(project_id, g.current_user, changes)
    return success(project.to_dict())


@bp.route("/<project_id>", methods=["DELETE"])
@login_required
def delete_project(project_id: str):
    g.platform.projects.delete_project(project_id, g.current_user)
    return success(message="Project deleted")


@bp.route("/<project_id>/toggle-status", methods=["POST"])
@login_required
def toggle_status(project_id: str):
    project = g.platform.projects.toggle_status(project_id, g.current_user)
    return success(project.to_dict())
