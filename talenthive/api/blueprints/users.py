"""Profiles, public slugs, freelancer search and onboarding."""

from flask import Blueprint, g, request

from ..auth import login_required, optional_user
from ..schemas import OnboardingStepRequest, ProfileUpdateRequest, SlugRequest
from ..utils import float_arg, list_arg, page_args, parse_body, success

bp = Blueprint("users", __name__, url_prefix="/api/v1/users")


@bp.route("/profile", methods=["PUT"])
@login_required
def update_profile():
    body = parse_body(ProfileUpdateRequest)
    user = g.platform.profiles.update_profile(g.current_user.id, body.model_dump(exclude_unset=True))
    return success(user.to_public_dict())


@bp.route("/slug/check", methods=["GET"])
@login_required
def check_slug():
    slug = request.args.get("slug", "")
    return success(g.platform.profiles.check_slug(slug, g.current_user.id))


@bp.route("/slug", methods=["PUT"])
@login_required
def update_slug():
    body = parse_body(SlugRequest)
    user = g.platform.profiles.update_slug(g.current_user.id, body.slug)
    return success({"profile_slug": user.profile_slug})


@bp.route("/slug/suggestions", methods=["GET"])
@login_required
def slug_suggestions():
    return success(g.platform.profiles.slug_suggestions(g.current_user.id))


@bp.route("/by-slug/<slug>", methods=["GET"])
def get_by_slug(slug: str):
    """Public profile page. Signed-in visitors are counted as viewers."""
    profiles = g.platform.profiles
    user = profiles.get_by_slug(slug)
    viewer = optional_user()
    if viewer:
        profiles.track_profile_view(user.id, viewer.id)
    return success(user.to_public_dict())


@bp.route("/freelancers", methods=["GET"])
def list_freelancers():
    page, limit = page_args()
    result = g.platform.profiles.list_freelancers(
        skills=list_arg("skills"),
        search=request.args.get("search"),
        min_rating=float_arg("min_rating"),
        page=page,
        limit=limit,
    )
    return success(result)


@bp.route("/<user_id>/view", methods=["POST"])
@login_required
def track_view(user_id: str):
    counted = g.platform.profiles.track_profile_view(user_id, g.current_user.id)
    return success({"counted": counted})


@bp.route("/analytics", methods=["GET"])
@login_required
def analytics():
    days = request.args.get("days", 30, type=int)
    return success(g.platform.profiles.get_profile_analytics(g.current_user.id, days=days))


@bp.route("/onboarding", methods=["GET"])
@login_required
def onboarding_status():
    return success(g.platform.onboarding.get_status(g.current_user.id))


@bp.route("/onboarding/step", methods=["PUT"])
@login_required
def onboarding_step():
    body = parse_body(OnboardingStepRequest)
    return success(g.platform.onboarding.update_step(g.current_user.id, body.step))


@bp.route("/onboarding/complete", methods=["POST"])
@login_required
def onboarding_complete():
    return success(g.platform.onboarding.complete(g.current_user.id))


@bp.route("/onboarding/skip", methods=["POST"])
@login_required
def onboarding_skip():
    return success(g.platform.onboarding.skip(g.current_user.id))
