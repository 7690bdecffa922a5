"""Ratings left after a completed contract."""

from flask import Blueprint, g

from ..auth import login_required
from ..schemas import ReviewCreateRequest, ReviewResponseRequest
from ..utils import page_args, parse_body, success

bp = Blueprint("reviews", __name__, url_prefix="/api/v1/reviews")


@bp.route("", methods=["POST"])
@login_required
def create_review():
    body = parse_body(ReviewCreateRequest)
    review = g.platform.reviews.create_review(
        contract_id=body.contract_id,
        reviewer=g.current_user,
        rating=body.rating,
        comment=body.comment,
        category_ratings=body.category_ratings,
    )
    return success(review.to_dict(), status=201)


@bp.route("/<review_id>/respond", methods=["POST"])
@login_required
def respond(review_id: str):
    body = parse_body(ReviewResponseRequest)
    review = g.platform.reviews.respond_to_review(review_id, g.current_user, body.response)
    return success(review.to_dict())


@bp.route("/user/<user_id>", methods=["GET"])
def user_reviews(user_id: str):
    page, limit = page_args(default_limit=10)
    return success(g.platform.reviews.list_for_user(user_id, page=page, limit=limit))


@bp.route("/contract/<contract_id>", methods=["GET"])
@login_required
def contract_reviews(contract_id: str):
    g.platform.contracts.get_for_user(contract_id, g.current_user)
    return success([r.to_dict() for r in g.platform.reviews.list_for_contract(contract_id)])
