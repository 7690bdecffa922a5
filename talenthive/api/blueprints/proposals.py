"""Freelancer bids on projects."""

from flask import Blueprint, g

from ...models.proposal import ProposalStatus
from ..auth import login_required, roles_required
from ..schemas import FeedbackRequest, ProposalCreateRequest, ProposalUpdateRequest
from ..utils import enum_arg, parse_body, success

bp = Blueprint("proposals", __name__, url_prefix="/api/v1/proposals")


@bp.route("", methods=["POST"])
@roles_required("freelancer")
def submit_proposal():
    body = parse_body(ProposalCreateRequest)
    data = body.model_dump(mode="json")
    proposal = g.platform.proposals.submit_proposal(
        freelancer=g.current_user,
        project_id=body.project_id,
        cover_letter=body.cover_letter,
        bid_amount=body.bid_amount,
        timeline=data["timeline"],
        milestones=data["milestones"],
        attachments=body.attachments,
    )
    return success(proposal.to_dict(), status=201)


@bp.route("/mine", methods=["GET"])
@roles_required("freelancer")
def my_proposals():
    proposals = g.platform.proposals.list_for_freelancer(
        g.current_user.id, status=enum_arg(ProposalStatus, "status"),
    )
    return success([p.to_dict() for p in proposals])


@bp.route("/stats", methods=["GET"])
@roles_required("freelancer")
def my_stats():
    return success(g.platform.proposals.get_statistics(g.current_user.id))


@bp.route("/project/<project_id>", methods=["GET"])
@login_required
def project_proposals(project_id: str):
    proposals = g.platform.proposals.list_for_project(
        project_id, g.current_user, status=enum_arg(ProposalStatus, "status"),
    )
    return success([p.to_dict() for p in proposals])


@bp.route("/<proposal_id>", methods=["GET"])
@login_required
def get_proposal(proposal_id: str):
    return success(g.platform.proposals.get_for_user(proposal_id, g.current_user).to_dict())


@bp.route("/<proposal_id>", methods=["PUT"])
@roles_required("freelancer")
def update_proposal(proposal_id: str):
    body = parse_body(ProposalUpdateRequest)
    changes = body.model_dump(mode="json", exclude_unset=True)
    proposal = g.platform.proposals.update_proposal(proposal_id, g.current_user, changes)
    return success(proposal.to_dict())


@bp.route("/<proposal_id>/withdraw", methods=["POST"])
@roles_required("freelancer")
def withdraw_proposal(proposal_id: str):
    proposal = g.platform.proposals.withdraw_proposal(proposal_id, g.current_user)
    return success(proposal.to_dict())


@bp.route("/<proposal_id>/accept", methods=["POST"])
@roles_required("client")
def accept_proposal(proposal_id: str):
    proposal = g.platform.proposals.accept_proposal(proposal_id, g.current_user)
    return success(proposal.to_dict(), message="Proposal accepted")


@bp.route("/<proposal_id>/reject", methods=["POST"])
@roles_required("client")
def reject_proposal(proposal_id: str):
    body = parse_body(FeedbackRequest)
    proposal = g.platform.proposals.reject_proposal(proposal_id, g.current_user, body.feedback)
    return success(proposal.to_dict())


@bp.route("/<proposal_id>/highlight", methods=["POST"])
@roles_required("client")
def highlight_proposal(proposal_id: str):
    proposal = g.platform.proposals.highlight_proposal(proposal_id, g.current_user)
    return success(proposal.to_dict())
