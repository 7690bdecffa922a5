"""Contracts, milestones and amendments."""

from flask import Blueprint, g, request

from ...models.contract import ContractStatus
from ..auth import login_required, roles_required
from ..schemas import (
    AmendmentRequest,
    AmendmentResponseRequest,
    CancelRequest,
    ContractCreateRequest,
    FeedbackRequest,
    MilestoneSubmitRequest,
)
from ..utils import enum_arg, parse_body, success

bp = Blueprint("contracts", __name__, url_prefix="/api/v1/contracts")


@bp.route("", methods=["POST"])
@roles_required("client")
def create_contract():
    body = parse_body(ContractCreateRequest)
    contract = g.platform.contracts.create_contract(
        proposal_id=body.proposal_id,
        client=g.current_user,
        title=body.title,
        description=body.description,
        start_date=body.start_date,
        end_date=body.end_date,
        milestones=body.model_dump(mode="json")["milestones"],
        terms=body.terms,
    )
    return success(contract.to_dict(), status=201)


@bp.route("", methods=["GET"])
@login_required
def list_contracts():
    contracts = g.platform.contracts.list_for_user(
        g.current_user.id, status=enum_arg(ContractStatus, "status"),
    )
    return success([c.to_dict() for c in contracts])


@bp.route("/<contract_id>", methods=["GET"])
@login_required
def get_contract(contract_id: str):
    return success(g.platform.contracts.get_for_user(contract_id, g.current_user).to_dict())


@bp.route("/<contract_id>/sign", methods=["POST"])
@login_required
def sign_contract(contract_id: str):
    contract = g.platform.contracts.sign_contract(contract_id, g.current_user, request.remote_addr or "")
    return success(contract.to_dict(), message="Contract signed")


@bp.route("/<contract_id>/milestones/<milestone_id>/start", methods=["POST"])
@roles_required("freelancer")
def start_milestone(contract_id: str, milestone_id: str):
    contract = g.platform.contracts.start_milestone(contract_id, milestone_id, g.current_user)
    return success(contract.to_dict())


@bp.route("/<contract_id>/milestones/<milestone_id>/submit", methods=["POST"])
@roles_required("freelancer")
def submit_milestone(contract_id: str, milestone_id: str):
    body = parse_body(MilestoneSubmitRequest)
    contract = g.platform.contracts.submit_milestone(
        contract_id, milestone_id, g.current_user, notes=body.notes, deliverables=body.deliverables,
    )
    return success(contract.to_dict())


@bp.route("/<contract_id>/milestones/<milestone_id>/approve", methods=["POST"])
@roles_required("client")
def approve_milestone(contract_id: str, milestone_id: str):
    body = parse_body(FeedbackRequest)
    contract = g.platform.contracts.approve_milestone(contract_id, milestone_id, g.current_user, body.feedback)
    return success(contract.to_dict())


@bp.route("/<contract_id>/milestones/<milestone_id>/reject", methods=["POST"])
@roles_required("client")
def reject_milestone(contract_id: str, milestone_id: str):
    body = parse_body(FeedbackRequest)
    contract = g.platform.contracts.reject_milestone(contract_id, milestone_id, g.current_user, body.feedback)
    return success(contract.to_dict())


@bp.route("/<contract_id>/amendments", methods=["POST"])
@login_required
def propose_amendment(contract_id: str):
    body = parse_body(AmendmentRequest)
    contract = g.platform.contracts.propose_amendment(contract_id, g.current_user, body.description, body.changes)
    return success(contract.to_dict(), status=201)


@bp.route("/<contract_id>/amendments/<amendment_id>/respond", methods=["POST"])
@login_required
def respond_to_amendment(contract_id: str, amendment_id: str):
    body = parse_body(AmendmentResponseRequest)
    contract = g.platform.contracts.respond_to_amendment(contract_id, amendment_id, g.current_user, body.accept)
    return success(contract.to_dict())


@bp.route("/<contract_id>/cancel", methods=["POST"])
@login_required
def cancel_contract(contract_id: str):
    body = parse_body(CancelRequest)
    contract = g.platform.contracts.cancel_contract(contract_id, g.current_user, body.reason)
    return success(contract.to_dict(), message="Contract cancelled")
