"""Stripe Connect onboarding, earnings and withdrawals for freelancers."""

from flask import Blueprint, g

from ..auth import roles_required
from ..utils import success

bp = Blueprint("payouts", __name__, url_prefix="/api/v1/payouts")


@bp.route("/connect", methods=["POST"])
@roles_required("freelancer")
def create_connect_account():
    return success(g.platform.payouts.create_connect_account(g.current_user))


@bp.route("/connect/status", methods=["GET"])
@roles_required("freelancer")
def connect_status():
    return success(g.platform.payouts.get_connect_status(g.current_user))


@bp.route("/earnings", methods=["GET"])
@roles_required("freelancer")
def earnings():
    return success(g.platform.payouts.get_earnings(g.current_user.id))


@bp.route("/request", methods=["POST"])
@roles_required("freelancer")
def request_payout():
    result = g.platform.payouts.request_payout(g.current_user)
    return success(result, status=201, message="Payout requested")
