"""Milestone funding, escrow release and the Stripe webhook."""

from flask import Blueprint, g, request

from ...errors import ForbiddenError
from ...models.transaction import TransactionStatus
from ..auth import admin_required, login_required, roles_required
from ..schemas import ConfirmPaymentRequest, PaymentIntentRequest, RefundRequest
from ..utils import enum_arg, page_args, parse_body, success

bp = Blueprint("payments", __name__, url_prefix="/api/v1/payments")


@bp.route("/create-intent", methods=["POST"])
@roles_required("client")
def create_intent():
    body = parse_body(PaymentIntentRequest)
    result = g.platform.payments.create_payment_intent(body.contract_id, body.milestone_id, g.current_user)
    return success(
        {"client_secret": result["client_secret"], "transaction": result["transaction"].to_dict()},
        status=201,
    )


@bp.route("/confirm", methods=["POST"])
@roles_required("client")
def confirm_payment():
    body = parse_body(ConfirmPaymentRequest)
    txn = g.platform.payments.confirm_payment(body.payment_intent_id, client=g.current_user)
    return success(txn.to_dict(), message="Payment held in escrow")


@bp.route("/<transaction_id>/release", methods=["POST"])
@login_required
def release_payment(transaction_id: str):
    txn = g.platform.payments.release_payment(transaction_id, g.current_user)
    return success(txn.to_dict(), message="Payment released")


@bp.route("/<transaction_id>/refund", methods=["POST"])
@admin_required
def refund_payment(transaction_id: str):
    body = parse_body(RefundRequest)
    txn = g.platform.payments.refund_payment(transaction_id, g.current_user, body.reason)
    return success(txn.to_dict(), message="Payment refunded")


@bp.route("/transactions", methods=["GET"])
@login_required
def transactions():
    page, limit = page_args()
    result = g.platform.payments.get_transactions(
        g.current_user.id,
        status=enum_arg(TransactionStatus, "status"),
        page=page,
        limit=limit,
    )
    return success(result)


@bp.route("/transactions/<transaction_id>", methods=["GET"])
@login_required
def get_transaction(transaction_id: str):
    txn = g.platform.payments.get_transaction(transaction_id)
    if g.current_user.id not in (txn.client_id, txn.freelancer_id) and not g.current_user.is_admin:
        raise ForbiddenError("You do not have access to this transaction")
    return success(txn.to_dict())


@bp.route("/balance", methods=["GET"])
@login_required
def balance():
    return success(g.platform.payments.get_balance(g.current_user.id))


@bp.route("/fees", methods=["GET"])
def fees():
    """Public commission and fee settings."""
    return success(g.platform.settings.get_public_settings())


@bp.route("/webhook", methods=["POST"])
def webhook():
    """Stripe calls this directly; the signature header is the only auth."""
    payload = request.get_data()
    signature = request.headers.get("Stripe-Signature", "")
    return success(g.platform.payments.handle_webhook(payload, signature))
