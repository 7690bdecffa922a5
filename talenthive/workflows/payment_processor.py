"""
Escrow payment processing for contract milestones.

Lifecycle of a milestone payment:

    approved milestone
        -> create_payment_intent   (transaction: pending)
        -> confirm_payment         (transaction: held_in_escrow, milestone: paid)
        -> release_payment / auto_release_escrow_payments
                                   (transaction: released, funds transferred)

A transaction that has not been released can instead be refunded; an
intent that was never charged is cancelled at the gateway. Released funds
are withdrawn separately through PayoutManager. All amounts here are
integer cents; contract and milestone amounts are converted on the way in.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ..errors import AppError, ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..models.contract import ContractStatus, MilestoneStatus
from ..models.notification import NotificationType, NotificationPriority
from ..models.settings import PlatformSettings
from ..models.transaction import Transaction, TransactionStatus
from ..models.user import User
from ..payment_log import PaymentDebugLogger
from ..storage import JsonStore
from .common import find_user, paginate
from .contract_manager import ContractManager
from .notifications import NotificationCenter
from .settings import SettingsManager

logger = logging.getLogger(__name__)

REFUNDABLE_STATUSES = (
    TransactionStatus.PENDING,
    TransactionStatus.PROCESSING,
    TransactionStatus.HELD_IN_ESCROW,
)


def round_half_up(value: float) -> int:
    """Round to the nearest whole cent, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_cents(amount: float) -> int:
    return round_half_up(amount * 100)


def calculate_fees(amount: int, settings: PlatformSettings) -> dict:
    """Split a payment (in cents) into commission, fees, tax and payout."""
    commission = round_half_up(amount * settings.commission_rate / 100)
    commission = max(settings.min_commission, min(settings.max_commission, commission))
    processing_fee = round_half_up(amount * settings.payment_processing_fee / 100)
    tax = round_half_up(amount * settings.tax_rate / 100)

    freelancer_amount = amount - commission - processing_fee - tax
    if freelancer_amount < 0:
        raise ValidationError("Payment amount is too small to cover platform fees")

    return {
        "amount": amount,
        "platform_commission": commission,
        "processing_fee": processing_fee,
        "tax": tax,
        "freelancer_amount": freelancer_amount,
    }


class PaymentProcessor:
    """Moves milestone payments through escrow via the payment gateway."""

    COLLECTION = "transactions"

    def __init__(
        self,
        store: JsonStore,
        gateway,
        contracts: ContractManager,
        settings: SettingsManager,
        notifications: NotificationCenter,
    ):
        self.store = store
        self.gateway = gateway
        self.contracts = contracts
        self.settings = settings
        self.notifications = notifications

    def get_transaction(self, transaction_id: str) -> Transaction:
        txn = self.store.get(self.COLLECTION, Transaction, transaction_id)
        if not txn:
            raise NotFoundError("Transaction not found")
        return txn

    def _find_by_intent(self, payment_intent_id: str) -> Optional[Transaction]:
        return next(
            (t for t in self.store.load(self.COLLECTION, Transaction)
             if t.stripe_payment_intent_id == payment_intent_id),
            None,
        )

    def _notify_payment(self, user_id: str, title: str, message: str, txn: Transaction,
                        priority: NotificationPriority = NotificationPriority.NORMAL) -> None:
        self.notifications.notify(
            user_id,
            NotificationType.PAYMENT,
            title,
            message,
            link=f"/contracts/{txn.contract_id}",
            priority=priority,
            metadata={"transaction_id": txn.id, "contract_id": txn.contract_id},
        )

    # === Funding ===

    def create_payment_intent(self, contract_id: str, milestone_id: str, client: User) -> dict:
        """Start funding an approved milestone. Returns the client secret."""
        contract = self.contracts.get_contract(contract_id)
        if contract.client_id != client.id:
            raise ForbiddenError("Only the contract client can fund milestones")
        if contract.status != ContractStatus.ACTIVE:
            raise ValidationError("Contract is not active")

        milestone = contract.get_milestone(milestone_id)
        if not milestone:
            raise NotFoundError("Milestone not found")
        if milestone.status != MilestoneStatus.APPROVED:
            raise ValidationError("Only approved milestones can be paid")

        with self.store.lock:
            live = [
                t for t in self.store.load(self.COLLECTION, Transaction)
                if t.milestone_id == milestone_id and t.status.is_live
            ]
            if live:
                raise ConflictError("A payment for this milestone already exists")

            platform = self.settings.get_settings()
            fees = calculate_fees(to_cents(milestone.amount), platform)
            PaymentDebugLogger.fees_calculated(fees["amount"], fees)

            txn = Transaction(
                contract_id=contract.id,
                milestone_id=milestone.id,
                client_id=contract.client_id,
                freelancer_id=contract.freelancer_id,
                currency=platform.currency,
                description=f"{contract.title}: {milestone.title}",
                **fees,
            )

            intent = self.gateway.create_payment_intent(
                amount=txn.amount,
                currency=txn.currency,
                metadata={
                    "transaction_id": txn.id,
                    "contract_id": contract.id,
                    "milestone_id": milestone.id,
                },
                description=txn.description,
            )
            txn.stripe_payment_intent_id = intent["id"]
            self.store.insert(self.COLLECTION, txn)

        PaymentDebugLogger.intent_created(txn.id, intent["id"], txn.amount, txn.currency)
        return {"client_secret": intent["client_secret"], "transaction": txn}

    def confirm_payment(self, payment_intent_id: str, client: Optional[User] = None) -> Transaction:
        """Record a succeeded charge and hold the funds in escrow."""
        with self.store.lock:
            txn = self._find_by_intent(payment_intent_id)
            if not txn:
                raise NotFoundError("Transaction not found for this payment")
            if client and txn.client_id != client.id:
                raise ForbiddenError("You cannot confirm this payment")
            if txn.status == TransactionStatus.HELD_IN_ESCROW:
                return txn

            intent = self.gateway.retrieve_payment_intent(payment_intent_id)
            if intent["status"] != "succeeded":
                raise ValidationError(f"Payment has not succeeded (status: {intent['status']})")

            hold_days = self.settings.get_settings().escrow_hold_days
            release_date = datetime.utcnow() + timedelta(days=hold_days)
            if not txn.hold_in_escrow(release_date, intent.get("latest_charge")):
                raise ValidationError(f"Cannot confirm a transaction that is {txn.status.value}")
            self.store.update(self.COLLECTION, txn)

        PaymentDebugLogger.payment_confirmed(txn.id, payment_intent_id, release_date)

        try:
            self.contracts.mark_milestone_paid(txn.contract_id, txn.milestone_id)
        except AppError as e:
            # The charge stands even when the milestone can no longer be marked paid
            PaymentDebugLogger.failed(txn.id, "mark_milestone_paid", e.message)

        self._notify_payment(txn.client_id, "Payment received", "Your payment is held in escrow", txn)
        self._notify_payment(
            txn.freelancer_id,
            "Milestone funded",
            f"Funds will be released on {release_date:%Y-%m-%d}",
            txn,
        )
        return txn

    # === Release ===

    def _release(self, txn: Transaction, released_by: str) -> Transaction:
        """Transfer to the freelancer and mark released. Caller holds the lock."""
        freelancer = find_user(self.store, txn.freelancer_id)
        account = freelancer.stripe_connected_account_id if freelancer else None
        PaymentDebugLogger.release_started(txn.id, txn.freelancer_amount, account)

        transfer_id = None
        if account:
            transfer = self.gateway.create_transfer(
                amount=txn.freelancer_amount,
                currency=txn.currency,
                destination=account,
                metadata={"transaction_id": txn.id, "contract_id": txn.contract_id},
            )
            transfer_id = transfer["id"]
            PaymentDebugLogger.transfer_created(txn.id, transfer_id)
        else:
            PaymentDebugLogger.transfer_skipped(txn.id, "freelancer has no connected account")

        txn.release(transfer_id, released_by)
        self.store.update(self.COLLECTION, txn)
        PaymentDebugLogger.released(txn.id)

        self._notify_payment(
            txn.freelancer_id,
            "Payment released",
            f"{txn.freelancer_amount / 100:.2f} {txn.currency} has been released to you",
            txn,
            priority=NotificationPriority.HIGH,
        )
        self._notify_payment(txn.client_id, "Payment released", "Escrow funds were released to the freelancer", txn)
        return txn

    def release_payment(self, transaction_id: str, actor: User) -> Transaction:
        """Manual release by the contract client or an admin."""
        with self.store.lock:
            txn = self.get_transaction(transaction_id)
            if actor.id != txn.client_id and not actor.is_admin:
                raise ForbiddenError("Only the client or an admin can release this payment")
            if txn.status != TransactionStatus.HELD_IN_ESCROW:
                raise ValidationError(f"Cannot release a transaction that is {txn.status.value}")

            try:
                return self._release(txn, actor.id)
            except AppError as e:
                PaymentDebugLogger.failed(txn.id, "release", e.message)
                raise

    def auto_release_escrow_payments(self, now: Optional[datetime] = None) -> dict:
        """Release every held transaction whose escrow period has ended.

        Items are processed one at a time; a failure is logged and the batch
        continues.
        """
        now = now or datetime.utcnow()
        due = [t for t in self.store.load(self.COLLECTION, Transaction) if t.is_due_for_release(now)]
        PaymentDebugLogger.batch_started(len(due))

        released, errors = [], []
        for candidate in due:
            try:
                with self.store.lock:
                    # A manual release may have happened since the batch was selected
                    txn = self.store.get(self.COLLECTION, Transaction, candidate.id)
                    if not txn or not txn.is_due_for_release(now):
                        continue
                    self._release(txn, "system")
                released.append(candidate.id)
            except Exception as e:
                logger.exception("Auto-release failed for %s", candidate.id)
                PaymentDebugLogger.failed(candidate.id, "auto_release", str(e))
                errors.append({"transaction_id": candidate.id, "error": str(e)})

        PaymentDebugLogger.batch_finished(len(released), len(errors))
        return {
            "released": len(released),
            "failed": len(errors),
            "processed": released,
            "errors": errors,
        }

    # === Refunds & failures ===

    def refund_payment(self, transaction_id: str, actor: User, reason: str = "") -> Transaction:
        """Return a payment to the client. An uncharged intent is cancelled instead."""
        if not actor.is_admin:
            raise ForbiddenError("Only admins can issue refunds")

        with self.store.lock:
            txn = self.get_transaction(transaction_id)
            if txn.status == TransactionStatus.REFUNDED:
                raise ValidationError("Transaction has already been refunded")
            if txn.status not in REFUNDABLE_STATUSES:
                raise ValidationError(f"Cannot refund a transaction that is {txn.status.value}")

            refund_id = None
            try:
                if txn.status == TransactionStatus.PENDING:
                    self.gateway.cancel_payment_intent(txn.stripe_payment_intent_id)
                else:
                    refund = self.gateway.create_refund(
                        txn.stripe_payment_intent_id,
                        metadata={"transaction_id": txn.id, "reason": reason},
                    )
                    refund_id = refund["id"]
            except AppError as e:
                PaymentDebugLogger.failed(txn.id, "refund", e.message)
                raise

            txn.refund(refund_id, reason)
            self.store.update(self.COLLECTION, txn)

        PaymentDebugLogger.refunded(txn.id, refund_id, reason)
        self._notify_payment(txn.client_id, "Payment refunded", reason or "Your payment was refunded", txn)
        self._notify_payment(txn.freelancer_id, "Payment refunded", "A milestone payment was refunded", txn)
        return txn

    def handle_payment_failure(self, payment_intent_id: str, reason: str) -> Optional[Transaction]:
        with self.store.lock:
            txn = self._find_by_intent(payment_intent_id)
            if not txn:
                logger.warning("Payment failure for unknown intent %s", payment_intent_id)
                return None
            if not txn.fail(reason):
                return txn
            self.store.update(self.COLLECTION, txn)

        PaymentDebugLogger.failed(txn.id, "charge", reason)
        self._notify_payment(
            txn.client_id, "Payment failed", reason, txn, priority=NotificationPriority.HIGH,
        )
        return txn

    def handle_payment_processing(self, payment_intent_id: str) -> Optional[Transaction]:
        """The charge was submitted but has not settled yet."""
        with self.store.lock:
            txn = self._find_by_intent(payment_intent_id)
            if not txn or not txn.mark_processing():
                return txn
            self.store.update(self.COLLECTION, txn)

        PaymentDebugLogger.status_changed(txn.id, txn.status.value, "webhook")
        return txn

    def handle_payment_canceled(self, payment_intent_id: str) -> Optional[Transaction]:
        """The intent was abandoned or voided before any charge."""
        with self.store.lock:
            txn = self._find_by_intent(payment_intent_id)
            if not txn or not txn.cancel():
                return txn
            self.store.update(self.COLLECTION, txn)

        PaymentDebugLogger.status_changed(txn.id, txn.status.value, "webhook")
        return txn

    def handle_webhook(self, payload: bytes, signature: str) -> dict:
        """Apply a verified Stripe webhook event."""
        event = self.gateway.construct_event(payload, signature)
        event_type = event["type"]
        obj = event["data"]["object"]
        logger.info("Stripe webhook %s", event_type)

        if event_type == "payment_intent.succeeded":
            if self._find_by_intent(obj["id"]):
                self.confirm_payment(obj["id"])
        elif event_type == "payment_intent.processing":
            self.handle_payment_processing(obj["id"])
        elif event_type == "payment_intent.canceled":
            self.handle_payment_canceled(obj["id"])
        elif event_type == "payment_intent.payment_failed":
            error = obj.get("last_payment_error") or {}
            self.handle_payment_failure(obj["id"], error.get("message", "Payment failed"))
        elif event_type == "charge.refunded":
            self._record_external_refund(obj.get("payment_intent"), obj.get("id"))

        return {"received": True, "type": event_type}

    def _record_external_refund(self, payment_intent_id: Optional[str], charge_id: Optional[str]) -> None:
        """A refund issued from the Stripe dashboard rather than through us."""
        if not payment_intent_id:
            return
        with self.store.lock:
            txn = self._find_by_intent(payment_intent_id)
            if txn and txn.refund(None, f"Refunded externally (charge {charge_id})"):
                self.store.update(self.COLLECTION, txn)
                PaymentDebugLogger.refunded(txn.id, None, "external")

    # === Reporting ===

    def get_transactions(
        self,
        user_id: str,
        status: Optional[TransactionStatus] = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        """A user's transactions as client or freelancer."""
        txns = [
            t for t in self.store.load(self.COLLECTION, Transaction)
            if user_id in (t.client_id, t.freelancer_id) and (status is None or t.status == status)
        ]
        txns.sort(key=lambda t: t.created_at, reverse=True)
        result = paginate(txns, page, limit)
        result["items"] = [t.to_dict() for t in result["items"]]
        return result

    def get_balance(self, user_id: str) -> dict:
        """Escrow balance in cents."""
        txns = self.store.load(self.COLLECTION, Transaction)
        earned = [t for t in txns if t.freelancer_id == user_id]
        spent = [t for t in txns if t.client_id == user_id]

        return {
            "available": sum(t.freelancer_amount for t in earned if t.status == TransactionStatus.RELEASED),
            "pending": sum(
                t.freelancer_amount for t in earned
                if t.status in (TransactionStatus.HELD_IN_ESCROW, TransactionStatus.PROCESSING)
            ),
            "total_earned": sum(
                t.freelancer_amount for t in earned
                if t.status in (TransactionStatus.RELEASED, TransactionStatus.PAID_OUT)
            ),
            "total_spent": sum(
                t.amount for t in spent
                if t.status in (
                    TransactionStatus.HELD_IN_ESCROW, TransactionStatus.RELEASED, TransactionStatus.PAID_OUT,
                )
            ),
            "currency": self.settings.get_settings().currency,
        }

    def list_all_transactions(
        self,
        status: Optional[TransactionStatus] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        """Admin view of every transaction."""
        txns = []
        for t in self.store.load(self.COLLECTION, Transaction):
            if status and t.status != status:
                continue
            if start_date and t.created_at < start_date:
                continue
            if end_date and t.created_at > end_date:
                continue
            txns.append(t)

        txns.sort(key=lambda t: t.created_at, reverse=True)
        result = paginate(txns, page, limit)
        result["items"] = [t.to_dict() for t in result["items"]]
        return result

    def get_transaction_stats(self) -> dict:
        """Totals for the admin dashboard (cents)."""
        txns = self.store.load(self.COLLECTION, Transaction)
        settled = [
            t for t in txns
            if t.status in (TransactionStatus.HELD_IN_ESCROW, TransactionStatus.RELEASED, TransactionStatus.PAID_OUT)
        ]
        by_status = Counter(t.status.value for t in txns)

        return {
            "total_transactions": len(txns),
            "total_volume": sum(t.amount for t in settled),
            "total_commission": sum(t.platform_commission for t in settled),
            "total_processing_fees": sum(t.processing_fee for t in settled),
            "pending_count": by_status.get("pending", 0) + by_status.get("processing", 0),
            "escrow_count": by_status.get("held_in_escrow", 0),
            "escrow_amount": sum(t.amount for t in txns if t.status == TransactionStatus.HELD_IN_ESCROW),
            "released_count": by_status.get("released", 0),
            "refunded_count": by_status.get("refunded", 0),
            "failed_count": by_status.get("failed", 0),
            "by_status": dict(by_status),
        }
