"""
Freelancer payouts through Stripe Connect.

A freelancer first onboards a connected account. Released escrow funds
then count as available earnings, and a payout request sends all of them
(less the platform withdrawal fee) to the freelancer's bank in one go.
Amounts are integer cents.
"""

import logging

from ..errors import PaymentGatewayError, ValidationError
from ..models.notification import NotificationPriority, NotificationType
from ..models.transaction import Transaction, TransactionStatus
from ..models.user import User, UserRole
from ..payment_log import PaymentDebugLogger
from ..storage import JsonStore
from .common import get_user, require_role
from .notifications import NotificationCenter
from .settings import SettingsManager

logger = logging.getLogger(__name__)


class PayoutManager:
    """Connected accounts, earnings and withdrawals for freelancers."""

    TRANSACTIONS = "transactions"

    def __init__(
        self,
        store: JsonStore,
        gateway,
        settings: SettingsManager,
        notifications: NotificationCenter,
        client_url: str,
    ):
        self.store = store
        self.gateway = gateway
        self.settings = settings
        self.notifications = notifications
        self.client_url = client_url.rstrip("/")

    def _earned(self, user_id: str) -> list[Transaction]:
        return [t for t in self.store.load(self.TRANSACTIONS, Transaction) if t.freelancer_id == user_id]

    # === Connect onboarding ===

    def create_connect_account(self, user: User) -> dict:
        """Create the connected account if needed and return an onboarding link."""
        require_role(user, UserRole.FREELANCER, message="Only freelancers can set up payment accounts")

        with self.store.lock:
            account_holder = get_user(self.store, user.id)
            account_id = account_holder.stripe_connected_account_id
            if not account_id:
                account = self.gateway.create_connect_account(
                    email=account_holder.email, metadata={"user_id": account_holder.id},
                )
                account_id = account["id"]
                account_holder.stripe_connected_account_id = account_id
                self.store.update("users", account_holder)
                logger.info("Created connected account %s for %s", account_id, account_holder.id)

        link = self.gateway.create_account_link(
            account_id,
            refresh_url=f"{self.client_url}/dashboard/earnings?refresh=true",
            return_url=f"{self.client_url}/dashboard/earnings?success=true",
        )
        return {"account_id": account_id, "url": link["url"]}

    def get_connect_status(self, user: User) -> dict:
        account_id = get_user(self.store, user.id).stripe_connected_account_id
        if not account_id:
            return {"is_connected": False, "account_status": None}

        account = self.gateway.retrieve_account(account_id)
        return {
            "is_connected": True,
            "account_status": {
                "charges_enabled": account["charges_enabled"],
                "payouts_enabled": account["payouts_enabled"],
                "details_submitted": account["details_submitted"],
                "requirements": account.get("requirements"),
            },
        }

    # === Earnings ===

    def get_earnings(self, user_id: str) -> dict:
        """Freelancer earnings by stage, in cents."""
        def total(*statuses):
            return sum(t.freelancer_amount for t in earned if t.status in statuses)

        earned = self._earned(user_id)
        in_escrow = total(TransactionStatus.HELD_IN_ESCROW)
        available = total(TransactionStatus.RELEASED)
        paid_out = total(TransactionStatus.PAID_OUT)

        return {
            "in_escrow": in_escrow,
            "pending": total(TransactionStatus.PENDING, TransactionStatus.PROCESSING),
            "available": available,
            "paid_out": paid_out,
            "total_earned": in_escrow + available + paid_out,
            "currency": self.settings.get_settings().currency,
        }

    # === Withdrawals ===

    def request_payout(self, user: User) -> dict:
        """Withdraw every released transaction to the connected account."""
        require_role(user, UserRole.FREELANCER, message="Only freelancers can request payouts")

        with self.store.lock:
            freelancer = get_user(self.store, user.id)
            account_id = freelancer.stripe_connected_account_id
            if not account_id:
                raise ValidationError("Please set up your payment account first")

            released = [t for t in self._earned(user.id) if t.status == TransactionStatus.RELEASED]
            available = sum(t.freelancer_amount for t in released)
            if available <= 0:
                raise ValidationError("No available balance to withdraw")

            platform = self.settings.get_settings()
            if available < platform.withdrawal_min_amount:
                raise ValidationError(
                    f"Minimum withdrawal is {platform.withdrawal_min_amount / 100:.2f} {platform.currency}"
                )
            amount = available - platform.withdrawal_fee
            if amount <= 0:
                raise ValidationError("Available balance does not cover the withdrawal fee")

            try:
                payout = self.gateway.create_payout(
                    amount=amount,
                    currency=platform.currency,
                    account_id=account_id,
                    metadata={"user_id": user.id, "transactions": len(released)},
                )
            except PaymentGatewayError as e:
                PaymentDebugLogger.failed(None, "payout", e.message)
                raise

            for txn in released:
                txn.mark_paid_out(payout["id"])
                self.store.update(self.TRANSACTIONS, txn)

        PaymentDebugLogger.payout_created(user.id, payout["id"], amount, platform.withdrawal_fee, len(released))
        self.notifications.notify(
            user.id,
            NotificationType.PAYMENT,
            "Payout requested",
            f"{amount / 100:.2f} {platform.currency} is on its way to your bank account",
            link="/dashboard/earnings",
            priority=NotificationPriority.HIGH,
            metadata={"payout_id": payout["id"]},
        )
        return {
            "payout_id": payout["id"],
            "amount": amount,
            "fee": platform.withdrawal_fee,
            "currency": platform.currency,
            "transaction_ids": [t.id for t in released],
        }
