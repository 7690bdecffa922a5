"""Verbose logging for every step of the payment lifecycle.

All lines go to the ``talenthive.payments`` logger with a ``[PAYMENT]``
prefix so they can be grepped out of mixed server logs.
"""

import logging
from typing import Optional

logger = logging.getLogger("talenthive.payments")

PREFIX = "[PAYMENT]"


def _fmt(details: dict) -> str:
    return " ".join(f"{k}={v}" for k, v in details.items() if v is not None)


class PaymentDebugLogger:
    """Static helpers that log payment events with consistent fields."""

    @staticmethod
    def intent_created(transaction_id: str, payment_intent_id: str, amount: int, currency: str) -> None:
        logger.info("%s intent_created %s", PREFIX, _fmt({
            "transaction": transaction_id,
            "intent": payment_intent_id,
            "amount": amount,
            "currency": currency,
        }))

    @staticmethod
    def fees_calculated(amount: int, fees: dict) -> None:
        logger.debug("%s fees amount=%s %s", PREFIX, amount, _fmt(fees))

    @staticmethod
    def payment_confirmed(transaction_id: str, payment_intent_id: str, release_date) -> None:
        logger.info("%s confirmed_to_escrow %s", PREFIX, _fmt({
            "transaction": transaction_id,
            "intent": payment_intent_id,
            "release_date": release_date.isoformat() if release_date else None,
        }))

    @staticmethod
    def release_started(transaction_id: str, amount: int, connected_account: Optional[str]) -> None:
        logger.info("%s release_started %s", PREFIX, _fmt({
            "transaction": transaction_id,
            "freelancer_amount": amount,
            "connected_account": connected_account or "none",
        }))

    @staticmethod
    def transfer_created(transaction_id: str, transfer_id: str) -> None:
        logger.info("%s transfer_created transaction=%s transfer=%s", PREFIX, transaction_id, transfer_id)

    @staticmethod
    def transfer_skipped(transaction_id: str, reason: str) -> None:
        logger.warning("%s transfer_skipped transaction=%s reason=%s", PREFIX, transaction_id, reason)

    @staticmethod
    def released(transaction_id: str) -> None:
        logger.info("%s released transaction=%s", PREFIX, transaction_id)

    @staticmethod
    def refunded(transaction_id: str, refund_id: Optional[str], reason: str) -> None:
        logger.info("%s refunded %s", PREFIX, _fmt({
            "transaction": transaction_id,
            "refund": refund_id,
            "reason": reason,
        }))

    @staticmethod
    def failed(transaction_id: Optional[str], stage: str, error: str) -> None:
        logger.error("%s failed stage=%s transaction=%s error=%s", PREFIX, stage, transaction_id, error)

    @staticmethod
    def batch_started(count: int) -> None:
        logger.info("%s auto_release_started due=%d", PREFIX, count)

    @staticmethod
    def batch_finished(released: int, failed: int) -> None:
        logger.info("%s auto_release_finished released=%d failed=%d", PREFIX, released, failed)

    @staticmethod
    def status_changed(transaction_id: str, status: str, source: str) -> None:
        logger.info("%s status_changed transaction=%s status=%s source=%s", PREFIX, transaction_id, status, source)

    @staticmethod
    def payout_created(user_id: str, payout_id: str, amount: int, fee: int, transactions: int) -> None:
        logger.info("%s payout_created %s", PREFIX, _fmt({
            "user": user_id,
            "payout": payout_id,
            "amount": amount,
            "fee": fee,
            "transactions": transactions,
        }))
