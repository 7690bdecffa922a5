"""Transaction model for escrow-backed milestone payments.

All money fields are integer cents.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid


class TransactionStatus(Enum):
    """Status of an escrow transaction."""

    PENDING = "pending"                  # Payment intent created, not yet paid
    PROCESSING = "processing"            # Card charge in flight
    HELD_IN_ESCROW = "held_in_escrow"    # Funded, awaiting release
    RELEASED = "released"                # Transferred to the freelancer
    REFUNDED = "refunded"                # Returned to the client
    FAILED = "failed"                    # Charge failed
    CANCELLED = "cancelled"
    PAID_OUT = "paid_out"                # Withdrawn by the freelancer

    @property
    def is_live(self) -> bool:
        """Blocks a second payment for the same milestone."""
        return self in (
            TransactionStatus.PENDING,
            TransactionStatus.PROCESSING,
            TransactionStatus.HELD_IN_ESCROW,
            TransactionStatus.RELEASED,
            TransactionStatus.PAID_OUT,
        )


@dataclass
class Transaction:
    """A milestone payment moving through escrow."""

    # Identity
    id: str = field(default_factory=lambda: f"TXN-{uuid.uuid4().hex[:10].upper()}")
    contract_id: str = ""
    milestone_id: str = ""
    client_id: str = ""
    freelancer_id: str = ""

    # Amounts (cents)
    amount: int = 0
    platform_commission: int = 0
    processing_fee: int = 0
    tax: int = 0
    freelancer_amount: int = 0
    currency: str = "USD"

    status: TransactionStatus = TransactionStatus.PENDING
    description: str = ""

    # Provider references
    stripe_payment_intent_id: Optional[str] = None
    stripe_charge_id: Optional[str] = None
    stripe_transfer_id: Optional[str] = None
    stripe_refund_id: Optional[str] = None
    stripe_payout_id: Optional[str] = None

    # Escrow
    escrow_release_date: Optional[datetime] = None
    released_at: Optional[datetime] = None
    released_by: Optional[str] = None  # User ID, or "system" for auto-release
    paid_out_at: Optional[datetime] = None

    # Refunds and failures
    refunded_at: Optional[datetime] = None
    refund_reason: str = ""
    failure_reason: Optional[str] = None

    metadata: dict = field(default_factory=dict)

    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def is_due_for_release(self, now: datetime) -> bool:
        """Held in escrow with a release date at or before `now`."""
        return (
            self.status == TransactionStatus.HELD_IN_ESCROW
            and self.escrow_release_date is not None
            and self.escrow_release_date <= now
        )

    def mark_processing(self) -> bool:
        if self.status != TransactionStatus.PENDING:
            return False

        self.status = TransactionStatus.PROCESSING
        self.updated_at = datetime.utcnow()
        return True

    def hold_in_escrow(self, release_date: datetime, charge_id: Optional[str] = None) -> bool:
        """Funds captured; hold until `release_date`."""
        if self.status not in (TransactionStatus.PENDING, TransactionStatus.PROCESSING):
            return False

        self.status = TransactionStatus.HELD_IN_ESCROW
        self.escrow_release_date = release_date
        self.stripe_charge_id = charge_id or self.stripe_charge_id
        self.updated_at = datetime.utcnow()
        return True

    def release(self, transfer_id: Optional[str], released_by: str) -> bool:
        """Funds handed to the freelancer."""
        if self.status != TransactionStatus.HELD_IN_ESCROW:
            return False

        self.status = TransactionStatus.RELEASED
        self.stripe_transfer_id = transfer_id
        self.released_by = released_by
        self.released_at = datetime.utcnow()
        self.updated_at = datetime.utcnow()
        return True

    def mark_paid_out(self, payout_id: str) -> bool:
        """Released funds withdrawn to the freelancer's bank."""
        if self.status != TransactionStatus.RELEASED:
            return False

        self.status = TransactionStatus.PAID_OUT
        self.stripe_payout_id = payout_id
        self.paid_out_at = datetime.utcnow()
        self.updated_at = datetime.utcnow()
        return True

    def refund(self, refund_id: Optional[str], reason: str = "") -> bool:
        if self.status not in (
            TransactionStatus.PENDING,
            TransactionStatus.PROCESSING,
            TransactionStatus.HELD_IN_ESCROW,
        ):
            return False

        self.status = TransactionStatus.REFUNDED
        self.stripe_refund_id = refund_id
        self.refund_reason = reason
        self.refunded_at = datetime.utcnow()
        self.updated_at = datetime.utcnow()
        return True

    def fail(self, reason: str) -> bool:
        """Mark the charge as failed."""
        if self.status not in (TransactionStatus.PENDING, TransactionStatus.PROCESSING):
            return False

        self.status = TransactionStatus.FAILED
        self.failure_reason = reason
        self.updated_at = datetime.utcnow()
        return True

    def cancel(self) -> bool:
        if self.status != TransactionStatus.PENDING:
            return False

        self.status = TransactionStatus.CANCELLED
        self.updated_at = datetime.utcnow()
        return True

    def to_dict(self) -> dict:
        """Serialize transaction to dictionary."""
        return {
            "id": self.id,
            "contract_id": self.contract_id,
            "milestone_id": self.milestone_id,
            "client_id": self.client_id,
            "freelancer_id": self.freelancer_id,
            "amount": self.amount,
            "platform_commission": self.platform_commission,
            "processing_fee": self.processing_fee,
            "tax": self.tax,
            "freelancer_amount": self.freelancer_amount,
            "currency": self.currency,
            "status": self.status.value,
            "description": self.description,
            "stripe_payment_intent_id": self.stripe_payment_intent_id,
            "stripe_charge_id": self.stripe_charge_id,
            "stripe_transfer_id": self.stripe_transfer_id,
            "stripe_refund_id": self.stripe_refund_id,
            "stripe_payout_id": self.stripe_payout_id,
            "escrow_release_date": self.escrow_release_date.isoformat() if self.escrow_release_date else None,
            "released_at": self.released_at.isoformat() if self.released_at else None,
            "released_by": self.released_by,
            "paid_out_at": self.paid_out_at.isoformat() if self.paid_out_at else None,
            "refunded_at": self.refunded_at.isoformat() if self.refunded_at else None,
            "refund_reason": self.refund_reason,
            "failure_reason": self.failure_reason,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Transaction":
        """Deserialize transaction from dictionary."""
        txn = cls(
            id=data.get("id", f"TXN-{uuid.uuid4().hex[:10].upper()}"),
            contract_id=data.get("contract_id", ""),
            milestone_id=data.get("milestone_id", ""),
            client_id=data.get("client_id", ""),
            freelancer_id=data.get("freelancer_id", ""),
            amount=data.get("amount", 0),
            platform_commission=data.get("platform_commission", 0),
            processing_fee=data.get("processing_fee", 0),
            tax=data.get("tax", 0),
            freelancer_amount=data.get("freelancer_amount", 0),
            currency=data.get("currency", "USD"),
            status=TransactionStatus(data.get("status", "pending")),
            description=data.get("description", ""),
            stripe_payment_intent_id=data.get("stripe_payment_intent_id"),
            stripe_charge_id=data.get("stripe_charge_id"),
            stripe_transfer_id=data.get("stripe_transfer_id"),
            stripe_refund_id=data.get("stripe_refund_id"),
            stripe_payout_id=data.get("stripe_payout_id"),
            released_by=data.get("released_by"),
            refund_reason=data.get("refund_reason", ""),
            failure_reason=data.get("failure_reason"),
            metadata=data.get("metadata", {}),
        )

        for field_name in [
            "escrow_release_date", "released_at", "paid_out_at", "refunded_at", "created_at", "updated_at",
        ]:
            if data.get(field_name):
                setattr(txn, field_name, datetime.fromisoformat(data[field_name]))

        return txn
