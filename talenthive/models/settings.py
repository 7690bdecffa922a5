"""Admin-editable platform settings (fees, escrow, registration)."""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Optional
import uuid


# Fields that hold a percentage in [0, 100]
PERCENT_FIELDS = ("commission_rate", "payment_processing_fee", "tax_rate")

# Fields that hold non-negative integer cents
CENTS_FIELDS = ("min_commission", "max_commission", "withdrawal_min_amount", "withdrawal_fee")

EDITABLE_FIELDS = PERCENT_FIELDS + CENTS_FIELDS + (
    "currency",
    "escrow_hold_days",
    "maintenance_mode",
    "registration_enabled",
)


@dataclass
class PlatformSettings:
    """Current fee schedule and platform switches."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    # Fees
    commission_rate: float = 10.0          # Percent of each payment
    min_commission: int = 100              # Cents
    max_commission: int = 1_000_000        # Cents
    payment_processing_fee: float = 2.9    # Percent
    tax_rate: float = 0.0                  # Percent
    currency: str = "USD"

    # Withdrawals
    withdrawal_min_amount: int = 1000      # Cents
    withdrawal_fee: int = 0                # Cents

    # Escrow
    escrow_hold_days: int = 7

    # Switches
    maintenance_mode: bool = False
    registration_enabled: bool = True

    updated_by: Optional[str] = None
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def to_public_dict(self) -> dict:
        """Fee information safe to expose to any user."""
        return {
            "commission_rate": self.commission_rate,
            "payment_processing_fee": self.payment_processing_fee,
            "tax_rate": self.tax_rate,
            "currency": self.currency,
            "withdrawal_min_amount": self.withdrawal_min_amount,
            "escrow_hold_days": self.escrow_hold_days,
        }

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["updated_at"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "PlatformSettings":
        known = {f.name for f in fields(cls)}
        settings = cls(**{k: v for k, v in data.items() if k in known and k != "updated_at"})
        if data.get("updated_at"):
            settings.updated_at = datetime.fromisoformat(data["updated_at"])
        return settings
