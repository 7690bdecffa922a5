"""Platform settings management (fee schedule, escrow hold, switches)."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..errors import ValidationError
from ..models.settings import PlatformSettings, PERCENT_FIELDS, CENTS_FIELDS, EDITABLE_FIELDS
from ..storage import JsonStore

logger = logging.getLogger(__name__)


def validate_settings_update(current: PlatformSettings, changes: dict) -> None:
    """Raise ValidationError if applying `changes` would produce invalid settings."""
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")

    for name in PERCENT_FIELDS:
        if name in changes:
            value = changes[name]
            if not isinstance(value, (int, float)) or isinstance(value, bool) or not 0 <= value <= 100:
                raise ValidationError(f"{name} must be between 0 and 100")

    for name in CENTS_FIELDS:
        if name in changes:
            value = changes[name]
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValidationError(f"{name} must be a non-negative integer amount in cents")

    if "escrow_hold_days" in changes:
        value = changes["escrow_hold_days"]
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValidationError("escrow_hold_days must be a non-negative integer")

    if "currency" in changes:
        value = changes["currency"]
        if not isinstance(value, str) or len(value) != 3:
            raise ValidationError("currency must be a 3-letter code")

    min_commission = changes.get("min_commission", current.min_commission)
    max_commission = changes.get("max_commission", current.max_commission)
    if min_commission > max_commission:
        raise ValidationError("min_commission cannot exceed max_commission")


class SettingsManager:
    """Reads and updates the singleton PlatformSettings record."""

    COLLECTION = "platform_settings"
    HISTORY = "settings_history"

    def __init__(self, store: JsonStore, defaults: Optional[dict] = None):
        """Initialize with optional defaults used to seed a fresh data directory."""
        self.store = store
        self.defaults = defaults or {}

    def get_settings(self) -> PlatformSettings:
        """Current settings, seeding defaults on first use."""
        with self.store.lock:
            existing = self.store.load(self.COLLECTION, PlatformSettings)
            if existing:
                return existing[0]

            settings = PlatformSettings.from_dict(self.defaults)
            self.store.save(self.COLLECTION, [settings])
            logger.info("Seeded platform settings")
            return settings

    def update_settings(self, changes: dict, admin_id: str) -> PlatformSettings:
        """Apply validated changes and archive the previous version."""
        with self.store.lock:
            current = self.get_settings()
            validate_settings_update(current, changes)

            updated = replace(current, **changes)
            updated.updated_by = admin_id
            updated.updated_at = datetime.utcnow()

            history = self.store.load_raw(self.HISTORY)
            history.append(current.to_dict())
            self.store.save_raw(self.HISTORY, history)
            self.store.save(self.COLLECTION, [updated])

        logger.info("Platform settings updated by %s: %s", admin_id, ", ".join(sorted(changes)))
        return updated

    def get_history(self, limit: int = 20) -> list[dict]:
        """Previous versions, newest first."""
        history = self.store.load_raw(self.HISTORY)
        return list(reversed(history))[:limit]

    def get_public_settings(self) -> dict:
        return self.get_settings().to_public_dict()
