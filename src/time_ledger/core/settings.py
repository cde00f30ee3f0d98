"""User settings: lazy defaults and validated partial updates."""

import logging

from time_ledger.core.errors import ValidationError
from time_ledger.core.models import THEMES, SettingsPatch, UserSettings
from time_ledger.core.storage import StorageManager
from time_ledger.core.timezone import is_valid_timezone

logger = logging.getLogger(__name__)


FIELD_TYPES: dict[str, type] = {
    "working_hours": int,
    "share_duration_days": int,
    "timezone": str,
    "theme": str,
    "auto_detect_breaks": bool,
    "enable_notifications": bool,
    "enable_email_notifications": bool,
    "allow_sharing": bool,
}
TYPE_NAMES = {int: "an integer", str: "a string", bool: "true or false"}


def validate_patch(patch: SettingsPatch) -> None:
    """Check the present fields of a settings patch.

    Raises:
        ValidationError: If the patch is empty or a value has the wrong type
            or is out of range
    """
    if patch.is_empty():
        raise ValidationError("No settings provided to update")
    for name, value in patch.present_fields().items():
        expected = FIELD_TYPES[name]
        # bool is an int subclass
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ValidationError(f"{name} must be {TYPE_NAMES[expected]}")
    if patch.working_hours is not None and not 1 <= patch.working_hours <= 24:
        raise ValidationError("Working hours must be between 1 and 24")
    if patch.timezone is not None and not is_valid_timezone(patch.timezone):
        raise ValidationError(f"Unknown timezone: {patch.timezone}")
    if patch.share_duration_days is not None and patch.share_duration_days < 0:
        raise ValidationError("Share duration cannot be negative")
    if patch.theme is not None and patch.theme not in THEMES:
        raise ValidationError(f"Theme must be one of: {', '.join(THEMES)}")


class SettingsService:
    """Read and update per-user settings."""

    def __init__(self, storage: StorageManager):
        self.storage = storage

    def get(self, user_id: int) -> UserSettings:
        """Settings of a user, created with defaults on first read."""
        with self.storage.transaction() as repo:
            return repo.get_settings(user_id)

    def update(self, user_id: int, patch: SettingsPatch) -> UserSettings:
        """Apply a partial update.

        Raises:
            ValidationError: If the patch is invalid
        """
        validate_patch(patch)
        with self.storage.transaction() as repo:
            settings = repo.upsert_settings(user_id, patch)
        logger.info(f"User {user_id} updated settings: {sorted(patch.present_fields())}")
        return settings
