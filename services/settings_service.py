"""
services/settings_service.py
----------------------------
Business logic for per-user settings.
"""

from typing import Optional

from config import DEFAULT_CURRENCY, DEFAULT_REMINDER_DAYS
from models.settings import AppSettings
from models.subscription import CURRENCIES
from repositories.settings_repo import SettingsRepository
from services.errors import ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

_EDITABLE_FIELDS = ("currency", "notifications_enabled", "default_reminder_days")


class SettingsService:
    """Reads settings, creating the defaults the first time a user is seen."""

    def __init__(self, repo: Optional[SettingsRepository] = None):
        self.repo = repo or SettingsRepository()

    def get_settings(self, user_id: str) -> AppSettings:
        settings = self.repo.get(user_id)
        if settings is not None:
            return settings
        logger.info(f"No settings for user {user_id}, storing defaults")
        return self.repo.upsert(AppSettings(
            user_id=user_id,
            currency=DEFAULT_CURRENCY,
            default_reminder_days=DEFAULT_REMINDER_DAYS,
        ))

    def update_settings(self, user_id: str, **changes) -> AppSettings:
        """
        Change some of a user's settings.

        Raises:
            ValidationError: On an unknown field, an unknown currency or a reminder
                offset that is not a non-negative integer.
        """
        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown settings fields: {', '.join(sorted(unknown))}")
        if "currency" in changes and changes["currency"] not in CURRENCIES:
            raise ValidationError(f"Currency must be one of {', '.join(CURRENCIES)}")
        if "default_reminder_days" in changes:
            days = changes["default_reminder_days"]
            if not isinstance(days, int) or isinstance(days, bool) or days < 0:
                raise ValidationError("Default reminder days must be a non-negative whole number")

        current = self.get_settings(user_id)
        updated = AppSettings(
            user_id=user_id,
            currency=changes.get("currency", current.currency),
            notifications_enabled=changes.get("notifications_enabled", current.notifications_enabled),
            default_reminder_days=changes.get("default_reminder_days", current.default_reminder_days),
        )
        return self.repo.upsert(updated)
