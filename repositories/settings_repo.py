"""
repositories/settings_repo.py
-----------------------------
Data access layer for per-user settings.
"""

from typing import Optional

from db.connection import transaction
from models.settings import AppSettings
from utils.logger import get_logger

logger = get_logger(__name__)


class SettingsRepository:
    """Repository for the app_settings table."""

    def get(self, user_id: str) -> Optional[AppSettings]:
        sql = """
            SELECT user_id, currency, notifications_enabled, default_reminder_days, updated_at
            FROM app_settings WHERE user_id = %s;
        """
        with transaction() as cur:
            cur.execute(sql, (user_id,))
            row = cur.fetchone()
            return self._row_to_settings(row) if row else None

    def upsert(self, settings: AppSettings) -> AppSettings:
        """
        Insert or replace a user's settings.
        Uses PostgreSQL's ON CONFLICT (upsert) for atomicity.
        """
        sql = """
            INSERT INTO app_settings (user_id, currency, notifications_enabled, default_reminder_days)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (user_id) DO UPDATE SET
                currency = EXCLUDED.currency,
                notifications_enabled = EXCLUDED.notifications_enabled,
                default_reminder_days = EXCLUDED.default_reminder_days,
                updated_at = NOW()
            RETURNING user_id, currency, notifications_enabled, default_reminder_days, updated_at;
        """
        try:
            with transaction() as cur:
                cur.execute(sql, (
                    settings.user_id, settings.currency,
                    settings.notifications_enabled, settings.default_reminder_days,
                ))
                saved = self._row_to_settings(cur.fetchone())
        except Exception as e:
            logger.error(f"Failed to save settings for user {settings.user_id}: {e}")
            raise
        logger.info(f"Saved settings for user {settings.user_id}")
        return saved

    @staticmethod
    def _row_to_settings(row: tuple) -> AppSettings:
        return AppSettings(
            user_id=row[0],
            currency=row[1],
            notifications_enabled=row[2],
            default_reminder_days=row[3],
            updated_at=row[4],
        )
