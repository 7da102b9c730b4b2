"""
repositories/subscription_repo.py
---------------------------------
Data access layer for subscriptions.
All SQL queries related to the `subscriptions` table live here.
Deletion is soft by default; `hard_delete` exists for account cleanup.
"""

from typing import Optional

from db.connection import transaction
from models.subscription import Subscription
from utils.logger import get_logger

logger = get_logger(__name__)

# Column order shared by every SELECT/RETURNING and by _row_to_subscription.
_COLUMNS = """
    id::text, user_id, service_name, service_icon, amount, currency,
    billing_date, frequency, custom_frequency_days, start_date,
    is_one_time, cycle_limit, reminder_enabled, reminder_days_before,
    payment_method, notes, is_deleted, created_at, updated_at
"""


class SubscriptionRepository:
    """Repository for CRUD operations on the subscriptions table."""

    # ── CREATE ────────────────────────────────────────────

    def add(self, subscription: Subscription) -> Subscription:
        """
        Insert a new subscription.

        Returns:
            The stored record, with `id`, `created_at` and `updated_at` populated.
        """
        sql = f"""
            INSERT INTO subscriptions
                (user_id, service_name, service_icon, amount, currency, billing_date,
                 frequency, custom_frequency_days, start_date, is_one_time, cycle_limit,
                 reminder_enabled, reminder_days_before, payment_method, notes)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {_COLUMNS};
        """
        s = subscription
        try:
            with transaction() as cur:
                cur.execute(sql, (
                    s.user_id, s.service_name, s.service_icon, s.amount, s.currency,
                    s.billing_date, s.frequency, s.custom_frequency_days, s.start_date,
                    s.is_one_time, s.cycle_limit, s.reminder_enabled,
                    s.reminder_days_before, s.payment_method, s.notes,
                ))
                saved = self._row_to_subscription(cur.fetchone())
        except Exception as e:
            logger.error(f"Failed to add subscription '{s.service_name}': {e}")
            raise
        logger.info(f"Added subscription '{saved.service_name}' #{saved.id}")
        return saved

    # ── READ ──────────────────────────────────────────────

    def get_all(self, user_id: str, include_deleted: bool = False) -> list[Subscription]:
        """
        Get a user's subscriptions, oldest first.

        Args:
            user_id: Owner reference.
            include_deleted: If True, soft-deleted rows are returned too.
        """
        sql = f"SELECT {_COLUMNS} FROM subscriptions WHERE user_id = %s"
        if not include_deleted:
            sql += " AND is_deleted = FALSE"
        sql += " ORDER BY created_at ASC;"

        with transaction() as cur:
            cur.execute(sql, (user_id,))
            return [self._row_to_subscription(r) for r in cur.fetchall()]

    def get_user_ids(self) -> list[str]:
        """Every user that owns at least one live subscription."""
        sql = "SELECT DISTINCT user_id FROM subscriptions WHERE is_deleted = FALSE ORDER BY user_id;"
        with transaction() as cur:
            cur.execute(sql)
            return [r[0] for r in cur.fetchall()]

    def get_by_id(self, subscription_id: str, user_id: str) -> Optional[Subscription]:
        """Fetch a single live subscription by ID, scoped to user."""
        sql = f"""
            SELECT {_COLUMNS} FROM subscriptions
            WHERE id = %s AND user_id = %s AND is_deleted = FALSE;
        """
        with transaction() as cur:
            cur.execute(sql, (subscription_id, user_id))
            row = cur.fetchone()
            return self._row_to_subscription(row) if row else None

    # ── UPDATE ────────────────────────────────────────────

    def update(self, subscription: Subscription) -> Optional[Subscription]:
        """
        Persist the mutable fields of a subscription.
        `start_date`, `user_id` and `created_at` are never rewritten.

        Returns:
            The stored record, or None if no live row matched.
        """
        sql = f"""
            UPDATE subscriptions SET
                service_name = %s, service_icon = %s, amount = %s, currency = %s,
                billing_date = %s, frequency = %s, custom_frequency_days = %s,
                is_one_time = %s, cycle_limit = %s, reminder_enabled = %s,
                reminder_days_before = %s, payment_method = %s, notes = %s,
                updated_at = NOW()
            WHERE id = %s AND user_id = %s AND is_deleted = FALSE
            RETURNING {_COLUMNS};
        """
        s = subscription
        try:
            with transaction() as cur:
                cur.execute(sql, (
                    s.service_name, s.service_icon, s.amount, s.currency,
                    s.billing_date, s.frequency, s.custom_frequency_days,
                    s.is_one_time, s.cycle_limit, s.reminder_enabled,
                    s.reminder_days_before, s.payment_method, s.notes,
                    s.id, s.user_id,
                ))
                row = cur.fetchone()
        except Exception as e:
            logger.error(f"Failed to update subscription #{s.id}: {e}")
            raise
        if row is None:
            return None
        logger.info(f"Updated subscription #{s.id}")
        return self._row_to_subscription(row)

    # ── DELETE ────────────────────────────────────────────

    def soft_delete(self, subscription_id: str, user_id: str) -> bool:
        """Flag a subscription as deleted. Returns False if nothing matched."""
        sql = """
            UPDATE subscriptions SET is_deleted = TRUE, updated_at = NOW()
            WHERE id = %s AND user_id = %s AND is_deleted = FALSE;
        """
        try:
            with transaction() as cur:
                cur.execute(sql, (subscription_id, user_id))
                deleted = cur.rowcount > 0
        except Exception as e:
            logger.error(f"Failed to delete subscription #{subscription_id}: {e}")
            raise
        if deleted:
            logger.info(f"Soft-deleted subscription #{subscription_id}")
        return deleted

    def hard_delete(self, subscription_id: str, user_id: str) -> bool:
        """Remove the row permanently, deleted or not."""
        sql = "DELETE FROM subscriptions WHERE id = %s AND user_id = %s;"
        try:
            with transaction() as cur:
                cur.execute(sql, (subscription_id, user_id))
                deleted = cur.rowcount > 0
        except Exception as e:
            logger.error(f"Failed to purge subscription #{subscription_id}: {e}")
            raise
        if deleted:
            logger.info(f"Permanently deleted subscription #{subscription_id}")
        return deleted

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_subscription(row: tuple) -> Subscription:
        """Convert a row in _COLUMNS order to a Subscription domain object."""
        return Subscription(
            id=row[0],
            user_id=row[1],
            service_name=row[2],
            service_icon=row[3],
            amount=float(row[4]),
            currency=row[5],
            billing_date=row[6],
            frequency=row[7],
            custom_frequency_days=row[8],
            start_date=row[9],
            is_one_time=row[10],
            cycle_limit=row[11],
            reminder_enabled=row[12],
            reminder_days_before=row[13],
            payment_method=row[14],
            notes=row[15],
            is_deleted=row[16],
            created_at=row[17],
            updated_at=row[18],
        )
