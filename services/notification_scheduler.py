"""
services/notification_scheduler.py
----------------------------------
Works out which reminders should exist for each subscription and when.

Delivery is not handled here: a dispatcher polls `get_due(now)` and sends
whatever it finds through its own channel.
"""

from datetime import datetime
from typing import Iterable, Optional

from models.notification import BILLING_REMINDER, CANCELLATION_ALERT, ScheduledNotification
from models.subscription import Subscription
from services.errors import InvalidStateError
from services.subscription_calculator import SubscriptionCalculator
from utils.logger import get_logger

logger = get_logger(__name__)


def _billing_id(subscription_id: str) -> str:
    return f"billing_{subscription_id}"


def _cancel_id(subscription_id: str) -> str:
    return f"cancel_{subscription_id}"


class NotificationScheduler:
    """
    In-memory reminder schedule, keyed by notification id.

    Responsibilities:
        - Billing reminder `reminder_days_before` days ahead of the next charge.
        - Cancellation alert at the second-to-last charge of one-time subscriptions.
        - Rebuilding the whole schedule after a sync.
    """

    def __init__(self, calculator: Optional[SubscriptionCalculator] = None):
        self.calculator = calculator or SubscriptionCalculator()
        self._scheduled: dict[str, ScheduledNotification] = {}

    # ── Scheduling ────────────────────────────────────────

    def schedule_for_subscription(self, subscription: Subscription, now: datetime) -> None:
        """
        Replace the reminders of one subscription.

        Failures are logged and leave the subscription without reminders;
        they never propagate, so one bad record cannot break a batch.
        """
        try:
            self.cancel_for_subscription(subscription.id)
            if not subscription.reminder_enabled:
                return

            self._schedule_billing_reminder(subscription, now)
            if subscription.has_cycle_limit():
                self._schedule_cancellation_alert(subscription, now)

            logger.info(f"Scheduled reminders for '{subscription.service_name}' #{subscription.id}")
        except Exception as e:
            logger.error(f"Failed to schedule reminders for #{subscription.id}: {e}")

    def _schedule_billing_reminder(self, subscription: Subscription, now: datetime) -> None:
        reminder_date = self.calculator.get_reminder_date(subscription, now)
        if reminder_date is None:
            return
        amount = self.calculator.format_currency(subscription.amount, subscription.currency)
        notification = ScheduledNotification(
            id=_billing_id(subscription.id),
            subscription_id=subscription.id,
            user_id=subscription.user_id,
            scheduled_date=reminder_date,
            type=BILLING_REMINDER,
            title=f"{subscription.service_name} - Upcoming Payment",
            body=f"{amount} will be charged in {subscription.reminder_days_before} days",
        )
        self._scheduled[notification.id] = notification
        logger.debug(f"Billing reminder for #{subscription.id} at {reminder_date:%Y-%m-%d}")

    def _schedule_cancellation_alert(self, subscription: Subscription, now: datetime) -> None:
        alert_date = self.calculator.get_cancellation_reminder_date(subscription, now.tzinfo)
        if alert_date is None:
            return
        notification = ScheduledNotification(
            id=_cancel_id(subscription.id),
            subscription_id=subscription.id,
            user_id=subscription.user_id,
            scheduled_date=alert_date,
            type=CANCELLATION_ALERT,
            title=f"{subscription.service_name} - Subscription Ending Soon",
            body=(
                f"Your {subscription.cycle_limit}-cycle subscription has 1 cycle left. "
                f"Cancel now to avoid the final charge!"
            ),
        )
        self._scheduled[notification.id] = notification
        logger.debug(f"Cancellation alert for #{subscription.id} at {alert_date:%Y-%m-%d}")

    def reschedule_all(self, subscriptions: Iterable[Subscription], now: datetime) -> int:
        """
        Drop every reminder and schedule the active subscriptions again.

        Returns:
            Number of subscriptions that were considered active.
        """
        self.cancel_all()
        count = 0
        for subscription in subscriptions:
            try:
                active = self.calculator.is_active(subscription, now)
            except InvalidStateError as e:
                logger.error(f"Skipping #{subscription.id} while rescheduling: {e}")
                continue
            if active:
                self.schedule_for_subscription(subscription, now)
                count += 1
        logger.info(f"Rescheduled reminders for {count} active subscriptions")
        return count

    # ── Cancellation ──────────────────────────────────────

    def cancel_for_subscription(self, subscription_id: str) -> None:
        self._scheduled.pop(_billing_id(subscription_id), None)
        self._scheduled.pop(_cancel_id(subscription_id), None)

    def cancel_for_user(self, user_id: str) -> int:
        """Drop every reminder addressed to one user. Returns how many were removed."""
        stale = [key for key, n in self._scheduled.items() if n.user_id == user_id]
        for key in stale:
            del self._scheduled[key]
        return len(stale)

    def cancel_all(self) -> None:
        self._scheduled.clear()
        logger.info("Cancelled all scheduled reminders")

    # ── Queries ───────────────────────────────────────────

    def get_scheduled(self, user_id: Optional[str] = None) -> list[ScheduledNotification]:
        """All scheduled reminders (optionally for one user), earliest first."""
        notifications = [
            n for n in self._scheduled.values()
            if user_id is None or n.user_id == user_id
        ]
        return sorted(notifications, key=lambda n: (n.scheduled_date, n.id))

    def get_due(self, now: datetime) -> list[ScheduledNotification]:
        """Reminders whose time has come, earliest first."""
        return [n for n in self.get_scheduled() if n.scheduled_date <= now]
