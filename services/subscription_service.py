"""
services/subscription_service.py
--------------------------------
Business logic tying storage, the calculator and the reminder schedule together.
"""

import dataclasses
from datetime import datetime
from typing import Optional

from config import EXCHANGE_RATES, MONTH_WINDOW_DAYS, UPCOMING_WINDOW_DAYS
from models.subscription import CURRENCIES, FREQUENCIES, Subscription, SubscriptionSummary
from repositories.subscription_repo import SubscriptionRepository
from services.errors import SubscriptionNotFoundError, ValidationError
from services.notification_scheduler import NotificationScheduler
from services.settings_service import SettingsService
from services.subscription_calculator import SubscriptionCalculator
from utils.logger import get_logger

logger = get_logger(__name__)

# Fields an update may not change.
_IMMUTABLE_FIELDS = ("id", "user_id", "start_date", "is_deleted", "created_at", "updated_at")


def validate_subscription(subscription: Subscription) -> None:
    """
    Check a subscription before it is stored.

    Raises:
        ValidationError: With the first problem found.
    """
    s = subscription
    if not s.service_name or not s.service_name.strip():
        raise ValidationError("Please enter a service name")
    if s.amount is None or s.amount <= 0:
        raise ValidationError("Please enter a valid amount")
    if s.currency not in CURRENCIES:
        raise ValidationError(f"Currency must be one of {', '.join(CURRENCIES)}")
    if not isinstance(s.billing_date, int) or not 1 <= s.billing_date <= 31:
        raise ValidationError("Please enter a valid billing date (1-31)")
    if s.frequency not in FREQUENCIES:
        raise ValidationError(f"Frequency must be one of {', '.join(FREQUENCIES)}")
    if s.frequency == "custom" and (not s.custom_frequency_days or s.custom_frequency_days <= 0):
        raise ValidationError("Please enter valid custom frequency days")
    if s.is_one_time and (not s.cycle_limit or s.cycle_limit <= 0):
        raise ValidationError("Please enter valid cycle limit")
    if s.reminder_days_before < 0:
        raise ValidationError("Reminder days cannot be negative")


def _normalized(subscription: Subscription) -> Subscription:
    """Copy with a trimmed name and the fields its frequency and kind do not use cleared."""
    return dataclasses.replace(
        subscription,
        service_name=(subscription.service_name or "").strip(),
        cycle_limit=subscription.cycle_limit if subscription.is_one_time else None,
        custom_frequency_days=(
            subscription.custom_frequency_days if subscription.frequency == "custom" else None
        ),
    )


class SubscriptionService:
    """
    Handles all business logic for tracked subscriptions.

    Responsibilities:
        - Validate and persist subscriptions (soft delete only).
        - Keep each user's reminder schedule in step with their data.
        - Build the spend summary and its text rendering.
    """

    def __init__(
        self,
        repo: Optional[SubscriptionRepository] = None,
        settings_service: Optional[SettingsService] = None,
        calculator: Optional[SubscriptionCalculator] = None,
        scheduler: Optional[NotificationScheduler] = None,
    ):
        self.repo = repo or SubscriptionRepository()
        self.settings_service = settings_service or SettingsService()
        self.calculator = calculator or SubscriptionCalculator(EXCHANGE_RATES)
        self.scheduler = scheduler or NotificationScheduler(self.calculator)

    # ── Commands ──────────────────────────────────────────

    def add_subscription(self, subscription: Subscription, now: Optional[datetime] = None) -> Subscription:
        """Validate, store and schedule reminders for a new subscription."""
        now = now or datetime.now()
        subscription = _normalized(subscription)
        validate_subscription(subscription)

        saved = self.repo.add(subscription)
        if self._notifications_enabled(saved.user_id):
            self.scheduler.schedule_for_subscription(saved, now)
        return saved

    def update_subscription(
        self,
        subscription_id: str,
        user_id: str,
        now: Optional[datetime] = None,
        **changes,
    ) -> Subscription:
        """
        Apply field changes to an existing subscription.

        Raises:
            SubscriptionNotFoundError: If the user has no such live subscription.
            ValidationError: On an unknown or immutable field, or invalid result.
        """
        now = now or datetime.now()
        existing = self.repo.get_by_id(subscription_id, user_id)
        if existing is None:
            raise SubscriptionNotFoundError(subscription_id, user_id)

        for name in _IMMUTABLE_FIELDS:
            if name in changes and changes[name] != getattr(existing, name):
                raise ValidationError(f"'{name}' cannot be changed")
        try:
            updated = dataclasses.replace(existing, **changes)
        except TypeError as e:
            raise ValidationError(f"Unknown subscription field: {e}") from e
        updated = _normalized(updated)
        validate_subscription(updated)

        saved = self.repo.update(updated)
        if saved is None:
            raise SubscriptionNotFoundError(subscription_id, user_id)
        if self._notifications_enabled(user_id):
            self.scheduler.schedule_for_subscription(saved, now)
        else:
            self.scheduler.cancel_for_subscription(saved.id)
        return saved

    def delete_subscription(self, subscription_id: str, user_id: str) -> None:
        """
        Soft-delete a subscription and drop its reminders.

        Raises:
            SubscriptionNotFoundError: If nothing was deleted.
        """
        if not self.repo.soft_delete(subscription_id, user_id):
            raise SubscriptionNotFoundError(subscription_id, user_id)
        self.scheduler.cancel_for_subscription(subscription_id)

    # ── Queries ───────────────────────────────────────────

    def fetch_subscriptions(self, user_id: str, now: Optional[datetime] = None) -> list[Subscription]:
        """Load a user's live subscriptions and rebuild their reminder schedule."""
        now = now or datetime.now()
        subscriptions = self.repo.get_all(user_id)
        self.scheduler.cancel_for_user(user_id)
        if self._notifications_enabled(user_id):
            for subscription in subscriptions:
                if self.calculator.is_active(subscription, now):
                    self.scheduler.schedule_for_subscription(subscription, now)
        return subscriptions

    def calculate_summary(self, user_id: str, now: Optional[datetime] = None) -> SubscriptionSummary:
        """Spend and upcoming-billing figures over the user's active subscriptions."""
        now = now or datetime.now()
        currency = self.settings_service.get_settings(user_id).currency
        active = [s for s in self.repo.get_all(user_id) if self.calculator.is_active(s, now)]
        return SubscriptionSummary(
            total_monthly_spend=self.calculator.calculate_total_monthly_spend(active, currency),
            total_active_subscriptions=len(active),
            upcoming_in_next_7_days=self.calculator.get_upcoming_subscriptions(
                active, UPCOMING_WINDOW_DAYS, now
            ),
            upcoming_this_month=self.calculator.get_upcoming_subscriptions(
                active, MONTH_WINDOW_DAYS, now
            ),
            currency=currency,
        )

    def describe(self, subscription: Subscription, now: datetime) -> str:
        """One line per subscription, e.g. 'Netflix: ₹649.00 monthly - next 2024-02-15 (26 days, 16%)'."""
        calc = self.calculator
        price = calc.format_currency(subscription.amount, subscription.currency)
        head = f"{subscription.service_name}: {price} {subscription.frequency}"
        if subscription.is_deleted:
            return f"{head} - deleted"
        if not calc.is_active(subscription, now):
            return f"{head} - ended {calc.get_subscription_end_date(subscription):%Y-%m-%d}"

        next_billing = calc.get_next_billing_date(subscription, now)
        days = calc.get_days_until_billing(subscription, now)
        progress = calc.get_billing_cycle_progress(subscription, now)
        line = f"{head} - next {next_billing:%Y-%m-%d} ({days} days, {progress:.0f}%)"
        if subscription.has_cycle_limit():
            line += f" - ends {calc.get_subscription_end_date(subscription):%Y-%m-%d}"
        return line

    def format_summary(self, user_id: str, now: Optional[datetime] = None) -> str:
        """Text rendering of calculate_summary for the command line."""
        now = now or datetime.now()
        summary = self.calculate_summary(user_id, now)
        if not summary.total_active_subscriptions:
            return "📭 No active subscriptions."

        total = self.calculator.format_currency(summary.total_monthly_spend, summary.currency)
        lines = [
            f"💳 Active subscriptions: {summary.total_active_subscriptions}",
            f"💶 Monthly spend: {total}",
        ]
        if summary.upcoming_in_next_7_days:
            lines.append(f"\n⏰ Next {UPCOMING_WINDOW_DAYS} days:")
            lines.extend(f"  {self.describe(s, now)}" for s in summary.upcoming_in_next_7_days)
        if summary.upcoming_this_month:
            lines.append(f"\n📅 Next {MONTH_WINDOW_DAYS} days:")
            lines.extend(f"  {self.describe(s, now)}" for s in summary.upcoming_this_month)
        return "\n".join(lines)

    # ── HELPERS ───────────────────────────────────────────

    def _notifications_enabled(self, user_id: str) -> bool:
        return self.settings_service.get_settings(user_id).notifications_enabled
