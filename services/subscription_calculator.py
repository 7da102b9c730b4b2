"""
services/subscription_calculator.py
-----------------------------------
Date and money arithmetic over Subscription snapshots.

Responsibilities:
    - Next billing date, end date and cancellation checkpoint of a subscription.
    - Reminder dates and days-until-billing for the notification layer.
    - Monthly-equivalent spend, currency conversion and display formatting.

Every time-dependent method takes `now` explicitly; nothing here reads the
clock, touches storage or mutates its input. `now` may be naive or aware;
stored dates are placed on `now`'s timezone before they are compared with it.

Month arithmetic clamps to the last day of the target month (Jan 31 + 1 month
is Feb 28/29), and N cycles are always measured from the anchor date rather
than by repeating single steps, so Jan 31 + 2 months is Mar 31.
"""

import math
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Mapping, Optional

from dateutil.relativedelta import relativedelta

from models.subscription import CURRENCY_SYMBOLS, DEFAULT_EXCHANGE_RATES, Subscription
from services.errors import InvalidStateError
from utils.logger import get_logger

logger = get_logger(__name__)

# Calendar months per cycle. Also the divisor for the monthly equivalent.
_MONTHS_PER_CYCLE: dict[str, int] = {
    "monthly": 1,
    "quarterly": 3,
    "half-yearly": 6,
    "yearly": 12,
}
_DAYS_PER_MONTH = 30
_SECONDS_PER_DAY = 24 * 60 * 60


# ── Cycle arithmetic ──────────────────────────────────────

def _as_datetime(value: date, tz: Optional[tzinfo] = None) -> datetime:
    """Promote a date to midnight of that day, attaching `tz` to naive values."""
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if tz is not None and value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value


def _cycle_delta(frequency: str, custom_days: Optional[int], cycles: int) -> relativedelta:
    if frequency in _MONTHS_PER_CYCLE:
        return relativedelta(months=_MONTHS_PER_CYCLE[frequency] * cycles)
    if frequency == "custom":
        if not custom_days or custom_days <= 0:
            raise InvalidStateError("Custom frequency requires a positive custom_frequency_days")
        return relativedelta(days=custom_days * cycles)
    raise InvalidStateError(f"Unknown billing frequency: {frequency}")


def add_billing_cycle(
    value: date,
    frequency: str,
    custom_days: Optional[int] = None,
    cycles: int = 1,
) -> datetime:
    """
    Move a date forward by `cycles` billing cycles.

    Args:
        value: Anchor date or datetime.
        frequency: One of the subscription frequencies.
        custom_days: Cycle length for the 'custom' frequency.
        cycles: Number of cycles to add (may be 0).

    Raises:
        InvalidStateError: Unknown frequency, or 'custom' without a day count.
    """
    return _as_datetime(value) + _cycle_delta(frequency, custom_days, cycles)


def subtract_billing_cycle(
    value: date,
    frequency: str,
    custom_days: Optional[int] = None,
    cycles: int = 1,
) -> datetime:
    """Inverse of add_billing_cycle, with the same clamping rule."""
    return _as_datetime(value) - _cycle_delta(frequency, custom_days, cycles)


class SubscriptionCalculator:
    """
    Stateless calculator over Subscription snapshots.

    The only configuration is the exchange-rate table (units per 1 USD),
    injected so callers and tests can substitute their own rates.
    """

    def __init__(self, rates: Optional[Mapping[str, float]] = None):
        self.rates: dict[str, float] = dict(rates if rates is not None else DEFAULT_EXCHANGE_RATES)

    # ── Billing dates ─────────────────────────────────────

    def get_next_billing_date(self, subscription: Subscription, now: datetime) -> datetime:
        """
        Next occurrence of the billing day strictly after `now`.

        A one-time subscription that has already run out returns its end
        date, which is then in the past; callers treat that as "ended".
        """
        if subscription.has_cycle_limit():
            end_date = self.get_subscription_end_date(subscription, now.tzinfo)
            if now > end_date:
                return end_date

        month_start = datetime(now.year, now.month, 1, tzinfo=now.tzinfo)
        cycles = 0
        candidate = self._occurrence(subscription, month_start, cycles)
        while candidate <= now:
            cycles += 1
            candidate = self._occurrence(subscription, month_start, cycles)
        return candidate

    @staticmethod
    def _occurrence(subscription: Subscription, month_start: datetime, cycles: int) -> datetime:
        """The billing occurrence `cycles` cycles after the one in month_start's month."""
        billing_day = relativedelta(day=subscription.billing_date)
        if subscription.frequency == "custom":
            return add_billing_cycle(
                month_start + billing_day,
                subscription.frequency,
                subscription.custom_frequency_days,
                cycles,
            )
        # Re-apply the billing day after moving so a clamped month does not drag later ones.
        return add_billing_cycle(month_start, subscription.frequency, cycles=cycles) + billing_day

    def get_subscription_end_date(
        self, subscription: Subscription, tz: Optional[tzinfo] = None
    ) -> datetime:
        """
        Date of the final billing of a one-time subscription, on timezone `tz`.

        Raises:
            InvalidStateError: If the subscription is recurring or has no cycle limit.
        """
        if not subscription.has_cycle_limit():
            raise InvalidStateError(
                f"Subscription {subscription.id} is not a one-time subscription with a cycle limit"
            )
        return add_billing_cycle(
            _as_datetime(subscription.start_date, tz),
            subscription.frequency,
            subscription.custom_frequency_days,
            subscription.cycle_limit,
        )

    def get_cancellation_reminder_date(
        self, subscription: Subscription, tz: Optional[tzinfo] = None
    ) -> Optional[datetime]:
        """Second-to-last billing of a one-time subscription; None when there is none."""
        if not subscription.has_cycle_limit() or subscription.cycle_limit <= 1:
            return None
        return add_billing_cycle(
            _as_datetime(subscription.start_date, tz),
            subscription.frequency,
            subscription.custom_frequency_days,
            subscription.cycle_limit - 1,
        )

    def get_reminder_date(self, subscription: Subscription, now: datetime) -> Optional[datetime]:
        if not subscription.reminder_enabled:
            return None
        next_billing = self.get_next_billing_date(subscription, now)
        return next_billing - timedelta(days=subscription.reminder_days_before)

    def get_days_until_billing(self, subscription: Subscription, now: datetime) -> int:
        """Whole days until the next billing, rounded up. Negative only once a subscription has ended."""
        delta = self.get_next_billing_date(subscription, now) - now
        return math.ceil(delta.total_seconds() / _SECONDS_PER_DAY)

    def get_billing_cycle_progress(self, subscription: Subscription, now: datetime) -> float:
        """Percentage (0-100) of the current billing cycle that has elapsed."""
        next_billing = self.get_next_billing_date(subscription, now)
        previous_billing = subtract_billing_cycle(
            next_billing, subscription.frequency, subscription.custom_frequency_days
        )
        if subscription.frequency != "custom":
            # The previous charge fell on the billing day even when the next one was clamped.
            previous_billing += relativedelta(day=subscription.billing_date)
        total = (next_billing - previous_billing).total_seconds()
        if total <= 0:
            return 0.0
        elapsed = (now - previous_billing).total_seconds()
        return max(0.0, min(100.0, elapsed / total * 100))

    def is_active(self, subscription: Subscription, now: datetime) -> bool:
        if subscription.is_deleted:
            return False
        if subscription.has_cycle_limit():
            return now < self.get_subscription_end_date(subscription, now.tzinfo)
        return True

    # ── Amounts ───────────────────────────────────────────

    def get_monthly_equivalent(self, subscription: Subscription) -> float:
        """
        Normalize a subscription's amount to a per-month figure.

        Custom cycles use a 30-day month. Unknown frequencies, and custom
        without a day count, fall back to the raw amount: this feeds sums
        that must not fail on a single bad record.
        """
        amount = subscription.amount
        if subscription.frequency == "custom":
            if subscription.custom_frequency_days:
                return amount * _DAYS_PER_MONTH / subscription.custom_frequency_days
            return amount
        months = _MONTHS_PER_CYCLE.get(subscription.frequency)
        if months is None:
            logger.debug(f"Unknown frequency '{subscription.frequency}' on {subscription.id}, using raw amount")
            return amount
        return amount / months

    def calculate_total_monthly_spend(
        self,
        subscriptions: Iterable[Subscription],
        target_currency: str = "USD",
        convert: bool = False,
    ) -> float:
        """
        Sum of monthly equivalents over non-deleted subscriptions.

        Args:
            subscriptions: Any iterable of subscriptions.
            target_currency: Currency the total is meant to be reported in.
            convert: When False (the default) amounts are summed as-is in
                their own currencies, matching the long-standing behavior
                of the app's totals. Pass True to convert each amount to
                `target_currency` before summing.
        """
        total = 0.0
        for subscription in subscriptions:
            if subscription.is_deleted:
                continue
            monthly = self.get_monthly_equivalent(subscription)
            if convert:
                monthly = self.convert_currency(monthly, subscription.currency, target_currency)
            elif subscription.currency != target_currency:
                logger.debug(
                    f"Summing {subscription.currency} amount of {subscription.id} "
                    f"unconverted into a {target_currency} total"
                )
            total += monthly
        return total

    def get_upcoming_subscriptions(
        self,
        subscriptions: Iterable[Subscription],
        window_days: int,
        now: datetime,
    ) -> list[Subscription]:
        """
        Non-deleted subscriptions billing within `window_days` of `now`.

        Ordered by days until billing, then by id.
        """
        upcoming: list[tuple[int, str, Subscription]] = []
        for subscription in subscriptions:
            if subscription.is_deleted:
                continue
            days = self.get_days_until_billing(subscription, now)
            if 0 <= days <= window_days:
                upcoming.append((days, str(subscription.id or ""), subscription))
        upcoming.sort(key=lambda item: (item[0], item[1]))
        return [subscription for _, _, subscription in upcoming]

    # ── Currency ──────────────────────────────────────────

    def convert_currency(self, amount: float, from_currency: str, to_currency: str) -> float:
        """
        Convert through USD using the configured rate table.

        Raises:
            ValueError: If either currency has no rate.
        """
        if from_currency == to_currency:
            return amount
        for code in (from_currency, to_currency):
            if code not in self.rates:
                raise ValueError(f"No exchange rate configured for {code}")
        in_usd = amount / self.rates[from_currency]
        return in_usd * self.rates[to_currency]

    @staticmethod
    def format_currency(amount: float, currency: str) -> str:
        """Symbol-prefixed amount with two decimals, e.g. '₹9.50'."""
        symbol = CURRENCY_SYMBOLS.get(currency, currency)
        return f"{symbol}{amount:.2f}"
