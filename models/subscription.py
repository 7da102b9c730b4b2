"""
models/subscription.py
----------------------
Domain model for tracked subscriptions and the summary derived from them.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

# ── Enumerations ──────────────────────────────────────────
FREQUENCIES: tuple[str, ...] = ("monthly", "quarterly", "half-yearly", "yearly", "custom")
CURRENCIES: tuple[str, ...] = ("USD", "INR", "EUR", "GBP", "AUD")

# Units per 1 USD. Static values; see config.EXCHANGE_RATES for overrides.
DEFAULT_EXCHANGE_RATES: dict[str, float] = {
    "USD": 1.0,
    "INR": 83.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "AUD": 1.52,
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "INR": "₹",
    "EUR": "€",
    "GBP": "£",
    "AUD": "A$",
}


@dataclass
class Subscription:
    """
    A service the user pays for on a schedule.

    Attributes:
        id: Storage identifier (None for new records).
        user_id: Owner reference.
        service_name: Display name (e.g., 'Netflix').
        amount: Charge per billing cycle, in `currency` units.
        currency: One of CURRENCIES.
        billing_date: Day of month the charge lands on (1-31).
        frequency: One of FREQUENCIES.
        start_date: Day the subscription began. Never changed by updates.
        custom_frequency_days: Cycle length in days, only for 'custom'.
        is_one_time: True when the subscription ends after `cycle_limit` charges.
        cycle_limit: Total number of charges for a one-time subscription.
        reminder_enabled: Whether billing reminders are wanted.
        reminder_days_before: How many days ahead of billing to remind.
        service_icon: Optional emoji or asset reference.
        payment_method: Optional free-text label ('HDFC Card', 'UPI').
        notes: Optional free text.
        is_deleted: Soft-delete flag.
        created_at: Timestamp set by storage.
        updated_at: Timestamp set by storage.
    """
    user_id: str
    service_name: str
    amount: float
    currency: str
    billing_date: int
    frequency: str
    start_date: date = field(default_factory=date.today)
    custom_frequency_days: Optional[int] = None
    is_one_time: bool = False
    cycle_limit: Optional[int] = None
    reminder_enabled: bool = True
    reminder_days_before: int = 3
    service_icon: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    is_deleted: bool = False
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def has_cycle_limit(self) -> bool:
        """True for one-time subscriptions that carry a cycle count."""
        return self.is_one_time and bool(self.cycle_limit)

    def __str__(self) -> str:
        status = "🗑️" if self.is_deleted else "✅"
        limit = f", {self.cycle_limit} cycles" if self.has_cycle_limit() else ""
        return (
            f"{status} {self.service_name}: {self.amount:.2f} {self.currency} "
            f"({self.frequency}{limit}) - day {self.billing_date}"
        )


@dataclass
class SubscriptionSummary:
    """Aggregate figures recomputed on demand from a user's subscriptions."""
    total_monthly_spend: float
    total_active_subscriptions: int
    upcoming_in_next_7_days: list[Subscription] = field(default_factory=list)
    upcoming_this_month: list[Subscription] = field(default_factory=list)
    currency: str = "USD"
