"""
models/notification.py
----------------------
A reminder computed for an external dispatcher to deliver.
"""

from dataclasses import dataclass
from datetime import datetime

BILLING_REMINDER = "billing_reminder"
CANCELLATION_ALERT = "cancellation_alert"


@dataclass(frozen=True)
class ScheduledNotification:
    """
    Attributes:
        id: Stable key, 'billing_<subscription id>' or 'cancel_<subscription id>'.
        subscription_id: Subscription the reminder is about.
        user_id: Recipient.
        scheduled_date: When the reminder should fire.
        type: BILLING_REMINDER or CANCELLATION_ALERT.
        title: Short headline.
        body: Message text.
    """
    id: str
    subscription_id: str
    user_id: str
    scheduled_date: datetime
    type: str
    title: str
    body: str

    def __str__(self) -> str:
        return f"[{self.scheduled_date:%Y-%m-%d}] {self.title}: {self.body}"
