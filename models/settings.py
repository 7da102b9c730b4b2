"""
models/settings.py
------------------
Per-user application preferences.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class AppSettings:
    """
    Attributes:
        user_id: Owner reference.
        currency: Currency the summary totals are reported in.
        notifications_enabled: Master switch for reminder scheduling.
        default_reminder_days: Pre-filled reminder offset for new subscriptions.
        updated_at: Timestamp set by storage.
    """
    user_id: str
    currency: str = "INR"
    notifications_enabled: bool = True
    default_reminder_days: int = 3
    updated_at: Optional[datetime] = None
