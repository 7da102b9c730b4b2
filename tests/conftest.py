"""
tests/conftest.py
-----------------
Shared fixtures. The project root is put on sys.path by pytest's
`pythonpath` setting in pyproject.toml.
"""

from datetime import date
from typing import Any

import pytest

from models.subscription import Subscription
from services.subscription_calculator import SubscriptionCalculator


def build_subscription(**overrides: Any) -> Subscription:
    """A valid monthly USD subscription billed on the 15th, with overrides applied."""
    fields: dict[str, Any] = {
        "id": "sub-1",
        "user_id": "user-1",
        "service_name": "Netflix",
        "amount": 9.99,
        "currency": "USD",
        "billing_date": 15,
        "frequency": "monthly",
        "start_date": date(2024, 1, 15),
        "reminder_enabled": True,
        "reminder_days_before": 3,
    }
    fields.update(overrides)
    return Subscription(**fields)


@pytest.fixture
def make_subscription():
    return build_subscription


@pytest.fixture
def calculator() -> SubscriptionCalculator:
    return SubscriptionCalculator()
