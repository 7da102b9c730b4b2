"""
services/errors.py
------------------
Exceptions raised by the service layer.
"""


class InvalidStateError(ValueError):
    """A subscription lacks the fields an operation needs (e.g. no cycle limit)."""


class ValidationError(ValueError):
    """User-supplied subscription or settings data failed validation."""


class SubscriptionNotFoundError(LookupError):
    """No subscription with the given id exists for the user."""

    def __init__(self, subscription_id: str, user_id: str):
        super().__init__(f"Subscription {subscription_id} not found for user {user_id}")
        self.subscription_id = subscription_id
        self.user_id = user_id
