"""Expiry rules for URL mappings."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from .database.models import URLMapping

# Smallest step a stored timestamp can represent
MIN_LIFETIME = timedelta(microseconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExpiryPolicy:
    """Decide mapping lifetimes and liveness.

    Liveness is always computed from ``expires_at``; it is never stored.
    """

    def __init__(self, default_days: int = 7, max_days: int = 365):
        """Initialize expiry policy.

        Args:
            default_days: Lifetime used when the caller asks for none
            max_days: Longest lifetime a caller may request
        """
        if default_days <= 0:
            raise ValueError("default_days must be positive")
        if max_days < default_days:
            raise ValueError("max_days must be at least default_days")
        self.default_days = default_days
        self.max_days = max_days

    def default_lifetime(self) -> timedelta:
        return timedelta(days=self.default_days)

    def resolve_lifetime(self, requested_days: Optional[int] = None) -> timedelta:
        """Pick the lifetime for a new mapping.

        A requested lifetime within ``[0, max_days]`` is honoured; anything
        else (missing, negative, too long) falls back to the default.
        """
        if requested_days is not None and 0 <= requested_days <= self.max_days:
            return timedelta(days=requested_days)
        return self.default_lifetime()

    def expires_at_for(self, created_at: datetime, lifetime: timedelta) -> datetime:
        """Expiry timestamp for a mapping created at ``created_at``.

        Always strictly after ``created_at``: a zero lifetime expires one
        microsecond after creation.
        """
        return created_at + max(lifetime, MIN_LIFETIME)

    @staticmethod
    def is_live(mapping: URLMapping, now: datetime) -> bool:
        return now < mapping.expires_at
