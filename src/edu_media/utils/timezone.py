"""Timezone utilities for edu-media-commons.

All datetimes handled by the library are UTC-aware; documents store them as
epoch milliseconds.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone awareness.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure datetime has UTC timezone.

    Naive datetimes are assumed to be UTC; aware ones are converted.

    Args:
        dt: Datetime to process

    Returns:
        UTC datetime with timezone info
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_timestamp_ms(dt: Optional[datetime]) -> Optional[int]:
    """Convert a datetime to epoch milliseconds, passing None through."""
    if dt is None:
        return None
    return int(ensure_utc(dt).timestamp() * 1000)


def from_timestamp_ms(value: Optional[Union[int, float]]) -> Optional[datetime]:
    """Convert epoch milliseconds to a UTC datetime, passing None through."""
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)


def days_from(start: datetime, days: Optional[int]) -> Optional[datetime]:
    """Return ``start`` shifted by ``days``, or None when no day count is given."""
    if days is None:
        return None
    return ensure_utc(start) + timedelta(days=days)


def is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    """Check whether an optional expiry lies in the past.

    A missing expiry never expires. An expiry equal to ``now`` counts as
    expired, so records are valid only while ``expires_at > now``.
    """
    if expires_at is None:
        return False
    return ensure_utc(expires_at) <= ensure_utc(now)
