"""Utility helpers for edu-media-commons."""

from .timezone import (
    utc_now,
    ensure_utc,
    to_timestamp_ms,
    from_timestamp_ms,
    days_from,
    is_expired,
)
from .uuid import generate_uuid_v7, is_valid_uuid
from .tokens import generate_code, constant_time_equals

__all__ = [
    "utc_now",
    "ensure_utc",
    "to_timestamp_ms",
    "from_timestamp_ms",
    "days_from",
    "is_expired",
    "generate_uuid_v7",
    "is_valid_uuid",
    "generate_code",
    "constant_time_equals",
]
