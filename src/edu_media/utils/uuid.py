"""UUID utilities for edu-media-commons."""

import time
import uuid


def generate_uuid_v7() -> str:
    """
    Generate a UUIDv7 with time-based ordering.

    Time-ordered ids keep document inserts clustered in the primary key index.

    Returns:
        String representation of UUIDv7
    """
    timestamp_ms = int(time.time() * 1000)

    # 48-bit timestamp followed by 80 random bits
    timestamp_bytes = timestamp_ms.to_bytes(6, byteorder="big")
    random_bytes = uuid.uuid4().bytes[6:]
    uuid_bytes = bytearray(timestamp_bytes + random_bytes)

    # Version 7 and RFC 4122 variant
    uuid_bytes[6] = (uuid_bytes[6] & 0x0F) | 0x70
    uuid_bytes[8] = (uuid_bytes[8] & 0x3F) | 0x80

    return str(uuid.UUID(bytes=bytes(uuid_bytes)))


def is_valid_uuid(value: str) -> bool:
    """Check if string is a valid UUID of any version."""
    try:
        uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return False
    return True
