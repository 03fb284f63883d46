"""Random code and token helpers."""

import secrets


def generate_code(charset: str, length: int) -> str:
    """Draw ``length`` characters uniformly from ``charset`` using a CSPRNG."""
    if length <= 0:
        raise ValueError("length must be positive")
    if not charset:
        raise ValueError("charset must not be empty")
    return "".join(secrets.choice(charset) for _ in range(length))


def constant_time_equals(left: str, right: str) -> bool:
    """Compare two secrets without leaking timing information."""
    return secrets.compare_digest(left.encode("utf-8"), right.encode("utf-8"))
