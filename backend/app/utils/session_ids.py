"""
Session identifier utilities - generation and format validation.

Identifiers look like ``sess_<timestamp>_<random>`` where the timestamp is the
creation time in milliseconds and both parts are lowercase base36.
"""

import re
import secrets
import time
from typing import Optional

SESSION_ID_PREFIX = "sess_"
RANDOM_PART_LENGTH = 39

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_SESSION_ID_PATTERN = re.compile(r"sess_[a-z0-9]{1,13}_[a-z0-9]{36,39}")


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_session_id(now: Optional[float] = None) -> str:
    """
    Generate a new session identifier.

    Args:
        now: Creation time in epoch seconds (defaults to the current time)

    Returns:
        str: Identifier with a cryptographically random suffix
    """
    timestamp = int((time.time() if now is None else now) * 1000)
    random_part = "".join(secrets.choice(_ALPHABET) for _ in range(RANDOM_PART_LENGTH))
    return f"{SESSION_ID_PREFIX}{_to_base36(timestamp)}_{random_part}"


def validate_session_id(session_id: Optional[str]) -> bool:
    """Check that a client-supplied identifier has the expected format."""
    if not isinstance(session_id, str):
        return False
    return _SESSION_ID_PATTERN.fullmatch(session_id) is not None


def mask_session_id(session_id: Optional[str]) -> str:
    """Shorten an identifier for log output."""
    if not session_id:
        return "-"
    return session_id[:10] + "..."
