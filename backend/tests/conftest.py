"""
Shared test fixtures and configuration.
"""

import pytest
import os

# Set test environment variables before importing app modules
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("SESSION_CLEANUP_INTERVAL_SECONDS", "0")

from app.core import SessionStore  # noqa: E402


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    """Fresh store with small limits and a simulated clock."""
    return SessionStore(
        ttl_seconds=30 * 60,
        max_sessions=3,
        rate_limit_max=5,
        rate_limit_window_seconds=10 * 60,
        max_messages=10,
        trim_messages_to=8,
        clock=clock,
    )
