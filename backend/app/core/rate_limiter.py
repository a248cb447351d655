"""
Fixed-window rate limiter for session creation.

Each key (normally a client IP) owns a counter and the time its window ends.
The first admitted attempt after a window has ended opens a new window.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass
class RateWindow:
    """Creations counted in the window ending at ``reset_at`` (epoch seconds)."""
    count: int
    reset_at: float


class CreationRateLimiter:
    """
    Counts creation attempts per key within a fixed window.

    Not thread-safe on its own; the owning store serialises access.
    """

    def __init__(self, max_per_window: int, window_seconds: float):
        if max_per_window < 1:
            raise ValueError("max_per_window must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_per_window = max_per_window
        self.window_seconds = window_seconds
        self._windows: Dict[str, RateWindow] = {}

    def _active_window(self, key: str, now: float):
        window = self._windows.get(key)
        if window is None or now >= window.reset_at:
            return None
        return window

    def allows(self, key: str, now: float) -> bool:
        """Return whether one more attempt for ``key`` would be admitted."""
        window = self._active_window(key, now)
        return window is None or window.count < self.max_per_window

    def record(self, key: str, now: float) -> None:
        """Count an admitted attempt, opening a new window if needed."""
        window = self._active_window(key, now)
        if window is None:
            self._windows[key] = RateWindow(count=1, reset_at=now + self.window_seconds)
        else:
            window.count += 1

    def cleanup(self, now: float) -> int:
        """Drop windows that have ended. Returns the number removed."""
        stale = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in stale:
            del self._windows[key]
        return len(stale)
