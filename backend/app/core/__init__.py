"""Core module - session store, rate limiting and logging setup."""

from .rate_limiter import CreationRateLimiter
from .session_store import SessionStore

__all__ = ['CreationRateLimiter', 'SessionStore']
