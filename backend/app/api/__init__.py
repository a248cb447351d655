"""API module."""

from .session import router as session_router
from .collect_email import router as collect_email_router

__all__ = ['session_router', 'collect_email_router']
