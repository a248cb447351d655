"""Utility helpers."""

from .client_ip import UNKNOWN_CLIENT, resolve_client_ip
from .session_ids import generate_session_id, validate_session_id, mask_session_id

__all__ = [
    'UNKNOWN_CLIENT', 'resolve_client_ip',
    'generate_session_id', 'validate_session_id', 'mask_session_id',
]
