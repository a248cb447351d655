"""
Request dependencies shared by the API routers.
"""

from fastapi import HTTPException, Request, status

from ..config import settings
from ..core import SessionStore
from ..utils.client_ip import resolve_client_ip


def get_session_store(request: Request) -> SessionStore:
    """Return the store created during application start-up."""
    store = getattr(request.app.state, "session_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session store not initialized"
        )
    return store


def get_client_ip(request: Request) -> str:
    """Originating address of the request, used for rate limiting."""
    peer = request.client.host if request.client else None
    return resolve_client_ip(request.headers, peer, settings.trust_proxy_headers)
