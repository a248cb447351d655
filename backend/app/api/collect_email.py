"""
Email collection endpoint - attaches a contact email to an anonymous session.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..core import SessionStore
from ..core.session_store import is_valid_email
from ..models import EmailCollectionRequest, EmailCollectionResponse
from ..utils.session_ids import mask_session_id
from .deps import get_session_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["session"])


@router.post("/collect-email", response_model=EmailCollectionResponse)
def collect_email(
    request: EmailCollectionRequest,
    store: SessionStore = Depends(get_session_store),
):
    """
    Store the user's email (and optional project name) on their session.

    Returns 400 for a malformed email and 404 when the session is unknown
    or expired.
    """
    if not is_valid_email(request.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email address")

    session = store.collect_email(request.session_id, request.email, request.project_name)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")

    logger.info(
        f"Email collected for session {mask_session_id(session.id)}",
        extra={"extra_fields": {
            "project_name": session.project_name,
            "subscribe_to_updates": request.subscribe_to_updates,
        }}
    )
    return EmailCollectionResponse(
        success=True,
        message="Email collected successfully",
        session_id=session.id,
    )
