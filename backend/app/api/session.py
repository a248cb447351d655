"""
Session API endpoints - create, read, update and delete conversation sessions.

Store results map to status codes as follows: a refused creation is 429, a
missing or expired session is 404.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from ..core import SessionStore
from ..models import (
    AddMessageRequest, ConversationStatePatch, DeleteResponse, SessionCreated,
    SessionResponse, SessionStats, SessionUpdate, SessionUpdateRequest,
)
from ..utils.session_ids import mask_session_id
from .deps import get_client_ip, get_session_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/session", tags=["session"])


def _require_session_id(session_id: Optional[str]) -> str:
    if not session_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Session ID is required"
        )
    return session_id


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")


@router.post("", response_model=SessionCreated)
def create_session(
    client_ip: str = Depends(get_client_ip),
    store: SessionStore = Depends(get_session_store),
):
    """Create a new session for the calling client."""
    session = store.create_session(client_ip)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Session creation failed. Rate limit exceeded or system at capacity."
        )
    return SessionCreated(session_id=session.id, conversation_state=session.conversation_state)


@router.get("", response_model=SessionResponse)
def get_session(
    session_id: Optional[str] = Query(None, alias="sessionId"),
    store: SessionStore = Depends(get_session_store),
):
    """Return a session's conversation state and contact details."""
    session = store.get_session(_require_session_id(session_id))
    if session is None:
        raise _not_found()
    return SessionResponse.from_session(session)


@router.put("", response_model=SessionResponse)
def update_session(
    request: SessionUpdateRequest,
    store: SessionStore = Depends(get_session_store),
):
    """
    Replace the supplied session fields.

    Fields that are omitted, null or empty keep their stored value.
    """
    session_id = _require_session_id(request.session_id)
    fields = {
        name: getattr(request, name)
        for name in ("conversation_state", "email", "project_name")
        if getattr(request, name)
    }

    session = store.update_session(session_id, SessionUpdate(**fields))
    if session is None:
        raise _not_found()
    return SessionResponse.from_session(session)


@router.delete("", response_model=DeleteResponse)
def delete_session(
    session_id: Optional[str] = Query(None, alias="sessionId"),
    store: SessionStore = Depends(get_session_store),
):
    """Delete a session."""
    if not store.delete_session(_require_session_id(session_id)):
        raise _not_found()
    logger.info(f"Session deleted: {mask_session_id(session_id)}")
    return DeleteResponse(success=True)


@router.post("/messages", response_model=SessionResponse)
def add_message(
    request: AddMessageRequest,
    store: SessionStore = Depends(get_session_store),
):
    """Append a chat message to the session's conversation history."""
    session = store.add_message(request.session_id, request.message)
    if session is None:
        raise _not_found()
    return SessionResponse.from_session(session)


@router.patch("/conversation-state", response_model=SessionResponse)
def patch_conversation_state(
    request: ConversationStatePatch,
    store: SessionStore = Depends(get_session_store),
):
    """Merge top-level keys into the session's conversation state."""
    try:
        session = store.update_conversation_state(request.session_id, request.updates)
    except ValidationError as e:
        raise RequestValidationError(e.errors())
    if session is None:
        raise _not_found()
    return SessionResponse.from_session(session)


@router.get("/stats", response_model=SessionStats)
def session_stats(store: SessionStore = Depends(get_session_store)):
    """Aggregate session statistics."""
    return store.stats()
