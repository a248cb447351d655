"""
Session Models - Conversation session record and session API payloads.

Payloads use camelCase on the wire (``sessionId``, ``conversationState``) and
snake_case in Python; both spellings are accepted on input.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


ConversationPhase = Literal["discovery", "recommendation", "refinement", "generation"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model serialising field names as camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessage(CamelModel):
    """Single message of a stack-selection conversation."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)
    recommendations: Optional[Dict[str, Any]] = None


class ConversationState(CamelModel):
    """
    Conversation state owned by a session.

    The store treats this value as opaque: keys it does not know about are
    kept as they are.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    messages: List[ChatMessage] = Field(default_factory=list)
    is_generating: bool = False
    current_recommendations: Optional[Dict[str, Any]] = None
    project_context: Optional[Dict[str, Any]] = None
    conversation_phase: ConversationPhase = "discovery"


class Session(CamelModel):
    """Server-held record of one in-progress conversation."""
    id: str
    client_ip: str
    conversation_state: ConversationState = Field(default_factory=ConversationState)
    email: Optional[str] = None
    project_name: Optional[str] = None
    created_at: datetime
    last_accessed_at: datetime


class SessionUpdate(CamelModel):
    """Fields of a session that may be replaced after creation."""
    conversation_state: Optional[ConversationState] = None
    email: Optional[str] = None
    project_name: Optional[str] = None


class SessionStats(CamelModel):
    """Aggregate view of the store; never exposes individual sessions."""
    count: int
    oldest_session: Optional[datetime] = None
    newest_session: Optional[datetime] = None


# ---- API payloads ----

class SessionCreated(CamelModel):
    session_id: str
    conversation_state: ConversationState


class SessionResponse(CamelModel):
    session_id: str
    conversation_state: ConversationState
    email: Optional[str] = None
    project_name: Optional[str] = None

    @classmethod
    def from_session(cls, session: Session) -> "SessionResponse":
        return cls(
            session_id=session.id,
            conversation_state=session.conversation_state,
            email=session.email,
            project_name=session.project_name,
        )


class SessionUpdateRequest(SessionUpdate):
    session_id: Optional[str] = None


class AddMessageRequest(CamelModel):
    session_id: str
    message: ChatMessage


class ConversationStatePatch(CamelModel):
    session_id: str
    updates: Dict[str, Any]


class EmailCollectionRequest(CamelModel):
    session_id: str
    email: str
    project_name: Optional[str] = None
    subscribe_to_updates: bool = True


class EmailCollectionResponse(CamelModel):
    success: bool
    message: str
    session_id: str


class DeleteResponse(BaseModel):
    success: bool
