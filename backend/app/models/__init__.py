"""Models module."""

from .session import (
    ChatMessage, ConversationState, Session, SessionUpdate, SessionStats,
    SessionCreated, SessionResponse, SessionUpdateRequest, AddMessageRequest,
    ConversationStatePatch, EmailCollectionRequest, EmailCollectionResponse,
    DeleteResponse,
)

__all__ = [
    'ChatMessage', 'ConversationState', 'Session', 'SessionUpdate', 'SessionStats',
    'SessionCreated', 'SessionResponse', 'SessionUpdateRequest', 'AddMessageRequest',
    'ConversationStatePatch', 'EmailCollectionRequest', 'EmailCollectionResponse',
    'DeleteResponse',
]
