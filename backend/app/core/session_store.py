"""
Session Store - In-memory registry of conversation sessions.

Holds every live session for the life of the process and enforces:
- a per-client-IP creation rate limit (fixed window)
- a global ceiling on concurrent sessions
- idle expiry (sliding TTL), checked lazily on access and by a periodic sweep

Absence and admission refusal are reported as ``None``/``False`` return
values, never as exceptions.
"""

import logging
import re
import threading
import time
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Union

from ..models.session import ChatMessage, ConversationState, Session, SessionStats, SessionUpdate
from ..utils.client_ip import UNKNOWN_CLIENT
from ..utils.session_ids import generate_session_id, mask_session_id, validate_session_id
from .rate_limiter import CreationRateLimiter

logger = logging.getLogger(__name__)


MAX_PROJECT_NAME_LENGTH = 100

_EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def is_valid_email(email: Optional[str]) -> bool:
    """Loose ``local@domain.tld`` check used when collecting emails."""
    return isinstance(email, str) and _EMAIL_PATTERN.fullmatch(email) is not None


class SessionStore:
    """
    Thread-safe in-memory session store.

    Under capacity pressure expired sessions are evicted, least recently
    accessed first. A live session is never evicted: when the store is full
    and nothing has expired, creation fails closed.
    """

    def __init__(
        self,
        ttl_seconds: float = 30 * 60,
        max_sessions: int = 10000,
        rate_limit_max: int = 10,
        rate_limit_window_seconds: float = 60 * 60,
        max_messages: int = 100,
        trim_messages_to: int = 80,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the store.

        Args:
            ttl_seconds: Idle time after which a session expires
            max_sessions: Maximum number of concurrent sessions
            rate_limit_max: Creations admitted per client IP per window
            rate_limit_window_seconds: Length of the rate-limit window
            max_messages: History length that triggers trimming in add_message
            trim_messages_to: Number of newest messages kept when trimming
            clock: Callable returning the current time in epoch seconds
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        if not 0 < trim_messages_to <= max_messages:
            raise ValueError("trim_messages_to must be between 1 and max_messages")

        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self.max_messages = max_messages
        self.trim_messages_to = trim_messages_to
        self._clock = clock
        self._limiter = CreationRateLimiter(rate_limit_max, rate_limit_window_seconds)
        self._sessions: "OrderedDict[str, Session]" = OrderedDict()
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, config: Any, clock: Callable[[], float] = time.time) -> "SessionStore":
        """Build a store from a Settings object."""
        return cls(
            ttl_seconds=config.session_ttl_seconds,
            max_sessions=config.session_max_total,
            rate_limit_max=config.session_rate_limit_max,
            rate_limit_window_seconds=config.session_rate_limit_window_seconds,
            max_messages=config.session_max_messages,
            trim_messages_to=config.session_trim_messages_to,
            clock=clock,
        )

    # ---- internal helpers (callers hold the lock) ----

    @staticmethod
    def _as_datetime(now: float) -> datetime:
        return datetime.fromtimestamp(now, tz=timezone.utc)

    def _is_expired(self, session: Session, now: float) -> bool:
        return now - session.last_accessed_at.timestamp() > self.ttl_seconds

    def _touch(self, session: Session, now: float) -> None:
        accessed_at = self._as_datetime(now)
        if accessed_at > session.last_accessed_at:
            session.last_accessed_at = accessed_at
            self._sessions.move_to_end(session.id)

    def _lookup(self, session_id: str, now: float) -> Optional[Session]:
        if not validate_session_id(session_id):
            logger.warning(f"Invalid session ID format attempted: {mask_session_id(session_id)}")
            return None

        session = self._sessions.get(session_id)
        if session is None:
            return None

        if self._is_expired(session, now):
            del self._sessions[session_id]
            logger.debug(f"Session expired on access: {mask_session_id(session_id)}")
            return None

        return session

    def _evict_expired_for_capacity(self, now: float) -> int:
        # insertion order can lag access time when the clock steps backwards
        expired = sorted(
            (s for s in self._sessions.values() if self._is_expired(s, now)),
            key=lambda s: s.last_accessed_at,
        )
        evicted = 0
        for session in expired:
            if len(self._sessions) < self.max_sessions:
                break
            del self._sessions[session.id]
            evicted += 1
        return evicted

    # ---- public operations ----

    def create_session(self, client_ip: Optional[str]) -> Optional[Session]:
        """
        Create a new session for a client.

        Args:
            client_ip: Originating address, used for rate-limit accounting

        Returns:
            Optional[Session]: The new session, or None when the client is
            rate limited or the store is full of live sessions
        """
        key = client_ip or UNKNOWN_CLIENT

        with self._lock:
            now = self._clock()

            if not self._limiter.allows(key, now):
                logger.warning(
                    f"Rate limit exceeded for IP: {key}",
                    extra={"extra_fields": {"client_ip": key, "reason": "rate_limited"}}
                )
                return None

            if len(self._sessions) >= self.max_sessions:
                evicted = self._evict_expired_for_capacity(now)
                if evicted:
                    logger.info(f"Evicted {evicted} expired session(s) to admit a new one")
                if len(self._sessions) >= self.max_sessions:
                    logger.warning(
                        "Maximum session limit reached",
                        extra={"extra_fields": {"client_ip": key, "reason": "at_capacity"}}
                    )
                    return None

            session_id = generate_session_id(now)
            while session_id in self._sessions:
                session_id = generate_session_id(now)

            created_at = self._as_datetime(now)
            session = Session(
                id=session_id,
                client_ip=key,
                conversation_state=ConversationState(),
                created_at=created_at,
                last_accessed_at=created_at,
            )
            self._limiter.record(key, now)
            self._sessions[session_id] = session

            logger.info(
                f"Session created: {mask_session_id(session_id)}",
                extra={"extra_fields": {"client_ip": key, "session_count": len(self._sessions)}}
            )
            return session.model_copy(deep=True)

    def get_session(self, session_id: str) -> Optional[Session]:
        """Return a session and slide its expiry, or None if missing/expired."""
        with self._lock:
            now = self._clock()
            session = self._lookup(session_id, now)
            if session is None:
                return None
            self._touch(session, now)
            return session.model_copy(deep=True)

    def update_session(
        self,
        session_id: str,
        updates: Union[SessionUpdate, Mapping[str, Any]],
    ) -> Optional[Session]:
        """
        Replace the supplied fields of a session.

        Only ``conversation_state``, ``email`` and ``project_name`` can change;
        any other key is ignored. Values replace the stored ones wholesale.

        Returns:
            Optional[Session]: The full updated record, or None if missing/expired
        """
        if not isinstance(updates, SessionUpdate):
            updates = SessionUpdate.model_validate(dict(updates))

        with self._lock:
            now = self._clock()
            session = self._lookup(session_id, now)
            if session is None:
                return None

            for field in updates.model_fields_set:
                value = getattr(updates, field)
                if field == "conversation_state" and value is None:
                    continue
                if isinstance(value, ConversationState):
                    value = value.model_copy(deep=True)
                setattr(session, field, value)

            self._touch(session, now)
            return session.model_copy(deep=True)

    def add_message(
        self,
        session_id: str,
        message: Union[ChatMessage, Mapping[str, Any]],
    ) -> Optional[Session]:
        """Append a message to the conversation history, trimming it at the cap."""
        if not isinstance(message, ChatMessage):
            message = ChatMessage.model_validate(dict(message))

        with self._lock:
            now = self._clock()
            session = self._lookup(session_id, now)
            if session is None:
                return None

            state = session.conversation_state
            if len(state.messages) >= self.max_messages:
                state.messages = state.messages[-self.trim_messages_to:]
            state.messages.append(message.model_copy(deep=True))

            self._touch(session, now)
            return session.model_copy(deep=True)

    def update_conversation_state(
        self,
        session_id: str,
        updates: Mapping[str, Any],
    ) -> Optional[Session]:
        """Shallow-merge top-level keys into the conversation state."""
        aliases = {name: field.alias or name for name, field in ConversationState.model_fields.items()}
        normalized = {aliases.get(key, key): value for key, value in updates.items()}

        with self._lock:
            now = self._clock()
            session = self._lookup(session_id, now)
            if session is None:
                return None

            merged: Dict[str, Any] = session.conversation_state.model_dump(by_alias=True)
            merged.update(normalized)
            session.conversation_state = ConversationState.model_validate(merged)

            self._touch(session, now)
            return session.model_copy(deep=True)

    def collect_email(
        self,
        session_id: str,
        email: str,
        project_name: Optional[str] = None,
    ) -> Optional[Session]:
        """
        Attach a contact email (and optionally a project name) to a session.

        Returns None if the session is missing/expired or the email is malformed.
        Project names longer than 100 characters are ignored.
        """
        if not is_valid_email(email):
            logger.warning("Invalid email format attempted")
            return None

        with self._lock:
            now = self._clock()
            session = self._lookup(session_id, now)
            if session is None:
                return None

            session.email = email
            if project_name and len(project_name) <= MAX_PROJECT_NAME_LENGTH:
                session.project_name = project_name

            self._touch(session, now)
            return session.model_copy(deep=True)

    def delete_session(self, session_id: str) -> bool:
        """Remove a session. Returns whether a live session was removed."""
        with self._lock:
            if not validate_session_id(session_id):
                logger.warning(f"Invalid session ID format attempted: {mask_session_id(session_id)}")
                return False

            session = self._sessions.pop(session_id, None)
            if session is None:
                return False
            return not self._is_expired(session, self._clock())

    def cleanup_expired_sessions(self) -> int:
        """Remove every expired session and stale rate-limit window."""
        with self._lock:
            now = self._clock()
            expired = [sid for sid, session in self._sessions.items() if self._is_expired(session, now)]
            for sid in expired:
                del self._sessions[sid]
            windows = self._limiter.cleanup(now)

        if expired or windows:
            logger.info(
                f"Session cleanup removed {len(expired)} session(s) and {windows} rate-limit window(s)"
            )
        return len(expired)

    def session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def stats(self) -> SessionStats:
        """Count plus oldest/newest creation time; no per-session data."""
        with self._lock:
            if not self._sessions:
                return SessionStats(count=0)
            created = [session.created_at for session in self._sessions.values()]
            return SessionStats(
                count=len(created),
                oldest_session=min(created),
                newest_session=max(created),
            )
