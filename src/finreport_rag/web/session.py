"""Per-session chat state behind an injectable SessionStore.

The ingestion core never sees sessions; only the chat layer remembers which
report a user picked.  InMemorySessionStore suits a single process and the
tests; a durable backend only has to implement get/set/delete.
"""

import logging
import threading
from typing import Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ChatSession(BaseModel):
    """What the chat layer remembers between requests."""

    selected_report_index: int | None = None


class SessionStore(Protocol):
    """Get/set session state by session id."""

    def get(self, session_id: str) -> ChatSession:
        """Return the session, or a fresh one if unknown."""

    def set(self, session_id: str, session: ChatSession) -> None:
        """Store the session."""

    def delete(self, session_id: str) -> None:
        """Forget the session."""


class InMemorySessionStore:
    """Process-local session map (ephemeral, lost on server restart)."""

    def __init__(self) -> None:
        self._sessions: dict[str, ChatSession] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> ChatSession:
        with self._lock:
            session = self._sessions.get(session_id)
        return session.model_copy() if session is not None else ChatSession()

    def set(self, session_id: str, session: ChatSession) -> None:
        with self._lock:
            if session_id not in self._sessions:
                logger.info("New session created: %s", session_id)
            self._sessions[session_id] = session.model_copy()

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is not None:
                logger.info("Session cleared: %s", session_id)
