"""In-memory chat session threads with per-session append locking.

Purpose of this abstraction:
    Keep every conversation as an ordered, append-only list of messages with
    the experience ids that informed each assistant reply.

Locking model:
    - `_table_lock` guards the id -> session map (create, list, delete).
    - Each session carries its own lock; appending to one session never
      blocks another. The table lock is released before the session lock is
      taken, so the two are never held in reverse order.

Lifecycle:
    A session is created by the first `append` under an unknown id and is
    removed only by `clear` / `clear_all`.
"""

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from aicore.core.errors import NotFound


ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


def _now():
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChatMessage:
    id: str
    role: str
    content: str
    timestamp: datetime
    context_experience_ids: Tuple[str, ...] = ()

    @classmethod
    def create(cls, role: str, content: str, context_experience_ids=()) -> "ChatMessage":
        return cls(
            id=f"msg_{uuid.uuid4()}",
            role=role,
            content=content,
            timestamp=_now(),
            context_experience_ids=tuple(context_experience_ids),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "context_experience_ids": list(self.context_experience_ids),
        }


@dataclass
class ChatSession:
    id: str
    messages: List[ChatMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def snapshot(self) -> "ChatSession":
        """Return a detached copy safe to hand to callers."""
        with self.lock:
            return ChatSession(
                id=self.id,
                messages=list(self.messages),
                created_at=self.created_at,
                updated_at=self.updated_at,
            )

    def recent(self, count: int) -> List[ChatMessage]:
        with self.lock:
            return list(self.messages[-count:]) if count > 0 else []

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "messages": [message.to_dict() for message in self.messages],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


class SessionStore:
    def __init__(self):
        self._sessions: Dict[str, ChatSession] = {}
        self._table_lock = threading.Lock()

    @staticmethod
    def new_session_id() -> str:
        return str(uuid.uuid4())

    def _get_or_create(self, session_id: str) -> ChatSession:
        with self._table_lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = ChatSession(id=session_id)
                self._sessions[session_id] = session
            return session

    def append(self, session_id: str, *messages: ChatMessage) -> ChatSession:
        """Append messages to a session, creating it on first use."""
        session = self._get_or_create(session_id)
        with session.lock:
            session.messages.extend(messages)
            session.updated_at = _now()
        return session

    def get(self, session_id: str) -> ChatSession:
        """Return a detached copy of the session.

        Raises:
            NotFound: For unknown session ids.
        """
        with self._table_lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise NotFound("session", session_id)
        return session.snapshot()

    def find(self, session_id: Optional[str]) -> Optional[ChatSession]:
        if not session_id:
            return None
        with self._table_lock:
            return self._sessions.get(session_id)

    def recent(self, session_id: Optional[str], count: int) -> List[ChatMessage]:
        """Last `count` messages of a session, oldest first; empty when unknown."""
        session = self.find(session_id)
        return session.recent(count) if session is not None else []

    def list_ids(self) -> List[str]:
        """Session ids in creation order."""
        with self._table_lock:
            return list(self._sessions)

    def clear(self, session_id: str) -> int:
        """Delete one session.

        Returns:
            Number of messages the session held.

        Raises:
            NotFound: For unknown session ids.
        """
        with self._table_lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise NotFound("session", session_id)
        with session.lock:
            return len(session.messages)

    def clear_all(self) -> int:
        with self._table_lock:
            removed = len(self._sessions)
            self._sessions = {}
        return removed
