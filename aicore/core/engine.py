"""Chat orchestration: keywords, context retrieval, generation, recording.

Architectural role:
    Executes one chat turn for the API/CLI adapters and manages session
    history. The engine owns no memory of its own; it reads the shared
    experience store and appends to the shared session store.

Control-flow model (per message):
    1. KeywordExtraction: `unique_keywords(message)` (same tokenizer as the
       pattern index).
    2. ContextRetrieval: `build_context` ranks overlapping experiences
       under shared access and releases the lock. The last
       `HISTORY_MESSAGES` messages of the session ride along in the bundle.
    3. Generation: `GenerationPipeline` tries the remote generator when
       configured, falling back to the heuristic one. No lock is held.
    4. Recorded: the user message and the assistant reply (with the context
       experience ids) are appended to the session in one step, creating
       the session on first use.

Event loop:
    Steps 2 and 4 take blocking `threading` locks, so they run in worker
    threads via `asyncio.to_thread`; a writer queued on the store lock never
    stalls other coroutines.

Error handling strategy:
    - Empty messages raise `ValidationError` before any work.
    - Generation failures never surface: they are logged by the pipeline.
    - Unknown session ids raise `NotFound` on history/clear.

Determinism:
    With the remote generator unavailable, identical messages against an
    identical store produce identical reply text.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from aicore.core.errors import ValidationError
from aicore.llm.generators import GenerationPipeline
from aicore.memory.chat_sessions import ROLE_ASSISTANT, ROLE_USER, ChatMessage, ChatSession, SessionStore
from aicore.retrieval.context_builder import DEFAULT_CONTEXT_LIMIT, build_context


logger = logging.getLogger(__name__)

HISTORY_MESSAGES = 6


@dataclass(frozen=True)
class ChatReply:
    session_id: str
    message: ChatMessage
    context_count: int
    generator: str = "heuristic"

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "message": self.message.to_dict(),
            "context_count": self.context_count,
        }


class ChatEngine:
    def __init__(self, store, sessions: Optional[SessionStore] = None,
                 pipeline: Optional[GenerationPipeline] = None,
                 context_limit: int = DEFAULT_CONTEXT_LIMIT):
        self.store = store
        self.sessions = sessions or SessionStore()
        self.pipeline = pipeline or GenerationPipeline()
        self.context_limit = context_limit

    def _retrieve(self, text: str, session_id: str):
        history = self.sessions.recent(session_id, HISTORY_MESSAGES)
        return build_context(self.store, text, limit=self.context_limit, history=history)

    async def send(self, content: str, session_id: Optional[str] = None) -> ChatReply:
        """Process one user message and record both sides of the exchange.

        Args:
            content: User message text.
            session_id: Existing or caller-chosen session id. A new id is
                minted when omitted.

        Returns:
            `ChatReply` with the assistant message and context size.

        Raises:
            ValidationError: If `content` is blank.
        """
        text = str(content or "").strip()
        if not text:
            raise ValidationError("message content must not be empty")

        sid = str(session_id).strip() if session_id else ""
        sid = sid or self.sessions.new_session_id()

        bundle = await asyncio.to_thread(self._retrieve, text, sid)
        logger.debug("Session %s: %d keywords, %d context experiences, %d history messages",
                     sid, len(bundle.keywords), len(bundle.experiences), len(bundle.history))

        result = await self.pipeline.generate(bundle)
        if result.fell_back:
            logger.info("Session %s answered by fallback generator", sid)

        user_message = ChatMessage.create(ROLE_USER, text)
        assistant_message = ChatMessage.create(ROLE_ASSISTANT, result.text, bundle.experience_ids)
        await asyncio.to_thread(self.sessions.append, sid, user_message, assistant_message)

        return ChatReply(
            session_id=sid,
            message=assistant_message,
            context_count=len(bundle.experience_ids),
            generator=result.generator,
        )

    def get_history(self, session_id: str) -> ChatSession:
        return self.sessions.get(session_id)

    def list_session_ids(self) -> List[str]:
        return self.sessions.list_ids()

    def clear_session(self, session_id: str) -> int:
        removed = self.sessions.clear(session_id)
        logger.info("Cleared chat session %s (%d messages)", session_id, removed)
        return removed

    def clear_all_sessions(self) -> int:
        return self.sessions.clear_all()

    def close(self) -> None:
        self.pipeline.close()
