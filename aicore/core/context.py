"""Process-wide application context.

Architectural role:
    Constructed once by an entrypoint and passed to every adapter. It wires
    the shared store, personality model, session store, decision engine,
    chat engine, API-learning service and persistence manager
    together, and defines the lifecycle:

    - `startup()`: load the snapshot, then start the snapshot timer.
    - `shutdown()`: stop the timer, write a final snapshot, and release the
      remote generator worker pool.

    Tests build isolated contexts with `AppContext.create(settings)` and a
    temporary snapshot path.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from aicore.core.api_learning import ApiLearningService
from aicore.core.config import Settings
from aicore.core.decision import DecisionEngine
from aicore.core.engine import ChatEngine
from aicore.core.personality import PersonalityModel
from aicore.llm.client import OllamaClient
from aicore.llm.generators import GenerationPipeline, HeuristicGenerator, RemoteGenerator
from aicore.memory.chat_sessions import SessionStore
from aicore.memory.experience_store import ExperienceStore
from aicore.memory.learning_records import LearningRecordStore
from aicore.memory.persistence import PersistenceManager


logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    store: ExperienceStore
    personality: PersonalityModel
    sessions: SessionStore
    decisions: DecisionEngine
    chat: ChatEngine
    persistence: PersistenceManager
    learning: ApiLearningService
    remote_client: Optional[OllamaClient] = None

    @classmethod
    def create(cls, settings: Optional[Settings] = None, pipeline: Optional[GenerationPipeline] = None) -> "AppContext":
        """Build a fully wired context.

        Args:
            settings: Configuration; defaults to `Settings()`.
            pipeline: Optional generation pipeline override (tests inject
                stub generators here).
        """
        settings = settings or Settings()
        store = ExperienceStore()
        personality = PersonalityModel()
        sessions = SessionStore()

        remote_client = None
        if pipeline is None:
            remote = None
            if settings.provider.enabled:
                remote_client = OllamaClient(settings.provider)
                remote = RemoteGenerator(remote_client)
            pipeline = GenerationPipeline(HeuristicGenerator(), remote)

        return cls(
            settings=settings,
            store=store,
            personality=personality,
            sessions=sessions,
            decisions=DecisionEngine(store),
            chat=ChatEngine(store, sessions, pipeline, context_limit=settings.context_limit),
            persistence=PersistenceManager(
                store,
                personality,
                path=settings.snapshot_path,
                interval_seconds=settings.snapshot_interval_seconds,
            ),
            learning=ApiLearningService(store, LearningRecordStore()),
            remote_client=remote_client,
        )

    # =========================================================
    # LIFECYCLE
    # =========================================================

    def startup(self, start_timer: bool = True) -> int:
        """Load persisted state before serving; returns experiences loaded."""
        loaded = self.persistence.load()
        if self.remote_client is not None:
            if self.remote_client.health_check():
                logger.info("Remote generator reachable at %s", self.settings.provider.url)
            else:
                logger.warning("Remote generator not reachable. Chat will use fallback responses.")
        if start_timer:
            self.persistence.start()
        return loaded

    def shutdown(self) -> None:
        self.persistence.stop(final_snapshot=True)
        self.chat.close()
        logger.info("Shutdown complete")

    # =========================================================
    # CROSS-COMPONENT OPERATIONS
    # =========================================================

    def clear_experiences(self) -> int:
        """Clear the store and persist the empty state immediately.

        The snapshot write is best-effort; on failure the next timer tick
        writes the cleared state.
        """
        removed = self.store.clear()
        self.persistence.snapshot()
        return removed

    def stats(self, top_n: int = 10) -> dict:
        total_experiences, total_patterns, top = self.store.patterns.summary(top_n)
        return {
            "total_experiences": total_experiences,
            "total_patterns": total_patterns,
            "top_patterns": [entry.to_dict() for entry in top],
        }

    def interact(self, top_n: int = 5) -> dict:
        """Summarize what the store has learned: size plus the top keywords."""
        total_experiences, _, top = self.store.patterns.summary(top_n)
        return {
            "analysis": f"Analyzed {total_experiences} experiences",
            "experience_count": total_experiences,
            "pattern_summary": [f"{entry.keyword}: {entry.frequency} occurrences" for entry in top],
        }
