"""Append-mostly experience store with lookup and substring search.

Purpose of this abstraction:
    Own the ordered log of recorded experiences. Every other component
    (pattern index, decisions, chat retrieval, persistence) reads through
    this store; nothing else creates or deletes experiences.

Consistency model:
    - One `ReadWriteLock` guards the experience list, the id map, and the
      derived `PatternIndex`. Inserts update the index inside the same
      exclusive section, so a reader never sees an experience that the index
      does not know about (or the reverse).
    - An insert is visible to every read that starts after `insert` returns.
    - `list()` and `search()` return tuples copied under shared access, never
      live views.

Identity:
    Ids look like `exp_000042_1f2e3d4c`. The zero-padded sequence grows
    monotonically for the life of the process and continues after a snapshot
    load, so ids are generation-ordered and never reused after `clear()`.

Persistence boundary:
    The store does no I/O. `aicore.memory.persistence` serialises it via
    `Experience.to_dict` and restores it with `restore()`.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from aicore.core.errors import NotFound, ValidationError
from aicore.core.locks import ReadWriteLock
from aicore.memory.pattern_index import PatternIndex


logger = logging.getLogger(__name__)


DEFAULT_SOURCE = "user"
ID_PREFIX = "exp"


@dataclass(frozen=True)
class Experience:
    """One immutable recorded unit of content."""

    id: str
    content: str
    source: str
    timestamp: datetime
    metadata: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "source": self.source,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Experience":
        """Rebuild an experience from its serialised form.

        Raises:
            ValidationError: When required fields are missing or malformed.
        """
        if not isinstance(data, dict):
            raise ValidationError("experience record must be an object")

        try:
            exp_id = str(data["id"])
            content = str(data["content"])
            timestamp = datetime.fromisoformat(str(data["timestamp"]))
        except (KeyError, ValueError) as err:
            raise ValidationError(f"malformed experience record: {err}") from err

        if not content.strip():
            raise ValidationError(f"experience {exp_id} has empty content")

        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        metadata = data.get("metadata")
        return cls(
            id=exp_id,
            content=content,
            source=str(data.get("source") or DEFAULT_SOURCE),
            timestamp=timestamp,
            metadata=str(metadata) if metadata is not None else None,
        )


def _sequence_of(exp_id: str) -> int:
    """Extract the numeric sequence from an id, or 0 for foreign ids."""
    parts = exp_id.split("_")
    if len(parts) >= 2 and parts[0] == ID_PREFIX and parts[1].isdigit():
        return int(parts[1])
    return 0


class ExperienceStore:
    """Thread-safe ordered collection of experiences plus its pattern index."""

    def __init__(self):
        self.lock = ReadWriteLock()
        self._experiences: List[Experience] = []
        self._by_id = {}
        self._sequence = 0
        self.patterns = PatternIndex(self.lock, lambda: self._experiences)

    def _next_id(self) -> str:
        self._sequence += 1
        return f"{ID_PREFIX}_{self._sequence:06d}_{uuid.uuid4().hex[:8]}"

    # =========================================================
    # WRITES
    # =========================================================

    def insert(self, content: str, source: str = DEFAULT_SOURCE, metadata: Optional[str] = None) -> Experience:
        """Append a new experience and index it.

        Args:
            content: Experience text; surrounding whitespace is stripped.
            source: Short origin tag such as "user" or "system". Blank values
                fall back to "user".
            metadata: Optional free text. Empty strings are stored as `None`.

        Returns:
            The created `Experience`.

        Raises:
            ValidationError: If content is missing or whitespace-only. No
                state changes in that case.
        """
        text = str(content or "").strip()
        if not text:
            raise ValidationError("content must not be empty")

        tag = str(source or "").strip() or DEFAULT_SOURCE
        extra = metadata if metadata else None

        with self.lock.write():
            exp = Experience(
                id=self._next_id(),
                content=text,
                source=tag,
                timestamp=datetime.now(timezone.utc),
                metadata=extra,
            )
            self._experiences.append(exp)
            self._by_id[exp.id] = exp
            self.patterns._add(exp)

        logger.debug("Stored experience %s from %s (%d chars)", exp.id, tag, len(text))
        return exp

    def clear(self) -> int:
        """Remove every experience and reset the index in one exclusive section.

        Returns:
            Number of experiences removed.
        """
        with self.lock.write():
            removed = len(self._experiences)
            self._experiences = []
            self._by_id = {}
            self.patterns._reset()

        logger.info("Cleared %d experiences", removed)
        return removed

    def restore(self, experiences: Iterable[Experience]) -> int:
        """Replace the store contents wholesale (snapshot load).

        Duplicate ids keep the first occurrence. The id sequence is advanced
        past every restored id so new inserts stay generation-ordered.

        Returns:
            Number of experiences now held.
        """
        ordered = []
        by_id = {}
        for exp in experiences:
            if exp.id in by_id:
                logger.warning("Skipping duplicate experience id %s in snapshot", exp.id)
                continue
            by_id[exp.id] = exp
            ordered.append(exp)

        with self.lock.write():
            self._experiences = ordered
            self._by_id = by_id
            highest = max((_sequence_of(exp.id) for exp in ordered), default=0)
            self._sequence = max(self._sequence, highest)
            self.patterns._rebuild_locked()

        return len(ordered)

    # =========================================================
    # READS
    # =========================================================

    def get(self, exp_id: str) -> Experience:
        """Return the experience with `exp_id`.

        Raises:
            NotFound: When no experience has that id.
        """
        with self.lock.read():
            exp = self._by_id.get(exp_id)
        if exp is None:
            raise NotFound("experience", exp_id)
        return exp

    def list(self) -> Tuple[Experience, ...]:
        with self.lock.read():
            return tuple(self._experiences)

    def count(self) -> int:
        with self.lock.read():
            return len(self._experiences)

    def search(self, keyword: str) -> Tuple[Experience, ...]:
        """Return experiences whose content contains `keyword`, ignoring case.

        An empty tuple is a normal result. A blank keyword is rejected because
        it would match every experience.

        Raises:
            ValidationError: If `keyword` is blank.
        """
        needle = str(keyword or "").strip().lower()
        if not needle:
            raise ValidationError("search keyword must not be empty")

        with self.lock.read():
            return tuple(exp for exp in self._experiences if needle in exp.content.lower())

    def reflect(self) -> List[dict]:
        """Return a compact, display-oriented listing of every experience."""
        return [
            {
                "id": exp.id,
                "timestamp": exp.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                "source": exp.source,
                "content": exp.content,
            }
            for exp in self.list()
        ]
