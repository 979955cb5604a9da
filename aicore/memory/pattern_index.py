"""Derived keyword index over the experience store.

Architectural role:
    A cache computed from `ExperienceStore` contents, never a system of
    record. It can be discarded and rebuilt at any time with
    `rebuild_all()`; snapshots never contain it.

Indexing model:
    For every experience, `extract_keywords(content)` yields lowercase
    alphanumeric tokens (length >= 3, stop words removed). Each occurrence
    increments the keyword's `frequency`; the experience id is added once to
    the keyword's owner set. Therefore `frequency >= experience_count` for
    every keyword, and `experience_count` equals the number of distinct
    experiences containing the keyword.

Concurrency:
    The index shares the store's `ReadWriteLock`. Methods prefixed with `_`
    assume the caller already holds exclusive access (the store calls them
    from inside its own write sections); public methods acquire the lock
    themselves.

Determinism:
    Rebuilds walk experiences in insertion order, so owner lists and all
    derived values are identical across consecutive rebuilds of an unchanged
    store. Ranking ties are broken alphabetically.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, List, Sequence, Tuple

from aicore.core.errors import NotFound
from aicore.nlp.tokenizer import extract_keywords


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternEntry:
    keyword: str
    frequency: int
    experience_ids: Tuple[str, ...]

    @property
    def experience_count(self) -> int:
        return len(self.experience_ids)

    def to_dict(self) -> dict:
        return {
            "keyword": self.keyword,
            "frequency": self.frequency,
            "experience_count": self.experience_count,
        }


class PatternIndex:
    def __init__(self, lock, source: Callable[[], Sequence]):
        """
        Args:
            lock: The owning store's `ReadWriteLock`.
            source: Zero-argument callable returning the store's current
                experience sequence. Only called while the lock is held.
        """
        self._lock = lock
        self._source = source
        self._frequency: Dict[str, int] = {}
        # dict used as an insertion-ordered set of experience ids
        self._owners: Dict[str, Dict[str, None]] = {}
        self._keywords_by_experience: Dict[str, FrozenSet[str]] = {}

    # =========================================================
    # LOCKED MUTATORS (caller holds exclusive access)
    # =========================================================

    def _add(self, exp) -> None:
        tokens = extract_keywords(exp.content)
        for token in tokens:
            self._frequency[token] = self._frequency.get(token, 0) + 1
            self._owners.setdefault(token, {})[exp.id] = None
        self._keywords_by_experience[exp.id] = frozenset(tokens)

    def _reset(self) -> None:
        self._frequency = {}
        self._owners = {}
        self._keywords_by_experience = {}

    def _rebuild_locked(self) -> None:
        self._reset()
        for exp in self._source():
            self._add(exp)

    def _entry(self, keyword: str) -> PatternEntry:
        return PatternEntry(
            keyword=keyword,
            frequency=self._frequency[keyword],
            experience_ids=tuple(self._owners[keyword]),
        )

    # =========================================================
    # PUBLIC API
    # =========================================================

    def rebuild_all(self) -> int:
        """Recompute the whole index from the store.

        Returns:
            Number of distinct keywords after the rebuild.
        """
        with self._lock.write():
            self._rebuild_locked()
            total = len(self._frequency)
        logger.info("Pattern index rebuilt with %d keywords", total)
        return total

    def top(self, n: int) -> List[PatternEntry]:
        """Return up to `n` entries by descending frequency, ties alphabetical."""
        if n <= 0:
            return []
        with self._lock.read():
            ranked = sorted(self._frequency.items(), key=lambda item: (-item[1], item[0]))
            return [self._entry(keyword) for keyword, _ in ranked[:n]]

    def detail(self, keyword: str) -> PatternEntry:
        """Return the entry for `keyword` (case-insensitive).

        Raises:
            NotFound: When the keyword is not indexed.
        """
        key = str(keyword or "").strip().lower()
        with self._lock.read():
            if key not in self._frequency:
                raise NotFound("pattern", key)
            return self._entry(key)

    def detail_with_related(self, keyword: str) -> Tuple[PatternEntry, List[str]]:
        """Return the entry for `keyword` and its owners' contents, in store order.

        Both are read in one shared section, so the contents always belong to
        exactly the ids in the entry.

        Raises:
            NotFound: When the keyword is not indexed.
        """
        key = str(keyword or "").strip().lower()
        with self._lock.read():
            if key not in self._frequency:
                raise NotFound("pattern", key)
            entry = self._entry(key)
            owners = self._owners[key]
            related = [exp.content for exp in self._source() if exp.id in owners]
        return entry, related

    def summary(self, n: int) -> Tuple[int, int, List[PatternEntry]]:
        """Return `(total_experiences, total_patterns, top_n_entries)` atomically."""
        with self._lock.read():
            ranked = sorted(self._frequency.items(), key=lambda item: (-item[1], item[0]))
            top = [self._entry(keyword) for keyword, _ in ranked[:max(0, n)]]
            return len(self._source()), len(self._frequency), top

    def entries(self) -> List[PatternEntry]:
        """Return every entry sorted by keyword."""
        with self._lock.read():
            return [self._entry(keyword) for keyword in sorted(self._frequency)]

    def total_patterns(self) -> int:
        with self._lock.read():
            return len(self._frequency)

    def keywords_for(self, exp_id: str) -> FrozenSet[str]:
        with self._lock.read():
            return self._keywords_by_experience.get(exp_id, frozenset())

    def matching(self, keywords: Iterable[str]) -> List[tuple]:
        """Return `(experience, experience_keywords)` for every overlapping experience.

        `experience_keywords` is the full derived keyword set of the
        experience; callers intersect it with their own keywords as needed.

        Results follow store insertion order and are collected under a single
        shared section, so they describe one consistent store state.
        """
        wanted = frozenset(keywords)
        if not wanted:
            return []
        with self._lock.read():
            matches = []
            for exp in self._source():
                own = self._keywords_by_experience.get(exp.id, frozenset())
                if own & wanted:
                    matches.append((exp, own))
            return matches
