"""Keyword-overlap context selection for chat turns.

Architectural role:
    Converts one user message into an immutable `ContextBundle` consumed by
    the generators. This module performs no generation and no writes.

Ranking model:
    - Candidate experiences share at least one keyword with the message.
    - Primary key: number of distinct shared keywords (descending).
    - Tie-break: recency, i.e. later insertion first.
    - At most `limit` experiences are kept.

Consistency:
    Candidates are collected by `PatternIndex.matching` under one shared
    section of the store lock; the lock is released before the bundle is
    returned, so generation never runs while holding it.

Determinism:
    Deterministic for a fixed message and store state.
"""

from dataclasses import dataclass
from typing import List, Tuple

from aicore.nlp.tokenizer import extract_keywords, unique_keywords


DEFAULT_CONTEXT_LIMIT = 5


@dataclass(frozen=True)
class ContextBundle:
    """Everything a generator may use to answer one message."""

    message: str
    keywords: Tuple[str, ...]
    experiences: tuple = ()
    # Earlier messages of the same session, oldest first.
    history: tuple = ()

    @property
    def experience_ids(self) -> Tuple[str, ...]:
        return tuple(exp.id for exp in self.experiences)

    @property
    def is_empty(self) -> bool:
        return not self.experiences

    def context_lines(self) -> List[str]:
        return [f"- {exp.content} (from {exp.source})" for exp in self.experiences]

    def history_lines(self) -> List[str]:
        return [f"{message.role}: {message.content}" for message in self.history]

    def top_keywords(self, n: int = 3) -> List[str]:
        """Most frequent keywords across the bundled experiences.

        Counted with the same tokenizer as the pattern index; ties resolve
        alphabetically.
        """
        counts = {}
        for exp in self.experiences:
            for keyword in extract_keywords(exp.content):
                counts[keyword] = counts.get(keyword, 0) + 1
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [keyword for keyword, _ in ranked[:n]]


def build_context(store, message: str, limit: int = DEFAULT_CONTEXT_LIMIT, history=()) -> ContextBundle:
    """Select up to `limit` experiences relevant to `message`.

    Args:
        store: Shared `ExperienceStore`.
        message: Raw user message.
        limit: Maximum number of experiences to include.
        history: Earlier `ChatMessage`s of the session, carried through to
            the prompt unchanged.

    Returns:
        `ContextBundle` with the ordered experiences and extracted keywords.
        An empty bundle is returned when the message has no usable keywords
        or nothing overlaps.
    """
    keywords = tuple(unique_keywords(message))
    if not keywords or limit <= 0:
        return ContextBundle(message=message, keywords=keywords, history=tuple(history))

    wanted = frozenset(keywords)
    matches = store.patterns.matching(wanted)

    # `matching` preserves insertion order, so the position is the recency rank.
    scored = [
        (len(own & wanted), position, exp)
        for position, (exp, own) in enumerate(matches)
    ]
    scored.sort(key=lambda item: (-item[0], -item[1]))

    selected = tuple(exp for _, _, exp in scored[:limit])
    return ContextBundle(message=message, keywords=keywords, experiences=selected, history=tuple(history))
