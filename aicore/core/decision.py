"""Heuristic decision scoring over experience and pattern counts.

Scoring model:
    confidence(E, P) = 0.5 + 0.30 * E / (E + 5) + 0.15 * P / (P + 20)

    where E is the number of experiences considered and P the number of
    distinct keywords among them. Both terms are non-decreasing, so
    confidence never drops when either count grows; the value stays in
    [0.5, 0.95). Results are rounded to four decimals, which keeps the
    ordering intact.

Action selection:
    - no experiences         -> "default"
    - more experiences than patterns -> "respond"
    - otherwise              -> "continue_learning" (keep collecting data)
    Query-scoped decisions with no overlapping experience return
    "ask_for_clarification" at a fixed 0.3 confidence.

Determinism:
    Identical store state yields identical action, confidence and reasoning.
    Only `timestamp` varies.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from aicore.core.errors import ValidationError
from aicore.nlp.tokenizer import unique_keywords


ACTION_DEFAULT = "default"
ACTION_RESPOND = "respond"
ACTION_EXPLORE = "continue_learning"
ACTION_CLARIFY = "ask_for_clarification"

NO_MATCH_CONFIDENCE = 0.3


def _now():
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Decision:
    action: str
    confidence: float
    reasoning: str
    based_on_experiences: int
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "based_on_experiences": self.based_on_experiences,
            "timestamp": self.timestamp.isoformat(),
        }


def score_confidence(total_experiences: int, total_patterns: int) -> float:
    """Map aggregate counts to a confidence in [0, 1]."""
    e = max(0, int(total_experiences))
    p = max(0, int(total_patterns))
    value = 0.5 + 0.30 * e / (e + 5) + 0.15 * p / (p + 20)
    return round(min(1.0, max(0.0, value)), 4)


def choose_action(total_experiences: int, total_patterns: int) -> str:
    if total_experiences <= 0:
        return ACTION_DEFAULT
    if total_experiences > total_patterns:
        return ACTION_RESPOND
    return ACTION_EXPLORE


class DecisionEngine:
    """Scores actions from the shared experience store and its pattern index."""

    def __init__(self, store):
        self.store = store

    def _decide_from_counts(self, experiences: int, patterns: int, top_keyword: Optional[str],
                            scope: str) -> Decision:
        if experiences == 0:
            reasoning = (
                f"No previous experiences available{scope}. "
                f"0 experiences and {patterns} patterns; using default behavior."
            )
        elif top_keyword:
            reasoning = (
                f"Based on {experiences} experiences and {patterns} recognized patterns{scope}. "
                f"Top pattern: '{top_keyword}'"
            )
        else:
            reasoning = (
                f"Based on {experiences} experiences and {patterns} recognized patterns{scope} "
                f"with limited pattern recognition"
            )

        return Decision(
            action=choose_action(experiences, patterns),
            confidence=score_confidence(experiences, patterns),
            reasoning=reasoning,
            based_on_experiences=experiences,
        )

    def decide(self) -> Decision:
        """Score the whole store."""
        experiences, total_patterns, top = self.store.patterns.summary(1)
        top_keyword = top[0].keyword if top else None
        return self._decide_from_counts(experiences, total_patterns, top_keyword, "")

    def decide_for(self, query: str) -> Decision:
        """Score only the experiences sharing at least one keyword with `query`.

        Raises:
            ValidationError: If `query` is blank.
        """
        text = str(query or "").strip()
        if not text:
            raise ValidationError("query must not be empty")

        matches = self.store.patterns.matching(unique_keywords(text))
        if not matches:
            return Decision(
                action=ACTION_CLARIFY,
                confidence=NO_MATCH_CONFIDENCE,
                reasoning=f"No relevant experiences found for query: '{text}'",
                based_on_experiences=0,
            )

        # Frequencies restricted to the matched subset.
        counts = {}
        for _, keywords in matches:
            for keyword in keywords:
                counts[keyword] = counts.get(keyword, 0) + 1
        top_keyword = min(counts.items(), key=lambda item: (-item[1], item[0]))[0] if counts else None

        return self._decide_from_counts(
            len(matches),
            len(counts),
            top_keyword,
            f" relevant to query '{text}'",
        )
