"""Bounded three-trait personality model driven by interaction text.

Intent classification logic:
    The input is lowercased and tokenized. Each trait owns a disjoint set of
    trigger words/phrases:
    - curiosity: interrogative markers (plus a literal `?`),
    - happiness: greeting and gratitude markers,
    - caution: warning and error markers.
    Single-word triggers match whole tokens; multi-word triggers match whole
    token sequences, so "terima kasih" matches but "apakah" does not trigger
    "apa".

State model:
    Every matching set raises its trait by a fixed step, clamped to [0, 1].
    Traits whose set did not match are left untouched. There is no decay;
    only `reset()` lowers values.

Dominant trait:
    The strictly greatest trait wins; ties resolve in the fixed order
    curiosity, happiness, caution.
"""

import threading
from dataclasses import dataclass, asdict
from typing import Dict, FrozenSet, Tuple

from aicore.nlp.tokenizer import tokenize


INITIAL_VALUE = 0.5

CURIOSITY = "curiosity"
HAPPINESS = "happiness"
CAUTION = "caution"

# Tie-break order for the dominant trait.
TRAIT_PRECEDENCE = (CURIOSITY, HAPPINESS, CAUTION)

TRAIT_LABELS = {
    CURIOSITY: "curious",
    HAPPINESS: "happy",
    CAUTION: "cautious",
}

TRAIT_MARKERS = {
    CURIOSITY: "🤔",
    HAPPINESS: "😊",
    CAUTION: "⚠️",
}

TRAIT_STEPS = {
    CURIOSITY: 0.1,
    HAPPINESS: 0.1,
    CAUTION: 0.2,
}

TRAIT_TRIGGERS: Dict[str, FrozenSet[str]] = {
    CURIOSITY: frozenset({
        "apa", "mengapa", "kenapa", "bagaimana", "siapa", "kapan", "dimana",
        "what", "why", "how", "who", "when", "where",
    }),
    HAPPINESS: frozenset({
        "halo", "hai", "hello", "hi", "terima kasih", "makasih", "thanks",
        "thank you", "senang",
    }),
    CAUTION: frozenset({
        "bahaya", "awas", "error", "warning", "gagal", "peringatan", "danger",
        "failed",
    }),
}


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _contains_trigger(tokens: Tuple[str, ...], trigger: str) -> bool:
    parts = tuple(trigger.split())
    width = len(parts)
    if width == 1:
        return parts[0] in tokens
    return any(tokens[i:i + width] == parts for i in range(len(tokens) - width + 1))


def classify(text: str) -> FrozenSet[str]:
    """Return the traits whose trigger sets match `text`."""
    tokens = tuple(tokenize(text))
    matched = set()
    for trait, triggers in TRAIT_TRIGGERS.items():
        if any(_contains_trigger(tokens, trigger) for trigger in triggers):
            matched.add(trait)
    if "?" in str(text or ""):
        matched.add(CURIOSITY)
    return frozenset(matched)


@dataclass
class PersonalityState:
    curiosity: float = INITIAL_VALUE
    happiness: float = INITIAL_VALUE
    caution: float = INITIAL_VALUE

    def dominant(self) -> str:
        """Return the trait key with the strictly greatest value."""
        best = TRAIT_PRECEDENCE[0]
        for trait in TRAIT_PRECEDENCE[1:]:
            if getattr(self, trait) > getattr(self, best):
                best = trait
        return best

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "PersonalityState":
        return cls(**{
            trait: _clamp(float(data.get(trait, INITIAL_VALUE)))
            for trait in TRAIT_PRECEDENCE
        })


@dataclass(frozen=True)
class PersonalityUpdate:
    """Result of one `PersonalityModel.update` call."""

    curiosity: float
    happiness: float
    caution: float
    dominant_trait: str
    influenced_response: str

    def to_dict(self) -> dict:
        return asdict(self)


class PersonalityModel:
    def __init__(self, state: PersonalityState = None):
        self._state = state or PersonalityState()
        self._lock = threading.Lock()

    def update(self, input_text: str, response: str) -> PersonalityUpdate:
        """Apply the traits triggered by `input_text` and decorate `response`.

        The response is prefixed with the marker of the dominant trait after
        the update.
        """
        matched = classify(input_text)

        with self._lock:
            for trait in matched:
                current = getattr(self._state, trait)
                setattr(self._state, trait, _clamp(current + TRAIT_STEPS[trait]))
            snapshot = PersonalityState(**self._state.to_dict())

        dominant = snapshot.dominant()
        return PersonalityUpdate(
            curiosity=round(snapshot.curiosity, 4),
            happiness=round(snapshot.happiness, 4),
            caution=round(snapshot.caution, 4),
            dominant_trait=TRAIT_LABELS[dominant],
            influenced_response=f"{TRAIT_MARKERS[dominant]} {response or ''}".rstrip(),
        )

    def state(self) -> PersonalityState:
        with self._lock:
            return PersonalityState(**self._state.to_dict())

    def dominant_trait(self) -> str:
        return TRAIT_LABELS[self.state().dominant()]

    def restore(self, state: PersonalityState) -> None:
        with self._lock:
            self._state = PersonalityState(**state.to_dict())

    def reset(self) -> None:
        with self._lock:
            self._state = PersonalityState()
