"""
Tests for aicore/core/personality.py: trigger classification and bounded traits.
"""

from __future__ import annotations

import threading

import pytest

from aicore.core.personality import (
    CAUTION,
    CURIOSITY,
    HAPPINESS,
    PersonalityModel,
    PersonalityState,
    TRAIT_MARKERS,
    classify,
)


@pytest.fixture
def model():
    return PersonalityModel()


class TestClassify:
    def test_gratitude_phrase(self):
        assert classify("halo, terima kasih banyak!") == frozenset({HAPPINESS})

    def test_question_mark_is_curiosity(self):
        assert CURIOSITY in classify("cuaca besok?")

    def test_whole_token_matching(self):
        assert classify("apakah kamu tahu") == frozenset()
        assert classify("whatever happens") == frozenset()

    def test_multiple_traits(self):
        assert classify("why did it fail with an error?") == frozenset({CURIOSITY, CAUTION})

    def test_phrase_needs_adjacent_tokens(self):
        assert HAPPINESS not in classify("terima paket, kasih tahu")


class TestUpdate:
    def test_gratitude_raises_happiness_only(self, model):
        result = model.update("halo, terima kasih banyak!", "Sama-sama")
        assert result.happiness == pytest.approx(0.6)
        assert result.curiosity == 0.5
        assert result.caution == 0.5
        assert result.dominant_trait == "happy"
        assert result.influenced_response.startswith(TRAIT_MARKERS[HAPPINESS])
        assert result.influenced_response.endswith("Sama-sama")

    def test_caution_step_is_larger(self, model):
        result = model.update("awas bahaya", "ok")
        assert result.caution == pytest.approx(0.7)
        assert result.dominant_trait == "cautious"

    def test_no_trigger_leaves_state_unchanged(self, model):
        before = model.state()
        model.update("cuaca cerah", "ya")
        assert model.state() == before

    def test_values_stay_bounded(self, model):
        for _ in range(30):
            result = model.update("why? error! thanks", "ok")
        assert result.curiosity == 1.0
        assert result.happiness == 1.0
        assert result.caution == 1.0

    def test_ties_prefer_curiosity(self, model):
        assert model.dominant_trait() == "curious"
        model.update("thanks", "ok")
        model.update("why", "ok")
        assert model.dominant_trait() == "curious"

    def test_happiness_beats_caution_on_tie(self):
        model = PersonalityModel(PersonalityState(curiosity=0.2, happiness=0.8, caution=0.8))
        assert model.dominant_trait() == "happy"

    def test_concurrent_updates_are_not_lost(self, model):
        def worker():
            for _ in range(2):
                model.update("thanks", "ok")

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert model.state().happiness == pytest.approx(0.9)


class TestStateLifecycle:
    def test_state_is_a_copy(self, model):
        state = model.state()
        state.curiosity = 0.0
        assert model.state().curiosity == 0.5

    def test_restore_and_reset(self, model):
        model.restore(PersonalityState(curiosity=0.9, happiness=0.1, caution=0.3))
        assert model.dominant_trait() == "curious"
        model.reset()
        assert model.state() == PersonalityState()

    def test_from_dict_clamps(self):
        state = PersonalityState.from_dict({"curiosity": 3, "happiness": -1})
        assert state.curiosity == 1.0
        assert state.happiness == 0.0
        assert state.caution == 0.5
