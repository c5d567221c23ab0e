"""
Tests for the in-memory attempt store and level distribution.
"""
from datetime import datetime, timezone

import pytest

from adaptive_exam.core.cat.engine import AdaptiveSession
from adaptive_exam.core.exceptions import SessionStateError
from adaptive_exam.schemas.attempts import AttemptSummary, LevelCount
from adaptive_exam.services.attempts import (
    AttemptSink,
    InMemoryAttemptStore,
    level_distribution,
)
from libs.domain_types import AttemptStatus


def _summary(final_level, bank_id="b1", status=AttemptStatus.COMPLETED):
    now = datetime.now(timezone.utc)
    return AttemptSummary(
        bank_id=bank_id,
        status=status,
        started_at=now,
        finished_at=now,
        final_theta=float(final_level - 3),
        final_level=final_level,
        items_administered=0,
        correct_count=0,
    )


@pytest.fixture
def store() -> InMemoryAttemptStore:
    return InMemoryAttemptStore()


class TestInMemoryAttemptStore:
    def test_satisfies_sink_protocol(self, store):
        assert isinstance(store, AttemptSink)

    def test_save_and_get(self, store):
        summary = _summary(4)
        attempt_id = store.save_attempt(summary)
        assert store.get_attempt(attempt_id) == summary

    def test_ids_are_unique(self, store):
        ids = {store.save_attempt(_summary(3)) for _ in range(5)}
        assert len(ids) == 5

    def test_unknown_attempt(self, store):
        with pytest.raises(KeyError):
            store.get_attempt("missing")

    def test_active_attempt_rejected(self, store):
        with pytest.raises(SessionStateError, match="completed"):
            store.save_attempt(_summary(3, status=AttemptStatus.ACTIVE))

    def test_list_filters_by_bank_in_save_order(self, store):
        first = _summary(2)
        other = _summary(5, bank_id="b2")
        second = _summary(4)
        for summary in (first, other, second):
            store.save_attempt(summary)
        assert store.list_attempts("b1") == [first, second]
        assert store.list_attempts("b3") == []

    def test_saves_finished_session(self, store, five_level_pool, scenario_policy):
        session = AdaptiveSession(five_level_pool, scenario_policy, bank_id="b1")
        session.start()
        while not session.finished:
            session.answer(session.current.correct_key)

        attempt_id = store.save_attempt(session.to_attempt_summary())
        saved = store.get_attempt(attempt_id)
        assert saved.final_level == 5
        assert saved.items_administered == len(saved.history)


class TestLevelDistribution:
    def test_sorted_ascending(self):
        attempts = [_summary(4), _summary(2), _summary(4), _summary(5)]
        assert level_distribution(attempts) == [
            LevelCount(level=2, count=1),
            LevelCount(level=4, count=2),
            LevelCount(level=5, count=1),
        ]

    def test_empty(self):
        assert level_distribution([]) == []

    def test_store_distribution_per_bank(self, store):
        store.save_attempt(_summary(3))
        store.save_attempt(_summary(3))
        store.save_attempt(_summary(1, bank_id="b2"))
        assert store.level_distribution("b1") == [LevelCount(level=3, count=2)]
