import pytest

from morsetrainer.mastery import AnalyticsCounters, MasteryStore, OutcomeCounts, progress_percent
from morsetrainer.models import Outcome


def test_scores_start_at_zero_and_ignore_unknown_saved_keys() -> None:
    store = MasteryStore("abc", threshold=2, saved={"a": 1, "z": 2})
    assert store.snapshot() == {"a": 1, "b": 0, "c": 0}
    assert "z" not in store
    assert len(store) == 3


def test_saved_scores_are_clamped() -> None:
    store = MasteryStore("ab", threshold=2, saved={"a": 99, "b": -99})
    assert store.get("a") == 4
    assert store.get("b") == -4


def test_adjust_clamps_at_both_bounds() -> None:
    store = MasteryStore("a", threshold=2)
    for _ in range(10):
        store.adjust("a", 1)
    assert store.get("a") == 4
    for _ in range(20):
        store.adjust("a", -1)
    assert store.get("a") == -4
    assert store.adjust("a", 1) == -3


def test_adjust_unknown_symbol_raises() -> None:
    store = MasteryStore("a", threshold=2)
    with pytest.raises(KeyError):
        store.adjust("q", 1)


def test_learned_uses_threshold() -> None:
    store = MasteryStore("abc", threshold=2, saved={"a": 2, "b": 1, "c": 4})
    assert store.is_learned("a") is True
    assert store.is_learned("b") is False
    assert store.learned() == ["a", "c"]


def test_progress_percent_caps_each_symbol_at_threshold() -> None:
    assert progress_percent({"a": 2, "b": 1, "c": -3}, 2) == 50
    assert progress_percent({"a": 4, "b": 4}, 2) == 100
    assert progress_percent({}, 2) == 0
    store = MasteryStore("abc", threshold=2, saved={"a": 4, "b": 2, "c": 1})
    assert store.progress_percent() == 83


def test_outcome_counts_accuracy() -> None:
    assert OutcomeCounts().accuracy == 0
    counts = OutcomeCounts(correct=2, wrong=1)
    assert counts.total == 3
    assert counts.accuracy == 67


def test_analytics_counters_are_monotonic_and_copied() -> None:
    counters = AnalyticsCounters()
    counters.record("a", Outcome.CORRECT)
    counters.record("a", Outcome.WRONG)
    counters.record("a", Outcome.CORRECT)
    snapshot = counters.snapshot()
    assert snapshot["a"] == OutcomeCounts(correct=2, wrong=1)

    snapshot["a"].correct = 100
    assert counters.get("a").correct == 2
    assert counters.get("b") == OutcomeCounts()
