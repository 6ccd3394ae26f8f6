import sqlite3
from pathlib import Path

import pytest

from morsetrainer.mastery import OutcomeCounts
from morsetrainer.models import Outcome
from morsetrainer.progress import ProfileAnalyticsRecorder, ProfileScoreRepository, ProgressStore
from morsetrainer.session import PersistenceError


def test_profiles_roundtrip() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("alice")
    assert store.list_profiles()[0].name == "alice"
    assert store.get_profile(profile.id) == profile
    assert store.get_profile(9999) is None


def test_duplicate_profile_name_rejected() -> None:
    store = ProgressStore(":memory:")
    store.create_profile("alice")
    with pytest.raises(sqlite3.IntegrityError):
        store.create_profile("alice")


def test_migration_sets_user_version_and_schema_history() -> None:
    store = ProgressStore(":memory:")
    version = int(store._conn.execute("PRAGMA user_version").fetchone()[0])  # noqa: SLF001
    assert version == 1
    rows = store._conn.execute("SELECT version FROM schema_migrations ORDER BY version").fetchall()  # noqa: SLF001
    assert [int(row["version"]) for row in rows] == [1]


def test_newer_schema_version_is_rejected(tmp_path: Path) -> None:
    db_path = tmp_path / "progress.db"
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA user_version = 99")
    conn.close()
    with pytest.raises(RuntimeError, match="newer than supported"):
        ProgressStore(db_path)


def test_scores_are_per_course_and_upserted() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("bob")
    assert store.load_scores(profile.id, "savedLetters") is None

    store.save_scores(profile.id, "savedLetters", {"e": 1, "t": 0})
    store.save_scores(profile.id, "savedLetters", {"e": 2})
    store.save_scores(profile.id, "savedNumbers", {"1": -1})

    assert store.load_scores(profile.id, "savedLetters") == {"e": 2, "t": 0}
    assert store.load_scores(profile.id, "savedNumbers") == {"1": -1}

    assert store.clear_scores(profile.id, "savedLetters") == 2
    assert store.load_scores(profile.id, "savedLetters") is None
    assert store.load_scores(profile.id, "savedNumbers") == {"1": -1}


def test_outcome_counters_increment() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("carol")
    store.record_outcome(profile.id, "e", Outcome.CORRECT)
    store.record_outcome(profile.id, "e", Outcome.CORRECT)
    store.record_outcome(profile.id, "e", Outcome.WRONG)
    store.record_outcome(profile.id, "t", Outcome.WRONG)
    assert store.outcome_counts(profile.id) == {"e": OutcomeCounts(2, 1), "t": OutcomeCounts(0, 1)}


def test_practice_history_in_order() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("dave")
    store.record_practice_session(profile.id, 12, 3, 8.5)
    store.record_practice_session(profile.id, 14, 0, 10.0)
    history = store.practice_history(profile.id)
    assert [(item.total_words, item.errors, item.wpm) for item in history] == [(12, 3, 8.5), (14, 0, 10.0)]


def test_delete_profile_removes_related_progress() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("remove-me")
    store.save_scores(profile.id, "savedLetters", {"e": 2})
    store.record_outcome(profile.id, "e", Outcome.CORRECT)
    store.record_practice_session(profile.id, 10, 1, 5.0)

    assert store.delete_profile(profile.id) is True
    assert store.get_profile(profile.id) is None
    assert store.load_scores(profile.id, "savedLetters") is None
    assert store.outcome_counts(profile.id) == {}
    assert store.practice_history(profile.id) == []
    assert store.delete_profile(profile.id) is False


def test_replace_profile_data() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("erin")
    store.save_scores(profile.id, "savedLetters", {"q": 1})
    store.replace_profile_data(
        profile.id,
        [{"course_key": "savedLetters", "symbol": "e", "score": 3, "updated_at": "2026-01-01T00:00:00+00:00"}],
        [{"symbol": "e", "correct": 4, "wrong": 1}],
        [{"finished_at": "2026-01-01T00:00:00+00:00", "total_words": 9, "errors": 2, "wpm": 7.5}],
    )
    assert store.load_scores(profile.id, "savedLetters") == {"e": 3}
    assert store.list_outcome_rows(profile.id) == [{"symbol": "e", "correct": 4, "wrong": 1}]
    assert store.list_practice_rows(profile.id)[0]["wpm"] == 7.5


def test_file_database_persists_between_stores(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "progress.db"
    store = ProgressStore(db_path)
    profile = store.create_profile("frank")
    store.save_scores(profile.id, "savedLetters", {"e": 2})
    store.close()

    reopened = ProgressStore(db_path)
    assert reopened.load_scores(profile.id, "savedLetters") == {"e": 2}
    reopened.close()


def test_adapters_bind_profile() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("gina")
    scores = ProfileScoreRepository(store, profile.id)
    recorder = ProfileAnalyticsRecorder(store, profile.id)
    scores.save("savedLetters", {"e": 1})
    recorder.record_outcome("e", Outcome.CORRECT)
    assert scores.load("savedLetters") == {"e": 1}
    assert store.outcome_counts(profile.id)["e"].correct == 1


def test_adapters_wrap_database_errors() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("hal")
    store.close()
    with pytest.raises(PersistenceError):
        ProfileScoreRepository(store, profile.id).save("savedLetters", {"e": 1})
    with pytest.raises(PersistenceError):
        ProfileScoreRepository(store, profile.id).load("savedLetters")
    with pytest.raises(PersistenceError):
        ProfileAnalyticsRecorder(store, profile.id).record_outcome("e", Outcome.WRONG)
