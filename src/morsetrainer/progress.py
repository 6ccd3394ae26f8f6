"""SQLite persistence for profiles, mastery scores, and answer statistics."""

from __future__ import annotations

import sqlite3
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from .mastery import OutcomeCounts
from .models import Outcome
from .session import PersistenceError

SCHEMA_VERSION = 1


@dataclass(frozen=True)
class Profile:
    """User profile record."""

    id: int
    name: str


@dataclass(frozen=True)
class PracticeRecord:
    """One finished speed-practice session."""

    finished_at: str
    total_words: int
    errors: int
    wpm: float


class ProgressStore:
    """Database access layer for learner progress."""

    def __init__(self, db_path: Path | str) -> None:
        """Initialize database and schema."""
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        else:
            target = db_path
        self._conn = sqlite3.connect(target)
        self._conn.row_factory = sqlite3.Row
        self._apply_migrations()

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise RuntimeError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )

    def _migrate_to_v1(self) -> None:
        """Create profile, score, outcome, and practice tables."""
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS symbol_scores (
                    profile_id INTEGER NOT NULL,
                    course_key TEXT NOT NULL,
                    symbol TEXT NOT NULL,
                    score INTEGER NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (profile_id, course_key, symbol)
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS symbol_outcomes (
                    profile_id INTEGER NOT NULL,
                    symbol TEXT NOT NULL,
                    correct INTEGER NOT NULL DEFAULT 0,
                    wrong INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (profile_id, symbol)
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS practice_sessions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    profile_id INTEGER NOT NULL,
                    finished_at TEXT NOT NULL,
                    total_words INTEGER NOT NULL,
                    errors INTEGER NOT NULL,
                    wpm REAL NOT NULL
                )
                """)

    def list_profiles(self) -> list[Profile]:
        """Return profiles ordered by name."""
        rows = self._conn.execute("SELECT id, name FROM profiles ORDER BY name").fetchall()
        return [Profile(id=int(row["id"]), name=str(row["name"])) for row in rows]

    def create_profile(self, name: str) -> Profile:
        """Create a new profile."""
        now = datetime.now(UTC).isoformat()
        with self._conn:
            cursor = self._conn.execute(
                "INSERT INTO profiles (name, created_at) VALUES (?, ?)",
                (name, now),
            )
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Could not create profile.")
        return Profile(id=int(row_id), name=name)

    def get_profile(self, profile_id: int) -> Profile | None:
        """Get one profile by id."""
        row = self._conn.execute("SELECT id, name FROM profiles WHERE id = ?", (profile_id,)).fetchone()
        if row is None:
            return None
        return Profile(id=int(row["id"]), name=str(row["name"]))

    def delete_profile(self, profile_id: int) -> bool:
        """Delete profile and all associated progress data."""
        with self._conn:
            self._conn.execute("DELETE FROM symbol_scores WHERE profile_id = ?", (profile_id,))
            self._conn.execute("DELETE FROM symbol_outcomes WHERE profile_id = ?", (profile_id,))
            self._conn.execute("DELETE FROM practice_sessions WHERE profile_id = ?", (profile_id,))
            cursor = self._conn.execute("DELETE FROM profiles WHERE id = ?", (profile_id,))
        return cursor.rowcount > 0

    def load_scores(self, profile_id: int, course_key: str) -> dict[str, int] | None:
        """Return saved scores for a course, or None when nothing was saved yet."""
        rows = self._conn.execute(
            "SELECT symbol, score FROM symbol_scores WHERE profile_id = ? AND course_key = ?",
            (profile_id, course_key),
        ).fetchall()
        if not rows:
            return None
        return {str(row["symbol"]): int(row["score"]) for row in rows}

    def save_scores(self, profile_id: int, course_key: str, scores: Mapping[str, int]) -> None:
        """Upsert every score of a course."""
        now = datetime.now(UTC).isoformat()
        with self._conn:
            self._conn.executemany(
                """
                INSERT INTO symbol_scores (profile_id, course_key, symbol, score, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(profile_id, course_key, symbol) DO UPDATE SET
                    score = excluded.score,
                    updated_at = excluded.updated_at
                """,
                [(profile_id, course_key, symbol, int(score), now) for symbol, score in scores.items()],
            )

    def clear_scores(self, profile_id: int, course_key: str) -> int:
        """Forget a course's scores; returns removed row count."""
        with self._conn:
            cursor = self._conn.execute(
                "DELETE FROM symbol_scores WHERE profile_id = ? AND course_key = ?",
                (profile_id, course_key),
            )
        return cursor.rowcount

    def record_outcome(self, profile_id: int, symbol: str, outcome: Outcome) -> None:
        """Increment the correct or wrong counter for one symbol."""
        correct = 1 if outcome is Outcome.CORRECT else 0
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO symbol_outcomes (profile_id, symbol, correct, wrong)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(profile_id, symbol) DO UPDATE SET
                    correct = correct + excluded.correct,
                    wrong = wrong + excluded.wrong
                """,
                (profile_id, symbol, correct, 1 - correct),
            )

    def outcome_counts(self, profile_id: int) -> dict[str, OutcomeCounts]:
        """Return outcome counters keyed by symbol."""
        rows = self._conn.execute(
            "SELECT symbol, correct, wrong FROM symbol_outcomes WHERE profile_id = ?",
            (profile_id,),
        ).fetchall()
        return {
            str(row["symbol"]): OutcomeCounts(correct=int(row["correct"]), wrong=int(row["wrong"])) for row in rows
        }

    def record_practice_session(self, profile_id: int, total_words: int, errors: int, wpm: float) -> PracticeRecord:
        """Store one finished speed-practice session."""
        now = datetime.now(UTC).isoformat()
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO practice_sessions (profile_id, finished_at, total_words, errors, wpm)
                VALUES (?, ?, ?, ?, ?)
                """,
                (profile_id, now, total_words, errors, wpm),
            )
        return PracticeRecord(finished_at=now, total_words=total_words, errors=errors, wpm=wpm)

    def practice_history(self, profile_id: int) -> list[PracticeRecord]:
        """Return finished practice sessions, oldest first."""
        rows = self._conn.execute(
            """
            SELECT finished_at, total_words, errors, wpm
            FROM practice_sessions
            WHERE profile_id = ?
            ORDER BY id ASC
            """,
            (profile_id,),
        ).fetchall()
        return [
            PracticeRecord(
                finished_at=str(row["finished_at"]),
                total_words=int(row["total_words"]),
                errors=int(row["errors"]),
                wpm=float(row["wpm"]),
            )
            for row in rows
        ]

    def list_score_rows(self, profile_id: int) -> list[dict[str, object]]:
        """Return raw score rows for export."""
        rows = self._conn.execute(
            """
            SELECT course_key, symbol, score, updated_at
            FROM symbol_scores
            WHERE profile_id = ?
            ORDER BY course_key, symbol
            """,
            (profile_id,),
        ).fetchall()
        return [dict(row) for row in rows]

    def list_outcome_rows(self, profile_id: int) -> list[dict[str, object]]:
        """Return raw outcome rows for export."""
        rows = self._conn.execute(
            "SELECT symbol, correct, wrong FROM symbol_outcomes WHERE profile_id = ? ORDER BY symbol",
            (profile_id,),
        ).fetchall()
        return [dict(row) for row in rows]

    def list_practice_rows(self, profile_id: int) -> list[dict[str, object]]:
        """Return raw practice rows for export."""
        return [
            {
                "finished_at": record.finished_at,
                "total_words": record.total_words,
                "errors": record.errors,
                "wpm": record.wpm,
            }
            for record in self.practice_history(profile_id)
        ]

    def replace_profile_data(
        self,
        profile_id: int,
        score_rows: list[dict[str, object]],
        outcome_rows: list[dict[str, object]],
        practice_rows: list[dict[str, object]],
    ) -> None:
        """Replace all progress of a profile with imported rows."""
        with self._conn:
            self._conn.execute("DELETE FROM symbol_scores WHERE profile_id = ?", (profile_id,))
            self._conn.execute("DELETE FROM symbol_outcomes WHERE profile_id = ?", (profile_id,))
            self._conn.execute("DELETE FROM practice_sessions WHERE profile_id = ?", (profile_id,))
            self._conn.executemany(
                """
                INSERT OR REPLACE INTO symbol_scores (profile_id, course_key, symbol, score, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (profile_id, row["course_key"], row["symbol"], row["score"], row["updated_at"])
                    for row in score_rows
                ],
            )
            self._conn.executemany(
                "INSERT OR REPLACE INTO symbol_outcomes (profile_id, symbol, correct, wrong) VALUES (?, ?, ?, ?)",
                [(profile_id, row["symbol"], row["correct"], row["wrong"]) for row in outcome_rows],
            )
            self._conn.executemany(
                """
                INSERT INTO practice_sessions (profile_id, finished_at, total_words, errors, wpm)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (profile_id, row["finished_at"], row["total_words"], row["errors"], row["wpm"])
                    for row in practice_rows
                ],
            )

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()


class ProfileScoreRepository:
    """Score persistence bound to one profile."""

    def __init__(self, store: ProgressStore, profile_id: int) -> None:
        self._store = store
        self._profile_id = profile_id

    def load(self, course_key: str) -> dict[str, int] | None:
        try:
            return self._store.load_scores(self._profile_id, course_key)
        except sqlite3.Error as exc:
            raise PersistenceError(str(exc)) from exc

    def save(self, course_key: str, scores: Mapping[str, int]) -> None:
        try:
            self._store.save_scores(self._profile_id, course_key, scores)
        except sqlite3.Error as exc:
            raise PersistenceError(str(exc)) from exc


class ProfileAnalyticsRecorder:
    """Outcome counters bound to one profile."""

    def __init__(self, store: ProgressStore, profile_id: int) -> None:
        self._store = store
        self._profile_id = profile_id

    def record_outcome(self, symbol: str, outcome: Outcome) -> None:
        try:
            self._store.record_outcome(self._profile_id, symbol, outcome)
        except sqlite3.Error as exc:
            raise PersistenceError(str(exc)) from exc
