"""Application service for profiles, courses, practice sessions, and transfers."""

from __future__ import annotations

import json
import random
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import cast

from loguru import logger

from . import __version__
from .config import TrainerSettings, get_settings
from .content_loader import DEFAULT_COURSE_ID, load_courses
from .hints import HintPlayer
from .mastery import MasteryStore, OutcomeCounts
from .models import Course
from .practice import PracticeSession
from .progress import (
    SCHEMA_VERSION,
    PracticeRecord,
    Profile,
    ProfileAnalyticsRecorder,
    ProfileScoreRepository,
    ProgressStore,
)
from .session import SessionListener, TurnController

EXPORT_FORMAT_VERSION = 1


@dataclass(frozen=True)
class CourseState:
    """Course progress for one profile."""

    course: Course
    learned: int
    total: int
    percent: int
    started: bool
    completed: bool


@dataclass(frozen=True)
class SymbolStats:
    """Per-symbol row for the status table."""

    code: str
    morse: str
    score: int
    learned: bool
    correct: int
    wrong: int
    accuracy: int


@dataclass(frozen=True)
class ProfileTransferSummary:
    """Summary emitted by profile export/import operations."""

    profile_id: int
    profile_name: str
    score_rows: int
    outcome_rows: int
    practice_rows: int


class TrainerService:
    """Coordinates profiles, saved progress, and practice sessions."""

    def __init__(self, db_path: Path | str | None = None, settings: TrainerSettings | None = None) -> None:
        """Initialize service with database path."""
        self.settings = settings or get_settings()
        self.courses = load_courses()
        self.progress = ProgressStore(db_path if db_path is not None else self.settings.db_path)

    def list_profiles(self) -> list[Profile]:
        """Return all profiles."""
        return self.progress.list_profiles()

    def create_profile(self, name: str) -> Profile:
        """Create profile by name."""
        return self.progress.create_profile(name.strip())

    def delete_profile(self, profile_id: int) -> bool:
        """Delete one profile by id."""
        return self.progress.delete_profile(profile_id)

    def get_course(self, course_id: str | None = None) -> Course:
        """Return a course, falling back to the configured then the default course."""
        for candidate in (course_id, self.settings.course, DEFAULT_COURSE_ID):
            if candidate is None:
                continue
            course = self.courses.get(candidate)
            if course is not None:
                if candidate != course_id and course_id is not None:
                    logger.warning("Unknown course '{}', using '{}'", course_id, course.id)
                return course
            if candidate == self.settings.course and candidate != DEFAULT_COURSE_ID:
                logger.warning("Configured course '{}' not found", candidate)
        raise KeyError(course_id or DEFAULT_COURSE_ID)

    def list_course_states(self, profile_id: int) -> list[CourseState]:
        """Return course progress sorted by course id."""
        states: list[CourseState] = []
        for course in sorted(self.courses.values(), key=lambda item: item.id):
            saved = self.progress.load_scores(profile_id, course.storage_key)
            mastery = MasteryStore(course.order, self.settings.learned_threshold, saved)
            learned = len(mastery.learned())
            states.append(
                CourseState(
                    course=course,
                    learned=learned,
                    total=len(course),
                    percent=mastery.progress_percent(),
                    started=saved is not None,
                    completed=learned == len(course),
                )
            )
        return states

    def start_session(
        self,
        profile_id: int,
        course_id: str | None = None,
        *,
        listener: SessionListener | None = None,
        hint_player: HintPlayer | None = None,
        rng: random.Random | None = None,
    ) -> TurnController:
        """Create a turn controller wired to this profile's saved progress."""
        course = self.get_course(course_id)
        return TurnController(
            course,
            self.settings,
            scores=ProfileScoreRepository(self.progress, profile_id),
            analytics=ProfileAnalyticsRecorder(self.progress, profile_id),
            listener=listener,
            hint_player=hint_player,
            rng=rng,
        )

    def reset_course(self, profile_id: int, course_id: str) -> bool:
        """Forget saved scores of one course; returns whether anything was removed."""
        course = self.courses[course_id]
        return self.progress.clear_scores(profile_id, course.storage_key) > 0

    def symbol_stats(self, profile_id: int, course_id: str) -> list[SymbolStats]:
        """Return per-symbol score and answer statistics in course order."""
        course = self.courses[course_id]
        mastery = MasteryStore(
            course.order,
            self.settings.learned_threshold,
            self.progress.load_scores(profile_id, course.storage_key),
        )
        outcomes = self.progress.outcome_counts(profile_id)
        rows: list[SymbolStats] = []
        for symbol in course.symbols:
            counts = outcomes.get(symbol.code, OutcomeCounts())
            rows.append(
                SymbolStats(
                    code=symbol.code,
                    morse=symbol.morse,
                    score=mastery.get(symbol.code),
                    learned=mastery.is_learned(symbol.code),
                    correct=counts.correct,
                    wrong=counts.wrong,
                    accuracy=counts.accuracy,
                )
            )
        return rows

    def start_practice(self, rng: random.Random | None = None) -> PracticeSession:
        """Create a speed-practice session with randomly chosen phrases."""
        return PracticeSession(rng=rng)

    def finish_practice(self, profile_id: int, session: PracticeSession) -> PracticeRecord:
        """Persist a finished practice session."""
        summary = session.summary()
        return self.progress.record_practice_session(profile_id, summary.total_words, summary.errors, summary.wpm)

    def practice_history(self, profile_id: int) -> list[PracticeRecord]:
        return self.progress.practice_history(profile_id)

    def export_profile(self, profile_id: int, export_path: Path | str) -> ProfileTransferSummary:
        """Export a profile and all progress state to a JSON file."""
        profile = self.progress.get_profile(profile_id)
        if profile is None:
            raise KeyError(profile_id)

        score_rows = self.progress.list_score_rows(profile_id)
        outcome_rows = self.progress.list_outcome_rows(profile_id)
        practice_rows = self.progress.list_practice_rows(profile_id)
        payload = {
            "format_version": EXPORT_FORMAT_VERSION,
            "exported_at": datetime.now(UTC).isoformat(),
            "source": {
                "app_version": __version__,
                "schema_version": SCHEMA_VERSION,
                "learned_threshold": self.settings.learned_threshold,
            },
            "profile": {
                "name": profile.name,
            },
            "symbol_scores": score_rows,
            "symbol_outcomes": outcome_rows,
            "practice_sessions": practice_rows,
        }

        path = Path(export_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return ProfileTransferSummary(
            profile_id=profile.id,
            profile_name=profile.name,
            score_rows=len(score_rows),
            outcome_rows=len(outcome_rows),
            practice_rows=len(practice_rows),
        )

    def import_profile(self, import_path: Path | str, profile_name: str | None = None) -> ProfileTransferSummary:
        """Import a profile export JSON file as a new profile."""
        path = Path(import_path)
        raw_obj: object = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw_obj, dict):
            raise ValueError("Import file root must be a JSON object.")
        raw = cast(dict[str, object], raw_obj)

        format_version = _coerce_int(raw.get("format_version", 0))
        if format_version is None:
            raise ValueError("Import file has invalid format_version.")
        if format_version > EXPORT_FORMAT_VERSION:
            raise ValueError(
                f"Import file format version {format_version} is newer than supported {EXPORT_FORMAT_VERSION}."
            )

        target_name = (profile_name or "").strip()
        if not target_name:
            profile_section = raw.get("profile")
            if isinstance(profile_section, dict):
                name_raw: object = cast(dict[str, object], profile_section).get("name")
                if isinstance(name_raw, str):
                    target_name = name_raw.strip()
        if not target_name:
            raise ValueError("Could not determine profile name from import file.")

        now = datetime.now(UTC).isoformat()
        limit = self.settings.score_limit
        score_rows = _normalize_score_rows(raw.get("symbol_scores"), now, limit)
        outcome_rows = _normalize_outcome_rows(raw.get("symbol_outcomes"))
        practice_rows = _normalize_practice_rows(raw.get("practice_sessions"), now)

        profile = self.create_profile(target_name)
        self.progress.replace_profile_data(profile.id, score_rows, outcome_rows, practice_rows)
        return ProfileTransferSummary(
            profile_id=profile.id,
            profile_name=profile.name,
            score_rows=len(score_rows),
            outcome_rows=len(outcome_rows),
            practice_rows=len(practice_rows),
        )

    def close(self) -> None:
        """Close resources."""
        self.progress.close()


def _dict_rows(raw: object) -> list[dict[str, object]]:
    if not isinstance(raw, list):
        return []
    return [cast(dict[str, object], item) for item in cast(list[object], raw) if isinstance(item, dict)]


def _normalize_score_rows(raw: object, now: str, limit: int) -> list[dict[str, object]]:
    """Normalize raw score rows from an import payload, clamping scores into range."""
    rows: list[dict[str, object]] = []
    for row in _dict_rows(raw):
        course_key = row.get("course_key")
        symbol = row.get("symbol")
        if not isinstance(course_key, str) or not course_key.strip():
            continue
        if not isinstance(symbol, str) or not symbol.strip():
            continue
        score = _coerce_int(row.get("score", 0), default=0) or 0
        updated_at = row.get("updated_at")
        rows.append(
            {
                "course_key": course_key.strip(),
                "symbol": symbol.strip().lower(),
                "score": max(-limit, min(limit, score)),
                "updated_at": updated_at if isinstance(updated_at, str) and updated_at else now,
            }
        )
    return rows


def _normalize_outcome_rows(raw: object) -> list[dict[str, object]]:
    """Normalize raw outcome counter rows from an import payload."""
    rows: list[dict[str, object]] = []
    for row in _dict_rows(raw):
        symbol = row.get("symbol")
        if not isinstance(symbol, str) or not symbol.strip():
            continue
        rows.append(
            {
                "symbol": symbol.strip().lower(),
                "correct": max(0, _coerce_int(row.get("correct", 0), default=0) or 0),
                "wrong": max(0, _coerce_int(row.get("wrong", 0), default=0) or 0),
            }
        )
    return rows


def _normalize_practice_rows(raw: object, now: str) -> list[dict[str, object]]:
    """Normalize raw practice session rows from an import payload."""
    rows: list[dict[str, object]] = []
    for row in _dict_rows(raw):
        finished_at = row.get("finished_at")
        rows.append(
            {
                "finished_at": finished_at if isinstance(finished_at, str) and finished_at else now,
                "total_words": max(0, _coerce_int(row.get("total_words", 0), default=0) or 0),
                "errors": max(0, _coerce_int(row.get("errors", 0), default=0) or 0),
                "wpm": max(0.0, _coerce_float(row.get("wpm", 0.0), default=0.0) or 0.0),
            }
        )
    return rows


def _coerce_int(value: object, default: int | None = None) -> int | None:
    """Coerce value to int for import normalization."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


def _coerce_float(value: object, default: float | None = None) -> float | None:
    """Coerce value to float for import normalization."""
    if isinstance(value, bool):
        return float(int(value))
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return default
    return default
