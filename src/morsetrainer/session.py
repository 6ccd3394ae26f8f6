"""Turn state machine for one practice session on one course.

A `TurnController` owns everything a session mutates: the mastery scores,
the active pool, the word queue, and the turn counters. Collaborators
(persistence, analytics, presentation, hint playback) are injected and only
ever receive data.

Turn protocol::

    AWAITING_INPUT --submit--> EVALUATING --correct/wrong--> AWAITING_INPUT
                                          \\--all learned--> COURSE_COMPLETE
"""

from __future__ import annotations

import random
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from loguru import logger

from .completion import CourseSnapshot, build_snapshot, is_course_complete
from .config import TrainerSettings
from .hints import HintPlayer, HintScheduler, HintTier, next_hint_tier
from .mastery import AnalyticsCounters, MasteryStore
from .models import Course, Outcome, Symbol, Word
from .pool import LetterPoolManager
from .selector import WordSelector


class PersistenceError(RuntimeError):
    """Raised by storage collaborators when progress cannot be read or written."""


class ScoreRepository(Protocol):
    """Loads and saves mastery scores keyed by course storage key."""

    def load(self, course_key: str) -> dict[str, int] | None: ...

    def save(self, course_key: str, scores: Mapping[str, int]) -> None: ...


class OutcomeRecorder(Protocol):
    """Receives every turn outcome for long-lived statistics."""

    def record_outcome(self, symbol: str, outcome: Outcome) -> None: ...


class SessionListener:
    """Presentation hooks; override what you need."""

    def on_turn_resolved(self, event: TurnResolved) -> None:
        pass

    def on_pool_grown(self, symbol: str) -> None:
        pass

    def on_course_complete(self, snapshot: CourseSnapshot) -> None:
        pass

    def on_warning(self, message: str) -> None:
        pass


class TurnPhase(str, Enum):
    AWAITING_INPUT = "awaiting_input"
    EVALUATING = "evaluating"
    COURSE_COMPLETE = "course_complete"


@dataclass
class TurnState:
    """Cursor and counters for the running session."""

    word_index: int = 0
    symbol_index: int = 0
    input_accepted: bool = True
    mistakes: int = 0
    streak: int = 0


@dataclass(frozen=True)
class TurnResolved:
    """Presentation event emitted once per evaluated submission."""

    expected: str
    submitted: str
    outcome: Outcome
    score: int
    hint_tier: HintTier | None
    streak: int
    mistakes: int
    next_symbol: str | None


class TurnController:
    """Evaluate submitted symbols and drive letter introduction for one course."""

    def __init__(
        self,
        course: Course,
        settings: TrainerSettings,
        *,
        scores: ScoreRepository | None = None,
        analytics: OutcomeRecorder | None = None,
        listener: SessionListener | None = None,
        hint_player: HintPlayer | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.course = course
        self.settings = settings
        self._scores = scores
        self._recorder = analytics
        self._listener = listener or SessionListener()
        self._hints = HintScheduler(hint_player)
        self._selector = WordSelector(rng)
        self._pool_manager = LetterPoolManager(settings.consecutive_correct, settings.initial_pool_size)

        self.mastery = MasteryStore(course.order, settings.learned_threshold, self._load_scores())
        self.analytics = AnalyticsCounters()
        self.pool = self._pool_manager.seed(course, self.mastery)
        self.state = TurnState()
        self.queue: list[Word] = []
        self._phase = TurnPhase.AWAITING_INPUT
        self._fill_queue()
        if is_course_complete(self.course, self.mastery):
            # start() emits the snapshot; until then no turn may be counted.
            self._phase = TurnPhase.COURSE_COMPLETE
            self.state.input_accepted = False

    @property
    def phase(self) -> TurnPhase:
        return self._phase

    @property
    def is_complete(self) -> bool:
        return self._phase is TurnPhase.COURSE_COMPLETE

    @property
    def newest_symbol(self) -> str:
        """Most recently introduced pool symbol."""
        return self.pool[-1]

    @property
    def current_word(self) -> Word:
        return self.queue[self.state.word_index]

    @property
    def current_symbol(self) -> str:
        return self.current_word.symbols[self.state.symbol_index]

    @property
    def hints_pending(self) -> bool:
        return self._hints.pending

    def start(self) -> Symbol | None:
        """Begin, or restart, the session from the first word.

        Returns the first expected symbol, or None when the course is already
        complete.
        """
        self._hints.cancel()
        self.state = TurnState()
        self.queue = []
        self._fill_queue()
        if is_course_complete(self.course, self.mastery):
            self._finish()
            return None
        self._phase = TurnPhase.AWAITING_INPUT
        symbol = self.course.symbol(self.current_symbol)
        if not self.mastery.is_learned(symbol.code):
            self._hints.schedule(symbol, next_hint_tier(0, self.settings.hint_cycle_length))
        return symbol

    def submit(self, typed: str) -> TurnResolved | None:
        """Evaluate one submitted symbol.

        Returns None when the submission was dropped: the course is complete,
        another submission is still being evaluated, or the turn could not be
        evaluated.
        """
        if self._phase is TurnPhase.COURSE_COMPLETE:
            logger.debug("Course complete, ignoring '{}'", typed)
            return None
        if not self.state.input_accepted:
            logger.debug("Input gate closed, dropping '{}'", typed)
            return None

        self.state.input_accepted = False
        self._phase = TurnPhase.EVALUATING
        self._hints.cancel()
        event: TurnResolved | None = None
        hint: tuple[Symbol, HintTier] | None = None
        try:
            expected = self.current_symbol
            submitted = typed.strip().lower()
            if submitted == expected:
                event, hint = self._resolve_correct(expected, submitted)
            else:
                event, hint = self._resolve_wrong(expected, submitted)
        except (IndexError, KeyError):
            logger.exception("Turn evaluation failed for input '{}'; re-arming input", typed)
        finally:
            if self._phase is not TurnPhase.COURSE_COMPLETE:
                self._phase = TurnPhase.AWAITING_INPUT
                self.state.input_accepted = True

        if hint is not None and not self.is_complete:
            self._hints.schedule(*hint)
        return event

    async def wait_for_hints(self) -> None:
        await self._hints.wait()

    def close(self) -> None:
        self._hints.cancel()

    def _resolve_correct(self, expected: str, submitted: str) -> tuple[TurnResolved, tuple[Symbol, HintTier] | None]:
        self._record(expected, Outcome.CORRECT)
        self.state.mistakes = 0
        self.state.streak += 1
        score = self.mastery.adjust(expected, 1)
        self._save_scores()
        self._advance()

        growth = self._pool_manager.maybe_grow(self.pool, self.course, self.mastery, self.state.streak)
        if growth.added is not None:
            self.pool = growth.pool
            self.state.streak = growth.streak
            self._listener.on_pool_grown(growth.added)
        self._fill_queue()

        complete = is_course_complete(self.course, self.mastery)
        next_symbol = None if complete else self.current_symbol
        tier: HintTier | None = None
        if next_symbol is not None and not self.mastery.is_learned(next_symbol):
            tier = next_hint_tier(self.state.mistakes, self.settings.hint_cycle_length)

        event = TurnResolved(
            expected=expected,
            submitted=submitted,
            outcome=Outcome.CORRECT,
            score=score,
            hint_tier=tier,
            streak=self.state.streak,
            mistakes=self.state.mistakes,
            next_symbol=next_symbol,
        )
        self._listener.on_turn_resolved(event)
        if complete:
            self._finish()
            return event, None
        if tier is None or next_symbol is None:
            return event, None
        return event, (self.course.symbol(next_symbol), tier)

    def _resolve_wrong(self, expected: str, submitted: str) -> tuple[TurnResolved, tuple[Symbol, HintTier] | None]:
        self._record(expected, Outcome.WRONG)
        self.state.mistakes += 1
        self.state.streak = 0
        score = self.mastery.adjust(expected, -1)
        self._save_scores()

        # Always hint after a miss, whatever the score.
        tier = next_hint_tier(self.state.mistakes, self.settings.hint_cycle_length)
        event = TurnResolved(
            expected=expected,
            submitted=submitted,
            outcome=Outcome.WRONG,
            score=score,
            hint_tier=tier,
            streak=self.state.streak,
            mistakes=self.state.mistakes,
            next_symbol=expected,
        )
        self._listener.on_turn_resolved(event)
        return event, (self.course.symbol(expected), tier)

    def _advance(self) -> None:
        self.state.symbol_index += 1
        if self.state.symbol_index >= len(self.queue[self.state.word_index]):
            self.state.word_index += 1
            self.state.symbol_index = 0

    def _fill_queue(self) -> None:
        """Keep the minimum depth and at least one word beyond the current one.

        Finished words are dropped once the queue is deeper than the minimum,
        so the queue stays bounded over a long session.
        """
        while len(self.queue) < self.settings.min_queue_depth or self.state.word_index > len(self.queue) - 2:
            word = self._selector.pick_word(self.course.words, self.pool, self.mastery, self.newest_symbol)
            self.queue.append(word)
        finished = min(self.state.word_index, len(self.queue) - self.settings.min_queue_depth)
        if finished > 0:
            del self.queue[:finished]
            self.state.word_index -= finished

    def _finish(self) -> None:
        self._phase = TurnPhase.COURSE_COMPLETE
        self.state.input_accepted = False
        self._hints.cancel()
        logger.info("Course '{}' complete", self.course.id)
        self._listener.on_course_complete(build_snapshot(self.course, self.mastery, self.analytics))

    def _record(self, symbol: str, outcome: Outcome) -> None:
        self.analytics.record(symbol, outcome)
        if self._recorder is None:
            return
        try:
            self._recorder.record_outcome(symbol, outcome)
        except PersistenceError as exc:
            self._warn(f"Could not record {outcome.value} answer for '{symbol}': {exc}")

    def _load_scores(self) -> dict[str, int] | None:
        if self._scores is None:
            return None
        try:
            return self._scores.load(self.course.storage_key)
        except PersistenceError as exc:
            self._warn(f"Saved progress for '{self.course.id}' could not be loaded: {exc}")
            return None

    def _save_scores(self) -> None:
        if self._scores is None:
            return
        try:
            self._scores.save(self.course.storage_key, self.mastery.snapshot())
        except PersistenceError as exc:
            self._warn(f"Progress for '{self.course.id}' could not be saved: {exc}")

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self._listener.on_warning(message)
