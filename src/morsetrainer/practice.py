"""Speed practice: key whole phrases, with mistakes flagged and skipped."""

from __future__ import annotations

import random
import re
import time
from collections.abc import Callable
from dataclasses import dataclass

PHRASES_PER_SESSION = 6

PRACTICE_PHRASES = (
    "read the code",
    "send a signal",
    "learn morse fast",
    "practice every day",
    "tap and listen",
    "count to ten",
    "keep it simple",
    "short clear message",
    "hear dots and dashes",
    "train with focus",
    "write what you hear",
    "steady typing pace",
    "copy this phrase",
    "say it and send",
    "use the morse board",
)

Clock = Callable[[], float]


def normalize_phrase(phrase: str) -> str:
    """Keep only the keyable characters of a phrase."""
    return "".join(re.findall(r"[a-z0-9]", phrase.lower()))


@dataclass(frozen=True)
class PracticeStep:
    """Result of keying one character."""

    expected: str
    typed: str
    correct: bool
    phrase_complete: bool
    session_complete: bool


@dataclass(frozen=True)
class PracticeSummary:
    total_words: int
    errors: int
    wpm: float


class PracticeSession:
    """Track position, errors, and pace across a fixed set of phrases."""

    def __init__(
        self,
        phrases: list[str] | None = None,
        *,
        rng: random.Random | None = None,
        clock: Clock = time.monotonic,
        count: int = PHRASES_PER_SESSION,
    ) -> None:
        if phrases is None:
            pool = list(PRACTICE_PHRASES)
            (rng or random.Random()).shuffle(pool)
            phrases = pool[:count]
        self.phrases = [phrase for phrase in phrases if normalize_phrase(phrase)]
        if not self.phrases:
            raise ValueError("Practice needs at least one phrase with keyable characters.")
        self.phrase_index = 0
        self.char_index = 0
        self.errors = 0
        self.total_words = sum(len(phrase.split()) for phrase in self.phrases)
        self._clock = clock
        self._started_at = clock()
        self._finished_at: float | None = None

    @property
    def complete(self) -> bool:
        return self._finished_at is not None

    @property
    def current_phrase(self) -> str:
        return self.phrases[self.phrase_index]

    @property
    def target(self) -> str:
        return normalize_phrase(self.current_phrase)

    @property
    def expected(self) -> str | None:
        if self.complete:
            return None
        return self.target[self.char_index]

    def keyed_so_far(self) -> str:
        return self.target[: self.char_index]

    def handle_input(self, typed: str) -> PracticeStep | None:
        """Advance one character; a wrong character counts as an error and is skipped."""
        expected = self.expected
        if expected is None:
            return None
        typed = typed.strip().lower()
        correct = typed == expected
        if not correct:
            self.errors += 1

        self.char_index += 1
        phrase_complete = self.char_index >= len(self.target)
        if phrase_complete:
            self.phrase_index += 1
            self.char_index = 0
            if self.phrase_index >= len(self.phrases):
                self.phrase_index = len(self.phrases) - 1
                self._finished_at = self._clock()
        return PracticeStep(
            expected=expected,
            typed=typed,
            correct=correct,
            phrase_complete=phrase_complete,
            session_complete=self.complete,
        )

    def summary(self) -> PracticeSummary:
        end = self._finished_at if self._finished_at is not None else self._clock()
        elapsed_minutes = max((end - self._started_at) / 60.0, 0.01)
        wpm = round(self.total_words / elapsed_minutes, 1)
        return PracticeSummary(total_words=self.total_words, errors=self.errors, wpm=wpm)
