"""Active symbol pool: seeding from saved progress and streak-gated growth."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from .mastery import MasteryStore
from .models import Course


@dataclass(frozen=True)
class PoolGrowth:
    """Outcome of one growth check."""

    pool: tuple[str, ...]
    added: str | None
    streak: int


class LetterPoolManager:
    """Decide which course symbols are eligible for practice words.

    The pool only ever grows: a new symbol is appended once the most recently
    introduced one is learned and the learner holds a correct streak of at
    least `consecutive_correct` turns.
    """

    def __init__(self, consecutive_correct: int, initial_size: int = 3) -> None:
        self.consecutive_correct = consecutive_correct
        self.initial_size = initial_size

    def seed(self, course: Course, mastery: MasteryStore) -> tuple[str, ...]:
        """Return learned symbols plus the leading course symbols, in course order.

        The first `initial_size` course symbols are always included, learned or
        not, so a resumed session never starts with fewer than that many.
        """
        leading = set(course.order[: self.initial_size])
        pool = tuple(code for code in course.order if code in leading or mastery.is_learned(code))
        logger.debug("Seeded pool for {}: {}", course.id, "".join(pool))
        return pool

    def maybe_grow(
        self,
        pool: tuple[str, ...],
        course: Course,
        mastery: MasteryStore,
        streak: int,
    ) -> PoolGrowth:
        """Append the next course symbol when the newest pool symbol is mastered."""
        in_course = [code for code in pool if code in course.order]
        if not in_course or len(pool) >= len(course):
            return PoolGrowth(pool=pool, added=None, streak=streak)

        newest = in_course[-1]
        if not mastery.is_learned(newest) or streak < self.consecutive_correct:
            return PoolGrowth(pool=pool, added=None, streak=streak)

        for code in course.order:
            if code not in pool:
                logger.info("Introducing '{}' after '{}' was learned", code, newest)
                return PoolGrowth(pool=pool + (code,), added=code, streak=0)
        return PoolGrowth(pool=pool, added=None, streak=streak)
