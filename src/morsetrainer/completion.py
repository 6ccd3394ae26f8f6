"""Course completion check and the final snapshot handed to the learner."""

from __future__ import annotations

from dataclasses import dataclass

from .mastery import AnalyticsCounters, MasteryStore, OutcomeCounts
from .models import Course


@dataclass(frozen=True)
class CourseSnapshot:
    """Mastery and outcome totals captured when a course is finished."""

    course_id: str
    scores: dict[str, int]
    outcomes: dict[str, OutcomeCounts]
    learned: int
    total: int


def is_course_complete(course: Course, mastery: MasteryStore) -> bool:
    """Return True only when every course symbol is learned."""
    return all(mastery.is_learned(code) for code in course.order)


def build_snapshot(course: Course, mastery: MasteryStore, analytics: AnalyticsCounters) -> CourseSnapshot:
    scores = mastery.snapshot()
    return CourseSnapshot(
        course_id=course.id,
        scores=scores,
        outcomes=analytics.snapshot(),
        learned=sum(1 for code in course.order if mastery.is_learned(code)),
        total=len(course),
    )
