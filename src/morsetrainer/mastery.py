"""Per-symbol mastery scores and outcome counters."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from .models import Outcome


class MasteryStore:
    """In-memory mastery scores clamped to `[-(threshold + 2), threshold + 2]`.

    The store has no side effects beyond its map; callers persist snapshots.
    """

    def __init__(self, symbols: Iterable[str], threshold: int, saved: Mapping[str, int] | None = None) -> None:
        self.threshold = threshold
        self.limit = threshold + 2
        self._scores: dict[str, int] = {code: 0 for code in symbols}
        if saved:
            for code, value in saved.items():
                if code in self._scores:
                    self._scores[code] = self._clamp(int(value))

    def _clamp(self, value: int) -> int:
        return max(-self.limit, min(self.limit, value))

    def get(self, symbol: str) -> int:
        return self._scores.get(symbol, 0)

    def adjust(self, symbol: str, delta: int) -> int:
        """Add `delta` to a symbol's score and return the clamped result."""
        if symbol not in self._scores:
            raise KeyError(symbol)
        self._scores[symbol] = self._clamp(self._scores[symbol] + delta)
        return self._scores[symbol]

    def is_learned(self, symbol: str) -> bool:
        return self.get(symbol) >= self.threshold

    def learned(self) -> list[str]:
        """Return learned symbols in store order."""
        return [code for code, score in self._scores.items() if score >= self.threshold]

    def snapshot(self) -> dict[str, int]:
        return dict(self._scores)

    def progress_percent(self) -> int:
        return progress_percent(self._scores, self.threshold)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._scores

    def __len__(self) -> int:
        return len(self._scores)


def progress_percent(scores: Mapping[str, int], threshold: int) -> int:
    """Return course progress 0-100 on the same scale used for `is_learned`.

    Each symbol contributes its score capped to `[0, threshold]`, so a course
    reads 100% exactly when every symbol is learned.
    """
    if not scores or threshold <= 0:
        return 0
    earned = sum(max(0, min(threshold, int(value))) for value in scores.values())
    return min(100, (earned * 100) // (len(scores) * threshold))


@dataclass
class OutcomeCounts:
    """Correct and wrong totals for one symbol."""

    correct: int = 0
    wrong: int = 0

    @property
    def total(self) -> int:
        return self.correct + self.wrong

    @property
    def accuracy(self) -> int:
        """Rounded accuracy percent, 0 when unseen."""
        if self.total == 0:
            return 0
        return round(100 * self.correct / self.total)


class AnalyticsCounters:
    """Monotonic per-symbol outcome counters; never clamped or decremented."""

    def __init__(self) -> None:
        self._counts: dict[str, OutcomeCounts] = {}

    def record(self, symbol: str, outcome: Outcome) -> None:
        counts = self._counts.setdefault(symbol, OutcomeCounts())
        if outcome is Outcome.CORRECT:
            counts.correct += 1
        else:
            counts.wrong += 1

    def get(self, symbol: str) -> OutcomeCounts:
        counts = self._counts.get(symbol)
        return OutcomeCounts(counts.correct, counts.wrong) if counts else OutcomeCounts()

    def snapshot(self) -> dict[str, OutcomeCounts]:
        return {symbol: OutcomeCounts(counts.correct, counts.wrong) for symbol, counts in self._counts.items()}
