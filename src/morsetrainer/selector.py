"""Practice word selection biased toward the newest unlearned symbol."""

from __future__ import annotations

import random
from collections.abc import Sequence

from loguru import logger

from .mastery import MasteryStore
from .models import Word


class WordSelector:
    """Pick corpus words that only use symbols in the active pool."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def pick_word(
        self,
        corpus: Sequence[Word],
        pool: Sequence[str],
        mastery: MasteryStore,
        newest: str | None = None,
    ) -> Word:
        """Return a random playable word.

        When `newest` is still below the learned threshold, words containing it
        win over other playable words. A corpus with no playable word yields a
        one-symbol word so practice can continue inside the pool.
        """
        if not pool:
            raise ValueError("Cannot pick a word from an empty pool.")
        if newest is None:
            newest = pool[-1]
        allowed = set(pool)
        shuffled = list(corpus)
        self._rng.shuffle(shuffled)

        prefer_newest = not mastery.is_learned(newest)
        fallback: Word | None = None
        for word in shuffled:
            if not word.symbols or not allowed.issuperset(word.symbols):
                continue
            if not prefer_newest or newest in word.symbols:
                return word
            if fallback is None:
                fallback = word

        if fallback is not None:
            return fallback

        logger.warning("No corpus word fits pool '{}', using '{}'", "".join(pool), newest)
        return Word(symbols=(newest,))
