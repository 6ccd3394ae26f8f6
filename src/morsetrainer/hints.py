"""Hint tiers, escalation policy, and cancellable hint playback."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Protocol

from loguru import logger

from .models import Symbol

PrintFn = Callable[[str], None]
SleepFn = Callable[[float], Awaitable[None]]


class HintTier(str, Enum):
    """Level of assistance given for the current symbol."""

    FULL = "full"
    NONE = "none"
    MORSE = "morse"
    MNEMONIC = "mnemonic"

    @property
    def plays_morse(self) -> bool:
        return self in (HintTier.FULL, HintTier.MORSE)

    @property
    def plays_mnemonic(self) -> bool:
        return self in (HintTier.FULL, HintTier.MNEMONIC)


HINT_CYCLE = (HintTier.FULL, HintTier.NONE, HintTier.MORSE, HintTier.MNEMONIC)


def next_hint_tier(mistakes: int, cycle_length: int = len(HINT_CYCLE)) -> HintTier:
    """Map a consecutive-mistake count to a hint tier.

    Tiers repeat every `cycle_length` mistakes; positions past the four
    defined tiers give no hint.
    """
    if mistakes < 0:
        raise ValueError("mistakes must be non-negative")
    position = mistakes % cycle_length
    if position < len(HINT_CYCLE):
        return HINT_CYCLE[position]
    return HintTier.NONE


class HintPlayer(Protocol):
    """Plays the cues for a symbol at a given tier."""

    async def play(self, symbol: Symbol, tier: HintTier) -> None: ...

    def cancel(self) -> None: ...


class HintScheduler:
    """Run at most one hint playback task at a time.

    Scheduling a new hint, or calling `cancel`, stops whatever is still
    playing for the previous symbol.
    """

    def __init__(self, player: HintPlayer | None = None) -> None:
        self._player = player
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, symbol: Symbol, tier: HintTier) -> asyncio.Task[None] | None:
        """Start playback in the background; returns None when nothing will play."""
        self.cancel()
        if self._player is None or tier is HintTier.NONE:
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, skipping {} hint for '{}'", tier.value, symbol.code)
            return None
        self._task = loop.create_task(self._player.play(symbol, tier))
        self._task.add_done_callback(_log_playback_failure)
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            if self._player is not None:
                self._player.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait for the current playback, treating interruption as completion."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise


def _log_playback_failure(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.opt(exception=exc).warning("Hint playback failed")


class ConsoleHintPlayer:
    """Render hints as text, pacing them like the audio cues they stand in for."""

    DOT_SECONDS = 0.2
    DASH_SECONDS = 0.6

    def __init__(
        self,
        print_fn: PrintFn = print,
        *,
        announce_delay: float = 0.0,
        element_gap: float = 0.3,
        element_max: float = 0.601,
        mnemonic_delay: float = 0.3,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._print = print_fn
        self._announce_delay = announce_delay
        self._element_gap = element_gap
        self._element_max = element_max
        self._mnemonic_delay = mnemonic_delay
        self._sleep = sleep
        self.interruptions = 0

    async def play(self, symbol: Symbol, tier: HintTier) -> None:
        if tier is HintTier.NONE:
            return
        if self._announce_delay:
            await self._sleep(self._announce_delay)
        if tier.plays_morse:
            await self._play_morse(symbol)
        if tier.plays_mnemonic and symbol.mnemonic:
            await self._sleep(self._mnemonic_delay)
            self._print(f"  sounds like: {symbol.mnemonic}")

    async def _play_morse(self, symbol: Symbol) -> None:
        self._print(f"  hint: {symbol.code.upper()} = {symbol.morse}")
        for element in symbol.morse:
            duration = self.DASH_SECONDS if element == "-" else self.DOT_SECONDS
            await self._sleep(self._element_gap + min(self._element_max, duration))

    def cancel(self) -> None:
        self.interruptions += 1
