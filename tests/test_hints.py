import asyncio

import pytest

from morsetrainer.hints import ConsoleHintPlayer, HintScheduler, HintTier, next_hint_tier
from morsetrainer.models import Symbol

SYMBOL_A = Symbol(code="a", morse=".-", name="a", mnemonic="a-PART")


class RecordingPlayer:
    def __init__(self, block: bool = False) -> None:
        self.played: list[tuple[str, HintTier]] = []
        self.cancelled = 0
        self._block = block

    async def play(self, symbol: Symbol, tier: HintTier) -> None:
        self.played.append((symbol.code, tier))
        if self._block:
            await asyncio.Event().wait()

    def cancel(self) -> None:
        self.cancelled += 1


def test_hint_tier_cycle() -> None:
    tiers = [next_hint_tier(mistakes) for mistakes in range(9)]
    assert tiers == [
        HintTier.FULL,
        HintTier.NONE,
        HintTier.MORSE,
        HintTier.MNEMONIC,
        HintTier.FULL,
        HintTier.NONE,
        HintTier.MORSE,
        HintTier.MNEMONIC,
        HintTier.FULL,
    ]


def test_longer_cycle_gives_no_hint_past_defined_tiers() -> None:
    assert next_hint_tier(4, cycle_length=6) is HintTier.NONE
    assert next_hint_tier(5, cycle_length=6) is HintTier.NONE
    assert next_hint_tier(6, cycle_length=6) is HintTier.FULL


def test_negative_mistakes_rejected() -> None:
    with pytest.raises(ValueError):
        next_hint_tier(-1)


def test_tier_components() -> None:
    assert HintTier.FULL.plays_morse and HintTier.FULL.plays_mnemonic
    assert HintTier.MORSE.plays_morse and not HintTier.MORSE.plays_mnemonic
    assert HintTier.MNEMONIC.plays_mnemonic and not HintTier.MNEMONIC.plays_morse
    assert not HintTier.NONE.plays_morse and not HintTier.NONE.plays_mnemonic


def test_schedule_without_running_loop_is_skipped() -> None:
    player = RecordingPlayer()
    scheduler = HintScheduler(player)
    assert scheduler.schedule(SYMBOL_A, HintTier.FULL) is None
    assert scheduler.pending is False
    assert player.played == []


@pytest.mark.asyncio
async def test_schedule_plays_in_background() -> None:
    player = RecordingPlayer()
    scheduler = HintScheduler(player)
    task = scheduler.schedule(SYMBOL_A, HintTier.MORSE)
    assert task is not None
    await scheduler.wait()
    assert player.played == [("a", HintTier.MORSE)]
    assert scheduler.pending is False


@pytest.mark.asyncio
async def test_none_tier_and_missing_player_schedule_nothing() -> None:
    player = RecordingPlayer()
    assert HintScheduler(player).schedule(SYMBOL_A, HintTier.NONE) is None
    assert HintScheduler().schedule(SYMBOL_A, HintTier.FULL) is None


@pytest.mark.asyncio
async def test_cancel_interrupts_playback() -> None:
    player = RecordingPlayer(block=True)
    scheduler = HintScheduler(player)
    task = scheduler.schedule(SYMBOL_A, HintTier.FULL)
    assert task is not None
    await asyncio.sleep(0)
    assert scheduler.pending is True

    scheduler.cancel()
    await asyncio.sleep(0)
    assert task.cancelled()
    assert player.cancelled == 1
    assert scheduler.pending is False


@pytest.mark.asyncio
async def test_new_schedule_replaces_previous_playback() -> None:
    player = RecordingPlayer(block=True)
    scheduler = HintScheduler(player)
    first = scheduler.schedule(SYMBOL_A, HintTier.FULL)
    await asyncio.sleep(0)
    second = scheduler.schedule(SYMBOL_A, HintTier.MORSE)
    await asyncio.sleep(0)
    assert first is not None and first.cancelled()
    assert second is not None and not second.done()
    scheduler.cancel()
    await asyncio.sleep(0)
    assert second.cancelled()


@pytest.mark.asyncio
async def test_console_player_paces_morse_and_mnemonic() -> None:
    outputs: list[str] = []
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    player = ConsoleHintPlayer(
        outputs.append, announce_delay=0.5, element_gap=0.3, element_max=0.601, mnemonic_delay=0.3, sleep=fake_sleep
    )
    await player.play(SYMBOL_A, HintTier.FULL)
    assert outputs == ["  hint: A = .-", "  sounds like: a-PART"]
    assert sleeps == pytest.approx([0.5, 0.5, 0.9, 0.3])


@pytest.mark.asyncio
async def test_console_player_single_component_tiers() -> None:
    outputs: list[str] = []

    async def fake_sleep(seconds: float) -> None:
        return None

    player = ConsoleHintPlayer(outputs.append, sleep=fake_sleep)
    await player.play(SYMBOL_A, HintTier.MORSE)
    await player.play(SYMBOL_A, HintTier.MNEMONIC)
    await player.play(SYMBOL_A, HintTier.NONE)
    assert outputs == ["  hint: A = .-", "  sounds like: a-PART"]
    player.cancel()
    assert player.interruptions == 1
