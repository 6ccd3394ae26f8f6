import os
from pathlib import Path
from typing import Any

from morsetrainer.config import TrainerSettings, load_settings


def test_defaults(settings: TrainerSettings) -> None:
    assert settings.learned_threshold == 2
    assert settings.consecutive_correct == 3
    assert settings.min_queue_depth == 3
    assert settings.hint_cycle_length == 4
    assert settings.course == "alphabet"
    assert settings.db_path == Path(".morsetrainer") / "progress.db"
    assert settings.score_limit == 4


def test_environment_overrides(monkeypatch: Any) -> None:
    monkeypatch.setenv("MORSETRAINER_LEARNED_THRESHOLD", "3")
    monkeypatch.setenv("MORSETRAINER_COURSE", "numbers")
    loaded = load_settings(_env_file=None)
    assert loaded.learned_threshold == 3
    assert loaded.score_limit == 5
    assert loaded.course == "numbers"


def test_invalid_environment_falls_back_to_defaults(monkeypatch: Any) -> None:
    monkeypatch.setenv("MORSETRAINER_MIN_QUEUE_DEPTH", "1")
    loaded = load_settings(_env_file=None)
    assert loaded.min_queue_depth == 3
    assert loaded.learned_threshold == 2


def test_shell_variables_do_not_reach_tests(settings: TrainerSettings) -> None:
    assert not [key for key in os.environ if key.upper().startswith("MORSETRAINER_")]
    assert settings.model_dump() == TrainerSettings.model_construct().model_dump()
