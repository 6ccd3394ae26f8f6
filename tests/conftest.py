from __future__ import annotations

import os
import shutil
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from uuid import uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from morsetrainer.config import TrainerSettings  # noqa: E402
from morsetrainer.models import Course, Symbol, Word  # noqa: E402
from morsetrainer.morse import encode  # noqa: E402

CourseFactory = Callable[..., Course]
ENV_PREFIX = "MORSETRAINER_"


def _tmp_path_fixture() -> Iterator[Path]:
    """Provide per-test temporary directory path inside the workspace.

    This intentionally overrides pytest's builtin ``tmp_path`` fixture for this
    repository so temporary databases and exports stay under ``.tmp_pytest/``.
    """
    base = ROOT / ".tmp_pytest"
    base.mkdir(parents=True, exist_ok=True)
    path = base / str(uuid4())
    path.mkdir(parents=True, exist_ok=False)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        try:
            next(base.iterdir())
        except StopIteration:
            base.rmdir()
        except FileNotFoundError:
            pass


tmp_path = pytest.fixture(name="tmp_path")(_tmp_path_fixture)


def build_course(codes: str, words: list[str], course_id: str = "test") -> Course:
    symbols = tuple(
        Symbol(code=code, morse=encode(code) or ".", name=code, mnemonic=f"{code}-sound") for code in codes
    )
    return Course(
        id=course_id,
        title=course_id.title(),
        storage_key=f"saved-{course_id}",
        symbols=symbols,
        words=tuple(Word.from_text(word) for word in words),
    )


@pytest.fixture
def make_course() -> CourseFactory:
    return build_course


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's MORSETRAINER_* variables out of every test."""
    for key in list(os.environ):
        if key.upper().startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings() -> TrainerSettings:
    return TrainerSettings(_env_file=None)
