"""Load declarative course content from bundled JSON resources."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any

from .models import Course, CourseConfigError, Symbol, Word
from .morse import encode

CONTENT_PACKAGE = "morsetrainer.content.courses"
DEFAULT_COURSE_ID = "alphabet"


def _symbol_from_dict(course_id: str, raw: dict[str, Any]) -> Symbol:
    """Build a symbol from raw JSON content."""
    code = str(raw.get("code", "")).strip().lower()
    if not code:
        raise CourseConfigError(f"Course '{course_id}' has a symbol without a code.")
    morse = str(raw.get("morse", "")).strip() or (encode(code) or "")
    if not morse:
        raise CourseConfigError(f"Symbol '{code}' in course '{course_id}' has no Morse pattern.")
    name = str(raw.get("name", "")).strip() or code
    return Symbol(code=code, morse=morse, name=name, mnemonic=str(raw.get("mnemonic", "")).strip())


def _word_from_raw(course_id: str, raw: object) -> Word:
    """Build a word from a string (one symbol per character) or a list of symbol codes."""
    if isinstance(raw, str):
        text = raw.strip().lower()
        return Word.from_text(text)
    if isinstance(raw, list):
        return Word(symbols=tuple(str(item).strip().lower() for item in raw if str(item).strip()))
    raise CourseConfigError(f"Course '{course_id}' has an unreadable word entry: {raw!r}")


def _course_from_dict(raw: dict[str, Any]) -> Course:
    """Build a course from raw JSON content."""
    if "id" not in raw:
        raise CourseConfigError("Course definition is missing 'id'.")
    course_id = str(raw["id"])
    symbols = tuple(_symbol_from_dict(course_id, item) for item in raw.get("symbols", []))
    words = tuple(_word_from_raw(course_id, item) for item in raw.get("words", []))
    return Course(
        id=course_id,
        title=str(raw.get("title", course_id)),
        storage_key=str(raw.get("storage_key", course_id)),
        symbols=symbols,
        words=words,
    )


def load_courses() -> dict[str, Course]:
    """Load bundled courses."""
    courses: dict[str, Course] = {}
    for entry in sorted(resources.files(CONTENT_PACKAGE).iterdir(), key=lambda item: item.name):
        if entry.name.endswith(".json"):
            raw = json.loads(entry.read_text(encoding="utf-8-sig"))
            _add_course(courses, _course_from_dict(raw))
    return courses


def load_courses_from_dir(path: Path) -> dict[str, Course]:
    """Load courses from directory for tests/tools."""
    courses: dict[str, Course] = {}
    for file_path in sorted(path.glob("*.json")):
        raw = json.loads(file_path.read_text(encoding="utf-8-sig"))
        _add_course(courses, _course_from_dict(raw))
    return courses


def _add_course(courses: dict[str, Course], course: Course) -> None:
    if course.id in courses:
        raise CourseConfigError(f"Duplicate course id: {course.id}")
    for other in courses.values():
        if other.storage_key == course.storage_key:
            raise CourseConfigError(f"Courses '{other.id}' and '{course.id}' share storage key '{course.storage_key}'.")
    courses[course.id] = course
