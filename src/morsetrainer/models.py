"""Core domain models for course-based Morse practice."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CourseConfigError(ValueError):
    """Raised when a course definition is incomplete or inconsistent."""


class Outcome(str, Enum):
    """Result of one evaluated turn."""

    CORRECT = "correct"
    WRONG = "wrong"


@dataclass(frozen=True)
class Symbol:
    """One learnable unit: a letter, digit, or key."""

    code: str
    morse: str
    name: str
    mnemonic: str


@dataclass(frozen=True)
class Word:
    """Ordered symbol codes presented together as one practice word."""

    symbols: tuple[str, ...]

    @classmethod
    def from_text(cls, text: str) -> Word:
        return cls(symbols=tuple(text))

    @property
    def text(self) -> str:
        return "".join(self.symbols)

    def __len__(self) -> int:
        return len(self.symbols)


@dataclass(frozen=True)
class Course:
    """Ordered symbols to learn plus the word corpus used to practice them.

    Construction validates the definition so that session code can rely on
    every field being present and consistent.
    """

    id: str
    title: str
    storage_key: str
    symbols: tuple[Symbol, ...]
    words: tuple[Word, ...]

    def __post_init__(self) -> None:
        if not self.id.strip():
            raise CourseConfigError("Course id is required.")
        if not self.storage_key.strip():
            raise CourseConfigError(f"Course '{self.id}' has no storage key.")
        if not self.symbols:
            raise CourseConfigError(f"Course '{self.id}' has no symbols.")
        seen: set[str] = set()
        for symbol in self.symbols:
            if not symbol.code or symbol.code != symbol.code.lower():
                raise CourseConfigError(f"Course '{self.id}' has invalid symbol code '{symbol.code}'.")
            if symbol.code in seen:
                raise CourseConfigError(f"Course '{self.id}' has duplicate symbol '{symbol.code}'.")
            if not symbol.morse or set(symbol.morse) - {".", "-"}:
                raise CourseConfigError(f"Symbol '{symbol.code}' has invalid morse pattern '{symbol.morse}'.")
            seen.add(symbol.code)
        if not self.words:
            raise CourseConfigError(f"Course '{self.id}' has an empty word corpus.")
        for word in self.words:
            if not word.symbols:
                raise CourseConfigError(f"Course '{self.id}' contains an empty word.")

    @property
    def order(self) -> tuple[str, ...]:
        """Symbol codes in introduction order."""
        return tuple(symbol.code for symbol in self.symbols)

    def symbol(self, code: str) -> Symbol:
        for symbol in self.symbols:
            if symbol.code == code:
                return symbol
        raise KeyError(code)

    def __len__(self) -> int:
        return len(self.symbols)
