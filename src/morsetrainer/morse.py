"""International Morse code table and dot/dash keying buffer."""

from __future__ import annotations

DOT = "."
DASH = "-"

SYMBOL_TO_MORSE: dict[str, str] = {
    "a": ".-",
    "b": "-...",
    "c": "-.-.",
    "d": "-..",
    "e": ".",
    "f": "..-.",
    "g": "--.",
    "h": "....",
    "i": "..",
    "j": ".---",
    "k": "-.-",
    "l": ".-..",
    "m": "--",
    "n": "-.",
    "o": "---",
    "p": ".--.",
    "q": "--.-",
    "r": ".-.",
    "s": "...",
    "t": "-",
    "u": "..-",
    "v": "...-",
    "w": ".--",
    "x": "-..-",
    "y": "-.--",
    "z": "--..",
    "0": "-----",
    "1": ".----",
    "2": "..---",
    "3": "...--",
    "4": "....-",
    "5": ".....",
    "6": "-....",
    "7": "--...",
    "8": "---..",
    "9": "----.",
    ".": ".-.-.-",
    ",": "--..--",
    "?": "..--..",
    "/": "-..-.",
}

MORSE_TO_SYMBOL: dict[str, str] = {pattern: symbol for symbol, pattern in SYMBOL_TO_MORSE.items()}

# Accepted aliases when keying from a plain keyboard.
_ELEMENT_ALIASES = {".": DOT, "*": DOT, "-": DASH, "_": DASH}


def encode(symbol: str) -> str | None:
    """Return the Morse pattern for one symbol, if known."""
    return SYMBOL_TO_MORSE.get(symbol.lower())


def decode(pattern: str) -> str | None:
    """Return the symbol for a dot/dash pattern, if known."""
    return MORSE_TO_SYMBOL.get(normalize_pattern(pattern) or "")


def normalize_pattern(text: str) -> str | None:
    """Map keyboard text like `._` or `.-` to a canonical pattern, or None if not a pattern."""
    stripped = "".join(text.split())
    if not stripped:
        return None
    elements: list[str] = []
    for char in stripped:
        element = _ELEMENT_ALIASES.get(char)
        if element is None:
            return None
        elements.append(element)
    return "".join(elements)


class MorseKeyer:
    """Buffer dot/dash presses until a commit decodes them to one symbol."""

    def __init__(self, table: dict[str, str] | None = None) -> None:
        self._table = table if table is not None else MORSE_TO_SYMBOL
        self._buffer: list[str] = []

    @property
    def pattern(self) -> str:
        return "".join(self._buffer)

    def press(self, element: str) -> None:
        """Append one dot or dash."""
        canonical = _ELEMENT_ALIASES.get(element)
        if canonical is None:
            raise ValueError(f"Not a Morse element: {element!r}")
        self._buffer.append(canonical)

    def feed(self, text: str) -> None:
        """Append every element in a typed pattern."""
        for char in "".join(text.split()):
            self.press(char)

    def commit(self) -> str | None:
        """Decode and clear the buffer; unknown patterns yield None."""
        pattern = self.pattern
        self._buffer.clear()
        if not pattern:
            return None
        return self._table.get(pattern)

    def clear(self) -> None:
        self._buffer.clear()
