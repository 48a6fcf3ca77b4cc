"""Unicode character classification and run detection.

All functions operate on code points (Python ``str`` items) and use the
Unicode general category from ``unicodedata``, so letters and digits from
any script are counted, not just ASCII.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Callable

CharPredicate = Callable[[str], bool]

_CONTROL_WHITESPACE = frozenset("\t\n\x0b\x0c\r\x85")


def is_letter(char: str) -> bool:
    """General category L* (any letter)."""
    return unicodedata.category(char).startswith("L")


def is_lowercase_letter(char: str) -> bool:
    """General category Ll."""
    return unicodedata.category(char) == "Ll"


def is_uppercase_letter(char: str) -> bool:
    """General category Lu."""
    return unicodedata.category(char) == "Lu"


def is_number(char: str) -> bool:
    """General category N* (decimal digits, letter-like and other numbers)."""
    return unicodedata.category(char).startswith("N")


def is_special(char: str) -> bool:
    """Anything that is neither a letter nor a number.

    Includes punctuation, symbols, whitespace and control characters.
    """
    return not (is_letter(char) or is_number(char))


def is_whitespace(char: str) -> bool:
    """Unicode White_Space.

    ``str.isspace`` also accepts the U+001C-U+001F information separators;
    among control characters only tab, line feed, vertical tab, form feed,
    carriage return and NEL count here.
    """
    if unicodedata.category(char) == "Cc":
        return char in _CONTROL_WHITESPACE
    return char.isspace()


def count_matching(text: str, predicate: CharPredicate) -> int:
    """Count the characters of ``text`` for which ``predicate`` holds."""
    return sum(1 for char in text if predicate(char))


def longest_run(text: str, predicate: CharPredicate) -> int:
    """Length of the longest contiguous run of characters matching ``predicate``.

    Returns 0 when no character matches.
    """
    longest = 0
    current = 0
    for char in text:
        if predicate(char):
            current += 1
            if current > longest:
                longest = current
        else:
            current = 0
    return longest


def longest_identical_run(text: str) -> int:
    """Length of the longest run of one repeated character.

    ``"aaab"`` gives 3, ``"abc"`` gives 1 and the empty string gives 0.
    """
    longest = 0
    current = 0
    previous: str | None = None
    for char in text:
        current = current + 1 if char == previous else 1
        previous = char
        if current > longest:
            longest = current
    return longest
