"""
Module: common.text

Purpose:
    Text helpers for paper layout: Urdu-script detection, lowercase roman
    counters and the lightweight inline markup authors use in question
    text (*bold*, **bold**, <b>bold</b>, :underline:).

Key Functions:
    - is_urdu_text(): Arabic-block detection
    - to_roman(): 1 -> "i", 4 -> "iv"
    - parse_markup(): Split text into styled TextRuns
    - strip_markup(): Plain text with markers removed

Key Classes:
    - TextRun: One styled fragment

Dependencies:
    - re (std)

Used By:
    - builder.layout.composer
    - builder.output.renderer
    - builder.output.word_export
"""

from __future__ import annotations

import re
from dataclasses import dataclass

URDU_PATTERN = re.compile(r"[\u0600-\u06FF]")

_BOLD = "\x01"
_UNDERLINE = "\x02"
_SPLIT = re.compile(f"({_BOLD}.*?{_BOLD}|{_UNDERLINE}.*?{_UNDERLINE})", re.DOTALL)

_ROMAN = (("x", 10), ("ix", 9), ("v", 5), ("iv", 4), ("i", 1))


def is_urdu_text(text: str | None) -> bool:
    """True if the text contains any character from the Arabic Unicode block."""
    return bool(URDU_PATTERN.search(text or ""))


def to_roman(number: int) -> str:
    """
    Convert a positive integer to lowercase roman numerals.

    Example:
        >>> to_roman(14)
        'xiv'
    """
    if number < 1:
        raise ValueError(f"roman numerals need a positive number: {number}")
    result = []
    remaining = number
    for symbol, value in _ROMAN:
        while remaining >= value:
            result.append(symbol)
            remaining -= value
    return "".join(result)


@dataclass(frozen=True)
class TextRun:
    """A fragment of question text with its inline style."""

    text: str
    bold: bool = False
    underline: bool = False


def _normalise(text: str) -> str:
    normalised = re.sub(r"</?b>", _BOLD, text, flags=re.IGNORECASE)
    normalised = re.sub(r"\*\*([^*]+)\*\*", f"{_BOLD}\\1{_BOLD}", normalised)
    normalised = re.sub(r"\*([^*]+)\*", f"{_BOLD}\\1{_BOLD}", normalised)
    normalised = re.sub(r":([^:]+):", f"{_UNDERLINE}\\1{_UNDERLINE}", normalised)
    return normalised


def parse_markup(text: str | None) -> list[TextRun]:
    """
    Split authored text into styled runs.

    Bold markers (``*x*``, ``**x**``, ``<b>x</b>``) and underline markers
    (``:x:``) are not nested; an unmatched marker is dropped.

    Example:
        >>> parse_markup("Use *has* in :one: sentence")
        [TextRun('Use '), TextRun('has', bold=True), TextRun(' in '),
         TextRun('one', underline=True), TextRun(' sentence')]
    """
    if not text:
        return []
    runs: list[TextRun] = []
    for piece in _SPLIT.split(_normalise(text)):
        if not piece:
            continue
        if len(piece) >= 2 and piece[0] == piece[-1] == _BOLD:
            inner = piece[1:-1]
            if inner:
                runs.append(TextRun(inner, bold=True))
        elif len(piece) >= 2 and piece[0] == piece[-1] == _UNDERLINE:
            inner = piece[1:-1]
            if inner:
                runs.append(TextRun(inner, underline=True))
        else:
            plain = piece.replace(_BOLD, "").replace(_UNDERLINE, "")
            if plain:
                runs.append(TextRun(plain))
    return runs


def strip_markup(text: str | None) -> str:
    """Return the text with all inline markers removed."""
    return "".join(run.text for run in parse_markup(text))
