"""
Module: common.chapters

Purpose:
    Chapter-number helpers shared by the models, the selection engine and
    the content source. Chapter names are free text ("Chapter 3: Motion",
    "07 - Waves"); the first run of digits is treated as the chapter
    number when no explicit number is stored.

Key Functions:
    - extract_chapter_number(): First digit run of a name as int
    - normalise_chapter_numbers(): Mixed str/int whitelist -> frozenset[int]
    - is_mandatory(): Name-based mandatory-chapter test
    - chapter_sort_key(): Numeric-then-name ordering
    - format_chapters_display(): "1, 2, 5" header string

Dependencies:
    - re (std)

Used By:
    - core.models.questions.Chapter
    - builder.selection.constraints
    - storage.content
    - session.authoring
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Protocol

_DIGIT_RUN = re.compile(r"\d+")


class _NamedChapter(Protocol):
    name: str
    chapter_number: Optional[int]


def chapter_number_text(name: str) -> Optional[str]:
    """
    Return the first run of digits in a chapter name.

    Args:
        name: Display name like "Chapter 12: Waves"

    Returns:
        Digit string like "12", or None when the name has no digits
    """
    match = _DIGIT_RUN.search(name or "")
    return match.group(0) if match else None


def extract_chapter_number(name: str) -> Optional[int]:
    """
    Parse the chapter number out of a display name.

    Example:
        >>> extract_chapter_number("Ch 07 - Light")
        7
        >>> extract_chapter_number("Introduction") is None
        True
    """
    text = chapter_number_text(name)
    return int(text) if text is not None else None


def normalise_chapter_numbers(numbers: Iterable[object]) -> frozenset[int]:
    """
    Convert a whitelist of chapter numbers to integers.

    Whitelists are authored as strings ("1", "05", "Ch 3"); entries without
    digits are ignored.

    Args:
        numbers: Iterable of ints or strings

    Returns:
        Frozen set of chapter numbers
    """
    result: set[int] = set()
    for item in numbers or ():
        if isinstance(item, bool):
            continue
        if isinstance(item, int):
            result.add(item)
            continue
        parsed = extract_chapter_number(str(item))
        if parsed is not None:
            result.add(parsed)
    return frozenset(result)


def is_mandatory(chapter_name: str, mandatory_numbers: Iterable[object]) -> bool:
    """
    Check whether a chapter name falls inside a chapter-number whitelist.

    The first digit run of the name is compared numerically against the
    whitelist, so "Chapter 01" matches "1". A name without digits never
    matches.

    Args:
        chapter_name: Chapter display name
        mandatory_numbers: Whitelist like ["1", "3"]

    Returns:
        True if the chapter number is in the whitelist
    """
    number = extract_chapter_number(chapter_name)
    if number is None:
        return False
    return number in normalise_chapter_numbers(mandatory_numbers)


def chapter_sort_key(chapter: _NamedChapter) -> tuple:
    """Sort key: chapter number ascending (unnumbered last), then name."""
    number = chapter.chapter_number
    if number is None:
        number = extract_chapter_number(chapter.name)
    return (number is None, number if number is not None else 0, chapter.name.casefold())


def format_chapters_display(chapters: Iterable[_NamedChapter]) -> str:
    """
    Build the compact chapter list printed in the paper header.

    Numbered chapters contribute their number, others their name. Numbers
    sort numerically ahead of names.

    Example:
        >>> format_chapters_display(selected)
        '1, 2, 10, Revision'
    """
    tokens = []
    for chapter in chapters:
        number = chapter.chapter_number
        if number is None:
            number = extract_chapter_number(chapter.name)
        tokens.append(str(number) if number is not None else chapter.name)

    def _key(token: str) -> tuple:
        return (0, int(token), "") if token.isdigit() else (1, 0, token.casefold())

    return ", ".join(sorted(tokens, key=_key))
