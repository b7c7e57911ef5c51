"""Common utilities shared across the toolkit."""

from __future__ import annotations

from .chapters import (
    chapter_number_text,
    extract_chapter_number,
    normalise_chapter_numbers,
    is_mandatory,
    chapter_sort_key,
    format_chapters_display,
)
from .subjects import is_english_subject, is_urdu_style_subject
from .text import TextRun, is_urdu_text, parse_markup, strip_markup, to_roman
from .titles import auto_title, base_instruction

__all__ = [
    # chapters
    "chapter_number_text",
    "extract_chapter_number",
    "normalise_chapter_numbers",
    "is_mandatory",
    "chapter_sort_key",
    "format_chapters_display",
    # subjects
    "is_english_subject",
    "is_urdu_style_subject",
    # text
    "TextRun",
    "is_urdu_text",
    "parse_markup",
    "strip_markup",
    "to_roman",
    # titles
    "auto_title",
    "base_instruction",
]
