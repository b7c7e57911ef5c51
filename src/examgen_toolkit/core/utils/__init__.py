"""
Utils Package

Serialization and utility functions.
"""

from .serialization import (
    serialize_question,
    deserialize_question,
    deserialize_chapter,
    serialize_pattern,
    deserialize_pattern,
    serialize_saved_paper,
    deserialize_saved_paper,
    load_questions_jsonl,
    save_questions_jsonl,
    load_pattern_json,
    save_pattern_json,
    load_chapters_json,
)

__all__ = [
    "serialize_question",
    "deserialize_question",
    "deserialize_chapter",
    "serialize_pattern",
    "deserialize_pattern",
    "serialize_saved_paper",
    "deserialize_saved_paper",
    "load_questions_jsonl",
    "save_questions_jsonl",
    "load_pattern_json",
    "save_pattern_json",
    "load_chapters_json",
]
