"""
Serialization Utilities

Provides to/from JSON utilities for the core data models.

- Clean separation: `serialize_*` and `deserialize_*` functions
- All models have `to_dict()` and `from_dict()` methods
- Validation via schemas before deserialization
- Never store calculated values (total_marks, capacity)

Question banks are JSONL (one question per line); patterns, chapter
catalogues and saved papers are plain JSON documents.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..models.questions import Chapter, Question
from ..models.patterns import PaperPattern
from ..models.papers import SavedPaper
from ..schemas.validator import (
    PAPER_SCHEMA_VERSION,
    PATTERN_SCHEMA_VERSION,
    ValidationError,
    validate_chapter,
    validate_pattern,
    validate_question,
    validate_saved_paper,
)


# ─────────────────────────────────────────────────────────────────────────────
# Question / Chapter Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_question(question: Question) -> dict[str, Any]:
    return question.to_dict()


def deserialize_question(data: dict[str, Any], *, validate: bool = True) -> Question:
    """
    Deserialize a Question from a dictionary.

    Args:
        data: Dictionary from JSON
        validate: Whether to validate first

    Returns:
        Question instance

    Raises:
        ValidationError: If validate=True and data is invalid
        ValueError: If data cannot be parsed
    """
    if validate:
        validate_question(data, strict=False)
    return Question.from_dict(data)


def deserialize_chapter(data: dict[str, Any], *, validate: bool = True) -> Chapter:
    if validate:
        validate_chapter(data, strict=False)
    return Chapter.from_dict(data)


# ─────────────────────────────────────────────────────────────────────────────
# Pattern / Paper Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_pattern(pattern: PaperPattern) -> dict[str, Any]:
    """
    Serialize a PaperPattern with its schema version.

    Note:
        total_marks is NOT included - it's always calculated on load.
    """
    data = pattern.to_dict()
    data["schema_version"] = PATTERN_SCHEMA_VERSION
    return data


def deserialize_pattern(data: dict[str, Any], *, validate: bool = True) -> PaperPattern:
    if validate:
        validate_pattern(data, strict=False)
    return PaperPattern.from_dict(data)


def serialize_saved_paper(paper: SavedPaper) -> dict[str, Any]:
    data = paper.to_dict()
    data["schema_version"] = PAPER_SCHEMA_VERSION
    return data


def deserialize_saved_paper(data: dict[str, Any], *, validate: bool = True) -> SavedPaper:
    """
    Deserialize a SavedPaper snapshot.

    Raises:
        ValidationError: If validate=True and data is invalid
    """
    if validate:
        validate_saved_paper(data, strict=False)
    return SavedPaper.from_dict(data)


# ─────────────────────────────────────────────────────────────────────────────
# JSONL Utilities
# ─────────────────────────────────────────────────────────────────────────────

def load_questions_jsonl(path: Path, *, validate: bool = True) -> list[Question]:
    """
    Load questions from a JSONL file.

    Args:
        path: Path to a questions .jsonl file
        validate: Whether to validate each question

    Returns:
        List of Question instances

    Raises:
        FileNotFoundError: If file doesn't exist
        ValidationError: If any question is invalid
    """
    if not path.exists():
        raise FileNotFoundError(f"Questions file not found: {path}")

    questions = []
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue

            try:
                data = json.loads(line)
                questions.append(deserialize_question(data, validate=validate))
            except (json.JSONDecodeError, ValidationError, ValueError, KeyError) as e:
                raise ValidationError(
                    f"Error parsing line {line_no}: {e}",
                    path=str(path),
                    errors=[str(e)],
                ) from e

    return questions


def save_questions_jsonl(questions: list[Question], path: Path) -> None:
    """
    Save questions to a JSONL file.

    Args:
        questions: List of Question instances to save
        path: Output path
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        for question in questions:
            f.write(json.dumps(serialize_question(question), ensure_ascii=False))
            f.write("\n")


# ─────────────────────────────────────────────────────────────────────────────
# JSON Documents
# ─────────────────────────────────────────────────────────────────────────────

def load_pattern_json(path: Path, *, validate: bool = True) -> PaperPattern:
    """
    Load a pattern from a JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValidationError: If the pattern is invalid
    """
    if not path.exists():
        raise FileNotFoundError(f"Pattern file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    try:
        return deserialize_pattern(data, validate=validate)
    except ValueError as e:
        raise ValidationError(str(e), path=str(path), errors=[str(e)]) from e


def save_pattern_json(pattern: PaperPattern, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(serialize_pattern(pattern), f, indent=2, ensure_ascii=False)


def load_chapters_json(path: Path, *, validate: bool = True) -> list[Chapter]:
    """Load a chapter catalogue (JSON list of chapter objects)."""
    if not path.exists():
        raise FileNotFoundError(f"Chapters file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValidationError("Chapter catalogue must be a list", path=str(path))
    return [deserialize_chapter(item, validate=validate) for item in data]
