"""
Schema Validation Utilities

Validates JSON documents (questions, chapters, patterns, saved papers)
before they are turned into models.

Two levels:
- Basic checks always run: required fields, id presence, count and marks
  ranges. They catch the malformed documents that would otherwise fail
  deep inside the selection engine.
- ``strict=True`` additionally validates against the bundled JSON Schema
  files with ``jsonschema`` and checks pattern invariants that editing
  tools are expected to maintain.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema


# Schema version constants
PATTERN_SCHEMA_VERSION = 2
PAPER_SCHEMA_VERSION = 2


# Load schemas lazily
_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when data fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def _require(data: Any, required: list[str], path: str = "") -> None:
    if not isinstance(data, dict):
        raise ValidationError(f"Expected an object at {path or 'root'}", path=path)
    missing = [f for f in required if f not in data]
    if missing:
        raise ValidationError(
            f"Missing required fields: {missing}",
            path=path,
            errors=[f"Missing field: {f}" for f in missing],
        )


def _non_negative_int(data: dict, key: str, path: str) -> None:
    if key not in data:
        return
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(
            f"Invalid {key}: {value!r} (must be non-negative integer)",
            path=f"{path}.{key}" if path else key,
        )


def _strict(data: dict, schema_name: str) -> None:
    schema = _load_schema(schema_name)
    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as e:
        raise ValidationError(
            f"Schema validation failed: {e.message}",
            path=".".join(str(p) for p in e.absolute_path),
            errors=[e.message],
        ) from e


def validate_question(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate question data.

    Args:
        data: Question dictionary to validate
        strict: If True, also validate against question.schema.json

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, ["id", "type", "chapter_id"])
    for key in ("id", "type", "chapter_id"):
        if not isinstance(data[key], str) or not data[key].strip():
            raise ValidationError(f"{key} must be a non-empty string", path=key)
    _non_negative_int(data, "marks", "")

    options = data.get("options") or []
    options_urdu = data.get("options_urdu") or []
    if not isinstance(options, list) or not isinstance(options_urdu, list):
        raise ValidationError("options must be lists", path="options")
    if options_urdu and len(options_urdu) != len(options):
        raise ValidationError(
            f"options_urdu has {len(options_urdu)} entries, options has {len(options)}",
            path="options_urdu",
        )

    if strict:
        _strict(data, "question")


def validate_chapter(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate chapter data.

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, ["id", "name"])
    subtopics = data.get("subtopics", [])
    if not isinstance(subtopics, list):
        raise ValidationError("subtopics must be a list", path="subtopics")
    for i, subtopic in enumerate(subtopics):
        _require(subtopic, ["id"], path=f"subtopics[{i}]")
    _non_negative_int(data, "chapter_number", "")

    if strict:
        _strict(data, "chapter")


def validate_pattern(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate paper pattern data.

    In strict mode MCQ sections with sub-parts must also carry section
    counts equal to the sum of their part counts.

    Args:
        data: Pattern dictionary to validate
        strict: If True, use jsonschema and check count synchronisation

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, ["id", "name", "sections"])
    sections = data["sections"]
    if not isinstance(sections, list):
        raise ValidationError("sections must be a list", path="sections")

    seen: set[str] = set()
    for i, section in enumerate(sections):
        _validate_section(section, f"sections[{i}]")
        if section["id"] in seen:
            raise ValidationError(f"Duplicate section id: {section['id']!r}", path=f"sections[{i}].id")
        seen.add(section["id"])

    if strict:
        _strict(data, "pattern")
        for i, section in enumerate(sections):
            _check_pool_sync(section, f"sections[{i}]")


def _validate_section(data: dict[str, Any], path: str) -> None:
    """Validate a section and its sub-parts."""
    _require(data, ["id", "type"], path=path)
    for key in ("question_count", "attempt_count", "marks_per_question"):
        _non_negative_int(data, key, path)

    parts = data.get("sub_parts", [])
    if not isinstance(parts, list):
        raise ValidationError("sub_parts must be a list", path=f"{path}.sub_parts")
    part_ids: set[str] = set()
    for j, part in enumerate(parts):
        part_path = f"{path}.sub_parts[{j}]"
        _require(part, ["id"], path=part_path)
        for key in ("marks", "question_count", "attempt_count"):
            _non_negative_int(part, key, part_path)
        if part["id"] in part_ids:
            raise ValidationError(f"Duplicate sub-part id: {part['id']!r}", path=f"{part_path}.id")
        part_ids.add(part["id"])


def _check_pool_sync(data: dict[str, Any], path: str) -> None:
    parts = data.get("sub_parts") or []
    if not parts or str(data.get("type", "")).strip().upper() != "MCQ":
        return
    expected_q = sum(p.get("question_count", 0) for p in parts)
    expected_a = sum(p.get("attempt_count", 0) for p in parts)
    if data.get("question_count", 0) != expected_q or data.get("attempt_count", 0) != expected_a:
        raise ValidationError(
            f"MCQ section counts ({data.get('question_count', 0)}/{data.get('attempt_count', 0)}) "
            f"do not match part sums ({expected_q}/{expected_a})",
            path=path,
        )


def validate_saved_paper(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate a saved paper snapshot.

    Every embedded question must target one of the snapshot's sections.

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, ["class_level", "subject", "sections", "questions"])
    sections = data["sections"]
    questions = data["questions"]
    if not isinstance(sections, list) or not isinstance(questions, list):
        raise ValidationError("sections and questions must be lists")

    section_ids = set()
    for i, section in enumerate(sections):
        _validate_section(section, f"sections[{i}]")
        section_ids.add(section["id"])

    for i, question in enumerate(questions):
        _require(question, ["target_section_id"], path=f"questions[{i}]")
        try:
            validate_question(question)
        except ValidationError as e:
            raise ValidationError(str(e), path=f"questions[{i}].{e.path}".rstrip("."), errors=e.errors) from e
        if question["target_section_id"] not in section_ids:
            raise ValidationError(
                f"Question targets unknown section: {question['target_section_id']!r}",
                path=f"questions[{i}].target_section_id",
            )

    if strict:
        _strict(data, "saved_paper")
