"""
Unit tests for schema validation and serialization utilities.
"""

import json

import pytest

from examgen_toolkit.core.models import PlacedQuestion, SavedPaper
from examgen_toolkit.core.schemas import (
    PATTERN_SCHEMA_VERSION,
    ValidationError,
    validate_pattern,
    validate_question,
    validate_saved_paper,
)
from examgen_toolkit.core.utils import (
    deserialize_pattern,
    deserialize_saved_paper,
    load_chapters_json,
    load_pattern_json,
    load_questions_jsonl,
    save_pattern_json,
    save_questions_jsonl,
    serialize_pattern,
    serialize_saved_paper,
)


def _pattern_dict(**section_overrides):
    section = {"id": "s1", "type": "SHORT", "question_count": 2, "attempt_count": 1, "marks_per_question": 2}
    section.update(section_overrides)
    return {"id": "p1", "name": "Pattern", "sections": [section]}


class TestValidateQuestion:
    """Tests for validate_question()."""

    def test_validate_when_chapter_missing_then_raises(self):
        with pytest.raises(ValidationError, match="Missing required fields"):
            validate_question({"id": "q1", "type": "MCQ"})

    def test_validate_when_negative_marks_then_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_question({"id": "q1", "type": "MCQ", "chapter_id": "c", "marks": -1})

        assert exc_info.value.path == "marks"

    def test_validate_when_strict_and_wrong_option_type_then_raises(self):
        with pytest.raises(ValidationError, match="Schema validation failed"):
            validate_question({"id": "q1", "type": "MCQ", "chapter_id": "c", "options": [1, 2]}, strict=True)


class TestValidatePattern:
    """Tests for validate_pattern()."""

    def test_validate_when_valid_then_passes(self):
        validate_pattern(_pattern_dict(), strict=True)

    def test_validate_when_negative_count_then_raises_with_path(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_pattern(_pattern_dict(question_count=-1))

        assert exc_info.value.path == "sections[0].question_count"

    def test_validate_when_duplicate_sections_then_raises(self):
        data = _pattern_dict()
        data["sections"].append(dict(data["sections"][0]))

        with pytest.raises(ValidationError, match="Duplicate section id"):
            validate_pattern(data)

    def test_validate_when_strict_and_pool_out_of_sync_then_raises(self):
        data = _pattern_dict(
            type="MCQ", question_count=3, attempt_count=3,
            sub_parts=[{"id": "a", "question_count": 2, "attempt_count": 2}],
        )

        validate_pattern(data)
        with pytest.raises(ValidationError, match="do not match part sums"):
            validate_pattern(data, strict=True)


class TestValidateSavedPaper:
    """Tests for validate_saved_paper()."""

    def test_validate_when_question_targets_unknown_section_then_raises(self):
        data = {
            "class_level": "9th",
            "subject": "Physics",
            "sections": [{"id": "s1", "type": "MCQ"}],
            "questions": [{"id": "q1", "type": "MCQ", "chapter_id": "c", "target_section_id": "s9"}],
        }

        with pytest.raises(ValidationError, match="unknown section"):
            validate_saved_paper(data)


class TestSerialization:
    """Tests for serialization helpers."""

    def test_serialize_pattern_when_called_then_versioned_without_totals(self, pattern):
        data = serialize_pattern(pattern)

        assert data["schema_version"] == PATTERN_SCHEMA_VERSION
        assert "total_marks" not in data
        assert deserialize_pattern(data) == pattern

    def test_questions_jsonl_when_saved_then_loaded_in_order(self, tmp_path, questions):
        # Arrange
        path = tmp_path / "bank" / "ch1.jsonl"

        # Act
        save_questions_jsonl(questions, path)
        loaded = load_questions_jsonl(path)

        # Assert
        assert [q.id for q in loaded] == [q.id for q in questions]
        assert loaded[0].options == questions[0].options

    def test_load_questions_when_bad_line_then_reports_line_number(self, tmp_path):
        path = tmp_path / "bad.jsonl"
        path.write_text('{"id": "q1", "type": "MCQ", "chapter_id": "c"}\n{"id": "q2"}\n', encoding="utf-8")

        with pytest.raises(ValidationError, match="line 2"):
            load_questions_jsonl(path)

    def test_load_questions_when_missing_then_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_questions_jsonl(tmp_path / "missing.jsonl")

    def test_pattern_json_when_saved_then_loaded(self, tmp_path, pattern):
        path = tmp_path / "patterns" / "board.json"

        save_pattern_json(pattern, path)

        assert load_pattern_json(path) == pattern

    def test_load_chapters_when_not_a_list_then_raises(self, tmp_path):
        path = tmp_path / "chapters.json"
        path.write_text(json.dumps({"id": "c1"}), encoding="utf-8")

        with pytest.raises(ValidationError, match="must be a list"):
            load_chapters_json(path)

    def test_saved_paper_when_serialized_then_questions_embedded(self, pattern, questions):
        # Arrange
        paper = SavedPaper(
            title="9th - Physics", class_level="9th", subject="Physics",
            sections=pattern.sections,
            questions=(PlacedQuestion(questions[0], "s-mcq", 0),),
            id="p1",
        )

        # Act
        data = serialize_saved_paper(paper)
        restored = deserialize_saved_paper(data)

        # Assert
        assert data["questions"][0]["target_section_id"] == "s-mcq"
        assert data["questions"][0]["text"] == questions[0].text
        assert restored.questions[0].question == questions[0]
        assert restored.total_marks == pattern.total_marks
