"""
Tests for the build controller (compile, render and folder naming).
"""

import json
import random
from datetime import datetime
from pathlib import Path

import pytest

from examgen_toolkit.builder import controller
from examgen_toolkit.builder.config import BuilderConfig
from examgen_toolkit.builder.controller import (
    BuildError,
    build_paper,
    compile_paper,
    generate_paper_code,
    render_paper,
)
from examgen_toolkit.builder.layout import LayoutConfig


class FixedDatetime(datetime):
    @classmethod
    def now(cls, tz=None):
        return cls(2025, 1, 16, 10, 30, 45)


@pytest.fixture
def config(tmp_path):
    return BuilderConfig(class_level="9th", subject="Physics", output_dir=tmp_path, paper_code="2468")


class TestCompilePaper:
    """Tests for compile_paper()."""

    def test_compile_when_three_of_four_slots_then_one_unit_and_lone_id_excluded(self, pattern, repository, config):
        # Arrange
        selections = {"s-mcq": ["m1", "m2"], "s-short": ["s1", "s2", "s3"]}

        # Act
        compiled = compile_paper(pattern.sections, selections, repository, config)

        # Assert
        short = next(s for s in compiled.sections if s.id == "s-short")
        assert (short.question_count, short.attempt_count) == (1, 1)
        assert "s3" not in [p.question_id for p in compiled.questions]
        assert compiled.total_marks == 2 + 5
        assert compiled.paper_code == "2468"

    def test_compile_when_gap_before_complete_unit_then_units_renumbered(self, pattern, repository, config):
        selections = {"s-short": [None, "s2", "s3", "s4"]}

        compiled = compile_paper(pattern.sections, selections, repository, config)

        assert [(p.question_id, p.slot_index) for p in compiled.questions] == [("s3", 0), ("s4", 1)]

    def test_compile_when_no_paper_code_then_random_four_digits(self, pattern, repository):
        config = BuilderConfig(class_level="9th", subject="Physics")

        compiled = compile_paper(pattern.sections, {"s-mcq": ["m1"]}, repository, config, rng=random.Random(3))

        assert len(compiled.paper_code) == 4
        assert compiled.document.header.paper_code == compiled.paper_code

    def test_compile_when_nothing_selected_then_empty_document(self, pattern, repository, config):
        compiled = compile_paper(pattern.sections, {}, repository, config)

        assert compiled.sections == ()
        assert compiled.document.is_empty
        assert compiled.total_marks == 0


class TestRenderPaper:
    """Tests for render_paper() and build_paper()."""

    def test_build_when_configured_then_pdfs_and_metadata_written(self, pattern, repository, config):
        result = build_paper(pattern.sections, {"s-mcq": ["m1", "m2"]}, repository, config)

        assert result.paper_pdf.read_bytes().startswith(b"%PDF")
        assert result.answer_key_pdf is not None and result.answer_key_pdf.exists()
        assert result.word_doc is None
        metadata = json.loads((result.output_dir / "build_metadata.json").read_text(encoding="utf-8"))
        assert metadata["selections"] == {"s-mcq": ["m1", "m2"]}
        assert metadata["paper_code"] == "2468"
        assert metadata["total_marks"] == 2

    def test_build_when_word_export_enabled_then_doc_written(self, pattern, repository, tmp_path):
        config = BuilderConfig(
            class_level="9th", subject="Physics", output_dir=tmp_path,
            include_answer_key=False, export_word=True, layout=LayoutConfig(medium="Both"),
        )

        result = build_paper(pattern.sections, {"s-mcq": ["m1"]}, repository, config)

        assert result.answer_key_pdf is None
        assert result.word_doc == result.output_dir / "Physics_Paper.doc"

    def test_render_when_no_output_dir_then_build_error(self, pattern, repository):
        config = BuilderConfig(class_level="9th", subject="Physics")
        compiled = compile_paper(pattern.sections, {"s-mcq": ["m1"]}, repository, config)

        with pytest.raises(BuildError, match="No output directory"):
            render_paper(compiled, config)

    def test_render_when_same_second_then_folder_suffixed(self, pattern, repository, config, monkeypatch):
        # Arrange
        monkeypatch.setattr(controller, "datetime", FixedDatetime)
        compiled = compile_paper(pattern.sections, {"s-mcq": ["m1"]}, repository, config)

        # Act
        first = render_paper(compiled, config)
        second = render_paper(compiled, config)

        # Assert
        assert first.output_dir.name == "20250116-103045__9th__physics"
        assert second.output_dir.name == "20250116-103045__9th__physics (1)"


class TestGeneratePaperCode:
    """Tests for generate_paper_code()."""

    def test_generate_paper_code_when_seeded_then_in_range_and_reproducible(self):
        code = generate_paper_code(random.Random(11))

        assert 1000 <= int(code) <= 9999
        assert code == generate_paper_code(random.Random(11))


def test_builder_config_when_output_dir_is_string_then_path():
    config = BuilderConfig(class_level="9th", subject="Physics", output_dir="out")

    assert config.output_dir == Path("out")
