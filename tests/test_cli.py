"""
Tests for the examgen command line.
"""

import json

import pytest

from examgen_toolkit.cli import main
from examgen_toolkit.storage import FileContentSource, JsonDocumentStore


@pytest.fixture
def store_dir(tmp_path, chapters, questions, pattern):
    """A question bank with three Physics chapters and one pattern."""
    source = FileContentSource(JsonDocumentStore(tmp_path / "bank"))
    for chapter in chapters:
        source.save_chapter(chapter, "Physics", "9th")
        source.save_questions(chapter.id, [q for q in questions if q.chapter_id == chapter.id])
    source.save_pattern(pattern)
    return tmp_path / "bank"


def _build_args(store_dir, output, *extra):
    return [
        "--store", str(store_dir), "build",
        "--class", "9th", "--subject", "Physics", "--pattern", "board-9",
        "--chapter", "ch1", "--chapter", "ch2", "--chapter", "ch3",
        "--seed", "7", "--output", str(output), *extra,
    ]


class TestListCommands:
    """Tests for the chapters and patterns commands."""

    def test_chapters_when_bank_seeded_then_listed_with_subtopics(self, store_dir, capsys):
        code = main(["--store", str(store_dir), "chapters", "--class", "9th", "--subject", "Physics"])

        out = capsys.readouterr().out
        assert code == 0
        assert "ch1\tChapter 1: Motion\t[Speed, Velocity]" in out
        assert "ch3\tChapter 3: Energy" in out

    def test_patterns_when_bank_seeded_then_listed_with_marks(self, store_dir, capsys):
        code = main(["--store", str(store_dir), "patterns", "--class", "9th", "--subject", "Physics"])

        assert code == 0
        assert "board-9\tBoard Pattern\t7 marks" in capsys.readouterr().out


class TestBuildCommand:
    """Tests for build and rebuild."""

    def test_build_when_chapters_selected_then_paper_and_key_written(self, store_dir, tmp_path, capsys):
        # Arrange
        output = tmp_path / "out"

        # Act
        code = main(_build_args(store_dir, output, "--word"))

        # Assert
        out = capsys.readouterr().out
        assert code == 0
        assert "s-mcq: 2/2 slots filled" in out
        assert "s-short: 4/4 slots filled" in out
        folder = next(output.iterdir())
        assert (folder / "paper.pdf").read_bytes().startswith(b"%PDF")
        assert (folder / "answer_key.pdf").exists()
        assert (folder / "Physics_Paper.doc").exists()
        metadata = json.loads((folder / "build_metadata.json").read_text(encoding="utf-8"))
        assert metadata["seed"] == 7

    def test_build_when_saved_then_rebuild_renders_saved_paper(self, store_dir, tmp_path, capsys):
        # Arrange
        code = main(_build_args(store_dir, tmp_path / "first", "--save", "--title", "Weekly test"))
        paper_id = capsys.readouterr().out.split("Paper id: ")[1].strip()

        # Act
        rebuilt = main(["--store", str(store_dir), "rebuild", "--paper", paper_id,
                        "--output", str(tmp_path / "second"), "--no-answer-key"])

        # Assert
        assert code == 0
        assert rebuilt == 0
        folder = next((tmp_path / "second").iterdir())
        assert (folder / "paper.pdf").exists()
        assert not (folder / "answer_key.pdf").exists()

    def test_build_when_pattern_missing_then_exit_code_one(self, store_dir, tmp_path):
        args = _build_args(store_dir, tmp_path / "out")
        args[args.index("board-9")] = "missing"

        assert main(args) == 1

    def test_rebuild_when_paper_unknown_then_exit_code_one(self, store_dir, tmp_path):
        assert main(["--store", str(store_dir), "rebuild", "--paper", "nope", "--output", str(tmp_path)]) == 1

    def test_main_when_no_command_then_usage_error(self, store_dir):
        with pytest.raises(SystemExit):
            main(["--store", str(store_dir)])
