"""
Tests for the file-backed saved-paper store.
"""

import asyncio
from dataclasses import replace

import pytest

from examgen_toolkit.core.models import PlacedQuestion, SavedPaper
from examgen_toolkit.storage import FilePaperStore, JsonDocumentStore, StoreError


@pytest.fixture
def paper_store(tmp_path):
    return FilePaperStore(JsonDocumentStore(tmp_path))


@pytest.fixture
def paper(pattern, repository):
    return SavedPaper(
        title="9th - Physics",
        class_level="9th",
        subject="Physics",
        sections=pattern.sections,
        questions=(
            PlacedQuestion(repository.get("m1"), "s-mcq", 0),
            PlacedQuestion(repository.get("s1"), "s-short", 0),
            PlacedQuestion(repository.get("s2"), "s-short", 1),
        ),
        created_at=100.0,
        user_id="user-1",
        pattern_id="board-9",
        paper_code="1357",
    )


class TestFilePaperStore:
    """Tests for saving, updating and loading papers."""

    def test_persist_when_no_id_then_assigned_and_loadable(self, paper_store, paper):
        outcome = asyncio.run(paper_store.persist_paper(paper))

        assert outcome.success is True
        assert outcome.paper_id
        loaded = paper_store.load(outcome.paper_id)
        assert loaded.id == outcome.paper_id
        assert [(p.question_id, p.section_id, p.slot_index) for p in loaded.questions] == [
            ("m1", "s-mcq", 0), ("s1", "s-short", 0), ("s2", "s-short", 1),
        ]
        assert loaded.paper_code == "1357"

    def test_update_when_paper_exists_then_fields_overwritten_but_identity_kept(self, paper_store, paper):
        paper_id = paper_store.save(paper).paper_id

        outcome = asyncio.run(paper_store.update_paper(paper_id, {"title": "Revised", "created_at": 5.0, "id": "x"}))

        loaded = paper_store.load(paper_id)
        assert outcome.success is True
        assert loaded.title == "Revised"
        assert loaded.created_at == 100.0
        assert loaded.id == paper_id

    def test_update_when_paper_missing_then_failed_outcome(self, paper_store):
        outcome = paper_store.update("ghost", {"title": "x"})

        assert outcome.success is False
        assert "Failed to update" in outcome.message

    def test_save_when_store_unwritable_then_failed_outcome(self, paper_store, paper, tmp_path):
        (tmp_path / "papers").write_text("not a folder", encoding="utf-8")

        outcome = paper_store.save(paper)

        assert outcome.success is False
        assert outcome.paper_id is None

    def test_load_when_snapshot_invalid_then_store_error(self, paper_store):
        paper_store.store.put("papers", "bad", {"title": "No sections"})

        with pytest.raises(StoreError, match="invalid"):
            paper_store.load("bad")

    def test_list_papers_when_filtered_by_user_then_newest_first(self, paper_store, paper):
        paper_store.save(replace(paper, id="old", created_at=1.0))
        paper_store.save(replace(paper, id="new", created_at=2.0))
        paper_store.save(replace(paper, id="other", user_id="user-2"))

        assert [p.id for p in paper_store.list_papers("user-1")] == ["new", "old"]
        assert paper_store.delete("old") is True
        assert len(paper_store.list_papers()) == 2
