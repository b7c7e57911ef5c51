"""
Tests for the JSON document store and locked file helpers.
"""

import pytest

from examgen_toolkit.storage import JsonDocumentStore, StoreError
from examgen_toolkit.storage.file_locking import read_json_locked, update_json_locked, write_json_locked


@pytest.fixture
def store(tmp_path):
    return JsonDocumentStore(tmp_path / "data")


class TestJsonDocumentStore:
    """Tests for JsonDocumentStore."""

    def test_put_and_get_when_document_stored_then_read_back(self, store):
        store.put("papers", "p1", {"title": "Mid-term", "marks": 30})

        assert store.get("papers", "p1") == {"title": "Mid-term", "marks": 30}
        assert (store.root / "papers" / "p1.json").exists()

    def test_get_when_missing_then_none(self, store):
        assert store.get("papers", "nope") is None

    def test_get_when_not_an_object_then_store_error(self, store):
        path = store.path_for("papers", "bad")
        path.parent.mkdir(parents=True)
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(StoreError, match="not a JSON object"):
            store.get("papers", "bad")

    def test_get_when_corrupt_json_then_store_error(self, store):
        path = store.path_for("papers", "broken")
        path.parent.mkdir(parents=True)
        path.write_text("{oops", encoding="utf-8")

        with pytest.raises(StoreError, match="Failed to read"):
            store.get("papers", "broken")

    def test_path_for_when_key_escapes_root_then_rejected(self, store):
        with pytest.raises(StoreError, match="Invalid document name"):
            store.path_for("papers", "../secrets")

    def test_list_when_one_unreadable_then_others_returned_in_key_order(self, store):
        store.put("patterns", "b", {"id": "b"})
        store.put("patterns", "a", {"id": "a"})
        store.path_for("patterns", "c").write_text("{oops", encoding="utf-8")

        assert [d["id"] for d in store.list("patterns")] == ["a", "b"]
        assert store.keys("patterns") == ["a", "b", "c"]

    def test_update_when_existing_then_fields_merged(self, store):
        store.put("papers", "p1", {"title": "Old", "marks": 30})

        merged = store.update("papers", "p1", {"title": "New"})

        assert merged == {"title": "New", "marks": 30}
        assert store.get("papers", "p1")["title"] == "New"

    def test_update_when_missing_then_store_error(self, store):
        with pytest.raises(StoreError, match="Document not found"):
            store.update("papers", "ghost", {"title": "x"})

    def test_delete_when_present_then_true_once(self, store):
        store.put("papers", "p1", {})

        assert store.delete("papers", "p1") is True
        assert store.delete("papers", "p1") is False

    def test_iter_when_collections_exist_then_names(self, store):
        store.put("papers", "p1", {})
        store.put("chapters", "c1", {})

        assert list(store) == ["chapters", "papers"]


class TestFileLocking:
    """Tests for the locked JSON helpers."""

    def test_read_when_missing_then_none(self, tmp_path):
        assert read_json_locked(tmp_path / "none.json") is None

    def test_write_then_update_when_function_applied_then_persisted(self, tmp_path):
        path = tmp_path / "nested" / "doc.json"
        write_json_locked(path, {"count": 1})

        result = update_json_locked(path, lambda d: {**d, "count": d["count"] + 1})

        assert result == {"count": 2}
        assert read_json_locked(path) == {"count": 2}
