"""
Module: storage.document_store

Purpose:
    Minimal JSON document store on the local filesystem.
    Documents live at ``<root>/<collection>/<key>.json`` and every read
    and write goes through a portalocker file lock.

Key Classes:
    - JsonDocumentStore: get / put / update / delete / list documents
    - StoreError: Raised for I/O faults and malformed documents

Dependencies:
    - storage.file_locking: Locked JSON access

Used By:
    - storage.content: Chapters, patterns and visibility settings
    - storage.papers: Saved papers
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .file_locking import read_json_locked, update_json_locked, write_json_locked

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")


class StoreError(Exception):
    """Error reading or writing the document store."""
    pass


class JsonDocumentStore:
    """
    File-backed document store.

    Attributes:
        root: Directory holding one folder per collection

    Example:
        >>> store = JsonDocumentStore(Path("data"))
        >>> store.put("papers", "p1", {"title": "Mid-term"})
        >>> store.get("papers", "p1")["title"]
        'Mid-term'
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, collection: str, key: str) -> Path:
        """File path of a document; keys and collections are plain names."""
        for name in (collection, key):
            if not _KEY_PATTERN.match(name or "") or name in (".", ".."):
                raise StoreError(f"Invalid document name: {name!r}")
        return self.root / collection / f"{key}.json"

    # ─────────────────────────────────────────────────────────────────────────
    # Query Methods
    # ─────────────────────────────────────────────────────────────────────────

    def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        """
        Read one document.

        Returns:
            The document, or None if it does not exist.

        Raises:
            StoreError: If the file cannot be read or is not a JSON object.
        """
        path = self.path_for(collection, key)
        try:
            data = read_json_locked(path)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to read {collection}/{key}: {e}") from e
        if data is not None and not isinstance(data, dict):
            raise StoreError(f"{collection}/{key} is not a JSON object")
        return data

    def keys(self, collection: str) -> List[str]:
        folder = self.root / collection
        if not folder.is_dir():
            return []
        return sorted(p.stem for p in folder.glob("*.json"))

    def list(self, collection: str) -> List[Dict[str, Any]]:
        """All documents of a collection, ordered by key. Unreadable ones are skipped."""
        documents = []
        for key in self.keys(collection):
            try:
                doc = self.get(collection, key)
            except StoreError as e:
                logger.warning(f"Skipping unreadable document: {e}")
                continue
            if doc is not None:
                documents.append(doc)
        return documents

    def __iter__(self) -> Iterator[str]:
        if not self.root.is_dir():
            return iter(())
        return iter(sorted(p.name for p in self.root.iterdir() if p.is_dir()))

    # ─────────────────────────────────────────────────────────────────────────
    # Mutations
    # ─────────────────────────────────────────────────────────────────────────

    def put(self, collection: str, key: str, document: Mapping[str, Any]) -> None:
        """
        Create or replace a document.

        Raises:
            StoreError: If the document cannot be written.
        """
        path = self.path_for(collection, key)
        try:
            write_json_locked(path, dict(document))
        except (OSError, TypeError, ValueError) as e:
            raise StoreError(f"Failed to write {collection}/{key}: {e}") from e
        logger.debug(f"Stored {collection}/{key}")

    def update(self, collection: str, key: str, partial: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Merge top-level fields into an existing document.

        Returns:
            The merged document.

        Raises:
            StoreError: If the document does not exist or cannot be written.
        """
        path = self.path_for(collection, key)
        if not path.exists():
            raise StoreError(f"Document not found: {collection}/{key}")
        try:
            return update_json_locked(path, lambda existing: {**existing, **partial})
        except (OSError, TypeError, ValueError) as e:
            raise StoreError(f"Failed to update {collection}/{key}: {e}") from e

    def delete(self, collection: str, key: str) -> bool:
        """Remove a document. Returns False if it did not exist."""
        path = self.path_for(collection, key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StoreError(f"Failed to delete {collection}/{key}: {e}") from e
        return True

    def __repr__(self) -> str:
        return f"JsonDocumentStore({str(self.root)!r})"
