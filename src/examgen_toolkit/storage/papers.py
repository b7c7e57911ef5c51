"""
Module: storage.papers

Purpose:
    File-backed saved-paper store implementing the session's PaperStore.
    Papers are stored as full snapshots at ``papers/<id>.json``.

Key Classes:
    - FilePaperStore: Persist, update, load and list saved papers

Dependencies:
    - storage.document_store: JSON documents
    - core.utils.serialization: SavedPaper (de)serialization
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import replace
from typing import Any, List, Mapping, Optional

from examgen_toolkit.core.models import SavedPaper
from examgen_toolkit.core.schemas import ValidationError
from examgen_toolkit.core.utils import deserialize_saved_paper, serialize_saved_paper
from examgen_toolkit.session.collaborators import SaveOutcome

from .document_store import JsonDocumentStore, StoreError

logger = logging.getLogger(__name__)

PAPERS = "papers"

# Snapshot fields an update may not overwrite
_IMMUTABLE_FIELDS = frozenset({"id", "created_at", "user_id", "created_by", "schema_version"})


class FilePaperStore:
    """
    Saved papers in a JsonDocumentStore.

    Store failures are reported through SaveOutcome rather than raised,
    so callers keep their in-memory paper and can retry.
    """

    def __init__(self, store: JsonDocumentStore) -> None:
        self.store = store

    async def persist_paper(self, paper: SavedPaper) -> SaveOutcome:
        return await asyncio.to_thread(self.save, paper)

    async def update_paper(self, paper_id: str, partial: Mapping[str, Any]) -> SaveOutcome:
        return await asyncio.to_thread(self.update, paper_id, partial)

    def save(self, paper: SavedPaper) -> SaveOutcome:
        """Store a new snapshot; an id is assigned when the paper has none."""
        if paper.id is None:
            paper = replace(paper, id=uuid.uuid4().hex)
        try:
            self.store.put(PAPERS, paper.id, serialize_saved_paper(paper))
        except StoreError as e:
            logger.error(f"Saving paper failed: {e}")
            return SaveOutcome(False, f"Failed to save paper: {e}")
        logger.info(f"Saved paper {paper.id} ({paper.title})")
        return SaveOutcome(True, "Paper saved successfully.", paper.id)

    def update(self, paper_id: str, partial: Mapping[str, Any]) -> SaveOutcome:
        """Overwrite top-level snapshot fields of an existing paper."""
        changes = {k: v for k, v in partial.items() if k not in _IMMUTABLE_FIELDS}
        try:
            self.store.update(PAPERS, paper_id, changes)
        except StoreError as e:
            logger.error(f"Updating paper {paper_id} failed: {e}")
            return SaveOutcome(False, f"Failed to update paper: {e}")
        logger.info(f"Updated paper {paper_id}: {sorted(changes)}")
        return SaveOutcome(True, "Paper updated successfully.", paper_id)

    def load(self, paper_id: str) -> Optional[SavedPaper]:
        """
        Load one paper.

        Raises:
            StoreError: If the stored snapshot is unreadable or invalid
        """
        data = self.store.get(PAPERS, paper_id)
        if data is None:
            return None
        try:
            return deserialize_saved_paper({**data, "id": paper_id})
        except (ValidationError, ValueError, KeyError) as e:
            raise StoreError(f"Saved paper {paper_id} is invalid: {e}") from e

    def list_papers(self, user_id: Optional[str] = None) -> List[SavedPaper]:
        """Saved papers, newest first, optionally for one user."""
        papers = []
        for key in self.store.keys(PAPERS):
            try:
                paper = self.load(key)
            except StoreError as e:
                logger.warning(f"Skipping saved paper: {e}")
                continue
            if paper is not None and (user_id is None or paper.user_id == user_id):
                papers.append(paper)
        papers.sort(key=lambda p: p.created_at, reverse=True)
        return papers

    def delete(self, paper_id: str) -> bool:
        return self.store.delete(PAPERS, paper_id)
