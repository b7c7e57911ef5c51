"""
Module: session.collaborators

Purpose:
    Boundary interfaces the authoring session depends on. Content and
    persistence are owned by collaborators; the session only awaits them
    and treats every call as succeeding or failing as a whole.

Key Classes:
    - ContentSource: Chapters, question pools and patterns
    - PaperStore: Durable saving of compiled papers
    - SaveOutcome: Result of a save or update

Used By:
    - session.authoring: AuthoringSession
    - storage: File-backed implementations
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Protocol, Sequence

from examgen_toolkit.core.models import Chapter, PaperPattern, Question, SavedPaper


@dataclass(frozen=True)
class SaveOutcome:
    """
    Result of persisting a paper.

    Attributes:
        success: Whether the store accepted the write
        message: Human-readable status or failure reason
        paper_id: Store id of the paper on success
    """

    success: bool
    message: str = ""
    paper_id: Optional[str] = None


class ContentSource(Protocol):
    """Read access to the question bank."""

    async def fetch_chapters(
        self,
        subject: str,
        class_level: str,
        hide_invisible: bool = True,
    ) -> List[Chapter]:
        """Chapters of a subject and class with their subtopics, sorted."""
        ...

    async def fetch_question_pool(
        self,
        subject: str,
        chapters: Sequence[Chapter],
        selected_chapter_ids: Sequence[str],
        bypass_cache: bool = False,
    ) -> List[Question]:
        """Candidate questions for the selected chapters."""
        ...

    async def fetch_patterns(self, force_refresh: bool = False) -> List[PaperPattern]:
        """All visible patterns; callers filter by subject."""
        ...


class PaperStore(Protocol):
    """Write access for compiled papers."""

    async def persist_paper(self, paper: SavedPaper) -> SaveOutcome:
        ...

    async def update_paper(self, paper_id: str, partial: Mapping[str, Any]) -> SaveOutcome:
        ...
