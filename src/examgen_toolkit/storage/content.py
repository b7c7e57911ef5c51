"""
Module: storage.content

Purpose:
    File-backed question bank implementing the session's ContentSource.

    Layout under the store root:
        chapters/<chapter_id>.json      chapter plus "subject" and "class_level"
        questions/<chapter_id>.jsonl    one question per line
        patterns/<pattern_id>.json      paper patterns
        settings/visibility.json        hidden chapters, subtopics, patterns
                                        and chapter renames

Key Classes:
    - VisibilitySettings: Hidden and renamed content
    - FileContentSource: Async reads with TTL caching

Dependencies:
    - storage.document_store: JSON documents
    - storage.cache: Pattern and question-pool caches
    - core.utils.serialization: Model (de)serialization

Used By:
    - examgen_toolkit.cli: Command line sessions
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from examgen_toolkit.common.chapters import chapter_sort_key
from examgen_toolkit.core.models import Chapter, PaperPattern, Question
from examgen_toolkit.core.schemas import ValidationError
from examgen_toolkit.core.utils import (
    deserialize_chapter,
    deserialize_pattern,
    load_questions_jsonl,
    save_questions_jsonl,
    serialize_pattern,
)

from .cache import Clock, TTLCache
from .document_store import JsonDocumentStore, StoreError

logger = logging.getLogger(__name__)

PATTERN_CACHE_TTL = 300.0
QUESTION_CACHE_TTL = 300.0

CHAPTERS = "chapters"
PATTERNS = "patterns"
SETTINGS = "settings"
VISIBILITY_KEY = "visibility"


def _same(a: Optional[str], b: Optional[str]) -> bool:
    return (a or "").strip().casefold() == (b or "").strip().casefold()


@dataclass(frozen=True)
class VisibilitySettings:
    """
    Content hidden from paper generation, and chapter display renames.

    Attributes:
        hidden_chapter_ids: Chapters left out when hiding invisible content
        hidden_subtopic_names: Subtopics removed from every chapter
        hidden_pattern_ids: Patterns never offered
        renamed_chapters: chapter id -> display name
    """

    hidden_chapter_ids: frozenset[str] = frozenset()
    hidden_subtopic_names: frozenset[str] = frozenset()
    hidden_pattern_ids: frozenset[str] = frozenset()
    renamed_chapters: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "hidden_chapter_ids": sorted(self.hidden_chapter_ids),
            "hidden_subtopic_names": sorted(self.hidden_subtopic_names),
            "hidden_pattern_ids": sorted(self.hidden_pattern_ids),
            "renamed_chapters": dict(self.renamed_chapters),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "VisibilitySettings":
        data = data or {}
        return cls(
            hidden_chapter_ids=frozenset(data.get("hidden_chapter_ids") or ()),
            hidden_subtopic_names=frozenset(data.get("hidden_subtopic_names") or ()),
            hidden_pattern_ids=frozenset(data.get("hidden_pattern_ids") or ()),
            renamed_chapters=dict(data.get("renamed_chapters") or {}),
        )


class FileContentSource:
    """
    Question bank backed by a JsonDocumentStore.

    Pattern lists and per-chapter question pools are cached for five
    minutes; ``force_refresh`` / ``bypass_cache`` read from disk again.
    Blocking file access runs in a worker thread.

    Example:
        >>> source = FileContentSource(JsonDocumentStore(Path("bank")))
        >>> chapters = await source.fetch_chapters("Physics", "9th")
    """

    def __init__(
        self,
        store: JsonDocumentStore,
        *,
        clock: Optional[Clock] = None,
        pattern_ttl: float = PATTERN_CACHE_TTL,
        question_ttl: float = QUESTION_CACHE_TTL,
    ) -> None:
        self.store = store
        self._patterns: TTLCache[List[PaperPattern]] = TTLCache(pattern_ttl, clock=clock)
        self._questions: TTLCache[List[Question]] = TTLCache(question_ttl, clock=clock)

    @property
    def questions_dir(self) -> Path:
        return self.store.root / "questions"

    # ─────────────────────────────────────────────────────────────────────────
    # ContentSource
    # ─────────────────────────────────────────────────────────────────────────

    async def fetch_chapters(
        self,
        subject: str,
        class_level: str,
        hide_invisible: bool = True,
    ) -> List[Chapter]:
        return await asyncio.to_thread(self.load_chapters, subject, class_level, hide_invisible)

    async def fetch_question_pool(
        self,
        subject: str,
        chapters: Sequence[Chapter],
        selected_chapter_ids: Sequence[str],
        bypass_cache: bool = False,
    ) -> List[Question]:
        return await asyncio.to_thread(self.load_question_pool, selected_chapter_ids, bypass_cache)

    async def fetch_patterns(self, force_refresh: bool = False) -> List[PaperPattern]:
        return await asyncio.to_thread(self.load_patterns, force_refresh)

    # ─────────────────────────────────────────────────────────────────────────
    # Synchronous Loaders
    # ─────────────────────────────────────────────────────────────────────────

    def visibility(self) -> VisibilitySettings:
        return VisibilitySettings.from_dict(self.store.get(SETTINGS, VISIBILITY_KEY))

    def load_chapters(self, subject: str, class_level: str, hide_invisible: bool = True) -> List[Chapter]:
        """
        Chapters of one subject and class.

        Renames always apply. Hidden chapters and hidden subtopics are
        removed only when ``hide_invisible`` is set. Sorted by chapter
        number, then name.
        """
        visibility = self.visibility()
        chapters: List[Chapter] = []
        for doc in self.store.list(CHAPTERS):
            if not (_same(doc.get("subject"), subject) and _same(doc.get("class_level"), class_level)):
                continue
            try:
                chapter = deserialize_chapter(doc)
            except (ValidationError, ValueError, KeyError) as e:
                logger.warning(f"Skipping malformed chapter {doc.get('id')!r}: {e}")
                continue

            renamed = visibility.renamed_chapters.get(chapter.id)
            if renamed:
                chapter = replace(chapter, name=renamed)
            if hide_invisible:
                if chapter.id in visibility.hidden_chapter_ids:
                    continue
                subtopics = tuple(s for s in chapter.subtopics if s.name not in visibility.hidden_subtopic_names)
                if len(subtopics) != len(chapter.subtopics):
                    chapter = replace(chapter, subtopics=subtopics)
            chapters.append(chapter)

        chapters.sort(key=chapter_sort_key)
        logger.debug(f"Loaded {len(chapters)} chapters for {subject} {class_level}")
        return chapters

    def load_question_pool(self, chapter_ids: Sequence[str], bypass_cache: bool = False) -> List[Question]:
        """Questions of the given chapters, in chapter order."""
        pool: List[Question] = []
        loaded = 0
        for chapter_id in dict.fromkeys(chapter_ids):
            questions = None if bypass_cache else self._questions.get(chapter_id)
            if questions is None:
                questions = self._read_chapter_questions(chapter_id)
                self._questions.set(chapter_id, questions)
                loaded += 1
            pool.extend(questions)
        logger.info(f"Question pool: {len(pool)} questions from {len(chapter_ids)} chapters ({loaded} read from disk)")
        return pool

    def load_patterns(self, force_refresh: bool = False) -> List[PaperPattern]:
        """All patterns except hidden ones; malformed documents are skipped."""
        if not force_refresh:
            cached = self._patterns.get(PATTERNS)
            if cached is not None:
                return list(cached)

        hidden = self.visibility().hidden_pattern_ids
        patterns: List[PaperPattern] = []
        for doc in self.store.list(PATTERNS):
            try:
                pattern = deserialize_pattern(doc)
            except (ValidationError, ValueError, KeyError) as e:
                logger.warning(f"Skipping malformed pattern {doc.get('id')!r}: {e}")
                continue
            if pattern.id not in hidden:
                patterns.append(pattern)

        self._patterns.set(PATTERNS, patterns)
        logger.debug(f"Loaded {len(patterns)} patterns")
        return list(patterns)

    def _read_chapter_questions(self, chapter_id: str) -> List[Question]:
        path = self.questions_dir / f"{chapter_id}.jsonl"
        if not path.exists():
            logger.debug(f"No questions stored for chapter {chapter_id}")
            return []
        try:
            return load_questions_jsonl(path)
        except (ValidationError, OSError) as e:
            raise StoreError(f"Failed to load questions for chapter {chapter_id}: {e}") from e

    # ─────────────────────────────────────────────────────────────────────────
    # Content Management
    # ─────────────────────────────────────────────────────────────────────────

    def save_chapter(self, chapter: Chapter, subject: str, class_level: str) -> None:
        document: Dict[str, Any] = {**chapter.to_dict(), "subject": subject, "class_level": class_level}
        self.store.put(CHAPTERS, chapter.id, document)

    def save_questions(self, chapter_id: str, questions: Sequence[Question]) -> None:
        """Replace the stored questions of one chapter."""
        save_questions_jsonl(list(questions), self.questions_dir / f"{chapter_id}.jsonl")
        self._questions.invalidate(chapter_id)

    def save_pattern(self, pattern: PaperPattern) -> None:
        self.store.put(PATTERNS, pattern.id, serialize_pattern(pattern))
        self._patterns.clear()

    def set_hidden(self, kind: str, id_or_name: str, hide: bool) -> VisibilitySettings:
        """
        Hide or show a chapter (by id), subtopic (by name) or pattern (by id).

        Raises:
            ValueError: If kind is not "chapter", "subtopic" or "pattern"
        """
        fields = {
            "chapter": "hidden_chapter_ids",
            "subtopic": "hidden_subtopic_names",
            "pattern": "hidden_pattern_ids",
        }
        if kind not in fields:
            raise ValueError(f"Unknown visibility kind: {kind!r}")

        current = self.visibility()
        values = set(getattr(current, fields[kind]))
        if hide:
            values.add(id_or_name)
        else:
            values.discard(id_or_name)
        updated = replace(current, **{fields[kind]: frozenset(values)})
        self.store.put(SETTINGS, VISIBILITY_KEY, updated.to_dict())
        self._patterns.clear()
        return updated

    def rename_chapter(self, chapter_id: str, name: str) -> VisibilitySettings:
        current = self.visibility()
        updated = replace(current, renamed_chapters={**current.renamed_chapters, chapter_id: name.strip()})
        self.store.put(SETTINGS, VISIBILITY_KEY, updated.to_dict())
        return updated
