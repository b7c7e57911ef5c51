"""
Module: builder.loading.repository

Purpose:
    Addressable collection of bank questions keyed by chapter. Exposes the
    filtered retrieval the selection engine needs: by chapter set, by
    requested type, by selected subtopics.

Key Classes:
    - QuestionRepository: Immutable-after-construction question index
    - LoaderError: Exception for inconsistent question pools

Dependencies:
    - examgen_toolkit.core.models: Question, Chapter
    - builder.selection.matching: type matching (lazy, per call)

Used By:
    - builder.selection.engine.SelectionEngine
    - builder.controller
    - session.authoring.AuthoringSession
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence

from examgen_toolkit.core.models import Chapter, Question

logger = logging.getLogger(__name__)


class LoaderError(Exception):
    """Error building a question pool."""
    pass


class QuestionRepository:
    """
    Question pool indexed by id and by chapter.

    Insertion order is preserved inside each chapter so that candidate
    lists (and therefore seeded random draws) are reproducible.

    Attributes:
        chapters: Chapters known to the pool, by id

    Example:
        >>> repo = QuestionRepository(questions, chapters)
        >>> [q.id for q in repo.by_chapter("c1")]
        ['q1', 'q2']
    """

    def __init__(
        self,
        questions: Iterable[Question],
        chapters: Iterable[Chapter] = (),
        *,
        strict: bool = False,
    ) -> None:
        """
        Build the index.

        Args:
            questions: Pool questions
            chapters: Chapter catalogue used for chapter-number lookups
            strict: Raise LoaderError on duplicate ids instead of keeping
                the first occurrence

        Raises:
            LoaderError: If strict and a question id repeats
        """
        self._by_id: Dict[str, Question] = {}
        self._by_chapter: Dict[str, List[Question]] = {}
        self.chapters: Dict[str, Chapter] = {c.id: c for c in chapters}

        for question in questions:
            if question.id in self._by_id:
                if strict:
                    raise LoaderError(f"Duplicate question id in pool: {question.id}")
                logger.warning(f"Skipping duplicate question id {question.id}")
                continue
            self._by_id[question.id] = question
            self._by_chapter.setdefault(question.chapter_id, []).append(question)

        logger.debug(
            f"Indexed {len(self._by_id)} questions across {len(self._by_chapter)} chapters"
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Container Protocol
    # ─────────────────────────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._by_id.values())

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._by_id

    # ─────────────────────────────────────────────────────────────────────────
    # Query Methods
    # ─────────────────────────────────────────────────────────────────────────

    def get(self, question_id: str) -> Optional[Question]:
        return self._by_id.get(question_id)

    def by_chapter(self, chapter_id: str) -> List[Question]:
        return list(self._by_chapter.get(chapter_id, ()))

    def chapter_of(self, question: Question) -> Optional[Chapter]:
        return self.chapters.get(question.chapter_id)

    @property
    def chapter_ids(self) -> List[str]:
        """Chapter ids that own at least one question, in first-seen order."""
        return list(self._by_chapter)

    @property
    def question_types(self) -> List[str]:
        """Distinct stored question types, in first-seen order."""
        seen: Dict[str, None] = {}
        for question in self._by_id.values():
            seen.setdefault(question.type, None)
        return list(seen)

    def filter(
        self,
        *,
        chapter_ids: Optional[Iterable[str]] = None,
        subtopics: Optional[Iterable[str]] = None,
        predicate: Optional[Callable[[Question], bool]] = None,
    ) -> List[Question]:
        """
        Retrieve questions matching every given criterion.

        Args:
            chapter_ids: Restrict to these chapters (None = all)
            subtopics: Restrict to questions whose subtopic tag is in this
                set; an empty or None value applies no restriction
            predicate: Extra test, e.g. a type matcher

        Returns:
            Matching questions in pool order
        """
        if chapter_ids is None:
            pool: Sequence[Question] = list(self._by_id.values())
        else:
            wanted = set(chapter_ids)
            pool = [q for q in self._by_id.values() if q.chapter_id in wanted]

        subtopic_set = set(subtopics or ())
        if subtopic_set:
            pool = [q for q in pool if q.subtopic in subtopic_set]

        if predicate is not None:
            pool = [q for q in pool if predicate(q)]
        return list(pool)

    def of_type(self, requested_type: str, subject_is_english: bool) -> List[Question]:
        """Questions satisfying a requested type under the subject's matching rules."""
        from examgen_toolkit.builder.selection.matching import matches_type

        return self.filter(
            predicate=lambda q: matches_type(q.type, requested_type, subject_is_english)
        )

    def restricted_to(self, question_ids: Iterable[str]) -> "QuestionRepository":
        """Sub-pool containing only the given ids (unknown ids are ignored)."""
        wanted = set(question_ids)
        return QuestionRepository(
            (q for q in self._by_id.values() if q.id in wanted),
            self.chapters.values(),
        )

    def __repr__(self) -> str:
        return f"QuestionRepository(questions={len(self._by_id)}, chapters={len(self.chapters)})"
