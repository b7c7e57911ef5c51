"""
Module: builder.selection.constraints

Purpose:
    Slot-level constraint checks: does a question satisfy the effective
    type and chapter whitelist of one selection slot, and which chapters
    does a pattern make mandatory.

Key Functions:
    - chapter_satisfies(): Mandatory-chapter test on a Chapter model
    - slot_accepts(): Type + chapter test for one slot
    - slot_candidates(): Eligible, unused questions for one slot
    - mandatory_chapter_ids(): Chapters a pattern forces into selection

Dependencies:
    - examgen_toolkit.core.models
    - builder.loading.repository.QuestionRepository
    - builder.selection.matching.matches_type

Used By:
    - builder.selection.engine.SelectionEngine
    - session.authoring.AuthoringSession
"""

from __future__ import annotations

from typing import AbstractSet, Iterable, List, Optional, Sequence

from examgen_toolkit.builder.loading.repository import QuestionRepository
from examgen_toolkit.core.models import Chapter, PaperPattern, Question, SlotRef

from .matching import matches_type


def chapter_satisfies(chapter: Optional[Chapter], specific_chapters: Sequence[str]) -> bool:
    """
    Check a chapter against a chapter-number whitelist.

    An empty whitelist accepts everything. An unknown or unnumbered
    chapter never satisfies a non-empty whitelist.
    """
    if not specific_chapters:
        return True
    if chapter is None:
        return False
    return chapter.matches_numbers(specific_chapters)


def slot_accepts(
    question: Question,
    slot: SlotRef,
    repository: QuestionRepository,
    subject_is_english: bool,
) -> bool:
    """
    Check whether a question may occupy a slot.

    Args:
        question: Candidate question
        slot: Target slot with its effective type and whitelist
        repository: Pool used to look up the question's chapter
        subject_is_english: Active subject classification

    Returns:
        True if both the type and the chapter constraint hold
    """
    if not matches_type(question.type, slot.type, subject_is_english):
        return False
    return chapter_satisfies(repository.chapter_of(question), slot.specific_chapters)


def slot_candidates(
    slot: SlotRef,
    repository: QuestionRepository,
    subject_is_english: bool,
    exclude: AbstractSet[str] = frozenset(),
) -> List[Question]:
    """
    Eligible questions for a slot, in pool order.

    Args:
        exclude: Question ids already used in the slot's section
    """
    return [
        q for q in repository
        if q.id not in exclude and slot_accepts(q, slot, repository, subject_is_english)
    ]


def mandatory_chapter_ids(pattern: PaperPattern, chapters: Iterable[Chapter]) -> List[str]:
    """
    Chapters referenced by any section or part whitelist of a pattern.

    Returns:
        Chapter ids in catalogue order
    """
    numbers = pattern.mandatory_chapter_numbers()
    if not numbers:
        return []
    return [c.id for c in chapters if c.matches_numbers(numbers)]
