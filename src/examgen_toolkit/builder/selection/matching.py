"""
Module: builder.selection.matching

Purpose:
    Decides whether a stored question type satisfies the type a section
    or sub-part asks for. Types are author-defined free text for some
    subjects, so English-style subjects get looser matching.

Key Functions:
    - matches_type(): Type test used by every candidate filter
    - normalise_type(): Canonical comparison form

Rules:
    1. Exact case-insensitive match always succeeds.
    2. English-style subject and requested "MCQ": the English objective
       subtypes (VERB, SPELLING, MEANING, GRAMMAR) also match.
    3. English-style subject: either type containing the other matches.
    4. Otherwise no match.

Used By:
    - builder.selection.constraints
    - builder.loading.repository.QuestionRepository.of_type
"""

from __future__ import annotations

from typing import Optional

from examgen_toolkit.core.models import MCQ_TYPE

# English objective sub-categories stored as their own type
ENGLISH_MCQ_SUBTYPES = frozenset({"VERB", "SPELLING", "MEANING", "GRAMMAR"})


def normalise_type(type_name: Optional[str]) -> str:
    return (type_name or "").strip().upper()


def matches_type(question_type: str, requested_type: str, subject_is_english: bool) -> bool:
    """
    Check whether a question's type satisfies a requested slot type.

    Args:
        question_type: Type stored on the question
        requested_type: Effective type of the slot (part type or section type)
        subject_is_english: Whether the active subject is English-style

    Returns:
        True if the question may fill the slot

    Example:
        >>> matches_type("Verb", "MCQ", subject_is_english=True)
        True
        >>> matches_type("Verb", "MCQ", subject_is_english=False)
        False
    """
    stored = normalise_type(question_type)
    requested = normalise_type(requested_type)
    if not stored or not requested:
        return False

    if stored == requested:
        return True
    if not subject_is_english:
        return False

    if requested == MCQ_TYPE and stored in ENGLISH_MCQ_SUBTYPES:
        return True
    return requested in stored or stored in requested
