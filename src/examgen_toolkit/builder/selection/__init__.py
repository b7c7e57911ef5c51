"""
Module: builder.selection

Purpose:
    Slot-based question selection for pattern sections.
    Places chosen questions into section slots, enforcing capacity,
    type matching, chapter whitelists and uniqueness, and fills
    sections at random on request.

Key Functions:
    - matches_type(): Question type vs. requested section type
    - slot_candidates(): Eligible questions for one slot
    - resolve_effective_sections(): Sections as they will be printed

Key Classes:
    - SelectionConfig: Subject and seed for a selection run
    - SelectionEngine: Per-section slot state and operations
    - SelectionOutcome: Result of a selection operation

Dependencies:
    - examgen_toolkit.core.models: Section, Question, SlotRef
    - builder.loading: QuestionRepository

Used By:
    - builder.controller: Paper compilation
    - examgen_toolkit.session: Authoring workflow
"""

from .config import SelectionConfig
from .matching import ENGLISH_MCQ_SUBTYPES, matches_type, normalise_type
from .constraints import chapter_satisfies, mandatory_chapter_ids, slot_accepts, slot_candidates
from .engine import SelectionEngine, SelectionOutcome
from .resolver import complete_units, resolve_effective_sections

__all__ = [
    "SelectionConfig",
    # Matching
    "ENGLISH_MCQ_SUBTYPES",
    "matches_type",
    "normalise_type",
    # Constraints
    "chapter_satisfies",
    "mandatory_chapter_ids",
    "slot_accepts",
    "slot_candidates",
    # Engine
    "SelectionEngine",
    "SelectionOutcome",
    # Resolution
    "complete_units",
    "resolve_effective_sections",
]
