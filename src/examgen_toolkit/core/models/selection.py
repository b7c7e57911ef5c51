"""
Module: selection

Purpose:
    Models that tie questions to their place in a paper.

Key Classes:
    - PlacedQuestion: A question bound to a target section and slot
    - SlotRef: Pointer to one selection slot plus its effective constraint

Dependencies:
    - dataclasses (std)
    - .questions.Question

Used By:
    - builder.selection.engine (resolved question list, swap pointer)
    - builder.layout.composer
    - core.models.papers.SavedPaper (snapshot)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .questions import Question


@dataclass(frozen=True)
class PlacedQuestion:
    """
    A question placed in a section of a paper (immutable).

    The question is embedded, not referenced, so saved papers are not
    affected by later edits to the bank.

    Attributes:
        question: The embedded question
        section_id: Target section id
        slot_index: Position in the section's selection list
    """

    question: Question
    section_id: str
    slot_index: Optional[int] = None

    @property
    def question_id(self) -> str:
        return self.question.id

    def to_dict(self) -> dict:
        d = self.question.to_dict()
        d["target_section_id"] = self.section_id
        if self.slot_index is not None:
            d["slot_index"] = self.slot_index
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "PlacedQuestion":
        slot = data.get("slot_index")
        return cls(
            question=Question.from_dict(data),
            section_id=str(data["target_section_id"]),
            slot_index=int(slot) if slot is not None else None,
        )


@dataclass(frozen=True)
class SlotRef:
    """
    One selection slot and the constraint that applies to it.

    Attributes:
        section_id: Owning section
        unit_index: Question unit (position inside the part block for
            sliced MCQ pools)
        part_index: Sub-part index, 0 for flat sections
        slot_index: Index in the section's selection list
        type: Effective requested type (part type overrides section type)
        specific_chapters: Effective chapter whitelist
    """

    section_id: str
    unit_index: int
    part_index: int
    slot_index: int
    type: str
    specific_chapters: tuple[str, ...] = ()

    @property
    def is_constrained(self) -> bool:
        return len(self.specific_chapters) > 0
