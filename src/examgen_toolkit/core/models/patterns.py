"""
Module: patterns

Purpose:
    Provides the declarative paper structure: PaperPattern -> Section ->
    SectionPart. A Section is one numbered question block; its optional
    sub-parts are fixed, ordered slots inside one logical question unit.

Key Functions:
    - Section.capacity: Number of selection slots the section owns
    - Section.part_for_slot(i) / Section.slot_position(i): Slot geometry
    - Section.slot_index(unit, part): Inverse of slot_position
    - Section.with_synced_part_counts() / with_synced_part_marks(): Editing helpers
    - PaperPattern.total_marks: Always calculated from sections

Key Classes:
    - SectionPart: One slot inside a compound question
    - Section: One question block of the paper
    - PaperPattern: Named reusable template

Dependencies:
    - dataclasses (std)
    - common.titles: automatic titles

Used By:
    - builder.selection (engine, constraints, resolver)
    - builder.layout.composer
    - core.models.papers.SavedPaper

Slot Geometry:
    Two section shapes exist.

    * Unit sections (everything except MCQ pools with sub-parts): slot i
      belongs to unit i // parts_per_question and part
      i % parts_per_question. Flat sections have parts_per_question == 1.
    * Sliced pools (MCQ sections with sub-parts): the flat MCQ list is cut
      into consecutive blocks, one per part, each part.question_count
      long. Slot i belongs to the part whose block contains it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import cached_property
from typing import Any, Optional

from examgen_toolkit.common.titles import auto_title

MCQ_TYPE = "MCQ"


def _is_mcq(type_name: Optional[str]) -> bool:
    return (type_name or "").strip().upper() == MCQ_TYPE


@dataclass(frozen=True)
class SectionPart:
    """
    One fixed slot within a compound section question (immutable).

    Attributes:
        id: Unique identifier within the section
        label: Instruction or letter marker like "(a)"
        marks: Marks for this part
        type: Overrides the parent section type when set
        specific_chapters: Chapter-number whitelist for this slot
        question_count: Own allocation when the parent is a sliced MCQ pool
        attempt_count: Own attempt allocation when the parent is a sliced pool
        is_alternative: An "OR" choice against the previous sibling
    """

    id: str
    label: str = ""
    marks: int = 0
    type: Optional[str] = None
    specific_chapters: tuple[str, ...] = ()
    question_count: int = 0
    attempt_count: int = 0
    is_alternative: bool = False

    def __post_init__(self) -> None:
        """Validate part on construction."""
        if not self.id:
            raise ValueError("part id must be non-empty")
        if self.marks < 0:
            raise ValueError(f"part marks must be non-negative: {self.marks}")
        if self.question_count < 0 or self.attempt_count < 0:
            raise ValueError(f"part counts must be non-negative: {self.id}")

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "marks": self.marks,
        }
        if self.type:
            d["type"] = self.type
        if self.specific_chapters:
            d["specific_chapters"] = list(self.specific_chapters)
        if self.question_count:
            d["question_count"] = self.question_count
        if self.attempt_count:
            d["attempt_count"] = self.attempt_count
        if self.is_alternative:
            d["is_alternative"] = True
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "SectionPart":
        return cls(
            id=str(data["id"]),
            label=data.get("label") or "",
            marks=int(data.get("marks", 0)),
            type=data.get("type") or None,
            specific_chapters=tuple(str(c) for c in data.get("specific_chapters") or ()),
            question_count=int(data.get("question_count", 0)),
            attempt_count=int(data.get("attempt_count", 0)),
            is_alternative=bool(data.get("is_alternative", False)),
        )


@dataclass(frozen=True)
class Section:
    """
    One numbered question block of a paper (immutable).

    Attributes:
        id: Unique identifier within the pattern
        type: Requested question type like "MCQ" or "SHORT"
        title: English title
        question_count: Question units required
        attempt_count: Units the student must attempt ("any N of M")
        marks_per_question: Marks per attempted unit
        title_urdu: Urdu title
        sub_parts: Ordered slots within one unit
        specific_chapters: Chapter-number whitelist for every slot
        heading: Grouping label shown above the section
        hide_section_marks / hide_sub_part_marks: Marks visibility
        hide_main_numbering / hide_sub_part_numbering: Counter visibility
        title_font_size: Optional title size override in points

    Invariants:
        - counts and marks are non-negative
        - sub-part ids are unique
        - for sliced pools, question/attempt counts equal the part sums
          (kept by with_synced_part_counts, not enforced here)

    Example:
        >>> s = Section(id="s2", type="SHORT", question_count=2, attempt_count=1,
        ...             marks_per_question=5,
        ...             sub_parts=(SectionPart("a", "(a)", 2), SectionPart("b", "(b)", 3)))
        >>> s.parts_per_question, s.capacity, s.total_marks
        (2, 4, 5)
    """

    id: str
    type: str
    title: str = ""
    question_count: int = 0
    attempt_count: int = 0
    marks_per_question: int = 0
    title_urdu: str = ""
    sub_parts: tuple[SectionPart, ...] = ()
    specific_chapters: tuple[str, ...] = ()
    heading: Optional[str] = None
    hide_section_marks: bool = False
    hide_sub_part_marks: bool = False
    hide_main_numbering: bool = False
    hide_sub_part_numbering: bool = False
    title_font_size: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate section on construction."""
        if not self.id:
            raise ValueError("section id must be non-empty")
        if not self.type or not self.type.strip():
            raise ValueError(f"section type must be non-empty: {self.id}")
        if self.question_count < 0:
            raise ValueError(f"question_count must be non-negative: {self.question_count}")
        if self.attempt_count < 0:
            raise ValueError(f"attempt_count must be non-negative: {self.attempt_count}")
        if self.marks_per_question < 0:
            raise ValueError(f"marks_per_question must be non-negative: {self.marks_per_question}")
        part_ids = [p.id for p in self.sub_parts]
        if len(part_ids) != len(set(part_ids)):
            raise ValueError(f"duplicate sub-part ids in section {self.id}: {part_ids}")

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties (NEVER stored)
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def is_mcq(self) -> bool:
        return _is_mcq(self.type)

    @property
    def has_sub_parts(self) -> bool:
        return len(self.sub_parts) > 0

    @property
    def is_sliced_pool(self) -> bool:
        """MCQ section whose flat list is cut into per-part blocks."""
        return self.is_mcq and self.has_sub_parts

    @property
    def parts_per_question(self) -> int:
        return len(self.sub_parts) or 1

    @cached_property
    def part_starts(self) -> tuple[int, ...]:
        """
        First slot index of each part block (sliced pools only).

        Returns:
            Cumulative question_count offsets, one per part
        """
        starts = []
        offset = 0
        for part in self.sub_parts:
            starts.append(offset)
            offset += part.question_count
        return tuple(starts)

    @property
    def capacity(self) -> int:
        """
        Maximum number of selection slots.

        Returns:
            Sum of part question counts for sliced pools, otherwise
            question_count * parts_per_question
        """
        if self.is_sliced_pool:
            return sum(p.question_count for p in self.sub_parts)
        return self.question_count * self.parts_per_question

    @property
    def total_marks(self) -> int:
        """Marks this section contributes: attempt_count * marks_per_question."""
        return self.attempt_count * self.marks_per_question

    # ─────────────────────────────────────────────────────────────────────────
    # Slot Geometry
    # ─────────────────────────────────────────────────────────────────────────

    def part_for_slot(self, index: int) -> Optional[SectionPart]:
        """
        Sub-part owning a slot.

        Args:
            index: Slot index within the section's selection list

        Returns:
            The owning SectionPart, or None for flat sections and
            out-of-range indices
        """
        position = self.slot_position(index)
        if position is None or not self.has_sub_parts:
            return None
        return self.sub_parts[position[1]]

    def slot_position(self, index: int) -> Optional[tuple[int, int]]:
        """
        Map a slot index to (unit_index, part_index).

        For sliced pools unit_index is the position inside the part block.

        Returns:
            Tuple of (unit_index, part_index), or None when out of range
        """
        if index < 0 or index >= self.capacity:
            return None
        if self.is_sliced_pool:
            for part_index in range(len(self.sub_parts) - 1, -1, -1):
                start = self.part_starts[part_index]
                if index >= start and self.sub_parts[part_index].question_count > 0:
                    return (index - start, part_index)
            return None
        ppq = self.parts_per_question
        return (index // ppq, index % ppq)

    def slot_index(self, unit_index: int, part_index: int) -> Optional[int]:
        """
        Map (unit_index, part_index) to a slot index.

        Unit sections use ``unit_index * parts_per_question + part_index``.

        Returns:
            Slot index, or None when the position is outside the section
        """
        if unit_index < 0 or part_index < 0 or part_index >= self.parts_per_question:
            return None
        if self.is_sliced_pool:
            part = self.sub_parts[part_index]
            if unit_index >= part.question_count:
                return None
            return self.part_starts[part_index] + unit_index
        if unit_index >= self.question_count:
            return None
        return unit_index * self.parts_per_question + part_index

    def slot_type(self, part: Optional[SectionPart]) -> str:
        """Requested type for a slot: the part's type overrides the section's."""
        if part is not None and part.type:
            return part.type
        return self.type

    def slot_chapters(self, part: Optional[SectionPart]) -> tuple[str, ...]:
        """Chapter whitelist for a slot: the part's whitelist overrides the section's."""
        if part is not None and part.specific_chapters:
            return part.specific_chapters
        return self.specific_chapters

    # ─────────────────────────────────────────────────────────────────────────
    # Factory Methods
    # ─────────────────────────────────────────────────────────────────────────

    def with_counts(self, question_count: int, attempt_count: int) -> "Section":
        return replace(self, question_count=question_count, attempt_count=attempt_count)

    def with_synced_part_counts(self) -> "Section":
        """
        Copy with section counts equal to the part sums (sliced pools only).

        Returns:
            Updated Section, or self when not a sliced pool
        """
        if not self.is_sliced_pool:
            return self
        return self.with_counts(
            sum(p.question_count for p in self.sub_parts),
            sum(p.attempt_count for p in self.sub_parts),
        )

    def with_synced_part_marks(self) -> "Section":
        """
        Copy with marks_per_question equal to the sum of part marks.

        Only non-MCQ sections with sub-parts are affected.
        """
        if not self.has_sub_parts or self.is_mcq:
            return self
        return replace(self, marks_per_question=sum(p.marks for p in self.sub_parts))

    def with_auto_title(self, index: int) -> "Section":
        """Copy titled automatically for position ``index`` in the pattern."""
        return replace(
            self,
            title=auto_title(self.type, self.attempt_count, self.marks_per_question, index),
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "question_count": self.question_count,
            "attempt_count": self.attempt_count,
            "marks_per_question": self.marks_per_question,
        }
        if self.title_urdu:
            d["title_urdu"] = self.title_urdu
        if self.sub_parts:
            d["sub_parts"] = [p.to_dict() for p in self.sub_parts]
        if self.specific_chapters:
            d["specific_chapters"] = list(self.specific_chapters)
        if self.heading is not None:
            d["heading"] = self.heading
        for flag in ("hide_section_marks", "hide_sub_part_marks",
                     "hide_main_numbering", "hide_sub_part_numbering"):
            if getattr(self, flag):
                d[flag] = True
        if self.title_font_size is not None:
            d["title_font_size"] = self.title_font_size
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "Section":
        font_size = data.get("title_font_size")
        return cls(
            id=str(data["id"]),
            type=str(data["type"]),
            title=data.get("title") or "",
            question_count=int(data.get("question_count", 0)),
            attempt_count=int(data.get("attempt_count", 0)),
            marks_per_question=int(data.get("marks_per_question", 0)),
            title_urdu=data.get("title_urdu") or "",
            sub_parts=tuple(SectionPart.from_dict(p) for p in data.get("sub_parts") or ()),
            specific_chapters=tuple(str(c) for c in data.get("specific_chapters") or ()),
            heading=data.get("heading"),
            hide_section_marks=bool(data.get("hide_section_marks", False)),
            hide_sub_part_marks=bool(data.get("hide_sub_part_marks", False)),
            hide_main_numbering=bool(data.get("hide_main_numbering", False)),
            hide_sub_part_numbering=bool(data.get("hide_sub_part_numbering", False)),
            title_font_size=int(font_size) if font_size is not None else None,
        )

    def __repr__(self) -> str:
        return (
            f"Section({self.id!r}, type={self.type!r}, "
            f"q={self.question_count}, attempt={self.attempt_count}, parts={len(self.sub_parts)})"
        )


@dataclass(frozen=True)
class PaperPattern:
    """
    Named, reusable paper template (immutable).

    Attributes:
        id: Unique identifier
        name: Display name
        sections: Ordered sections
        description: Free text
        subject: Subject binding; None applies to every subject
        class_level: Class binding
        time_allowed: Time printed in the header

    Example:
        >>> pattern.total_marks  # Always calculated
        75
    """

    id: str
    name: str
    sections: tuple[Section, ...] = ()
    description: str = ""
    subject: Optional[str] = None
    class_level: Optional[str] = None
    time_allowed: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate pattern on construction."""
        if not self.id:
            raise ValueError("pattern id must be non-empty")
        section_ids = [s.id for s in self.sections]
        if len(section_ids) != len(set(section_ids)):
            raise ValueError(f"duplicate section ids in pattern {self.id}: {section_ids}")

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties (NEVER stored)
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def total_marks(self) -> int:
        """Sum of attempt_count * marks_per_question over all sections."""
        return sum(s.total_marks for s in self.sections)

    @property
    def section_ids(self) -> tuple[str, ...]:
        return tuple(s.id for s in self.sections)

    # ─────────────────────────────────────────────────────────────────────────
    # Query Methods
    # ─────────────────────────────────────────────────────────────────────────

    def get_section(self, section_id: str) -> Optional[Section]:
        return next((s for s in self.sections if s.id == section_id), None)

    def applies_to_subject(self, subject: str) -> bool:
        """Patterns without a subject apply everywhere; otherwise case-insensitive match."""
        if not self.subject:
            return True
        return self.subject.strip().lower() == (subject or "").strip().lower()

    def mandatory_chapter_numbers(self) -> frozenset[str]:
        """Every chapter whitelist entry referenced by a section or part."""
        numbers: set[str] = set()
        for section in self.sections:
            numbers.update(section.specific_chapters)
            for part in section.sub_parts:
                numbers.update(part.specific_chapters)
        return frozenset(numbers)

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "sections": [s.to_dict() for s in self.sections],
        }
        if self.subject:
            d["subject"] = self.subject
        if self.class_level:
            d["class_level"] = self.class_level
        if self.time_allowed:
            d["time_allowed"] = self.time_allowed
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "PaperPattern":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            sections=tuple(Section.from_dict(s) for s in data.get("sections") or ()),
            description=data.get("description") or "",
            subject=data.get("subject") or None,
            class_level=data.get("class_level") or None,
            time_allowed=data.get("time_allowed") or None,
        )

    def __repr__(self) -> str:
        return f"PaperPattern({self.id!r}, {self.name!r}, sections={len(self.sections)})"
