"""
Module: papers

Purpose:
    Paper-level models: the institute printed in the header, the paper
    medium and the SavedPaper snapshot persisted after compilation.

Key Classes:
    - Medium: English / Urdu / Both
    - InstituteProfile: Header identity
    - SavedPaper: Self-contained snapshot of a compiled paper

Dependencies:
    - dataclasses (std)
    - enum (std)
    - .patterns.Section
    - .selection.PlacedQuestion

Used By:
    - builder.layout (medium, header)
    - session.authoring (save / restore)
    - storage.papers
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .patterns import Section
from .selection import PlacedQuestion


class Medium(str, Enum):
    """Language mode of the rendered paper."""

    ENGLISH = "English"
    URDU = "Urdu"
    BOTH = "Both"

    @classmethod
    def parse(cls, value: "str | Medium | None") -> "Medium":
        """Case-insensitive lookup; None means English."""
        if isinstance(value, Medium):
            return value
        if not value:
            return cls.ENGLISH
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        raise ValueError(f"unknown medium: {value!r} (expected English, Urdu or Both)")


@dataclass(frozen=True)
class InstituteProfile:
    """Institute identity printed at the top of every paper."""

    name: str = ""
    institute_type: str = ""
    address: str = ""
    city: str = ""
    contact_number: str = ""
    logo_path: Optional[str] = None
    show_logo: bool = False
    show_contact: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "institute_type": self.institute_type,
            "address": self.address,
            "city": self.city,
            "contact_number": self.contact_number,
            "logo_path": self.logo_path,
            "show_logo": self.show_logo,
            "show_contact": self.show_contact,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InstituteProfile":
        return cls(
            name=data.get("name") or "",
            institute_type=data.get("institute_type") or "",
            address=data.get("address") or "",
            city=data.get("city") or "",
            contact_number=data.get("contact_number") or "",
            logo_path=data.get("logo_path") or None,
            show_logo=bool(data.get("show_logo", False)),
            show_contact=bool(data.get("show_contact", False)),
        )


@dataclass(frozen=True)
class SavedPaper:
    """
    Durable snapshot of a compiled paper (immutable).

    Questions are embedded with their target section and slot so the
    paper renders identically after the bank changes, and so an authoring
    session can be restored from it.

    Attributes:
        title: Display title like "9th - Physics"
        class_level: Class the paper was generated for
        subject: Subject name
        sections: Effective sections (counts reflect actual picks)
        questions: Embedded placed questions in paper order
        id: Store id; None until first persisted
        created_at: Unix timestamp
        institute: Header identity at generation time
        user_id / created_by: Author
        pattern_id: Source pattern
        selected_chapter_ids / selected_subtopic_ids: Restoration metadata
        chapters_display: Header chapter list like "1, 2, 5"
        medium / font_size / line_spacing: Layout options
        time_allowed / paper_code: Header fields
    """

    title: str
    class_level: str
    subject: str
    sections: tuple[Section, ...]
    questions: tuple[PlacedQuestion, ...]
    id: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    institute: Optional[InstituteProfile] = None
    user_id: str = ""
    created_by: str = ""
    pattern_id: Optional[str] = None
    selected_chapter_ids: tuple[str, ...] = ()
    selected_subtopic_ids: tuple[str, ...] = ()
    chapters_display: str = ""
    medium: Medium = Medium.ENGLISH
    font_size: int = 13
    line_spacing: int = 2
    time_allowed: str = "2:00 Hours"
    paper_code: str = ""

    def __post_init__(self) -> None:
        """Validate snapshot on construction."""
        section_ids = {s.id for s in self.sections}
        stray = sorted({pq.section_id for pq in self.questions} - section_ids)
        if stray:
            raise ValueError(f"questions target unknown sections: {stray}")

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties (NEVER stored)
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def total_marks(self) -> int:
        return sum(s.total_marks for s in self.sections)

    @property
    def question_count(self) -> int:
        return len(self.questions)

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "title": self.title,
            "class_level": self.class_level,
            "subject": self.subject,
            "created_at": self.created_at,
            "sections": [s.to_dict() for s in self.sections],
            "questions": [pq.to_dict() for pq in self.questions],
            "user_id": self.user_id,
            "created_by": self.created_by,
            "selected_chapter_ids": list(self.selected_chapter_ids),
            "selected_subtopic_ids": list(self.selected_subtopic_ids),
            "chapters_display": self.chapters_display,
            "medium": self.medium.value,
            "font_size": self.font_size,
            "line_spacing": self.line_spacing,
            "time_allowed": self.time_allowed,
            "paper_code": self.paper_code,
        }
        if self.id is not None:
            d["id"] = self.id
        if self.institute is not None:
            d["institute"] = self.institute.to_dict()
        if self.pattern_id is not None:
            d["pattern_id"] = self.pattern_id
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "SavedPaper":
        institute = data.get("institute")
        return cls(
            id=data.get("id"),
            title=data.get("title") or "",
            class_level=data.get("class_level") or "",
            subject=data.get("subject") or "",
            created_at=float(data.get("created_at", 0.0)),
            sections=tuple(Section.from_dict(s) for s in data.get("sections") or ()),
            questions=tuple(PlacedQuestion.from_dict(q) for q in data.get("questions") or ()),
            institute=InstituteProfile.from_dict(institute) if isinstance(institute, dict) else None,
            user_id=data.get("user_id") or "",
            created_by=data.get("created_by") or "",
            pattern_id=data.get("pattern_id"),
            selected_chapter_ids=tuple(data.get("selected_chapter_ids") or ()),
            selected_subtopic_ids=tuple(data.get("selected_subtopic_ids") or ()),
            chapters_display=data.get("chapters_display") or "",
            medium=Medium.parse(data.get("medium")),
            font_size=min(int(data.get("font_size") or 13), 13),
            line_spacing=int(data.get("line_spacing", 2)),
            time_allowed=data.get("time_allowed") or "2:00 Hours",
            paper_code=data.get("paper_code") or "",
        )

    def __repr__(self) -> str:
        return (
            f"SavedPaper({self.id!r}, {self.title!r}, "
            f"questions={len(self.questions)}, marks={self.total_marks})"
        )
