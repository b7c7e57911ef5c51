"""
Module: builder.layout.models

Purpose:
    Data models for the projected paper.
    Immutable dataclasses describing what is printed, in order, without
    any page geometry. Renderers (PDF, answer key, Word) consume these.

Key Classes:
    - OptionPair: One lettered choice with its Urdu counterpart
    - PrintItem: One printed question line
    - PrintUnit: A numbered unit, an MCQ block or a sliced-pool part block
    - SectionBlock: One section with title, marks caption and units
    - AnswerKeyEntry: "Q.n [answer]"
    - PaperHeader: Institute and paper identity
    - PaperDocument: The complete projection

Dependencies:
    - dataclasses (std)

Used By:
    - builder.layout.composer: Creates the document
    - builder.output: Renders it
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from examgen_toolkit.core.models import Medium

NO_QUESTIONS_PLACEHOLDER = "No questions selected."


@dataclass(frozen=True)
class OptionPair:
    """
    Choice printed as "(a) text".

    Attributes:
        letter: "a", "b", ...
        text: Primary text for the medium
        text_urdu: Urdu column text (Both medium only)
    """

    letter: str
    text: str
    text_urdu: str = ""

    @property
    def label(self) -> str:
        return f"({self.letter})"


@dataclass(frozen=True)
class PrintItem:
    """
    One printed question.

    Attributes:
        question_id: Source question
        text: Primary text for the medium
        text_urdu: Urdu column text (Both medium only)
        label: Counter or part label like "3.", "(a)", "ii."; empty = hidden
        marks: Marks shown at the line end; None = hidden
        options: Choices (MCQ-family questions)
        alternative_before: Print an "(OR)" separator before this item
        right_to_left: Text is Urdu script and runs right to left
        centered: Item sits in a grid cell (Idioms, Sentences, Voice)
    """

    question_id: str
    text: str
    text_urdu: str = ""
    label: str = ""
    marks: Optional[int] = None
    options: tuple[OptionPair, ...] = ()
    alternative_before: bool = False
    right_to_left: bool = False
    centered: bool = False


@dataclass(frozen=True)
class PrintUnit:
    """
    A group of printed items.

    Attributes:
        items: Items in print order
        number_label: Outer unit number like "2." (compound units)
        caption: Block header (sliced MCQ pool part label)
        questions_caption: Print "Questions:" before the items (passages)
    """

    items: tuple[PrintItem, ...]
    number_label: str = ""
    caption: str = ""
    questions_caption: bool = False

    @property
    def question_ids(self) -> tuple[str, ...]:
        return tuple(item.question_id for item in self.items)


@dataclass(frozen=True)
class SectionBlock:
    """
    One printed section.

    Attributes:
        section_id: Source section
        title: Title for the medium
        title_urdu: Urdu title column (Both medium only)
        heading: Grouping heading printed above, or None
        marks_caption: "(5 x 2 = 10)" style caption, empty when hidden
        total_marks: attempt_count * marks_per_question
        units: Printed units
        is_mcq: Items carry options
        grid_columns: 4 for Idioms, 3 for Sentences / Voice, 0 otherwise
        title_font_size: Override for the title size
        right_to_left: Body runs right to left
    """

    section_id: str
    title: str
    units: tuple[PrintUnit, ...]
    total_marks: int = 0
    title_urdu: str = ""
    heading: Optional[str] = None
    marks_caption: str = ""
    is_mcq: bool = False
    grid_columns: int = 0
    title_font_size: Optional[int] = None
    right_to_left: bool = False

    @property
    def items(self) -> tuple[PrintItem, ...]:
        return tuple(item for unit in self.units for item in unit.items)

    @property
    def question_count(self) -> int:
        return sum(len(unit.items) for unit in self.units)


@dataclass(frozen=True)
class AnswerKeyEntry:
    """Answer key line; number is the paper-wide question position."""

    number: int
    question_id: str
    answer: str

    @property
    def label(self) -> str:
        return f"Q.{self.number}"

    def __str__(self) -> str:
        return f"{self.label} [{self.answer}]"


@dataclass(frozen=True)
class PaperHeader:
    """
    Identity block printed at the top of the paper.

    Attributes:
        institute_name: Falls back to "INSTITUTE NAME"
        address: Institute address line
        contact: Contact number, empty unless shown
        logo_path: Logo image, None unless shown
        class_level / subject / time_allowed / paper_code: Info row
        total_marks: Paper total
        chapters_display: "1, 2, 5"
    """

    class_level: str
    subject: str
    total_marks: int
    institute_name: str = "INSTITUTE NAME"
    address: str = ""
    contact: str = ""
    logo_path: Optional[str] = None
    time_allowed: str = "2:00 Hours"
    paper_code: str = ""
    chapters_display: str = ""

    def info_fields(self) -> list[tuple[str, str]]:
        """Label/value pairs of the info row, paper code only when set."""
        fields = [
            ("Class", self.class_level),
            ("Subject", self.subject),
            ("Time", self.time_allowed),
            ("Total Marks", str(self.total_marks)),
        ]
        if self.paper_code:
            fields.append(("Paper Code", self.paper_code))
        return fields


@dataclass(frozen=True)
class PaperDocument:
    """
    Complete projected paper.

    Attributes:
        header: Identity block
        sections: Printed sections (sections without questions omitted)
        answer_key: Entries in paper order
        medium: Language mode
        font_size / line_spacing: Text settings
        show_answer_key: Whether renderers append the key
        warnings: Non-fatal projection notes
    """

    header: PaperHeader
    sections: tuple[SectionBlock, ...]
    answer_key: tuple[AnswerKeyEntry, ...] = ()
    medium: Medium = Medium.ENGLISH
    font_size: int = 13
    line_spacing: int = 2
    show_answer_key: bool = False
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return self.question_count == 0

    @property
    def question_count(self) -> int:
        return sum(s.question_count for s in self.sections)

    @property
    def total_marks(self) -> int:
        return self.header.total_marks

    @property
    def placeholder(self) -> Optional[str]:
        """Text printed instead of the body when nothing was selected."""
        return NO_QUESTIONS_PLACEHOLDER if self.is_empty else None

    @property
    def question_ids(self) -> tuple[str, ...]:
        return tuple(item.question_id for s in self.sections for item in s.items)
