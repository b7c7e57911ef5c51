"""
Module: questions

Purpose:
    Provides the Question, Chapter and Subtopic dataclasses - the content
    units the selection engine draws from. Questions are immutable and
    belong to exactly one chapter.

Key Functions:
    - Question.option_pairs: English/Urdu options paired by index
    - Chapter.matches_numbers(numbers): Mandatory-chapter test
    - to_dict() / from_dict(): Serialization on every model

Dependencies:
    - dataclasses (std)
    - functools (std)
    - common.chapters: chapter-number parsing

Used By:
    - builder.loading.repository.QuestionRepository
    - builder.selection.engine.SelectionEngine
    - builder.layout.composer
    - core.utils.serialization

Design Notes:
    Chapter numbers are an explicit field. Stores that only carry a
    display name get the number derived once, on construction, from the
    first run of digits in the name.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Any, Iterable, Optional

from examgen_toolkit.common.chapters import extract_chapter_number, normalise_chapter_numbers


@dataclass(frozen=True)
class Question:
    """
    A single bank question (immutable).

    Attributes:
        id: Unique identifier
        type: Author-defined category like "MCQ", "SHORT", "Verb"
        chapter_id: Owning chapter id
        text: English body
        text_urdu: Urdu body
        subtopic: Optional subtopic id or name tag
        options: English choices (choice-style types only)
        options_urdu: Urdu choices, same length as options when present
        correct_answer: Letter or free text for the answer key
        marks: Marks carried by the question

    Invariants:
        - id, type and chapter_id are non-empty
        - options_urdu is empty or pairs 1:1 with options

    Example:
        >>> q = Question(id="q1", type="MCQ", chapter_id="ch1",
        ...              text="2 + 2 = ?", options=("3", "4"), correct_answer="b")
        >>> q.has_options
        True
    """

    id: str
    type: str
    chapter_id: str
    text: str = ""
    text_urdu: str = ""
    subtopic: Optional[str] = None
    options: tuple[str, ...] = ()
    options_urdu: tuple[str, ...] = ()
    correct_answer: Optional[str] = None
    marks: int = 1

    def __post_init__(self) -> None:
        """Validate question on construction."""
        if not self.id:
            raise ValueError("question id must be non-empty")
        if not self.type or not self.type.strip():
            raise ValueError(f"question type must be non-empty: {self.id}")
        if not self.chapter_id:
            raise ValueError(f"chapter_id must be non-empty: {self.id}")
        if self.marks < 0:
            raise ValueError(f"marks must be non-negative: {self.marks}")
        if self.options_urdu and len(self.options_urdu) != len(self.options):
            raise ValueError(
                f"options_urdu must match options length for {self.id}: "
                f"{len(self.options_urdu)} != {len(self.options)}"
            )

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties (NEVER stored)
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def has_options(self) -> bool:
        return len(self.options) > 0

    @property
    def has_answer(self) -> bool:
        return bool(self.correct_answer and self.correct_answer.strip())

    @cached_property
    def option_pairs(self) -> tuple[tuple[str, str], ...]:
        """
        English and Urdu options paired by identical index.

        Returns:
            Tuple of (english, urdu) pairs; urdu is "" when absent
        """
        return tuple(
            (option, self.options_urdu[i] if self.options_urdu else "")
            for i, option in enumerate(self.options)
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "chapter_id": self.chapter_id,
            "text": self.text,
            "marks": self.marks,
        }
        if self.text_urdu:
            d["text_urdu"] = self.text_urdu
        if self.subtopic is not None:
            d["subtopic"] = self.subtopic
        if self.options:
            d["options"] = list(self.options)
        if self.options_urdu:
            d["options_urdu"] = list(self.options_urdu)
        if self.correct_answer is not None:
            d["correct_answer"] = self.correct_answer
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        return cls(
            id=str(data["id"]),
            type=str(data["type"]),
            chapter_id=str(data["chapter_id"]),
            text=data.get("text") or "",
            text_urdu=data.get("text_urdu") or "",
            subtopic=data.get("subtopic"),
            options=tuple(data.get("options") or ()),
            options_urdu=tuple(data.get("options_urdu") or ()),
            correct_answer=data.get("correct_answer"),
            marks=int(data.get("marks", 1)),
        )

    def __repr__(self) -> str:
        return f"Question({self.id!r}, type={self.type!r}, chapter={self.chapter_id!r})"


@dataclass(frozen=True)
class Subtopic:
    """Named subdivision of a chapter."""

    id: str
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "Subtopic":
        return cls(id=str(data["id"]), name=str(data.get("name", data["id"])))


@dataclass(frozen=True)
class Chapter:
    """
    A chapter grouping questions (immutable).

    Attributes:
        id: Unique identifier
        name: Display name, often carrying the chapter number
        subtopics: Ordered subtopics
        chapter_number: Explicit number; derived from name if omitted
        available_question_types: Types present in the chapter's bank

    Example:
        >>> Chapter(id="c7", name="Chapter 7: Waves").chapter_number
        7
    """

    id: str
    name: str
    subtopics: tuple[Subtopic, ...] = ()
    chapter_number: Optional[int] = None
    available_question_types: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate chapter and derive its number from the name when missing."""
        if not self.id:
            raise ValueError("chapter id must be non-empty")
        if self.chapter_number is None:
            object.__setattr__(self, "chapter_number", extract_chapter_number(self.name))
        elif self.chapter_number < 0:
            raise ValueError(f"chapter_number must be non-negative: {self.chapter_number}")

    # ─────────────────────────────────────────────────────────────────────────
    # Query Methods
    # ─────────────────────────────────────────────────────────────────────────

    def matches_numbers(self, numbers: Iterable[object]) -> bool:
        """
        Check whether this chapter is in a chapter-number whitelist.

        Args:
            numbers: Whitelist entries like "3" or 3

        Returns:
            True if chapter_number is in the whitelist; always False for
            unnumbered chapters
        """
        if self.chapter_number is None:
            return False
        return self.chapter_number in normalise_chapter_numbers(numbers)

    @property
    def subtopic_ids(self) -> tuple[str, ...]:
        return tuple(s.id for s in self.subtopics)

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "subtopics": [s.to_dict() for s in self.subtopics],
        }
        if self.chapter_number is not None:
            d["chapter_number"] = self.chapter_number
        if self.available_question_types:
            d["available_question_types"] = list(self.available_question_types)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "Chapter":
        number = data.get("chapter_number")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            subtopics=tuple(Subtopic.from_dict(s) for s in data.get("subtopics") or ()),
            chapter_number=int(number) if number is not None else None,
            available_question_types=tuple(data.get("available_question_types") or ()),
        )

    def __repr__(self) -> str:
        return f"Chapter({self.id!r}, {self.name!r}, number={self.chapter_number})"
