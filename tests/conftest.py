import random
import sys
from pathlib import Path

import pytest

# Add src to sys.path so we can import examgen_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from examgen_toolkit.builder.loading import QuestionRepository  # noqa: E402
from examgen_toolkit.core.models import (  # noqa: E402
    Chapter,
    PaperPattern,
    Question,
    Section,
    SectionPart,
    Subtopic,
)


# Common test fixtures
@pytest.fixture
def make_question():
    """Factory for questions with sensible defaults."""

    def _make(qid: str, qtype: str = "SHORT", chapter_id: str = "ch1", **kwargs) -> Question:
        kwargs.setdefault("text", f"Question {qid}")
        return Question(id=qid, type=qtype, chapter_id=chapter_id, **kwargs)

    return _make


@pytest.fixture
def chapters():
    """Three numbered physics chapters; the first has two subtopics."""
    return [
        Chapter(
            id="ch1",
            name="Chapter 1: Motion",
            subtopics=(Subtopic("st-speed", "Speed"), Subtopic("st-vel", "Velocity")),
        ),
        Chapter(id="ch2", name="Chapter 2: Force"),
        Chapter(id="ch3", name="Chapter 3: Energy"),
    ]


@pytest.fixture
def questions(make_question):
    """Six MCQs and eight short questions spread over three chapters."""
    mcqs = [
        make_question(
            f"m{i}", "MCQ", f"ch{(i - 1) % 3 + 1}",
            text=f"Which unit is number {i}?",
            options=("metre", "second", "newton", "joule"),
            correct_answer="a",
        )
        for i in range(1, 7)
    ]
    shorts = [
        make_question(
            f"s{i}", "SHORT", f"ch{(i - 1) % 3 + 1}",
            text=f"Define quantity {i}.",
            subtopic="Speed" if i in (1, 4) else None,
        )
        for i in range(1, 9)
    ]
    return mcqs + shorts


@pytest.fixture
def repository(questions, chapters):
    return QuestionRepository(questions, chapters)


@pytest.fixture
def mcq_section():
    return Section(
        id="s-mcq", type="MCQ", title="Choose the correct answer.",
        question_count=2, attempt_count=2, marks_per_question=1,
    )


@pytest.fixture
def short_section():
    """Two compound units of parts (a) 2 marks and (b) 3 marks; attempt one."""
    return Section(
        id="s-short", type="SHORT", title="Answer the following.",
        question_count=2, attempt_count=1, marks_per_question=5,
        sub_parts=(SectionPart("a", "(a)", 2), SectionPart("b", "(b)", 3)),
    )


@pytest.fixture
def pattern(mcq_section, short_section):
    return PaperPattern(
        id="board-9",
        name="Board Pattern",
        sections=(mcq_section, short_section),
        subject="Physics",
        time_allowed="1:30 Hours",
    )


@pytest.fixture
def rng():
    return random.Random(7)
