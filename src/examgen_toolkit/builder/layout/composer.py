"""
Module: builder.layout.composer

Purpose:
    Project effective sections and resolved questions into a PaperDocument:
    groups questions into print units, assigns running counters, computes
    marks captions and the answer key. Knows nothing about pages or fonts.

Key Functions:
    - project_paper(): Main entry point
    - build_header(): PaperHeader from institute profile and paper fields
    - marks_caption(): "(attempt x marks = total)" caption

Rules:
    - MCQ sections print flat numbered items with options; the counter
      runs across every MCQ section of the paper. MCQ sections with
      sub-parts are cut into consecutive part blocks, each under its
      part label.
    - Other sections with sub-parts print one numbered unit per complete
      group of parts_per_question questions; incomplete trailing units
      are not printed.
    - Other flat sections print one numbered item per question, with a
      section-local counter (roman for Idioms, Sentences and Voice).

Dependencies:
    - examgen_toolkit.core.models: Section, PlacedQuestion, InstituteProfile
    - common.text / common.subjects: Urdu detection, roman numerals

Used By:
    - builder.controller.compile_paper
    - session.authoring.AuthoringSession.compile
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from examgen_toolkit.common.subjects import is_english_subject
from examgen_toolkit.common.text import is_urdu_text, to_roman
from examgen_toolkit.common.titles import URDU_QUESTION_PREFIX
from examgen_toolkit.core.models import (
    InstituteProfile,
    Medium,
    PlacedQuestion,
    Question,
    Section,
)

from .config import LayoutConfig
from .models import (
    AnswerKeyEntry,
    OptionPair,
    PaperDocument,
    PaperHeader,
    PrintItem,
    PrintUnit,
    SectionBlock,
)

logger = logging.getLogger(__name__)

DEFAULT_INSTITUTE_NAME = "INSTITUTE NAME"

# Section types printed as compact grids, with their column count
GRID_COLUMNS = {"IDIOMS": 4, "SENTENCES": 3, "VOICE": 3}
PASSAGE_TYPE = "PASSAGE"


# ─────────────────────────────────────────────────────────────────────────────
# Header
# ─────────────────────────────────────────────────────────────────────────────

def build_header(
    *,
    class_level: str,
    subject: str,
    total_marks: int = 0,
    institute: Optional[InstituteProfile] = None,
    time_allowed: str = "2:00 Hours",
    paper_code: str = "",
    chapters_display: str = "",
) -> PaperHeader:
    """
    Build the paper header.

    Contact and logo are only carried when the institute profile asks
    for them to be shown.
    """
    institute = institute or InstituteProfile()
    return PaperHeader(
        class_level=class_level,
        subject=subject,
        total_marks=total_marks,
        institute_name=institute.name or DEFAULT_INSTITUTE_NAME,
        address=institute.address,
        contact=institute.contact_number if institute.show_contact else "",
        logo_path=institute.logo_path if institute.show_logo else None,
        time_allowed=time_allowed,
        paper_code=paper_code,
        chapters_display=chapters_display,
    )


def marks_caption(section: Section, urdu_layout: bool = False) -> str:
    """
    Section marks caption.

    Example:
        >>> marks_caption(Section("s", "SHORT", attempt_count=5, marks_per_question=2))
        '(5 x 2 = 10)'
    """
    if section.hide_section_marks:
        return ""
    total = section.total_marks
    if urdu_layout:
        return f"({total} = {section.marks_per_question} × {section.attempt_count})"
    return f"({section.attempt_count} x {section.marks_per_question} = {total})"


# ─────────────────────────────────────────────────────────────────────────────
# Projection
# ─────────────────────────────────────────────────────────────────────────────

def project_paper(
    sections: Sequence[Section],
    questions: Sequence[PlacedQuestion],
    *,
    header: PaperHeader,
    config: Optional[LayoutConfig] = None,
) -> PaperDocument:
    """
    Project effective sections and placed questions into a document.

    Args:
        sections: Effective sections in paper order
        questions: Placed questions; slot_index orders them within a
            section, insertion order is used where it is missing
        header: Header fields; total_marks is recomputed from sections
        config: Medium, font size, spacing and answer key switch

    Returns:
        PaperDocument; sections without questions are omitted and the
        document is empty (placeholder shown) when nothing was placed

    Example:
        >>> doc = project_paper(sections, placed, header=header)
        >>> doc.total_marks
        30
    """
    config = config or LayoutConfig()
    medium = config.medium
    english_subject = is_english_subject(header.subject)
    known = {s.id for s in sections}
    warnings: List[str] = []

    stray = [pq.question_id for pq in questions if pq.section_id not in known]
    if stray:
        warnings.append(f"{len(stray)} question(s) target sections not on the paper")
        logger.warning(f"Ignoring questions for unknown sections: {stray}")

    blocks: List[SectionBlock] = []
    mcq_counter = 0
    previous_heading: Optional[str] = None

    for index, section in enumerate(sections):
        heading = section.heading
        show_heading = bool(heading) and heading != "None" and (index == 0 or heading != previous_heading)
        previous_heading = heading

        slots = _slot_map(section, questions)
        if not slots:
            logger.debug(f"Section {section.id} has no questions; skipped")
            continue

        if section.is_mcq:
            units, mcq_counter = _mcq_units(section, slots, medium, mcq_counter)
        elif section.has_sub_parts:
            units, dropped = _compound_units(section, slots, medium)
            if dropped:
                warnings.append(f"Section {section.id}: {dropped} question(s) in incomplete units not printed")
                logger.warning(f"Section {section.id}: dropped {dropped} question(s) from incomplete units")
        else:
            units = _flat_units(section, slots, medium, english_subject)

        if not units:
            continue

        blocks.append(_section_block(section, units, medium, heading if show_heading else None, slots))

    total_marks = sum(s.total_marks for s in sections)
    header = replace(header, total_marks=total_marks)
    answer_key = _answer_key(blocks, questions)

    document = PaperDocument(
        header=header,
        sections=tuple(blocks),
        answer_key=answer_key,
        medium=medium,
        font_size=config.font_size,
        line_spacing=config.line_spacing,
        show_answer_key=config.show_answer_key,
        warnings=tuple(warnings),
    )
    logger.info(
        f"Projected paper: {len(blocks)} sections, {document.question_count} questions, "
        f"{total_marks} marks"
    )
    return document


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _slot_map(section: Section, questions: Sequence[PlacedQuestion]) -> Dict[int, Question]:
    """
    Slot index -> question for one section.

    Placements without a slot index (or colliding with a taken one) take
    the next index after the highest used so far.
    """
    slots: Dict[int, Question] = {}
    cursor = 0
    for placed in questions:
        if placed.section_id != section.id:
            continue
        index = placed.slot_index
        if index is None or index in slots:
            index = max(cursor, max(slots, default=-1) + 1)
        slots[index] = placed.question
        cursor = index + 1
    return dict(sorted(slots.items()))


def _texts(question: Question, medium: Medium) -> Tuple[str, str, bool]:
    """Primary text, Urdu column text and direction for a medium."""
    if medium is Medium.URDU:
        return question.text_urdu or question.text, "", True
    if medium is Medium.BOTH:
        return question.text, question.text_urdu or question.text, False
    return question.text, "", is_urdu_text(question.text)


def _options(question: Question, medium: Medium) -> tuple[OptionPair, ...]:
    pairs = []
    for i, (english, urdu) in enumerate(question.option_pairs):
        letter = chr(ord("a") + i)
        if medium is Medium.URDU:
            pairs.append(OptionPair(letter, urdu or english))
        elif medium is Medium.BOTH:
            pairs.append(OptionPair(letter, english, urdu))
        else:
            pairs.append(OptionPair(letter, english))
    return tuple(pairs)


def _mcq_item(question: Question, number: int, medium: Medium) -> PrintItem:
    text, text_urdu, rtl = _texts(question, medium)
    return PrintItem(
        question_id=question.id,
        text=text,
        text_urdu=text_urdu,
        label=f"{number}.",
        options=_options(question, medium),
        right_to_left=rtl,
    )


def _mcq_units(
    section: Section,
    slots: Dict[int, Question],
    medium: Medium,
    counter: int,
) -> Tuple[List[PrintUnit], int]:
    """MCQ items numbered by the paper-wide counter; sliced pools get part blocks."""
    units: List[PrintUnit] = []

    if not section.has_sub_parts:
        items = []
        for question in slots.values():
            counter += 1
            items.append(_mcq_item(question, counter, medium))
        units.append(PrintUnit(items=tuple(items)))
        return units, counter

    for part, start in zip(section.sub_parts, section.part_starts):
        block = [q for i, q in slots.items() if start <= i < start + part.question_count]
        if not block:
            continue
        items = []
        for question in block:
            counter += 1
            items.append(_mcq_item(question, counter, medium))
        units.append(PrintUnit(items=tuple(items), caption=part.label))
    return units, counter


def _skip_unit_numbering(section: Section) -> bool:
    title = section.title.strip()
    return section.hide_main_numbering or title.startswith(("Q", URDU_QUESTION_PREFIX))


def _compound_units(
    section: Section,
    slots: Dict[int, Question],
    medium: Medium,
) -> Tuple[List[PrintUnit], int]:
    """
    One unit per complete group of parts.

    Returns:
        (units, number of placed questions left out because their unit
        was incomplete)
    """
    ppq = section.parts_per_question
    grid = GRID_COLUMNS.get(section.type.strip().upper(), 0) > 0
    passage = section.type.strip().upper() == PASSAGE_TYPE
    skip_numbering = _skip_unit_numbering(section)

    units: List[PrintUnit] = []
    dropped = 0
    counter = 0
    for unit_index in sorted({i // ppq for i in slots}):
        members = [slots.get(unit_index * ppq + p) for p in range(ppq)]
        if any(q is None for q in members):
            dropped += sum(1 for q in members if q is not None)
            continue

        counter += 1
        items = []
        for part_index, (part, question) in enumerate(zip(section.sub_parts, members)):
            text, text_urdu, rtl = _texts(question, medium)
            hide_label = part.is_alternative or section.hide_sub_part_numbering
            items.append(PrintItem(
                question_id=question.id,
                text=text,
                text_urdu=text_urdu,
                label="" if hide_label else part.label,
                marks=None if section.hide_sub_part_marks else part.marks,
                alternative_before=part.is_alternative and part_index > 0,
                right_to_left=rtl,
                centered=grid,
            ))
        units.append(PrintUnit(
            items=tuple(items),
            number_label="" if skip_numbering else f"{counter}.",
            questions_caption=passage,
        ))
    return units, dropped


def _counter_label(section_type: str, counter: int) -> str:
    kind = section_type.strip().upper()
    if kind == "IDIOMS":
        return f"{to_roman(counter)}."
    if kind in ("SENTENCES", "VOICE"):
        return f"({to_roman(counter)})"
    return f"{counter}."


def _flat_units(
    section: Section,
    slots: Dict[int, Question],
    medium: Medium,
    english_subject: bool,
) -> List[PrintUnit]:
    """One numbered item per question; marks shown for English, non-grid sections."""
    grid = GRID_COLUMNS.get(section.type.strip().upper(), 0) > 0
    show_marks = english_subject and not grid and not section.hide_sub_part_marks

    units = []
    for counter, question in enumerate(slots.values(), start=1):
        text, text_urdu, rtl = _texts(question, medium)
        units.append(PrintUnit(items=(PrintItem(
            question_id=question.id,
            text=text,
            text_urdu=text_urdu,
            label=_counter_label(section.type, counter),
            marks=section.marks_per_question if show_marks else None,
            right_to_left=rtl,
            centered=grid,
        ),)))
    return units


def _section_block(
    section: Section,
    units: List[PrintUnit],
    medium: Medium,
    heading: Optional[str],
    slots: Dict[int, Question],
) -> SectionBlock:
    if medium is Medium.URDU:
        title, title_urdu = section.title_urdu or section.title, ""
    elif medium is Medium.BOTH:
        title, title_urdu = section.title, section.title_urdu
    else:
        title, title_urdu = section.title, ""

    contains_urdu = any(is_urdu_text(q.text) for q in slots.values())
    return SectionBlock(
        section_id=section.id,
        title=title,
        title_urdu=title_urdu,
        units=tuple(units),
        total_marks=section.total_marks,
        heading=heading,
        marks_caption=marks_caption(section, urdu_layout=medium is Medium.URDU),
        is_mcq=section.is_mcq,
        grid_columns=GRID_COLUMNS.get(section.type.strip().upper(), 0),
        title_font_size=section.title_font_size,
        right_to_left=medium is Medium.URDU or (medium is Medium.ENGLISH and contains_urdu),
    )


def _answer_key(
    blocks: Sequence[SectionBlock],
    questions: Sequence[PlacedQuestion],
) -> tuple[AnswerKeyEntry, ...]:
    """Entries for printed questions with an answer, numbered by paper position."""
    by_id = {pq.question_id: pq.question for pq in questions}
    entries = []
    number = 0
    for block in blocks:
        for item in block.items:
            number += 1
            question = by_id.get(item.question_id)
            if question is not None and question.has_answer:
                entries.append(AnswerKeyEntry(number, question.id, question.correct_answer.strip()))
    return tuple(entries)
