"""
Module: builder.selection.resolver

Purpose:
    Effective-pattern resolution. Once picking is finished, each section's
    counts are recomputed from the complete question units actually
    selected, so the paper shows what was chosen rather than the template.

Key Functions:
    - complete_units(): Fully filled units of a slot-aligned selection
    - resolve_effective_sections(): Pure function from sections + selections

Rules:
    - MCQ sections with sub-parts pass through unchanged.
    - Otherwise units = complete units; a copy is emitted with
      question_count = units and attempt_count = min(units, original).
    - Sections with no complete unit are dropped.

Used By:
    - builder.controller.compile_paper
    - session.authoring.AuthoringSession.finish
"""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence

from examgen_toolkit.core.models import Section

logger = logging.getLogger(__name__)


def complete_units(section: Section, slots: Sequence[Optional[str]]) -> int:
    """
    Count units whose every slot is filled.

    For a dense selection list this equals
    ``len(slots) // section.parts_per_question``.

    Args:
        section: Section owning the slots
        slots: Slot-aligned selection (None marks an empty slot)

    Returns:
        Number of complete units, bounded by question_count

    Example:
        >>> complete_units(two_part_section, ["a", "b", "c"])
        1
    """
    ppq = section.parts_per_question
    units = 0
    for unit in range(min(section.question_count, len(slots) // ppq)):
        chunk = slots[unit * ppq:(unit + 1) * ppq]
        if all(qid is not None for qid in chunk):
            units += 1
    return units


def resolve_effective_sections(
    sections: Sequence[Section],
    selections: Mapping[str, Sequence[Optional[str]]],
) -> List[Section]:
    """
    Derive the effective sections from the current selection.

    Never mutates the input sections; running it twice on the same
    selection yields equal results.

    Args:
        sections: Original pattern sections in paper order
        selections: Slot-aligned selection per section id

    Returns:
        Effective sections in paper order
    """
    effective: List[Section] = []
    for section in sections:
        if section.is_sliced_pool:
            effective.append(section)
            continue

        units = complete_units(section, selections.get(section.id, ()))
        if units == 0:
            logger.debug(f"Dropping section {section.id}: no complete units selected")
            continue
        effective.append(section.with_counts(units, min(units, section.attempt_count)))

    return effective
