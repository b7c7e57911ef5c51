"""
Module: builder.selection.engine

Purpose:
    The selection engine. Holds, per section, the ordered slot-aligned list
    of chosen question ids and applies every user edit to it: manual toggle,
    slot-targeted swap, randomized auto-fill and clearing. Reconciles the
    lists when the question pool changes underneath them.

Key Functions:
    - SelectionEngine.toggle(): Add/remove a question
    - SelectionEngine.swap_slot(): Overwrite one slot
    - SelectionEngine.auto_fill(): Randomized, constraint-respecting fill
    - SelectionEngine.clear(): Empty a section
    - SelectionEngine.reconcile(): Drop picks invalidated by a new pool

Key Classes:
    - SelectionEngine: Mutable per-session selection state
    - SelectionOutcome: Result of an edit (never an exception)

Algorithm (auto-fill):
    1. Walk the section's slots in order (unit by unit, part by part; for
       sliced MCQ pools, part block by part block)
    2. Filter the pool by the slot's effective type and chapter whitelist,
       excluding ids already used in the section
    3. Draw uniformly at random from what remains; leave the slot empty
       when nothing remains

Dependencies:
    - random (std): Injected random source
    - examgen_toolkit.core.models: Section, Question, SlotRef, PlacedQuestion
    - builder.loading.repository: QuestionRepository
    - builder.selection.constraints: Slot checks

Used By:
    - builder.controller
    - session.authoring.AuthoringSession
"""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from examgen_toolkit.builder.loading.repository import QuestionRepository
from examgen_toolkit.core.models import PlacedQuestion, Question, Section, SlotRef

from .constraints import slot_accepts, slot_candidates
from .resolver import complete_units

logger = logging.getLogger(__name__)

Slots = List[Optional[str]]


class SelectionOutcome(Enum):
    """Result of a selection edit. Policy violations are outcomes, not errors."""

    ADDED = "added"
    REMOVED = "removed"
    REPLACED = "replaced"
    CAPACITY_REACHED = "capacity_reached"
    DUPLICATE = "duplicate"
    INELIGIBLE = "ineligible"
    OUT_OF_RANGE = "out_of_range"
    UNKNOWN_SECTION = "unknown_section"
    UNKNOWN_QUESTION = "unknown_question"

    @property
    def ok(self) -> bool:
        return self in (SelectionOutcome.ADDED, SelectionOutcome.REMOVED, SelectionOutcome.REPLACED)


def _trim(slots: Slots) -> Slots:
    while slots and slots[-1] is None:
        slots.pop()
    return slots


class SelectionEngine:
    """
    Per-session selection state over a fixed list of sections.

    Each section owns a list of ``Optional[str]`` aligned to its slots:
    index i is slot i of the section, None marks an empty slot and
    trailing empty slots are trimmed.

    Invariants (hold after every public call):
        - no question id appears twice in one section's list
        - len(list) <= section.capacity
        - every id sits in a slot whose type and chapter whitelist it
          satisfies

    Attributes:
        repository: Current question pool
        subject_is_english: Type-matching mode
        swapping: Slot currently targeted by a swap, if any

    Example:
        >>> engine = SelectionEngine(pattern.sections, repo, rng=random.Random(1))
        >>> engine.auto_fill()
        >>> engine.selected_ids("s1")
        ['q3', 'q1']
    """

    def __init__(
        self,
        sections: Sequence[Section],
        repository: QuestionRepository,
        *,
        subject_is_english: bool = False,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._sections: Dict[str, Section] = {s.id: s for s in sections}
        self._selections: Dict[str, Slots] = {s.id: [] for s in sections}
        self.repository = repository
        self.subject_is_english = subject_is_english
        self._rng = rng if rng is not None else random.Random()
        self.swapping: Optional[SlotRef] = None

    # ─────────────────────────────────────────────────────────────────────────
    # Query Methods
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def sections(self) -> tuple[Section, ...]:
        return tuple(self._sections.values())

    def section(self, section_id: str) -> Optional[Section]:
        return self._sections.get(section_id)

    @property
    def selections(self) -> Dict[str, Slots]:
        """Copy of the slot-aligned selection per section."""
        return {sid: list(slots) for sid, slots in self._selections.items()}

    def selection(self, section_id: str) -> Slots:
        return list(self._selections.get(section_id, ()))

    def selected_ids(self, section_id: str) -> List[str]:
        """Chosen ids of a section in slot order, empty slots skipped."""
        return [qid for qid in self._selections.get(section_id, ()) if qid is not None]

    def filled_count(self, section_id: str) -> int:
        return len(self.selected_ids(section_id))

    @property
    def total_selected(self) -> int:
        return sum(self.filled_count(sid) for sid in self._selections)

    def complete_units(self, section_id: str) -> int:
        section = self._sections.get(section_id)
        if section is None:
            return 0
        return complete_units(section, self._selections[section_id])

    def is_selected(self, question_id: str, section_id: str) -> bool:
        return question_id in self._selections.get(section_id, ())

    def slot_ref(self, section_id: str, index: int) -> Optional[SlotRef]:
        """
        Describe slot ``index`` of a section.

        Returns:
            SlotRef with the effective type and whitelist, or None when the
            section is unknown or the index is outside its capacity
        """
        section = self._sections.get(section_id)
        if section is None:
            return None
        position = section.slot_position(index)
        if position is None:
            return None
        part = section.sub_parts[position[1]] if section.has_sub_parts else None
        return SlotRef(
            section_id=section_id,
            unit_index=position[0],
            part_index=position[1],
            slot_index=index,
            type=section.slot_type(part),
            specific_chapters=section.slot_chapters(part),
        )

    def slots(self, section_id: str) -> List[SlotRef]:
        """Every slot of a section, in order."""
        section = self._sections.get(section_id)
        if section is None:
            return []
        return [self.slot_ref(section_id, i) for i in range(section.capacity)]

    def accepts(self, slot: SlotRef, question: Question) -> bool:
        return slot_accepts(question, slot, self.repository, self.subject_is_english)

    def candidates_for_slot(self, section_id: str, unit_index: int, part_index: int) -> List[Question]:
        """
        Questions that could be swapped into a slot.

        Excludes every id already used in the section, including the
        slot's current occupant.
        """
        section = self._sections.get(section_id)
        if section is None:
            return []
        index = section.slot_index(unit_index, part_index)
        if index is None:
            return []
        used = set(self.selected_ids(section_id))
        return slot_candidates(self.slot_ref(section_id, index), self.repository, self.subject_is_english, used)

    def cross_section_duplicates(self) -> Dict[str, List[str]]:
        """
        Question ids used in more than one section.

        Returns:
            Map of question id -> section ids, for ids used more than once
        """
        owners: Dict[str, List[str]] = {}
        for section_id in self._sections:
            for qid in self.selected_ids(section_id):
                owners.setdefault(qid, []).append(section_id)
        return {qid: sids for qid, sids in owners.items() if len(sids) > 1}

    def placed_questions(self) -> List[PlacedQuestion]:
        """
        Resolve the selection to embedded questions in paper order.

        Ids no longer present in the pool are skipped.
        """
        placed: List[PlacedQuestion] = []
        for section_id, slots in self._selections.items():
            for index, qid in enumerate(slots):
                if qid is None:
                    continue
                question = self.repository.get(qid)
                if question is None:
                    logger.warning(f"Selected question {qid} missing from pool; skipped")
                    continue
                placed.append(PlacedQuestion(question, section_id, index))
        return placed

    # ─────────────────────────────────────────────────────────────────────────
    # Edit Operations
    # ─────────────────────────────────────────────────────────────────────────

    def toggle(self, question_id: str, section_id: str) -> SelectionOutcome:
        """
        Add a question to a section, or remove it if already there.

        Adding places the question in the first empty slot whose
        constraint it satisfies. Removing empties its slot; flat sections
        close the gap instead.

        Returns:
            ADDED, REMOVED, CAPACITY_REACHED, INELIGIBLE,
            UNKNOWN_SECTION or UNKNOWN_QUESTION
        """
        section = self._sections.get(section_id)
        if section is None:
            return SelectionOutcome.UNKNOWN_SECTION
        slots = self._selections[section_id]

        if question_id in slots:
            self._remove(section, question_id)
            logger.debug(f"Removed {question_id} from {section_id}")
            return SelectionOutcome.REMOVED

        question = self.repository.get(question_id)
        if question is None:
            return SelectionOutcome.UNKNOWN_QUESTION
        if self.filled_count(section_id) >= section.capacity:
            logger.debug(f"Section {section_id} at capacity ({section.capacity})")
            return SelectionOutcome.CAPACITY_REACHED

        for index in range(section.capacity):
            if index < len(slots) and slots[index] is not None:
                continue
            if self.accepts(self.slot_ref(section_id, index), question):
                self._place(section_id, index, question_id)
                logger.debug(f"Added {question_id} to {section_id}[{index}]")
                return SelectionOutcome.ADDED

        return SelectionOutcome.INELIGIBLE

    def swap_slot(
        self,
        section_id: str,
        unit_index: int,
        part_index: int,
        question_id: str,
    ) -> SelectionOutcome:
        """
        Put a question into one specific slot, replacing its occupant.

        Unit sections address slot ``unit_index * parts_per_question +
        part_index``; sliced MCQ pools address position ``unit_index``
        inside the part's block. The list is extended with empty slots if
        it is shorter than the target index.

        Returns:
            REPLACED, DUPLICATE (id used elsewhere in the section),
            INELIGIBLE, OUT_OF_RANGE, UNKNOWN_SECTION or UNKNOWN_QUESTION
        """
        section = self._sections.get(section_id)
        if section is None:
            return SelectionOutcome.UNKNOWN_SECTION
        index = section.slot_index(unit_index, part_index)
        if index is None:
            return SelectionOutcome.OUT_OF_RANGE
        question = self.repository.get(question_id)
        if question is None:
            return SelectionOutcome.UNKNOWN_QUESTION

        slots = self._selections[section_id]
        if question_id in slots:
            if slots.index(question_id) == index:
                return SelectionOutcome.REPLACED
            return SelectionOutcome.DUPLICATE
        if not self.accepts(self.slot_ref(section_id, index), question):
            return SelectionOutcome.INELIGIBLE

        previous = slots[index] if index < len(slots) else None
        self._place(section_id, index, question_id)
        if self.swapping is not None and self.swapping.section_id == section_id and self.swapping.slot_index == index:
            self.swapping = None
        logger.debug(f"Swapped {section_id}[{index}]: {previous} -> {question_id}")
        return SelectionOutcome.REPLACED

    def begin_swap(self, section_id: str, unit_index: int, part_index: int) -> Optional[SlotRef]:
        """Point the swap cursor at a slot; returns the slot or None if invalid."""
        section = self._sections.get(section_id)
        index = section.slot_index(unit_index, part_index) if section is not None else None
        self.swapping = self.slot_ref(section_id, index) if index is not None else None
        return self.swapping

    def cancel_swap(self) -> None:
        self.swapping = None

    def complete_swap(self, question_id: str) -> SelectionOutcome:
        """Swap a question into the slot chosen with begin_swap()."""
        if self.swapping is None:
            return SelectionOutcome.OUT_OF_RANGE
        slot = self.swapping
        return self.swap_slot(slot.section_id, slot.unit_index, slot.part_index, question_id)

    def clear(self, section_id: str) -> SelectionOutcome:
        if section_id not in self._selections:
            return SelectionOutcome.UNKNOWN_SECTION
        self._selections[section_id] = []
        if self.swapping is not None and self.swapping.section_id == section_id:
            self.swapping = None
        return SelectionOutcome.REMOVED

    def clear_all(self) -> None:
        for section_id in self._selections:
            self._selections[section_id] = []
        self.swapping = None

    def auto_fill(
        self,
        section_ids: Optional[Iterable[str]] = None,
        *,
        replace: bool = True,
    ) -> Dict[str, int]:
        """
        Fill sections with random, constraint-respecting picks.

        Each section is filled independently; duplicates are prevented
        within a section only.

        Args:
            section_ids: Sections to fill (None = all, in paper order)
            replace: Discard existing picks first; when False only empty
                slots are filled and manual picks are kept

        Returns:
            Map of section id -> number of slots filled by this call
        """
        targets = list(section_ids) if section_ids is not None else list(self._sections)
        filled: Dict[str, int] = {}

        for section_id in targets:
            section = self._sections.get(section_id)
            if section is None:
                logger.warning(f"auto_fill: unknown section {section_id}")
                continue

            slots: Slots = [] if replace else list(self._selections[section_id])
            slots.extend([None] * (section.capacity - len(slots)))
            used = {qid for qid in slots if qid is not None}
            added = 0

            for index in range(section.capacity):
                if slots[index] is not None:
                    continue
                candidates = slot_candidates(
                    self.slot_ref(section_id, index), self.repository, self.subject_is_english, used,
                )
                if not candidates:
                    continue
                pick = self._rng.choice(candidates)
                slots[index] = pick.id
                used.add(pick.id)
                added += 1

            self._selections[section_id] = _trim(slots)
            filled[section_id] = added

            empty = section.capacity - len(used)
            if empty > 0:
                logger.warning(
                    f"Section {section_id} under-filled: {empty} of {section.capacity} slots left empty"
                )
            else:
                logger.debug(f"Section {section_id} filled ({section.capacity} slots)")

        if self.swapping is not None and self.swapping.section_id in filled:
            self.swapping = None
        logger.info(f"Auto-filled {sum(filled.values())} slots across {len(filled)} sections")
        return filled

    def reconcile(self, repository: Optional[QuestionRepository] = None) -> int:
        """
        Re-check every pick against the (new) pool.

        Picks whose question left the pool, or whose slot no longer
        accepts them, are dropped.

        Args:
            repository: New pool; None re-checks against the current one

        Returns:
            Number of picks dropped
        """
        if repository is not None:
            self.repository = repository

        dropped = 0
        for section_id, section in self._sections.items():
            for qid in list(self._selections[section_id]):
                if qid is None:
                    continue
                slots = self._selections[section_id]
                index = slots.index(qid)
                question = self.repository.get(qid)
                if question is None or not self.accepts(self.slot_ref(section_id, index), question):
                    self._remove(section, qid)
                    dropped += 1

        if dropped:
            logger.info(f"Reconcile dropped {dropped} picks no longer in the pool")
        return dropped

    # ─────────────────────────────────────────────────────────────────────────
    # Factory Methods
    # ─────────────────────────────────────────────────────────────────────────

    @classmethod
    def from_placements(
        cls,
        sections: Sequence[Section],
        repository: QuestionRepository,
        placements: Iterable[PlacedQuestion],
        *,
        subject_is_english: bool = False,
        rng: Optional[random.Random] = None,
    ) -> "SelectionEngine":
        """
        Rebuild selection state from placed questions (e.g. a saved paper).

        Placements carrying a slot index return to that slot; others take
        the first free slot of their section that accepts them. Placements
        for unknown sections, repeated ids, slots whose type or chapter
        whitelist rejects the question and overflow beyond capacity are
        skipped.
        """
        engine = cls(sections, repository, subject_is_english=subject_is_english, rng=rng)
        for placed in placements:
            section = engine._sections.get(placed.section_id)
            if section is None:
                logger.warning(f"Placement for unknown section {placed.section_id} skipped")
                continue
            slots = engine._selections[section.id]
            if placed.question_id in slots:
                continue

            question = repository.get(placed.question_id) or placed.question
            free = [i for i in range(section.capacity) if i >= len(slots) or slots[i] is None]
            if placed.slot_index in free:
                free = [placed.slot_index]
            index = next((i for i in free if engine.accepts(engine.slot_ref(section.id, i), question)), None)
            if index is None:
                logger.warning(f"No slot in {section.id} accepts {placed.question_id}; not restored")
                continue
            engine._place(section.id, index, placed.question_id)
        return engine

    # ─────────────────────────────────────────────────────────────────────────
    # Internal
    # ─────────────────────────────────────────────────────────────────────────

    def _place(self, section_id: str, index: int, question_id: str) -> None:
        slots = self._selections[section_id]
        if index >= len(slots):
            slots.extend([None] * (index + 1 - len(slots)))
        slots[index] = question_id

    def _remove(self, section: Section, question_id: str) -> None:
        slots = self._selections[section.id]
        if section.parts_per_question == 1 and not section.is_sliced_pool:
            slots.remove(question_id)
        else:
            slots[slots.index(question_id)] = None
        _trim(slots)

    def __repr__(self) -> str:
        return f"SelectionEngine(sections={len(self._sections)}, selected={self.total_selected})"
