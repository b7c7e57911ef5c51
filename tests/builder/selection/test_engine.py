"""
Unit tests for SelectionEngine.

Covers manual toggling, slot swaps, auto-fill and the state invariants
(no duplicates, capacity bound, type and chapter correctness).
"""

import random

import pytest

from examgen_toolkit.builder.loading import QuestionRepository
from examgen_toolkit.builder.selection import (
    SelectionEngine,
    SelectionOutcome,
    matches_type,
    resolve_effective_sections,
)
from examgen_toolkit.core.models import PlacedQuestion, Section, SectionPart


@pytest.fixture
def engine(pattern, repository, rng):
    return SelectionEngine(pattern.sections, repository, rng=rng)


def _assert_invariants(engine: SelectionEngine) -> None:
    for section in engine.sections:
        slots = engine.selection(section.id)
        chosen = [qid for qid in slots if qid is not None]
        assert len(chosen) == len(set(chosen)), f"duplicate in {section.id}"
        assert len(slots) <= section.capacity
        for index, qid in enumerate(slots):
            if qid is None:
                continue
            slot = engine.slot_ref(section.id, index)
            question = engine.repository.get(qid)
            assert matches_type(question.type, slot.type, engine.subject_is_english)
            if slot.specific_chapters:
                chapter = engine.repository.chapter_of(question)
                assert chapter.matches_numbers(slot.specific_chapters)


class TestAutoFill:
    """Tests for SelectionEngine.auto_fill()."""

    def test_auto_fill_when_alternating_pool_then_two_mcq_and_four_short(self, pattern, make_question):
        # Arrange
        pool = [
            make_question("q1", "MCQ"), make_question("q2", "SHORT"),
            make_question("q3", "MCQ"), make_question("q4", "SHORT"),
            make_question("q5", "SHORT"), make_question("q6", "SHORT"),
        ]
        engine = SelectionEngine(pattern.sections, QuestionRepository(pool), rng=random.Random(1))

        # Act
        engine.auto_fill()
        effective = resolve_effective_sections(pattern.sections, engine.selections)

        # Assert
        assert sorted(engine.selected_ids("s-mcq")) == ["q1", "q3"]
        assert sorted(engine.selected_ids("s-short")) == ["q2", "q4", "q5", "q6"]
        short = next(s for s in effective if s.id == "s-short")
        assert (short.question_count, short.attempt_count) == (2, 1)

    def test_auto_fill_when_pool_thin_then_under_fills_without_error(self, pattern, make_question):
        engine = SelectionEngine(pattern.sections, QuestionRepository([make_question("only", "SHORT")]))

        filled = engine.auto_fill()

        assert filled == {"s-mcq": 0, "s-short": 1}
        assert engine.selection("s-short") == ["only"]
        assert engine.selection("s-mcq") == []

    def test_auto_fill_when_candidates_available_then_size_is_min_of_slots_and_pool(self, engine):
        engine.auto_fill()

        assert engine.filled_count("s-mcq") == 2
        assert engine.filled_count("s-short") == 4
        _assert_invariants(engine)

    def test_auto_fill_when_same_seed_then_same_selection(self, pattern, repository):
        first = SelectionEngine(pattern.sections, repository, rng=random.Random(42))
        second = SelectionEngine(pattern.sections, repository, rng=random.Random(42))

        first.auto_fill()
        second.auto_fill()

        assert first.selections == second.selections

    def test_auto_fill_when_chapter_whitelist_then_only_matching_chapters(self, repository, rng):
        section = Section(id="s", type="SHORT", question_count=3, attempt_count=3, marks_per_question=2,
                          specific_chapters=("2",))
        engine = SelectionEngine([section], repository, rng=rng)

        engine.auto_fill()

        assert sorted(engine.selected_ids("s")) == ["s2", "s5", "s8"]
        _assert_invariants(engine)

    def test_auto_fill_when_part_type_overrides_then_slots_typed_per_part(self, repository, rng):
        section = Section(
            id="mixed", type="SHORT", question_count=2, attempt_count=2, marks_per_question=3,
            sub_parts=(SectionPart("a", "(a)", 1, type="MCQ"), SectionPart("b", "(b)", 2)),
        )
        engine = SelectionEngine([section], repository, rng=rng)

        engine.auto_fill()

        types = [repository.get(qid).type for qid in engine.selection("mixed")]
        assert types == ["MCQ", "SHORT", "MCQ", "SHORT"]

    def test_auto_fill_when_sliced_pool_then_blocks_filled_in_part_order(self, repository, rng):
        # Arrange
        section = Section(
            id="pool", type="MCQ", question_count=5, attempt_count=5, marks_per_question=1,
            sub_parts=(
                SectionPart("p1", "Part A", question_count=2, specific_chapters=("1",)),
                SectionPart("p2", "Part B", question_count=3),
            ),
        )
        engine = SelectionEngine([section], repository, rng=rng)

        # Act
        engine.auto_fill()

        # Assert
        slots = engine.selection("pool")
        assert len(slots) == 5
        assert sorted(slots[:2]) == ["m1", "m4"]
        assert not set(slots[2:]) & {"m1", "m4"}
        _assert_invariants(engine)

    def test_auto_fill_when_not_replacing_then_manual_picks_kept(self, engine):
        engine.toggle("s3", "s-short")

        engine.auto_fill(["s-short"], replace=False)

        assert engine.selection("s-short")[0] == "s3"
        assert engine.filled_count("s-short") == 4
        assert engine.selection("s-mcq") == []


class TestToggle:
    """Tests for SelectionEngine.toggle()."""

    def test_toggle_when_capacity_reached_then_no_op(self, engine):
        # Arrange
        engine.toggle("m1", "s-mcq")
        engine.toggle("m2", "s-mcq")

        # Act
        outcome = engine.toggle("m3", "s-mcq")

        # Assert
        assert outcome is SelectionOutcome.CAPACITY_REACHED
        assert outcome.ok is False
        assert engine.selection("s-mcq") == ["m1", "m2"]

    def test_toggle_when_selected_in_flat_section_then_removed_and_gap_closed(self, engine):
        engine.toggle("m1", "s-mcq")
        engine.toggle("m2", "s-mcq")

        outcome = engine.toggle("m1", "s-mcq")

        assert outcome is SelectionOutcome.REMOVED
        assert engine.selection("s-mcq") == ["m2"]

    def test_toggle_when_selected_in_compound_section_then_slot_emptied(self, engine):
        engine.auto_fill(["s-short"])
        removed = engine.selection("s-short")[1]

        engine.toggle(removed, "s-short")

        slots = engine.selection("s-short")
        assert slots[1] is None
        assert len(slots) == 4
        assert engine.complete_units("s-short") == 1

    def test_toggle_when_type_mismatch_then_ineligible(self, engine):
        assert engine.toggle("s1", "s-mcq") is SelectionOutcome.INELIGIBLE
        assert engine.selection("s-mcq") == []

    def test_toggle_when_unknown_ids_then_reported(self, engine):
        assert engine.toggle("nope", "s-mcq") is SelectionOutcome.UNKNOWN_QUESTION
        assert engine.toggle("m1", "nowhere") is SelectionOutcome.UNKNOWN_SECTION

    def test_toggle_when_used_in_other_section_then_still_added(self, mcq_section, repository):
        # Arrange
        second = Section(id="s-mcq2", type="MCQ", question_count=2, attempt_count=2, marks_per_question=1)
        engine = SelectionEngine([mcq_section, second], repository)
        engine.toggle("m1", "s-mcq")

        # Act
        outcome = engine.toggle("m1", "s-mcq2")

        # Assert
        assert outcome is SelectionOutcome.ADDED
        assert engine.cross_section_duplicates() == {"m1": ["s-mcq", "s-mcq2"]}

    def test_toggle_when_chapter_outside_section_whitelist_then_ineligible(self, repository):
        section = Section(id="s", type="SHORT", question_count=2, attempt_count=2, marks_per_question=2,
                          specific_chapters=("2",))
        engine = SelectionEngine([section], repository)

        refused = engine.toggle("s1", "s")
        added = engine.toggle("s2", "s")

        assert refused is SelectionOutcome.INELIGIBLE
        assert added is SelectionOutcome.ADDED
        assert engine.selection("s") == ["s2"]
        _assert_invariants(engine)

    def test_toggle_when_chapter_outside_part_whitelist_then_only_open_part_used(self, repository):
        # Arrange
        section = Section(
            id="c", type="SHORT", question_count=1, attempt_count=1, marks_per_question=5,
            sub_parts=(SectionPart("a", "(a)", 2, specific_chapters=("3",)), SectionPart("b", "(b)", 3)),
        )
        engine = SelectionEngine([section], repository)

        # Act
        first = engine.toggle("s1", "c")
        second = engine.toggle("s4", "c")

        # Assert
        assert first is SelectionOutcome.ADDED
        assert second is SelectionOutcome.INELIGIBLE
        assert engine.selection("c") == [None, "s1"]
        _assert_invariants(engine)


class TestSwap:
    """Tests for slot swaps."""

    def test_swap_slot_when_list_short_then_extended(self, engine):
        outcome = engine.swap_slot("s-short", 1, 1, "s2")

        assert outcome is SelectionOutcome.REPLACED
        assert engine.selection("s-short") == [None, None, None, "s2"]

    def test_swap_slot_when_id_elsewhere_in_section_then_duplicate(self, engine):
        engine.auto_fill(["s-short"])
        slots = engine.selection("s-short")

        outcome = engine.swap_slot("s-short", 0, 0, slots[3])

        assert outcome is SelectionOutcome.DUPLICATE
        assert engine.selection("s-short") == slots

    def test_swap_slot_when_outside_section_then_out_of_range(self, engine):
        assert engine.swap_slot("s-short", 2, 0, "s1") is SelectionOutcome.OUT_OF_RANGE
        assert engine.swap_slot("s-short", 0, 2, "s1") is SelectionOutcome.OUT_OF_RANGE

    def test_swap_slot_when_type_mismatch_then_ineligible(self, engine):
        assert engine.swap_slot("s-short", 0, 0, "m1") is SelectionOutcome.INELIGIBLE

    def test_begin_and_complete_swap_when_candidate_chosen_then_slot_replaced(self, engine):
        # Arrange
        engine.auto_fill(["s-short"])
        before = engine.selection("s-short")
        slot = engine.begin_swap("s-short", 0, 1)
        candidates = engine.candidates_for_slot("s-short", 0, 1)

        # Act
        outcome = engine.complete_swap(candidates[0].id)

        # Assert
        assert slot.slot_index == 1
        assert not {q.id for q in candidates} & set(before)
        assert outcome is SelectionOutcome.REPLACED
        assert engine.selection("s-short")[1] == candidates[0].id
        assert engine.swapping is None

    def test_complete_swap_when_no_slot_targeted_then_out_of_range(self, engine):
        engine.begin_swap("s-short", 0, 0)
        engine.cancel_swap()

        assert engine.complete_swap("s1") is SelectionOutcome.OUT_OF_RANGE

    def test_swap_slot_when_chapter_outside_section_whitelist_then_ineligible(self, repository):
        section = Section(id="s", type="SHORT", question_count=2, attempt_count=2, marks_per_question=2,
                          specific_chapters=("2",))
        engine = SelectionEngine([section], repository)

        outcome = engine.swap_slot("s", 0, 0, "s3")

        assert outcome is SelectionOutcome.INELIGIBLE
        assert engine.selection("s") == []
        _assert_invariants(engine)

    def test_swap_slot_when_chapter_outside_part_whitelist_then_ineligible(self, repository):
        # Arrange
        section = Section(
            id="pool", type="MCQ", question_count=3, attempt_count=3, marks_per_question=1,
            sub_parts=(
                SectionPart("p1", "Part A", question_count=2, specific_chapters=("1",)),
                SectionPart("p2", "Part B", question_count=1),
            ),
        )
        engine = SelectionEngine([section], repository)

        # Act
        refused = engine.swap_slot("pool", 0, 0, "m2")
        placed = engine.swap_slot("pool", 0, 0, "m4")
        open_part = engine.swap_slot("pool", 0, 1, "m2")

        # Assert
        assert refused is SelectionOutcome.INELIGIBLE
        assert placed is SelectionOutcome.REPLACED
        assert open_part is SelectionOutcome.REPLACED
        assert engine.selection("pool") == ["m4", None, "m2"]
        _assert_invariants(engine)


class TestStateManagement:
    """Tests for clearing, reconciling and restoring state."""

    def test_clear_when_section_filled_then_empty(self, engine):
        engine.auto_fill()

        assert engine.clear("s-mcq") is SelectionOutcome.REMOVED
        assert engine.selection("s-mcq") == []
        assert engine.filled_count("s-short") == 4

    def test_clear_all_when_filled_then_every_section_empty(self, engine):
        engine.auto_fill()

        engine.clear_all()

        assert engine.total_selected == 0

    def test_reconcile_when_pool_loses_questions_then_picks_dropped(self, engine, questions, chapters):
        # Arrange
        engine.toggle("m1", "s-mcq")
        engine.toggle("m2", "s-mcq")
        smaller = QuestionRepository([q for q in questions if q.id != "m1"], chapters)

        # Act
        dropped = engine.reconcile(smaller)

        # Assert
        assert dropped == 1
        assert engine.selection("s-mcq") == ["m2"]

    def test_from_placements_when_slots_recorded_then_restored_in_place(self, pattern, repository):
        placements = [
            PlacedQuestion(repository.get("s1"), "s-short", 2),
            PlacedQuestion(repository.get("s2"), "s-short", 3),
            PlacedQuestion(repository.get("m1"), "s-mcq", None),
            PlacedQuestion(repository.get("m2"), "gone", 0),
        ]

        engine = SelectionEngine.from_placements(pattern.sections, repository, placements)

        assert engine.selection("s-short") == [None, None, "s1", "s2"]
        assert engine.selection("s-mcq") == ["m1"]

    def test_from_placements_when_slot_rejects_question_then_skipped(self, repository):
        section = Section(
            id="c", type="SHORT", question_count=1, attempt_count=1, marks_per_question=5,
            sub_parts=(SectionPart("a", "(a)", 2, specific_chapters=("3",)), SectionPart("b", "(b)", 3)),
        )
        placements = [
            PlacedQuestion(repository.get("s1"), "c", 0),
            PlacedQuestion(repository.get("m3"), "c", 1),
            PlacedQuestion(repository.get("s3"), "c", 0),
        ]

        engine = SelectionEngine.from_placements([section], repository, placements)

        assert engine.selection("c") == ["s3"]
        _assert_invariants(engine)

    def test_placed_questions_when_filled_then_paper_order_with_slots(self, engine):
        engine.toggle("m2", "s-mcq")
        engine.swap_slot("s-short", 0, 1, "s1")

        placed = engine.placed_questions()

        assert [(p.question_id, p.section_id, p.slot_index) for p in placed] == [
            ("m2", "s-mcq", 0),
            ("s1", "s-short", 1),
        ]
