"""
Unit tests for the core models: questions, chapters, sections, patterns
and saved papers.
"""

import pytest

from examgen_toolkit.core.models import (
    Chapter,
    Medium,
    PaperPattern,
    PlacedQuestion,
    Question,
    SavedPaper,
    Section,
    SectionPart,
)


class TestQuestion:
    """Tests for Question."""

    def test_init_when_type_blank_then_raises(self):
        with pytest.raises(ValueError, match="type must be non-empty"):
            Question(id="q1", type="  ", chapter_id="ch1")

    def test_init_when_urdu_options_mismatch_then_raises(self):
        with pytest.raises(ValueError, match="options_urdu"):
            Question(id="q1", type="MCQ", chapter_id="ch1", options=("a", "b"), options_urdu=("ا",))

    def test_option_pairs_when_no_urdu_then_empty_second_column(self):
        q = Question(id="q1", type="MCQ", chapter_id="ch1", options=("3", "4"))

        assert q.option_pairs == (("3", ""), ("4", ""))

    def test_has_answer_when_blank_answer_then_false(self):
        q = Question(id="q1", type="MCQ", chapter_id="ch1", correct_answer="  ")

        assert q.has_answer is False

    def test_from_dict_when_to_dict_output_then_equal(self):
        q = Question(
            id="q1", type="MCQ", chapter_id="ch1", text="2 + 2 = ?",
            options=("3", "4"), correct_answer="b", subtopic="Sums", marks=2,
        )

        assert Question.from_dict(q.to_dict()) == q


class TestChapter:
    """Tests for Chapter."""

    def test_init_when_number_missing_then_derived_from_name(self):
        assert Chapter(id="c7", name="Chapter 7: Waves").chapter_number == 7

    def test_init_when_explicit_number_then_kept(self):
        assert Chapter(id="c", name="Chapter 7", chapter_number=3).chapter_number == 3

    def test_matches_numbers_when_padded_whitelist_then_true(self):
        assert Chapter(id="c", name="Chapter 1").matches_numbers(["01"]) is True

    def test_matches_numbers_when_unnumbered_then_false(self):
        assert Chapter(id="c", name="Revision").matches_numbers(["1"]) is False


class TestSection:
    """Tests for Section slot geometry."""

    def test_capacity_when_compound_then_units_times_parts(self, short_section):
        assert short_section.parts_per_question == 2
        assert short_section.capacity == 4
        assert short_section.total_marks == 5

    def test_slot_position_when_compound_then_unit_and_part(self, short_section):
        assert short_section.slot_position(3) == (1, 1)
        assert short_section.slot_index(1, 0) == 2
        assert short_section.slot_position(4) is None

    def test_slot_geometry_when_sliced_pool_then_part_blocks(self):
        # Arrange
        section = Section(
            id="mcq", type="MCQ", question_count=5, attempt_count=5, marks_per_question=1,
            sub_parts=(
                SectionPart("p1", "Part A", question_count=2),
                SectionPart("p2", "Part B", question_count=3),
            ),
        )

        # Act / Assert
        assert section.is_sliced_pool is True
        assert section.capacity == 5
        assert section.part_starts == (0, 2)
        assert section.slot_position(1) == (1, 0)
        assert section.slot_position(2) == (0, 1)
        assert section.slot_index(2, 1) == 4
        assert section.slot_index(2, 0) is None

    def test_slot_type_when_part_overrides_then_part_type(self):
        part = SectionPart("a", "(a)", 2, type="LONG", specific_chapters=("3",))
        section = Section(id="s", type="SHORT", question_count=1, sub_parts=(part,), specific_chapters=("1",))

        assert section.slot_type(part) == "LONG"
        assert section.slot_chapters(part) == ("3",)
        assert section.slot_chapters(None) == ("1",)

    def test_init_when_duplicate_part_ids_then_raises(self):
        with pytest.raises(ValueError, match="duplicate sub-part ids"):
            Section(id="s", type="SHORT", sub_parts=(SectionPart("a"), SectionPart("a")))

    def test_with_synced_part_counts_when_sliced_pool_then_sums(self):
        section = Section(
            id="mcq", type="MCQ",
            sub_parts=(
                SectionPart("p1", question_count=2, attempt_count=2),
                SectionPart("p2", question_count=3, attempt_count=1),
            ),
        )

        synced = section.with_synced_part_counts()

        assert (synced.question_count, synced.attempt_count) == (5, 3)

    def test_with_synced_part_marks_when_compound_then_sum_of_parts(self, short_section):
        section = short_section.with_counts(2, 1)

        assert section.with_synced_part_marks().marks_per_question == 5

    def test_with_auto_title_when_short_then_numbered_title(self):
        section = Section(id="s", type="SHORT", question_count=8, attempt_count=5, marks_per_question=2)

        assert section.with_auto_title(1).title == "Q2. Write short answers to any 5 questions. (5 x 2 = 10 Marks)"

    def test_from_dict_when_to_dict_output_then_equal(self, short_section):
        assert Section.from_dict(short_section.to_dict()) == short_section


class TestPaperPattern:
    """Tests for PaperPattern."""

    def test_total_marks_when_sections_then_sum_of_attempted(self, pattern):
        assert pattern.total_marks == 2 * 1 + 1 * 5

    def test_applies_to_subject_when_case_differs_then_true(self, pattern):
        assert pattern.applies_to_subject("physics") is True
        assert pattern.applies_to_subject("Chemistry") is False

    def test_applies_to_subject_when_unbound_then_true(self):
        assert PaperPattern(id="p", name="Any").applies_to_subject("Chemistry") is True

    def test_mandatory_chapter_numbers_when_section_and_part_lists_then_union(self):
        section = Section(
            id="s", type="SHORT", question_count=1, specific_chapters=("1",),
            sub_parts=(SectionPart("a", specific_chapters=("3",)),),
        )

        pattern = PaperPattern(id="p", name="P", sections=(section,))

        assert pattern.mandatory_chapter_numbers() == frozenset({"1", "3"})

    def test_init_when_duplicate_section_ids_then_raises(self, mcq_section):
        with pytest.raises(ValueError, match="duplicate section ids"):
            PaperPattern(id="p", name="P", sections=(mcq_section, mcq_section))


class TestSavedPaper:
    """Tests for SavedPaper."""

    def test_init_when_question_targets_unknown_section_then_raises(self, mcq_section, make_question):
        placed = PlacedQuestion(make_question("m1", "MCQ"), "nowhere", 0)

        with pytest.raises(ValueError, match="unknown sections"):
            SavedPaper(title="T", class_level="9th", subject="Physics", sections=(mcq_section,), questions=(placed,))

    def test_from_dict_when_font_size_too_large_then_clamped(self, mcq_section, make_question):
        # Arrange
        paper = SavedPaper(
            title="T", class_level="9th", subject="Physics",
            sections=(mcq_section,),
            questions=(PlacedQuestion(make_question("m1", "MCQ"), "s-mcq", 0),),
            medium=Medium.BOTH,
        )
        data = paper.to_dict()
        data["font_size"] = 20

        # Act
        restored = SavedPaper.from_dict(data)

        # Assert
        assert restored.font_size == 13
        assert restored.medium is Medium.BOTH
        assert restored.questions[0].slot_index == 0

    def test_medium_parse_when_case_differs_then_member(self):
        assert Medium.parse("urdu") is Medium.URDU
        assert Medium.parse(None) is Medium.ENGLISH
        with pytest.raises(ValueError):
            Medium.parse("French")
