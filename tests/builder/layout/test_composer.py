"""
Unit tests for the paper projection (layout composer).
"""

from examgen_toolkit.builder.layout import (
    NO_QUESTIONS_PLACEHOLDER,
    LayoutConfig,
    build_header,
    marks_caption,
    project_paper,
)
from examgen_toolkit.core.models import InstituteProfile, Medium, PlacedQuestion, Section, SectionPart


def _place(repository, section_id, ids):
    return [PlacedQuestion(repository.get(qid), section_id, i) for i, qid in enumerate(ids)]


def _header(subject="Physics"):
    return build_header(class_level="9th", subject=subject, paper_code="1234")


class TestBuildHeader:
    """Tests for build_header()."""

    def test_build_header_when_no_institute_then_placeholder_name(self):
        header = build_header(class_level="9th", subject="Physics")

        assert header.institute_name == "INSTITUTE NAME"
        assert header.contact == ""
        assert header.logo_path is None

    def test_build_header_when_contact_hidden_then_not_carried(self):
        institute = InstituteProfile(name="City School", contact_number="0300", logo_path="logo.png")

        header = build_header(class_level="9th", subject="Physics", institute=institute)

        assert header.institute_name == "City School"
        assert header.contact == ""
        assert header.logo_path is None

    def test_info_fields_when_paper_code_set_then_included(self):
        fields = dict(_header().info_fields())

        assert fields["Paper Code"] == "1234"
        assert fields["Class"] == "9th"


class TestMarksCaption:
    """Tests for marks_caption()."""

    def test_marks_caption_when_visible_then_attempt_times_marks(self):
        section = Section("s", "SHORT", attempt_count=5, marks_per_question=2)

        assert marks_caption(section) == "(5 x 2 = 10)"
        assert marks_caption(section, urdu_layout=True) == "(10 = 2 × 5)"

    def test_marks_caption_when_hidden_then_empty(self):
        section = Section("s", "SHORT", attempt_count=5, marks_per_question=2, hide_section_marks=True)

        assert marks_caption(section) == ""


class TestProjectPaper:
    """Tests for project_paper()."""

    def test_project_when_mcq_and_compound_then_numbered_units(self, pattern, repository):
        # Arrange
        placed = _place(repository, "s-mcq", ["m1", "m2"]) + _place(repository, "s-short", ["s1", "s2", "s3", "s4"])

        # Act
        document = project_paper(pattern.sections, placed, header=_header())

        # Assert
        mcq, short = document.sections
        assert [item.label for item in mcq.items] == ["1.", "2."]
        assert [o.label for o in mcq.items[0].options] == ["(a)", "(b)", "(c)", "(d)"]
        assert [unit.number_label for unit in short.units] == ["1.", "2."]
        assert [(i.label, i.marks) for i in short.units[0].items] == [("(a)", 2), ("(b)", 3)]
        assert short.marks_caption == "(1 x 5 = 5)"
        assert document.total_marks == 7
        assert document.header.total_marks == 7

    def test_project_when_trailing_unit_incomplete_then_excluded_with_warning(self, pattern, repository):
        placed = _place(repository, "s-short", ["s1", "s2", "s3"])

        document = project_paper(pattern.sections, placed, header=_header())

        short = document.sections[0]
        assert short.question_count == 2
        assert "s3" not in document.question_ids
        assert any("incomplete" in w for w in document.warnings)

    def test_project_when_two_mcq_sections_then_counter_runs_across(self, mcq_section, repository):
        second = Section(id="s-mcq2", type="MCQ", title="More MCQs", question_count=2,
                         attempt_count=2, marks_per_question=1)
        placed = _place(repository, "s-mcq", ["m1", "m2"]) + _place(repository, "s-mcq2", ["m3"])

        document = project_paper([mcq_section, second], placed, header=_header())

        assert [item.label for item in document.sections[1].items] == ["3."]

    def test_project_when_nothing_placed_then_placeholder(self, pattern):
        document = project_paper(pattern.sections, [], header=_header())

        assert document.is_empty
        assert document.sections == ()
        assert document.placeholder == NO_QUESTIONS_PLACEHOLDER

    def test_project_when_section_empty_then_skipped(self, pattern, repository):
        document = project_paper(pattern.sections, _place(repository, "s-mcq", ["m1"]), header=_header())

        assert [s.section_id for s in document.sections] == ["s-mcq"]

    def test_project_when_answers_present_then_key_numbered_by_paper_position(self, pattern, repository):
        placed = _place(repository, "s-short", ["s1", "s2", "s3", "s4"]) + _place(repository, "s-mcq", ["m5"])
        sections = (pattern.sections[1], pattern.sections[0])

        document = project_paper(sections, placed, header=_header())

        assert [str(e) for e in document.answer_key] == ["Q.5 [a]"]

    def test_project_when_idioms_section_then_roman_grid_labels(self, make_question):
        section = Section(id="id", type="Idioms", title="Use idioms", question_count=3,
                          attempt_count=3, marks_per_question=1)
        placed = [PlacedQuestion(make_question(f"i{n}", "Idioms"), "id", n) for n in range(3)]

        document = project_paper([section], placed, header=_header("English"))

        block = document.sections[0]
        assert block.grid_columns == 4
        assert [item.label for item in block.items] == ["i.", "ii.", "iii."]
        assert all(item.marks is None for item in block.items)

    def test_project_when_english_flat_section_then_marks_on_items(self, make_question):
        section = Section(id="q", type="Letter", title="Write a letter", question_count=1,
                          attempt_count=1, marks_per_question=8)

        document = project_paper([section], [PlacedQuestion(make_question("l1", "Letter"), "q", 0)],
                                 header=_header("English"))

        assert document.sections[0].items[0].marks == 8

    def test_project_when_heading_repeats_then_shown_once(self, make_question):
        sections = [
            Section(id="a", type="SHORT", title="A", question_count=1, heading="Section B"),
            Section(id="b", type="SHORT", title="B", question_count=1, heading="Section B"),
        ]
        placed = [
            PlacedQuestion(make_question("x1"), "a", 0),
            PlacedQuestion(make_question("x2"), "b", 0),
        ]

        document = project_paper(sections, placed, header=_header())

        assert [s.heading for s in document.sections] == ["Section B", None]

    def test_project_when_title_numbered_then_unit_numbers_hidden(self, short_section, repository):
        section = short_section.with_auto_title(1)

        document = project_paper([section], _place(repository, "s-short", ["s1", "s2"]), header=_header())

        assert document.sections[0].units[0].number_label == ""

    def test_project_when_alternative_part_then_or_marker_and_no_label(self, make_question):
        section = Section(
            id="long", type="LONG", title="Attempt", question_count=1, attempt_count=1, marks_per_question=5,
            sub_parts=(SectionPart("a", "(a)", 5), SectionPart("b", "(b)", 5, is_alternative=True)),
        )
        placed = [PlacedQuestion(make_question("l1", "LONG"), "long", 0),
                  PlacedQuestion(make_question("l2", "LONG"), "long", 1)]

        document = project_paper([section], placed, header=_header())

        first, second = document.sections[0].items
        assert first.alternative_before is False
        assert second.alternative_before is True
        assert second.label == ""

    def test_project_when_both_medium_then_urdu_column_filled(self, make_question):
        section = Section(id="s", type="SHORT", title="Short", title_urdu="مختصر", question_count=1)
        question = make_question("b1", text="What is force?", text_urdu="قوت کیا ہے؟")

        document = project_paper(
            [section], [PlacedQuestion(question, "s", 0)],
            header=_header(), config=LayoutConfig(medium=Medium.BOTH),
        )

        block = document.sections[0]
        assert block.title_urdu == "مختصر"
        assert block.items[0].text == "What is force?"
        assert block.items[0].text_urdu == "قوت کیا ہے؟"
        assert block.right_to_left is False

    def test_project_when_urdu_medium_then_urdu_text_and_rtl(self, make_question):
        section = Section(id="s", type="SHORT", title="Short", title_urdu="مختصر", question_count=1)
        question = make_question("u1", text="What is force?", text_urdu="قوت کیا ہے؟")

        document = project_paper(
            [section], [PlacedQuestion(question, "s", 0)],
            header=_header(), config=LayoutConfig(medium="Urdu"),
        )

        block = document.sections[0]
        assert block.title == "مختصر"
        assert block.items[0].text == "قوت کیا ہے؟"
        assert block.items[0].right_to_left is True

    def test_project_when_sliced_pool_then_part_captions(self, repository):
        section = Section(
            id="pool", type="MCQ", title="Objective", question_count=3, attempt_count=3, marks_per_question=1,
            sub_parts=(SectionPart("p1", "Part A", question_count=1), SectionPart("p2", "Part B", question_count=2)),
        )

        document = project_paper([section], _place(repository, "pool", ["m1", "m2", "m3"]), header=_header())

        units = document.sections[0].units
        assert [u.caption for u in units] == ["Part A", "Part B"]
        assert [i.label for i in document.sections[0].items] == ["1.", "2.", "3."]
