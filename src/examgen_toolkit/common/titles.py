"""
Module: common.titles

Purpose:
    Automatic section titles for pattern authoring. A title combines the
    question number, an instruction for the section type and the marks
    calculation, e.g. "Q2. Write short answers to any 5 questions.
    (5 x 2 = 10 Marks)". Urdu section types get the Urdu equivalent.

Key Functions:
    - auto_title(): Build the default title for a section
    - base_instruction(): Instruction text without number or marks

Dependencies:
    - common.text: Urdu detection

Used By:
    - core.models.patterns.Section.with_auto_title
"""

from __future__ import annotations

import re

from .text import is_urdu_text

# First suggestion per type; "(?)" is replaced with the attempt count.
TYPE_INSTRUCTIONS: dict[str, str] = {
    "MCQ": "Attempt all. Circle the correct answer",
    "SHORT": "Write short answers to any (?) questions.",
    "LONG": "Attempt any (?) questions.",
    "NUMERICAL": "Solve the Numericals",
    "Letter": "Write a Letter to...",
    "Application": "Write an Application for...",
    "Story": "Write a Story on...",
    "Punctuation": "Punctuate the following lines",
    "Pair of words": "Use Pairs of Words in sentences",
    "Translate passage In urdu": "Translate into Urdu",
    "Translate passage to English": "Translate into English",
    "Essay": "Write an Essay on...",
    "تشریح اشعار": "اشعار کی تشریح کریں",
    "سیاق و سباق کے حوالے سے تشریح": "سیاق و سباق کے ساتھ تشریح",
    "سبق کا خلاصہ": "سبق کا خلاصہ لکھیں",
    "نظم کا مرکزی خیال": "نظم کا مرکزی خیال لکھیں",
    "مکالمہ": "مکالمہ تحریر کریں",
    "درخواست": "درخواست برائے رخصت",
    "تلخیص نگاری": "عبارت کی تلخیص کریں",
    "الفاظ معنی": "الفاظ کے معنی لکھیں",
    "آیات کا ترجمہ": "آیات کا با محاورہ ترجمہ کریں",
    "احادیث کی تشریح": "حدیث کی تشریح کریں",
}

URDU_QUESTION_PREFIX = "سوال نمبر"

_NUMBER_PREFIX = re.compile(rf"^(Q\d+\. |{URDU_QUESTION_PREFIX} \d+\. )")


def base_instruction(section_type: str, count: int) -> str:
    """
    Instruction text for a section type, without numbering or marks.

    Args:
        section_type: Section type like "SHORT" or an Urdu type name
        count: Attempt count substituted into the instruction

    Returns:
        Instruction such as "Write short answers to any 5 questions."
    """
    if section_type == "SHORT":
        text = f"Write short answers to any {count} questions."
    elif section_type == "LONG":
        text = f"Attempt any {count} questions."
    else:
        text = TYPE_INSTRUCTIONS.get(section_type, section_type).replace("(?)", str(count))
    text = _NUMBER_PREFIX.sub("", text)
    return text.split(" (")[0].strip()


def auto_title(section_type: str, count: int, marks: int, index: int) -> str:
    """
    Build the default title for the section at ``index``.

    English types read "Q{n}. {instruction} ({count} x {marks} = {total} Marks)";
    Urdu types read "سوال نمبر {n}. {instruction} ({total} = {marks} × {count})".

    Example:
        >>> auto_title("SHORT", 5, 2, 1)
        'Q2. Write short answers to any 5 questions. (5 x 2 = 10 Marks)'
    """
    total = count * marks
    instruction = base_instruction(section_type, count)
    if is_urdu_text(section_type):
        return f"{URDU_QUESTION_PREFIX} {index + 1}. {instruction} ({total} = {marks} × {count})"
    return f"Q{index + 1}. {instruction} ({count} x {marks} = {total} Marks)"
