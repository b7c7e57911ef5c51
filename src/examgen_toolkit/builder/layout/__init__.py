"""
Module: builder.layout

Purpose:
    Projection of a compiled selection into a printable paper model.
    Numbers questions, groups compound units, picks texts for the
    medium and builds the answer key. No page geometry lives here.

Key Functions:
    - project_paper(): Main entry point for projection
    - build_header(): Institute and paper identity block

Key Classes:
    - LayoutConfig: Medium, font size, spacing and page geometry
    - PaperDocument: The projected paper

Used By:
    - builder.controller: Main build controller
    - builder.output: Renderers
"""

from .config import LayoutConfig
from .models import (
    NO_QUESTIONS_PLACEHOLDER,
    AnswerKeyEntry,
    OptionPair,
    PaperDocument,
    PaperHeader,
    PrintItem,
    PrintUnit,
    SectionBlock,
)
from .composer import build_header, marks_caption, project_paper

__all__ = [
    # Config
    "LayoutConfig",
    # Models
    "NO_QUESTIONS_PLACEHOLDER",
    "AnswerKeyEntry",
    "OptionPair",
    "PaperDocument",
    "PaperHeader",
    "PrintItem",
    "PrintUnit",
    "SectionBlock",
    # Functions
    "build_header",
    "marks_caption",
    "project_paper",
]
