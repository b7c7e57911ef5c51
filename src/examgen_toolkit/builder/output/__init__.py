"""
Module: builder.output

Purpose:
    Output generation for projected papers.
    Writes the paper PDF, the standalone answer key PDF and the
    Word-compatible export.

Key Functions:
    - render_to_pdf(): Render paper to PDF
    - render_answer_key(): Generate answer key PDF
    - export_word(): Write .doc export

Dependencies:
    - reportlab: PDF generation
    - PIL: Logo handling
    - builder.layout.models: PaperDocument

Used By:
    - builder.controller: Pipeline orchestration
"""

from .renderer import register_urdu_font, render_to_pdf
from .answer_key import render_answer_key
from .word_export import export_word, paper_to_html, word_filename

__all__ = [
    "render_to_pdf",
    "register_urdu_font",
    "render_answer_key",
    "export_word",
    "paper_to_html",
    "word_filename",
]
