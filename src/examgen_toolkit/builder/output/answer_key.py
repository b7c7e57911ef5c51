"""
Module: builder.output.answer_key

Purpose:
    Generate a standalone answer key PDF listing "Q.n [answer]" for
    every printed question that carries an answer.

Key Functions:
    - render_answer_key(): Create answer key PDF

Dependencies:
    - reportlab: PDF generation
    - builder.layout.models: PaperDocument
"""

from __future__ import annotations

import logging
from pathlib import Path

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from examgen_toolkit.builder.layout.models import PaperDocument

logger = logging.getLogger(__name__)

# Constants
A4_WIDTH, A4_HEIGHT = A4
MARGIN = 50
LINE_HEIGHT = 18
COLUMNS = 4


def render_answer_key(document: PaperDocument, output_path: Path) -> int:
    """
    Compile the answer key PDF.

    Entries are written column by column, four to a row. A paper
    without any answered questions still gets a single page so the
    file is a valid PDF.

    Args:
        document: Projected paper
        output_path: Path to write answer key PDF

    Returns:
        Number of entries written

    Example:
        >>> render_answer_key(document, Path("output/answer_key.pdf"))
        12
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    c = canvas.Canvas(str(output_path), pagesize=A4)
    header = document.header
    column_width = (A4_WIDTH - 2 * MARGIN) / COLUMNS

    def draw_title() -> float:
        c.setFont("Helvetica-Bold", 14)
        c.drawCentredString(A4_WIDTH / 2, A4_HEIGHT - MARGIN, "Answer Key")
        c.setFont("Helvetica", 10)
        c.drawCentredString(
            A4_WIDTH / 2,
            A4_HEIGHT - MARGIN - LINE_HEIGHT,
            f"{header.class_level} - {header.subject}"
            + (f"  (Paper Code {header.paper_code})" if header.paper_code else ""),
        )
        return A4_HEIGHT - MARGIN - 3 * LINE_HEIGHT

    y = draw_title()
    entries = document.answer_key
    c.setFont("Helvetica", 10)
    for row_start in range(0, len(entries), COLUMNS):
        if y < MARGIN:
            c.showPage()
            y = draw_title()
            c.setFont("Helvetica", 10)
        for i, entry in enumerate(entries[row_start:row_start + COLUMNS]):
            c.drawString(MARGIN + i * column_width, y, str(entry))
        y -= LINE_HEIGHT

    if not entries:
        logger.warning("No answered questions in paper; answer key is empty")
        c.setFont("Helvetica-Oblique", 10)
        c.drawCentredString(A4_WIDTH / 2, y, "No answers available.")

    c.showPage()
    c.save()
    logger.info(f"Compiled answer key with {len(entries)} entries to {output_path}")
    return len(entries)
