"""
Module: builder.output.word_export

Purpose:
    Export a paper as a Word-compatible HTML document (.doc).
    Word opens HTML saved with a .doc extension, so the paper is
    written as simple HTML prefixed with a UTF-8 byte order mark.

Key Functions:
    - export_word(): Write the .doc file
    - paper_to_html(): Build the HTML string
    - word_filename(): "<Subject>_Paper.doc"

Dependencies:
    - html (std): Escaping
    - builder.layout.models: PaperDocument
"""

from __future__ import annotations

import html
import logging
from pathlib import Path
from typing import List

from examgen_toolkit.builder.layout.models import PaperDocument, PrintItem, PrintUnit
from examgen_toolkit.common.text import strip_markup

logger = logging.getLogger(__name__)

BOM = "\ufeff"


def word_filename(subject: str) -> str:
    name = "_".join(subject.split()) or "Exam"
    return f"{name}_Paper.doc"


def _esc(text: str) -> str:
    return html.escape(strip_markup(text))


def _item_text(item: PrintItem) -> str:
    text = _esc(item.text)
    if item.text_urdu:
        text = f'{text}<br/><span dir="rtl">{_esc(item.text_urdu)}</span>'
    return text


def _unit_html(unit: PrintUnit, lines: List[str]) -> None:
    if unit.caption:
        lines.append(f"<p><b><i>{_esc(unit.caption)}</i></b></p>")

    if unit.number_label:
        lines.append(f"<p><b>{_esc(unit.number_label)}</b></p>")
    if unit.questions_caption:
        lines.append("<p><b>Questions:</b></p>")

    for item in unit.items:
        if item.alternative_before:
            lines.append('<p style="text-align:center"><b>(OR)</b></p>')
        label = f"<b>{_esc(item.label)}</b> " if item.label else ""
        marks = f" ({item.marks})" if item.marks is not None else ""
        if unit.number_label:
            lines.append(f'<p style="padding-left: 20px">{label}{_item_text(item)}{marks}</p>')
        else:
            lines.append(f"<p>{label}{_item_text(item)}{marks}</p>")
        if item.options:
            options = " &nbsp; ".join(
                f"{_esc(o.label)} {_esc(o.text)}" + (f" / {_esc(o.text_urdu)}" if o.text_urdu else "")
                for o in item.options
            )
            lines.append(f'<p style="padding-left: 20px">{options}</p>')
    lines.append("<br/>")


def paper_to_html(document: PaperDocument) -> str:
    """
    Build the HTML body of the Word export.

    Args:
        document: Projected paper

    Returns:
        Complete HTML document (without BOM)
    """
    header = document.header
    lines = [
        "<html><head><meta charset=\"utf-8\" /></head><body>",
        f'<h1 style="text-align:center">{_esc(header.institute_name)}</h1>',
        f'<h2 style="text-align:center">{_esc(header.class_level)} - {_esc(header.subject)}</h2>',
        "<p>"
        + " &nbsp; | &nbsp; ".join(f"<b>{_esc(k)}:</b> {_esc(v)}" for k, v in header.info_fields())
        + "</p>",
        "<hr />",
    ]

    if document.is_empty:
        lines.append(f"<p>{_esc(document.placeholder or '')}</p>")

    for block in document.sections:
        if block.heading:
            lines.append(f'<h3 style="text-align:center">{_esc(block.heading.upper())}</h3>')
        caption = f" {_esc(block.marks_caption)}" if block.marks_caption else ""
        lines.append(f"<h3>{_esc(block.title)}{caption}</h3>")
        for unit in block.units:
            _unit_html(unit, lines)

    if document.show_answer_key and document.answer_key:
        lines.append("<hr /><h3>Key</h3>")
        lines.append("<p>" + " &nbsp; ".join(_esc(str(e)) for e in document.answer_key) + "</p>")

    lines.append("</body></html>")
    return "\n".join(lines)


def export_word(document: PaperDocument, output_dir: Path) -> Path:
    """
    Write the paper as a .doc file into ``output_dir``.

    Returns:
        Path of the written file
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / word_filename(document.header.subject)
    path.write_text(BOM + paper_to_html(document), encoding="utf-8")
    logger.info(f"Exported Word document to {path}")
    return path
