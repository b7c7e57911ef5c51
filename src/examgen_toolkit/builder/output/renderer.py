"""
Module: builder.output.renderer

Purpose:
    Render a PaperDocument to PDF using ReportLab.
    Text is laid out top-down with word wrapping and inline bold /
    underline runs; a new page starts whenever the next block does not
    fit. Every page gets a footer. Urdu words are reshaped into joined
    presentation forms and right-to-left lines are drawn in visual order.

Key Functions:
    - render_to_pdf(): Main rendering function
    - register_urdu_font(): Register the TrueType font for Urdu text

Dependencies:
    - reportlab: PDF generation
    - PIL: Logo loading
    - arabic_reshaper, bidi: Urdu letter joining and visual ordering
    - builder.layout.models: PaperDocument and friends

Used By:
    - builder.controller: Pipeline orchestration
"""

from __future__ import annotations

import io
import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import arabic_reshaper
from bidi.algorithm import get_display
from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas

from examgen_toolkit.builder.layout.config import LayoutConfig
from examgen_toolkit.builder.layout.models import (
    AnswerKeyEntry,
    OptionPair,
    PaperDocument,
    PrintItem,
    PrintUnit,
    SectionBlock,
)
from examgen_toolkit.common.text import TextRun, is_urdu_text, parse_markup
from examgen_toolkit.core.models import Medium

logger = logging.getLogger(__name__)

# Fonts
FONT_REGULAR = "Times-Roman"
FONT_BOLD = "Times-Bold"
URDU_FONT_NAME = "ExamgenUrdu"

# Header configuration
HEADER_TITLE_SIZE = 16
HEADER_INFO_SIZE = 9
LOGO_SIZE_PT = 40

# Footer configuration
FOOTER_FONT_SIZE = 6

ANSWER_KEY_COLUMNS = 6
OPTION_GAP_PT = 24

_TOKEN = re.compile(r"\S+\s*|\s+")
_LATIN = re.compile(r"[A-Za-z0-9]")
# Arabic block plus the presentation forms produced by reshaping
_RIGHT_TO_LEFT = re.compile(r"[\u0600-\u06FF\uFB50-\uFDFF\uFE70-\uFEFF]")

# Authored strings are parsed for inline markup; run lists are drawn as-is
Styled = Union[str, Sequence[TextRun]]


def _bold(text: str) -> List[TextRun]:
    return [TextRun(text, bold=True)]


def _plain(text: str) -> List[TextRun]:
    return [TextRun(text)]


def _field(label: str, value: str) -> List[TextRun]:
    return [TextRun(f"{label}: ", bold=True), TextRun(value)]


def shape_urdu(text: str) -> str:
    """
    Join Urdu letters and reverse them into drawing order.

    ReportLab draws glyphs left to right exactly as given, so Arabic-script
    text has to be reshaped into presentation forms and reordered first.
    Text without Urdu characters is returned unchanged.

    Example:
        >>> shape_urdu("Force") == "Force"
        True
    """
    if not is_urdu_text(text):
        return text
    return get_display(arabic_reshaper.reshape(text))


def _direction(text: str) -> str:
    if _RIGHT_TO_LEFT.search(text):
        return "R"
    return "L" if _LATIN.search(text) else "N"


def _visual_order(line: List[Tuple[str, TextRun, float]], rtl: bool) -> List[Tuple[str, TextRun, float]]:
    """
    Order the fragments of one wrapped line for left-to-right drawing.

    Fragments against the base direction (with neutral fragments between
    them) keep their own reading order as a group; a right-to-left line is
    then mirrored as a whole.
    """
    kinds = [_direction(run.text) for _, run, _ in line]
    if "R" not in kinds:
        return line
    against = "L" if rtl else "R"
    ordered = list(line)
    i = 0
    while i < len(ordered):
        if kinds[i] != against:
            i += 1
            continue
        end = i
        for k in range(i + 1, len(ordered)):
            if kinds[k] == against:
                end = k
            elif kinds[k] != "N":
                break
        ordered[i:end + 1] = ordered[i:end + 1][::-1]
        i = end + 1
    return ordered[::-1] if rtl else ordered


def _get_footer_text() -> str:
    """Get footer text with current version number."""
    from examgen_toolkit import __version__

    return f"Generated with examgen-toolkit v{__version__}"


def register_urdu_font(font_path: Optional[str]) -> Optional[str]:
    """
    Register a TrueType font for Urdu text.

    Args:
        font_path: Path to a .ttf font with Arabic-script glyphs

    Returns:
        Registered font name, or None when no usable font was given
    """
    if not font_path:
        return None
    if URDU_FONT_NAME in pdfmetrics.getRegisteredFontNames():
        return URDU_FONT_NAME
    try:
        pdfmetrics.registerFont(TTFont(URDU_FONT_NAME, font_path))
    except (TTFError, OSError) as e:
        logger.warning(f"Could not load Urdu font {font_path}: {e}")
        return None
    return URDU_FONT_NAME


def render_to_pdf(
    document: PaperDocument,
    output_path: Path,
    config: Optional[LayoutConfig] = None,
    *,
    show_footer: bool = True,
) -> int:
    """
    Render a paper document to a PDF file.

    Args:
        document: Projected paper
        output_path: Path to write PDF
        config: Page geometry and fonts; defaults to document settings
        show_footer: Draw the version footer on every page

    Returns:
        Number of pages written

    Raises:
        OSError: If the PDF cannot be written

    Example:
        >>> render_to_pdf(document, Path("output/paper.pdf"))
        2
    """
    if config is None:
        config = LayoutConfig(
            medium=document.medium,
            font_size=document.font_size,
            line_spacing=document.line_spacing,
            show_answer_key=document.show_answer_key,
        )
    output_path.parent.mkdir(parents=True, exist_ok=True)

    c = canvas.Canvas(str(output_path), pagesize=(config.page_width, config.page_height))
    c.setTitle(f"{document.header.class_level} - {document.header.subject}")
    writer = _PageWriter(c, config, register_urdu_font(config.urdu_font_path), show_footer)

    writer.draw_header(document)
    if document.is_empty:
        writer.draw_placeholder(document.placeholder)
    else:
        for block in document.sections:
            writer.draw_section(block, document.medium)
        if document.show_answer_key and document.answer_key:
            writer.draw_answer_key(document.answer_key)

    pages = writer.finish()
    c.save()
    logger.info(f"Rendered {pages} pages to {output_path}")
    return pages


class _PageWriter:
    """Top-down cursor over a ReportLab canvas with automatic page breaks."""

    def __init__(
        self,
        c: canvas.Canvas,
        config: LayoutConfig,
        urdu_font: Optional[str],
        show_footer: bool,
    ) -> None:
        self.c = c
        self.config = config
        self.urdu_font = urdu_font
        self.show_footer = show_footer
        self.left = config.margin_left
        self.right = config.page_width - config.margin_right
        self.width = config.available_width
        self.y = config.page_height - config.margin_top
        self.pages = 1

    # ─────────────────────────────────────────────────────────────────────────
    # Page Management
    # ─────────────────────────────────────────────────────────────────────────

    def ensure(self, height: float) -> None:
        """Start a new page unless ``height`` points fit above the bottom margin."""
        if self.y - height >= self.config.margin_bottom:
            return
        self.new_page()

    def new_page(self) -> None:
        self._draw_footer()
        self.c.showPage()
        self.pages += 1
        self.y = self.config.page_height - self.config.margin_top

    def finish(self) -> int:
        self._draw_footer()
        self.c.showPage()
        return self.pages

    def _draw_footer(self) -> None:
        if not self.show_footer:
            return
        text = _get_footer_text()
        self.c.saveState()
        self.c.setFont("Helvetica", FOOTER_FONT_SIZE)
        self.c.setFillColorRGB(0.4, 0.4, 0.4)
        text_width = self.c.stringWidth(text, "Helvetica", FOOTER_FONT_SIZE)
        self.c.drawString((self.config.page_width - text_width) / 2, 15, text)
        self.c.restoreState()

    def rule(self, thickness: float = 0.5, gap: float = 3) -> None:
        self.c.saveState()
        self.c.setLineWidth(thickness)
        self.c.line(self.left, self.y, self.right, self.y)
        self.c.restoreState()
        self.y -= gap

    # ─────────────────────────────────────────────────────────────────────────
    # Text Primitives
    # ─────────────────────────────────────────────────────────────────────────

    def _fonts(self, text: str) -> Tuple[str, str]:
        """Regular and bold font for a string (Urdu text uses the Urdu font)."""
        if self.urdu_font and is_urdu_text(text):
            return self.urdu_font, self.urdu_font
        return FONT_REGULAR, FONT_BOLD

    def wrap(self, text: Styled, size: float, max_width: float) -> List[List[Tuple[str, TextRun, float]]]:
        """
        Break text into lines that fit ``max_width``.

        Strings are authored content and go through inline markup
        parsing; run sequences are drawn as given. Lines keep logical
        order, but Urdu fragments are already shaped so widths match
        what is drawn.

        Returns:
            Lines of (font, run, width) fragments
        """
        runs = parse_markup(text) if isinstance(text, str) else list(text)
        regular, bold_font = self._fonts("".join(run.text for run in runs))
        lines: List[List[Tuple[str, TextRun, float]]] = [[]]
        line_width = 0.0
        for run in runs:
            font = bold_font if run.bold else regular
            for paragraph_index, paragraph in enumerate(run.text.split("\n")):
                if paragraph_index > 0:
                    lines.append([])
                    line_width = 0.0
                for token in _TOKEN.findall(paragraph):
                    shown = shape_urdu(token)
                    token_width = self.c.stringWidth(shown, font, size)
                    if lines[-1] and line_width + token_width > max_width and token.strip():
                        lines.append([])
                        line_width = 0.0
                        shown = shape_urdu(token.lstrip())
                        token_width = self.c.stringWidth(shown, font, size)
                    piece = TextRun(shown, bold=run.bold, underline=run.underline)
                    lines[-1].append((font, piece, token_width))
                    line_width += token_width
        return [line for line in lines if line] or [[]]

    def text_height(self, text: Styled, size: float, max_width: float) -> float:
        return len(self.wrap(text, size, max_width)) * size * 1.2

    def draw_text(
        self,
        text: Styled,
        x: float,
        size: float,
        max_width: float,
        *,
        align: str = "left",
        rtl: Optional[bool] = None,
    ) -> float:
        """
        Draw wrapped text starting at the cursor line; the cursor is not moved.

        ``rtl`` sets the base direction; by default right-aligned text with
        Urdu in it reads right to left.

        Returns:
            Height consumed
        """
        leading = size * 1.2
        lines = self.wrap(text, size, max_width)
        if rtl is None:
            rtl = align == "right" and any(_direction(run.text) == "R" for line in lines for _, run, _ in line)
        y = self.y - size
        for line in lines:
            line = _visual_order(line, rtl)
            line_width = sum(w for _, _, w in line)
            if align == "right":
                cursor = x + max_width - line_width
            elif align == "center":
                cursor = x + (max_width - line_width) / 2
            else:
                cursor = x
            for font, run, width in line:
                self.c.setFont(font, size)
                self.c.drawString(cursor, y, run.text)
                if run.underline:
                    self.c.line(cursor, y - 1.5, cursor + width, y - 1.5)
                cursor += width
            y -= leading
        return len(lines) * leading

    def line_of_text(self, text: Styled, size: float, *, align: str = "left") -> None:
        height = self.text_height(text, size, self.width)
        self.ensure(height)
        self.draw_text(text, self.left, size, self.width, align=align)
        self.y -= height

    # ─────────────────────────────────────────────────────────────────────────
    # Header
    # ─────────────────────────────────────────────────────────────────────────

    def draw_header(self, document: PaperDocument) -> None:
        header = document.header
        top = self.y
        if header.logo_path:
            self._draw_logo(header.logo_path, top)

        inner = self.width - 2 * (LOGO_SIZE_PT + 6)
        x = self.left + LOGO_SIZE_PT + 6
        self.y -= self.draw_text(_bold(header.institute_name.upper()), x, HEADER_TITLE_SIZE, inner, align="center")
        details = " | ".join(part for part in (header.address, header.contact) if part)
        if details:
            self.y -= self.draw_text(_plain(details), x, HEADER_INFO_SIZE, inner, align="center")
        self.y = min(self.y, top - LOGO_SIZE_PT) - 3
        self.rule()

        fields = header.info_fields()
        column = self.width / len(fields)
        for i, (label, value) in enumerate(fields):
            self.draw_text(_field(label, value), self.left + i * column, HEADER_INFO_SIZE, column)
        self.y -= HEADER_INFO_SIZE * 1.4
        self.rule()

        half = self.width / 2
        self.draw_text(_field("Student", "_" * 26), self.left, HEADER_INFO_SIZE, half)
        right = _field("Roll No", "_" * 8)
        if header.chapters_display:
            right += _field("    CH", header.chapters_display)
        self.draw_text(right, self.left + half, HEADER_INFO_SIZE, half, align="right")
        self.y -= HEADER_INFO_SIZE * 1.4
        self.rule(thickness=1.5, gap=8)

    def _draw_logo(self, logo_path: str, top: float) -> None:
        try:
            with Image.open(logo_path) as img:
                buf = io.BytesIO()
                img.convert("RGBA").save(buf, format="PNG")
        except (OSError, UnidentifiedImageError) as e:
            logger.warning(f"Logo could not be loaded from {logo_path}: {e}")
            return
        buf.seek(0)
        self.c.drawImage(
            ImageReader(buf),
            self.left,
            top - LOGO_SIZE_PT,
            width=LOGO_SIZE_PT,
            height=LOGO_SIZE_PT,
            preserveAspectRatio=True,
            mask="auto",
        )

    def draw_placeholder(self, text: Optional[str]) -> None:
        self.y -= 24
        self.line_of_text(_bold(text or ""), self.config.font_size, align="center")

    # ─────────────────────────────────────────────────────────────────────────
    # Sections
    # ─────────────────────────────────────────────────────────────────────────

    def draw_section(self, block: SectionBlock, medium: Medium) -> None:
        size = self.config.font_size
        title_size = block.title_font_size or size

        if block.heading:
            self.y -= 4
            self.line_of_text(_bold(block.heading.upper()), size * 0.9, align="center")

        # Keep the title with the first unit
        self.ensure(title_size * 1.4 + size * 2.4)
        self._draw_title(block, title_size, medium)

        if block.grid_columns and all(len(u.items) == 1 for u in block.units):
            self._draw_grid(block, size)
        else:
            for unit in block.units:
                self._draw_unit(block, unit, size, medium)
        self.y -= self.config.block_gap

    def _draw_title(self, block: SectionBlock, size: float, medium: Medium) -> None:
        third = self.width / 3
        title = _bold(block.title)
        caption = _bold(block.marks_caption)
        if medium is Medium.BOTH and block.title_urdu:
            self.draw_text(title, self.left, size, third)
            self.draw_text(caption, self.left + third, size, third, align="center")
            self.draw_text(_bold(block.title_urdu), self.left + 2 * third, size, third, align="right")
        elif block.right_to_left:
            self.draw_text(title, self.left + third, size, 2 * third, align="right")
            self.draw_text(caption, self.left, size, third)
        else:
            self.draw_text(title, self.left, size, 2 * third)
            self.draw_text(caption, self.left + 2 * third, size, third, align="right")
        self.y -= size * 1.4
        self.rule(thickness=0.3, gap=4)

    def _draw_unit(self, block: SectionBlock, unit: PrintUnit, size: float, medium: Medium) -> None:
        indent = 0.0
        if unit.caption:
            self.ensure(size * 2.4)
            align = "right" if is_urdu_text(unit.caption) else "left"
            self.y -= self.draw_text(_bold(unit.caption), self.left, size, self.width, align=align) + 2
        if unit.number_label:
            self.ensure(size * 2.4)
            self.y -= self.draw_text(_bold(unit.number_label), self.left, size, self.width)
            indent = 14.0
        if unit.questions_caption:
            self.y -= self.draw_text(_bold("Questions:"), self.left + indent, size * 0.9, self.width)

        for item in unit.items:
            if item.alternative_before:
                self.line_of_text(_bold("(OR)"), size * 0.95, align="center")
            self._draw_item(item, size, indent, medium, block.right_to_left)
            if item.options:
                self._draw_options(item, size * 0.92, indent + 12, medium)
        self.y -= self.config.block_gap / 2

    @staticmethod
    def _labelled(label: str, text: str) -> List[TextRun]:
        body = parse_markup(text)
        if not label:
            return body
        return [TextRun(label, bold=True), TextRun(" ")] + body

    def _draw_item(self, item: PrintItem, size: float, indent: float, medium: Medium, rtl_block: bool) -> None:
        marks_text = f"({item.marks})" if item.marks is not None else ""
        marks_width = self.c.stringWidth(marks_text, FONT_BOLD, size * 0.8) + 8 if marks_text else 0.0
        body_width = self.width - indent - marks_width

        if medium is Medium.BOTH and item.text_urdu:
            half = (body_width - 12) / 2
            english = self._labelled(item.label, item.text)
            urdu = self._labelled(item.label, item.text_urdu)
            height = max(self.text_height(english, size, half), self.text_height(urdu, size, half))
            self.ensure(height)
            self.draw_text(english, self.left + indent, size, half)
            self.draw_text(urdu, self.left + indent + half + 12, size, half, align="right")
        else:
            rtl = item.right_to_left or rtl_block
            text = self._labelled(item.label, item.text)
            height = self.text_height(text, size, body_width)
            self.ensure(height)
            align = "right" if rtl else ("center" if item.centered else "left")
            self.draw_text(text, self.left + indent, size, body_width, align=align, rtl=rtl)

        if marks_text:
            self.draw_text(_bold(marks_text), self.right - marks_width, size * 0.8, marks_width, align="right")
        self.y -= height

    def _draw_options(self, item: PrintItem, size: float, indent: float, medium: Medium) -> None:
        x0 = self.left + indent
        available = self.width - indent
        if medium is Medium.BOTH:
            half = available / 2
            for i in range(0, len(item.options), 2):
                row = [self._option_runs(o, medium) for o in item.options[i:i + 2]]
                height = max(self.text_height(runs, size, half - 6) for runs in row)
                self.ensure(height)
                for j, runs in enumerate(row):
                    self.draw_text(runs, x0 + j * half, size, half - 6)
                self.y -= height
            return

        # Single medium: options flow along a line and wrap when it is full
        cursor = x0
        line_height = size * 1.2
        self.ensure(line_height)
        for option in item.options:
            runs = self._option_runs(option, medium)
            lines = self.wrap(runs, size, available)
            width = max(sum(w for _, _, w in line) for line in lines)
            if cursor > x0 and cursor + width > x0 + available:
                self.y -= line_height
                self.ensure(line_height)
                cursor = x0
            used = self.draw_text(runs, cursor, size, available - (cursor - x0), rtl=medium is Medium.URDU)
            if used > line_height:
                self.y -= used - line_height
                cursor = x0 + available
                continue
            cursor += width + OPTION_GAP_PT
        self.y -= line_height

    @staticmethod
    def _option_runs(option: OptionPair, medium: Medium) -> List[TextRun]:
        runs = [TextRun(option.label, bold=True), TextRun(" ")] + parse_markup(option.text)
        if medium is Medium.BOTH and option.text_urdu:
            runs += [TextRun(" / ")] + parse_markup(option.text_urdu)
        return runs

    def _draw_grid(self, block: SectionBlock, size: float) -> None:
        """Flat grid sections (Idioms, Sentences, Voice): items in equal columns."""
        columns = block.grid_columns
        cell = self.width / columns
        items = block.items
        for row_start in range(0, len(items), columns):
            row = [self._labelled(it.label, it.text) for it in items[row_start:row_start + columns]]
            height = max(self.text_height(runs, size, cell - 6) for runs in row)
            self.ensure(height)
            for i, runs in enumerate(row):
                index = (columns - 1 - i) if block.right_to_left else i
                self.draw_text(
                    runs, self.left + index * cell, size, cell - 6, align="center", rtl=block.right_to_left
                )
            self.y -= height

    # ─────────────────────────────────────────────────────────────────────────
    # Answer Key
    # ─────────────────────────────────────────────────────────────────────────

    def draw_answer_key(self, entries: Sequence[AnswerKeyEntry]) -> None:
        size = 8
        self.y -= 6
        self.ensure(size * 4)
        self.c.saveState()
        self.c.setDash(2, 2)
        self.rule(gap=6)
        self.c.restoreState()
        self.line_of_text(_bold("KEY"), 10, align="center")
        column = self.width / ANSWER_KEY_COLUMNS
        for row_start in range(0, len(entries), ANSWER_KEY_COLUMNS):
            row = entries[row_start:row_start + ANSWER_KEY_COLUMNS]
            self.ensure(size * 1.4)
            for i, entry in enumerate(row):
                runs = [TextRun(f"{entry.label} ", bold=True), TextRun(f"[{entry.answer}]")]
                self.draw_text(runs, self.left + i * column, size, column - 4)
            self.y -= size * 1.4
