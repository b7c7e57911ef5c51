"""
Module: builder.layout.config

Purpose:
    Configuration for paper layout.
    Defines medium, font size, line spacing, page size and margins.

Key Classes:
    - LayoutConfig: Immutable layout configuration

Dependencies:
    - dataclasses (std)
    - reportlab.lib.pagesizes: A4 page size in points

Used By:
    - builder.layout.composer: Paper projection
    - builder.output.renderer: PDF rendering
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from reportlab.lib.pagesizes import A4

from examgen_toolkit.common.settings import (
    DEFAULT_FONT_SIZE,
    DEFAULT_LINE_SPACING,
    MAX_FONT_SIZE,
    MAX_LINE_SPACING,
)
from examgen_toolkit.core.models import Medium

MIN_FONT_SIZE = 6


@dataclass(frozen=True)
class LayoutConfig:
    """
    Configuration for paper layout (immutable).

    Font size is clamped to at most 13 pt; requests above that are
    reduced rather than rejected so stored papers with larger values
    still render.

    Attributes:
        medium: English, Urdu or Both (side by side)
        font_size: Question text size in points (6..13)
        line_spacing: Extra vertical spacing on a 0..10 scale
        page_width: Page width in points
        page_height: Page height in points
        margin_top / margin_bottom / margin_left / margin_right: Points
        urdu_font_path: TrueType font used for Arabic-script text
        show_answer_key: Append the answer key to the paper

    Example:
        >>> LayoutConfig(font_size=20).font_size
        13
    """

    medium: Medium = Medium.ENGLISH
    font_size: int = DEFAULT_FONT_SIZE
    line_spacing: int = DEFAULT_LINE_SPACING

    # Page dimensions (points)
    page_width: float = A4[0]
    page_height: float = A4[1]

    # Margins
    margin_top: float = 36
    margin_bottom: float = 36
    margin_left: float = 36
    margin_right: float = 36

    urdu_font_path: Optional[str] = None
    show_answer_key: bool = False

    def __post_init__(self) -> None:
        """Validate and clamp configuration on construction."""
        object.__setattr__(self, "medium", Medium.parse(self.medium))
        if self.font_size < MIN_FONT_SIZE:
            raise ValueError(f"font_size must be >= {MIN_FONT_SIZE}: {self.font_size}")
        if self.font_size > MAX_FONT_SIZE:
            object.__setattr__(self, "font_size", MAX_FONT_SIZE)
        if not 0 <= self.line_spacing <= MAX_LINE_SPACING:
            raise ValueError(f"line_spacing must be within 0..{MAX_LINE_SPACING}: {self.line_spacing}")
        if self.available_width <= 0:
            raise ValueError("Margins exceed page width")
        if self.available_height <= 0:
            raise ValueError("Margins exceed page height")

    @property
    def available_width(self) -> float:
        """Width available for content (excluding margins)."""
        return self.page_width - self.margin_left - self.margin_right

    @property
    def available_height(self) -> float:
        """Height available for content (excluding margins)."""
        return self.page_height - self.margin_top - self.margin_bottom

    @property
    def leading(self) -> float:
        """Baseline-to-baseline distance for question text."""
        return self.font_size * 1.2

    @property
    def block_gap(self) -> float:
        """Gap after a question unit in points; grows with line_spacing."""
        return 0.8 + 1.6 * self.line_spacing

    @property
    def right_to_left(self) -> bool:
        return self.medium is Medium.URDU
