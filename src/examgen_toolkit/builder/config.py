"""
Module: builder.config

Purpose:
    Configuration dataclass for the paper building pipeline. Immutable
    configuration with validation on construction.

Key Classes:
    - BuilderConfig: Main configuration for compiling and rendering papers

Dependencies:
    - dataclasses (std)
    - pathlib (std)

Used By:
    - builder.controller: Main build controller
    - examgen_toolkit.session: Compile and save
    - examgen_toolkit.cli: Command line builds
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from examgen_toolkit.builder.layout.config import LayoutConfig
from examgen_toolkit.common.settings import DEFAULT_TIME_ALLOWED
from examgen_toolkit.core.models import InstituteProfile


@dataclass(frozen=True)
class BuilderConfig:
    """
    Configuration for building papers (immutable).

    Attributes:
        class_level: Class printed in the header, e.g. "10th"
        subject: Subject printed in the header; drives type matching
        output_dir: Base directory; each build gets a timestamped subfolder
        time_allowed: Printed time, e.g. "2:00 Hours"
        paper_code: Printed code; a random 4-digit code is used when empty
        institute: Institute profile for the header
        layout: Medium, font size, spacing and answer key switch
        include_answer_key: Write a separate answer key PDF
        export_word: Also write a Word-compatible .doc export
        chapters_display: Chapters line for the header, e.g. "1, 2, 5"
        seed: Recorded in build metadata
        show_footer: Show version footer on each page

    Example:
        >>> config = BuilderConfig(
        ...     class_level="10th",
        ...     subject="Physics",
        ...     output_dir=Path("output"),
        ... )
    """

    # Required
    class_level: str
    subject: str

    # Output
    output_dir: Optional[Path] = None
    include_answer_key: bool = True
    export_word: bool = False
    show_footer: bool = True

    # Header
    time_allowed: str = DEFAULT_TIME_ALLOWED
    paper_code: str = ""
    institute: InstituteProfile = field(default_factory=InstituteProfile)
    chapters_display: str = ""

    # Layout
    layout: LayoutConfig = field(default_factory=LayoutConfig)

    seed: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not self.class_level or not self.class_level.strip():
            raise ValueError("class_level must not be empty")
        if not self.subject or not self.subject.strip():
            raise ValueError("subject must not be empty")
        if self.paper_code and not self.paper_code.strip():
            raise ValueError(f"paper_code must not be blank: {self.paper_code!r}")
        if self.output_dir is not None and not isinstance(self.output_dir, Path):
            object.__setattr__(self, "output_dir", Path(self.output_dir))
