"""
Module: builder.selection.config

Purpose:
    Configuration dataclass for the selection engine.
    Immutable configuration with validation on construction.

Key Classes:
    - SelectionConfig: Subject classification, seed and auto-select switch

Dependencies:
    - dataclasses (std)
    - random (std)

Used By:
    - builder.selection.engine: Selection engine
    - builder.controller: Build controller
    - session.authoring: Authoring session
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from examgen_toolkit.common.subjects import is_english_subject, is_urdu_style_subject


@dataclass(frozen=True)
class SelectionConfig:
    """
    Configuration for question selection (immutable).

    Attributes:
        subject: Active subject name; drives type matching
        seed: Random seed for reproducible auto-fill (None = unseeded)
        auto_select: Auto-fill every section when the pool first loads

    Invariants:
        - subject is a string (may be empty before a subject is chosen)

    Example:
        >>> config = SelectionConfig(subject="English", seed=7)
        >>> config.subject_is_english
        True
    """

    subject: str = ""
    seed: Optional[int] = None
    auto_select: bool = True

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not isinstance(self.subject, str):
            raise ValueError(f"subject must be a string: {self.subject!r}")
        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int)):
            raise ValueError(f"seed must be an integer or None: {self.seed!r}")

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def subject_is_english(self) -> bool:
        return is_english_subject(self.subject)

    @property
    def subject_is_urdu_style(self) -> bool:
        return is_urdu_style_subject(self.subject)

    def make_rng(self) -> random.Random:
        """Fresh random source seeded from this config."""
        return random.Random(self.seed)
