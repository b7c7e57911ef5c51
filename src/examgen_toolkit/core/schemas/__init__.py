"""
Schemas Package

JSON schema definitions and validation utilities.
"""

from .validator import (
    validate_question,
    validate_chapter,
    validate_pattern,
    validate_saved_paper,
    ValidationError,
    PATTERN_SCHEMA_VERSION,
    PAPER_SCHEMA_VERSION,
)

__all__ = [
    "validate_question",
    "validate_chapter",
    "validate_pattern",
    "validate_saved_paper",
    "ValidationError",
    "PATTERN_SCHEMA_VERSION",
    "PAPER_SCHEMA_VERSION",
]
