"""
Exam Generator Core Package

Shared data models and utilities. These models are the single source of
truth for every builder and session module.

**DESIGN NOTES:**

1. **Immutable Data Models**
   - Frozen dataclasses, new instances created for any change
   - Editing helpers (`Section.with_synced_part_counts()` and friends)
     return copies

2. **Calculated Values (Never Stored)**
   - Pattern and section marks, section capacity and slot geometry are
     properties derived from counts

3. **Explicit Chapter Numbers**
   - `Chapter.chapter_number` is a field; names are only parsed once when
     a stored chapter does not carry a number
"""

from .models import (
    Question,
    Chapter,
    Subtopic,
    SectionPart,
    Section,
    PaperPattern,
    PlacedQuestion,
    SlotRef,
    Medium,
    InstituteProfile,
    SavedPaper,
)

__all__ = [
    "Question",
    "Chapter",
    "Subtopic",
    "SectionPart",
    "Section",
    "PaperPattern",
    "PlacedQuestion",
    "SlotRef",
    "Medium",
    "InstituteProfile",
    "SavedPaper",
]
