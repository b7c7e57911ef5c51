"""
Core Models Package

Immutable, validated data models that serve as the single source of truth.

**DESIGN RATIONALE:**

All models in this package are frozen dataclasses. This ensures:
1. No accidental mutation while a paper is being assembled
2. Safe to embed in saved-paper snapshots
3. Can be used as dict keys or in sets
4. Calculated values (section marks, pattern totals, capacity) are
   properties and never drift from the data they derive from

| Concept | Model | Notes |
|---------|-------|-------|
| Bank content | `Question`, `Chapter`, `Subtopic` | chapter number explicit, derived if absent |
| Paper structure | `PaperPattern`, `Section`, `SectionPart` | slot geometry lives on `Section` |
| Placement | `PlacedQuestion`, `SlotRef` | question + target section + slot |
| Snapshot | `SavedPaper`, `InstituteProfile`, `Medium` | questions embedded |
"""

from .questions import Question, Chapter, Subtopic
from .patterns import MCQ_TYPE, SectionPart, Section, PaperPattern
from .selection import PlacedQuestion, SlotRef
from .papers import Medium, InstituteProfile, SavedPaper

__all__ = [
    "Question",
    "Chapter",
    "Subtopic",
    "MCQ_TYPE",
    "SectionPart",
    "Section",
    "PaperPattern",
    "PlacedQuestion",
    "SlotRef",
    "Medium",
    "InstituteProfile",
    "SavedPaper",
]
