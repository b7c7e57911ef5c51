"""
Module: builder

Purpose:
    Paper building pipeline. Holds the question pool, places questions
    into pattern slots, resolves effective sections, projects the paper
    and renders it to PDF and Word.

Key Functions:
    - compile_paper(): Resolve and project a selection
    - build_paper(): Compile and render to files

Key Classes:
    - BuilderConfig: Configuration for building
    - SelectionConfig: Configuration for selection
    - SelectionEngine: Slot-based selection state
    - QuestionRepository: Indexed question pool

Dependencies:
    - reportlab: PDF generation
    - PIL: Logo handling
    - examgen_toolkit.core.models: Data models

Used By:
    - examgen_toolkit.session: Authoring workflow
    - examgen_toolkit.cli: Command line builds
"""

from .config import BuilderConfig
from .loading import QuestionRepository, LoaderError
from .selection import SelectionConfig, SelectionEngine, SelectionOutcome
from .controller import (
    BuildError,
    BuildResult,
    CompiledPaper,
    build_paper,
    compile_paper,
    generate_paper_code,
    render_paper,
)

__all__ = [
    # Config
    "BuilderConfig",
    "SelectionConfig",
    # Loading
    "QuestionRepository",
    "LoaderError",
    # Selection
    "SelectionEngine",
    "SelectionOutcome",
    # Controller
    "compile_paper",
    "render_paper",
    "build_paper",
    "generate_paper_code",
    "CompiledPaper",
    "BuildResult",
    "BuildError",
]
