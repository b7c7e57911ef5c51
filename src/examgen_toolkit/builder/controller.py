"""
Module: builder.controller

Purpose:
    Orchestrate the paper building pipeline.
    Resolve → Place → Project → Render

Key Functions:
    - compile_paper(): Effective sections, placed questions and document
    - render_paper(): Write PDF, answer key, Word export and metadata
    - build_paper(): compile_paper() followed by render_paper()
    - generate_paper_code(): Random 4-digit paper code

Key Classes:
    - CompiledPaper: Result of compilation
    - BuildResult: Complete build result
    - BuildError: Exception for build failures

Dependencies:
    - builder.loading: Question repository
    - builder.selection: Effective-section resolution
    - builder.layout: Projection
    - builder.output: Renderers

Used By:
    - examgen_toolkit.session: Compile and save
    - examgen_toolkit.cli: Command line builds
"""

from __future__ import annotations

import json
import logging
import random
import re
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from examgen_toolkit.core.models import PlacedQuestion, Section

from .config import BuilderConfig
from .layout import PaperDocument, build_header, project_paper
from .loading import QuestionRepository
from .output import export_word, render_answer_key, render_to_pdf
from .selection import resolve_effective_sections

logger = logging.getLogger(__name__)


class BuildError(Exception):
    """Error during build pipeline."""
    pass


@dataclass(frozen=True)
class CompiledPaper:
    """
    Compiled paper (immutable).

    Attributes:
        sections: Effective sections in paper order
        questions: Placed questions with dense slot indexes; only
            complete units of compound sections are kept
        document: Printable projection
        paper_code: Code printed in the header
    """

    sections: tuple[Section, ...]
    questions: tuple[PlacedQuestion, ...]
    document: PaperDocument
    paper_code: str

    @property
    def total_marks(self) -> int:
        return self.document.total_marks

    @property
    def warnings(self) -> tuple[str, ...]:
        return self.document.warnings


@dataclass(frozen=True)
class BuildResult:
    """
    Complete build result (immutable).

    Attributes:
        output_dir: Folder holding every generated file
        paper_pdf: Path to generated paper PDF
        answer_key_pdf: Path to answer key PDF (if generated)
        word_doc: Path to Word export (if generated)
        compiled: Compiled paper that was rendered
        page_count: Number of paper pages
        metadata: Build metadata dictionary
        warnings: Any warnings during build

    Example:
        >>> result = build_paper(sections, selections, repository, config)
        >>> print(f"Generated {result.page_count} pages with {result.total_marks} marks")
    """

    output_dir: Path
    paper_pdf: Path
    answer_key_pdf: Optional[Path]
    word_doc: Optional[Path]
    compiled: CompiledPaper
    page_count: int
    metadata: dict
    warnings: tuple[str, ...]

    @property
    def total_marks(self) -> int:
        return self.compiled.total_marks


def generate_paper_code(rng: Optional[random.Random] = None) -> str:
    """Random paper code in 1000..9999."""
    return str((rng or random.Random()).randint(1000, 9999))


def compile_paper(
    sections: Sequence[Section],
    selections: Mapping[str, Sequence[Optional[str]]],
    repository: QuestionRepository,
    config: BuilderConfig,
    *,
    rng: Optional[random.Random] = None,
) -> CompiledPaper:
    """
    Compile a selection into a printable paper.

    Pipeline:
    1. Resolve effective sections from complete units
    2. Place selected questions densely (incomplete units dropped)
    3. Project into a PaperDocument

    Args:
        sections: Original pattern sections in paper order
        selections: Slot-aligned selection per section id
        repository: Pool the selected ids resolve against
        config: Build configuration
        rng: Random source for the paper code when none is configured

    Returns:
        CompiledPaper

    Example:
        >>> compiled = compile_paper(pattern.sections, engine.selections, repo, config)
        >>> compiled.document.total_marks
        30
    """
    effective = resolve_effective_sections(sections, selections)
    placed = _place_questions(effective, selections, repository)
    paper_code = config.paper_code or generate_paper_code(rng)

    header = build_header(
        class_level=config.class_level,
        subject=config.subject,
        institute=config.institute,
        time_allowed=config.time_allowed,
        paper_code=paper_code,
        chapters_display=config.chapters_display,
    )
    document = project_paper(effective, placed, header=header, config=config.layout)

    logger.info(
        f"Compiled paper: {len(effective)}/{len(sections)} sections, "
        f"{len(placed)} questions, {document.total_marks} marks"
    )
    return CompiledPaper(
        sections=tuple(effective),
        questions=tuple(placed),
        document=document,
        paper_code=paper_code,
    )


def render_paper(compiled: CompiledPaper, config: BuilderConfig) -> BuildResult:
    """
    Render a compiled paper into a fresh timestamped output folder.

    Files written:
    - paper.pdf
    - answer_key.pdf (when include_answer_key)
    - <Subject>_Paper.doc (when export_word)
    - build_metadata.json

    Raises:
        BuildError: If no output directory is configured or writing fails
    """
    if config.output_dir is None:
        raise BuildError("No output directory configured")

    start_time = time.perf_counter()
    output_dir = _generate_timestamped_subfolder(config.output_dir, config)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BuildError(f"Cannot create output directory {output_dir}: {e}") from e
    logger.info(f"Output directory: {output_dir}")

    document = compiled.document
    paper_pdf = output_dir / "paper.pdf"
    answer_key_pdf = None
    word_doc = None
    try:
        page_count = render_to_pdf(document, paper_pdf, config.layout, show_footer=config.show_footer)
        if config.include_answer_key:
            answer_key_pdf = output_dir / "answer_key.pdf"
            render_answer_key(document, answer_key_pdf)
        if config.export_word:
            word_doc = export_word(document, output_dir)
    except OSError as e:
        raise BuildError(f"Failed to write output files: {e}") from e

    elapsed = time.perf_counter() - start_time
    logger.info(f"Paper generation completed in {elapsed:.2f}s")

    metadata = _build_metadata(config, compiled, page_count)
    _write_metadata(output_dir, metadata)

    return BuildResult(
        output_dir=output_dir,
        paper_pdf=paper_pdf,
        answer_key_pdf=answer_key_pdf,
        word_doc=word_doc,
        compiled=compiled,
        page_count=page_count,
        metadata=metadata,
        warnings=compiled.warnings,
    )


def build_paper(
    sections: Sequence[Section],
    selections: Mapping[str, Sequence[Optional[str]]],
    repository: QuestionRepository,
    config: BuilderConfig,
    *,
    rng: Optional[random.Random] = None,
) -> BuildResult:
    """
    Build a paper from start to finish.

    Raises:
        BuildError: If any step fails
    """
    logger.info(f"Starting build for {config.class_level} {config.subject}")
    compiled = compile_paper(sections, selections, repository, config, rng=rng)
    return render_paper(compiled, config)


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _place_questions(
    effective: Sequence[Section],
    selections: Mapping[str, Sequence[Optional[str]]],
    repository: QuestionRepository,
) -> List[PlacedQuestion]:
    """
    Placed questions in paper order.

    Sliced MCQ pools keep their slot indexes, since each part owns a
    fixed block. Other sections keep only complete units, renumbered so
    units are contiguous.
    """
    placed: List[PlacedQuestion] = []
    for section in effective:
        slots = list(selections.get(section.id, ()))

        if section.is_sliced_pool:
            pairs = [(i, qid) for i, qid in enumerate(slots[: section.capacity]) if qid is not None]
        else:
            ppq = section.parts_per_question
            pairs = []
            unit = 0
            for start in range(0, len(slots), ppq):
                if unit >= section.question_count:
                    break
                chunk = slots[start:start + ppq]
                if len(chunk) < ppq or any(qid is None for qid in chunk):
                    continue
                pairs.extend((unit * ppq + p, qid) for p, qid in enumerate(chunk))
                unit += 1

        for index, qid in pairs:
            question = repository.get(qid)
            if question is None:
                logger.warning(f"Selected question {qid} missing from pool; skipped")
                continue
            placed.append(PlacedQuestion(question, section.id, index))
    return placed


def _slug(text: str) -> str:
    text = re.sub(r"[^A-Za-z0-9]+", "-", text or "").strip("-")
    return text.lower() or "misc"


def _generate_timestamped_subfolder(base_dir: Path, config: BuilderConfig) -> Path:
    """
    Unique timestamped subfolder inside the base directory.

    Returns:
        Path like base/20250116-103045__10th__physics
    """
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    folder_name = f"{timestamp}__{_slug(config.class_level)}__{_slug(config.subject)}"

    candidate = base_dir / folder_name
    suffix = 1
    while candidate.exists():
        candidate = base_dir / f"{folder_name} ({suffix})"
        suffix += 1
    return candidate


def _build_metadata(config: BuilderConfig, compiled: CompiledPaper, page_count: int) -> dict:
    """
    Metadata dictionary for a generated paper.

    Example:
        >>> _build_metadata(config, compiled, 2)["subject"]
        'Physics'
    """
    from examgen_toolkit import __version__

    selections: dict = {}
    for placed in compiled.questions:
        selections.setdefault(placed.section_id, []).append(placed.question_id)

    layout = config.layout
    return {
        "generated_at": datetime.now().isoformat(),
        "builder_version": __version__,
        "class_level": config.class_level,
        "subject": config.subject,
        "paper_code": compiled.paper_code,
        "seed": config.seed,
        "medium": layout.medium.value,
        "font_size": layout.font_size,
        "line_spacing": layout.line_spacing,
        "time_allowed": config.time_allowed,
        "total_marks": compiled.total_marks,
        "question_count": len(compiled.questions),
        "page_count": page_count,
        "include_answer_key": config.include_answer_key,
        "sections": [
            {
                "id": s.id,
                "title": s.title,
                "type": s.type,
                "question_count": s.question_count,
                "attempt_count": s.attempt_count,
                "marks": s.total_marks,
            }
            for s in compiled.sections
        ],
        "selections": selections,
        "warnings": list(compiled.warnings),
    }


def _write_metadata(output_dir: Path, metadata: dict) -> None:
    """
    Write metadata JSON file to output directory.

    Raises:
        BuildError: If writing fails
    """
    metadata_path = output_dir / "build_metadata.json"
    try:
        with open(metadata_path, "w", encoding="utf-8") as f:
            json.dump(metadata, f, indent=2, ensure_ascii=False)
        logger.debug(f"Wrote metadata to {metadata_path}")
    except OSError as e:
        raise BuildError(f"Failed to write metadata: {e}") from e
