"""
Module: session.authoring

Purpose:
    The asynchronous paper authoring workflow:

        class → subject → pattern → chapters → questions → finish
        → compile → save

    Every upstream change synchronously discards the state derived from
    it before any new fetch starts. Fetches carry generation tokens; a
    result arriving after a newer request or a context change is dropped.

Key Classes:
    - AuthoringSession: Workflow state and operations
    - SessionError: Step called out of order

Dependencies:
    - session.collaborators: ContentSource, PaperStore
    - builder: Repository, selection engine, controller

Used By:
    - examgen_toolkit.cli: Command line sessions
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional

from examgen_toolkit.builder.config import BuilderConfig
from examgen_toolkit.builder.controller import BuildResult, CompiledPaper, compile_paper, render_paper
from examgen_toolkit.builder.layout import LayoutConfig
from examgen_toolkit.builder.loading import QuestionRepository
from examgen_toolkit.builder.selection import (
    SelectionConfig,
    SelectionEngine,
    SelectionOutcome,
    mandatory_chapter_ids,
    resolve_effective_sections,
)
from examgen_toolkit.common.chapters import format_chapters_display
from examgen_toolkit.common.settings import DEFAULT_TIME_ALLOWED
from examgen_toolkit.core.models import (
    Chapter,
    InstituteProfile,
    Medium,
    PaperPattern,
    Question,
    SavedPaper,
    Section,
    SlotRef,
)
from examgen_toolkit.core.utils import serialize_saved_paper

from .collaborators import ContentSource, PaperStore, SaveOutcome
from .generation import FetchGeneration

logger = logging.getLogger(__name__)

# Fields of a saved snapshot that an update leaves alone
_UPDATE_EXCLUDED = ("id", "created_at", "user_id", "created_by", "schema_version")


class SessionError(Exception):
    """Session step called before its prerequisites."""
    pass


class AuthoringSession:
    """
    One user's paper authoring session.

    Attributes:
        class_level / subject: Current context
        chapters: Chapter catalogue of the context
        patterns: Patterns applying to the subject
        pattern: Chosen pattern
        selected_chapter_ids / selected_subtopic_ids: Chapter scope
        mandatory_chapter_ids: Chapters the pattern forces
        engine: Selection state once questions are loaded
        effective_sections: Result of finish()
        compiled: Result of compile()
        saved_paper_id: Store id once saved; later saves update it

    Example:
        >>> session = AuthoringSession(content, papers, selection=SelectionConfig(seed=7))
        >>> session.select_class("9th")
        >>> await session.select_subject("Physics")
        >>> session.select_pattern("board-9")
        >>> await session.load_questions()
        >>> outcome = await session.save()
    """

    def __init__(
        self,
        content: ContentSource,
        papers: Optional[PaperStore] = None,
        *,
        selection: Optional[SelectionConfig] = None,
        layout: Optional[LayoutConfig] = None,
        institute: Optional[InstituteProfile] = None,
        time_allowed: str = DEFAULT_TIME_ALLOWED,
        user_id: str = "",
        created_by: str = "",
    ) -> None:
        self.content = content
        self.papers = papers
        self.selection = selection or SelectionConfig()
        self.layout = layout or LayoutConfig()
        self.institute = institute or InstituteProfile()
        self.time_allowed = time_allowed
        self.user_id = user_id
        self.created_by = created_by
        self._rng = self.selection.make_rng()

        self._catalog_fetches = FetchGeneration()
        self._pool_fetches = FetchGeneration()

        self.class_level = ""
        self.subject = ""
        self.chapters: List[Chapter] = []
        self.patterns: List[PaperPattern] = []
        self.saved_paper_id: Optional[str] = None
        self.paper_code = ""
        self._reset_pattern()

    # ─────────────────────────────────────────────────────────────────────────
    # Context
    # ─────────────────────────────────────────────────────────────────────────

    def select_class(self, class_level: str) -> None:
        """Choose the class; everything downstream is reset."""
        self._reset_context()
        self.class_level = class_level.strip()
        self.subject = ""

    async def select_subject(self, subject: str) -> bool:
        """
        Choose the subject and fetch its chapters and patterns.

        Urdu-style subjects (Urdu, Islamiat, Pak Studies...) move an
        English-medium layout to Urdu medium; other media are left alone.

        Returns:
            False if a newer context change superseded this fetch

        Raises:
            SessionError: If no class has been chosen
        """
        if not self.class_level:
            raise SessionError("Choose a class before choosing a subject")

        self._reset_context()
        self.subject = subject.strip()
        self.selection = replace(self.selection, subject=self.subject)
        if self.selection.subject_is_urdu_style and self.layout.medium is Medium.ENGLISH:
            self.layout = replace(self.layout, medium=Medium.URDU)
        token = self._catalog_fetches.advance()

        chapters, patterns = await asyncio.gather(
            self.content.fetch_chapters(self.subject, self.class_level, True),
            self.content.fetch_patterns(),
        )
        if not self._catalog_fetches.is_current(token):
            logger.debug(f"Discarding stale catalogue for {subject}")
            return False

        self.chapters = list(chapters)
        self.patterns = [p for p in patterns if p.applies_to_subject(self.subject)]
        logger.info(
            f"Context {self.class_level} {self.subject}: "
            f"{len(self.chapters)} chapters, {len(self.patterns)} patterns"
        )
        return True

    def select_pattern(self, pattern_id: str) -> PaperPattern:
        """
        Choose a pattern; its mandatory chapters become selected and locked.

        Raises:
            SessionError: If the pattern is not available for the subject
        """
        pattern = next((p for p in self.patterns if p.id == pattern_id), None)
        if pattern is None:
            raise SessionError(f"Pattern not available for {self.subject or 'this subject'}: {pattern_id}")
        self._apply_pattern(pattern)
        if pattern.time_allowed:
            self.time_allowed = pattern.time_allowed
        logger.info(f"Pattern {pattern.id}: {len(self.mandatory_chapter_ids)} mandatory chapters")
        return pattern

    # ─────────────────────────────────────────────────────────────────────────
    # Chapter Scope
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def selected_chapters(self) -> List[Chapter]:
        selected = set(self.selected_chapter_ids)
        return [c for c in self.chapters if c.id in selected]

    @property
    def chapters_display(self) -> str:
        return format_chapters_display(self.selected_chapters)

    def toggle_chapter(self, chapter_id: str) -> bool:
        """
        Select or deselect a chapter together with all its subtopics.

        Returns:
            False if nothing changed (a mandatory chapter cannot be deselected)

        Raises:
            SessionError: If the chapter is not in the catalogue
        """
        chapter = self._chapter(chapter_id)
        subtopic_ids = set(chapter.subtopic_ids)
        if chapter_id in self.selected_chapter_ids:
            if chapter_id in self.mandatory_chapter_ids:
                logger.info(f"Chapter {chapter_id} is required by the pattern")
                return False
            self.selected_chapter_ids.remove(chapter_id)
            self.selected_subtopic_ids = [s for s in self.selected_subtopic_ids if s not in subtopic_ids]
        else:
            self.selected_chapter_ids.append(chapter_id)
            self.selected_subtopic_ids.extend(s for s in chapter.subtopic_ids if s not in self.selected_subtopic_ids)
        self._reset_selection()
        return True

    def toggle_subtopic(self, subtopic_id: str) -> bool:
        """
        Select or deselect one subtopic; selecting also selects its chapter.

        Returns:
            Whether the subtopic is now selected

        Raises:
            SessionError: If no chapter in the catalogue owns the subtopic
        """
        owner = next((c for c in self.chapters if subtopic_id in c.subtopic_ids), None)
        if owner is None:
            raise SessionError(f"Unknown subtopic: {subtopic_id}")

        if subtopic_id in self.selected_subtopic_ids:
            self.selected_subtopic_ids.remove(subtopic_id)
            selected = False
        else:
            self.selected_subtopic_ids.append(subtopic_id)
            if owner.id not in self.selected_chapter_ids:
                self.selected_chapter_ids.append(owner.id)
            selected = True
        self._reset_selection()
        return selected

    # ─────────────────────────────────────────────────────────────────────────
    # Question Pool
    # ─────────────────────────────────────────────────────────────────────────

    async def load_questions(self, bypass_cache: bool = False) -> bool:
        """
        Fetch the pool for the selected chapters and start a fresh selection.

        When any subtopic is selected, only questions tagged with a
        selected subtopic are kept. Sections are auto-filled when the
        selection config asks for it.

        Returns:
            False if the result was superseded and discarded

        Raises:
            SessionError: If no pattern or no chapter is selected
        """
        if self.pattern is None:
            raise SessionError("Choose a pattern before loading questions")
        if not self.selected_chapter_ids:
            raise SessionError("Select at least one chapter before loading questions")

        self._reset_selection()
        token = self._pool_fetches.advance()
        pool = await self.content.fetch_question_pool(
            self.subject,
            self.chapters,
            list(self.selected_chapter_ids),
            bypass_cache,
        )
        if not self._pool_fetches.is_current(token):
            logger.debug("Discarding stale question pool")
            return False

        pool = self._filter_subtopics(pool)
        repository = QuestionRepository(pool, self.chapters)
        self.engine = SelectionEngine(
            self.pattern.sections,
            repository,
            subject_is_english=self.selection.subject_is_english,
            rng=self._rng,
        )
        if self.selection.auto_select:
            self.engine.auto_fill()
        logger.info(f"Loaded pool of {len(repository)} questions for {len(self.selected_chapter_ids)} chapters")
        return True

    def _filter_subtopics(self, pool: Iterable[Question]) -> List[Question]:
        if not self.selected_subtopic_ids:
            return list(pool)
        wanted = set(self.selected_subtopic_ids)
        for chapter in self.chapters:
            wanted.update(s.name for s in chapter.subtopics if s.id in self.selected_subtopic_ids)
        return [q for q in pool if q.subtopic and q.subtopic in wanted]

    # ─────────────────────────────────────────────────────────────────────────
    # Selection
    # ─────────────────────────────────────────────────────────────────────────

    def toggle_question(self, question_id: str, section_id: str) -> SelectionOutcome:
        return self._edited(self._require_engine().toggle(question_id, section_id))

    def swap_slot(self, section_id: str, unit_index: int, part_index: int, question_id: str) -> SelectionOutcome:
        return self._edited(self._require_engine().swap_slot(section_id, unit_index, part_index, question_id))

    def begin_swap(self, section_id: str, unit_index: int, part_index: int) -> Optional[SlotRef]:
        return self._require_engine().begin_swap(section_id, unit_index, part_index)

    def swap_candidates(self) -> List[Question]:
        """Eligible questions for the slot being swapped (empty when none is)."""
        engine = self._require_engine()
        slot = engine.swapping
        if slot is None:
            return []
        return engine.candidates_for_slot(slot.section_id, slot.unit_index, slot.part_index)

    def complete_swap(self, question_id: str) -> SelectionOutcome:
        return self._edited(self._require_engine().complete_swap(question_id))

    def cancel_swap(self) -> None:
        self._require_engine().cancel_swap()

    def auto_fill(self, section_ids: Optional[Iterable[str]] = None, *, replace: bool = True) -> dict:
        added = self._require_engine().auto_fill(section_ids, replace=replace)
        self._invalidate_output()
        return added

    def clear_section(self, section_id: str) -> SelectionOutcome:
        return self._edited(self._require_engine().clear(section_id))

    def clear_all(self) -> None:
        self._require_engine().clear_all()
        self._invalidate_output()

    # ─────────────────────────────────────────────────────────────────────────
    # Finish, Compile, Save
    # ─────────────────────────────────────────────────────────────────────────

    def finish(self) -> List[Section]:
        """Effective sections for the current selection."""
        engine = self._require_engine()
        duplicates = engine.cross_section_duplicates()
        if duplicates:
            logger.warning(f"Questions used in more than one section: {sorted(duplicates)}")
        self.effective_sections = resolve_effective_sections(self.pattern.sections, engine.selections)
        return list(self.effective_sections)

    def builder_config(self, output_dir: Optional[Path] = None, **overrides) -> BuilderConfig:
        """BuilderConfig reflecting the session's header and layout settings."""
        values = dict(
            class_level=self.class_level,
            subject=self.subject,
            output_dir=output_dir,
            time_allowed=self.time_allowed,
            paper_code=self.paper_code,
            institute=self.institute,
            chapters_display=self.chapters_display,
            layout=self.layout,
            seed=self.selection.seed,
        )
        values.update(overrides)
        return BuilderConfig(**values)

    def compile(self) -> CompiledPaper:
        """
        Compile the current selection; the paper code stays stable afterwards.

        Raises:
            SessionError: If no questions have been loaded
        """
        engine = self._require_engine()
        self.finish()
        compiled = compile_paper(
            self.pattern.sections,
            engine.selections,
            engine.repository,
            self.builder_config(),
            rng=self._rng,
        )
        self.paper_code = compiled.paper_code
        self.compiled = compiled
        return compiled

    def build(self, output_dir: Path, **overrides) -> BuildResult:
        """Compile if needed and render into a timestamped folder under output_dir."""
        compiled = self.compiled or self.compile()
        return render_paper(compiled, self.builder_config(Path(output_dir), **overrides))

    def set_layout(self, **changes) -> LayoutConfig:
        """Change medium, font size, spacing or answer key display."""
        self.layout = replace(self.layout, **changes)
        self._invalidate_output()
        return self.layout

    def snapshot(self, title: Optional[str] = None) -> SavedPaper:
        """Saved-paper snapshot of the compiled paper."""
        compiled = self.compiled or self.compile()
        return SavedPaper(
            title=title or f"{self.class_level} - {self.subject}",
            class_level=self.class_level,
            subject=self.subject,
            sections=compiled.sections,
            questions=compiled.questions,
            id=self.saved_paper_id,
            institute=self.institute,
            user_id=self.user_id,
            created_by=self.created_by,
            pattern_id=self.pattern.id if self.pattern else None,
            selected_chapter_ids=tuple(self.selected_chapter_ids),
            selected_subtopic_ids=tuple(self.selected_subtopic_ids),
            chapters_display=self.chapters_display,
            medium=self.layout.medium,
            font_size=self.layout.font_size,
            line_spacing=self.layout.line_spacing,
            time_allowed=self.time_allowed,
            paper_code=compiled.paper_code,
        )

    async def save(self, title: Optional[str] = None) -> SaveOutcome:
        """
        Persist the compiled paper, or update it if it was saved before.

        A failed save leaves every piece of session state untouched so
        the caller can retry.

        Raises:
            SessionError: If the session has no paper store
        """
        if self.papers is None:
            raise SessionError("No paper store configured")
        paper = self.snapshot(title)

        if self.saved_paper_id:
            partial = {k: v for k, v in serialize_saved_paper(paper).items() if k not in _UPDATE_EXCLUDED}
            outcome = await self.papers.update_paper(self.saved_paper_id, partial)
        else:
            outcome = await self.papers.persist_paper(paper)

        if outcome.success:
            if outcome.paper_id:
                self.saved_paper_id = outcome.paper_id
            logger.info(f"Paper saved: {self.saved_paper_id}")
        else:
            logger.warning(f"Saving paper failed: {outcome.message}")
        return outcome

    async def restore(self, paper: SavedPaper) -> bool:
        """
        Reopen a saved paper for editing.

        The snapshot's sections become the pattern and its placements the
        selection. The pool for the saved chapters is fetched so questions
        can still be swapped in; where a question is both in the pool and
        in the snapshot, the snapshot's copy is kept.

        Returns:
            False if a newer context change superseded the restore
        """
        self.select_class(paper.class_level)
        self.subject = paper.subject
        self.selection = replace(self.selection, subject=paper.subject)
        token = self._catalog_fetches.advance()

        chapters, patterns = await asyncio.gather(
            self.content.fetch_chapters(paper.subject, paper.class_level, False),
            self.content.fetch_patterns(),
        )
        if not self._catalog_fetches.is_current(token):
            logger.debug(f"Discarding stale restore of {paper.id}")
            return False
        self.chapters = list(chapters)
        self.patterns = [p for p in patterns if p.applies_to_subject(paper.subject)]

        pattern = PaperPattern(
            id=paper.pattern_id or f"saved-{paper.id}",
            name=paper.title,
            sections=paper.sections,
            subject=paper.subject,
            class_level=paper.class_level,
            time_allowed=paper.time_allowed,
        )
        self._apply_pattern(pattern)
        chapter_ids = paper.selected_chapter_ids or tuple(dict.fromkeys(pq.question.chapter_id for pq in paper.questions))
        for chapter_id in chapter_ids:
            if chapter_id not in self.selected_chapter_ids:
                self.selected_chapter_ids.append(chapter_id)
        self.selected_subtopic_ids = list(paper.selected_subtopic_ids)

        self.layout = replace(
            self.layout,
            medium=paper.medium,
            font_size=paper.font_size,
            line_spacing=paper.line_spacing,
        )
        self.time_allowed = paper.time_allowed
        self.paper_code = paper.paper_code
        if paper.institute is not None:
            self.institute = paper.institute
        self.saved_paper_id = paper.id

        token = self._pool_fetches.advance()
        pool = await self.content.fetch_question_pool(
            paper.subject,
            self.chapters,
            list(self.selected_chapter_ids),
        )
        if not self._pool_fetches.is_current(token):
            logger.debug(f"Discarding stale pool for restored paper {paper.id}")
            return False

        merged = {q.id: q for q in self._filter_subtopics(pool)}
        merged.update((pq.question_id, pq.question) for pq in paper.questions)
        repository = QuestionRepository(merged.values(), self.chapters)
        self.engine = SelectionEngine.from_placements(
            pattern.sections,
            repository,
            paper.questions,
            subject_is_english=self.selection.subject_is_english,
            rng=self._rng,
        )
        logger.info(
            f"Restored paper {paper.id} with {paper.question_count} questions "
            f"from a pool of {len(repository)}"
        )
        return True

    # ─────────────────────────────────────────────────────────────────────────
    # Internal
    # ─────────────────────────────────────────────────────────────────────────

    def _apply_pattern(self, pattern: PaperPattern) -> None:
        self._reset_pattern()
        self.pattern = pattern
        mandatory = mandatory_chapter_ids(pattern, self.chapters)
        self.mandatory_chapter_ids = frozenset(mandatory)
        self.selected_chapter_ids = list(mandatory)
        self.selected_subtopic_ids = [
            s for c in self.chapters if c.id in self.mandatory_chapter_ids for s in c.subtopic_ids
        ]

    def _reset_context(self) -> None:
        """Discard everything derived from class and subject."""
        self._catalog_fetches.advance()
        self.chapters = []
        self.patterns = []
        self.saved_paper_id = None
        self.paper_code = ""
        self._reset_pattern()

    def _reset_pattern(self) -> None:
        self.pattern: Optional[PaperPattern] = None
        self.mandatory_chapter_ids: frozenset[str] = frozenset()
        self.selected_chapter_ids: List[str] = []
        self.selected_subtopic_ids: List[str] = []
        self._reset_selection()

    def _reset_selection(self) -> None:
        """Discard the pool and selection; pending pool fetches become stale."""
        self._pool_fetches.advance()
        self.engine: Optional[SelectionEngine] = None
        self._invalidate_output()

    def _invalidate_output(self) -> None:
        self.effective_sections: Optional[List[Section]] = None
        self.compiled: Optional[CompiledPaper] = None

    def _edited(self, outcome: SelectionOutcome) -> SelectionOutcome:
        if outcome.ok:
            self._invalidate_output()
        return outcome

    def _require_engine(self) -> SelectionEngine:
        if self.engine is None:
            raise SessionError("Load questions before selecting")
        return self.engine

    def _chapter(self, chapter_id: str) -> Chapter:
        chapter = next((c for c in self.chapters if c.id == chapter_id), None)
        if chapter is None:
            raise SessionError(f"Unknown chapter: {chapter_id}")
        return chapter

    def __repr__(self) -> str:
        pattern = self.pattern.id if self.pattern else None
        return f"AuthoringSession({self.class_level!r}, {self.subject!r}, pattern={pattern!r})"
