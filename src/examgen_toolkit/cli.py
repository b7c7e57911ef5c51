"""
Module: cli

Purpose:
    ``examgen`` command line entry point. Drives an AuthoringSession over
    a file-backed question bank.

Commands:
    - chapters: List chapters of a class and subject
    - patterns: List patterns available for a subject
    - build: Select, compile and render a paper (optionally save it)
    - rebuild: Render a saved paper again

Example:
    examgen build --store bank --class 9th --subject Physics \\
        --pattern board-9 --chapter ch1 --seed 7 --output out --save
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from examgen_toolkit import __version__
from examgen_toolkit.builder import BuildError, SelectionConfig
from examgen_toolkit.builder.layout import LayoutConfig
from examgen_toolkit.common.logging_utils import configure_logging
from examgen_toolkit.common.settings import MEDIUM_CHOICES, SettingsStore
from examgen_toolkit.core.models import InstituteProfile
from examgen_toolkit.core.schemas import ValidationError
from examgen_toolkit.session import AuthoringSession, SessionError
from examgen_toolkit.storage import FileContentSource, FilePaperStore, JsonDocumentStore, StoreError

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="examgen", description="Pattern-driven exam paper builder")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--store", type=Path, required=True, help="Question bank / paper store directory")
    parser.add_argument("--settings", type=Path, help="Settings JSON with paper defaults and institute profile")

    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (("chapters", "List chapters"), ("patterns", "List patterns")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--class", dest="class_level", required=True)
        p.add_argument("--subject", required=True)

    build = sub.add_parser("build", help="Build a paper")
    build.add_argument("--class", dest="class_level", required=True)
    build.add_argument("--subject", required=True)
    build.add_argument("--pattern", required=True, help="Pattern id")
    build.add_argument("--chapter", action="append", default=[], help="Chapter id (repeatable)")
    build.add_argument("--subtopic", action="append", default=[], help="Subtopic id (repeatable)")
    build.add_argument("--seed", type=int, help="Random seed for auto-fill")
    build.add_argument("--no-auto-fill", action="store_true", help="Leave sections empty")
    _add_output_arguments(build)
    build.add_argument("--save", action="store_true", help="Save the paper to the store")
    build.add_argument("--title", help="Saved paper title")

    rebuild = sub.add_parser("rebuild", help="Render a saved paper")
    rebuild.add_argument("--paper", required=True, help="Saved paper id")
    _add_output_arguments(rebuild)
    return parser


def _add_output_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("--output", type=Path, default=Path("output"), help="Output base directory")
    p.add_argument("--medium", choices=MEDIUM_CHOICES)
    p.add_argument("--font-size", type=int)
    p.add_argument("--line-spacing", type=int)
    p.add_argument("--urdu-font", help="TrueType font for Urdu text")
    p.add_argument("--show-key", action="store_true", help="Print the answer key on the paper")
    p.add_argument("--no-answer-key", action="store_true", help="Skip the separate answer key PDF")
    p.add_argument("--word", action="store_true", help="Also export a Word document")


def _make_session(args: argparse.Namespace, seed: Optional[int] = None, auto_select: bool = True) -> AuthoringSession:
    store = JsonDocumentStore(args.store)
    settings = SettingsStore(args.settings) if args.settings else None
    defaults = settings.get_paper_defaults() if settings else None
    institute_data = settings.get_institute() if settings else None

    layout_args = {}
    if defaults:
        layout_args = dict(
            medium=defaults.medium,
            font_size=defaults.font_size,
            line_spacing=defaults.line_spacing,
            show_answer_key=defaults.show_answer_key,
        )
    for key in ("medium", "font_size", "line_spacing"):
        value = getattr(args, key, None)
        if value is not None:
            layout_args[key] = value
    if getattr(args, "show_key", False):
        layout_args["show_answer_key"] = True
    if getattr(args, "urdu_font", None):
        layout_args["urdu_font_path"] = args.urdu_font

    session = AuthoringSession(
        FileContentSource(store),
        FilePaperStore(store),
        selection=SelectionConfig(seed=seed, auto_select=auto_select),
        layout=LayoutConfig(**layout_args),
        institute=InstituteProfile.from_dict(institute_data) if institute_data else None,
    )
    if defaults:
        session.time_allowed = defaults.time_allowed
    return session


async def _list(args: argparse.Namespace) -> int:
    session = _make_session(args)
    session.select_class(args.class_level)
    await session.select_subject(args.subject)
    if args.command == "chapters":
        for chapter in session.chapters:
            subtopics = ", ".join(s.name for s in chapter.subtopics)
            print(f"{chapter.id}\t{chapter.name}" + (f"\t[{subtopics}]" if subtopics else ""))
    else:
        for pattern in session.patterns:
            print(f"{pattern.id}\t{pattern.name}\t{pattern.total_marks} marks")
    return 0


async def _build(args: argparse.Namespace) -> int:
    session = _make_session(args, seed=args.seed, auto_select=not args.no_auto_fill)
    session.select_class(args.class_level)
    await session.select_subject(args.subject)
    if getattr(args, "medium", None):
        session.set_layout(medium=args.medium)
    session.select_pattern(args.pattern)
    for chapter_id in args.chapter:
        if chapter_id not in session.selected_chapter_ids:
            session.toggle_chapter(chapter_id)
    if args.subtopic:
        session.selected_subtopic_ids = []
        for subtopic_id in args.subtopic:
            session.toggle_subtopic(subtopic_id)
    await session.load_questions()

    for section in session.engine.sections:
        filled = session.engine.filled_count(section.id)
        print(f"{section.id}: {filled}/{section.capacity} slots filled")

    result = session.build(args.output, include_answer_key=not args.no_answer_key, export_word=args.word)
    _report(result)

    if args.save:
        outcome = await session.save(args.title)
        print(outcome.message)
        if not outcome.success:
            return 1
        print(f"Paper id: {outcome.paper_id}")
    return 0


async def _rebuild(args: argparse.Namespace) -> int:
    session = _make_session(args)
    paper = session.papers.load(args.paper)
    if paper is None:
        logger.error(f"Saved paper not found: {args.paper}")
        return 1
    await session.restore(paper)
    overrides = {k: getattr(args, k) for k in ("medium", "font_size", "line_spacing") if getattr(args, k) is not None}
    if overrides:
        session.set_layout(**overrides)
    result = session.build(args.output, include_answer_key=not args.no_answer_key, export_word=args.word)
    _report(result)
    return 0


def _report(result) -> None:
    print(f"Paper: {result.paper_pdf} ({result.page_count} pages, {result.total_marks} marks)")
    if result.answer_key_pdf:
        print(f"Answer key: {result.answer_key_pdf}")
    if result.word_doc:
        print(f"Word: {result.word_doc}")
    for warning in result.warnings:
        print(f"Warning: {warning}")


_COMMANDS = {
    "chapters": _list,
    "patterns": _list,
    "build": _build,
    "rebuild": _rebuild,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point; returns the process exit code."""
    args = _build_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        return asyncio.run(_COMMANDS[args.command](args))
    except (SessionError, BuildError, StoreError, ValidationError, ValueError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
