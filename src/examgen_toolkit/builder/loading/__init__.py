"""
Module: builder.loading

Purpose:
    The question repository: an indexed, filterable pool of bank
    questions for the selection engine.

Key Classes:
    - QuestionRepository: Pool indexed by id and chapter
    - LoaderError: Exception for inconsistent pools

Used By:
    - builder.selection.engine
    - builder.controller
"""

from .repository import QuestionRepository, LoaderError

__all__ = [
    "QuestionRepository",
    "LoaderError",
]
