"""
Module: session

Purpose:
    Asynchronous authoring workflow on top of the builder: context
    choice, chapter scoping, question loading with stale-fetch
    protection, selection, compilation and saving.

Key Classes:
    - AuthoringSession: Workflow state and operations
    - ContentSource / PaperStore: Collaborator interfaces
    - SaveOutcome: Result of saving
    - FetchGeneration: Stale-result tokens
"""

from .collaborators import ContentSource, PaperStore, SaveOutcome
from .generation import FetchGeneration
from .authoring import AuthoringSession, SessionError

__all__ = [
    "AuthoringSession",
    "SessionError",
    "ContentSource",
    "PaperStore",
    "SaveOutcome",
    "FetchGeneration",
]
