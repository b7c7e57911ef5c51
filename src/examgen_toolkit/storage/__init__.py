"""
Module: storage

Purpose:
    File-backed implementations of the authoring session's collaborators:
    a locked JSON document store, an expiring cache, the question bank
    and the saved-paper store.

Key Classes:
    - JsonDocumentStore: Documents at <root>/<collection>/<key>.json
    - TTLCache: Expiring cache with injected clock
    - FileContentSource: Chapters, question pools and patterns
    - FilePaperStore: Saved papers
    - StoreError: Storage failures

Dependencies:
    - portalocker: Cross-process file locks
"""

from .document_store import JsonDocumentStore, StoreError
from .cache import TTLCache
from .content import FileContentSource, VisibilitySettings, PATTERN_CACHE_TTL
from .papers import FilePaperStore

__all__ = [
    "JsonDocumentStore",
    "StoreError",
    "TTLCache",
    "FileContentSource",
    "VisibilitySettings",
    "PATTERN_CACHE_TTL",
    "FilePaperStore",
]
