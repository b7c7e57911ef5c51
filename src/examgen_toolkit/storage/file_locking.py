"""
Module: storage.file_locking

Purpose:
    Cross-platform file locking for JSON documents shared between
    processes (for example two terminals saving papers into the same
    store). Uses portalocker for Mac, Windows, and Linux compatibility.

Key Functions:
    - locked_file: Context manager for locked file access
    - read_json_locked: Read a JSON document under a shared lock
    - write_json_locked: Replace a JSON document under an exclusive lock
    - update_json_locked: Read-modify-write under one exclusive lock

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - storage.document_store: Document persistence
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Generator, Optional

import portalocker

logger = logging.getLogger(__name__)


@contextmanager
def locked_file(
    path: Path,
    mode: str = "r",
    lock_type: int = portalocker.LOCK_EX,
) -> Generator:
    """
    Context manager for cross-platform locked file access.

    Args:
        path: Path to file.
        mode: File open mode ('r', 'w', 'r+', 'a').
        lock_type: LOCK_EX for exclusive, LOCK_SH for shared.

    Yields:
        Open file handle with lock held.

    Example:
        >>> with locked_file(path, "r", portalocker.LOCK_SH) as f:
        ...     data = f.read()
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, mode, encoding="utf-8") as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


def read_json_locked(path: Path) -> Optional[Dict[str, Any]]:
    """
    Read a JSON document with a shared lock.

    Returns:
        Parsed document, or None if the file does not exist or is empty.

    Raises:
        json.JSONDecodeError: If the file holds malformed JSON.
    """
    if not path.exists():
        return None
    with locked_file(path, "r", portalocker.LOCK_SH) as f:
        content = f.read()
    if not content.strip():
        return None
    return json.loads(content)


def write_json_locked(path: Path, data: Dict[str, Any]) -> None:
    """
    Replace a JSON document with an exclusive lock held.

    The file is opened without truncation so the lock is taken before
    existing content is discarded.
    """
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()
    with locked_file(path, "r+", portalocker.LOCK_EX) as f:
        f.seek(0)
        f.truncate()
        json.dump(data, f, indent=2, ensure_ascii=False)
    logger.debug(f"Wrote {path.name}")


def update_json_locked(
    path: Path,
    modifier: Callable[[Dict[str, Any]], Dict[str, Any]],
    default: Callable[[], Dict[str, Any]] = dict,
) -> Dict[str, Any]:
    """
    Read JSON, apply modifier, write back, all under one exclusive lock.

    Args:
        path: Path to JSON file.
        modifier: Takes the existing document and returns the new one.
        default: Factory for the document when the file is missing or empty.

    Returns:
        The document that was written.

    Example:
        >>> update_json_locked(path, lambda doc: {**doc, "title": "Mid-term"})
    """
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()

    with locked_file(path, "r+", portalocker.LOCK_EX) as f:
        f.seek(0)
        content = f.read()
        existing = json.loads(content) if content.strip() else default()

        modified = modifier(existing)

        f.seek(0)
        f.truncate()
        json.dump(modified, f, indent=2, ensure_ascii=False)
        return modified
