"""Subject classification helpers."""

from __future__ import annotations

# Substrings that mark a subject as written primarily in Urdu script.
URDU_STYLE_MARKERS = ("urdu", "islam", "pak study", "pak studies", "arab", "per")


def is_english_subject(subject: str) -> bool:
    """True when the subject name contains "english" (any case)."""
    return "english" in (subject or "").lower()


def is_urdu_style_subject(subject: str) -> bool:
    """True for subjects whose papers default to Urdu (Urdu, Islamiat, Pak Studies...)."""
    lowered = (subject or "").lower()
    return any(marker in lowered for marker in URDU_STYLE_MARKERS)
