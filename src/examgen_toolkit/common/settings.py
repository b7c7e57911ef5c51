"""
Settings persistence for paper defaults.

This module handles persisted user defaults (medium, font size, spacing,
answer key, time allowed, institute profile) with robust error handling.
Any malformed data should result in graceful fallback to defaults, never
a crash.
"""
import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TIME_ALLOWED = "2:00 Hours"
DEFAULT_FONT_SIZE = 13
MAX_FONT_SIZE = 13
DEFAULT_LINE_SPACING = 2
MAX_LINE_SPACING = 10
MEDIUM_CHOICES = ("English", "Urdu", "Both")

# Keys written by the v1 store (camelCase) and their v2 names.
_V1_KEYS = {
    "fontSize": "font_size",
    "lineSpacing": "line_spacing",
    "showAnswerKey": "show_answer_key",
    "timeAllowed": "time_allowed",
    "instituteProfile": "institute",
    "outputDir": "output_dir",
}


@dataclass
class PaperDefaults:
    medium: str = "English"
    font_size: int = DEFAULT_FONT_SIZE
    line_spacing: int = DEFAULT_LINE_SPACING
    show_answer_key: bool = False
    time_allowed: str = DEFAULT_TIME_ALLOWED
    output_dir: Optional[str] = None


class SettingsStore:
    """Lightweight JSON-backed store for persisting paper defaults."""

    CURRENT_VERSION = 2  # v2: snake_case keys, institute profile nested

    def __init__(self, path: Path) -> None:
        self.path = path
        self.data: Dict[str, Any] = {}
        self._load_error: Optional[str] = None

        if self.path.exists():
            try:
                loaded = json.loads(self.path.read_text(encoding="utf-8"))
                if not isinstance(loaded, dict):
                    raise ValueError("settings root must be an object")
                self.data = loaded
                self._migrate()
            except json.JSONDecodeError as e:
                self._load_error = f"Settings file is corrupted: {e}"
                self.data = {}
            except (OSError, ValueError) as e:
                self._load_error = f"Failed to read settings: {e}"
                self.data = {}
            if self._load_error:
                logger.warning(f"{self._load_error} ({self.path}); using defaults")

        # Ensure version is set for new files
        if "version" not in self.data:
            self.data["version"] = self.CURRENT_VERSION

    @property
    def load_error(self) -> Optional[str]:
        """Message describing why the file could not be loaded, if it could not."""
        return self._load_error

    def _migrate(self) -> None:
        """Upgrade older settings files in place."""
        version = self._safe_int(self.data.get("version"), 1)
        if version >= self.CURRENT_VERSION:
            return

        if version < 2:
            for old_key, new_key in _V1_KEYS.items():
                if old_key in self.data and new_key not in self.data:
                    self.data[new_key] = self.data.pop(old_key)
            logger.info(f"Migrated settings from v{version} to v{self.CURRENT_VERSION}")

        self.data["version"] = self.CURRENT_VERSION
        self._save()

    def get_paper_defaults(self) -> PaperDefaults:
        """Get paper defaults, falling back field by field on malformed values.

        Never raises.
        """
        raw = self.data
        medium = raw.get("medium")
        if medium not in MEDIUM_CHOICES:
            medium = "English"
        font_size = min(max(self._safe_int(raw.get("font_size"), DEFAULT_FONT_SIZE), 1), MAX_FONT_SIZE)
        line_spacing = min(max(self._safe_int(raw.get("line_spacing"), DEFAULT_LINE_SPACING), 0), MAX_LINE_SPACING)
        time_allowed = raw.get("time_allowed")
        output_dir = raw.get("output_dir")
        return PaperDefaults(
            medium=medium,
            font_size=font_size,
            line_spacing=line_spacing,
            show_answer_key=bool(raw.get("show_answer_key", False)),
            time_allowed=time_allowed if isinstance(time_allowed, str) and time_allowed.strip() else DEFAULT_TIME_ALLOWED,
            output_dir=output_dir if isinstance(output_dir, str) else None,
        )

    def set_paper_defaults(self, defaults: PaperDefaults) -> None:
        self.data.update(asdict(defaults))
        self._save()

    def get_institute(self) -> Optional[Dict[str, Any]]:
        institute = self.data.get("institute")
        return institute if isinstance(institute, dict) else None

    def set_institute(self, institute: Dict[str, Any]) -> None:
        self.data["institute"] = dict(institute)
        self._save()

    def _safe_int(self, value: Any, default: int) -> int:
        """Safely convert a value to int, returning default on failure."""
        if value is None or isinstance(value, bool):
            return default
        try:
            return int(value)
        except (ValueError, TypeError):
            return default

    def _save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self.data, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write settings to {self.path}: {e}")
