"""
Unit tests for SettingsStore and configure_logging().
"""

import json
import logging

from examgen_toolkit.common.logging_utils import configure_logging
from examgen_toolkit.common.settings import (
    DEFAULT_FONT_SIZE,
    DEFAULT_TIME_ALLOWED,
    PaperDefaults,
    SettingsStore,
)


class TestSettingsStore:
    """Tests for SettingsStore."""

    def test_defaults_when_file_missing_then_builtin_values(self, tmp_path):
        store = SettingsStore(tmp_path / "settings.json")

        defaults = store.get_paper_defaults()

        assert defaults == PaperDefaults()
        assert store.load_error is None

    def test_defaults_when_roundtrip_then_persisted(self, tmp_path):
        # Arrange
        path = tmp_path / "settings.json"
        SettingsStore(path).set_paper_defaults(PaperDefaults(medium="Both", font_size=11, line_spacing=4))

        # Act
        defaults = SettingsStore(path).get_paper_defaults()

        # Assert
        assert defaults.medium == "Both"
        assert defaults.font_size == 11
        assert defaults.line_spacing == 4

    def test_defaults_when_values_malformed_then_fall_back_per_field(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({
            "version": 2,
            "medium": "Klingon",
            "font_size": "huge",
            "line_spacing": 99,
            "time_allowed": "",
        }), encoding="utf-8")

        defaults = SettingsStore(path).get_paper_defaults()

        assert defaults.medium == "English"
        assert defaults.font_size == DEFAULT_FONT_SIZE
        assert defaults.line_spacing == 10
        assert defaults.time_allowed == DEFAULT_TIME_ALLOWED

    def test_load_when_corrupted_then_load_error_and_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")

        store = SettingsStore(path)

        assert store.load_error is not None
        assert store.get_paper_defaults() == PaperDefaults()

    def test_load_when_v1_keys_then_migrated(self, tmp_path):
        # Arrange
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({
            "fontSize": 12,
            "instituteProfile": {"name": "City School"},
        }), encoding="utf-8")

        # Act
        store = SettingsStore(path)

        # Assert
        assert store.get_paper_defaults().font_size == 12
        assert store.get_institute() == {"name": "City School"}
        assert json.loads(path.read_text(encoding="utf-8"))["version"] == 2


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_configure_when_called_twice_then_single_handler(self):
        logger = logging.getLogger("examgen_test_logging")

        configure_logging(logger_name="examgen_test_logging")
        configure_logging(verbose=True, logger_name="examgen_test_logging")

        names = [h.get_name() for h in logger.handlers]
        assert names.count("examgen-console") == 1
        assert logger.level == logging.DEBUG
