"""Unit tests for configuration management."""

import os
from unittest.mock import patch

import pytest

from card_identifier.utils.config import (
    Settings,
    resolve_collection_db_path,
    resolve_tesseract_path,
)


class TestSettings:
    """Test Settings class configuration."""

    def test_settings_default_values(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.LOG_LEVEL == "INFO"
        assert settings.POKEMON_TCG_API_KEY is None
        assert settings.LOG_JSON is True
        assert settings.POKEMON_TCG_BASE_URL == "https://api.pokemontcg.io/v2"
        assert settings.TESSERACT_PATH is None
        assert settings.OCR_LANGUAGE == "eng"
        assert settings.OCR_JOIN_TIMEOUT_S == 8.0
        assert settings.FALLBACK_CENTER_CROP is False
        assert settings.COLLECTION_DB_PATH == "cache/collection.db"
        assert settings.PREMIUM_FEATURES is False

    def test_settings_from_environment(self):
        with patch.dict(os.environ, {
            "LOG_LEVEL": "DEBUG",
            "POKEMON_TCG_API_KEY": "test_key_123",
            "OCR_JOIN_TIMEOUT_S": "2.5",
            "FALLBACK_CENTER_CROP": "true",
            "PREMIUM_FEATURES": "1",
        }):
            settings = Settings(_env_file=None)

        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.POKEMON_TCG_API_KEY == "test_key_123"
        assert settings.OCR_JOIN_TIMEOUT_S == 2.5
        assert settings.FALLBACK_CENTER_CROP is True
        assert settings.PREMIUM_FEATURES is True

    def test_settings_case_insensitive(self):
        with patch.dict(os.environ, {"log_level": "WARNING", "collection_db_path": "data/mine.db"}):
            settings = Settings(_env_file=None)

        assert settings.LOG_LEVEL == "WARNING"
        assert settings.COLLECTION_DB_PATH == "data/mine.db"

    def test_blank_values_fall_back(self):
        with patch.dict(os.environ, {
            "POKEMON_TCG_API_KEY": "   ",
            "TESSERACT_PATH": "",
            "LOG_LEVEL": " ",
            "COLLECTION_DB_PATH": "",
        }):
            settings = Settings(_env_file=None)

        assert settings.POKEMON_TCG_API_KEY is None
        assert settings.TESSERACT_PATH is None
        assert settings.LOG_LEVEL == "INFO"
        assert settings.COLLECTION_DB_PATH == "cache/collection.db"

    @pytest.mark.parametrize("name", ["OCR_JOIN_TIMEOUT_S", "CATALOG_TIMEOUT_S"])
    def test_timeouts_must_be_positive(self, name):
        with patch.dict(os.environ, {name: "0"}):
            with pytest.raises(ValueError):
                Settings(_env_file=None)

    def test_settings_validation(self):
        with patch.dict(os.environ, {"PREMIUM_FEATURES": "maybe"}):
            with pytest.raises(ValueError):
                Settings(_env_file=None)


class TestCollectionPath:
    def test_creates_parent_directory(self, tmp_path):
        target = tmp_path / "nested" / "collection.db"
        with patch("card_identifier.utils.config.settings") as mock_settings:
            mock_settings.COLLECTION_DB_PATH = str(target)

            result = resolve_collection_db_path()

        assert result == target
        assert target.parent.is_dir()


class TestTesseractPathResolution:
    """Test Tesseract path resolution."""

    def test_custom_path_exists(self, tmp_path):
        tesseract_path = tmp_path / "custom_tesseract"
        tesseract_path.touch()

        with patch("card_identifier.utils.config.settings") as mock_settings:
            mock_settings.TESSERACT_PATH = str(tesseract_path)
            assert resolve_tesseract_path() == str(tesseract_path)

    def test_custom_path_missing_falls_back_to_path_lookup(self, tmp_path):
        with patch("card_identifier.utils.config.settings") as mock_settings, \
             patch("card_identifier.utils.config.shutil.which", return_value="/usr/bin/tesseract"):
            mock_settings.TESSERACT_PATH = str(tmp_path / "missing")
            assert resolve_tesseract_path() == "/usr/bin/tesseract"

    def test_common_locations(self):
        with patch("card_identifier.utils.config.settings") as mock_settings, \
             patch("card_identifier.utils.config.shutil.which", return_value=None), \
             patch("card_identifier.utils.config.Path.exists", return_value=True):
            mock_settings.TESSERACT_PATH = None
            assert resolve_tesseract_path() == "/opt/homebrew/bin/tesseract"

    def test_not_found(self):
        with patch("card_identifier.utils.config.settings") as mock_settings, \
             patch("card_identifier.utils.config.shutil.which", return_value=None), \
             patch("card_identifier.utils.config.Path.exists", return_value=False):
            mock_settings.TESSERACT_PATH = None
            with pytest.raises(FileNotFoundError, match="Tesseract not found"):
                resolve_tesseract_path()
