"""Configuration and settings management."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator
from pathlib import Path
import shutil

class Settings(BaseSettings):
    # Pokemon TCG API
    POKEMON_TCG_API_KEY: Optional[str] = None
    POKEMON_TCG_BASE_URL: str = "https://api.pokemontcg.io/v2"
    CATALOG_TIMEOUT_S: float = 10.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # OCR settings
    TESSERACT_PATH: Optional[str] = None
    OCR_LANGUAGE: str = "eng"
    OCR_JOIN_TIMEOUT_S: float = 8.0

    # Card detection
    FALLBACK_CENTER_CROP: bool = False

    # Owned collection
    COLLECTION_DB_PATH: str = "cache/collection.db"

    # Entitlement gate, consulted only before displaying price data
    PREMIUM_FEATURES: bool = False

    @field_validator('POKEMON_TCG_API_KEY', 'TESSERACT_PATH', mode='before')
    @classmethod
    def validate_optional_str(cls, v):
        """Convert empty/whitespace strings to None."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('LOG_LEVEL', mode='before')
    @classmethod
    def validate_log_level(cls, v):
        """Convert empty/whitespace strings to default."""
        if isinstance(v, str) and not v.strip():
            return "INFO"
        return v

    @field_validator('COLLECTION_DB_PATH', mode='before')
    @classmethod
    def validate_collection_path(cls, v):
        """Convert empty/whitespace strings to default."""
        if isinstance(v, str) and not v.strip():
            return "cache/collection.db"
        return v

    @field_validator('OCR_JOIN_TIMEOUT_S', 'CATALOG_TIMEOUT_S')
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"
    }

# Global settings instance
settings = Settings()

def resolve_tesseract_path() -> str:
    """Get Tesseract path, with fallback to common locations."""
    if settings.TESSERACT_PATH and Path(settings.TESSERACT_PATH).exists():
        return settings.TESSERACT_PATH

    # Try to find tesseract in PATH
    tesseract_path = shutil.which("tesseract")
    if tesseract_path:
        return tesseract_path

    common_paths = [
        "/opt/homebrew/bin/tesseract",  # Apple Silicon Homebrew
        "/usr/local/bin/tesseract",     # Intel Homebrew
        "/usr/bin/tesseract",           # System package
    ]

    for path in common_paths:
        if Path(path).exists():
            return path

    raise FileNotFoundError(
        "Tesseract not found. Please install it (brew install tesseract / apt install tesseract-ocr)"
    )

def resolve_collection_db_path() -> Path:
    """Resolve the collection database path and make sure its directory exists."""
    path = Path(settings.COLLECTION_DB_PATH).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return path
