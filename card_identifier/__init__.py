"""Card Identifier - Identify Pokemon cards from photos with OCR and the Pokemon TCG catalog."""

__version__ = "1.0.0"
__description__ = "Rule-based trading card identification: preprocessing, OCR field extraction and layered catalog search"

from .core.types import (
    CatalogRecord,
    ExtractedFields,
    IdentificationResult,
    PreprocessStrategy,
    RawCapture,
    ScanStage,
    ScoredMatch,
    TextCandidate,
)
from .identify.session import IdentificationSession
from .match.planner import QueryPlanner
from .resolve.poketcg import PokemonTCGClient
from .utils.config import settings
from .utils.log import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__description__",
    # Core components
    "configure_logging",
    "get_logger",
    "settings",
    "IdentificationSession",
    "QueryPlanner",
    "PokemonTCGClient",
    # Data model
    "RawCapture",
    "PreprocessStrategy",
    "TextCandidate",
    "ExtractedFields",
    "CatalogRecord",
    "ScoredMatch",
    "IdentificationResult",
    "ScanStage",
]
