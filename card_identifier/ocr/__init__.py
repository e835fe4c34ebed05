"""OCR package for text extraction from Pokemon cards."""

from .extract import OCREngine, TesseractEngine, TextExtractor, merge_pools
from .fields import extract_fields, known_name_bonus, score_name, score_sets
from .regexes import (
    COLLECTOR_NUMBER_PATTERN,
    collector_numerator,
    parse_hp,
)

__all__ = [
    "OCREngine",
    "TesseractEngine",
    "TextExtractor",
    "merge_pools",
    "extract_fields",
    "score_name",
    "score_sets",
    "known_name_bonus",
    "collector_numerator",
    "parse_hp",
    "COLLECTOR_NUMBER_PATTERN",
]
