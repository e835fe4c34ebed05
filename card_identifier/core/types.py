from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

import cv2
import numpy as np


class PreprocessStrategy(str, Enum):
    NORMAL = "normal"
    ENHANCED = "enhanced"
    BRIGHTENED = "brightened"
    FOCUSED = "focused"
    EDGES = "edges"
    TOP_SECTION = "top_section"
    HP_SECTION = "hp_section"


class ScanStage(str, Enum):
    """Escalation stages, in their fixed forward order."""

    INITIAL = "initial"
    ENHANCED_TEXT = "enhanced_text"
    NAME_SEARCH = "name_search"
    NUMBER_SEARCH = "number_search"
    VISUAL_SEARCH = "visual_search"
    FAILED = "failed"

    def next(self) -> "ScanStage":
        order = list(ScanStage)
        return order[min(order.index(self) + 1, len(order) - 1)]


class QueryLayer(str, Enum):
    COMBINED = "combined"
    NAME = "name"
    NUMBER = "number"
    HP = "hp"


_ROTATIONS = {
    90: cv2.ROTATE_90_COUNTERCLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_CLOCKWISE,
}


@dataclass(frozen=True, eq=False)
class RawCapture:
    """An immutable captured bitmap.

    ``orientation`` is the clockwise rotation (degrees) the camera applied,
    so ``upright()`` undoes it.
    """

    image: np.ndarray
    orientation: int = 0
    source: Optional[str] = None

    def __post_init__(self):
        if self.orientation not in (0, 90, 180, 270):
            raise ValueError(f"Unsupported orientation: {self.orientation}")
        if self.image is None or self.image.size == 0:
            raise ValueError("Capture image is empty")
        frozen = np.array(self.image, copy=True)
        frozen.setflags(write=False)
        object.__setattr__(self, "image", frozen)

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height) of the stored bitmap."""
        return self.image.shape[1], self.image.shape[0]

    def upright(self) -> np.ndarray:
        if self.orientation == 0:
            return self.image
        return cv2.rotate(self.image, _ROTATIONS[self.orientation])


@dataclass(frozen=True, eq=False)
class DetectedQuadrilateral:
    corners: np.ndarray  # (4, 2) float32, ordered tl, tr, br, bl
    area_fraction: float
    aspect_ratio: float


@dataclass(frozen=True)
class TextCandidate:
    text: str
    region: Tuple[int, int, int, int] = (0, 0, 0, 0)  # x, y, w, h
    confidence: float = 0.0
    strategy: Optional[PreprocessStrategy] = None

    @property
    def cleaned(self) -> str:
        return self.text.strip()


FIELD_NAMES = ("name", "number", "set", "hp")


@dataclass(frozen=True)
class ExtractedFields:
    """Best guesses for the structured card fields of one attempt."""

    name: Optional[str] = None
    number: Optional[str] = None
    set: Optional[str] = None
    hp: Optional[str] = None
    scores: Dict[str, int] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        for name in FIELD_NAMES:
            value = getattr(self, name)
            if value is not None and not value.strip():
                object.__setattr__(self, name, None)

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in FIELD_NAMES)

    def as_dict(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in FIELD_NAMES if getattr(self, name) is not None}

    def without(self, *names: str) -> "ExtractedFields":
        """Copy with the given fields unset."""
        return replace(self, **{name: None for name in names})


@dataclass
class PriceData:
    tcgplayer_market_usd: Optional[float]
    cardmarket_trend_eur: Optional[float]
    cardmarket_avg30_eur: Optional[float]
    pricing_updatedAt_tcgplayer: str
    pricing_updatedAt_cardmarket: str
    price_sources: List[str]


@dataclass(frozen=True)
class CatalogRecord:
    card_id: str
    name: str
    number: str
    set_id: str
    set_name: str = ""
    set_release_date: Optional[str] = None
    set_ptcgo_code: Optional[str] = None
    set_printed_total: Optional[int] = None
    hp: Optional[str] = None
    rarity: Optional[str] = None
    images: Dict[str, str] = field(default_factory=dict, compare=False, hash=False)
    prices: Optional[PriceData] = field(default=None, compare=False, hash=False)


@dataclass(frozen=True)
class CatalogPage:
    records: List[CatalogRecord]
    total_count: int


@dataclass(frozen=True)
class ScoredMatch:
    record: CatalogRecord
    score: int
    layer: QueryLayer

    @property
    def sort_key(self) -> Tuple[int, str]:
        return -self.score, self.record.card_id


@dataclass(frozen=True)
class IdentificationResult:
    accepted: Optional[CatalogRecord]
    potential_matches: Tuple[ScoredMatch, ...]
    error: Optional[str]
    error_type: Optional[str]
    stage: ScanStage
    superseded: bool = False

    @property
    def resolved(self) -> bool:
        return self.accepted is not None
