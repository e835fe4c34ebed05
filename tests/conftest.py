"""Pytest configuration and shared fixtures for card identifier tests."""

import asyncio
from typing import Dict, List, Optional, Sequence, Union

import cv2
import numpy as np
import pytest

from card_identifier.capture.warp import CropResult
from card_identifier.core.types import (
    CatalogPage,
    CatalogRecord,
    PreprocessStrategy,
    RawCapture,
    TextCandidate,
)


class FakeCatalog:
    """Catalog stand-in: canned answers per exact query string.

    An answer may be a list of records or an exception instance to raise.
    Unknown queries return an empty page.
    """

    def __init__(self, answers: Optional[Dict[str, Union[List[CatalogRecord], Exception]]] = None):
        self.answers = dict(answers or {})
        self.calls: List[tuple] = []

    async def search_cards(self, query: str, page: int = 1, page_size: int = 10) -> CatalogPage:
        self.calls.append((query, page, page_size))
        answer = self.answers.get(query, [])
        if isinstance(answer, Exception):
            raise answer
        return CatalogPage(records=list(answer), total_count=len(answer))

    @property
    def queries(self) -> List[str]:
        return [call[0] for call in self.calls]


class FakeExtractor:
    """TextExtractor stand-in returning canned text per preprocessing strategy."""

    def __init__(self, pools: Optional[Dict[PreprocessStrategy, Sequence[str]]] = None, delay: float = 0.0):
        self.pools = dict(pools or {})
        self.delay = delay
        self.calls: List[PreprocessStrategy] = []

    async def extract_async(self, image, strategy) -> List[TextCandidate]:
        self.calls.append(strategy)
        if self.delay:
            await asyncio.sleep(self.delay)
        answer = self.pools.get(strategy, [])
        if isinstance(answer, Exception):
            raise answer
        return [TextCandidate(text=text, strategy=strategy) for text in answer]


class PassThroughCropper:
    """Cropper stand-in that never finds a card outline."""

    def __init__(self):
        self.calls = 0

    def detect_and_crop(self, image):
        self.calls += 1
        return CropResult(image=image, quadrilateral=None)


@pytest.fixture
def make_record():
    """Factory for catalog records with sensible defaults."""

    def _make(card_id: str, name: str, number: str = "1", set_id: str = "base1", **kwargs) -> CatalogRecord:
        kwargs.setdefault("set_name", "Base")
        kwargs.setdefault("set_release_date", "1999/01/09")
        return CatalogRecord(card_id=card_id, name=name, number=number, set_id=set_id, **kwargs)

    return _make


@pytest.fixture
def fake_catalog():
    return FakeCatalog()


@pytest.fixture
def fake_extractor():
    return FakeExtractor()


@pytest.fixture
def cropper():
    return PassThroughCropper()


@pytest.fixture
def blank_capture():
    return RawCapture(image=np.full((700, 500, 3), 128, dtype=np.uint8), source="blank.png")


@pytest.fixture
def card_photo():
    """Synthetic photo: a light 2.5:3.5 card on a dark background."""
    image = np.full((1000, 800, 3), 30, dtype=np.uint8)
    cv2.rectangle(image, (150, 150), (650, 850), (230, 230, 230), thickness=-1)
    cv2.putText(image, "Pikachu", (200, 250), cv2.FONT_HERSHEY_SIMPLEX, 1.5, (20, 20, 20), 3)
    return image


@pytest.fixture
def sample_card_json():
    """Catalog payload for one card, as returned by the Pokemon TCG API."""
    return {
        "id": "swsh4-44",
        "name": "Pikachu VMAX",
        "number": "44",
        "hp": "310",
        "rarity": "Rare Holo VMAX",
        "set": {
            "id": "swsh4",
            "name": "Vivid Voltage",
            "ptcgoCode": "VIV",
            "printedTotal": 185,
            "releaseDate": "2020/11/13",
        },
        "images": {"small": "https://images.pokemontcg.io/swsh4/44.png"},
        "tcgplayer": {
            "updatedAt": "2024/01/01",
            "prices": {"holofoil": {"market": 12.5}},
        },
        "cardmarket": {
            "updatedAt": "2024/01/02",
            "prices": {"trendPrice": 10.0, "avg30": 9.5},
        },
    }


# Configure pytest options
def pytest_configure(config):
    """Configure pytest with custom options."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        # Mark integration tests
        if "integration" in item.name.lower() or "Integration" in str(item.cls):
            item.add_marker(pytest.mark.integration)

        # Mark slow tests
        if any(slow_indicator in item.name.lower() for slow_indicator in ['performance', 'timeout']):
            item.add_marker(pytest.mark.slow)

        # Mark unit tests (default)
        if not item.get_closest_marker('integration') and not item.get_closest_marker('slow'):
            item.add_marker(pytest.mark.unit)
