"""Tests for strategy-driven image preprocessing."""

import numpy as np
import pytest

from card_identifier.capture.preprocess import (
    STRATEGY_PARAMS,
    color_controls,
    crop_fraction,
    dark_pixel_ratio,
    preprocess,
)
from card_identifier.core.types import PreprocessStrategy


@pytest.fixture
def noisy_image():
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(300, 200, 3), dtype=np.uint8)


class TestPreprocess:
    """Test the strategy table and the preprocess pipeline."""

    def test_every_strategy_has_parameters(self):
        assert set(STRATEGY_PARAMS) == set(PreprocessStrategy)

    @pytest.mark.parametrize("strategy", list(PreprocessStrategy))
    def test_preprocess_is_deterministic(self, noisy_image, strategy):
        first = preprocess(noisy_image, strategy)
        second = preprocess(noisy_image, strategy)
        assert np.array_equal(first, second)

    @pytest.mark.parametrize("strategy", list(PreprocessStrategy))
    def test_preprocess_does_not_modify_input(self, noisy_image, strategy):
        before = noisy_image.copy()
        preprocess(noisy_image, strategy)
        assert np.array_equal(noisy_image, before)

    def test_preprocess_accepts_strategy_value(self, noisy_image):
        assert np.array_equal(
            preprocess(noisy_image, "normal"),
            preprocess(noisy_image, PreprocessStrategy.NORMAL),
        )

    def test_edges_returns_single_channel_map(self, card_photo):
        edges = preprocess(card_photo, PreprocessStrategy.EDGES)
        assert edges.ndim == 2
        assert edges.shape == card_photo.shape[:2]
        assert set(np.unique(edges)) <= {0, 255}
        assert edges.any()

    def test_top_section_crops_top_fifth(self, noisy_image):
        result = preprocess(noisy_image, PreprocessStrategy.TOP_SECTION)
        assert result.shape == (60, 200, 3)

    def test_hp_section_crops_top_right(self, noisy_image):
        result = preprocess(noisy_image, PreprocessStrategy.HP_SECTION)
        assert result.shape == (60, 80, 3)

    def test_brightened_is_brighter_than_normal(self):
        image = np.full((50, 50, 3), 100, dtype=np.uint8)
        normal = preprocess(image, PreprocessStrategy.NORMAL)
        brightened = preprocess(image, PreprocessStrategy.BRIGHTENED)
        assert brightened.mean() > normal.mean()

    def test_grayscale_input_keeps_layout(self):
        image = np.full((40, 30), 90, dtype=np.uint8)
        assert preprocess(image, PreprocessStrategy.ENHANCED).shape == (40, 30)


class TestPrimitives:
    """Test the individual filter primitives."""

    def test_color_controls_neutral_is_identity(self, noisy_image):
        assert np.array_equal(color_controls(noisy_image), noisy_image)

    def test_color_controls_contrast_spreads_values(self):
        image = np.array([[64, 192]], dtype=np.uint8)
        result = color_controls(image, contrast=1.5)
        assert result[0, 0] < 64
        assert result[0, 1] > 192

    def test_color_controls_clips(self):
        image = np.array([[250]], dtype=np.uint8)
        assert color_controls(image, brightness=0.5)[0, 0] == 255

    def test_crop_fraction(self, noisy_image):
        crop = crop_fraction(noisy_image, (0.5, 1.0, 0.0, 0.5))
        assert crop.shape == (150, 100, 3)
        assert np.array_equal(crop, noisy_image[150:300, 0:100])

    def test_dark_pixel_ratio(self):
        image = np.zeros((10, 10), dtype=np.uint8)
        image[:, :3] = 255
        assert dark_pixel_ratio(image) == pytest.approx(0.7)
