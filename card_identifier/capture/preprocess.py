"""Strategy-driven image preprocessing ahead of OCR and card detection.

Every strategy is a fixed row of filter parameters, so ``preprocess`` is a pure
function of ``(image, strategy)``: no randomness, no shared state, and the
input array is never written to.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import cv2
import numpy as np

from ..core.constants import (
    BRIGHTEN_AMOUNT,
    DARK_PIXEL_LEVEL,
    DENOISE_NOISE_LEVEL,
    DENOISE_SHARPNESS,
    NORMALIZE_CONTRAST,
    ROI_HP_SECTION,
    ROI_TOP_SECTION,
    UNSHARP_RADIUS,
)
from ..core.types import PreprocessStrategy


@dataclass(frozen=True)
class StrategyParams:
    """Filter pipeline for one preprocessing strategy."""

    crop: Optional[Tuple[float, float, float, float]] = None  # y1, y2, x1, x2
    sharpen: float = 1.0
    contrast: float = 1.1
    brightness: float = 0.0
    adaptive_brightness: bool = False
    denoise: bool = False
    edges: bool = False


STRATEGY_PARAMS: Dict[PreprocessStrategy, StrategyParams] = {
    PreprocessStrategy.NORMAL: StrategyParams(sharpen=1.0, contrast=1.1),
    PreprocessStrategy.ENHANCED: StrategyParams(
        sharpen=1.5, contrast=1.3, adaptive_brightness=True, denoise=True
    ),
    PreprocessStrategy.BRIGHTENED: StrategyParams(
        sharpen=1.0, contrast=1.1, brightness=BRIGHTEN_AMOUNT
    ),
    PreprocessStrategy.FOCUSED: StrategyParams(sharpen=2.0, contrast=1.5, denoise=True),
    PreprocessStrategy.EDGES: StrategyParams(edges=True),
    PreprocessStrategy.TOP_SECTION: StrategyParams(
        crop=ROI_TOP_SECTION, sharpen=2.0, contrast=1.5
    ),
    PreprocessStrategy.HP_SECTION: StrategyParams(
        crop=ROI_HP_SECTION, sharpen=2.5, contrast=1.7
    ),
}


def preprocess(image: np.ndarray, strategy: PreprocessStrategy) -> np.ndarray:
    """Apply the named strategy and return a new image.

    ``edges`` returns a single-channel edge map meant for card detection only;
    every other strategy keeps the input's channel layout.
    """
    params = STRATEGY_PARAMS[PreprocessStrategy(strategy)]

    if params.edges:
        return detect_edges(image)

    processed = crop_fraction(image, params.crop) if params.crop else image
    processed = color_controls(processed, contrast=NORMALIZE_CONTRAST)

    brightness = params.brightness
    if params.adaptive_brightness:
        brightness += _adaptive_brightness(processed)
    if brightness:
        processed = color_controls(processed, brightness=brightness)

    processed = unsharp_mask(processed, intensity=params.sharpen)
    processed = color_controls(processed, contrast=params.contrast)

    if params.denoise:
        processed = reduce_noise(processed)

    return processed


def crop_fraction(image: np.ndarray, roi: Tuple[float, float, float, float]) -> np.ndarray:
    """Crop a normalized (y1, y2, x1, x2) region."""
    height, width = image.shape[:2]
    y1, y2 = int(height * roi[0]), int(height * roi[1])
    x1, x2 = int(width * roi[2]), int(width * roi[3])
    return image[y1:max(y2, y1 + 1), x1:max(x2, x1 + 1)].copy()


def color_controls(image: np.ndarray, contrast: float = 1.0, brightness: float = 0.0) -> np.ndarray:
    """Contrast around mid-gray plus additive brightness, both on a 0..1 scale."""
    scaled = image.astype(np.float32) / 255.0
    adjusted = (scaled - 0.5) * contrast + 0.5 + brightness
    return np.clip(np.rint(adjusted * 255.0), 0, 255).astype(np.uint8)


def unsharp_mask(image: np.ndarray, intensity: float, radius: float = UNSHARP_RADIUS) -> np.ndarray:
    if intensity <= 0:
        return image.copy()
    blurred = cv2.GaussianBlur(image, (0, 0), sigmaX=radius)
    return cv2.addWeighted(image, 1.0 + intensity, blurred, -intensity, 0)


def reduce_noise(
    image: np.ndarray,
    noise_level: float = DENOISE_NOISE_LEVEL,
    sharpness: float = DENOISE_SHARPNESS,
) -> np.ndarray:
    """Edge-preserving smoothing followed by a light re-sharpen."""
    sigma_color = noise_level * 255.0 * 3.0
    smoothed = cv2.bilateralFilter(image, 5, sigma_color, 5)
    return unsharp_mask(smoothed, intensity=sharpness)


def detect_edges(image: np.ndarray) -> np.ndarray:
    """Edge map used to find the card outline."""
    gray = to_gray(image)
    blurred = cv2.GaussianBlur(gray, (5, 5), 0)
    edges = cv2.Canny(blurred, 50, 150)

    # Dilate to connect broken edges
    kernel = np.ones((3, 3), np.uint8)
    return cv2.dilate(edges, kernel, iterations=1)


def to_gray(image: np.ndarray) -> np.ndarray:
    if image.ndim == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image


def dark_pixel_ratio(image: np.ndarray) -> float:
    gray = to_gray(image)
    if gray.size == 0:
        return 0.5
    return float(np.count_nonzero(gray < DARK_PIXEL_LEVEL)) / gray.size


def _adaptive_brightness(image: np.ndarray) -> float:
    ratio = dark_pixel_ratio(image)
    if ratio > 0.6:
        return 0.1
    if ratio > 0.4:
        return 0.05
    return 0.0
