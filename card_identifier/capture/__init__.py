"""Capture package: image loading, preprocessing and card cropping."""

from .preprocess import STRATEGY_PARAMS, StrategyParams, preprocess
from .source import load_capture
from .warp import (
    CardCropper,
    CardDetector,
    CropResult,
    PerspectiveCorrector,
    center_crop,
    order_corners,
)

__all__ = [
    "preprocess",
    "StrategyParams",
    "STRATEGY_PARAMS",
    "load_capture",
    "CardCropper",
    "CardDetector",
    "CropResult",
    "PerspectiveCorrector",
    "center_crop",
    "order_corners",
]
