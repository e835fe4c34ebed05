"""Card detection and perspective correction."""

from dataclasses import dataclass
from typing import List, Optional

import cv2
import numpy as np

from ..core.constants import (
    CARD_ASPECT_RATIO,
    CARD_ASPECT_TOLERANCE,
    MIN_CARD_AREA_FRACTION,
    WARP_H,
    WARP_W,
)
from ..core.types import DetectedQuadrilateral, PreprocessStrategy
from ..utils.config import settings
from ..utils.error_handler import NoCardDetected
from ..utils.log import get_logger
from .preprocess import preprocess


@dataclass
class CropResult:
    """Outcome of detect-and-crop; ``quadrilateral`` is None on the soft fallback."""

    image: np.ndarray
    quadrilateral: Optional[DetectedQuadrilateral]

    @property
    def detected(self) -> bool:
        return self.quadrilateral is not None


class CardDetector:
    """Finds the card outline in a photo."""

    def __init__(
        self,
        min_area_fraction: float = MIN_CARD_AREA_FRACTION,
        aspect_tolerance=CARD_ASPECT_TOLERANCE,
    ):
        self.logger = get_logger(__name__)
        self.min_area_fraction = min_area_fraction
        self.aspect_tolerance = aspect_tolerance

    def detect(self, image: np.ndarray) -> Optional[DetectedQuadrilateral]:
        """Largest card-shaped quadrilateral on the edge map, or None."""
        edges = preprocess(image, PreprocessStrategy.EDGES)
        contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        image_area = float(image.shape[0] * image.shape[1])
        best: Optional[DetectedQuadrilateral] = None

        for contour in contours:
            area = cv2.contourArea(contour)
            area_fraction = area / image_area
            if area_fraction < self.min_area_fraction:
                continue

            corners = self._extract_corners(contour)
            if corners is None:
                continue

            ordered = order_corners(corners)
            aspect = quad_aspect_ratio(ordered)
            low, high = self.aspect_tolerance
            if not low <= aspect <= high:
                continue

            if best is None or area_fraction > best.area_fraction:
                best = DetectedQuadrilateral(
                    corners=ordered, area_fraction=area_fraction, aspect_ratio=aspect
                )

        if best is not None:
            self.logger.debug(
                "Card outline detected",
                area_fraction=round(best.area_fraction, 3),
                aspect_ratio=round(best.aspect_ratio, 3),
            )
        return best

    def _extract_corners(self, contour: np.ndarray) -> Optional[np.ndarray]:
        epsilon = 0.02 * cv2.arcLength(contour, True)
        approx = cv2.approxPolyDP(contour, epsilon, True)
        if len(approx) == 4:
            return approx.reshape(4, 2).astype(np.float32)

        # Rounded card corners often approximate to more than 4 points
        if len(approx) > 4:
            hull = cv2.convexHull(contour)
            approx_hull = cv2.approxPolyDP(hull, 0.05 * cv2.arcLength(hull, True), True)
            if len(approx_hull) == 4:
                return approx_hull.reshape(4, 2).astype(np.float32)
            if len(approx_hull) > 4:
                return self._find_four_corners(approx_hull.reshape(-1, 2))

        return None

    def _find_four_corners(self, points: np.ndarray) -> Optional[np.ndarray]:
        """Most extreme point per quadrant around the centroid."""
        centroid = np.mean(points, axis=0)
        quadrants: List[List[np.ndarray]] = [[], [], [], []]  # TL, TR, BR, BL

        for point in points:
            left = point[0] < centroid[0]
            top = point[1] < centroid[1]
            if left and top:
                quadrants[0].append(point)
            elif not left and top:
                quadrants[1].append(point)
            elif not left and not top:
                quadrants[2].append(point)
            else:
                quadrants[3].append(point)

        if any(not quad for quad in quadrants):
            return None

        return np.array(
            [
                min(quadrants[0], key=lambda p: p[0] + p[1]),
                max(quadrants[1], key=lambda p: p[0] - p[1]),
                max(quadrants[2], key=lambda p: p[0] + p[1]),
                min(quadrants[3], key=lambda p: p[0] - p[1]),
            ],
            dtype=np.float32,
        )


class PerspectiveCorrector:
    """Rectifies a detected card into an upright rectangle."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def warp_card(
        self,
        image: np.ndarray,
        quad: DetectedQuadrilateral,
        out_w: int = WARP_W,
        out_h: int = WARP_H,
    ) -> np.ndarray:
        corners = order_corners(quad.corners)
        top_w = np.linalg.norm(corners[1] - corners[0])
        left_h = np.linalg.norm(corners[3] - corners[0])

        # Landscape outline: warp to landscape, then stand the card upright
        landscape = top_w > left_h
        dst_w, dst_h = (out_h, out_w) if landscape else (out_w, out_h)

        dst_points = np.array(
            [[0, 0], [dst_w - 1, 0], [dst_w - 1, dst_h - 1], [0, dst_h - 1]],
            dtype=np.float32,
        )
        matrix = cv2.getPerspectiveTransform(corners.astype(np.float32), dst_points)
        warped = cv2.warpPerspective(image, matrix, (dst_w, dst_h))

        if landscape:
            warped = cv2.rotate(warped, cv2.ROTATE_90_CLOCKWISE)
        return warped


class CardCropper:
    """Detect-and-crop with the soft fallback when no card outline is found."""

    def __init__(
        self,
        detector: Optional[CardDetector] = None,
        corrector: Optional[PerspectiveCorrector] = None,
        center_crop_fallback: Optional[bool] = None,
    ):
        self.logger = get_logger(__name__)
        self.detector = detector or CardDetector()
        self.corrector = corrector or PerspectiveCorrector()
        self.center_crop_fallback = (
            settings.FALLBACK_CENTER_CROP if center_crop_fallback is None else center_crop_fallback
        )

    def detect_and_crop(self, image: np.ndarray) -> CropResult:
        quad = self.detector.detect(image)
        if quad is not None:
            return CropResult(image=self.corrector.warp_card(image, quad), quadrilateral=quad)

        # Soft failure: downstream stages work on the uncropped image
        error = NoCardDetected(details={"shape": list(image.shape)})
        self.logger.info(
            "No card outline detected, using fallback",
            error=error.message,
            center_crop=self.center_crop_fallback,
        )
        fallback = center_crop(image) if self.center_crop_fallback else image
        return CropResult(image=fallback, quadrilateral=None)


def order_corners(corners: np.ndarray) -> np.ndarray:
    """Order corners as top-left, top-right, bottom-right, bottom-left."""
    pts = np.asarray(corners, dtype=np.float32).reshape(4, 2)
    sums = pts.sum(axis=1)
    diffs = pts[:, 1] - pts[:, 0]
    return np.array(
        [
            pts[np.argmin(sums)],
            pts[np.argmin(diffs)],
            pts[np.argmax(sums)],
            pts[np.argmax(diffs)],
        ],
        dtype=np.float32,
    )


def quad_aspect_ratio(corners: np.ndarray) -> float:
    """Short side over long side of an ordered quadrilateral."""
    tl, tr, br, bl = corners
    width = (np.linalg.norm(tr - tl) + np.linalg.norm(br - bl)) / 2.0
    height = (np.linalg.norm(bl - tl) + np.linalg.norm(br - tr)) / 2.0
    if width == 0 or height == 0:
        return 0.0
    return float(min(width, height) / max(width, height))


def center_crop(image: np.ndarray, aspect: float = CARD_ASPECT_RATIO) -> np.ndarray:
    """Largest centered crop with card proportions (width / height == aspect)."""
    height, width = image.shape[:2]
    if width / height > aspect:
        crop_w, crop_h = int(round(height * aspect)), height
    else:
        crop_w, crop_h = width, int(round(width / aspect))
    x1 = (width - crop_w) // 2
    y1 = (height - crop_h) // 2
    return image[y1:y1 + crop_h, x1:x1 + crop_w].copy()
