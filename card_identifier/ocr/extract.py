"""OCR extraction of candidate text lines from card images."""

import asyncio
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

import numpy as np
import pytesseract

from ..capture.preprocess import preprocess
from ..core.constants import (
    DEFAULT_MIN_TEXT_HEIGHT,
    MIN_CANDIDATE_LENGTH,
    MIN_TEXT_HEIGHT,
    OCR_ALT_CONFIDENCE_DISCOUNT,
    OCR_ALT_PSMS,
    OCR_LINE_PADDING,
    OCR_TOP_CANDIDATES,
)
from ..core.types import PreprocessStrategy, TextCandidate
from ..utils.config import resolve_tesseract_path, settings
from ..utils.error_handler import ConfigurationError, OCRError
from ..utils.log import LoggerMixin


class OCREngine(Protocol):
    """Anything that turns an image into raw text lines."""

    def read_lines(self, image: np.ndarray, min_text_height: float) -> List[List[TextCandidate]]:
        """One list of readings per detected line region, best reading first."""
        ...


class TesseractEngine(LoggerMixin):
    """Tesseract LSTM engine with dictionary correction for the configured language."""

    def __init__(self, tesseract_path: Optional[str] = None, language: Optional[str] = None):
        try:
            self.tesseract_path = tesseract_path or resolve_tesseract_path()
        except FileNotFoundError as e:
            raise ConfigurationError(str(e)) from e
        pytesseract.pytesseract.tesseract_cmd = self.tesseract_path
        self.language = language or settings.OCR_LANGUAGE

        self.logger.info(
            "OCR engine initialized",
            tesseract_path=self.tesseract_path,
            language=self.language,
        )

    def read_lines(self, image: np.ndarray, min_text_height: float) -> List[List[TextCandidate]]:
        try:
            data = pytesseract.image_to_data(
                image,
                lang=self.language,
                config="--oem 1 --psm 11",
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, OSError) as e:
            raise OCRError(f"Tesseract failed: {e}") from e

        min_height_px = min_text_height * image.shape[0]
        lines = []
        for text, region, confidence in _group_lines(data):
            if region[3] < min_height_px:
                continue
            readings = [TextCandidate(text=text, region=region, confidence=confidence)]
            readings.extend(self._alternate_readings(image, region, confidence))
            lines.append(readings)
        return lines

    def _alternate_readings(
        self, image: np.ndarray, region: Tuple[int, int, int, int], confidence: float
    ) -> List[TextCandidate]:
        """Re-read a line crop under other page segmentation modes."""
        x, y, w, h = region
        pad = OCR_LINE_PADDING
        crop = image[max(y - pad, 0):y + h + pad, max(x - pad, 0):x + w + pad]
        if crop.size == 0:
            return []

        readings = []
        for psm in OCR_ALT_PSMS:
            try:
                text = pytesseract.image_to_string(
                    crop, lang=self.language, config=f"--oem 1 --psm {psm}"
                )
            except pytesseract.TesseractError as e:
                self.logger.debug("Alternate line reading failed", psm=psm, error=str(e))
                continue
            text = " ".join(text.split())
            if text:
                readings.append(
                    TextCandidate(
                        text=text,
                        region=region,
                        confidence=confidence * OCR_ALT_CONFIDENCE_DISCOUNT,
                    )
                )
        return readings


def _group_lines(data: Dict[str, list]) -> List[Tuple[str, Tuple[int, int, int, int], float]]:
    """Join Tesseract word boxes into lines: (text, bounding box, mean confidence 0..1)."""
    lines: "OrderedDict[Tuple[int, int, int], dict]" = OrderedDict()
    for i, word in enumerate(data.get("text", [])):
        word = (word or "").strip()
        if not word:
            continue
        key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
        left, top = int(data["left"][i]), int(data["top"][i])
        right, bottom = left + int(data["width"][i]), top + int(data["height"][i])
        conf = max(float(data["conf"][i]), 0.0) / 100.0

        line = lines.setdefault(
            key, {"words": [], "confs": [], "box": [left, top, right, bottom]}
        )
        line["words"].append(word)
        line["confs"].append(conf)
        box = line["box"]
        box[0], box[1] = min(box[0], left), min(box[1], top)
        box[2], box[3] = max(box[2], right), max(box[3], bottom)

    grouped = []
    for line in lines.values():
        x1, y1, x2, y2 = line["box"]
        grouped.append(
            (
                " ".join(line["words"]),
                (x1, y1, x2 - x1, y2 - y1),
                sum(line["confs"]) / len(line["confs"]),
            )
        )
    return grouped


class TextExtractor(LoggerMixin):
    """Runs a preprocessing strategy and OCR, returning a ranked candidate pool."""

    def __init__(self, engine: Optional[OCREngine] = None):
        self._engine = engine

    @property
    def engine(self) -> OCREngine:
        # Resolving the tesseract binary is deferred until text is actually read
        if self._engine is None:
            self._engine = TesseractEngine()
        return self._engine

    def extract(self, image: np.ndarray, strategy: PreprocessStrategy) -> List[TextCandidate]:
        """Candidate text lines for one strategy, longest first.

        Up to five readings are kept per line region; readings shorter than two
        trimmed characters are dropped and confidence never filters.
        """
        strategy = PreprocessStrategy(strategy)
        processed = preprocess(image, strategy)
        min_height = MIN_TEXT_HEIGHT.get(strategy.value, DEFAULT_MIN_TEXT_HEIGHT)

        context = self.log_start("Text extraction", strategy=strategy.value)
        try:
            lines = self.engine.read_lines(processed, min_height)
        except OCRError as e:
            self.log_error(context, e)
            raise

        pool: List[TextCandidate] = []
        for readings in lines:
            seen = set()
            kept = 0
            for reading in readings:
                text = reading.cleaned
                if len(text) < MIN_CANDIDATE_LENGTH or text in seen:
                    continue
                seen.add(text)
                pool.append(
                    TextCandidate(
                        text=text,
                        region=reading.region,
                        confidence=reading.confidence,
                        strategy=strategy,
                    )
                )
                kept += 1
                if kept >= OCR_TOP_CANDIDATES:
                    break

        # sorted() is stable, so equal lengths keep recognition order
        pool = sorted(pool, key=lambda c: len(c.text), reverse=True)
        self.log_success(context, candidates=len(pool))
        return pool

    async def extract_async(
        self, image: np.ndarray, strategy: PreprocessStrategy
    ) -> List[TextCandidate]:
        return await asyncio.to_thread(self.extract, image, strategy)


def merge_pools(pools: Iterable[Sequence[TextCandidate]]) -> List[TextCandidate]:
    """Concatenate candidate pools, dropping exact-text repeats (first seen wins)."""
    merged: List[TextCandidate] = []
    seen = set()
    for pool in pools:
        for candidate in pool:
            if candidate.text in seen:
                continue
            seen.add(candidate.text)
            merged.append(candidate)
    return merged
