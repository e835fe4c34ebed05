"""Image sources producing RawCapture bitmaps."""

from pathlib import Path
from typing import Union

import cv2

from ..core.types import RawCapture
from ..utils.error_handler import CaptureError
from ..utils.log import get_logger

logger = get_logger(__name__)


def load_capture(path: Union[str, Path], orientation: int = 0) -> RawCapture:
    """Read an image file into a RawCapture.

    Raises:
        CaptureError: if the file is missing or cannot be decoded
    """
    path = Path(path)
    if not path.exists():
        raise CaptureError(f"Image not found: {path}", details={"path": str(path)})

    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise CaptureError(f"Could not decode image: {path}", details={"path": str(path)})

    logger.debug("Capture loaded", path=str(path), size=f"{image.shape[1]}x{image.shape[0]}")
    return RawCapture(image=image, orientation=orientation, source=str(path))
