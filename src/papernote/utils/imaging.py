"""Image encoding utilities for papernote.

Prepares pulled camera photos for the vision API: optional downscaling
(phone cameras produce far more pixels than the model needs to read
handwriting) and base64 encoding.
"""

from __future__ import annotations

import base64
import logging
from pathlib import Path

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def guess_mime_type(path: Path | str) -> str:
    """Return the mime type sent alongside the image data."""
    return "image/png" if str(path).lower().endswith(".png") else "image/jpeg"


def resize_for_mllm(image: np.ndarray, max_dimension: int = 2048) -> np.ndarray:
    """Downscale an image so its largest side is at most max_dimension.

    Preserves aspect ratio. Images already within the limit are returned
    unchanged; small images are never upscaled.
    """
    h, w = image.shape[:2]
    largest = max(h, w)
    if largest <= max_dimension:
        return image

    scale = max_dimension / largest
    new_w = int(w * scale)
    new_h = int(h * scale)
    return cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)


def encode_image_file(path: Path | str, max_dimension: int = 0) -> tuple[str, str]:
    """Read an image file and return (base64 data, mime type).

    With max_dimension > 0 the image is decoded with OpenCV and downscaled
    if needed. Data OpenCV cannot decode is sent as-is.

    Raises:
        OSError: If the file cannot be read.
    """
    path = Path(path)
    raw = path.read_bytes()
    mime_type = guess_mime_type(path)

    if max_dimension > 0 and raw:
        try:
            image = cv2.imdecode(np.frombuffer(raw, dtype=np.uint8), cv2.IMREAD_COLOR)
        except cv2.error as e:
            logger.debug("OpenCV rejected %s: %s", path.name, e)
            image = None
        if image is None:
            logger.debug("Could not decode %s, sending original bytes", path.name)
        elif max(image.shape[:2]) > max_dimension:
            resized = resize_for_mllm(image, max_dimension)
            ext = ".png" if mime_type == "image/png" else ".jpg"
            success, buffer = cv2.imencode(ext, resized)
            if success:
                logger.debug(
                    "Resized %s from %dx%d to %dx%d",
                    path.name, image.shape[1], image.shape[0],
                    resized.shape[1], resized.shape[0],
                )
                raw = buffer.tobytes()

    return base64.b64encode(raw).decode("utf-8"), mime_type
