from __future__ import annotations

import base64
import logging
from collections.abc import Callable
from io import BytesIO

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

JPEG_QUALITY = 90
DATA_URL_PREFIX = "data:image/jpeg;base64,"


def to_data_url(blob: bytes) -> str:
    return DATA_URL_PREFIX + base64.b64encode(blob).decode("ascii")


class CaptureExporter:
    """Encodes the current surface as a JPEG still."""

    def __init__(self, quality: int = JPEG_QUALITY):
        self.quality = quality

    def export(self, surface: np.ndarray | None) -> bytes:
        if surface is None or surface.size == 0:
            # Nothing rendered yet: a single black pixel stands in for the surface
            surface = np.zeros((1, 1, 3), dtype=np.uint8)
        buf = BytesIO()
        Image.fromarray(surface).save(buf, format="JPEG", quality=self.quality)
        return buf.getvalue()


class CaptureTrigger:
    """Runs one export per distinct positive value of an external counter."""

    def __init__(self, export: Callable[[], bytes], callback: Callable[[bytes], None] | None = None):
        self.export = export
        self.callback = callback
        self.last_value = 0

    def update(self, value: int) -> bool:
        if value <= 0 or value == self.last_value:
            return False
        self.last_value = value
        blob = self.export()
        logger.info("Captured still #%d (%d bytes)", value, len(blob))
        if self.callback is not None:
            self.callback(blob)
        return True
