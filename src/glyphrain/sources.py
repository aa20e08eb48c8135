"""Video frame sources the engine can sample from."""
from __future__ import annotations

import logging
from pathlib import Path

import cv2
import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


class StillSource:
    """A fixed image presented as an always-ready video source."""

    def __init__(self, image: Image.Image | np.ndarray | str | Path):
        if isinstance(image, np.ndarray):
            image = Image.fromarray(image)
        elif not isinstance(image, Image.Image):
            image = Image.open(image)
        self.image = image.convert("RGB")
        self.width, self.height = self.image.size

    def is_ready(self) -> bool:
        return True

    def draw(self, dest: np.ndarray) -> None:
        rows, cols = dest.shape[:2]
        np.copyto(dest, np.asarray(self.image.resize((cols, rows), Image.BILINEAR)))


class CameraSource:
    """Webcam frames read through OpenCV.

    Call `update()` once per display refresh to pull the newest frame; the
    source reports ready once it holds one.
    """

    def __init__(self, device: int = 0, width: int = 1280, height: int = 720, fps: int = 30):
        self.device = device
        self.capture = cv2.VideoCapture(device)
        if not self.capture.isOpened():
            raise RuntimeError(f"Could not open camera device {device}")
        self.capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        self.capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        self.capture.set(cv2.CAP_PROP_FPS, fps)
        self.frame: np.ndarray | None = None
        self.width = 0
        self.height = 0

    def update(self) -> bool:
        ok, frame = self.capture.read()
        if not ok:
            logger.debug("Camera %d returned no frame", self.device)
            return False
        self.frame = frame
        self.height, self.width = frame.shape[:2]
        return True

    def is_ready(self) -> bool:
        return self.frame is not None

    def draw(self, dest: np.ndarray) -> None:
        rows, cols = dest.shape[:2]
        small = cv2.resize(self.frame, (cols, rows), interpolation=cv2.INTER_AREA)
        cv2.cvtColor(small, cv2.COLOR_BGR2RGB, dst=dest)

    def release(self) -> None:
        self.capture.release()
        self.frame = None
