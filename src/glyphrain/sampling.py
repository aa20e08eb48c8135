from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import numpy as np

logger = logging.getLogger(__name__)


class VideoFrameSource(Protocol):
    width: int
    height: int

    def is_ready(self) -> bool:
        """True once the source holds a complete frame."""
        ...

    def draw(self, dest: np.ndarray) -> None:
        """Scale the current frame into dest, a (rows, cols, 3) uint8 RGB buffer."""
        ...


@dataclass(frozen=True)
class GridResolution:
    columns: int
    rows: int

    @classmethod
    def for_output(cls, width: int, height: int, cell_size: int) -> GridResolution:
        return cls(columns=int(width // cell_size), rows=int(height // cell_size))

    @property
    def empty(self) -> bool:
        return self.columns <= 0 or self.rows <= 0


class FrameSampler:
    """Downsamples video frames into one RGB value per grid cell.

    The cell buffer is owned by the sampler and only reallocated when the grid
    resolution changes.
    """

    def __init__(self):
        self.buffer: np.ndarray | None = None
        self.allocations = 0

    @property
    def resolution(self) -> GridResolution | None:
        if self.buffer is None:
            return None
        rows, columns = self.buffer.shape[:2]
        return GridResolution(columns=columns, rows=rows)

    def _ensure_buffer(self, resolution: GridResolution) -> np.ndarray:
        if self.resolution != resolution:
            logger.debug("Resizing sample buffer to %dx%d", resolution.columns, resolution.rows)
            self.buffer = np.zeros((resolution.rows, resolution.columns, 3), dtype=np.uint8)
            self.allocations += 1
        return self.buffer

    def sample(self, source: VideoFrameSource, resolution: GridResolution) -> np.ndarray | None:
        """Draw the current frame of source into the cell buffer.

        Returns None without touching the buffer when the source has no frame
        yet or the grid is empty.
        """
        if resolution.empty or not source.is_ready():
            return None
        buffer = self._ensure_buffer(resolution)
        source.draw(buffer)
        return buffer

    def release(self) -> None:
        self.buffer = None
