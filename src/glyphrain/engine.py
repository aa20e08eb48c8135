from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace

import numpy as np

from glyphrain.batching import GlyphBatcher
from glyphrain.capture import CaptureExporter, CaptureTrigger
from glyphrain.config import RenderConfig
from glyphrain.luma import classify_grid
from glyphrain.palette import GlyphPalette
from glyphrain.renderer import GlyphRenderer
from glyphrain.sampling import FrameSampler, GridResolution, VideoFrameSource
from glyphrain.scheduler import EngineState, FrameRequester, ManualFrameRequester, Scheduler

logger = logging.getLogger(__name__)


class Engine:
    """Video-to-glyph rain renderer.

    One `tick` runs sample -> classify -> batch -> render. `start` hands the
    tick to a throttled frame loop; `stop` cancels it synchronously.
    """

    def __init__(
        self,
        source: VideoFrameSource,
        config: RenderConfig | None = None,
        palette: GlyphPalette | None = None,
        requester: FrameRequester | None = None,
        rng: np.random.Generator | None = None,
        font_path: str | None = None,
        on_capture: Callable[[bytes], None] | None = None,
    ):
        self.source = source
        self.config = config if config is not None else RenderConfig()
        self.palette = palette if palette is not None else GlyphPalette()
        self.sampler = FrameSampler()
        self.batcher = GlyphBatcher(self.palette.glyphs, rng)
        self.renderer = GlyphRenderer(self.palette, font_path)
        self.exporter = CaptureExporter(self.config.jpeg_quality)
        self.trigger = CaptureTrigger(self.capture, on_capture)
        self.requester = requester if requester is not None else ManualFrameRequester()
        self.scheduler = Scheduler(self.tick, self.requester, self.config.target_fps)

    @property
    def state(self) -> EngineState:
        return self.scheduler.state

    @property
    def surface(self) -> np.ndarray | None:
        return self.renderer.surface

    @property
    def resolution(self) -> GridResolution:
        return GridResolution.for_output(self.renderer.width, self.renderer.height, self.config.cell_size)

    def resize(self, width: int, height: int, device_pixel_ratio: float | None = 1.0) -> None:
        self.renderer.resize(width, height, device_pixel_ratio)

    def configure(self, **changes) -> RenderConfig:
        """Replace configuration values; they apply from the next tick."""
        config = replace(self.config, **changes)
        if config == self.config:
            return config
        logger.debug("Configuration changed: %s", changes)
        self.config = config
        self.scheduler.target_fps = config.target_fps
        self.exporter.quality = config.jpeg_quality
        return config

    def tick(self, timestamp: float | None = None) -> bool:
        """Render one frame. Returns False if the frame was skipped or failed."""
        try:
            return self._render_frame()
        except Exception:
            logger.warning("Frame failed, skipping", exc_info=True)
            return False

    def _render_frame(self) -> bool:
        config = self.config
        if not self.renderer.ready:
            logger.debug("No output surface, skipping frame")
            return False

        cells = self.sampler.sample(self.source, self.resolution)
        if cells is None:
            logger.debug("Source not ready, skipping frame")
            return False

        tiers = classify_grid(cells, self.palette.styles)
        batches = self.batcher.batch(tiers, config.mirrored)
        return self.renderer.render(batches, config.cell_size)

    def start(self) -> None:
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    def running(self):
        return self.scheduler.running()

    def capture(self) -> bytes:
        """Encode whatever the last completed frame left on the surface."""
        return self.exporter.export(self.renderer.surface)

    def set_capture_trigger(self, value: int) -> bool:
        return self.trigger.update(value)

    def close(self) -> None:
        self.stop()
        self.sampler.release()
        self.renderer.release()
