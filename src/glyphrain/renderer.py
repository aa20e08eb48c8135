from __future__ import annotations

import logging
from contextlib import contextmanager

import numpy as np
from PIL import Image, ImageFilter

from glyphrain.batching import Batches, GlyphDraw
from glyphrain.glyph_atlas import GlyphAtlas
from glyphrain.palette import GlyphPalette, Tier, TierStyle

logger = logging.getLogger(__name__)

# Caps backing-store cost on very dense displays
MAX_DEVICE_PIXEL_RATIO = 2.0


def device_scale(device_pixel_ratio: float | None) -> float:
    if not device_pixel_ratio or device_pixel_ratio <= 0:
        return 1.0
    return min(float(device_pixel_ratio), MAX_DEVICE_PIXEL_RATIO)


class GlyphRenderer:
    """Draws per-tier glyph batches onto an owned RGB surface.

    Coordinates passed in are logical; the backing arrays are sized by the
    device scale. Each frame is composed on a float working canvas and only
    copied to `surface` once complete, so readers always see a whole frame.
    """

    def __init__(self, palette: GlyphPalette, font_path: str | None = None):
        self.palette = palette
        self.font_path = font_path
        self.width = 0
        self.height = 0
        self.scale = 1.0
        self.surface: np.ndarray | None = None
        self._canvas: np.ndarray | None = None
        self._layer: np.ndarray | None = None
        # Per-frame scratch space, sized with the surface
        self._weight: np.ndarray | None = None
        self._delta: np.ndarray | None = None
        self._halo: np.ndarray | None = None
        self._mask: np.ndarray | None = None
        self._atlas: GlyphAtlas | None = None
        # Glow state, only non-zero while the GLOW tier is being drawn
        self.shadow_blur = 0.0
        self.shadow_color: tuple[int, int, int] | None = None
        self.last_counts: dict[Tier, int] = {tier: 0 for tier in Tier}
        self.last_order: list[Tier] = []

    @property
    def backing_size(self) -> tuple[int, int]:
        if self.surface is None:
            return (0, 0)
        return (self.surface.shape[1], self.surface.shape[0])

    @property
    def ready(self) -> bool:
        return self.surface is not None and self.surface.size > 0

    def resize(self, width: int, height: int, device_pixel_ratio: float | None = 1.0) -> None:
        scale = device_scale(device_pixel_ratio)
        width, height = int(width), int(height)
        backing = (int(width * scale), int(height * scale))
        if (width, height, scale) == (self.width, self.height, self.scale) and self.surface is not None:
            return
        self.width, self.height, self.scale = width, height, scale
        if backing == self.backing_size:
            return
        logger.debug("Resizing surface to %dx%d (scale %.2f)", backing[0], backing[1], scale)
        bw, bh = backing
        self.surface = np.zeros((bh, bw, 3), dtype=np.uint8)
        self._canvas = np.zeros((bh, bw, 3), dtype=np.float32)
        self._layer = np.zeros((bh, bw), dtype=np.float32)
        self._weight = np.zeros((bh, bw), dtype=np.float32)
        self._delta = np.zeros((bh, bw, 3), dtype=np.float32)
        self._halo = np.zeros((bh, bw), dtype=np.float32)
        self._mask = np.zeros((bh, bw), dtype=np.uint8)

    def atlas_for(self, cell_size: int) -> GlyphAtlas:
        cell_px = max(1, round(cell_size * self.scale))
        if self._atlas is None or self._atlas.size != cell_px:
            logger.debug("Building glyph atlas at %dpx", cell_px)
            self._atlas = GlyphAtlas(self.palette.glyphs, cell_px, self.font_path)
        return self._atlas

    def render(self, batches: Batches, cell_size: int) -> bool:
        """Repaint the whole surface from one frame's batches.

        Returns False when there is no surface to draw on.
        """
        if not self.ready:
            return False
        atlas = self.atlas_for(cell_size)

        self._canvas[...] = 0.0
        self.last_order = []
        for tier in Tier:
            draws = batches.get(tier, [])
            self.last_counts[tier] = len(draws)
            if not draws:
                continue
            self.last_order.append(tier)
            self._draw_tier(draws, self.palette.style(tier), atlas, cell_size)

        np.rint(self._canvas, out=self._canvas)
        self.surface[...] = self._canvas
        return True

    def _draw_tier(self, draws: list[GlyphDraw], style: TierStyle, atlas: GlyphAtlas, cell_size: int) -> None:
        layer = self._layer
        layer[...] = 0.0
        step = cell_size * self.scale
        for draw in draws:
            x = round(draw.column * step)
            y = round(draw.row * step)
            region = layer[y : y + atlas.size, x : x + atlas.size]
            mask = atlas[draw.glyph][: region.shape[0], : region.shape[1]]
            np.maximum(region, mask, out=region)

        if style.glow > 0 and style.glow_color is not None:
            with self._glow(style.glow, style.glow_color):
                self._composite(self._blur(layer), self.shadow_color, style.alpha)
                self._composite(layer, style.color, style.alpha)
        else:
            self._composite(layer, style.color, style.alpha)

    @contextmanager
    def _glow(self, blur: float, color: tuple[int, int, int]):
        self.shadow_blur, self.shadow_color = blur, color
        try:
            yield
        finally:
            self.shadow_blur, self.shadow_color = 0.0, None

    def _blur(self, layer: np.ndarray) -> np.ndarray:
        # A canvas shadow blur of N spreads roughly like a gaussian of sigma N/2
        np.multiply(layer, 255, out=self._weight)
        np.rint(self._weight, out=self._weight)
        self._mask[...] = self._weight
        blurred = Image.fromarray(self._mask).filter(ImageFilter.GaussianBlur(self.shadow_blur * self.scale / 2))
        self._halo[...] = np.asarray(blurred)
        self._halo /= 255.0
        return self._halo

    def _composite(self, coverage: np.ndarray, color: tuple[int, int, int], alpha: float) -> None:
        np.multiply(coverage, alpha, out=self._weight)
        np.subtract(np.asarray(color, dtype=np.float32), self._canvas, out=self._delta)
        self._delta *= self._weight[..., np.newaxis]
        self._canvas += self._delta

    def release(self) -> None:
        self.surface = None
        self._canvas = None
        self._layer = None
        self._weight = self._delta = self._halo = self._mask = None
        self._atlas = None
        self.width = self.height = 0
