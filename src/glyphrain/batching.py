from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from glyphrain.luma import DROPPED
from glyphrain.palette import Tier


@dataclass(frozen=True)
class GlyphDraw:
    column: int  # output column, already mirrored
    row: int
    glyph: str


Batches = dict[Tier, list[GlyphDraw]]


class GlyphBatcher:
    """Groups visible cells into per-tier draw lists.

    Each visible cell gets a glyph picked uniformly at random every tick, so
    the rain flickers. The lists are reused across ticks and are only valid
    until the next call to `batch`.
    """

    def __init__(self, glyphs: str, rng: np.random.Generator | None = None):
        self.glyphs = np.array(list(glyphs))
        self.rng = rng if rng is not None else np.random.default_rng()
        self.batches: Batches = {tier: [] for tier in Tier}

    def batch(self, tiers: np.ndarray, mirrored: bool = False) -> Batches:
        for draws in self.batches.values():
            draws.clear()

        rows, columns = np.nonzero(tiers != DROPPED)
        if rows.size == 0:
            return self.batches

        picks = self.glyphs[self.rng.integers(0, len(self.glyphs), size=rows.size)]
        # Mirroring moves where a cell lands, never the glyph's orientation
        out_columns = (tiers.shape[1] - 1 - columns) if mirrored else columns
        cell_tiers = tiers[rows, columns]

        for tier_value, column, row, glyph in zip(
            cell_tiers.tolist(), out_columns.tolist(), rows.tolist(), picks.tolist()
        ):
            self.batches[Tier(tier_value)].append(GlyphDraw(column, row, glyph))
        return self.batches
