from dataclasses import dataclass, field
from enum import IntEnum

from glyphrain.charsets import RAIN


class Tier(IntEnum):
    """Brightness tiers, ordered darkest to brightest (also the draw order)."""

    DIM = 0
    LOW = 1
    MID = 2
    BRIGHT = 3
    GLOW = 4


@dataclass(frozen=True)
class TierStyle:
    color: tuple[int, int, int]
    alpha: float
    threshold: float
    glow: float = 0.0
    glow_color: tuple[int, int, int] | None = None


def _hex(value: str) -> tuple[int, int, int]:
    value = value.lstrip("#")
    return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))


# Bright/white foreground separated from a dark green background
TIER_STYLES: dict[Tier, TierStyle] = {
    Tier.GLOW: TierStyle(_hex("#EEFFEE"), 1.0, 240, glow=15, glow_color=_hex("#00FF00")),
    Tier.BRIGHT: TierStyle(_hex("#00FF41"), 0.95, 160),
    Tier.MID: TierStyle(_hex("#00D200"), 0.75, 90),
    Tier.LOW: TierStyle(_hex("#007500"), 0.40, 40),
    Tier.DIM: TierStyle(_hex("#003300"), 0.15, 10),
}


@dataclass(frozen=True)
class GlyphPalette:
    glyphs: str = RAIN
    styles: dict[Tier, TierStyle] = field(default_factory=lambda: dict(TIER_STYLES))

    def __post_init__(self):
        if not self.glyphs:
            raise ValueError("Glyph palette must contain at least one glyph")
        missing = [tier.name for tier in Tier if tier not in self.styles]
        if missing:
            raise ValueError(f"Missing tier styles: {', '.join(missing)}")

    def style(self, tier: Tier) -> TierStyle:
        return self.styles[tier]
