import numpy as np

from glyphrain.palette import TIER_STYLES, Tier, TierStyle

# Perceived brightness weights (Rec. 601)
LUMA_WEIGHTS = (0.299, 0.587, 0.114)
CONTRAST_GAIN = 1.2

DROPPED = -1


def _descending(styles: dict[Tier, TierStyle]) -> list[tuple[Tier, float]]:
    # Checked brightest first; DIM is whatever survives the drop threshold
    return [(tier, styles[tier].threshold) for tier in (Tier.GLOW, Tier.BRIGHT, Tier.MID, Tier.LOW)]


def contrast(r: int, g: int, b: int) -> float:
    """Squared, gain-boosted luma on a 0-255 scale.

    Squaring the normalised luma pushes darks darker while keeping highlights,
    which empties out near-black backgrounds.
    """
    luma = LUMA_WEIGHTS[0] * r + LUMA_WEIGHTS[1] * g + LUMA_WEIGHTS[2] * b
    normalized = luma / 255
    return min(255.0, normalized * normalized * 255 * CONTRAST_GAIN)


def classify(r: int, g: int, b: int, styles: dict[Tier, TierStyle] = TIER_STYLES) -> Tier | None:
    """Return the brightness tier for one RGB cell, or None if it is dropped."""
    c = contrast(r, g, b)
    if c < styles[Tier.DIM].threshold:
        return None
    for tier, threshold in _descending(styles):
        if c > threshold:
            return tier
    return Tier.DIM


def contrast_grid(pixels: np.ndarray) -> np.ndarray:
    """Vectorised `contrast` over an array of shape (rows, cols, 3)."""
    rgb = pixels.astype(np.float64)
    luma = LUMA_WEIGHTS[0] * rgb[..., 0] + LUMA_WEIGHTS[1] * rgb[..., 1] + LUMA_WEIGHTS[2] * rgb[..., 2]
    normalized = luma / 255
    return np.minimum(255.0, normalized * normalized * 255 * CONTRAST_GAIN)


def classify_grid(pixels: np.ndarray, styles: dict[Tier, TierStyle] = TIER_STYLES) -> np.ndarray:
    """Classify every cell of a (rows, cols, 3) RGB grid.

    Returns an int8 array of shape (rows, cols) holding Tier values, with
    DROPPED (-1) for cells below the DIM threshold.
    """
    c = contrast_grid(pixels)
    tiers = np.full(c.shape, int(Tier.DIM), dtype=np.int8)
    # Ascending order so brighter tiers overwrite darker ones
    for tier, threshold in reversed(_descending(styles)):
        tiers[c > threshold] = int(tier)
    tiers[c < styles[Tier.DIM].threshold] = DROPPED
    return tiers
