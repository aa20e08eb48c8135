import numpy as np

from glyphrain.charsets import RAIN
from glyphrain.glyph_atlas import GlyphAtlas
from tests.conftest import FONT_PATH, needs_font


def test_atlas_shape():
    atlas = GlyphAtlas(" 8@", 16)
    assert len(atlas) == 3
    for mask in atlas.masks.values():
        assert mask.shape == (16, 16)
        assert mask.dtype == np.float32


def test_atlas_values_in_range():
    atlas = GlyphAtlas(" 0123456789:=+-<>", 16)
    for mask in atlas.masks.values():
        assert mask.min() >= 0.0
        assert mask.max() <= 1.0


def test_space_is_blank():
    assert GlyphAtlas(" 8", 16)[" "].sum() == 0.0


def test_digit_has_ink():
    assert GlyphAtlas(" 8", 16)["8"].sum() > 0.0


def test_duplicate_glyphs_collapse():
    assert len(GlyphAtlas("8888", 12)) == 1


@needs_font
def test_rain_glyphs_all_present():
    atlas = GlyphAtlas(RAIN, 16, FONT_PATH)
    assert set(atlas.masks) == set(RAIN)
