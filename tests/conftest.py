import numpy as np
import pytest
from PIL import Image

from glyphrain.glyph_atlas import find_monospace_font

FONT_PATH = find_monospace_font()
needs_font = pytest.mark.skipif(FONT_PATH is None, reason="No monospace font found on system")


class SolidSource:
    """Video source that always shows one flat colour."""

    def __init__(self, rgb, width=640, height=480, ready=True):
        self.rgb = rgb
        self.width = width
        self.height = height
        self.ready = ready
        self.draws = 0

    def is_ready(self):
        return self.ready

    def draw(self, dest):
        self.draws += 1
        dest[...] = self.rgb


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def gray_image():
    return Image.new("RGB", (64, 48), (128, 128, 128))
