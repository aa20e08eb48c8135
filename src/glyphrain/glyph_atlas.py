import logging
import os
import shutil
import subprocess

import numpy as np
from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

MONOSPACE_CANDIDATES = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf",
    "/usr/share/fonts/TTF/DejaVuSansMono.ttf",
    "/usr/share/fonts/dejavu-sans-mono-fonts/DejaVuSansMono.ttf",
]

# Unassigned codepoint; fonts draw their missing-glyph box for it
_NOTDEF_PROBE = "\U0010fffd"


def find_monospace_font() -> str | None:
    """Find a monospace font on the system."""
    for path in MONOSPACE_CANDIDATES:
        if os.path.exists(path):
            return path
    if shutil.which("fc-match"):
        out = subprocess.run(["fc-match", "-f", "%{file}", "monospace"], capture_output=True, text=True)
        if out.returncode == 0 and out.stdout.strip():
            return out.stdout.strip()
    return None


def load_font(font_path: str | None, size: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    if font_path is None:
        font_path = find_monospace_font()
    if font_path is None:
        logger.info("No monospace font found, using Pillow's default font")
        return ImageFont.load_default(size=size)
    return ImageFont.truetype(font_path, size)


def _find_fallback_font(char: str) -> str | None:
    """Ask fontconfig which font provides a given character."""
    if not shutil.which("fc-match"):
        return None
    codepoint = f"{ord(char):04x}"
    result = subprocess.run(
        ["fc-match", "-f", "%{file}", f":charset={codepoint}"],
        capture_output=True,
        text=True,
    )
    if result.returncode == 0 and result.stdout.strip():
        return result.stdout.strip()
    return None


def _render(char: str, font, size: int, x_offset: int = 0) -> np.ndarray:
    img = Image.new("L", (size, size), 0)
    ImageDraw.Draw(img).text((x_offset, 0), char, fill=255, font=font)
    return np.asarray(img, dtype=np.float32) / 255.0


class GlyphAtlas:
    """Pre-rendered square coverage masks, one per glyph.

    Masks are float32 arrays of shape (size, size) with values 0-1. Glyphs the
    primary font cannot draw are rendered with a fontconfig fallback font,
    centred in the cell.
    """

    def __init__(self, glyphs: str, size: int, font_path: str | None = None):
        self.size = size
        self.font_path = font_path
        self.font = load_font(font_path, size)
        self._fallback_cache: dict[str, ImageFont.FreeTypeFont] = {}
        notdef = _render(_NOTDEF_PROBE, self.font, size)

        self.masks: dict[str, np.ndarray] = {}
        for char in dict.fromkeys(glyphs):
            mask = _render(char, self.font, size)
            if not char.isspace() and (mask.sum() == 0 or np.array_equal(mask, notdef)):
                mask = self._render_with_fallback(char, mask)
            self.masks[char] = mask

    def __getitem__(self, char: str) -> np.ndarray:
        return self.masks[char]

    def __len__(self) -> int:
        return len(self.masks)

    def _render_with_fallback(self, char: str, primary: np.ndarray) -> np.ndarray:
        fallback_path = _find_fallback_font(char)
        if fallback_path is None:
            logger.debug("No fallback font for %r", char)
            return primary

        if fallback_path not in self._fallback_cache:
            self._fallback_cache[fallback_path] = ImageFont.truetype(fallback_path, self.size)
        font = self._fallback_cache[fallback_path]

        gb = font.getbbox(char)
        x_offset = (self.size - (gb[2] - gb[0])) // 2
        return _render(char, font, self.size, x_offset)
