"""
Font loading shared by layout (measuring) and painting (drawing).

Both sides must resolve the same face for a given weight and size, otherwise
line breaks computed for the preview would differ from the exported PNG.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from PIL import ImageFont, features

from slidemint.config import get_settings

logger = logging.getLogger(__name__)

FONT_WEIGHTS = {
    "regular": "Regular",
    "medium": "Medium",
    "semibold": "SemiBold",
    "bold": "Bold",
    "extrabold": "ExtraBold",
}


class FontBook:
    """Resolves font files for a family and hands out sized FreeType fonts."""

    def __init__(self, font_dir: str, family: str):
        self.font_dir = Path(font_dir)
        self.family = family
        self.fonts = self._load_fonts()

    def _load_fonts(self) -> dict:
        fonts = {}
        family_dir = self.font_dir / self.family
        for weight, suffix in FONT_WEIGHTS.items():
            for candidate in (family_dir / f"{self.family}-{suffix}.ttf", self.font_dir / f"{self.family}-{suffix}.ttf"):
                if candidate.exists():
                    fonts[weight] = str(candidate)
                    break
        if not fonts:
            logger.warning(f"⚠ No {self.family} fonts under {self.font_dir}, using Pillow's built-in face")
        return fonts

    def get_font(self, weight: str, size: int) -> ImageFont.FreeTypeFont:
        """Get font with specified weight and size."""
        return _load_font(self.fonts.get(weight) or self.fonts.get("bold"), size)

    def text_width(self, text: str, weight: str, size: int, scale: int = 1, direction: Optional[str] = None) -> float:
        """Advance width in layout units, measured at the painted size `size * scale`."""
        font = self.get_font(weight, int(size * scale))
        if direction == "rtl" and supports_complex_layout():
            return font.getlength(text, direction="rtl") / scale
        return font.getlength(text) / scale


@lru_cache(maxsize=256)
def _load_font(path, size: int):
    if path:
        return ImageFont.truetype(path, size)
    return ImageFont.load_default(size=size)


@lru_cache()
def supports_complex_layout() -> bool:
    """True when Pillow was built with libraqm (needed for proper RTL shaping)."""
    return bool(features.check("raqm"))


@lru_cache()
def get_font_book() -> FontBook:
    settings = get_settings()
    return FontBook(settings.font_path, settings.font_family)
