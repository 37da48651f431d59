"""
Paints a Frame onto a Pillow image at an integer upscale factor.

Used for both the interactive preview PNG and the exported PNG, so the two
can only differ if the Frame differs.
"""

from functools import lru_cache
from typing import Optional

from PIL import Image, ImageDraw

from slidemint.design_templates import hex_to_rgb
from slidemint.services.fonts import FontBook, get_font_book, supports_complex_layout
from slidemint.services.frame import Border, Ellipse, Frame, LinearGradient, Rect, TextBlock

# Gradient masks are computed small, then resized to the target box
GRADIENT_MASK_SIZE = 64


class FramePainter:
    """Rasterizes scene-graph primitives with per-element opacity."""

    def __init__(self, font_book: Optional[FontBook] = None):
        self.font_book = font_book or get_font_book()
        self.complex_layout = supports_complex_layout()

    def paint(self, frame: Frame, scale: int = 1) -> Image.Image:
        size = (int(frame.width * scale), int(frame.height * scale))
        img = Image.new("RGBA", size, (*hex_to_rgb(frame.background), 255))

        for element in frame.elements:
            if isinstance(element, LinearGradient):
                self._gradient(img, element, scale)
            elif isinstance(element, Rect):
                self._overlay(img, element.opacity, lambda d, fill: d.rectangle(
                    _box(element.x, element.y, element.width, element.height, scale), fill=fill
                ), element.color)
            elif isinstance(element, Ellipse):
                self._overlay(img, element.opacity, lambda d, fill: d.ellipse(
                    _box(element.cx - element.rx, element.cy - element.ry, element.rx * 2, element.ry * 2, scale),
                    fill=fill,
                ), element.color)
            elif isinstance(element, Border):
                self._overlay(img, element.opacity, lambda d, fill: self._border(d, element, scale, fill), element.color)
            elif isinstance(element, TextBlock):
                self._overlay(img, element.opacity, lambda d, fill: self._text(d, element, frame.direction, scale, fill),
                              element.color)
        return img

    def _overlay(self, img: Image.Image, opacity: float, draw_fn, color: str):
        fill = (*hex_to_rgb(color), int(round(255 * opacity)))
        if opacity >= 1.0:
            draw_fn(ImageDraw.Draw(img), fill)
            return
        layer = Image.new("RGBA", img.size, (0, 0, 0, 0))
        draw_fn(ImageDraw.Draw(layer), fill)
        img.alpha_composite(layer)

    def _border(self, draw: ImageDraw.ImageDraw, border: Border, scale: int, fill):
        x0, y0, x1, y1 = _box(border.x, border.y, border.width, border.height, scale)
        t = max(1, int(round(border.thickness * scale)))
        if "top" in border.sides:
            draw.rectangle([x0, y0, x1, y0 + t - 1], fill=fill)
        if "bottom" in border.sides:
            draw.rectangle([x0, y1 - t + 1, x1, y1], fill=fill)
        if "left" in border.sides:
            draw.rectangle([x0, y0, x0 + t - 1, y1], fill=fill)
        if "right" in border.sides:
            draw.rectangle([x1 - t + 1, y0, x1, y1], fill=fill)

    def _text(self, draw: ImageDraw.ImageDraw, block: TextBlock, direction: str, scale: int, fill):
        font = self.font_book.get_font(block.font_weight, int(block.font_size * scale))
        kwargs = {}
        if self.complex_layout and direction == "rtl":
            kwargs["direction"] = "rtl"
        for line in block.lines:
            if line.text:
                draw.text((line.x * scale, line.y * scale), line.text, font=font, fill=fill, **kwargs)

    def _gradient(self, img: Image.Image, gradient: LinearGradient, scale: int):
        box = _box(gradient.x, gradient.y, gradient.width, gradient.height, scale)
        size = (box[2] - box[0] + 1, box[3] - box[1] + 1)
        mask = _diagonal_mask(gradient.start_corner, gradient.start_alpha, gradient.end_alpha).resize(
            size, Image.Resampling.BILINEAR
        )
        layer = Image.new("RGBA", size, (*hex_to_rgb(gradient.color), 0))
        layer.putalpha(mask)
        img.alpha_composite(layer, dest=(box[0], box[1]))


@lru_cache(maxsize=16)
def _diagonal_mask(start_corner: str, start_alpha: float, end_alpha: float) -> Image.Image:
    n = GRADIENT_MASK_SIZE
    mask = Image.new("L", (n, n), 0)
    for y in range(n):
        for x in range(n):
            dx = (n - 1 - x) if start_corner == "top_right" else x
            factor = (dx + y) / (2 * (n - 1))
            alpha = start_alpha + (end_alpha - start_alpha) * factor
            mask.putpixel((x, y), int(round(255 * alpha)))
    return mask


def _box(x: float, y: float, w: float, h: float, scale: int) -> list:
    x0, y0 = int(round(x * scale)), int(round(y * scale))
    x1, y1 = int(round((x + w) * scale)) - 1, int(round((y + h) * scale)) - 1
    return [x0, y0, x1, y1]


_painter = None


def get_painter() -> FramePainter:
    global _painter
    if _painter is None:
        _painter = FramePainter()
    return _painter
