"""
Rasterizer: captures a settled surface as PNG bytes at the upscale factor.
"""

import asyncio
import logging
from io import BytesIO
from typing import Optional

from PIL import Image

from slidemint.exceptions import RasterizationError
from slidemint.services.frame import Frame
from slidemint.services.painter import FramePainter, get_painter

logger = logging.getLogger(__name__)


def encode_png(img: Image.Image) -> bytes:
    """Flatten onto an opaque background and encode as PNG."""
    if img.mode == "RGBA":
        rgb = Image.new("RGB", img.size, (0, 0, 0))
        rgb.paste(img, mask=img.split()[-1])
        img = rgb
    buffer = BytesIO()
    img.save(buffer, "PNG")
    return buffer.getvalue()


def render_png(frame: Frame, scale: int, painter: Optional[FramePainter] = None) -> bytes:
    """Paint and encode a frame synchronously (preview path)."""
    painter = painter or get_painter()
    return encode_png(painter.paint(frame, scale))


class Rasterizer:
    def __init__(self, painter: Optional[FramePainter] = None):
        self.painter = painter or get_painter()

    async def rasterize(self, surface, upscale_factor: int, position: Optional[int] = None) -> bytes:
        """PNG bytes whose pixel size is the surface's logical size times `upscale_factor`."""
        if surface is None or getattr(surface, "released", True):
            raise RasterizationError("surface is missing or already released", position)
        if not surface.painted:
            raise RasterizationError("surface has not finished painting", position)

        expected = (surface.width * upscale_factor, surface.height * upscale_factor)
        try:
            data, size = await asyncio.to_thread(self._capture, surface.frame, upscale_factor)
        except RasterizationError:
            raise
        except Exception as e:
            raise RasterizationError(f"encoding failed: {e}", position) from e

        if size != expected:
            raise RasterizationError(f"captured {size[0]}x{size[1]}, expected {expected[0]}x{expected[1]}", position)
        logger.debug(f"Rasterized slide {'' if position is None else position + 1} at {size[0]}x{size[1]}")
        return data

    def _capture(self, frame: Frame, scale: int):
        img = self.painter.paint(frame, scale)
        return encode_png(img), img.size
