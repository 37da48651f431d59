"""
Off-screen render host.

Each export step gets a short-lived surface: layout runs in a worker thread
(mount), the host waits for it to settle, the rasterizer captures it, and the
surface is released no matter how the step ended. Only one surface may be
alive per host at a time.
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from typing import Optional

from slidemint.exceptions import SurfaceBusyError
from slidemint.services.frame import Frame
from slidemint.services.slide_renderer import DISPLAY, RenderParams, SlideRenderer, get_renderer

logger = logging.getLogger(__name__)


@dataclass
class Surface:
    """A detached, invisible rendering surface sized in logical units."""
    id: str
    width: int
    height: int
    params: RenderParams
    frame: Optional[Frame] = None
    released: bool = False
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def painted(self) -> bool:
        return self.frame is not None and not self.released


class OffscreenRenderHost:
    def __init__(
        self,
        renderer: Optional[SlideRenderer] = None,
        settle_delay: float = 0.2,
        use_ready_signal: bool = True,
    ):
        self.renderer = renderer or get_renderer()
        self.settle_delay = settle_delay
        self.use_ready_signal = use_ready_signal
        self._live: dict[str, Surface] = {}
        self.mounted_total = 0
        self.released_total = 0

    @property
    def live_count(self) -> int:
        return len(self._live)

    def mount(self, params: RenderParams) -> Surface:
        """Create the surface and start laying out the slide in display-only mode."""
        if self._live:
            raise SurfaceBusyError(f"{len(self._live)} surface(s) still mounted")
        if params.mode != DISPLAY:
            params = _display_only(params)

        width, height = params.dimensions
        surface = Surface(id=uuid.uuid4().hex[:8], width=width, height=height, params=params)
        self._live[surface.id] = surface
        self.mounted_total += 1
        surface.task = asyncio.create_task(self._paint(surface))
        logger.debug(f"Mounted surface {surface.id} ({width}x{height}) for slide {params.slide_number}")
        return surface

    async def _paint(self, surface: Surface):
        frame = await asyncio.to_thread(self.renderer.render, surface.params)
        if not surface.released:
            surface.frame = frame
        return frame

    async def settle(self, surface: Surface):
        """Wait until the surface is ready to be captured.

        With the ready signal the layout task itself is awaited, so layout
        errors surface here. Without it, a fixed delay is used and an
        unfinished surface is left for the rasterizer to reject.
        """
        if self.use_ready_signal and surface.task is not None:
            await asyncio.shield(surface.task)
        else:
            await asyncio.sleep(self.settle_delay)
            if surface.task is not None and surface.task.done() and surface.task.exception():
                raise surface.task.exception()

    def get_frame_element(self, surface: Surface) -> Surface:
        return self._live.get(surface.id, surface)

    def unmount(self, surface: Surface):
        """Release the surface. Safe to call more than once."""
        if surface.released:
            return
        surface.released = True
        if surface.task is not None and not surface.task.done():
            surface.task.cancel()
        elif surface.task is not None and not surface.task.cancelled():
            # Consume a layout error so it is not reported as never retrieved
            surface.task.exception()
        surface.frame = None
        self._live.pop(surface.id, None)
        self.released_total += 1
        logger.debug(f"Released surface {surface.id}")

    @asynccontextmanager
    async def surface(self, params: RenderParams):
        """Mount, settle, yield the surface; always unmount."""
        surface = self.mount(params)
        try:
            await self.settle(surface)
            yield self.get_frame_element(surface)
        finally:
            self.unmount(surface)


def _display_only(params: RenderParams) -> RenderParams:
    return replace(params, mode=DISPLAY)
