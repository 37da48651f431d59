"""
Export orchestrator.

Drives mount -> settle -> rasterize -> unmount for each slide, strictly in deck
order and one surface at a time. A slide that fails is counted and skipped;
the job only fails outright when nothing could be exported or the archive
could not be built.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from slidemint.config import Settings, get_settings
from slidemint.exceptions import (
    ExportFailure,
    ExportInProgressError,
    PerSlideRenderFailure,
    SlidePositionError,
    TotalExportFailure,
)
from slidemint.schemas import Carousel
from slidemint.services.archive import archive_filename, build_archive_async, slide_filename
from slidemint.services.rasterizer import Rasterizer
from slidemint.services.render_host import OffscreenRenderHost
from slidemint.services.slide_renderer import DISPLAY, build_render_params

logger = logging.getLogger(__name__)

ZIP_MEDIA_TYPE = "application/zip"
PNG_MEDIA_TYPE = "image/png"


@dataclass
class ExportJob:
    """Ephemeral state for one export run."""
    carousel: Carousel
    positions: list[int]
    base_dimensions: tuple[int, int]
    upscale_factor: int
    results: dict = field(default_factory=dict)
    failures: dict = field(default_factory=dict)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def total_count(self) -> int:
        return len(self.positions)


@dataclass
class ExportResult:
    filename: str
    content: bytes
    media_type: str
    failed_count: int = 0
    total_count: int = 1
    failed_positions: list[int] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return self.failed_count > 0


class CarouselExporter:
    def __init__(
        self,
        host: Optional[OffscreenRenderHost] = None,
        rasterizer: Optional[Rasterizer] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.host = host or OffscreenRenderHost(
            settle_delay=self.settings.settle_delay,
            use_ready_signal=self.settings.use_ready_signal,
        )
        self.rasterizer = rasterizer or Rasterizer()
        self._in_flight: set[str] = set()
        # Serializes jobs for different decks on the single-surface host
        self._host_lock = asyncio.Lock()

    def is_exporting(self, carousel_id: str) -> bool:
        return carousel_id in self._in_flight

    def _start_job(self, carousel: Carousel, positions: list[int]) -> ExportJob:
        # Snapshot: edits made while the export runs do not reach it
        snapshot = carousel.model_copy(deep=True)
        width, height = build_render_params(snapshot, positions[0], DISPLAY, self.settings).dimensions
        return ExportJob(
            carousel=snapshot,
            positions=positions,
            base_dimensions=(width, height),
            upscale_factor=self.settings.upscale_factor,
        )

    async def export_deck(self, carousel: Carousel) -> ExportResult:
        """Export every slide into one ZIP. Partial failures still produce a file."""
        if not carousel.slides:
            raise TotalExportFailure("Carousel has no slides to export")

        async with self._guard(carousel.id), self._host_lock:
            job = self._start_job(carousel, list(range(len(carousel.slides))))
            name = job.carousel.display_name
            logger.info(f"📦 Exporting {job.total_count} slides of '{name}'")

            for position in job.positions:
                try:
                    job.results[slide_filename(name, position)] = await self._export_slide(job, position)
                except PerSlideRenderFailure as e:
                    job.failures[position] = e
                    logger.warning(f"  ✗ {e}")

            if job.failed_count == job.total_count:
                raise TotalExportFailure(
                    f"All {job.total_count} slides failed to export",
                    failed_count=job.failed_count,
                    total_count=job.total_count,
                )

            try:
                archive = await build_archive_async(job.results)
            except Exception as e:
                logger.exception("Archive assembly failed")
                raise TotalExportFailure(
                    f"Could not build archive: {e}",
                    failed_count=job.failed_count,
                    total_count=job.total_count,
                ) from e

            if job.failed_count:
                logger.warning(f"⚠️ Exported {len(job.results)}/{job.total_count} slides of '{name}'")
            else:
                logger.info(f"✓ Exported {job.total_count} slides of '{name}'")

            return ExportResult(
                filename=archive_filename(name),
                content=archive,
                media_type=ZIP_MEDIA_TYPE,
                failed_count=job.failed_count,
                total_count=job.total_count,
                failed_positions=sorted(job.failures),
            )

    async def export_single_slide(self, carousel: Carousel, position: int) -> ExportResult:
        """Export one slide as a PNG. Success or ExportFailure, nothing in between."""
        if not 0 <= position < len(carousel.slides):
            raise SlidePositionError(position, len(carousel.slides))

        async with self._guard(carousel.id), self._host_lock:
            job = self._start_job(carousel, [position])
            try:
                data = await self._export_slide(job, position)
            except PerSlideRenderFailure as e:
                raise ExportFailure(str(e)) from e

            logger.info(f"✓ Exported slide {position + 1} of '{job.carousel.display_name}'")
            return ExportResult(
                filename=slide_filename(job.carousel.display_name, position),
                content=data,
                media_type=PNG_MEDIA_TYPE,
            )

    async def _export_slide(self, job: ExportJob, position: int) -> bytes:
        attempts = 1 + max(0, self.settings.export_retries)
        last_error: Optional[BaseException] = None
        for attempt in range(attempts):
            try:
                return await asyncio.wait_for(
                    self._render_once(job, position),
                    timeout=self.settings.slide_export_timeout,
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                last_error = e
                if attempt + 1 < attempts:
                    logger.info(f"  Retrying slide {position + 1} ({attempt + 1}/{attempts - 1}): {e}")
        raise PerSlideRenderFailure(position, last_error)

    async def _render_once(self, job: ExportJob, position: int) -> bytes:
        params = build_render_params(job.carousel, position, DISPLAY, self.settings)
        async with self.host.surface(params) as surface:
            return await self.rasterizer.rasterize(surface, job.upscale_factor, position)

    def _guard(self, carousel_id: str):
        return _InFlight(self._in_flight, carousel_id)


class _InFlight:
    """At most one export per deck at a time."""

    def __init__(self, registry: set, carousel_id: str):
        self.registry = registry
        self.carousel_id = carousel_id

    async def __aenter__(self):
        if self.carousel_id in self.registry:
            raise ExportInProgressError(self.carousel_id)
        self.registry.add(self.carousel_id)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.registry.discard(self.carousel_id)
        return False
