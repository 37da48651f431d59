"""
Error taxonomy for the carousel editor.

Deck mutations raise before touching state; export failures are either
per-slide (counted by the exporter) or job-level (no file is produced).
"""

from typing import Optional


class SlideMintError(Exception):
    """Base class for all editor/export errors."""


class CarouselNotFound(SlideMintError):
    def __init__(self, carousel_id: str):
        super().__init__(f"Carousel not found: {carousel_id}")
        self.carousel_id = carousel_id


class GenerationUnavailable(SlideMintError):
    """Text-generation collaborator failed or returned unusable data."""


class StructuralInvariantViolation(SlideMintError):
    """A deck mutation was rejected; the deck is unchanged."""


class MinimumSlideCountError(StructuralInvariantViolation):
    def __init__(self, minimum: int):
        super().__init__(f"A carousel must have at least {minimum} slides")
        self.minimum = minimum


class SlidePositionError(StructuralInvariantViolation):
    def __init__(self, position: int, count: int):
        super().__init__(f"Slide position {position} out of range (0..{count - 1})")
        self.position = position
        self.count = count


class InvalidStyleError(SlideMintError):
    """Unknown template / cover style / aspect ratio, or a malformed color."""


class PersistenceError(SlideMintError):
    """The save collaborator failed. Local state is kept as-is."""


class SurfaceBusyError(SlideMintError):
    """An off-screen surface is already alive on this host."""


class RasterizationError(SlideMintError):
    def __init__(self, message: str, position: Optional[int] = None):
        prefix = f"Slide {position + 1}: " if position is not None else ""
        super().__init__(f"{prefix}{message}")
        self.position = position


class PerSlideRenderFailure(SlideMintError):
    def __init__(self, position: int, cause: BaseException):
        super().__init__(f"Slide {position + 1} could not be exported: {cause!r}")
        self.position = position
        self.cause = cause


class ExportFailure(SlideMintError):
    """Single-slide export failed."""


class TotalExportFailure(ExportFailure):
    """Every slide failed or the archive could not be assembled."""

    def __init__(self, message: str, failed_count: int = 0, total_count: int = 0):
        super().__init__(message)
        self.failed_count = failed_count
        self.total_count = total_count


class ExportInProgressError(SlideMintError):
    def __init__(self, carousel_id: str):
        super().__init__(f"An export is already running for carousel {carousel_id}")
        self.carousel_id = carousel_id
