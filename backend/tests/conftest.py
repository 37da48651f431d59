"""
Pytest configuration and fixtures.
"""

import time

import pytest

from slidemint.config import Settings
from slidemint.schemas import Carousel, Slide
from slidemint.services.carousel_store import CarouselRepository, InMemoryCarouselStore, LocalOverrideStore
from slidemint.services.exporter import CarouselExporter
from slidemint.services.rasterizer import Rasterizer
from slidemint.services.render_host import OffscreenRenderHost
from slidemint.services.slide_renderer import SlideRenderer


def make_carousel(count: int = 5, **overrides) -> Carousel:
    slides = [Slide(position=i, title=f"Slide {i + 1}", body=f"Body text for slide {i + 1}") for i in range(count)]
    data = {"id": "deck-1", "carousel_name": "My Deck", "slides": slides}
    data.update(overrides)
    return Carousel(**data)


class FailingRenderer(SlideRenderer):
    """Raises for the given 1-based slide numbers (all slides when `fail_all`)."""

    def __init__(self, fail_numbers=(), fail_all: bool = False, fail_times: int = -1, delay: float = 0.0):
        super().__init__()
        self.fail_numbers = set(fail_numbers)
        self.fail_all = fail_all
        self.fail_times = fail_times
        self.delay = delay
        self.calls = []

    def render(self, params):
        self.calls.append(params.slide_number)
        if self.delay:
            time.sleep(self.delay)
        if self.fail_all or params.slide_number in self.fail_numbers:
            if self.fail_times != 0:
                self.fail_times -= 1
                raise RuntimeError(f"layout exploded on slide {params.slide_number}")
        return super().render(params)


class RecordingSaver:
    def __init__(self):
        self.calls = []

    def schedule(self, deck_id, fields):
        self.calls.append((deck_id, dict(fields)))


class StaticGenerator:
    def __init__(self, slides=None):
        self.slides = slides
        self.requests = []

    async def generate(self, text, style="Professional", language="he"):
        self.requests.append((text, style, language))
        if self.slides is not None:
            return [s.model_copy() for s in self.slides]
        return [Slide(position=i, title=f"Point {i + 1}", body=f"Detail {i + 1}") for i in range(3)]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        settle_delay=0.0,
        use_ready_signal=True,
        slide_export_timeout=5.0,
        export_retries=0,
        autosave_delay=0.05,
        watermark_text="Post24.ai",
    )


@pytest.fixture
def carousel() -> Carousel:
    return make_carousel()


@pytest.fixture
def renderer() -> SlideRenderer:
    return SlideRenderer()


def build_exporter(settings: Settings, renderer=None) -> CarouselExporter:
    host = OffscreenRenderHost(
        renderer=renderer or SlideRenderer(),
        settle_delay=settings.settle_delay,
        use_ready_signal=settings.use_ready_signal,
    )
    return CarouselExporter(host=host, rasterizer=Rasterizer(), settings=settings)


@pytest.fixture
def exporter(settings) -> CarouselExporter:
    return build_exporter(settings)


@pytest.fixture
def repository() -> CarouselRepository:
    return CarouselRepository(InMemoryCarouselStore(), LocalOverrideStore(), generator=StaticGenerator())
