"""FastAPI app with API routes"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from slidemint.config import get_settings
from slidemint.services.carousel_store import (
    CarouselRepository, InMemoryCarouselStore, LocalOverrideStore, SqlCarouselStore,
)
from slidemint.services.exporter import CarouselExporter
from slidemint.services.sessions import EditorRegistry

logger = logging.getLogger(__name__)


async def build_registry(settings) -> EditorRegistry:
    """Pick the SQL store when a database is configured, else keep decks in memory."""
    from slidemint.database import get_session_maker, init_db

    if await init_db():
        store = SqlCarouselStore(get_session_maker())
    else:
        store = InMemoryCarouselStore()
    overrides = LocalOverrideStore(settings.override_store_path or None)
    return EditorRegistry(CarouselRepository(store, overrides), autosave_delay=settings.autosave_delay)


def create_app(registry: Optional[EditorRegistry] = None, exporter: Optional[CarouselExporter] = None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Wire storage and the exporter on startup, flush pending saves on shutdown."""
        print("Starting app...")
        settings = get_settings()
        app.state.registry = registry or await build_registry(settings)
        app.state.exporter = exporter or CarouselExporter(settings=settings)
        print("✓ Services ready")

        yield

        print("Shutting down...")
        await app.state.registry.aclose()
        from slidemint.database import dispose_engine
        await dispose_engine()

    app = FastAPI(title="SlideMint", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Failed-Slides", "X-Total-Slides"],
    )

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok"}

    from slidemint.routes import router
    app.include_router(router, prefix="/api")
    return app


app = create_app()
