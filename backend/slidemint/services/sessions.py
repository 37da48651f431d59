"""
Keeps one CarouselEditor per open deck so unsaved edits are what every
request sees, and routes their debounced saves to the repository.
"""

import asyncio
import logging
from typing import Optional

from slidemint.exceptions import PersistenceError
from slidemint.schemas import Carousel
from slidemint.services.autosave import DebouncedSaver
from slidemint.services.carousel_store import CarouselRepository
from slidemint.services.deck_editor import CarouselEditor

logger = logging.getLogger(__name__)


class EditorRegistry:
    def __init__(self, repository: CarouselRepository, autosave_delay: float = 1.0):
        self.repository = repository
        self.saver = DebouncedSaver(repository.save, delay=autosave_delay, on_error=self._record_error)
        self._editors: dict[str, CarouselEditor] = {}
        self._lock = asyncio.Lock()
        self.errors: dict[str, PersistenceError] = {}

    def _record_error(self, carousel_id: str, error: PersistenceError):
        self.errors[carousel_id] = error

    async def open(self, carousel_id: str) -> CarouselEditor:
        async with self._lock:
            editor = self._editors.get(carousel_id)
            if editor is None:
                carousel = await self.repository.get(carousel_id)
                editor = CarouselEditor(carousel, saver=self.saver)
                self._editors[carousel_id] = editor
            return editor

    def attach(self, carousel: Carousel) -> CarouselEditor:
        editor = CarouselEditor(carousel, saver=self.saver)
        self._editors[carousel.id] = editor
        return editor

    def pop_error(self, carousel_id: str) -> Optional[PersistenceError]:
        return self.errors.pop(carousel_id, None)

    async def close(self, carousel_id: str, flush: bool = True):
        if flush:
            await self.saver.flush(carousel_id)
        self._editors.pop(carousel_id, None)

    def forget(self, carousel_id: str):
        """Drop the editor and any pending save without writing it."""
        self._editors.pop(carousel_id, None)
        self.saver.discard(carousel_id)

    async def aclose(self):
        await self.saver.aclose()
        self._editors.clear()
