"""
Debounced persistence: edits are coalesced per deck and saved at most once
per quiet period.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from slidemint.exceptions import PersistenceError

logger = logging.getLogger(__name__)

SaveFn = Callable[[str, dict], Awaitable[None]]


class DebouncedSaver:
    def __init__(
        self,
        save_fn: SaveFn,
        delay: float = 1.0,
        on_error: Optional[Callable[[str, BaseException], None]] = None,
    ):
        self.save_fn = save_fn
        self.delay = delay
        self.on_error = on_error
        self._pending: dict[str, dict] = {}
        self._timers: dict[str, asyncio.Task] = {}
        self.save_count = 0
        self.last_error: Optional[PersistenceError] = None

    def schedule(self, deck_id: str, fields: dict):
        """Merge `fields` into the pending save and restart the quiet-period timer."""
        self._pending.setdefault(deck_id, {}).update(fields)
        timer = self._timers.pop(deck_id, None)
        if timer is not None and not timer.done():
            timer.cancel()
        self._timers[deck_id] = asyncio.create_task(self._wait_and_save(deck_id))

    def pending(self, deck_id: str) -> dict:
        return dict(self._pending.get(deck_id, {}))

    async def _wait_and_save(self, deck_id: str):
        await asyncio.sleep(self.delay)
        self._timers.pop(deck_id, None)
        await self._save(deck_id)

    async def _save(self, deck_id: str):
        fields = self._pending.pop(deck_id, None)
        if not fields:
            return
        try:
            await self.save_fn(deck_id, fields)
            self.save_count += 1
            logger.debug(f"Saved {sorted(fields)} for carousel {deck_id}")
        except Exception as e:
            # Local state stays as the user left it
            error = PersistenceError(f"Saving carousel {deck_id} failed: {e}")
            self.last_error = error
            logger.warning(f"⚠️ {error}")
            if self.on_error:
                self.on_error(deck_id, error)

    async def flush(self, deck_id: Optional[str] = None):
        """Save pending changes now instead of waiting for the timer."""
        ids = [deck_id] if deck_id is not None else list(self._pending)
        for key in ids:
            timer = self._timers.pop(key, None)
            if timer is not None and not timer.done():
                timer.cancel()
            await self._save(key)

    def discard(self, deck_id: str):
        timer = self._timers.pop(deck_id, None)
        if timer is not None and not timer.done():
            timer.cancel()
        self._pending.pop(deck_id, None)

    async def aclose(self):
        await self.flush()
        for timer in list(self._timers.values()):
            timer.cancel()
        self._timers.clear()
