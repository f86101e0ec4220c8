"""Periodic sensor snapshot polling."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ruuvi_panel.client.errors import TransportError
from ruuvi_panel.sync.snapshots import SnapshotCache

logger = logging.getLogger(__name__)


class SnapshotPoller:
    """Refreshes a :class:`SnapshotCache` every *interval* seconds.

    A tick awaits its refresh before the next sleep starts, so refreshes
    never overlap. A failed refresh is logged and the cache keeps showing
    the last good snapshots. Only cancellation or a closed cache ends the
    loop.
    """

    def __init__(
        self,
        cache: SnapshotCache,
        interval: float,
        *,
        on_refresh: Callable[[], Awaitable[None] | None] | None = None,
    ) -> None:
        self.cache = cache
        self.interval = interval
        self._on_refresh = on_refresh
        self._task: asyncio.Task[None] | None = None
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="snapshot-poller")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def tick(self) -> None:
        """Run one refresh, swallowing transport errors."""
        try:
            applied = await self.cache.refresh()
        except TransportError as exc:
            self.failures += 1
            logger.warning("Failed to refresh tags: %s", exc)
            return
        if applied and self._on_refresh is not None:
            result = self._on_refresh()
            if result is not None:
                await result

    async def _run(self) -> None:
        while not self.cache.closed:
            await asyncio.sleep(self.interval)
            if self.cache.closed:
                break
            try:
                await self.tick()
            except Exception:
                # A renderer bug or an unexpected decode error must not end polling
                self.failures += 1
                logger.exception("Unexpected error while polling tags")
