"""Cancellable periodic refresh owned by a caller rather than a module-level timer."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger


class RefreshScheduler:
    """Runs ``callback`` every ``interval_ms`` until stopped.

    ``start`` while running and ``stop`` while stopped are no-ops. The first
    tick fires immediately. A failing tick is logged and the loop continues.
    """

    def __init__(self, callback: Callable[[], Awaitable[None]]) -> None:
        self._callback = callback
        self._task: asyncio.Task[None] | None = None
        self.interval_ms: int | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval_ms: int) -> None:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        if self.running:
            return
        self.interval_ms = interval_ms
        self._task = asyncio.get_running_loop().create_task(self._run(interval_ms / 1000))

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self, interval: float) -> None:
        while True:
            try:
                await self._callback()
            except Exception as e:
                logger.exception(f"refresh tick failed: {e}")
            self.ticks += 1
            await asyncio.sleep(interval)
