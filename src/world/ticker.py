import asyncio
import time
from typing import Awaitable, Callable

from logger import logger

__all__ = ["Ticker"]


class Ticker:
    """Runs `callback` once on start, then every `interval_seconds` until stopped."""

    def __init__(self, callback: Callable[[], Awaitable[None]], interval_seconds: float, name: str = "ticker") -> None:
        self.callback = callback
        self.interval_seconds = interval_seconds
        self.name = name
        self.tick_count = 0
        self.last_tick_at_epoch: float | None = None
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            logger.warning(f"{self.name} is already running")
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name=self.name)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        try:
            await self._task
        finally:
            self._task = None

    async def _run(self) -> None:
        logger.info(f"{self.name} started (interval {self.interval_seconds}s)")
        while not self._stop_event.is_set():
            self.last_tick_at_epoch = time.time()
            self.tick_count += 1
            try:
                await self.callback()
            except Exception:
                logger.exception(f"{self.name} tick failed, keeping schedule")

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info(f"{self.name} stopped")
