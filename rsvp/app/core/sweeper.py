"""Periodic background sweeps for in-memory stores.

The rate-limit store and the CSRF token registry both grow with every new
client. Each store exposes a synchronous ``sweep()`` that drops expired
entries; this module runs such a callback on a fixed interval for the
lifetime of the application.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicSweeper:
    """Runs a cleanup callback every ``interval`` seconds.

    Usage:
        sweeper = PeriodicSweeper("csrf-tokens", protector.sweep, interval=300)
        await sweeper.start()
        ...
        await sweeper.stop()
    """

    def __init__(self, name: str, callback: Callable[[], int], interval: float):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self._callback = callback
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self) -> None:
        """Start the background sweep task."""
        if self._task is not None:
            logger.debug(f"Sweeper '{self.name}' already running")
            return

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started sweeper '{self.name}' (interval: {self._interval}s)")

    async def stop(self) -> None:
        """Stop the background sweep task."""
        if self._task is None:
            return

        self._stop_event.set()

        try:
            await asyncio.wait_for(self._task, timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning(f"Sweeper '{self.name}' did not stop gracefully, cancelling")
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
            logger.info(f"Stopped sweeper '{self.name}'")

    def run_once(self) -> int:
        removed = self._callback()
        if removed:
            logger.debug(f"Sweeper '{self.name}' removed {removed} expired entries")
        return removed

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                try:
                    self.run_once()
                except Exception as e:
                    logger.error(f"Error during sweep '{self.name}': {e}")
