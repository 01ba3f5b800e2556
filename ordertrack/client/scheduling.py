"""
Cancellable periodic task.

Runs an async callable on a fixed period. Each run is awaited before the
next one is scheduled, so runs never overlap; a run that takes longer than
the period delays the next tick instead of stacking up.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    def __init__(
        self,
        func: Callable[[], Awaitable[None]],
        interval_seconds: float,
        name: str = "periodic-task",
        run_immediately: bool = True,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._func = func
        self.interval_seconds = interval_seconds
        self.name = name
        self.run_immediately = run_immediately
        self._task: Optional[asyncio.Task] = None
        self.runs = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. Calling it on a running task is a no-op."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=self.name)

    def stop(self) -> None:
        """Stop ticking. An in-flight run is cancelled."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def aclose(self) -> None:
        """Stop and wait until the loop has unwound."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def _loop(self) -> None:
        loop = asyncio.get_running_loop()
        if not self.run_immediately:
            await asyncio.sleep(self.interval_seconds)
        while True:
            started = loop.time()
            try:
                await self._func()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("%s run failed", self.name)
            self.runs += 1
            elapsed = loop.time() - started
            await asyncio.sleep(max(0.0, self.interval_seconds - elapsed))
