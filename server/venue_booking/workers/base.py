"""Base worker class for periodic background tasks."""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)


class BaseWorker(ABC):
    """
    Abstract base class for background workers.

    Subclasses implement ``process``; the base class runs it every
    ``interval_seconds`` on the event loop until stopped. A failing iteration
    is logged and retried after a full interval.
    """

    def __init__(self, name: str, interval_seconds: int = 60):
        self.name = name
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @abstractmethod
    async def process(self) -> Any:
        """Process one iteration of the background task."""

    async def start(self) -> None:
        """Start the worker loop as an asyncio task."""
        if self._running:
            logger.warning("Worker already running", extra={"worker": self.name})
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(
            "Worker started",
            extra={"worker": self.name, "interval_seconds": self.interval_seconds}
        )

    async def stop(self) -> None:
        """Cancel the worker loop and wait for it to exit."""
        if not self._running:
            logger.warning("Worker not running", extra={"worker": self.name})
            return

        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Worker stopped", extra={"worker": self.name})

    async def _run(self) -> None:
        while self._running:
            try:
                start_time = datetime.utcnow()
                await self.process()

                duration = (datetime.utcnow() - start_time).total_seconds()
                logger.debug(
                    "Worker iteration completed",
                    extra={"worker": self.name, "duration_seconds": duration}
                )

                sleep_time = max(0, self.interval_seconds - duration)
                if sleep_time > 0:
                    await asyncio.sleep(sleep_time)

            except asyncio.CancelledError:
                logger.info("Worker loop cancelled", extra={"worker": self.name})
                break
            except Exception as e:
                logger.error(
                    f"{self.name} worker error: {e!s}",
                    exc_info=True,
                    extra={"worker": self.name}
                )
                await asyncio.sleep(self.interval_seconds)
