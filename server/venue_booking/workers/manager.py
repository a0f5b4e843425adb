"""Worker manager for coordinating background tasks."""

import asyncio
import logging
from typing import Dict

from ..core.config import settings
from .base import BaseWorker
from .booking_completion_worker import BookingCompletionWorker

logger = logging.getLogger(__name__)


class WorkerManager:
    """Starts, stops and reports on the application's background workers."""

    def __init__(self, completion_interval_seconds: int | None = None):
        self.workers: Dict[str, BaseWorker] = {}
        self._setup_workers(completion_interval_seconds or settings.completion_worker_interval_seconds)

    def _setup_workers(self, completion_interval_seconds: int) -> None:
        self.workers["booking_completion"] = BookingCompletionWorker(
            interval_seconds=completion_interval_seconds
        )
        logger.info("Workers initialized", extra={"worker_count": len(self.workers)})

    async def start_all(self) -> None:
        """Start all workers."""
        for name, worker in self.workers.items():
            try:
                await worker.start()
            except Exception as e:
                logger.error(f"Failed to start worker {name}: {e!s}", exc_info=True)

        logger.info("Workers started", extra={"workers": list(self.workers)})

    async def stop_all(self) -> None:
        """Stop all running workers."""
        running = {name: worker for name, worker in self.workers.items() if worker.is_running}
        results = await asyncio.gather(
            *(worker.stop() for worker in running.values()),
            return_exceptions=True
        )

        for name, result in zip(running, results):
            if isinstance(result, Exception):
                logger.error(f"Error stopping worker {name}: {result!s}")

        logger.info("Workers stopped", extra={"workers": list(running)})

    def get_worker(self, name: str) -> BaseWorker:
        """
        Get a worker by name.

        Raises:
            KeyError: If worker not found
        """
        return self.workers[name]

    def get_worker_status(self) -> Dict[str, bool]:
        """Map worker names to their running state."""
        return {name: worker.is_running for name, worker in self.workers.items()}


worker_manager = WorkerManager()
