"""Background worker that completes bookings whose window has ended."""

import logging
from datetime import datetime

from ..core.database import async_session_factory
from ..services.booking_service import BookingService
from .base import BaseWorker

logger = logging.getLogger(__name__)


class BookingCompletionWorker(BaseWorker):
    """
    Background worker that marks elapsed approved bookings as completed.

    Each iteration opens its own session; nothing is shared with request
    handlers.
    """

    def __init__(self, interval_seconds: int = 300, batch_size: int = 100, session_factory=None):
        """
        Initialize the booking completion worker.

        Args:
            interval_seconds: How often to look for elapsed bookings
            batch_size: Maximum bookings completed per iteration
            session_factory: Async session factory; defaults to the application's
        """
        super().__init__(name="BookingCompletion", interval_seconds=interval_seconds)
        self.batch_size = batch_size
        self.session_factory = session_factory or async_session_factory

    async def process(self) -> int:
        """Complete one batch of elapsed bookings."""
        async with self.session_factory() as db:
            try:
                now = datetime.utcnow()
                booking_service = BookingService(db)

                completed_count = await booking_service.complete_elapsed_bookings(
                    now=now, batch_size=self.batch_size
                )

                if completed_count > 0:
                    logger.info(
                        f"Completed {completed_count} elapsed bookings",
                        extra={
                            "completed_count": completed_count,
                            "timestamp": now.isoformat(),
                            "worker": self.name,
                        }
                    )

                return completed_count

            except Exception as e:
                await db.rollback()
                logger.error(
                    f"Error completing elapsed bookings: {e!s}",
                    exc_info=True,
                    extra={"worker": self.name}
                )
                raise
