"""Background workers for the venue booking service."""

from .base import BaseWorker
from .booking_completion_worker import BookingCompletionWorker

__all__ = ["BaseWorker", "BookingCompletionWorker"]
