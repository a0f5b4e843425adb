"""FastAPI routers package."""

from .admin_booking import router as admin_booking_router
from .booking import router as booking_router
from .health import router as health_router
from .metrics import router as metrics_router
from .team import router as team_router
from .venue import router as venue_router

__all__ = [
    "admin_booking_router",
    "booking_router",
    "health_router",
    "metrics_router",
    "team_router",
    "venue_router",
]
