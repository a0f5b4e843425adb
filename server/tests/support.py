"""Shared test helpers: fixed booking day, identities and token minting."""

from datetime import datetime, timedelta, timezone

import jwt

from venue_booking.core.config import settings

# A Monday well in the future so no booking has elapsed
BOOKING_DAY = datetime(2030, 6, 3)

ADMIN_ID = "admin-1"
MANAGER_ID = "manager-1"
USER_ID = "user-1"
OTHER_USER_ID = "user-2"
CUSTOMER_ID = "customer-1"


def at(hour: int, minute: int = 0, days: int = 0) -> datetime:
    """Naive UTC datetime on the booking day."""
    return BOOKING_DAY + timedelta(days=days, hours=hour, minutes=minute)


def iso(value: datetime) -> str:
    """Wire representation of a naive UTC datetime."""
    return value.isoformat()


def make_token(user_id: str, roles: list[str], expires_in: int = 3600) -> str:
    """Mint a bearer token the way the identity provider would."""
    payload = {
        "sub": user_id,
        "username": user_id,
        "email": f"{user_id}@example.com",
        "roles": roles,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, settings.bearer_token_secret, algorithm="HS256")


def auth_headers(user_id: str, roles: list[str]) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, roles)}"}
