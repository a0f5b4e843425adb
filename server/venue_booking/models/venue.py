"""Venue model definition."""

from datetime import datetime, time
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, Integer, String, Text, Time, func
from sqlalchemy.dialects.postgresql import UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .blackout import VenueBlackout
    from .booking import Booking

DEFAULT_WORKING_START = time(6, 0)
DEFAULT_WORKING_END = time(22, 0)


class Venue(Base):
    """Venue entity representing a bookable training facility."""

    __tablename__ = "venues"

    id: Mapped[UUID] = mapped_column(
        PgUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Daily opening window; bookings and suggestions are laid out inside it
    working_start_time: Mapped[time] = mapped_column(Time, nullable=False, default=DEFAULT_WORKING_START)
    working_end_time: Mapped[time] = mapped_column(Time, nullable=False, default=DEFAULT_WORKING_END)

    # Declared for scheduling screens; overlap checks do not apply it
    buffer_time_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=15)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_venue_capacity_positive"),
        CheckConstraint("buffer_time_minutes >= 0", name="ck_venue_buffer_non_negative"),
        CheckConstraint("working_start_time < working_end_time", name="ck_venue_working_hours_order"),
        CheckConstraint("length(name) > 0", name="ck_venue_name_not_empty"),
    )

    bookings: Mapped[list["Booking"]] = relationship(
        "Booking",
        back_populates="venue",
        cascade="all, delete-orphan"
    )
    blackouts: Mapped[list["VenueBlackout"]] = relationship(
        "VenueBlackout",
        back_populates="venue",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return (
            f"<Venue(id={self.id}, name='{self.name}', "
            f"hours={self.working_start_time}-{self.working_end_time})>"
        )
