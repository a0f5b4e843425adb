"""Booking model definition."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .team import Team
    from .venue import Venue


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    REQUESTED = "requested"
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class BookingPriority(str, Enum):
    """Priority attached to administrator bookings."""
    NORMAL = "normal"
    HIGH = "high"
    ADMIN_OVERRIDE = "admin_override"


# Statuses that no longer hold their time window
INACTIVE_STATUSES = frozenset({BookingStatus.DENIED, BookingStatus.CANCELLED})

TERMINAL_STATUSES = frozenset({BookingStatus.DENIED, BookingStatus.CANCELLED, BookingStatus.COMPLETED})

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.REQUESTED: frozenset({
        BookingStatus.PENDING,
        BookingStatus.APPROVED,
        BookingStatus.DENIED,
        BookingStatus.CANCELLED,
    }),
    BookingStatus.PENDING: frozenset({
        BookingStatus.APPROVED,
        BookingStatus.DENIED,
        BookingStatus.CANCELLED,
    }),
    BookingStatus.APPROVED: frozenset({
        BookingStatus.COMPLETED,
        BookingStatus.DENIED,
        BookingStatus.CANCELLED,
    }),
    BookingStatus.DENIED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


def _enum_column(enum_cls) -> SAEnum:
    """VARCHAR-backed enum column storing the lowercase member values."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [member.value for member in members],
    )


def can_transition(current: str, target: str) -> bool:
    """Return True if a booking may move from ``current`` to ``target`` status."""
    return BookingStatus(target) in ALLOWED_TRANSITIONS[BookingStatus(current)]


class Booking(Base):
    """Booking entity holding a team's claim on a venue for a half-open time window."""

    __tablename__ = "bookings"

    id: Mapped[UUID] = mapped_column(
        PgUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    venue_id: Mapped[UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("venues.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    team_id: Mapped[UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("teams.id"),
        nullable=False,
        index=True
    )

    # Identities come from the bearer token subject
    requester_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    approver_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    start_date_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        _enum_column(BookingStatus),
        nullable=False,
        default=BookingStatus.REQUESTED,
        index=True
    )

    participant_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    purpose: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    special_requirements: Mapped[str | None] = mapped_column(Text, nullable=True)
    approval_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    denial_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Administrator override metadata
    created_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    priority: Mapped[BookingPriority] = mapped_column(
        _enum_column(BookingPriority),
        nullable=False,
        default=BookingPriority.NORMAL
    )
    is_admin_booking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    overridden_booking_id: Mapped[UUID | None] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("bookings.id", ondelete="SET NULL"),
        nullable=True
    )

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
        CheckConstraint("start_date_time < end_date_time", name="ck_booking_window_order"),
        CheckConstraint(
            "participant_count IS NULL OR participant_count > 0",
            name="ck_booking_participant_count_positive"
        ),
        CheckConstraint("length(requester_id) > 0", name="ck_booking_requester_not_empty"),
        Index("ix_bookings_venue_window", "venue_id", "start_date_time", "end_date_time"),
    )

    venue: Mapped["Venue"] = relationship("Venue", back_populates="bookings")
    team: Mapped["Team"] = relationship("Team", back_populates="bookings")

    @property
    def is_active(self) -> bool:
        """Return True while the booking still holds its time window."""
        return BookingStatus(self.status) not in INACTIVE_STATUSES

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, venue_id={self.venue_id}, status={self.status}, "
            f"window={self.start_date_time}-{self.end_date_time})>"
        )
