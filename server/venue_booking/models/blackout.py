"""Venue blackout model definition."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .venue import Venue


class VenueBlackout(Base):
    """Period during which a venue cannot be booked (maintenance, events)."""

    __tablename__ = "venue_blackouts"

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

    start_date_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    end_date_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    reason: Mapped[str] = mapped_column(String(200), nullable=False)
    created_by: Mapped[str] = mapped_column(String(128), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("start_date_time < end_date_time", name="ck_blackout_window_order"),
        CheckConstraint("length(reason) > 0", name="ck_blackout_reason_not_empty"),
    )

    venue: Mapped["Venue"] = relationship("Venue", back_populates="blackouts")

    def __repr__(self) -> str:
        return (
            f"<VenueBlackout(id={self.id}, venue_id={self.venue_id}, "
            f"window={self.start_date_time}-{self.end_date_time}, reason='{self.reason}')>"
        )
