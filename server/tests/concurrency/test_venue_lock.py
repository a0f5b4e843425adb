"""Tests for the per-venue write lock that serializes check-then-insert."""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from support import ADMIN_ID, MANAGER_ID, USER_ID, at
from venue_booking.core.database import lock_venue
from venue_booking.core.exceptions import BookingConflictError, ConflictError, InvalidStatusTransitionError
from venue_booking.models.booking import BookingStatus
from venue_booking.schemas.booking import AdminBookingRequest, CreateBookingRequest
from venue_booking.services import booking_service as booking_service_module
from venue_booking.services import venue_service as venue_service_module
from venue_booking.services.booking_service import BookingService


class RecordingSession:
    """Stands in for an AsyncSession bound to a given dialect."""

    def __init__(self, dialect_name: str):
        self.bind = SimpleNamespace(dialect=SimpleNamespace(name=dialect_name))
        self.statements = []

    async def execute(self, statement, params=None):
        self.statements.append((str(statement), params))


@pytest.fixture
def lock_calls(monkeypatch):
    """Record every venue lock taken by the service layer."""
    calls = []

    async def record(session, venue_id):
        calls.append(venue_id)

    monkeypatch.setattr(venue_service_module, "lock_venue", record)
    monkeypatch.setattr(booking_service_module, "lock_venue", record)
    return calls


@pytest.mark.asyncio
async def test_postgres_takes_transaction_scoped_advisory_lock():
    session = RecordingSession("postgresql")
    venue_id = uuid4()

    await lock_venue(session, venue_id)

    assert len(session.statements) == 1
    statement, params = session.statements[0]
    assert "pg_advisory_xact_lock" in statement
    assert params == {"venue_id": str(venue_id)}


@pytest.mark.asyncio
async def test_sqlite_skips_the_lock():
    session = RecordingSession("sqlite")

    await lock_venue(session, uuid4())

    assert session.statements == []


@pytest.mark.asyncio
async def test_booking_writes_lock_the_venue(test_session, venue, team, lock_calls):
    service = BookingService(test_session)

    booking = await service.create_booking(
        CreateBookingRequest(venue_id=venue.id, team_id=team.id, start_date_time=at(10), end_date_time=at(11)),
        requester_id=USER_ID,
    )
    await service.reschedule_booking(booking.id, at(11), at(12))
    await service.transition_status(booking.id, BookingStatus.APPROVED, actor_id=MANAGER_ID)
    await service.create_admin_booking(
        AdminBookingRequest(venue_id=venue.id, team_id=team.id, start_date_time=at(15), end_date_time=at(16)),
        admin_id=ADMIN_ID,
    )

    assert lock_calls == [venue.id] * 4


@pytest.mark.asyncio
async def test_conflict_check_runs_after_lock(test_session, venue, team, monkeypatch):
    """The competing booking committed while waiting for the lock is seen by the check."""
    service = BookingService(test_session)
    competitor = BookingService(test_session)

    fired = []

    async def commit_competitor_while_waiting(session, venue_id):
        if fired:
            return
        fired.append(venue_id)
        await competitor.create_admin_booking(
            AdminBookingRequest(venue_id=venue_id, team_id=team.id, start_date_time=at(10), end_date_time=at(11)),
            admin_id=ADMIN_ID,
        )

    monkeypatch.setattr(venue_service_module, "lock_venue", commit_competitor_while_waiting)

    with pytest.raises(BookingConflictError) as exc_info:
        await service.create_booking(
            CreateBookingRequest(venue_id=venue.id, team_id=team.id, start_date_time=at(10), end_date_time=at(11)),
            requester_id=USER_ID,
        )

    assert exc_info.value.problem_details["code"] == "BOOKING_CONFLICT"


@pytest.mark.asyncio
async def test_cancel_and_deny_lock_the_venue(test_session, venue, team, lock_calls):
    service = BookingService(test_session)
    first = await service.create_booking(
        CreateBookingRequest(venue_id=venue.id, team_id=team.id, start_date_time=at(10), end_date_time=at(11)),
        requester_id=USER_ID,
    )
    second = await service.create_booking(
        CreateBookingRequest(venue_id=venue.id, team_id=team.id, start_date_time=at(12), end_date_time=at(13)),
        requester_id=USER_ID,
    )
    lock_calls.clear()

    await service.transition_status(first.id, BookingStatus.CANCELLED, actor_id=USER_ID)
    await service.transition_status(second.id, BookingStatus.DENIED, actor_id=MANAGER_ID)

    assert lock_calls == [venue.id, venue.id]


def cancel_while_waiting(monkeypatch, test_session, booking_id):
    """Make the first venue lock wait on a competing cancellation that commits."""
    competitor = BookingService(test_session)
    fired = []

    async def cancel_competitor(session, venue_id):
        if fired:
            return
        fired.append(venue_id)
        await competitor.transition_status(
            booking_id, BookingStatus.CANCELLED, actor_id=USER_ID, reason="Withdrawn"
        )

    monkeypatch.setattr(booking_service_module, "lock_venue", cancel_competitor)


@pytest.mark.asyncio
async def test_approval_sees_cancellation_committed_while_waiting(test_session, venue, team, monkeypatch):
    """A booking cancelled while the approver waits for the lock stays cancelled."""
    service = BookingService(test_session)
    booking = await service.create_booking(
        CreateBookingRequest(venue_id=venue.id, team_id=team.id, start_date_time=at(10), end_date_time=at(11)),
        requester_id=USER_ID,
    )
    cancel_while_waiting(monkeypatch, test_session, booking.id)

    with pytest.raises(InvalidStatusTransitionError) as exc_info:
        await service.transition_status(booking.id, BookingStatus.APPROVED, actor_id=MANAGER_ID)

    assert exc_info.value.problem_details["current_status"] == "cancelled"
    stored = await service.get_booking_by_id_or_raise(booking.id)
    assert stored.status == BookingStatus.CANCELLED
    assert stored.approver_id is None


@pytest.mark.asyncio
async def test_reschedule_sees_cancellation_committed_while_waiting(test_session, venue, team, monkeypatch):
    service = BookingService(test_session)
    booking = await service.create_booking(
        CreateBookingRequest(venue_id=venue.id, team_id=team.id, start_date_time=at(10), end_date_time=at(11)),
        requester_id=USER_ID,
    )
    cancel_while_waiting(monkeypatch, test_session, booking.id)

    with pytest.raises(ConflictError):
        await service.reschedule_booking(booking.id, at(14), at(15))

    stored = await service.get_booking_by_id_or_raise(booking.id)
    assert stored.status == BookingStatus.CANCELLED
    assert stored.start_date_time == at(10)
