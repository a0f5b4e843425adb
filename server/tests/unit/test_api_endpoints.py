"""Integration tests for API endpoints."""

import logging

import pytest

from support import CUSTOMER_ID, USER_ID, at, auth_headers, iso, make_token


def booking_body(venue, team, start, end, **extra) -> dict:
    body = {
        "venueId": str(venue.id),
        "teamId": str(team.id),
        "startDateTime": iso(start),
        "endDateTime": iso(end),
    }
    body.update(extra)
    return body


async def create_booking(client, headers, venue, team, start, end, **extra) -> dict:
    response = await client.post("/api/bookings", json=booking_body(venue, team, start, end, **extra), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_venue_endpoint(test_client, admin_headers, sample_venue_data):
    """Test the venue creation endpoint."""
    response = await test_client.post("/api/venues", json=sample_venue_data, headers=admin_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == sample_venue_data["name"]
    assert data["workingStartTime"] == "06:00:00"
    assert data["bufferTimeMinutes"] == 15
    assert data["isActive"] is True
    assert "id" in data


@pytest.mark.asyncio
async def test_create_venue_requires_superadmin(test_client, manager_headers, sample_venue_data):
    response = await test_client.post("/api/venues", json=sample_venue_data, headers=manager_headers)

    assert response.status_code == 403
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["required_roles"] == ["superadmin"]


@pytest.mark.asyncio
async def test_missing_auth(test_client, sample_venue_data):
    """Test requests without a bearer token are rejected."""
    response = await test_client.post("/api/venues", json=sample_venue_data)

    assert response.status_code == 401
    data = response.json()
    assert data["status"] == 401
    assert "authentication" in data["title"].lower()


@pytest.mark.asyncio
async def test_expired_token(test_client):
    headers = {"Authorization": f"Bearer {make_token(USER_ID, ['user'], expires_in=-60)}"}

    response = await test_client.get("/api/venues", headers=headers)

    assert response.status_code == 401
    assert response.json()["detail"] == "Token has expired"


@pytest.mark.asyncio
async def test_create_venue_invalid_data(test_client, admin_headers):
    """Test venue creation with invalid data."""
    response = await test_client.post(
        "/api/venues",
        json={"name": "", "capacity": 0},
        headers=admin_headers
    )

    assert response.status_code == 422
    data = response.json()
    assert data["status"] == 422
    assert "violations" in data
    assert {v["path"] for v in data["violations"]} >= {"body.name", "body.capacity"}


@pytest.mark.asyncio
async def test_get_venue_and_not_found(test_client, user_headers, venue):
    response = await test_client.get(f"/api/venues/{venue.id}", headers=user_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Main Hall"

    response = await test_client.get("/api/venues/00000000-0000-0000-0000-000000000000", headers=user_headers)
    assert response.status_code == 404
    assert response.json()["resource_type"] == "venue"


@pytest.mark.asyncio
async def test_venue_availability_endpoint(test_client, user_headers, venue, team):
    await create_booking(test_client, user_headers, venue, team, at(10), at(11))

    response = await test_client.get(
        f"/api/venues/{venue.id}/availability",
        params={"date": "2030-06-03"},
        headers=user_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["day"] == "2030-06-03"
    assert len(data["slots"]) == 16
    busy = [slot["startTime"] for slot in data["slots"] if not slot["available"]]
    assert busy == ["10:00"]


@pytest.mark.asyncio
async def test_blackout_endpoints(test_client, admin_headers, user_headers, venue, team):
    response = await test_client.post(
        f"/api/venues/{venue.id}/blackouts",
        json={"startDateTime": iso(at(12)), "endDateTime": iso(at(14)), "reason": "Tournament setup"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["createdBy"] == "admin-1"

    response = await test_client.get(f"/api/venues/{venue.id}/blackouts", headers=user_headers)
    assert [b["reason"] for b in response.json()] == ["Tournament setup"]

    response = await test_client.post(
        "/api/bookings", json=booking_body(venue, team, at(13), at(15)), headers=user_headers
    )
    assert response.status_code == 409
    assert response.json()["code"] == "VENUE_BLACKOUT"


@pytest.mark.asyncio
async def test_team_endpoints(test_client, admin_headers, user_headers):
    response = await test_client.post(
        "/api/teams", json={"name": "Under 12s", "description": "Juniors"}, headers=admin_headers
    )
    assert response.status_code == 201
    team_id = response.json()["id"]

    response = await test_client.post("/api/teams", json={"name": "Under 12s"}, headers=admin_headers)
    assert response.status_code == 409

    response = await test_client.get(f"/api/teams/{team_id}", headers=user_headers)
    assert response.status_code == 200
    assert response.json()["isActive"] is True

    response = await test_client.get("/api/teams", headers=user_headers)
    assert [t["name"] for t in response.json()] == ["Under 12s"]


@pytest.mark.asyncio
async def test_venue_and_team_creation_with_info_logging(test_client, admin_headers, caplog):
    with caplog.at_level(logging.INFO, logger="venue_booking"):
        response = await test_client.post(
            "/api/venues", json={"name": "Gym", "capacity": 30}, headers=admin_headers
        )
        assert response.status_code == 201

        response = await test_client.post("/api/teams", json={"name": "Veterans"}, headers=admin_headers)
        assert response.status_code == 201

        response = await test_client.post("/api/teams", json={"name": "Veterans"}, headers=admin_headers)
        assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_booking_endpoint(test_client, user_headers, venue, team):
    """Test a regular booking is created in requested status."""
    data = await create_booking(
        test_client, user_headers, venue, team, at(10), at(11), purpose="Training", participantCount=18
    )

    assert data["status"] == "requested"
    assert data["priority"] == "normal"
    assert data["requesterId"] == USER_ID
    assert data["isAdminBooking"] is False
    assert data["participantCount"] == 18
    assert data["venue"]["name"] == "Main Hall"
    assert data["team"]["name"] == "Under 16s"
    assert data["startDateTime"] == iso(at(10))


@pytest.mark.asyncio
async def test_create_booking_normalizes_offsets_to_utc(test_client, user_headers, venue, team):
    body = booking_body(venue, team, at(10), at(11))
    body["startDateTime"] = "2030-06-03T12:00:00+02:00"
    body["endDateTime"] = "2030-06-03T13:00:00+02:00"

    response = await test_client.post("/api/bookings", json=body, headers=user_headers)

    assert response.status_code == 201
    assert response.json()["startDateTime"] == iso(at(10))


@pytest.mark.asyncio
async def test_create_booking_conflict(test_client, user_headers, venue, team):
    """Test an overlapping booking is answered with 409 and suggestions."""
    existing = await create_booking(test_client, user_headers, venue, team, at(10), at(11))

    response = await test_client.post(
        "/api/bookings", json=booking_body(venue, team, at(10, 30), at(11, 30)), headers=user_headers
    )

    assert response.status_code == 409
    data = response.json()
    assert data["code"] == "BOOKING_CONFLICT"
    assert data["detail"].startswith("This slot is already booked")
    assert [b["id"] for b in data["conflicting_bookings"]] == [existing["id"]]
    assert [s["startDateTime"] for s in data["suggested_slots"]] == [iso(at(11, 30)), iso(at(12, 30)), iso(at(13, 30))]


@pytest.mark.asyncio
async def test_create_booking_adjacent_window(test_client, user_headers, venue, team):
    await create_booking(test_client, user_headers, venue, team, at(10), at(11))

    response = await test_client.post(
        "/api/bookings", json=booking_body(venue, team, at(11), at(12)), headers=user_headers
    )

    assert response.status_code == 201


@pytest.mark.asyncio
async def test_regular_booking_cannot_force_override(test_client, user_headers, venue, team):
    response = await test_client.post(
        "/api/bookings",
        json=booking_body(venue, team, at(10), at(11), forceOverride=True),
        headers=user_headers,
    )

    assert response.status_code == 422
    assert any(v["path"].endswith("forceOverride") for v in response.json()["violations"])


@pytest.mark.asyncio
async def test_create_booking_inverted_window(test_client, user_headers, venue, team):
    response = await test_client.post(
        "/api/bookings", json=booking_body(venue, team, at(11), at(10)), headers=user_headers
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_check_conflicts_endpoint(test_client, admin_headers, user_headers, venue, team):
    existing = await create_booking(test_client, user_headers, venue, team, at(10), at(11))
    body = {"venueId": str(venue.id), "startDateTime": iso(at(10, 30)), "endDateTime": iso(at(11, 30))}

    response = await test_client.post("/api/admin/bookings/check-conflicts", json=body, headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["hasConflict"] is True
    assert [b["id"] for b in data["conflictingBookings"]] == [existing["id"]]
    assert data["conflictingBookings"][0]["team"]["name"] == "Under 16s"
    assert len(data["suggestedSlots"]) == 3
    assert data["suggestedSlots"][0]["venueName"] == "Main Hall"

    body["excludeBookingId"] = existing["id"]
    response = await test_client.post("/api/admin/bookings/check-conflicts", json=body, headers=admin_headers)
    assert response.json() == {"hasConflict": False, "conflictingBookings": [], "suggestedSlots": []}


@pytest.mark.asyncio
async def test_check_conflicts_requires_superadmin(test_client, user_headers, manager_headers, venue):
    body = {"venueId": str(venue.id), "startDateTime": iso(at(10)), "endDateTime": iso(at(11))}

    response = await test_client.post("/api/admin/bookings/check-conflicts", json=body)
    assert response.status_code == 401

    for headers in (user_headers, manager_headers):
        response = await test_client.post("/api/admin/bookings/check-conflicts", json=body, headers=headers)
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_booking_override_endpoint(test_client, admin_headers, user_headers, venue, team):
    """Test force override cancels the existing booking and links it."""
    existing = await create_booking(test_client, user_headers, venue, team, at(10), at(11))

    response = await test_client.post(
        "/api/admin/bookings",
        json=booking_body(venue, team, at(10), at(11)),
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["code"] == "BOOKING_CONFLICT"

    response = await test_client.post(
        "/api/admin/bookings",
        json=booking_body(venue, team, at(10), at(11), forceOverride=True, priority="admin_override"),
        headers=admin_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["booking"]["status"] == "approved"
    assert data["booking"]["isAdminBooking"] is True
    assert data["booking"]["createdBy"] == "admin-1"
    assert data["booking"]["priority"] == "admin_override"
    assert data["booking"]["overriddenBookingId"] == existing["id"]
    assert data["overriddenBooking"]["id"] == existing["id"]
    assert data["overriddenBooking"]["status"] == "cancelled"
    assert [b["id"] for b in data["overriddenBookings"]] == [existing["id"]]

    response = await test_client.get(f"/api/bookings/{existing['id']}", headers=user_headers)
    assert response.json()["status"] == "cancelled"


@pytest.mark.asyncio
async def test_status_update_roles(test_client, user_headers, other_user_headers, manager_headers, venue, team):
    booking = await create_booking(test_client, user_headers, venue, team, at(10), at(11))
    url = f"/api/bookings/{booking['id']}/status"

    response = await test_client.put(url, json={"status": "approved"}, headers=user_headers)
    assert response.status_code == 403

    response = await test_client.put(url, json={"status": "cancelled"}, headers=other_user_headers)
    assert response.status_code == 403

    response = await test_client.put(
        url, json={"status": "approved", "reason": "Confirmed with coach"}, headers=manager_headers
    )
    assert response.status_code == 200
    assert response.json()["approverId"] == "manager-1"
    assert response.json()["approvalNotes"] == "Confirmed with coach"

    response = await test_client.put(url, json={"status": "cancelled", "reason": "Rained off"}, headers=user_headers)
    assert response.status_code == 200
    assert response.json()["cancellationReason"] == "Rained off"

    response = await test_client.put(url, json={"status": "approved"}, headers=manager_headers)
    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_STATUS_TRANSITION"


@pytest.mark.asyncio
async def test_reschedule_endpoint(test_client, user_headers, other_user_headers, venue, team):
    booking = await create_booking(test_client, user_headers, venue, team, at(10), at(11))
    await create_booking(test_client, user_headers, venue, team, at(14), at(15))
    url = f"/api/bookings/{booking['id']}/schedule"

    response = await test_client.put(
        url, json={"startDateTime": iso(at(12)), "endDateTime": iso(at(13))}, headers=other_user_headers
    )
    assert response.status_code == 403

    response = await test_client.put(
        url, json={"startDateTime": iso(at(12)), "endDateTime": iso(at(13))}, headers=user_headers
    )
    assert response.status_code == 200
    assert response.json()["startDateTime"] == iso(at(12))

    response = await test_client.put(
        url, json={"startDateTime": iso(at(14, 30)), "endDateTime": iso(at(15, 30))}, headers=user_headers
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_customers_only_see_their_own_bookings(test_client, user_headers, customer_headers, venue, team):
    theirs = await create_booking(test_client, user_headers, venue, team, at(10), at(11))
    mine = await create_booking(test_client, customer_headers, venue, team, at(12), at(13))

    response = await test_client.get("/api/bookings", headers=customer_headers)
    assert [b["id"] for b in response.json()] == [mine["id"]]
    assert response.json()[0]["requesterId"] == CUSTOMER_ID

    response = await test_client.get(f"/api/bookings/{theirs['id']}", headers=customer_headers)
    assert response.status_code == 403

    response = await test_client.get("/api/bookings", headers=user_headers)
    assert len(response.json()) == 2


@pytest.mark.asyncio
async def test_list_bookings_filters(test_client, user_headers, venue, other_venue, team):
    await create_booking(test_client, user_headers, venue, team, at(10), at(11))
    await create_booking(test_client, user_headers, other_venue, team, at(10), at(11))

    response = await test_client.get("/api/bookings", params={"venueId": str(venue.id)}, headers=user_headers)
    assert [b["venueId"] for b in response.json()] == [str(venue.id)]

    response = await test_client.get("/api/bookings", params={"status": "approved"}, headers=user_headers)
    assert response.json() == []


@pytest.mark.asyncio
async def test_request_id_is_echoed(test_client, user_headers):
    response = await test_client.get("/api/venues", headers={**user_headers, "X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_metrics_endpoint(test_client, user_headers, venue, team):
    """Test the Prometheus metrics endpoint exposes booking counters."""
    await create_booking(test_client, user_headers, venue, team, at(10), at(11))

    response = await test_client.get("/metrics")

    assert response.status_code == 200
    assert "bookings_created_total" in response.text
    assert "booking_conflicts_detected_total" in response.text


@pytest.mark.asyncio
async def test_staff_role_outranks_customer_role(test_client):
    headers = auth_headers("someone", ["manager", "customer"])

    response = await test_client.get("/api/bookings", headers=headers)

    assert response.status_code == 200
