"""API health tests against the fully configured application."""

import pytest
from httpx import ASGITransport, AsyncClient

from venue_booking.main import create_app


@pytest.mark.asyncio
async def test_api_health_endpoints():
    """Test the inline health, readiness and info endpoints."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "venue-booking-api"

        response = await client.get("/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"]["database"] == "ok"
        assert data["checks"]["workers"] == {"booking_completion": False}

        response = await client.get("/info")
        assert response.status_code == 200
        data = response.json()
        assert data["booking_policy"]["suggestion_max_results"] == 3
        assert data["booking_policy"]["suggestion_increment_minutes"] == 30
        assert data["features"]["admin_override"] is True


@pytest.mark.asyncio
async def test_metrics_endpoint():
    """Test the metrics endpoint."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")


@pytest.mark.asyncio
async def test_openapi_docs():
    """Test that OpenAPI docs are available in development."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/docs")
        assert response.status_code == 200
