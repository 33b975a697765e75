"""
Request logging and health endpoint tests.
"""

import logging

import httpx
import pytest
from fastapi import FastAPI

from trips_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from trips_backend.app.main import app


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "corr-1"})

    assert response.status_code == 200
    assert response.headers["X-Correlation-ID"] == "corr-1"
    assert "X-Process-Time" in response.headers


@pytest.mark.asyncio
async def test_request_outcome_is_logged(client, caplog):
    with caplog.at_level(logging.INFO, logger="trips.http"):
        await client.get("/api/vehicles/me")

    record = next(r for r in caplog.records if r.name == "trips.http")
    assert record.levelno == logging.WARNING
    assert record.status_code == 401
    assert record.has_session is False


@pytest.mark.asyncio
async def test_health_counts_live_sessions(client):
    app.state.session_store.put("live", "token", ttl=60)
    app.state.session_store.put("dead", "token", ttl=-1)

    response = await client.get("/health")

    assert response.json()["status"] == "healthy"
    assert response.json()["sessions"] == 1


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        configure_logging("chatty")


@pytest.mark.asyncio
async def test_session_flag_follows_configured_cookie_name(caplog):
    ping_app = FastAPI()
    ping_app.add_middleware(ObservabilityMiddleware, session_cookie_name="trip_session")

    @ping_app.get("/ping")
    async def ping():
        return {"ok": True}

    transport = httpx.ASGITransport(app=ping_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        with caplog.at_level(logging.INFO, logger="trips.http"):
            await ac.get("/ping", headers={"Cookie": "trip_session=abc"})
            await ac.get("/ping", headers={"Cookie": "session_id=abc"})

    first, second = [r for r in caplog.records if r.name == "trips.http"]
    assert first.has_session is True
    assert second.has_session is False
