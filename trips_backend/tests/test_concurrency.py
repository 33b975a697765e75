"""
Concurrency Tests.

Validates that shared session, privilege and trip state stays consistent
under many simultaneous requests.
"""

import asyncio

import pytest

from trips_backend.app.main import app
from trips_backend.app.services.cache import privilege_token_key
from conftest import SUBMIT_URL, TRIPS_URL, make_id_token, trip


@pytest.mark.asyncio
async def test_concurrent_logins_get_distinct_sessions(client, upstream):
    upstream.add("POST", SUBMIT_URL, json={"id_token": "abc123"})

    responses = await asyncio.gather(*[
        client.post("/auth/web3/submit_challenge", data={"state": "s", "signature": "x"})
        for _ in range(25)
    ])

    assert all(r.status_code == 200 for r in responses)
    assert len(app.state.session_store) == 25


@pytest.mark.asyncio
async def test_concurrent_trip_listings_across_sessions(client, upstream):
    """Each session lists its own vehicle; the index ends up with every trip."""
    for n in range(10):
        session = f"session-{n}"
        app.state.session_store.put(session, make_id_token())
        app.state.privilege_store.put(privilege_token_key(session, n), f"priv-{n}")
        upstream.add("GET", f"{TRIPS_URL}/vehicle/{n}/trips", json={"trips": [
            trip(f"trip-{n}-{i}", f"s{i}", f"e{i}") for i in range(5)
        ]})

    responses = await asyncio.gather(*[
        client.get(f"/api/vehicle/{n}/trips", headers={"Cookie": f"session_id=session-{n}"})
        for n in range(10)
    ])

    assert all(r.status_code == 200 for r in responses)
    index = app.state.trip_index
    assert len(index) == 50
    for n in range(10):
        assert index.lookup(f"trip-{n}-3").token_id == n


@pytest.mark.asyncio
async def test_privilege_tokens_isolated_per_session(client, upstream):
    app.state.session_store.put("alice", make_id_token())
    app.state.session_store.put("bob", make_id_token())
    app.state.privilege_store.put(privilege_token_key("alice", 1), "alice-priv")
    upstream.add("GET", f"{TRIPS_URL}/vehicle/1/trips", json={"trips": []})

    alice, bob = await asyncio.gather(
        client.get("/api/vehicle/1/trips", headers={"Cookie": "session_id=alice"}),
        client.get("/api/vehicle/1/trips", headers={"Cookie": "session_id=bob"}),
    )

    assert alice.status_code == 200
    assert bob.status_code == 401
