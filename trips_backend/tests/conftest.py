"""
Centralized Test Configuration.
"""

import pytest
import httpx
from httpx import AsyncClient, ASGITransport
from jose import jwt

from trips_backend.app.main import app
from trips_backend.app.core.config import Settings, get_settings
from trips_backend.app.core.dependencies import get_http_client
from trips_backend.app.services.cache import privilege_token_key

WALLET = "0x1234567890abcdef1234567890abcdef12345678"
TEST_SIGNING_KEY = "test-signing-key"

IDENTITY_URL = "https://identity.test/query"
TRIPS_URL = "https://trips.test/v1"
TELEMETRY_URL = "https://telemetry.test/query"
DEVICE_DATA_URL = "https://device-data.test/v1"
AUTH_URL = "https://auth.test/auth/web3/generate_challenge"
SUBMIT_URL = "https://auth.test/auth/web3/submit_challenge"
EXCHANGE_URL = "https://exchange.test/v1/tokens/exchange"
JWKS_URL = "https://auth.test/keys"


def make_id_token(address: str = WALLET, **claims) -> str:
    """Identity token as the auth service would issue it (HS256 in tests)."""
    payload = {"ethereum_address": address, "aud": "test-client", **claims}
    return jwt.encode(payload, TEST_SIGNING_KEY, algorithm="HS256", headers={"kid": "test-key"})


def vehicle_node(token_id: int, make: str = "Tesla", model: str = "Model 3", year: int = 2021) -> dict:
    return {
        "tokenId": token_id,
        "earnings": {"totalTokens": "12.5"},
        "definition": {"make": make, "model": model, "year": year},
        "aftermarketDevice": {
            "address": "0xdevice",
            "serial": f"SER{token_id}",
            "manufacturer": {"name": "AutoPi"},
        },
    }


def vehicles_payload(*nodes: dict) -> dict:
    return {"data": {"vehicles": {"nodes": list(nodes)}}}


def trip(trip_id: str, start: str, end: str) -> dict:
    return {"id": trip_id, "start": {"time": start}, "end": {"time": end}}


def signals_payload(longitudes, latitudes, speeds) -> dict:
    def series(values):
        return [
            {"timestamp": f"2024-05-01T{10 + i:02d}:00:00Z", "value": value}
            for i, value in enumerate(values)
        ]

    return {
        "data": {
            "signals": {
                "currentLocationLongitude": series(longitudes),
                "currentLocationLatitude": series(latitudes),
                "speed": series(speeds),
            }
        }
    }


class FakeUpstream:
    """
    Routes upstream requests to canned responses.

    Keyed by method and URL without query string. Every request is recorded.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method: str, url: str, status_code: int = 200, json=None, content: bytes = None, error: bool = False):
        self.routes[(method, url)] = (status_code, json, content, error)

    def calls(self, method: str, url: str):
        return [r for r in self.requests if r.method == method and self._key_url(r) == url]

    @staticmethod
    def _key_url(request: httpx.Request) -> str:
        return f"{request.url.scheme}://{request.url.host}{request.url.path}"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, self._key_url(request)))
        if route is None:
            return httpx.Response(404, json={"error": "no route"})

        status_code, body, content, error = route
        if error:
            raise httpx.ConnectError("connection refused", request=request)
        if content is not None:
            return httpx.Response(status_code, content=content)
        return httpx.Response(status_code, json=body)


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        identity_api_url=IDENTITY_URL,
        trips_api_base_url=TRIPS_URL,
        telemetry_api_url=TELEMETRY_URL,
        device_data_api_base_url=DEVICE_DATA_URL,
        auth_url=AUTH_URL,
        submit_challenge_url=SUBMIT_URL,
        token_exchange_url=EXCHANGE_URL,
        identity_jwks_url=JWKS_URL,
        client_id="test-client",
        verify_id_token=False,
    )


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def http_client(upstream):
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream))


@pytest.fixture(autouse=True)
def apply_overrides(test_settings, http_client):
    """Point the app at the fake upstreams and reset process state per test."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_http_client] = lambda: http_client

    app.state.session_store.clear()
    app.state.privilege_store.clear()
    app.state.jwks_cache.clear()
    app.state.trip_index.clear()
    yield

    app.dependency_overrides = {}


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def session_id():
    """A logged-in session for WALLET."""
    sid = "session-under-test"
    app.state.session_store.put(sid, make_id_token())
    return sid


@pytest.fixture
def session_headers(session_id):
    return {"Cookie": f"session_id={session_id}"}


@pytest.fixture
def grant_privilege(session_id):
    """Cache a privilege token for the test session and a vehicle."""
    def grant(token_id: int, token: str = None) -> str:
        token = token or f"privilege-{token_id}"
        app.state.privilege_store.put(privilege_token_key(session_id, token_id), token)
        return token
    return grant
