"""
Session dependencies for FastAPI.

This module provides dependencies for protecting routes with the cookie-borne
session and for wiring the shared stores and upstream clients into handlers.
"""

from typing import Any, Dict

import httpx
from fastapi import Depends, Request

from trips_backend.app.core.config import Settings, get_settings
from trips_backend.app.core.exceptions import AuthenticationError
from trips_backend.app.core.jwt import IdentityTokenVerifier
from trips_backend.app.schemas.auth import WalletSession
from trips_backend.app.services.cache import ExpiringStore
from trips_backend.app.services.trip_index import TripIndex
from trips_backend.app.services.upstream import UpstreamClient
from trips_backend.app.services.web3_auth import PrivilegeTokens, Web3AuthClient


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared upstream HTTP client, opened in the application lifespan."""
    return request.app.state.http_client


def get_session_store(request: Request) -> ExpiringStore[str]:
    return request.app.state.session_store


def get_privilege_store(request: Request) -> ExpiringStore[str]:
    return request.app.state.privilege_store


def get_jwks_cache(request: Request) -> ExpiringStore[Dict[str, Any]]:
    return request.app.state.jwks_cache


def get_trip_index(request: Request) -> TripIndex:
    return request.app.state.trip_index


def get_auth_client(
    http: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> Web3AuthClient:
    return Web3AuthClient(http, settings)


def get_upstream(
    http: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
    trip_index: TripIndex = Depends(get_trip_index),
) -> UpstreamClient:
    return UpstreamClient(http, settings, trip_index)


def get_privilege_tokens(
    store: ExpiringStore[str] = Depends(get_privilege_store),
    auth_client: Web3AuthClient = Depends(get_auth_client),
    settings: Settings = Depends(get_settings),
) -> PrivilegeTokens:
    return PrivilegeTokens(store, auth_client, settings)


async def get_current_wallet(
    request: Request,
    settings: Settings = Depends(get_settings),
    session_store: ExpiringStore[str] = Depends(get_session_store),
    http: httpx.AsyncClient = Depends(get_http_client),
    jwks_cache: ExpiringStore[Dict[str, Any]] = Depends(get_jwks_cache),
) -> WalletSession:
    """
    FastAPI dependency resolving the session cookie to a wallet.

    1. Reads the session id from the session cookie
    2. Looks up the cached identity token
    3. Extracts the wallet address from the token claims

    Raises:
        AuthenticationError: 401 if the session is missing, expired or its
            identity token is invalid
    """
    session_id = request.cookies.get(settings.session_cookie_name)
    if not session_id:
        raise AuthenticationError("Unauthorized")

    id_token = session_store.get(session_id)
    if id_token is None:
        raise AuthenticationError("Unauthorized")

    verifier = IdentityTokenVerifier(http, settings, jwks_cache)
    address = await verifier.ethereum_address(id_token)

    return WalletSession(session_id=session_id, id_token=id_token, ethereum_address=address)
