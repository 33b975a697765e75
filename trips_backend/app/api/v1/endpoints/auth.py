"""
Web3 authentication endpoints.

Provides the challenge generation and challenge submission steps of the
wallet login flow.
"""

import logging

from fastapi import APIRouter, Depends, Form, Response

from trips_backend.app.core.config import Settings, get_settings
from trips_backend.app.core.dependencies import get_auth_client, get_session_store
from trips_backend.app.schemas.auth import ChallengeResponse, SessionStartedResponse
from trips_backend.app.services.cache import ExpiringStore
from trips_backend.app.services.web3_auth import Web3AuthClient, start_session

logger = logging.getLogger("trips.auth")

router = APIRouter(prefix="/auth/web3", tags=["Authentication"])


@router.post("/generate_challenge", response_model=ChallengeResponse)
async def generate_challenge(
    address: str = Form(...),
    auth_client: Web3AuthClient = Depends(get_auth_client),
):
    """
    Request a login challenge for a wallet address.

    Returns the ``state`` and ``challenge`` issued by the auth service.
    Nothing is cached until the signed challenge is submitted.
    """
    return await auth_client.generate_challenge(address)


@router.post("/submit_challenge", response_model=SessionStartedResponse)
async def submit_challenge(
    response: Response,
    state: str = Form(...),
    signature: str = Form(...),
    auth_client: Web3AuthClient = Depends(get_auth_client),
    session_store: ExpiringStore[str] = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    """
    Submit the wallet signature over the challenge.

    On success a new session is started: the identity token is cached under
    a fresh session id which is set as an HTTP-only cookie for two hours.
    """
    logger.info("Submitting challenge for state %s", state)
    id_token = await auth_client.submit_challenge(state, signature)

    session_id = start_session(session_store, id_token, settings.session_ttl_seconds)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        max_age=settings.session_ttl_seconds,
        expires=settings.session_ttl_seconds,
        httponly=True,
        domain=settings.session_cookie_domain,
    )

    return SessionStartedResponse(id_token=id_token)
