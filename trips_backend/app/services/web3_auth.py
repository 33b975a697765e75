"""
Web3 login and token exchange.

Three-step handshake against the external auth and token-exchange services:

1. generate a challenge for a wallet address
2. submit the signed challenge, receiving an identity token
3. exchange the identity token for a vehicle-scoped privilege token

Nothing here retries; each step can simply be invoked again.
"""

import logging
import uuid
from typing import Optional

import httpx

from trips_backend.app.core.config import Settings
from trips_backend.app.core.exceptions import PrivilegeTokenMissingError, UpstreamProtocolError
from trips_backend.app.schemas.auth import ChallengeResponse, WalletSession
from trips_backend.app.services.cache import ExpiringStore, privilege_token_key
from trips_backend.app.services.upstream import UpstreamService, bearer

logger = logging.getLogger("trips.auth")


class Web3AuthClient(UpstreamService):
    """Client for the auth service and the token exchange service."""

    async def generate_challenge(self, address: str) -> ChallengeResponse:
        form = {
            "client_id": self.settings.client_id,
            "domain": self.settings.domain,
            "scope": self.settings.scope,
            "response_type": self.settings.response_type,
            "address": address,
        }
        response = await self._send(
            "auth",
            "POST",
            self.settings.auth_url,
            transport_message="Failed to make request to external service",
            data=form,
        )
        payload = self._decode(
            "auth", response, decode_message="Error processing response from external service"
        )

        state = payload.get("state") if isinstance(payload, dict) else None
        challenge = payload.get("challenge") if isinstance(payload, dict) else None
        if not isinstance(state, str) or not isinstance(challenge, str) or not state or not challenge:
            raise UpstreamProtocolError("auth", "State or Challenge incomplete from external service")

        return ChallengeResponse(state=state, challenge=challenge)

    async def submit_challenge(self, state: str, signature: str) -> str:
        """
        Submit a signed challenge.

        Returns:
            The identity token issued by the auth service
        """
        form = {
            "client_id": self.settings.client_id,
            "domain": self.settings.domain,
            "grant_type": self.settings.grant_type,
            "state": state,
            "signature": signature,
        }
        response = await self._send(
            "auth",
            "POST",
            self.settings.submit_challenge_url,
            transport_message="Failed to make request to external service",
            data=form,
        )
        payload = self._decode("auth", response, decode_message="Error processing response")

        id_token = payload.get("id_token") if isinstance(payload, dict) else None
        if not isinstance(id_token, str) or not id_token:
            raise UpstreamProtocolError("auth", "Token not found in response")

        return id_token

    async def exchange_token(self, id_token: str, token_id: int) -> str:
        """
        Exchange an identity token for a privilege token on one vehicle.

        Args:
            id_token: Identity token of the caller
            token_id: Vehicle NFT token id the privileges apply to

        Returns:
            The privilege token
        """
        body = {
            "nftContractAddress": self.settings.nft_contract_address,
            "privileges": self.settings.privileges,
            "tokenId": token_id,
        }
        logger.info("Requesting privileges %s for vehicle %d", self.settings.privileges, token_id)

        response = await self._send(
            "token-exchange",
            "POST",
            self.settings.token_exchange_url,
            transport_message="Error sending request to token exchange API",
            json=body,
            headers=bearer(id_token),
        )
        payload = self._decode("token-exchange", response, decode_message="Error processing response")

        token = payload.get("token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            raise UpstreamProtocolError("token-exchange", "Token not found in response from token exchange API")

        return token


def start_session(session_store: ExpiringStore[str], id_token: str, ttl: float) -> str:
    """Cache an identity token under a freshly minted session id."""
    session_id = str(uuid.uuid4())
    session_store.put(session_id, id_token, ttl)
    return session_id


class PrivilegeTokens:
    """
    Privilege tokens cached per (session, vehicle).

    With ``exchange_on_demand`` enabled a cache miss triggers an exchange
    instead of failing.
    """

    def __init__(self, store: ExpiringStore[str], auth_client: Web3AuthClient, settings: Settings):
        self.store = store
        self.auth_client = auth_client
        self.settings = settings

    def cached(self, session_id: str, token_id: int) -> Optional[str]:
        return self.store.get(privilege_token_key(session_id, token_id))

    async def exchange(self, session: WalletSession, token_id: int) -> str:
        token = await self.auth_client.exchange_token(session.id_token, token_id)
        self.store.put(
            privilege_token_key(session.session_id, token_id),
            token,
            self.settings.privilege_ttl_seconds,
        )
        logger.info("Token exchange successful for vehicle %d", token_id)
        return token

    async def require(self, session: WalletSession, token_id: int) -> str:
        token = self.cached(session.session_id, token_id)
        if token is not None:
            return token

        if self.settings.exchange_on_demand:
            return await self.exchange(session, token_id)

        raise PrivilegeTokenMissingError(token_id)
