"""
Identity token utilities for authentication.

This module reads the wallet address out of the identity token issued by the
auth service, verifying the signature against the issuer's published keys
unless verification is switched off.
"""

import logging
from typing import Any, Dict

import httpx
from jose import JWTError, jwt

from trips_backend.app.core.config import Settings
from trips_backend.app.core.exceptions import AuthenticationError, UpstreamProtocolError
from trips_backend.app.services.cache import ExpiringStore
from trips_backend.app.services.upstream import UpstreamService

logger = logging.getLogger("trips.auth")

ADDRESS_CLAIM = "ethereum_address"


class IdentityTokenVerifier(UpstreamService):
    """Decodes identity tokens, optionally verifying them against a JWKS."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings, jwks_cache: ExpiringStore[Dict[str, Any]]):
        super().__init__(http, settings)
        self.jwks_cache = jwks_cache

    async def _jwks(self) -> Dict[str, Any]:
        url = self.settings.identity_jwks_url
        jwks = self.jwks_cache.get(url)
        if jwks is not None:
            return jwks

        response = await self._send("jwks", "GET", url)
        jwks = self._decode("jwks", response)
        if not isinstance(jwks, dict) or "keys" not in jwks:
            raise UpstreamProtocolError("jwks", "Unexpected key set from identity issuer")

        self.jwks_cache.put(url, jwks, self.settings.jwks_cache_seconds)
        return jwks

    async def claims(self, id_token: str) -> Dict[str, Any]:
        """
        Decode an identity token.

        Args:
            id_token: JWT issued by the auth service

        Returns:
            Token claims

        Raises:
            AuthenticationError: If the token is malformed or fails verification
        """
        try:
            if not self.settings.verify_id_token:
                return jwt.get_unverified_claims(id_token)

            jwks = await self._jwks()
            return jwt.decode(
                id_token,
                jwks,
                algorithms=self.settings.id_token_algorithms,
                audience=self.settings.client_id,
            )
        except JWTError as exc:
            logger.warning("Rejected identity token: %s", exc)
            raise AuthenticationError(f"Invalid token: {exc}") from exc

    async def ethereum_address(self, id_token: str) -> str:
        claims = await self.claims(id_token)
        address = claims.get(ADDRESS_CLAIM)
        if not isinstance(address, str) or not address:
            raise AuthenticationError("Invalid token: ethereum address not found in JWT")
        return address
