"""
Authentication Pydantic schemas.

Defines response schemas for the Web3 challenge and token exchange endpoints.
"""

from pydantic import BaseModel, Field


class ChallengeResponse(BaseModel):
    """
    Challenge issued by the auth service.

    Returned by POST /auth/web3/generate_challenge.
    The wallet signs ``challenge``; ``state`` is echoed back on submission.
    """
    state: str = Field(..., description="Opaque login state")
    challenge: str = Field(..., description="Message the wallet must sign")


class SessionStartedResponse(BaseModel):
    """Returned by POST /auth/web3/submit_challenge."""
    message: str = "Challenge accepted and session started!"
    id_token: str = Field(..., description="Identity token issued by the auth service")


class PrivilegeTokenResponse(BaseModel):
    """Returned by POST /api/token_exchange."""
    token: str = Field(..., description="Vehicle-scoped privilege token")


class WalletSession(BaseModel):
    """Authenticated caller resolved from the session cookie."""
    session_id: str
    id_token: str
    ethereum_address: str
