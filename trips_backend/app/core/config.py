"""
Configuration settings for the Trips Web Backend.

This module handles application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings
from typing import List, Literal


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Trips Web Backend"
    api_version: str = "v1"
    debug: bool = False
    log_level: str = "INFO"
    port: int = 8080
    cors_origins: List[str] = ["http://localhost:3000"]

    # Upstream services
    identity_api_url: str = "https://identity-api.dimo.zone/query"
    trips_api_base_url: str = "https://trips-api.dimo.zone/v1"
    telemetry_api_url: str = "https://telemetry-api.dimo.zone/query"
    device_data_api_base_url: str = "https://device-data-api.dimo.zone/v1"
    auth_url: str = "https://auth.dimo.zone/auth/web3/generate_challenge"
    submit_challenge_url: str = "https://auth.dimo.zone/auth/web3/submit_challenge"
    token_exchange_url: str = "https://token-exchange-api.dimo.zone/v1/tokens/exchange"
    upstream_timeout_seconds: float = 30.0

    # Web3 login (OAuth-style parameters sent to the auth service)
    client_id: str = "client_id"
    domain: str = "http://localhost:3000"
    scope: str = "openid email"
    response_type: str = "code"
    grant_type: str = "authorization_code"

    # Identity token verification
    verify_id_token: bool = True
    identity_jwks_url: str = "https://auth.dimo.zone/keys"
    id_token_algorithms: List[str] = ["RS256"]
    jwks_cache_seconds: int = 3600

    # Token exchange
    nft_contract_address: str = "0xbA5738a18d83D41847dfFbDC6101d37C69c9B0cF"
    privileges: List[int] = [4]
    exchange_on_demand: bool = False

    # Session / cache
    session_cookie_name: str = "session_id"
    session_cookie_domain: str = "localhost"
    session_ttl_seconds: int = 2 * 60 * 60
    privilege_ttl_seconds: int = 10 * 60

    # Trip resolution when a trip id has not been seen in a listing yet
    trip_lookup_fallback: Literal["scan", "fail"] = "scan"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency returning the process settings."""
    return settings
