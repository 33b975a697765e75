"""
Vehicle and token exchange endpoints.

All routes require a valid session cookie.
"""

import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, Form, Path

from trips_backend.app.core.dependencies import get_current_wallet, get_privilege_tokens, get_upstream
from trips_backend.app.core.exceptions import AppException, InvalidInputError, NoVehiclesFoundError, ResourceNotFoundError
from trips_backend.app.schemas.auth import PrivilegeTokenResponse, WalletSession
from trips_backend.app.schemas.trip import TripListResponse
from trips_backend.app.schemas.vehicle import VehicleListResponse
from trips_backend.app.services.device_status import flatten_device_status
from trips_backend.app.services.upstream import UpstreamClient
from trips_backend.app.services.web3_auth import PrivilegeTokens

logger = logging.getLogger("trips.vehicles")

router = APIRouter(prefix="/api", tags=["Vehicles"])

TOKEN_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


def parse_token_id(raw: str) -> int:
    if not TOKEN_ID_PATTERN.fullmatch(raw):
        raise InvalidInputError("Invalid token ID", details={"token_id": raw})
    return int(raw)


@router.post("/token_exchange", response_model=PrivilegeTokenResponse)
async def token_exchange(
    token_id: Optional[str] = Form(default=None),
    session: WalletSession = Depends(get_current_wallet),
    upstream: UpstreamClient = Depends(get_upstream),
    privileges: PrivilegeTokens = Depends(get_privilege_tokens),
):
    """
    Exchange the session's identity token for a privilege token.

    Uses the wallet's first vehicle unless ``token_id`` names another owned
    vehicle. The token is cached for the session and that vehicle.
    """
    vehicles = await upstream.get_vehicles(session.ethereum_address, session.id_token)
    if not vehicles:
        raise NoVehiclesFoundError()

    target = vehicles[0].token_id
    if token_id is not None:
        requested = parse_token_id(token_id)
        if requested not in {vehicle.token_id for vehicle in vehicles}:
            raise ResourceNotFoundError("Vehicle not found", details={"token_id": requested})
        target = requested

    token = await privileges.exchange(session, target)
    return PrivilegeTokenResponse(token=token)


@router.get("/vehicles/me", response_model=VehicleListResponse)
async def list_my_vehicles(
    session: WalletSession = Depends(get_current_wallet),
    upstream: UpstreamClient = Depends(get_upstream),
    privileges: PrivilegeTokens = Depends(get_privilege_tokens),
):
    """
    List the wallet's vehicles with their device status and recent trips.

    Vehicles without a usable privilege token are returned without status
    and trips. A failed trip listing leaves that vehicle without trips; a
    failed status lookup fails the request.
    """
    vehicles = await upstream.get_vehicles(session.ethereum_address, session.id_token)

    for vehicle in vehicles:
        try:
            privilege_token = await privileges.require(session, vehicle.token_id)
        except AppException as exc:
            logger.info("No privilege token for vehicle %d: %s", vehicle.token_id, exc.message)
            continue

        # a failed status lookup fails the whole listing
        raw_status = await upstream.get_raw_status(vehicle.token_id, privilege_token)
        vehicle.device_status_entries = flatten_device_status(raw_status)

        try:
            vehicle.trips = await upstream.get_trips(vehicle.token_id, privilege_token)
        except AppException as exc:
            logger.error("Failed to get trips for vehicle %d: %s", vehicle.token_id, exc.message)

    return VehicleListResponse(vehicles=vehicles)


@router.get("/vehicle/{tokenid}/trips", response_model=TripListResponse)
async def list_vehicle_trips(
    tokenid: str = Path(..., description="Vehicle NFT token id"),
    session: WalletSession = Depends(get_current_wallet),
    upstream: UpstreamClient = Depends(get_upstream),
    privileges: PrivilegeTokens = Depends(get_privilege_tokens),
):
    """List the 20 most recent trips of a vehicle, newest first."""
    token_id = parse_token_id(tokenid)
    privilege_token = await privileges.require(session, token_id)
    trips = await upstream.get_trips(token_id, privilege_token)
    return TripListResponse(token_id=token_id, trips=trips)
