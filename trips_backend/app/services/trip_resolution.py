"""
Trip resolution.

Maps a trip id to its owning vehicle and time window, using the reverse trip
index first and, when configured, a scan of the wallet's vehicles.
"""

import logging
from typing import Optional

from trips_backend.app.core.exceptions import AppException, NoVehiclesFoundError, TripNotFoundError
from trips_backend.app.schemas.auth import WalletSession
from trips_backend.app.schemas.trip import TripWindow
from trips_backend.app.services.trip_index import TripIndex
from trips_backend.app.services.upstream import UpstreamClient
from trips_backend.app.services.web3_auth import PrivilegeTokens

logger = logging.getLogger("trips.resolution")


async def scan_vehicles_for_trip(
    trip_id: str,
    session: WalletSession,
    upstream: UpstreamClient,
    privileges: PrivilegeTokens,
) -> Optional[TripWindow]:
    """
    List every vehicle of the wallet and look for the trip in each trip list.

    Vehicles whose trips cannot be listed are skipped.

    Raises:
        NoVehiclesFoundError: If the wallet owns no vehicles
    """
    vehicles = await upstream.get_vehicles(session.ethereum_address, session.id_token)
    if not vehicles:
        raise NoVehiclesFoundError()

    for vehicle in vehicles:
        try:
            privilege_token = await privileges.require(session, vehicle.token_id)
            trips = await upstream.get_trips(vehicle.token_id, privilege_token)
        except AppException as exc:
            logger.warning("Skipping vehicle %d while resolving trip %s: %s", vehicle.token_id, trip_id, exc.message)
            continue

        for trip in trips:
            if trip.id == trip_id:
                return TripWindow(
                    trip_id=trip.id,
                    token_id=vehicle.token_id,
                    start=trip.start.time,
                    end=trip.end.time,
                )

    return None


async def resolve_trip(
    trip_id: str,
    session: WalletSession,
    trip_index: TripIndex,
    upstream: UpstreamClient,
    privileges: PrivilegeTokens,
    fallback: str = "scan",
) -> TripWindow:
    """
    Resolve a trip id to its owning vehicle and time window.

    Args:
        trip_id: Opaque trip id from the Trips API
        session: Authenticated caller
        trip_index: Reverse trip index
        upstream: Upstream query client
        privileges: Privilege token provider
        fallback: "scan" to search all vehicles on an index miss, "fail" to
            report the trip as not found

    Returns:
        TripWindow with start/end exactly as returned upstream

    Raises:
        TripNotFoundError: If no vehicle owns the trip
        NoVehiclesFoundError: If scanning and the wallet owns no vehicles
    """
    window = trip_index.lookup(trip_id)
    if window is not None:
        return window

    if fallback != "scan":
        logger.error("Trip not found for tripID: %s", trip_id)
        raise TripNotFoundError(trip_id)

    window = await scan_vehicles_for_trip(trip_id, session, upstream, privileges)
    if window is None:
        logger.error("Trip not found for tripID: %s", trip_id)
        raise TripNotFoundError(trip_id)

    return window
