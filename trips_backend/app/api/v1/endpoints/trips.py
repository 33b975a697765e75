"""
Trip map endpoint.

Resolves a trip to its vehicle and window, fetches the telemetry trace and
returns it as GeoJSON with a speed gradient.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from trips_backend.app.core.config import Settings, get_settings
from trips_backend.app.core.dependencies import (
    get_current_wallet,
    get_privilege_tokens,
    get_trip_index,
    get_upstream,
)
from trips_backend.app.schemas.auth import WalletSession
from trips_backend.app.schemas.trip import TripMapResponse
from trips_backend.app.services.geo import build_trip_map
from trips_backend.app.services.trip_index import TripIndex
from trips_backend.app.services.trip_resolution import resolve_trip
from trips_backend.app.services.upstream import UpstreamClient
from trips_backend.app.services.web3_auth import PrivilegeTokens

logger = logging.getLogger("trips.map")

router = APIRouter(prefix="/api", tags=["Trips"])


@router.get("/trip/{trip_id}", response_model=TripMapResponse)
async def get_trip_map(
    trip_id: str = Path(..., description="Trip ID"),
    start: Optional[str] = Query(default=None, description="Override of the trip start time"),
    end: Optional[str] = Query(default=None, description="Override of the trip end time"),
    session: WalletSession = Depends(get_current_wallet),
    trip_index: TripIndex = Depends(get_trip_index),
    upstream: UpstreamClient = Depends(get_upstream),
    privileges: PrivilegeTokens = Depends(get_privilege_tokens),
    settings: Settings = Depends(get_settings),
):
    """
    Get the GPS/speed trace of a trip.

    Returns ``geojson`` (one point feature per telemetry sample) and
    ``speedGradient`` (one color per sample, same order).
    """
    window = await resolve_trip(
        trip_id,
        session,
        trip_index,
        upstream,
        privileges,
        fallback=settings.trip_lookup_fallback,
    )
    trip_start = start or window.start
    trip_end = end or window.end

    logger.info(
        "Fetching map data for TripID: %s, StartTime: %s, EndTime: %s, TokenID: %d",
        trip_id, trip_start, trip_end, window.token_id,
    )

    privilege_token = await privileges.require(session, window.token_id)
    samples = await upstream.get_signals(window.token_id, trip_start, trip_end, privilege_token)

    return build_trip_map(samples, trip_id, trip_start, trip_end)
