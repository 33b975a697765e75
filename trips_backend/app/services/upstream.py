"""
Upstream Query Clients.

Read adapters for the Identity (GraphQL), Trips (REST), Telemetry (GraphQL)
and Device Data (REST) services. Every call is awaited once; failures are
raised to the caller and never retried.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from trips_backend.app.core.config import Settings
from trips_backend.app.core.exceptions import UpstreamProtocolError, UpstreamTransportError
from trips_backend.app.schemas.trip import LocationSample, Trip, TripsApiResponse
from trips_backend.app.schemas.vehicle import Vehicle
from trips_backend.app.services.trip_index import TripIndex

logger = logging.getLogger("trips.upstream")

VEHICLES_PAGE_SIZE = 10
LATEST_TRIPS_LIMIT = 20

VEHICLES_QUERY = """
query VehiclesByOwner($owner: Address!, $first: Int!) {
    vehicles(first: $first, filterBy: { owner: $owner }) {
        nodes {
            tokenId
            earnings {
                totalTokens
            }
            definition {
                make
                model
                year
            }
            aftermarketDevice {
                address
                serial
                manufacturer {
                    name
                }
            }
        }
    }
}
"""

SIGNALS_QUERY = """
query TripSignals($tokenId: Int!, $from: Time!, $to: Time!) {
    signals(tokenID: $tokenId, from: $from, to: $to) {
        currentLocationLongitude(agg: {type: AVG, interval: "1h"}) {
            timestamp
            value
        }
        currentLocationLatitude(agg: {type: AVG, interval: "1h"}) {
            timestamp
            value
        }
        speed(agg: {type: MAX, interval: "1h"}) {
            timestamp
            value
        }
    }
}
"""


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class UpstreamService:
    """Shared request/decode plumbing for upstream adapters."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        self.http = http
        self.settings = settings

    async def _send(
        self,
        service: str,
        method: str,
        url: str,
        transport_message: Optional[str] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            return await self.http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("%s request to %s failed: %s", service, url, exc)
            raise UpstreamTransportError(
                service,
                transport_message or f"Failed to reach {service} service",
            ) from exc

    def _decode(
        self,
        service: str,
        response: httpx.Response,
        decode_message: Optional[str] = None,
    ) -> Any:
        """Reject non-2xx statuses and return the decoded JSON body."""
        if response.status_code >= 300:
            logger.error("%s responded with status %d", service, response.status_code)
            raise UpstreamProtocolError(
                service,
                f"Received non-success status code: {response.status_code}",
                upstream_status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            logger.error("%s returned a non-JSON body", service)
            raise UpstreamProtocolError(
                service,
                decode_message or f"Error processing response from {service} service",
                upstream_status=response.status_code,
            ) from exc

    async def _graphql(
        self,
        service: str,
        url: str,
        query: str,
        variables: Dict[str, Any],
        token: str,
    ) -> Dict[str, Any]:
        response = await self._send(
            service,
            "POST",
            url,
            json={"query": query, "variables": variables},
            headers=bearer(token),
        )
        payload = self._decode(service, response)

        if not isinstance(payload, dict):
            raise UpstreamProtocolError(service, f"Unexpected response from {service} service")
        if payload.get("errors"):
            messages = [err.get("message", "") for err in payload["errors"] if isinstance(err, dict)]
            raise UpstreamProtocolError(service, f"{service} query failed: {'; '.join(messages)}")

        data = payload.get("data")
        if not isinstance(data, dict):
            raise UpstreamProtocolError(service, f"Unexpected response from {service} service")
        return data


class UpstreamClient(UpstreamService):
    """Identity, Trips, Telemetry and Device Data lookups."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings, trip_index: TripIndex):
        super().__init__(http, settings)
        self.trip_index = trip_index

    async def get_vehicles(self, address: str, id_token: str) -> List[Vehicle]:
        """
        List vehicles owned by a wallet address.

        Only the first page (10 vehicles) is requested.

        Args:
            address: Owner wallet address
            id_token: Identity token of the caller

        Returns:
            Vehicles in Identity API order
        """
        data = await self._graphql(
            "identity",
            self.settings.identity_api_url,
            VEHICLES_QUERY,
            {"owner": address, "first": VEHICLES_PAGE_SIZE},
            id_token,
        )

        try:
            nodes = data["vehicles"]["nodes"] or []
            vehicles = [Vehicle.model_validate(node) for node in nodes]
        except (KeyError, TypeError, ValidationError) as exc:
            raise UpstreamProtocolError("identity", "Unexpected vehicles response from identity service") from exc

        logger.info("Found %d vehicle(s) for %s", len(vehicles), address)
        return vehicles

    async def get_trips(self, token_id: int, privilege_token: str) -> List[Trip]:
        """
        List the most recent trips of a vehicle.

        Trips are sorted by end time (newest first) and truncated to 20.
        Each returned trip is recorded in the reverse trip index.
        """
        url = f"{self.settings.trips_api_base_url}/vehicle/{token_id}/trips"
        response = await self._send("trips", "GET", url, headers=bearer(privilege_token))
        payload = self._decode("trips", response)

        try:
            trips = TripsApiResponse.model_validate(payload).trips
        except ValidationError as exc:
            logger.error("Error parsing trips response for vehicle %d: %s", token_id, exc)
            raise UpstreamProtocolError("trips", "Unexpected trips response from trips service") from exc

        latest = sorted(trips, key=lambda trip: trip.end.time, reverse=True)[:LATEST_TRIPS_LIMIT]

        for trip in latest:
            self.trip_index.record(trip, token_id)
            logger.debug("Trip ID: %s", trip.id)

        return latest

    async def get_signals(
        self,
        token_id: int,
        start: str,
        end: str,
        privilege_token: str,
    ) -> List[LocationSample]:
        """
        Fetch hourly aggregated location and speed for a time window.

        Longitude, latitude and speed series are zipped by position. When the
        series differ in length the result is cut to the shortest one.
        """
        logger.info("Fetching signals for vehicle %d from %s to %s", token_id, start, end)
        data = await self._graphql(
            "telemetry",
            self.settings.telemetry_api_url,
            SIGNALS_QUERY,
            {"tokenId": token_id, "from": start, "to": end},
            privilege_token,
        )

        try:
            signals = data["signals"] or {}
            longitudes = signals.get("currentLocationLongitude") or []
            latitudes = signals.get("currentLocationLatitude") or []
            speeds = signals.get("speed") or []

            lengths = {len(longitudes), len(latitudes), len(speeds)}
            if len(lengths) > 1:
                logger.warning(
                    "Ragged signal series for vehicle %d (lon=%d lat=%d speed=%d); truncating",
                    token_id, len(longitudes), len(latitudes), len(speeds),
                )

            samples = [
                LocationSample(
                    longitude=lon["value"],
                    latitude=lat["value"],
                    speed=speed["value"],
                    timestamp=speed["timestamp"],
                )
                for lon, lat, speed in zip(longitudes, latitudes, speeds)
            ]
        except (KeyError, TypeError, AttributeError, ValidationError) as exc:
            raise UpstreamProtocolError("telemetry", "Unexpected signals response from telemetry service") from exc

        if not samples:
            logger.warning("No location data received for vehicle %d", token_id)
        return samples

    async def get_raw_status(self, token_id: int, privilege_token: str) -> Dict[str, Any]:
        url = f"{self.settings.device_data_api_base_url}/vehicle/{token_id}/status-raw"
        response = await self._send("device-data", "GET", url, headers=bearer(privilege_token))
        payload = self._decode("device-data", response)

        if not isinstance(payload, dict):
            raise UpstreamProtocolError("device-data", "Unexpected status response from device data service")
        return payload
