"""
Trip schemas.

Schemas for the Trips API response, trip listing and the per-trip map.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List


class TimeEntry(BaseModel):
    # Kept as the upstream string; never parsed locally
    time: str


class Trip(BaseModel):
    """Schema for a trip returned by the Trips API."""
    id: str
    start: TimeEntry
    end: TimeEntry


class TripsApiResponse(BaseModel):
    trips: List[Trip] = []


class TripListResponse(BaseModel):
    """Schema for GET /api/vehicle/{tokenid}/trips."""
    token_id: int
    trips: List[Trip]


class LocationSample(BaseModel):
    """One located, timed speed sample of a trip trace."""
    latitude: float
    longitude: float
    speed: float
    timestamp: str


class PointGeometry(BaseModel):
    type: str = "Point"
    coordinates: List[float]


class PointFeature(BaseModel):
    type: str = "Feature"
    geometry: PointGeometry
    properties: Dict[str, Any] = {}


class FeatureCollection(BaseModel):
    type: str = "FeatureCollection"
    features: List[PointFeature] = []


class TripMapResponse(BaseModel):
    """Schema for GET /api/trip/{trip_id}."""
    geojson: FeatureCollection
    speed_gradient: List[str] = Field(..., alias="speedGradient")

    class Config:
        populate_by_name = True


class TripWindow(BaseModel):
    """Owning vehicle and time window of a resolved trip."""
    trip_id: str
    token_id: int
    start: str
    end: str
