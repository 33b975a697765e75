"""
Geospatial aggregation of trip telemetry.

Turns located speed samples into a GeoJSON point collection and a parallel
list of speed colors for map rendering.
"""

from typing import List, Sequence, Tuple

from trips_backend.app.schemas.trip import (
    FeatureCollection,
    LocationSample,
    PointFeature,
    PointGeometry,
    TripMapResponse,
)

# (upper bound inclusive, color), checked in order
SPEED_GRADIENT: List[Tuple[float, str]] = [
    (10, "blue"),
    (30, "green"),
    (50, "yellow"),
    (70, "orange"),
    (90, "red"),
]
FALLBACK_COLOR = "black"
PRIVACY_ZONE = 1


def speed_color(speed: float) -> str:
    """Return the color of the first gradient band whose threshold is >= speed."""
    for threshold, color in SPEED_GRADIENT:
        if speed <= threshold:
            return color
    return FALLBACK_COLOR


def speed_gradient(samples: Sequence[LocationSample]) -> List[str]:
    return [speed_color(sample.speed) for sample in samples]


def to_feature_collection(
    samples: Sequence[LocationSample],
    trip_id: str,
    trip_start: str,
    trip_end: str,
) -> FeatureCollection:
    """
    Build one point feature per sample, preserving input order.

    Args:
        samples: Location samples of the trip, in time order
        trip_id: Trip the samples belong to
        trip_start: Trip start as returned by the Trips API
        trip_end: Trip end as returned by the Trips API

    Returns:
        FeatureCollection with exactly ``len(samples)`` features
    """
    collection = FeatureCollection()

    for sample in samples:
        color = speed_color(sample.speed)
        point = PointFeature(
            geometry=PointGeometry(coordinates=[sample.longitude, sample.latitude]),
            properties={
                "speed": sample.speed,
                "timestamp": sample.timestamp,
                "trip_id": trip_id,
                "trip_start": trip_start,
                "trip_end": trip_end,
                "privacy_zone": PRIVACY_ZONE,
                "color": color,
                "point-color": color,
            },
        )
        collection.features.append(point)

    return collection


def build_trip_map(
    samples: Sequence[LocationSample],
    trip_id: str,
    trip_start: str,
    trip_end: str,
) -> TripMapResponse:
    """Feature collection plus the standalone color array for one trip."""
    return TripMapResponse(
        geojson=to_feature_collection(samples, trip_id, trip_start, trip_end),
        speed_gradient=speed_gradient(samples),
    )
