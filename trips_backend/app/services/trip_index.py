"""
Reverse trip index.

Maps trip ids to the vehicle that owns them. Populated whenever a vehicle's
trips are listed so later per-trip lookups don't have to re-scan every
vehicle. A miss only means the trip hasn't been listed in this process yet.
"""

import threading
from typing import Dict, Optional

from trips_backend.app.schemas.trip import Trip, TripWindow


class TripIndex:
    """Process-lifetime trip id -> owning vehicle store."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, TripWindow] = {}

    def record(self, trip: Trip, token_id: int) -> None:
        entry = TripWindow(
            trip_id=trip.id,
            token_id=token_id,
            start=trip.start.time,
            end=trip.end.time,
        )
        with self._lock:
            self._entries[trip.id] = entry

    def lookup(self, trip_id: str) -> Optional[TripWindow]:
        with self._lock:
            return self._entries.get(trip_id)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
