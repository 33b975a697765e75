"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from trips_backend.app.api.v1.endpoints import auth, trips, vehicles

router = APIRouter()

# Public Web3 login endpoints
router.include_router(auth.router)

# Session-protected endpoints
router.include_router(vehicles.router)
router.include_router(trips.router)
