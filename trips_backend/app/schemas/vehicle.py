"""
Vehicle schemas.

Shapes mirror the Identity API GraphQL response (camelCase aliases).
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Union

from trips_backend.app.schemas.trip import Trip


class Earnings(BaseModel):
    total_tokens: Optional[Union[str, float]] = Field(default=None, alias="totalTokens")

    class Config:
        populate_by_name = True


class Definition(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None


class Manufacturer(BaseModel):
    name: Optional[str] = None


class AftermarketDevice(BaseModel):
    address: Optional[str] = None
    serial: Optional[str] = None
    manufacturer: Optional[Manufacturer] = None


class DeviceStatusEntry(BaseModel):
    """One flattened signal from the raw device status document."""
    signal_name: str = Field(..., alias="signalName")
    value: str
    timestamp: str
    source: str

    class Config:
        populate_by_name = True


class Vehicle(BaseModel):
    """
    Vehicle owned by a wallet.

    ``trips`` and ``device_status_entries`` are filled in lazily by the
    vehicles endpoint; the Identity API never returns them.
    """
    token_id: int = Field(..., alias="tokenId")
    earnings: Optional[Earnings] = None
    definition: Optional[Definition] = None
    aftermarket_device: Optional[AftermarketDevice] = Field(default=None, alias="aftermarketDevice")
    device_status_entries: List[DeviceStatusEntry] = Field(default_factory=list, alias="deviceStatusEntries")
    trips: List[Trip] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class VehicleListResponse(BaseModel):
    """Schema for GET /api/vehicles/me."""
    title: str = "My Vehicles"
    vehicles: List[Vehicle]

