from datetime import datetime

from pydantic import BaseModel, Field

from geo.location import Location


class DriverRegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    vehicle_model: str = Field(min_length=1, max_length=100)
    license_plate: str = Field(min_length=1, max_length=20)
    location: Location


class DriverRegisterResponse(BaseModel):
    driver_id: int


class LocationUpdateRequest(BaseModel):
    location: Location


class AvailabilityRequest(BaseModel):
    available: bool


class DriverResponse(BaseModel):
    driver_id: int
    owner: str
    name: str
    rating: int
    vehicle_model: str
    license_plate: str
    location: Location
    available: bool
    registered_at: datetime


class DriverListResponse(BaseModel):
    drivers: list[DriverResponse]
    count: int


class DriverRidesResponse(BaseModel):
    driver_id: int
    ride_ids: list[int]


class PathCostResponse(BaseModel):
    source_driver_id: int
    dest_driver_id: int
    max_nodes_to_scan: int
    # None when the destination was not reached inside the scan budget
    cost: int | None
    reachable: bool
