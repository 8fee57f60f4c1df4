from datetime import datetime

from pydantic import BaseModel

from geo.location import Location
from ride import RideStatus


class RideCreateRequest(BaseModel):
    pickup: Location
    destination: Location
    # Validated by the ledger so a non-positive fare is reported as invalid_amount
    fare: int


class RideCreateResponse(BaseModel):
    ride_id: int
    status: RideStatus


class RideResponse(BaseModel):
    ride_id: int
    requester: str
    pickup: Location
    destination: Location
    fare: int
    status: RideStatus
    assigned_driver_id: int | None
    created_at: datetime
    matched_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None


class NearestDriverResponse(BaseModel):
    ride_id: int
    driver_id: int | None


class MatchResponse(BaseModel):
    ride_id: int
    driver_id: int
    status: RideStatus


class RideStatusResponse(BaseModel):
    ride_id: int
    status: RideStatus


class SettlementResponse(BaseModel):
    ride_id: int
    driver_id: int
    fare: int
    fee_basis_points: int
    platform_fee: int
    driver_payment: int
    settled_at: datetime


class RequesterRidesResponse(BaseModel):
    requester: str
    ride_ids: list[int]
