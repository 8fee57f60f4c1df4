"""Pydantic models for API requests and responses."""

from api.models.drivers import (
    AvailabilityRequest,
    DriverListResponse,
    DriverRegisterRequest,
    DriverRegisterResponse,
    DriverResponse,
    DriverRidesResponse,
    LocationUpdateRequest,
    PathCostResponse,
)
from api.models.platform import (
    BalanceResponse,
    DepositRequest,
    FeeResponse,
    FeeUpdateRequest,
    NotificationsResponse,
)
from api.models.rides import (
    MatchResponse,
    NearestDriverResponse,
    RequesterRidesResponse,
    RideCreateRequest,
    RideCreateResponse,
    RideResponse,
    RideStatusResponse,
    SettlementResponse,
)

__all__ = [
    "AvailabilityRequest",
    "BalanceResponse",
    "DepositRequest",
    "DriverListResponse",
    "DriverRegisterRequest",
    "DriverRegisterResponse",
    "DriverResponse",
    "DriverRidesResponse",
    "FeeResponse",
    "FeeUpdateRequest",
    "LocationUpdateRequest",
    "MatchResponse",
    "NearestDriverResponse",
    "NotificationsResponse",
    "PathCostResponse",
    "RequesterRidesResponse",
    "RideCreateRequest",
    "RideCreateResponse",
    "RideResponse",
    "RideStatusResponse",
    "SettlementResponse",
]
