from fastapi import APIRouter, Depends, Request

from api.auth import verify_api_key
from api.dependencies import CallerDep, EngineDep
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
from api.rate_limit import limiter
from dispatch_logging import log_ride_context
from ride import NO_DRIVER, RideRequest

router = APIRouter()
requesters_router = APIRouter()


def to_ride_response(ride: RideRequest) -> RideResponse:
    data = ride.model_dump()
    data["assigned_driver_id"] = ride.assigned_driver_id or None
    return RideResponse(**data)


@router.post(
    "",
    response_model=RideCreateResponse,
    status_code=201,
    dependencies=[Depends(verify_api_key)],
)
@limiter.limit("60/minute")
def request_ride(
    request: Request,
    body: RideCreateRequest,
    engine: EngineDep,
    caller: CallerDep,
) -> RideCreateResponse:
    """Submit a ride request, escrowing the fare from the caller's balance."""
    ride_id = engine.ledger.create(caller, body.pickup, body.destination, body.fare)
    return RideCreateResponse(ride_id=ride_id, status=engine.ledger.get(ride_id).status)


@router.get("/{ride_id}", response_model=RideResponse)
def get_ride(ride_id: int, engine: EngineDep) -> RideResponse:
    return to_ride_response(engine.ledger.get(ride_id))


@router.get("/{ride_id}/nearest-driver", response_model=NearestDriverResponse)
def get_nearest_driver(ride_id: int, engine: EngineDep) -> NearestDriverResponse:
    driver_id = engine.matching.find_nearest_available(ride_id)
    return NearestDriverResponse(
        ride_id=ride_id, driver_id=driver_id if driver_id != NO_DRIVER else None
    )


@router.post(
    "/{ride_id}/match",
    response_model=MatchResponse,
    dependencies=[Depends(verify_api_key)],
)
@limiter.limit("120/minute")
def match_ride(
    request: Request,
    ride_id: int,
    engine: EngineDep,
    caller: CallerDep,
) -> MatchResponse:
    with log_ride_context(ride_id):
        driver_id = engine.matching.match(ride_id, caller)
    return MatchResponse(
        ride_id=ride_id, driver_id=driver_id, status=engine.ledger.get(ride_id).status
    )


@router.post(
    "/{ride_id}/start",
    response_model=RideStatusResponse,
    dependencies=[Depends(verify_api_key)],
)
@limiter.limit("120/minute")
def start_ride(
    request: Request,
    ride_id: int,
    engine: EngineDep,
    caller: CallerDep,
) -> RideStatusResponse:
    with log_ride_context(ride_id):
        engine.ledger.start(ride_id, caller)
    return RideStatusResponse(ride_id=ride_id, status=engine.ledger.get(ride_id).status)


@router.post(
    "/{ride_id}/complete",
    response_model=SettlementResponse,
    dependencies=[Depends(verify_api_key)],
)
@limiter.limit("120/minute")
def complete_ride(
    request: Request,
    ride_id: int,
    engine: EngineDep,
    caller: CallerDep,
) -> SettlementResponse:
    with log_ride_context(ride_id):
        settlement = engine.settlement.complete(ride_id, caller)
    return SettlementResponse(**settlement.model_dump())


@router.post(
    "/{ride_id}/cancel",
    response_model=RideStatusResponse,
    dependencies=[Depends(verify_api_key)],
)
@limiter.limit("120/minute")
def cancel_ride(
    request: Request,
    ride_id: int,
    engine: EngineDep,
    caller: CallerDep,
) -> RideStatusResponse:
    with log_ride_context(ride_id):
        engine.ledger.cancel(ride_id, caller)
    return RideStatusResponse(ride_id=ride_id, status=engine.ledger.get(ride_id).status)


@router.get("/{ride_id}/settlement", response_model=SettlementResponse)
def get_settlement(ride_id: int, engine: EngineDep) -> SettlementResponse:
    engine.ledger.get(ride_id)
    return SettlementResponse(**engine.settlement.get_settlement(ride_id).model_dump())


@requesters_router.get("/{requester}/rides", response_model=RequesterRidesResponse)
def get_requester_rides(requester: str, engine: EngineDep) -> RequesterRidesResponse:
    return RequesterRidesResponse(
        requester=requester, ride_ids=engine.ledger.rides_for_requester(requester)
    )
