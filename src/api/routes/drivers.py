from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from api.auth import verify_api_key
from api.dependencies import CallerDep, EngineDep
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
from api.rate_limit import limiter
from dispatch_logging import log_driver_context
from driver import Driver
from matching.path_cost import UNREACHABLE

router = APIRouter()


def to_driver_response(driver: Driver) -> DriverResponse:
    return DriverResponse(**driver.model_dump())


@router.post(
    "",
    response_model=DriverRegisterResponse,
    status_code=201,
    dependencies=[Depends(verify_api_key)],
)
@limiter.limit("60/minute")
def register_driver(
    request: Request,
    body: DriverRegisterRequest,
    engine: EngineDep,
    caller: CallerDep,
) -> DriverRegisterResponse:
    """Register the caller as the owner of a new driver."""
    driver_id = engine.registry.register(
        owner=caller,
        name=body.name,
        vehicle_model=body.vehicle_model,
        license_plate=body.license_plate,
        location=body.location,
    )
    return DriverRegisterResponse(driver_id=driver_id)


@router.get("", response_model=DriverListResponse)
def list_drivers(
    engine: EngineDep,
    available_only: Annotated[bool, Query()] = False,
) -> DriverListResponse:
    drivers = engine.registry.list_drivers(available_only=available_only)
    return DriverListResponse(
        drivers=[to_driver_response(d) for d in drivers],
        count=len(drivers),
    )


@router.get("/{driver_id}", response_model=DriverResponse)
def get_driver(driver_id: int, engine: EngineDep) -> DriverResponse:
    return to_driver_response(engine.registry.get(driver_id))


@router.put(
    "/{driver_id}/location",
    response_model=DriverResponse,
    dependencies=[Depends(verify_api_key)],
)
@limiter.limit("600/minute")
def update_driver_location(
    request: Request,
    driver_id: int,
    body: LocationUpdateRequest,
    engine: EngineDep,
    caller: CallerDep,
) -> DriverResponse:
    with log_driver_context(driver_id):
        engine.registry.update_location(driver_id, caller, body.location)
    return to_driver_response(engine.registry.get(driver_id))


@router.put(
    "/{driver_id}/availability",
    response_model=DriverResponse,
    dependencies=[Depends(verify_api_key)],
)
@limiter.limit("120/minute")
def set_driver_availability(
    request: Request,
    driver_id: int,
    body: AvailabilityRequest,
    engine: EngineDep,
    caller: CallerDep,
) -> DriverResponse:
    with log_driver_context(driver_id):
        engine.registry.set_availability(driver_id, caller, body.available)
    return to_driver_response(engine.registry.get(driver_id))


@router.get("/{driver_id}/rides", response_model=DriverRidesResponse)
def get_driver_rides(driver_id: int, engine: EngineDep) -> DriverRidesResponse:
    return DriverRidesResponse(
        driver_id=driver_id, ride_ids=engine.registry.ride_history(driver_id)
    )


@router.get("/{source_driver_id}/path-cost/{dest_driver_id}", response_model=PathCostResponse)
def get_path_cost(
    source_driver_id: int,
    dest_driver_id: int,
    engine: EngineDep,
    max_nodes: Annotated[int, Query(ge=0, description="Scan budget in driver ids")] = 100,
) -> PathCostResponse:
    """Bounded shortest-path cost between two drivers.

    ``cost`` is null and ``reachable`` false when the destination was not
    reached within the first ``max_nodes`` drivers.
    """
    cost = engine.path_cost.estimate(source_driver_id, dest_driver_id, max_nodes)
    reachable = cost != UNREACHABLE
    return PathCostResponse(
        source_driver_id=source_driver_id,
        dest_driver_id=dest_driver_id,
        max_nodes_to_scan=max_nodes,
        cost=cost if reachable else None,
        reachable=reachable,
    )
