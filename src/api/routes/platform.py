from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from api.auth import verify_api_key
from api.dependencies import CallerDep, EngineDep
from api.models.platform import (
    BalanceResponse,
    DepositRequest,
    FeeResponse,
    FeeUpdateRequest,
    NotificationsResponse,
)
from api.rate_limit import limiter

router = APIRouter()


@router.get("/platform/fee", response_model=FeeResponse)
def get_fee(engine: EngineDep) -> FeeResponse:
    return FeeResponse(
        fee_basis_points=engine.settlement.fee_basis_points,
        platform_owner=engine.settlement.platform_owner,
    )


@router.put(
    "/platform/fee",
    response_model=FeeResponse,
    dependencies=[Depends(verify_api_key)],
)
@limiter.limit("10/minute")
def set_fee(
    request: Request,
    body: FeeUpdateRequest,
    engine: EngineDep,
    caller: CallerDep,
) -> FeeResponse:
    """Change the platform fee (platform owner only, at most 1000 basis points)."""
    engine.settlement.set_fee_basis_points(body.fee_basis_points, caller)
    return get_fee(engine)


@router.post(
    "/accounts/{account}/deposit",
    response_model=BalanceResponse,
    dependencies=[Depends(verify_api_key)],
)
@limiter.limit("60/minute")
def deposit(
    request: Request,
    account: str,
    body: DepositRequest,
    engine: EngineDep,
) -> BalanceResponse:
    """Credit an account so its owner can escrow ride fares."""
    balance = engine.deposit(account, body.amount)
    return BalanceResponse(account=account, balance=balance)


@router.get("/accounts/{account}/balance", response_model=BalanceResponse)
def get_balance(account: str, engine: EngineDep) -> BalanceResponse:
    return BalanceResponse(account=account, balance=engine.balance_of(account))


@router.get("/notifications", response_model=NotificationsResponse)
def list_notifications(
    engine: EngineDep,
    after: Annotated[int, Query(ge=0, description="Only notifications after this sequence")] = 0,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
) -> NotificationsResponse:
    events = engine.notifications.recent(after_sequence=after, limit=limit)
    return NotificationsResponse(
        notifications=[event.model_dump(mode="json") for event in events],
        last_sequence=engine.notifications.last_sequence,
    )
