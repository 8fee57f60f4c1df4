from typing import Any

from pydantic import BaseModel, Field


class FeeResponse(BaseModel):
    fee_basis_points: int
    platform_owner: str


class FeeUpdateRequest(BaseModel):
    fee_basis_points: int


class DepositRequest(BaseModel):
    amount: int = Field(gt=0)


class BalanceResponse(BaseModel):
    account: str
    balance: int


class NotificationsResponse(BaseModel):
    notifications: list[dict[str, Any]]
    last_sequence: int
