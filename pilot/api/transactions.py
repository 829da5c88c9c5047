"""Unsigned transaction endpoints.

Nothing here accepts key material or signs: callers receive the ordered
call batch and sign client-side.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from pilot.container import Pilot, get_pilot
from pilot.errors import ValidationError

router = APIRouter(prefix="/api/pilot", tags=["transactions"])


class TransactionRequest(BaseModel):
    strategyId: str | None = None
    action: str | None = None
    amount: str | float | None = None
    userAddress: str | None = None
    slippageTolerance: float | None = Field(None, ge=0, le=100)


async def _build(request: TransactionRequest, pilot: Pilot) -> dict:
    missing = [
        name
        for name in ("strategyId", "action", "amount", "userAddress")
        if getattr(request, name) in (None, "")
    ]
    if missing:
        raise ValidationError(f"Missing required parameters: {', '.join(missing)}")

    strategy = await pilot.strategies.get_strategy(request.strategyId)
    batch = pilot.builder.build(
        strategy,
        request.action,
        str(request.amount),
        request.userAddress,
        slippage_tolerance=request.slippageTolerance,
    )
    return batch.to_response()


@router.get("/create-transaction")
async def create_transaction_get(
    strategyId: str | None = None,
    action: str | None = None,
    amount: str | None = None,
    userAddress: str | None = None,
    slippageTolerance: float | None = None,
    pilot: Pilot = Depends(get_pilot),
) -> dict:
    if slippageTolerance is not None and not 0 <= slippageTolerance <= 100:
        raise ValidationError("slippageTolerance must be between 0 and 100")
    request = TransactionRequest(
        strategyId=strategyId,
        action=action,
        amount=amount,
        userAddress=userAddress,
        slippageTolerance=slippageTolerance,
    )
    return await _build(request, pilot)


@router.post("/create-transaction")
async def create_transaction_post(
    request: TransactionRequest,
    pilot: Pilot = Depends(get_pilot),
) -> dict:
    return await _build(request, pilot)


@router.post("/execute-strategy")
async def execute_strategy(
    request: TransactionRequest,
    pilot: Pilot = Depends(get_pilot),
) -> dict:
    if not request.action:
        request = request.model_copy(update={"action": "enter"})
    return await _build(request, pilot)
