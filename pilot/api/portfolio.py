"""Wallet portfolio and allocation endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from pilot.container import Pilot, get_pilot
from pilot.errors import ValidationError
from pilot.strategies.filters import parse_risk_level
from pilot.strategies.models import RiskLevel

router = APIRouter(prefix="/api/pilot", tags=["portfolio"])


@router.get("/get-portfolio")
async def get_portfolio(
    address: str | None = None,
    chain: str | None = None,
    pilot: Pilot = Depends(get_pilot),
) -> dict:
    if not address:
        raise ValidationError("Address is required")
    portfolio = await pilot.balances.get_portfolio(address, chain)
    return portfolio.to_dict()


@router.get("/optimize-portfolio")
async def optimize_portfolio(
    address: str | None = None,
    risk_profile: str = Query("medium", alias="riskProfile"),
    investment_amount: float | None = Query(None, alias="investmentAmount"),
    use_pool_suggestions: bool = Query(True, alias="usePoolSuggestions"),
    pilot: Pilot = Depends(get_pilot),
) -> dict:
    if not address:
        raise ValidationError("Address parameter is required")
    profile = parse_risk_level(risk_profile) or RiskLevel.MEDIUM
    return await pilot.advisor.optimize_portfolio(
        address,
        risk_profile=profile,
        investment_amount=investment_amount,
        use_pool_suggestions=use_pool_suggestions,
    )
