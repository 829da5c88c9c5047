"""Strategy listing and detail endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from pilot.container import Pilot, get_pilot
from pilot.errors import ValidationError
from pilot.strategies.filters import DEFAULT_LIMIT, StrategyQuery, parse_risk_level
from pilot.strategies.pools import PoolQuery
from pilot.strategies.sources.pool_data import MIN_TVL_USD, MIN_VOLUME_USD

SUGGESTION_MIN_APY = 5.0
SUGGESTION_LIMIT = 10

router = APIRouter(prefix="/api/pilot", tags=["strategies"])


@router.get("/get-strategies")
async def get_strategies(
    risk_level: str | None = Query(None, alias="riskLevel"),
    min_apy: float | None = Query(None, alias="minApy"),
    max_apy: float | None = Query(None, alias="maxApy"),
    protocol: str | None = None,
    address: str | None = None,
    min_apy_mean_30d: float | None = Query(None, alias="minApyMean30d"),
    max_apy_mean_30d: float | None = Query(None, alias="maxApyMean30d"),
    asset: str | None = None,
    exposure: str | None = None,
    predicted_class: str | None = Query(None, alias="predictedClass"),
    source: str = "defillama",
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    skip_cache: bool = Query(False, alias="skipCache"),
    pilot: Pilot = Depends(get_pilot),
) -> dict:
    query = StrategyQuery(
        risk_level=parse_risk_level(risk_level),
        min_apy=min_apy,
        max_apy=max_apy,
        protocol=protocol,
        address=address,
        min_apy_mean_30d=min_apy_mean_30d,
        max_apy_mean_30d=max_apy_mean_30d,
        asset=asset,
        exposure=exposure,
        predicted_class=predicted_class,
        source=source,
        limit=limit,
        offset=offset,
        skip_cache=skip_cache,
    )
    listing = await pilot.strategies.list_strategies(query)
    return listing.to_dict()


@router.get("/strategy-details")
async def strategy_details(
    id: str | None = None,
    pilot: Pilot = Depends(get_pilot),
) -> dict:
    if not id:
        raise ValidationError("Strategy ID parameter is required")
    strategy = await pilot.strategies.get_strategy(id)
    return {"strategy": strategy.to_dict()}


@router.get("/get-pools")
async def get_pools(
    project: str | None = None,
    symbol: str | None = None,
    min_tvl: float | None = Query(None, alias="minTvl"),
    max_tvl: float | None = Query(None, alias="maxTvl"),
    min_apy: float | None = Query(None, alias="minApy"),
    max_apy: float | None = Query(None, alias="maxApy"),
    min_apy_mean_30d: float | None = Query(None, alias="minApyMean30d"),
    max_apy_mean_30d: float | None = Query(None, alias="maxApyMean30d"),
    asset: str | None = None,
    stablecoin: bool | None = None,
    il_risk: str | None = Query(None, alias="ilRisk"),
    exposure: str | None = None,
    predicted_class: str | None = Query(None, alias="predictedClass"),
    min_confidence: float | None = Query(None, alias="minConfidence"),
    risk: str = "all",
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    pilot: Pilot = Depends(get_pilot),
) -> dict:
    query = PoolQuery(
        project=project,
        symbol=symbol,
        min_tvl=min_tvl,
        max_tvl=max_tvl,
        min_apy=min_apy,
        max_apy=max_apy,
        min_apy_mean_30d=min_apy_mean_30d,
        max_apy_mean_30d=max_apy_mean_30d,
        asset=asset,
        stablecoin=stablecoin,
        il_risk=il_risk,
        exposure=exposure,
        predicted_class=predicted_class,
        min_confidence=min_confidence,
        risk=risk,
        limit=limit,
        offset=offset,
    )
    return {"pools": await pilot.strategies.list_pools(query)}


@router.get("/suggest-strategies-from-pools")
async def suggest_strategies_from_pools(
    min_tvl: float = Query(MIN_TVL_USD, alias="minTvl", ge=0),
    min_volume: float = Query(MIN_VOLUME_USD, alias="minVolume", ge=0),
    min_apy: float = Query(SUGGESTION_MIN_APY, alias="minApy", ge=0),
    limit: int = SUGGESTION_LIMIT,
    pilot: Pilot = Depends(get_pilot),
) -> dict:
    strategies, source = await pilot.advisor.suggest_from_pools(min_tvl, min_volume, min_apy, limit)
    return {
        "strategies": [s.to_dict() for s in strategies],
        "count": len(strategies),
        "source": source,
    }


pools_router = APIRouter(prefix="/api", tags=["pools"])


@pools_router.get("/pools")
async def pools(pilot: Pilot = Depends(get_pilot)) -> dict:
    return {"pools": await pilot.strategies.pool_summaries()}
