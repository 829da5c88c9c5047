"""Portfolio optimization behind ``optimize-portfolio`` and pool suggestions."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from pilot.errors import UpstreamError, ValidationError
from pilot.portfolio.balances import BalanceService, require_address
from pilot.portfolio.optimizer import admissible, merge_by_id, optimize
from pilot.strategies.fallback import pool_suggestions, static_strategies
from pilot.strategies.models import RiskLevel, Strategy
from pilot.strategies.service import STATIC_SOURCE, StrategyService
from pilot.strategies.sources.pool_data import PoolDataClient

logger = logging.getLogger(__name__)

RECOMMENDED_COUNT = 3


class PortfolioAdvisor:
    def __init__(
        self,
        strategies: StrategyService,
        balances: BalanceService,
        pool_data: PoolDataClient,
    ) -> None:
        self.strategies = strategies
        self.balances = balances
        self.pool_data = pool_data

    async def _suggestions(self) -> list[Strategy]:
        try:
            return list(await self.pool_data.fetch())
        except UpstreamError as exc:
            logger.warning("Pool suggestions unavailable: %s", exc)
            return []

    async def _no_suggestions(self) -> list[Strategy]:
        return []

    async def suggest_from_pools(
        self,
        min_tvl: float,
        min_volume: float,
        min_apy: float,
        limit: int,
    ) -> tuple[list[Strategy], str]:
        """Live DEX pool suggestions, or the static list when the pool API fails or finds nothing."""
        if limit < 0:
            raise ValidationError("limit must be non-negative")
        try:
            live = list(await self.pool_data.fetch(min_tvl=min_tvl, min_volume=min_volume, min_apy=min_apy))
        except UpstreamError as exc:
            logger.warning("Pool data unavailable: %s", exc)
            live = []
        if live:
            return live[:limit], self.pool_data.name
        logger.info("No live pools above the thresholds; serving static suggestions")
        return pool_suggestions(min_apy, limit), STATIC_SOURCE

    async def optimize_portfolio(
        self,
        address: str,
        risk_profile: RiskLevel = RiskLevel.MEDIUM,
        investment_amount: float | None = None,
        use_pool_suggestions: bool = True,
    ) -> dict[str, Any]:
        require_address(address)
        if investment_amount is not None and investment_amount < 0:
            raise ValidationError("investmentAmount must be non-negative")

        portfolio, (live, source), suggestions = await asyncio.gather(
            self.balances.try_get_portfolio(address),
            self.strategies.load_strategies(),
            self._suggestions() if use_pool_suggestions else self._no_suggestions(),
        )

        if investment_amount is None:
            if portfolio is None:
                raise UpstreamError("Failed to fetch portfolio balances", "ankr")
            investment_amount = portfolio.total_usd

        candidates = admissible(live, risk_profile)
        if not candidates:
            logger.info("No admissible %s strategies from %s; using the static catalog", risk_profile, source)
            candidates = admissible(static_strategies(), risk_profile)
        candidates = merge_by_id(candidates, admissible(suggestions, risk_profile))

        result = optimize(candidates, risk_profile, investment_amount)
        return {
            "optimizedAllocation": result.to_dict(),
            "currentAllocation": portfolio.to_dict() if portfolio else None,
            "recommendedStrategies": [s.to_dict() for s in candidates[:RECOMMENDED_COUNT]],
        }
