"""DEX pool-data source (GeckoTerminal), used for optimizer suggestions.

APY is estimated from 24h volume assuming a 0.3% fee on half the volume.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from pilot.config import settings
from pilot.errors import UpstreamError
from pilot.strategies.models import Strategy, StrategyType
from pilot.strategies.normalizer import is_stable_symbol, risk_level, strategy_tags
from pilot.strategies.sources.base import StrategySource
from pilot.tools.api_caller import call_api

logger = logging.getLogger(__name__)

MIN_TVL_USD = 500_000
MIN_VOLUME_USD = 10_000
MIN_APY = 1.0
FEE_RATE = 0.003
FEE_VOLUME_SHARE = 0.5


class PoolDataClient(StrategySource):
    name = "geckoterminal"

    def __init__(
        self,
        url: str | None = None,
        client: httpx.AsyncClient | None = None,
        min_tvl: float = MIN_TVL_USD,
        min_volume: float = MIN_VOLUME_USD,
        min_apy: float = MIN_APY,
    ) -> None:
        self.url = url or settings.pool_data_url
        self.client = client
        self.min_tvl = min_tvl
        self.min_volume = min_volume
        self.min_apy = min_apy

    async def fetch_pools(self) -> list[dict[str, Any]]:
        data = await call_api(
            "GET",
            self.url,
            headers={"Accept": "application/json"},
            client=self.client,
            source=self.name,
        )
        if not isinstance(data, dict) or not isinstance(data.get("data"), list):
            raise UpstreamError("Pool data API returned an unexpected payload", self.name)
        return data["data"]

    async def fetch(
        self,
        min_tvl: float | None = None,
        min_volume: float | None = None,
        min_apy: float | None = None,
    ) -> Sequence[Strategy]:
        """LP strategies above the thresholds, best estimated APY first.

        Thresholds default to the ones the client was built with.
        """
        thresholds = (
            self.min_tvl if min_tvl is None else min_tvl,
            self.min_volume if min_volume is None else min_volume,
            self.min_apy if min_apy is None else min_apy,
        )
        strategies: list[Strategy] = []
        seen: set[str] = set()
        for pool in await self.fetch_pools():
            try:
                strategy = self._pool_to_strategy(pool["attributes"], *thresholds)
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                logger.debug("Skipping pool due to parse error: %s", exc)
                continue
            if strategy is None or strategy.id in seen:
                continue
            seen.add(strategy.id)
            strategies.append(strategy)

        strategies.sort(key=lambda s: s.apy, reverse=True)
        logger.info("Pool data suggested %d strategies", len(strategies))
        return strategies

    def _pool_to_strategy(
        self, attrs: dict[str, Any], min_tvl: float, min_volume: float, min_apy: float
    ) -> Strategy | None:
        tvl = float(attrs["reserve_in_usd"])
        volume = float(attrs["volume_usd"]["h24"])
        if tvl <= 0 or tvl < min_tvl or volume < min_volume:
            return None

        apy = volume * FEE_RATE * FEE_VOLUME_SHARE * 365 / tvl * 100
        if apy < min_apy:
            return None

        dex = str(attrs["dex_name"])
        token1 = str(attrs["base_token_symbol"])
        token2 = str(attrs["quote_token_symbol"])
        asset = f"{token1}-{token2}"
        stablecoin = is_stable_symbol(token1) and is_stable_symbol(token2)
        underlying = tuple(
            a for a in (attrs.get("base_token_address"), attrs.get("quote_token_address")) if a
        )
        return Strategy(
            id=f"{dex.lower()}-{token1.lower()}-{token2.lower()}",
            name=f"{dex} {asset} LP",
            protocol=dex,
            asset=asset,
            strategy_type=StrategyType.LIQUIDITY_PROVIDING,
            apy=apy,
            risk_level=risk_level(apy, "no" if stablecoin else "yes", "neutral", stablecoin),
            tvl_usd=tvl,
            underlying_tokens=underlying,
            exposure="multi",
            source_id=attrs.get("address"),
            description=f"Provide liquidity for {asset} pair on {dex}",
            network=settings.network,
            tags=strategy_tags(dex, asset, stablecoin),
        )
