"""StrategyService: aggregates sources, caches, filters and ranks strategies."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from pilot.cache import TTLCache, cache_key
from pilot.errors import StrategyNotFound, UpstreamError
from pilot.portfolio.balances import BalanceService, require_address
from pilot.portfolio.matcher import annotate, rank
from pilot.strategies.fallback import find_static, static_strategies
from pilot.strategies.filters import StrategyQuery, apply_filters, paginate
from pilot.strategies.models import Strategy
from pilot.strategies.pools import PoolQuery, select_pools, summarize
from pilot.strategies.sources.base import StrategySource
from pilot.strategies.sources.yield_feed import YieldFeedClient

logger = logging.getLogger(__name__)

STATIC_SOURCE = "static"


@dataclass(frozen=True)
class StrategyListing:
    strategies: list[Strategy]
    total: int
    source: str
    cached: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategies": [s.to_dict() for s in self.strategies],
            "total": self.total,
            "source": self.source,
            "cached": self.cached,
        }


class StrategyService:
    def __init__(
        self,
        feed: YieldFeedClient,
        subgraph_sources: Sequence[StrategySource],
        balances: BalanceService,
        feed_cache: TTLCache,
        query_cache: TTLCache,
    ) -> None:
        self.feed = feed
        self.subgraph_sources = list(subgraph_sources)
        self.balances = balances
        self.feed_cache = feed_cache
        self.query_cache = query_cache

    def _sources_for(self, source: str) -> list[StrategySource]:
        if source == "defillama":
            return [self.feed]
        if source == "subgraph":
            return list(self.subgraph_sources)
        return [self.feed, *self.subgraph_sources]

    async def load_strategies(
        self, source: str = "defillama", skip_cache: bool = False
    ) -> tuple[list[Strategy], str]:
        """Normalized strategies for ``source`` plus the flag naming where they came from.

        Falls back to the static catalog (flag ``"static"``, never cached)
        only when every requested source fails.
        """
        key = cache_key("feed", source=source)
        if not skip_cache:
            cached = self.feed_cache.get(key)
            if cached is not None:
                return list(cached), source

        sources = self._sources_for(source)
        results = await asyncio.gather(*[self._safe_fetch(src) for src in sources])

        if all(batch is None for batch in results):
            logger.warning("All %s sources failed; serving the static catalog", source)
            return static_strategies(), STATIC_SOURCE

        merged: list[Strategy] = []
        seen: set[str] = set()
        for batch in results:
            for strategy in batch or ():
                if strategy.id not in seen:
                    seen.add(strategy.id)
                    merged.append(strategy)

        self.feed_cache.set(key, tuple(merged))
        logger.info("Loaded %d strategies from %s", len(merged), source)
        return merged, source

    async def _safe_fetch(self, source: StrategySource) -> list[Strategy] | None:
        try:
            return list(await source.fetch())
        except UpstreamError as exc:
            logger.warning("Source %s failed: %s", source.name, exc)
            return None

    async def list_strategies(self, query: StrategyQuery) -> StrategyListing:
        if query.address:
            require_address(query.address)

        key = cache_key("strategies", **query.signature())
        if not query.skip_cache:
            hit = self.query_cache.get(key)
            if hit is not None:
                ranked, source = hit
                logger.info("Strategy cache hit")
                return StrategyListing(
                    strategies=paginate(ranked, query.limit, query.offset),
                    total=len(ranked),
                    source=source,
                    cached=True,
                )

        if query.address:
            (strategies, source), portfolio = await asyncio.gather(
                self.load_strategies(query.source, query.skip_cache),
                self.balances.try_get_portfolio(query.address),
            )
        else:
            strategies, source = await self.load_strategies(query.source, query.skip_cache)
            portfolio = None

        if portfolio is not None:
            strategies = annotate(strategies, portfolio.balances)

        ranked = rank(apply_filters(strategies, query), with_portfolio=bool(query.address))

        if source == STATIC_SOURCE:
            logger.info("Static catalog served; listing not cached")
        elif query.address and portfolio is None:
            logger.info("Portfolio unavailable for %s; listing not cached", query.address)
        else:
            self.query_cache.set(key, (tuple(ranked), source))

        return StrategyListing(
            strategies=paginate(ranked, query.limit, query.offset),
            total=len(ranked),
            source=source,
        )

    async def get_strategy(self, strategy_id: str) -> Strategy:
        """Live feed first, then the static catalog."""
        strategies, _ = await self.load_strategies()
        for strategy in strategies:
            if strategy.id == strategy_id:
                return strategy
        static = find_static(strategy_id)
        if static is None:
            raise StrategyNotFound(strategy_id)
        return static

    async def _raw_pools(self) -> list[dict[str, Any]]:
        key = cache_key("pools")
        cached = self.feed_cache.get(key)
        if cached is not None:
            return list(cached)
        pools = await self.feed.fetch_pools()
        self.feed_cache.set(key, tuple(pools))
        return pools

    async def list_pools(self, query: PoolQuery) -> list[dict[str, Any]]:
        return select_pools(await self._raw_pools(), query)

    async def pool_summaries(self) -> list[dict[str, Any]]:
        return [summarize(p) for p in await self._raw_pools()]
