"""Yield feed source, powered by the DeFiLlama pools API.

Polls the feed and keeps only the pools on the configured chain.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from pilot.config import settings
from pilot.errors import UpstreamError
from pilot.strategies import normalizer
from pilot.strategies.models import Strategy
from pilot.strategies.sources.base import StrategySource
from pilot.tools.api_caller import call_api

logger = logging.getLogger(__name__)


class YieldFeedClient(StrategySource):
    name = "defillama"

    def __init__(
        self,
        url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url or settings.yield_feed_url
        self.client = client
        self.chain_names = set(settings.chain_names)

    async def fetch_pools(self) -> list[dict[str, Any]]:
        """Raw pool records for the target chain."""
        data = await call_api("GET", self.url, client=self.client, source=self.name)
        if not isinstance(data, dict) or not isinstance(data.get("data"), list):
            raise UpstreamError("Yield feed returned an unexpected payload", self.name)

        pools = [p for p in data["data"] if isinstance(p, dict) and self._on_chain(p)]
        logger.info("Yield feed returned %d pool(s) on %s", len(pools), settings.network)
        return pools

    async def fetch(self) -> Sequence[Strategy]:
        return normalizer.normalize(await self.fetch_pools(), network=settings.network)

    def _on_chain(self, pool: dict[str, Any]) -> bool:
        if pool.get("chain") in self.chain_names:
            return True
        return str(pool.get("chainId", "")) == str(settings.chain_id)
