"""Subgraph sources: one GraphQL client, one source per indexed protocol."""
from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

import httpx

from pilot.config import settings
from pilot.errors import UpstreamError
from pilot.strategies import normalizer
from pilot.strategies.models import Strategy
from pilot.strategies.sources.base import StrategySource
from pilot.tools.api_caller import call_api

logger = logging.getLogger(__name__)

RESERVES_QUERY = """
query getReserves {
  reserves(first: 20, orderBy: totalLiquidity, orderDirection: desc) {
    id
    symbol
    name
    decimals
    underlyingAsset
    totalLiquidity
    utilizationRate
    liquidityRate
    lastUpdateTimestamp
  }
}
"""

LIQUIDITY_POOLS_QUERY = """
query getTopLiquidityPools {
  liquidityPools(first: 10, orderBy: totalValueLockedUSD, orderDirection: desc) {
    id
    name
    inputTokens { id symbol decimals }
    totalValueLockedUSD
    dailyVolumeUSD
    dailyTotalRevenueUSD
  }
}
"""

WEIGHTED_POOLS_QUERY = """
query getTopPools {
  pools(first: 20, orderBy: totalLiquidity, orderDirection: desc) {
    id
    address
    name
    poolType
    totalLiquidity
    totalSwapVolume
    totalSwapFee
    tokens { address symbol decimals weight }
  }
}
"""

Normalize = Callable[[list[dict[str, Any]], str], list[Strategy]]

# protocol → (query, response field, normalizer)
PROTOCOL_QUERIES: dict[str, tuple[str, str, Normalize]] = {
    "agave": (RESERVES_QUERY, "reserves", normalizer.normalize_lending_reserves),
    "honeyswap": (LIQUIDITY_POOLS_QUERY, "liquidityPools", normalizer.normalize_liquidity_pools),
    "sushiswap": (LIQUIDITY_POOLS_QUERY, "liquidityPools", normalizer.normalize_liquidity_pools),
    "balancer": (WEIGHTED_POOLS_QUERY, "pools", normalizer.normalize_weighted_pools),
    "symmetric": (WEIGHTED_POOLS_QUERY, "pools", normalizer.normalize_weighted_pools),
}


class SubgraphClient:
    """POSTs GraphQL to the gateway; GraphQL ``errors`` raise ``UpstreamError``."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self.client = client

    async def query(
        self,
        protocol: str,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = settings.subgraph_url(protocol)
        if url is None:
            raise UpstreamError(f"No subgraph configured for {protocol}", protocol)

        body = await call_api(
            "POST",
            url,
            json={"query": query, "variables": {**(variables or {}), "subgraphError": "deny"}},
            bearer_token=settings.graph_api_key or None,
            client=self.client,
            source=f"{protocol} subgraph",
        )
        if not isinstance(body, dict):
            raise UpstreamError(f"{protocol} subgraph returned an unexpected payload", protocol)

        errors = body.get("errors")
        if errors:
            messages = [_friendly(e.get("message", "") if isinstance(e, dict) else str(e)) for e in errors]
            raise UpstreamError(f"GraphQL errors: {', '.join(messages)}", protocol)

        data = body.get("data")
        if not data:
            raise UpstreamError("No data returned from GraphQL query", protocol)
        return data


def _friendly(message: str) -> str:
    if "rate limit" in message:
        return "Rate limit exceeded. Please try again later."
    if "query complexity" in message:
        return "Query too complex. Please simplify your request."
    return message


class SubgraphSource(StrategySource):
    """Strategies for one protocol, read from its subgraph."""

    def __init__(self, protocol: str, client: SubgraphClient) -> None:
        if protocol not in PROTOCOL_QUERIES:
            raise ValueError(f"Unknown subgraph protocol: {protocol}")
        self.protocol = protocol
        self.name = f"subgraph:{protocol}"
        self.client = client

    async def fetch(self) -> Sequence[Strategy]:
        query, field, normalize = PROTOCOL_QUERIES[self.protocol]
        data = await self.client.query(self.protocol, query)
        records = data.get(field) or []
        strategies = normalize(records, self.protocol)
        logger.info("%s subgraph yielded %d strategies", self.protocol, len(strategies))
        return strategies
