"""Explicitly constructed service graph, stored on ``app.state.pilot``."""
from __future__ import annotations

from dataclasses import dataclass

import httpx
from fastapi import Request

from pilot.cache import TTLCache
from pilot.config import settings
from pilot.portfolio.advisor import PortfolioAdvisor
from pilot.portfolio.balances import BalanceProvider, BalanceService
from pilot.strategies.service import StrategyService
from pilot.strategies.sources.pool_data import PoolDataClient
from pilot.strategies.sources.subgraph import PROTOCOL_QUERIES, SubgraphClient, SubgraphSource
from pilot.strategies.sources.yield_feed import YieldFeedClient
from pilot.transactions.builder import TransactionBuilder
from pilot.transactions.registry import ProtocolRegistry


@dataclass
class Pilot:
    strategies: StrategyService
    balances: BalanceService
    advisor: PortfolioAdvisor
    builder: TransactionBuilder
    registry: ProtocolRegistry

    @classmethod
    def create(cls, client: httpx.AsyncClient | None = None) -> Pilot:
        """Wire every collaborator; ``client`` is shared by all upstream calls when given."""
        feed = YieldFeedClient(client=client)
        subgraphs = SubgraphClient(client=client)
        balances = BalanceService(
            BalanceProvider(client=client),
            TTLCache(settings.balance_cache_ttl_ms),
        )
        strategies = StrategyService(
            feed=feed,
            subgraph_sources=[SubgraphSource(p, subgraphs) for p in PROTOCOL_QUERIES],
            balances=balances,
            feed_cache=TTLCache(settings.strategy_cache_ttl_ms),
            query_cache=TTLCache(settings.strategy_cache_ttl_ms),
        )
        registry = ProtocolRegistry.load()
        return cls(
            strategies=strategies,
            balances=balances,
            advisor=PortfolioAdvisor(strategies, balances, PoolDataClient(client=client)),
            builder=TransactionBuilder(registry),
            registry=registry,
        )


def get_pilot(request: Request) -> Pilot:
    return request.app.state.pilot
