"""Tests for the upstream clients, driven through httpx.MockTransport."""
from __future__ import annotations

import json

import httpx
import pytest

from pilot.cache import TTLCache
from pilot.errors import UpstreamError, ValidationError
from pilot.portfolio.balances import BalanceProvider, BalanceService
from pilot.strategies.sources.pool_data import PoolDataClient
from pilot.strategies.sources.subgraph import SubgraphClient, SubgraphSource
from pilot.strategies.sources.yield_feed import YieldFeedClient

WALLET = "0xabcdef0123456789abcdef0123456789abcdef01"


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def json_response(payload, status: int = 200) -> httpx.Response:
    return httpx.Response(status, json=payload)


# ── Yield feed ───────────────────────────────────────────────────────────────


FEED = {
    "status": "success",
    "data": [
        {"pool": "a", "chain": "Gnosis", "project": "agave", "symbol": "WXDAI", "apy": 4.0, "tvlUsd": 1e6,
         "stablecoin": True, "ilRisk": "no"},
        {"pool": "b", "chain": "Ethereum", "project": "aave-v3", "symbol": "USDC", "apy": 3.0, "tvlUsd": 1e9},
        {"pool": "c", "chainId": 100, "project": "honeyswap", "symbol": "GNO-WXDAI", "apy": 12.0, "tvlUsd": 2e6},
    ],
}


async def test_yield_feed_keeps_target_chain_only():
    client = YieldFeedClient(client=mock_client(lambda request: json_response(FEED)))
    pools = await client.fetch_pools()
    assert [p["pool"] for p in pools] == ["a", "c"]

    strategies = await client.fetch()
    assert [s.id for s in strategies] == ["a", "c"]
    assert strategies[0].risk_level == "low"


async def test_yield_feed_http_error():
    client = YieldFeedClient(client=mock_client(lambda request: httpx.Response(500)))
    with pytest.raises(UpstreamError, match="HTTP 500"):
        await client.fetch()


async def test_yield_feed_rate_limited():
    client = YieldFeedClient(client=mock_client(lambda request: httpx.Response(429)))
    with pytest.raises(UpstreamError, match="Rate limit exceeded"):
        await client.fetch()


async def test_yield_feed_unexpected_payload():
    client = YieldFeedClient(client=mock_client(lambda request: json_response({"status": "error"})))
    with pytest.raises(UpstreamError, match="unexpected payload"):
        await client.fetch_pools()


async def test_yield_feed_non_json_body():
    client = YieldFeedClient(client=mock_client(lambda request: httpx.Response(200, text="<html>")))
    with pytest.raises(UpstreamError, match="non-JSON"):
        await client.fetch_pools()


async def test_yield_feed_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = YieldFeedClient(client=mock_client(handler))
    with pytest.raises(UpstreamError, match="unreachable"):
        await client.fetch_pools()


# ── Subgraphs ────────────────────────────────────────────────────────────────


async def test_subgraph_request_denies_partial_results():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["host"] = request.url.host
        return json_response({"data": {"reserves": [
            {"id": "r1", "symbol": "WXDAI", "underlyingAsset": "0xe91d", "totalLiquidity": "1000",
             "liquidityRate": "0.05"},
        ]}})

    source = SubgraphSource("agave", SubgraphClient(client=mock_client(handler)))
    strategies = await source.fetch()

    assert seen["host"] == "gateway.thegraph.com"
    assert seen["body"]["variables"]["subgraphError"] == "deny"
    assert "reserves" in seen["body"]["query"]
    assert [s.id for s in strategies] == ["agave-wxdai"]
    assert strategies[0].apy == pytest.approx(5.0)


async def test_subgraph_graphql_errors_raise():
    handler = lambda request: json_response({"errors": [{"message": "indexing failed"}]})
    client = SubgraphClient(client=mock_client(handler))
    with pytest.raises(UpstreamError, match="GraphQL errors: indexing failed"):
        await client.query("honeyswap", "{ liquidityPools { id } }")


@pytest.mark.parametrize(
    "message, expected",
    [
        ("rate limit reached", "Rate limit exceeded"),
        ("query complexity too high", "Query too complex"),
    ],
)
async def test_subgraph_errors_are_rewritten(message, expected):
    handler = lambda request: json_response({"errors": [{"message": message}]})
    client = SubgraphClient(client=mock_client(handler))
    with pytest.raises(UpstreamError, match=expected):
        await client.query("balancer", "{ pools { id } }")


async def test_subgraph_missing_data():
    client = SubgraphClient(client=mock_client(lambda request: json_response({"data": None})))
    with pytest.raises(UpstreamError, match="No data returned"):
        await client.query("sushiswap", "{ liquidityPools { id } }")


async def test_subgraph_unknown_protocol():
    client = SubgraphClient(client=mock_client(lambda request: json_response({})))
    with pytest.raises(UpstreamError, match="No subgraph configured"):
        await client.query("nowhere", "{ x }")
    with pytest.raises(ValueError):
        SubgraphSource("nowhere", client)


# ── Balances ─────────────────────────────────────────────────────────────────


ANKR = {
    "jsonrpc": "2.0",
    "id": 1,
    "result": {
        "totalBalanceUsd": "150",
        "assets": [
            {"blockchain": "gnosis", "tokenSymbol": "GNO", "tokenName": "Gnosis", "tokenDecimals": 18,
             "contractAddress": "0x9c58bacc331c9aa871afd802db6379a98e80cedb", "balance": "0.5",
             "balanceUsd": "100", "tokenPrice": "200"},
            {"blockchain": "gnosis", "tokenSymbol": "XDAI", "tokenDecimals": 18, "balance": "50",
             "balanceUsd": "50", "tokenPrice": "1"},
            {"blockchain": "eth", "tokenSymbol": "ETH", "tokenDecimals": 18, "balance": "1",
             "balanceUsd": "3000"},
        ],
    },
}


async def test_balance_provider_parses_and_filters_chain():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return json_response(ANKR)

    provider = BalanceProvider(client=mock_client(handler))
    balances = await provider.fetch_balances(WALLET)

    assert seen["body"]["method"] == "ankr_getAccountBalance"
    assert seen["body"]["params"] == {"walletAddress": WALLET, "blockchain": "gnosis"}
    assert [b.token.symbol for b in balances] == ["GNO", "XDAI"]
    assert balances[0].usd_value == 100
    assert balances[0].token.usd_price == 200
    assert balances[1].token.address == "0x0000000000000000000000000000000000000000"


async def test_balance_provider_rpc_error():
    handler = lambda request: json_response({"jsonrpc": "2.0", "id": 1, "error": {"message": "bad key"}})
    provider = BalanceProvider(client=mock_client(handler))
    with pytest.raises(UpstreamError, match="bad key"):
        await provider.fetch_balances(WALLET)


async def test_balance_provider_rejects_invalid_address():
    calls = []
    provider = BalanceProvider(client=mock_client(lambda request: calls.append(request)))
    with pytest.raises(ValidationError):
        await provider.fetch_balances("not-an-address")
    assert calls == []


async def test_balance_service_caches_per_address():
    calls = []

    def handler(request):
        calls.append(request)
        return json_response(ANKR)

    service = BalanceService(BalanceProvider(client=mock_client(handler)), TTLCache(60_000))
    first = await service.get_portfolio(WALLET)
    second = await service.get_portfolio(WALLET.upper().replace("0X", "0x"))

    assert len(calls) == 1
    assert first.cached is False
    assert second.cached is True
    assert second.total_usd == pytest.approx(150)
    assert second.to_dict()["totals"] == {"usdValue": 150, "tokenCount": 2}


async def test_try_get_portfolio_swallows_upstream_failure():
    service = BalanceService(
        BalanceProvider(client=mock_client(lambda request: httpx.Response(503))),
        TTLCache(60_000),
    )
    assert await service.try_get_portfolio(WALLET) is None


# ── Pool data ────────────────────────────────────────────────────────────────


def gecko_pool(dex, base, quote, tvl, volume):
    return {
        "attributes": {
            "address": f"0x{dex}{base}{quote}",
            "dex_name": dex,
            "base_token_symbol": base,
            "quote_token_symbol": quote,
            "base_token_address": "0x9c58bacc331c9aa871afd802db6379a98e80cedb",
            "quote_token_address": "0xe91d153e0b41518a2ce8dd3d7944fa863463a97d",
            "reserve_in_usd": str(tvl),
            "volume_usd": {"h24": str(volume)},
        }
    }


async def test_pool_data_thresholds_and_apy():
    payload = {
        "data": [
            gecko_pool("Honeyswap", "GNO", "WXDAI", 1_000_000, 100_000),
            gecko_pool("Sushiswap", "GNO", "WETH", 100_000, 100_000),    # tvl too small
            gecko_pool("Swapr", "GNO", "USDC", 1_000_000, 5_000),         # volume too small
            gecko_pool("Curve", "USDC", "WXDAI", 10_000_000, 10_000),     # apy below 1%
            gecko_pool("Balancer", "WETH", "GNO", 1_000_000, 400_000),
            {"attributes": {"dex_name": "broken"}},
        ]
    }
    client = PoolDataClient(client=mock_client(lambda request: json_response(payload)))
    strategies = await client.fetch()

    assert [s.id for s in strategies] == ["balancer-weth-gno", "honeyswap-gno-wxdai"]
    honey = strategies[1]
    # 100k * 0.003 * 0.5 * 365 / 1M * 100
    assert honey.apy == pytest.approx(5.475)
    assert honey.strategy_type == "Liquidity Providing"
    assert len(honey.underlying_tokens) == 2


async def test_pool_data_skips_malformed_records():
    payload = {
        "data": [
            "garbage",
            None,
            {"attributes": "x"},
            {"attributes": {**gecko_pool("Swapr", "GNO", "WXDAI", 1, 1)["attributes"],
                            "reserve_in_usd": "n/a"}},
            gecko_pool("Honeyswap", "GNO", "WXDAI", 1_000_000, 100_000),
        ]
    }
    client = PoolDataClient(client=mock_client(lambda request: json_response(payload)))
    strategies = await client.fetch()

    assert [s.id for s in strategies] == ["honeyswap-gno-wxdai"]


async def test_pool_data_call_thresholds_override_defaults():
    payload = {"data": [gecko_pool("Sushiswap", "GNO", "WETH", 100_000, 100_000)]}
    client = PoolDataClient(client=mock_client(lambda request: json_response(payload)))

    assert await client.fetch() == []
    strategies = await client.fetch(min_tvl=50_000)
    assert [s.id for s in strategies] == ["sushiswap-gno-weth"]
