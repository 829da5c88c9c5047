"""StrategyNormalizer: turns raw yield-feed and subgraph records into Strategy records.

Risk rule (deterministic):
  low    iff stablecoin and impermanent-loss risk is "no"
  high   iff apy > 20 or IL risk is "high" or outlook is "bad"
  medium otherwise

Strategy type comes from protocol keywords, then the symbol shape.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from pilot.strategies.models import Prediction, RiskLevel, Strategy, StrategyType

logger = logging.getLogger(__name__)

LENDING_PROTOCOLS = {"aave", "aave-v2", "aave-v3", "agave", "compound", "sparklend", "realt-rmm"}
STABLE_SYMBOLS = {"USDC", "USDT", "DAI", "XDAI", "WXDAI", "SDAI", "EURE", "USDC.E", "GHO", "USDS"}
PAIR_SEPARATORS = ("-", "/")

PROJECT_URLS = {
    "agave": "https://app.agave.finance",
    "honeyswap": "https://app.honeyswap.org",
    "swapr": "https://swapr.eth.link",
    "curve": "https://curve.fi",
    "curve-dex": "https://curve.fi",
    "symmetric": "https://symmetric.finance",
    "sushiswap": "https://app.sushi.com/swap",
    "balancer": "https://app.balancer.fi/#/gnosis-chain",
    "balancer-v2": "https://app.balancer.fi/#/gnosis-chain",
}


def risk_level(apy: float, il_risk: str, outlook: str, stablecoin: bool) -> RiskLevel:
    if stablecoin and il_risk == "no":
        return RiskLevel.LOW
    if apy > 20 or il_risk == "high" or outlook == "bad":
        return RiskLevel.HIGH
    return RiskLevel.MEDIUM


def strategy_type(project: str, symbol: str) -> StrategyType:
    project_lower = project.lower()
    if "lend" in project_lower or project_lower in LENDING_PROTOCOLS:
        return StrategyType.LENDING
    if any(sep in symbol for sep in PAIR_SEPARATORS):
        return StrategyType.LIQUIDITY_PROVIDING
    if "stake" in project_lower or "vault" in project_lower:
        return StrategyType.STAKING
    return StrategyType.YIELD_FARMING


def strategy_tags(project: str, symbol: str, stablecoin: bool) -> tuple[str, ...]:
    tags: list[str] = []
    if stablecoin or any(s in symbol.upper() for s in ("DAI", "USDC", "USDT")):
        tags.append("stablecoin")
    if any(sep in symbol for sep in PAIR_SEPARATORS):
        tags.append("lp")
    project_lower = project.lower()
    if "lend" in project_lower or project_lower in LENDING_PROTOCOLS:
        tags.append("lending")
    if "stake" in project_lower:
        tags.append("staking")
    return tuple(tags)


def split_symbols(label: str) -> list[str]:
    """'GNO-WXDAI' → ['GNO', 'WXDAI']"""
    return [part for part in re.split(r"[-/\s]+", label) if part]


def is_stable_symbol(symbol: str) -> bool:
    return symbol.upper() in STABLE_SYMBOLS


def project_url(project: str) -> str:
    return PROJECT_URLS.get(project.lower(), "https://defillama.com")


def slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]", "-", text.lower())


def normalize(raw_pools: Iterable[dict[str, Any]], network: str = "gnosis") -> list[Strategy]:
    """Normalize yield-feed pools, skipping malformed records.

    Ids are unique within one pass; a duplicate upstream id keeps the first
    record seen.
    """
    strategies: list[Strategy] = []
    seen: set[str] = set()
    skipped = 0
    for pool in raw_pools:
        try:
            strategy = _pool_to_strategy(pool, network)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            skipped += 1
            logger.debug("Skipping malformed pool %r: %s", pool.get("pool") if isinstance(pool, dict) else pool, exc)
            continue
        if strategy.id in seen:
            logger.debug("Skipping duplicate strategy id %s", strategy.id)
            continue
        seen.add(strategy.id)
        strategies.append(strategy)
    if skipped:
        logger.info("Normalizer skipped %d malformed pool(s)", skipped)
    return strategies


def _pool_to_strategy(pool: dict[str, Any], network: str) -> Strategy:
    project = str(pool["project"])
    symbol = str(pool["symbol"])
    apy = float(pool["apy"])
    tvl = float(pool.get("tvlUsd") or 0)
    il_risk = pool.get("ilRisk") or pool.get("il_risk") or "medium"
    outlook = pool.get("outlook") or "neutral"
    stablecoin = bool(pool.get("stablecoin") or False)
    kind = strategy_type(project, symbol)

    predictions = pool.get("predictions") or None
    prediction = None
    if predictions and predictions.get("predictedClass"):
        prediction = Prediction(
            predicted_class=str(predictions["predictedClass"]),
            probability=_opt_float(predictions.get("predictedProbability")),
            binned_confidence=_opt_float(predictions.get("binnedConfidence")),
        )

    pool_id = pool.get("pool")
    return Strategy(
        id=str(pool_id) if pool_id else f"{project}-{slug(symbol)}",
        name=f"{project} {symbol}",
        protocol=project,
        asset=symbol,
        strategy_type=kind,
        apy=apy,
        risk_level=risk_level(apy, il_risk, outlook, stablecoin),
        tvl_usd=tvl,
        underlying_tokens=tuple(pool.get("underlyingTokens") or ()),
        reward_tokens=tuple(pool.get("rewardTokens") or ()),
        exposure=pool.get("exposure"),
        prediction=prediction,
        source_id=pool_id,
        description=f"{kind} for {symbol} on {project}",
        link=pool.get("url") or project_url(project),
        network=network,
        tags=strategy_tags(project, symbol, stablecoin),
        apy_base=_opt_float(pool.get("apyBase")),
        apy_reward=_opt_float(pool.get("apyReward")),
        apy_mean_30d=_opt_float(pool.get("apyMean30d")),
    )


def _opt_float(value: Any) -> float | None:
    return None if value is None else float(value)


# ── Subgraph schema families ────────────────────────────────────────────────


def normalize_lending_reserves(reserves: Iterable[dict[str, Any]], protocol: str) -> list[Strategy]:
    """Aave-style ``reserves`` records (Agave)."""
    return _normalize_records(reserves, protocol, _reserve_to_strategy)


def normalize_liquidity_pools(pools: Iterable[dict[str, Any]], protocol: str) -> list[Strategy]:
    """Messari-style ``liquidityPools`` records (Honeyswap, Sushiswap)."""
    return _normalize_records(pools, protocol, _liquidity_pool_to_strategy)


def normalize_weighted_pools(pools: Iterable[dict[str, Any]], protocol: str) -> list[Strategy]:
    """Balancer-style ``pools`` records (Balancer, Symmetric)."""
    return _normalize_records(pools, protocol, _weighted_pool_to_strategy)


def _normalize_records(records, protocol: str, convert) -> list[Strategy]:
    strategies: list[Strategy] = []
    seen: set[str] = set()
    for record in records:
        try:
            strategy = convert(record, protocol)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.debug("Skipping malformed %s record: %s", protocol, exc)
            continue
        if strategy.id in seen:
            continue
        seen.add(strategy.id)
        strategies.append(strategy)
    return strategies


def _reserve_to_strategy(reserve: dict[str, Any], protocol: str) -> Strategy:
    symbol = str(reserve["symbol"])
    apy = float(reserve["liquidityRate"]) * 100
    stablecoin = is_stable_symbol(symbol)
    display = protocol.capitalize()
    return Strategy(
        id=f"{protocol}-{symbol.lower()}",
        name=f"{display} {symbol} Lending",
        protocol=display,
        asset=symbol,
        strategy_type=StrategyType.LENDING,
        apy=apy,
        risk_level=risk_level(apy, "no", "neutral", stablecoin),
        tvl_usd=float(reserve.get("totalLiquidity") or 0),
        underlying_tokens=(str(reserve["underlyingAsset"]),),
        exposure="single",
        source_id=reserve.get("id"),
        description=f"Deposit {symbol} on {display} to earn interest",
        link=project_url(protocol),
        tags=("lending", "stablecoin" if stablecoin else "volatile"),
    )


def _liquidity_pool_to_strategy(pool: dict[str, Any], protocol: str) -> Strategy:
    tokens = pool["inputTokens"]
    symbols = [str(t["symbol"]) for t in tokens]
    asset = "-".join(symbols)
    tvl = float(pool.get("totalValueLockedUSD") or 0)
    daily_revenue = float(pool.get("dailyTotalRevenueUSD") or 0)
    apy = daily_revenue * 365 * 100 / tvl if tvl > 0 else 0.0
    stablecoin = all(is_stable_symbol(s) for s in symbols)
    display = protocol.capitalize()
    return Strategy(
        id=f"{protocol}-{pool['id']}",
        name=f"{display} {asset} LP",
        protocol=display,
        asset=asset,
        strategy_type=StrategyType.LIQUIDITY_PROVIDING,
        apy=apy,
        risk_level=risk_level(apy, "no" if stablecoin else "yes", "neutral", stablecoin),
        tvl_usd=tvl,
        underlying_tokens=tuple(str(t["id"]) for t in tokens),
        exposure="multi",
        source_id=str(pool["id"]),
        description=f"Provide liquidity for {asset} pair on {display}",
        link=project_url(protocol),
        tags=strategy_tags(protocol, asset, stablecoin),
    )


def _weighted_pool_to_strategy(pool: dict[str, Any], protocol: str) -> Strategy:
    tokens = pool["tokens"]
    symbols = [str(t["symbol"]) for t in tokens]
    asset = "/".join(symbols)
    tvl = float(pool.get("totalLiquidity") or 0)
    # 1% of cumulative swap fees per day, annualized
    yearly_fees = float(pool.get("totalSwapFee") or 0) * 0.01 * 365
    apy = yearly_fees / tvl * 100 if tvl > 0 else 0.0
    stablecoin = all(is_stable_symbol(s) for s in symbols)
    kind = StrategyType.STABLE_SWAP if stablecoin else StrategyType.LIQUIDITY_PROVIDING
    display = protocol.capitalize()
    pool_type = str(pool.get("poolType") or "Weighted")
    return Strategy(
        id=f"{protocol}-{pool['id']}",
        name=pool.get("name") or f"{display} {asset} Pool",
        protocol=display,
        asset=asset,
        strategy_type=kind,
        apy=apy,
        risk_level=risk_level(apy, "no" if stablecoin else "yes", "neutral", stablecoin),
        tvl_usd=tvl,
        underlying_tokens=tuple(str(t.get("address") or t["id"]) for t in tokens),
        exposure="multi",
        source_id=str(pool["id"]),
        description=f"Provide liquidity for {asset} on {display} {pool_type} pool to earn trading fees",
        link=project_url(protocol),
        tags=strategy_tags(protocol, asset, stablecoin) + (pool_type.lower(),),
    )
