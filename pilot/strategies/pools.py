"""Raw yield-feed pool listing for ``get-pools`` and ``/api/pools``."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from pilot.errors import ValidationError

KNOWN_TOKENS = {
    "0xe91d153e0b41518a2ce8dd3d7944fa863463a97d": "WXDAI",
    "0x6a023ccd1ff6f2045c3309768ead9e68f978f6e1": "WETH",
    "0xddafbb505ad214d7b80b1f830fccc89b60fb7a83": "USDC",
    "0x4ecaba5870353805a9f068101a40e0f32ed605c6": "USDT",
    "0x8e5bbbb09ed1ebde8674cda39a0c169401db4252": "WBTC",
    "0x71850b7e9ee3f13ab46d67167341e4bdc905eef9": "HNY",
}

POOL_RISKS = ("all", "low", "medium", "high")


def token_symbol(address: str) -> str:
    """Known Gnosis token symbol, else a shortened address."""
    lower = address.lower()
    return KNOWN_TOKENS.get(lower) or f"{lower[:4]}...{lower[-4:]}"


def display_risk(pool: dict[str, Any]) -> str:
    if pool.get("ilRisk") == "yes":
        return "high"
    if pool.get("stablecoin") or pool.get("category") == "lending":
        return "low"
    return "medium"


def _risk_bucket(pool: dict[str, Any], risk: str) -> bool:
    il = pool.get("ilRisk")
    stable = bool(pool.get("stablecoin"))
    if risk == "low":
        return il == "no" and stable
    if risk == "medium":
        return il == "no" and not stable
    if risk == "high":
        return il == "yes"
    return True


def _number(value: Any) -> float | None:
    """Numeric feed field, or None when absent or not a number."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _between(value: Any, low: float | None, high: float | None) -> bool:
    if low is None and high is None:
        return True
    value = _number(value)
    if value is None:
        return False
    return (low is None or value >= low) and (high is None or value <= high)


@dataclass(frozen=True)
class PoolQuery:
    project: str | None = None
    symbol: str | None = None
    min_tvl: float | None = None
    max_tvl: float | None = None
    min_apy: float | None = None
    max_apy: float | None = None
    min_apy_mean_30d: float | None = None
    max_apy_mean_30d: float | None = None
    asset: str | None = None
    stablecoin: bool | None = None
    il_risk: str | None = None
    exposure: str | None = None
    predicted_class: str | None = None
    min_confidence: float | None = None
    risk: str = "all"
    limit: int = 50
    offset: int = 0

    def __post_init__(self) -> None:
        if self.risk not in POOL_RISKS:
            raise ValidationError(f"risk must be one of {', '.join(POOL_RISKS)}")
        if self.limit < 0 or self.offset < 0:
            raise ValidationError("limit and offset must be non-negative")

    def matches(self, pool: dict[str, Any]) -> bool:
        symbol = str(pool.get("symbol") or "")
        if self.project and str(pool.get("project") or "").lower() != self.project.lower():
            return False
        if self.symbol and self.symbol.lower() not in symbol.lower():
            return False
        if not _between(pool.get("tvlUsd"), self.min_tvl, self.max_tvl):
            return False
        if not _between(pool.get("apy"), self.min_apy, self.max_apy):
            return False
        if not _between(pool.get("apyMean30d"), self.min_apy_mean_30d, self.max_apy_mean_30d):
            return False
        if self.asset:
            needle = self.asset.lower()
            underlying = pool.get("underlyingTokens") or []
            if needle not in symbol.lower() and not any(
                needle in token_symbol(t).lower() for t in underlying if isinstance(t, str)
            ):
                return False
        if self.stablecoin is not None and bool(pool.get("stablecoin")) != self.stablecoin:
            return False
        if self.il_risk and str(pool.get("ilRisk") or "").lower() != self.il_risk.lower():
            return False
        if self.exposure and str(pool.get("exposure") or "").lower() != self.exposure.lower():
            return False
        predictions = pool.get("predictions") or {}
        if self.predicted_class and self.predicted_class.lower() not in str(
            predictions.get("predictedClass") or ""
        ).lower():
            return False
        if self.min_confidence is not None:
            confidence = _number(predictions.get("binnedConfidence"))
            if confidence is None or confidence < self.min_confidence:
                return False
        return _risk_bucket(pool, self.risk)


def decorate(pool: dict[str, Any]) -> dict[str, Any]:
    underlying = pool.get("underlyingTokens") or []
    return {
        **pool,
        "id": pool.get("pool"),
        "name": f"{pool.get('project')} {pool.get('symbol')}",
        "assets": [token_symbol(t) for t in underlying if isinstance(t, str)] or [pool.get("symbol")],
        "risk": display_risk(pool),
    }


def summarize(pool: dict[str, Any]) -> dict[str, Any]:
    underlying = pool.get("underlyingTokens") or []
    return {
        "id": pool.get("pool"),
        "name": f"{pool.get('project')} {pool.get('symbol')}",
        "apy": f"{_number(pool.get('apy')) or 0.0:.2f}",
        "tvl": pool.get("tvlUsd"),
        "assets": [token_symbol(t) for t in underlying if isinstance(t, str)] or [pool.get("symbol")],
        "risk": display_risk(pool),
        "project": pool.get("project"),
    }


def select_pools(pools: Sequence[dict[str, Any]], query: PoolQuery) -> list[dict[str, Any]]:
    matched = [decorate(p) for p in pools if query.matches(p)]
    return matched[query.offset:query.offset + query.limit]
