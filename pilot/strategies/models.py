"""Canonical strategy record shared by every source."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any


class StrategyType(StrEnum):
    LENDING = "Lending"
    LIQUIDITY_PROVIDING = "Liquidity Providing"
    STAKING = "Staking"
    YIELD_FARMING = "Yield Farming"
    STABLE_SWAP = "Stable Swap"


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def format_tvl(tvl_usd: float) -> str:
    """Human-readable magnitude for display only."""
    if tvl_usd >= 1_000_000_000:
        return f"${tvl_usd / 1_000_000_000:.2f}B"
    if tvl_usd >= 1_000_000:
        return f"${tvl_usd / 1_000_000:.2f}M"
    if tvl_usd >= 1_000:
        return f"${tvl_usd / 1_000:.2f}K"
    return f"${tvl_usd:.2f}"


@dataclass(frozen=True)
class Prediction:
    predicted_class: str
    probability: float | None = None
    binned_confidence: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "predictedClass": self.predicted_class,
            "predictedProbability": self.probability,
            "binnedConfidence": self.binned_confidence,
        }


@dataclass(frozen=True)
class PortfolioMatch:
    matching_tokens: tuple[str, ...]
    match_score: float
    recommendation_reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "matchingTokens": list(self.matching_tokens),
            "matchScore": self.match_score,
            "recommendationReason": self.recommendation_reason,
        }


@dataclass(frozen=True)
class Strategy:
    """A normalized yield opportunity.

    Frozen: annotation with a portfolio match produces a copy, so cached
    snapshots are never mutated.
    """

    id: str
    name: str
    protocol: str
    asset: str
    strategy_type: StrategyType
    apy: float
    risk_level: RiskLevel
    tvl_usd: float
    # First entry is the primary token for transaction building
    underlying_tokens: tuple[str, ...] = ()
    reward_tokens: tuple[str, ...] = ()
    exposure: str | None = None
    prediction: Prediction | None = None
    source_id: str | None = None
    description: str = ""
    link: str = "https://defillama.com"
    network: str = "gnosis"
    tags: tuple[str, ...] = ()
    min_investment: str = "1 xDAI"
    apy_base: float | None = None
    apy_reward: float | None = None
    apy_mean_30d: float | None = None
    details: dict[str, Any] | None = None
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    portfolio_match: PortfolioMatch | None = None

    @property
    def tvl(self) -> str:
        return format_tvl(self.tvl_usd)

    @property
    def primary_token(self) -> str | None:
        return self.underlying_tokens[0] if self.underlying_tokens else None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "protocol": self.protocol,
            "asset": self.asset,
            "type": str(self.strategy_type),
            "description": self.description,
            "apy": f"{self.apy:.2f}%",
            "apyValue": self.apy,
            "riskLevel": str(self.risk_level),
            "tvl": self.tvl,
            "tvlUsd": self.tvl_usd,
            "link": self.link,
            "network": self.network,
            "tags": list(self.tags),
            "minInvestment": self.min_investment,
            "lastUpdated": self.last_updated.isoformat(),
            "apyBase": self.apy_base,
            "apyReward": self.apy_reward,
            "apyMean30d": self.apy_mean_30d,
            "exposure": self.exposure,
            "underlyingTokens": list(self.underlying_tokens),
            "rewardTokens": list(self.reward_tokens),
            "pool": self.source_id,
            "predictions": self.prediction.to_dict() if self.prediction else None,
        }
        if self.portfolio_match is not None:
            data["portfolioMatch"] = self.portfolio_match.to_dict()
        if self.details is not None:
            data["details"] = self.details
        return data
