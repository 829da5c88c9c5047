"""AllocationOptimizer: heuristic risk-adjusted weighting.

Not a full mean-variance solve. Each strategy gets a pseudo-Sharpe weight
(return / assumed volatility), the top three are nudged toward the profile's
tolerance, then hard profile constraints are applied.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from pilot.strategies.models import RiskLevel, Strategy

logger = logging.getLogger(__name__)

VOLATILITY = {RiskLevel.LOW: 0.05, RiskLevel.MEDIUM: 0.15, RiskLevel.HIGH: 0.30}
TOLERANCE = {RiskLevel.LOW: 2, RiskLevel.MEDIUM: 5, RiskLevel.HIGH: 10}
NEUTRAL_TOLERANCE = 5
BOOSTED = 3
MEDIUM_PROFILE_HIGH_CAP = 0.2
MIN_ALLOCATION_PERCENT = 0.5

# Strategies each profile may hold at all
ADMISSIBLE = {
    RiskLevel.LOW: {RiskLevel.LOW},
    RiskLevel.MEDIUM: {RiskLevel.LOW, RiskLevel.MEDIUM},
    RiskLevel.HIGH: {RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH},
}


@dataclass(frozen=True)
class AllocationRecommendation:
    strategy: Strategy
    percent: float
    amount_usd: float

    def to_dict(self) -> dict[str, Any]:
        data = self.strategy.to_dict()
        data["recommendedAllocation"] = {"percent": self.percent, "amount": f"{self.amount_usd:.2f}"}
        return data


@dataclass(frozen=True)
class OptimizationResult:
    risk_profile: RiskLevel
    total_investment: float
    expected_yield: float
    recommendations: tuple[AllocationRecommendation, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "riskProfile": str(self.risk_profile),
            "totalInvestment": f"{self.total_investment:.2f}",
            "expectedAnnualYield": f"{self.expected_yield:.2f}",
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


def admissible(strategies: Sequence[Strategy], profile: RiskLevel) -> list[Strategy]:
    allowed = ADMISSIBLE[profile]
    return [s for s in strategies if s.risk_level in allowed]


def _normalize(weights: list[float]) -> list[float] | None:
    total = sum(weights)
    if total <= 0:
        return None
    return [w / total for w in weights]


def preliminary_weights(returns: Sequence[float], volatilities: Sequence[float], tolerance: int) -> list[float]:
    weights = _normalize([max(0.0, r / v) for r, v in zip(returns, volatilities)])
    if weights is None:
        # No positive return anywhere: start from equal weights
        weights = [1.0 / len(returns)] * len(returns)

    if tolerance > NEUTRAL_TOLERANCE:
        ranking = sorted(range(len(returns)), key=lambda i: -returns[i])
    elif tolerance < NEUTRAL_TOLERANCE:
        ranking = sorted(range(len(volatilities)), key=lambda i: volatilities[i])
    else:
        ranking = []

    shift = abs(tolerance - NEUTRAL_TOLERANCE) / 10
    for rank, idx in enumerate(ranking[:BOOSTED]):
        weights[idx] += shift * (0.3 - rank * 0.1)

    return _normalize(weights) or weights


def apply_profile_constraints(
    weights: Sequence[float],
    risks: Sequence[RiskLevel],
    profile: RiskLevel,
) -> list[float]:
    adjusted = list(weights)
    if profile == RiskLevel.LOW:
        for i, risk in enumerate(risks):
            if risk == RiskLevel.HIGH:
                adjusted[i] = 0.0
            elif risk == RiskLevel.MEDIUM:
                adjusted[i] *= 0.5
    elif profile == RiskLevel.MEDIUM:
        high = sum(w for w, r in zip(adjusted, risks) if r == RiskLevel.HIGH)
        if high > MEDIUM_PROFILE_HIGH_CAP:
            scale = MEDIUM_PROFILE_HIGH_CAP / high
            adjusted = [w * scale if r == RiskLevel.HIGH else w for w, r in zip(adjusted, risks)]

    normalized = _normalize(adjusted)
    if normalized is not None:
        return normalized

    logger.warning("Profile constraints zeroed every weight; keeping pre-constraint weights")
    fallback = list(weights)
    if profile == RiskLevel.LOW:
        # High-risk positions stay excluded for the low profile even here
        fallback = [0.0 if r == RiskLevel.HIGH else w for w, r in zip(fallback, risks)]
    return _normalize(fallback) or [0.0] * len(fallback)


def optimize(
    strategies: Sequence[Strategy],
    risk_profile: RiskLevel,
    total_investment_usd: float,
) -> OptimizationResult:
    if not strategies:
        logger.warning("Nothing to optimize for profile %s", risk_profile)
        return OptimizationResult(risk_profile, total_investment_usd, 0.0, ())

    returns = [s.apy / 100 for s in strategies]
    volatilities = [VOLATILITY[s.risk_level] for s in strategies]
    risks = [s.risk_level for s in strategies]

    weights = preliminary_weights(returns, volatilities, TOLERANCE[risk_profile])
    weights = apply_profile_constraints(weights, risks, risk_profile)

    expected_yield = sum(w * r for w, r in zip(weights, returns)) * 100
    recommendations = tuple(
        AllocationRecommendation(strategy=s, percent=w * 100, amount_usd=total_investment_usd * w)
        for s, w in zip(strategies, weights)
        if w * 100 > MIN_ALLOCATION_PERCENT
    )
    logger.info(
        "Optimized %d strategies for %s profile: %d allocations, %.2f%% expected yield",
        len(strategies), risk_profile, len(recommendations), expected_yield,
    )
    return OptimizationResult(risk_profile, total_investment_usd, expected_yield, recommendations)


def merge_by_id(base: Sequence[Strategy], extra: Sequence[Strategy]) -> list[Strategy]:
    """Append ``extra`` entries whose id is not already present; existing ids win."""
    seen = {s.id for s in base}
    merged = list(base)
    for strategy in extra:
        if strategy.id not in seen:
            seen.add(strategy.id)
            merged.append(strategy)
    return merged
