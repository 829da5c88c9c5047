"""Query filters for strategy listings."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Sequence, TypeVar

from pilot.errors import ValidationError
from pilot.strategies.models import RiskLevel, Strategy

T = TypeVar("T")

SOURCES = ("defillama", "subgraph", "all")
DEFAULT_LIMIT = 50


@dataclass(frozen=True)
class StrategyQuery:
    risk_level: RiskLevel | None = None
    min_apy: float | None = None
    max_apy: float | None = None
    protocol: str | None = None
    address: str | None = None
    min_apy_mean_30d: float | None = None
    max_apy_mean_30d: float | None = None
    asset: str | None = None
    exposure: str | None = None
    predicted_class: str | None = None
    source: str = "defillama"
    limit: int = DEFAULT_LIMIT
    offset: int = 0
    skip_cache: bool = False

    def __post_init__(self) -> None:
        if self.source not in SOURCES:
            raise ValidationError(f"source must be one of {', '.join(SOURCES)}")
        if self.limit < 0 or self.offset < 0:
            raise ValidationError("limit and offset must be non-negative")

    def signature(self) -> dict:
        """Every parameter that shapes the result set; pagination excluded."""
        params = asdict(self)
        for key in ("limit", "offset", "skip_cache"):
            params.pop(key)
        if params["address"]:
            params["address"] = params["address"].lower()
        return params

    def matches(self, strategy: Strategy) -> bool:
        if self.risk_level is not None and strategy.risk_level != self.risk_level:
            return False
        if self.min_apy is not None and strategy.apy < self.min_apy:
            return False
        if self.max_apy is not None and strategy.apy > self.max_apy:
            return False
        if self.min_apy_mean_30d is not None and (
            strategy.apy_mean_30d is None or strategy.apy_mean_30d < self.min_apy_mean_30d
        ):
            return False
        if self.max_apy_mean_30d is not None and (
            strategy.apy_mean_30d is None or strategy.apy_mean_30d > self.max_apy_mean_30d
        ):
            return False
        if self.protocol and strategy.protocol.lower() != self.protocol.lower():
            return False
        if self.asset:
            needle = self.asset.lower()
            if needle not in strategy.asset.lower() and not any(
                needle in token.lower() for token in strategy.underlying_tokens
            ):
                return False
        if self.exposure and (strategy.exposure or "").lower() != self.exposure.lower():
            return False
        if self.predicted_class:
            if strategy.prediction is None:
                return False
            if self.predicted_class.lower() not in strategy.prediction.predicted_class.lower():
                return False
        return True


def apply_filters(strategies: Sequence[Strategy], query: StrategyQuery) -> list[Strategy]:
    return [s for s in strategies if query.matches(s)]


def paginate(items: Sequence[T], limit: int, offset: int) -> list[T]:
    return list(items[offset:offset + limit])


def parse_risk_level(value: str | None) -> RiskLevel | None:
    """'all' and empty mean no filter."""
    if not value or value == "all":
        return None
    try:
        return RiskLevel(value.lower())
    except ValueError:
        raise ValidationError("riskLevel must be one of low, medium, high") from None
