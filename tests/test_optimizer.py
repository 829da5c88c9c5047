"""Tests for the allocation optimizer."""
from __future__ import annotations

import pytest

from pilot.portfolio.optimizer import (
    admissible,
    apply_profile_constraints,
    merge_by_id,
    optimize,
    preliminary_weights,
)
from pilot.strategies.models import RiskLevel, Strategy, StrategyType


def make_strategy(id: str, apy: float, risk: RiskLevel) -> Strategy:
    return Strategy(
        id=id,
        name=id,
        protocol="test",
        asset="GNO",
        strategy_type=StrategyType.YIELD_FARMING,
        apy=apy,
        risk_level=risk,
        tvl_usd=1_000_000,
    )


def mixed() -> list[Strategy]:
    return [
        make_strategy("low", 5.0, RiskLevel.LOW),
        make_strategy("medium", 10.0, RiskLevel.MEDIUM),
        make_strategy("high", 30.0, RiskLevel.HIGH),
    ]


@pytest.mark.parametrize("profile", list(RiskLevel))
def test_allocations_never_exceed_total(profile):
    result = optimize(mixed(), profile, 10_000)
    assert sum(r.percent for r in result.recommendations) <= 100 + 1e-9


def test_high_profile_keeps_high_risk():
    result = optimize(mixed(), RiskLevel.HIGH, 10_000)
    ids = {r.strategy.id for r in result.recommendations}
    assert "high" in ids
    assert sum(r.percent for r in result.recommendations) == pytest.approx(100)


def test_low_profile_zeroes_high_risk():
    result = optimize(mixed(), RiskLevel.LOW, 10_000)
    assert all(r.strategy.risk_level != RiskLevel.HIGH for r in result.recommendations)
    assert {r.strategy.id for r in result.recommendations} == {"low", "medium"}


def test_low_profile_halves_medium():
    weights = apply_profile_constraints([0.5, 0.5], [RiskLevel.LOW, RiskLevel.MEDIUM], RiskLevel.LOW)
    assert weights == pytest.approx([2 / 3, 1 / 3])


def test_medium_profile_scales_high_down():
    weights = apply_profile_constraints([0.5, 0.5], [RiskLevel.LOW, RiskLevel.HIGH], RiskLevel.MEDIUM)
    # high scaled 0.5 → 0.2, then renormalized
    assert weights == pytest.approx([0.5 / 0.7, 0.2 / 0.7])


def test_medium_profile_leaves_small_high_weight():
    weights = apply_profile_constraints([0.9, 0.1], [RiskLevel.LOW, RiskLevel.HIGH], RiskLevel.MEDIUM)
    assert weights == pytest.approx([0.9, 0.1])


def test_all_zeroed_falls_back_without_high_for_low_profile():
    only_high = [make_strategy("h1", 30, RiskLevel.HIGH), make_strategy("h2", 40, RiskLevel.HIGH)]
    result = optimize(only_high, RiskLevel.LOW, 1_000)
    assert result.recommendations == ()


def test_all_zeroed_falls_back_to_pre_constraint_weights():
    weights = apply_profile_constraints([0.0, 0.0], [RiskLevel.LOW, RiskLevel.LOW], RiskLevel.HIGH)
    assert weights == [0.0, 0.0]


def test_zero_returns_use_equal_weights():
    weights = preliminary_weights([0.0, 0.0], [0.05, 0.05], tolerance=5)
    assert weights == pytest.approx([0.5, 0.5])


def test_high_tolerance_boosts_best_return():
    neutral = preliminary_weights([0.05, 0.30], [0.05, 0.30], tolerance=5)
    boosted = preliminary_weights([0.05, 0.30], [0.05, 0.30], tolerance=10)
    assert boosted[1] > neutral[1]


def test_tiny_allocations_dropped():
    strategies = [make_strategy("big", 10.0, RiskLevel.LOW), make_strategy("dust", 0.001, RiskLevel.LOW)]
    result = optimize(strategies, RiskLevel.MEDIUM, 1_000)
    assert [r.strategy.id for r in result.recommendations] == ["big"]
    assert sum(r.percent for r in result.recommendations) < 100


def test_expected_yield_and_amounts():
    result = optimize([make_strategy("only", 5.0, RiskLevel.LOW)], RiskLevel.MEDIUM, 1_000)
    assert result.expected_yield == pytest.approx(5.0)
    payload = result.to_dict()
    assert payload["totalInvestment"] == "1000.00"
    assert payload["expectedAnnualYield"] == "5.00"
    assert payload["recommendations"][0]["recommendedAllocation"] == {"percent": 100.0, "amount": "1000.00"}


def test_empty_input():
    result = optimize([], RiskLevel.HIGH, 500)
    assert result.recommendations == ()
    assert result.expected_yield == 0.0


def test_admissible_by_profile():
    assert [s.id for s in admissible(mixed(), RiskLevel.LOW)] == ["low"]
    assert [s.id for s in admissible(mixed(), RiskLevel.MEDIUM)] == ["low", "medium"]
    assert len(admissible(mixed(), RiskLevel.HIGH)) == 3


def test_merge_by_id_existing_wins():
    base = [make_strategy("a", 1, RiskLevel.LOW)]
    extra = [make_strategy("a", 99, RiskLevel.LOW), make_strategy("b", 2, RiskLevel.LOW)]
    merged = merge_by_id(base, extra)
    assert [(s.id, s.apy) for s in merged] == [("a", 1), ("b", 2)]
