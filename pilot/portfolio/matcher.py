"""PortfolioMatcher: scores strategies against a wallet's holdings.

score = 10 × matched tokens
      + risk bonus  (low 15, medium 10, high 5)
      + APY bonus   (>20% 15, >10% 10, >5% 5)
      + share of the portfolio held in matched tokens, capped at 50
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Sequence

from pilot.portfolio.balances import WalletBalance
from pilot.strategies.models import PortfolioMatch, RiskLevel, Strategy
from pilot.strategies.normalizer import split_symbols

logger = logging.getLogger(__name__)

RISK_BONUS = {RiskLevel.LOW: 15, RiskLevel.MEDIUM: 10, RiskLevel.HIGH: 5}
MAX_PORTFOLIO_POINTS = 50.0


def apy_bonus(apy: float) -> int:
    if apy > 20:
        return 15
    if apy > 10:
        return 10
    if apy > 5:
        return 5
    return 0


def match_tokens(strategy: Strategy, balances: Sequence[WalletBalance]) -> list[str]:
    """Wallet symbols that appear in the strategy's asset label or underlying list."""
    held = {b.token.symbol.upper(): b.token.symbol for b in balances}
    by_address = {b.token.address.lower(): b.token.symbol for b in balances}

    matched: list[str] = []
    for symbol in split_symbols(strategy.asset):
        if symbol.upper() in held and held[symbol.upper()] not in matched:
            matched.append(held[symbol.upper()])
    for token in strategy.underlying_tokens:
        symbol = by_address.get(token.lower()) or held.get(token.upper())
        if symbol and symbol not in matched:
            matched.append(symbol)
    return matched


def match_score(strategy: Strategy, matched: Sequence[str], balances: Sequence[WalletBalance]) -> float:
    score = 10.0 * len(matched) + RISK_BONUS[strategy.risk_level] + apy_bonus(strategy.apy)

    total = sum(b.usd_value for b in balances)
    if total > 0:
        wanted = {s.upper() for s in matched}
        matching_value = sum(b.usd_value for b in balances if b.token.symbol.upper() in wanted)
        score += min(matching_value / total * 100, MAX_PORTFOLIO_POINTS)
    return score


def recommendation_reason(matched: Sequence[str]) -> str:
    if len(matched) > 1:
        return f"This strategy uses multiple tokens from your portfolio ({', '.join(matched)})."
    return f"This strategy uses {matched[0]} which is in your portfolio."


def annotate(strategies: Sequence[Strategy], balances: Sequence[WalletBalance]) -> list[Strategy]:
    """Return copies carrying a PortfolioMatch where any holding intersects."""
    annotated: list[Strategy] = []
    hits = 0
    for strategy in strategies:
        matched = match_tokens(strategy, balances)
        if not matched:
            annotated.append(strategy)
            continue
        hits += 1
        annotated.append(
            dataclasses.replace(
                strategy,
                portfolio_match=PortfolioMatch(
                    matching_tokens=tuple(matched),
                    match_score=match_score(strategy, matched, balances),
                    recommendation_reason=recommendation_reason(matched),
                ),
            )
        )
    logger.info("Portfolio matched %d of %d strategies", hits, len(strategies))
    return annotated


def rank(strategies: Sequence[Strategy], with_portfolio: bool) -> list[Strategy]:
    """Stable ordering; ties keep discovery order.

    With a portfolio: matched strategies first by descending score, then the
    rest by descending APY. Without: descending APY only.
    """
    if not with_portfolio:
        return sorted(strategies, key=lambda s: -s.apy)

    def key(s: Strategy) -> tuple[int, float]:
        if s.portfolio_match is not None:
            return (0, -s.portfolio_match.match_score)
        return (1, -s.apy)

    return sorted(strategies, key=key)
