"""TransactionBuilder: strategy + action + amount → ordered unsigned calls.

Approvals are always unlimited (MAX_UINT256) and always precede the call
they authorize. Native-token positions skip the approval and carry the
amount as call value instead. Combinations that are not implemented raise
instead of emitting a partial or wrong call.

Known simplification: AMM liquidity adds use the same amount for both legs
with zero minimums.
"""
from __future__ import annotations

import logging
import time
from decimal import Decimal, InvalidOperation, localcontext
from typing import Callable

from pilot.config import settings
from pilot.errors import (
    ActionNotImplemented,
    InsufficientTokenData,
    MissingTokenData,
    ValidationError,
)
from pilot.portfolio.balances import require_address
from pilot.strategies.models import Strategy, StrategyType
from pilot.transactions import abi
from pilot.transactions.models import Action, StepKind, TransactionBatch, TransactionStep
from pilot.transactions.registry import Family, ProtocolEntry, ProtocolRegistry

logger = logging.getLogger(__name__)

ENTRY_ACTIONS = {Action.ENTER, Action.DEPOSIT}
UNIMPLEMENTED_ACTIONS = {Action.EXIT, Action.WITHDRAW, Action.REMOVE_LIQUIDITY, Action.UNSTAKE}
LIQUIDITY_TYPES = {StrategyType.LIQUIDITY_PROVIDING, StrategyType.STABLE_SWAP}


def parse_action(value: str | None) -> Action:
    if not value:
        raise ValidationError("action is required")
    for action in Action:
        if action.value.lower() == value.lower():
            return action
    raise ValidationError(
        f"Invalid action: {value}. Must be one of: {', '.join(a.value for a in Action)}"
    )


def to_minor_units(amount: str | Decimal | float, decimals: int) -> int:
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValidationError(f"amount must be a decimal number, got {amount!r}") from None
    if not value.is_finite() or value <= 0:
        raise ValidationError("amount must be greater than zero")
    with localcontext(prec=100):
        scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValidationError(f"amount {amount} has more than {decimals} decimal places")
    units = int(scaled)
    if units > abi.MAX_UINT256:
        raise ValidationError("amount exceeds the uint256 range")
    return units


class TransactionBuilder:
    def __init__(
        self,
        registry: ProtocolRegistry,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.registry = registry
        self._clock = clock

    def build(
        self,
        strategy: Strategy,
        action: str | Action,
        amount: str | Decimal | float,
        user_address: str,
        slippage_tolerance: float | None = None,
    ) -> TransactionBatch:
        action = action if isinstance(action, Action) else parse_action(action)
        require_address(user_address, "userAddress")
        if slippage_tolerance is not None and not 0 <= slippage_tolerance <= 100:
            raise ValidationError("slippageTolerance must be between 0 and 100")

        if action in UNIMPLEMENTED_ACTIONS:
            raise ActionNotImplemented(str(action), str(strategy.strategy_type))
        if action == Action.ADD_LIQUIDITY and strategy.strategy_type not in LIQUIDITY_TYPES:
            raise ActionNotImplemented(str(action), str(strategy.strategy_type))

        entry = self.registry.resolve(strategy.protocol)
        primary = strategy.primary_token
        if not primary:
            raise MissingTokenData(f"Strategy {strategy.id} has no underlying token addresses")

        amount_wei = to_minor_units(amount, self.registry.decimals(primary))

        if action == Action.STAKE:
            steps = self._staking(entry, primary, amount_wei)
        else:
            steps = self._entry(strategy, entry, primary, amount, amount_wei, user_address)

        batch = TransactionBatch(
            strategy_id=strategy.id,
            protocol=strategy.protocol,
            strategy_type=str(strategy.strategy_type),
            action=action,
            user_address=user_address,
            chain_id=self.registry.chain_id,
            steps=tuple(steps),
            slippage_tolerance=slippage_tolerance,
        )
        logger.info(
            "Built %d-step %s batch for %s (%s)",
            len(batch.steps), action, strategy.id, entry.key,
        )
        return batch

    # ── Entry paths ──────────────────────────────────────────────────────────

    def _entry(
        self,
        strategy: Strategy,
        entry: ProtocolEntry,
        primary: str,
        amount: str | Decimal | float,
        amount_wei: int,
        user: str,
    ) -> list[TransactionStep]:
        kind = strategy.strategy_type
        if kind == StrategyType.LENDING:
            return self._lending(entry, primary, amount_wei, user)
        if kind in LIQUIDITY_TYPES:
            if entry.family == Family.WEIGHTED:
                return self._weighted_join(strategy, primary, amount_wei, user)
            if entry.family == Family.STABLE:
                return self._stable_deposit(entry, primary, amount_wei)
            if entry.family == Family.AMM:
                return self._amm_liquidity(strategy, entry, primary, amount, amount_wei, user)
            raise ActionNotImplemented("addLiquidity", f"{kind} ({entry.family})")
        if kind == StrategyType.STAKING:
            return self._staking(entry, primary, amount_wei)
        return self._generic_deposit(entry, primary, amount_wei)

    def _approval(self, token: str, spender: str) -> TransactionStep:
        return TransactionStep(StepKind.APPROVAL, abi.checksum(token), abi.approve(spender))

    def _single_token_call(self, target: str, primary: str, amount_wei: int, data: str) -> list[TransactionStep]:
        native = self.registry.is_native(primary)
        steps = [] if native else [self._approval(primary, target)]
        steps.append(
            TransactionStep(StepKind.PROTOCOL_CALL, abi.checksum(target), data, amount_wei if native else 0)
        )
        return steps

    def _lending(self, entry: ProtocolEntry, primary: str, amount_wei: int, user: str) -> list[TransactionStep]:
        asset = self.registry.wrapped_native if self.registry.is_native(primary) else primary
        data = abi.lending_supply(entry.lending_function, asset, amount_wei, user)
        return self._single_token_call(entry.address, primary, amount_wei, data)

    def _staking(self, entry: ProtocolEntry, primary: str, amount_wei: int) -> list[TransactionStep]:
        return self._single_token_call(self.registry.target(entry), primary, amount_wei, abi.stake(amount_wei))

    def _generic_deposit(self, entry: ProtocolEntry, primary: str, amount_wei: int) -> list[TransactionStep]:
        return self._single_token_call(self.registry.target(entry), primary, amount_wei, abi.deposit(amount_wei))

    def _stable_deposit(self, entry: ProtocolEntry, primary: str, amount_wei: int) -> list[TransactionStep]:
        return self._single_token_call(entry.address, primary, amount_wei, abi.stable_add_liquidity(amount_wei))

    def _amm_liquidity(
        self,
        strategy: Strategy,
        entry: ProtocolEntry,
        token_a: str,
        amount: str | Decimal | float,
        amount_a: int,
        user: str,
    ) -> list[TransactionStep]:
        if len(strategy.underlying_tokens) < 2 or not strategy.underlying_tokens[1]:
            raise InsufficientTokenData(
                f"Liquidity providing strategy {strategy.id} requires at least 2 tokens"
            )
        token_b = strategy.underlying_tokens[1]
        a_native = self.registry.is_native(token_a)
        b_native = self.registry.is_native(token_b)
        router = entry.address
        deadline = int(self._clock()) + settings.deadline_seconds

        steps: list[TransactionStep] = []
        if not a_native:
            steps.append(self._approval(token_a, router))
        if not a_native and not b_native:
            steps.append(self._approval(token_b, router))

        if a_native or b_native:
            token = token_b if a_native else token_a
            token_amount = to_minor_units(amount, self.registry.decimals(token))
            data = abi.add_liquidity_eth(token, token_amount, user, deadline)
        else:
            amount_b = to_minor_units(amount, self.registry.decimals(token_b))
            data = abi.add_liquidity(token_a, token_b, amount_a, amount_b, user, deadline)

        steps.append(
            TransactionStep(StepKind.PROTOCOL_CALL, abi.checksum(router), data, amount_a if a_native else 0)
        )
        return steps

    def _weighted_join(
        self, strategy: Strategy, primary: str, amount_wei: int, user: str
    ) -> list[TransactionStep]:
        pool_id = self.registry.pool_id(strategy.asset, strategy.name, source_id=strategy.source_id)
        native = self.registry.is_native(primary)
        vault = self.registry.vault

        assets = [
            self.registry.zero_address if self.registry.is_native(t) else t
            for t in strategy.underlying_tokens
        ]
        max_amounts_in = [amount_wei] + [0] * (len(assets) - 1)
        data = abi.join_pool(pool_id, user, user, assets, max_amounts_in, native=native)

        steps = [] if native else [self._approval(primary, vault)]
        steps.append(
            TransactionStep(StepKind.PROTOCOL_CALL, abi.checksum(vault), data, amount_wei if native else 0)
        )
        return steps
