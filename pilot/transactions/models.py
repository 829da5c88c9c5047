"""Unsigned transaction batch returned to callers for client-side signing."""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class StepKind(StrEnum):
    APPROVAL = "approval"
    PROTOCOL_CALL = "protocolCall"


class Action(StrEnum):
    ENTER = "enter"
    DEPOSIT = "deposit"
    EXIT = "exit"
    WITHDRAW = "withdraw"
    ADD_LIQUIDITY = "addLiquidity"
    REMOVE_LIQUIDITY = "removeLiquidity"
    STAKE = "stake"
    UNSTAKE = "unstake"


@dataclass(frozen=True)
class TransactionStep:
    kind: StepKind
    to: str
    data: str
    # wei; non-zero only when the call carries native token
    value: int = 0

    def to_safe_tx(self) -> dict[str, Any]:
        return {"to": self.to, "value": str(self.value), "data": self.data, "operation": 0}

    def to_dict(self) -> dict[str, Any]:
        return {"kind": str(self.kind), "to": self.to, "value": str(self.value), "data": self.data}


@dataclass(frozen=True)
class TransactionBatch:
    """Ordered calls; approvals always precede the call they authorize."""

    strategy_id: str
    protocol: str
    strategy_type: str
    action: Action
    user_address: str
    chain_id: int
    steps: tuple[TransactionStep, ...]
    slippage_tolerance: float | None = None

    @property
    def main_call(self) -> TransactionStep:
        return self.steps[-1]

    @property
    def approvals(self) -> tuple[TransactionStep, ...]:
        return tuple(s for s in self.steps if s.kind == StepKind.APPROVAL)

    def to_response(self) -> dict[str, Any]:
        main = self.main_call
        return {
            "signRequest": {
                "safeTransactionData": [s.to_safe_tx() for s in self.steps],
                "chainId": self.chain_id,
            },
            "steps": [s.to_dict() for s in self.steps],
            "message": f"Created transaction for {self.protocol} {self.action} operation",
            "meta": {
                "strategyId": self.strategy_id,
                "protocol": self.protocol,
                "strategyType": self.strategy_type,
                "action": str(self.action),
                "slippageTolerance": self.slippage_tolerance,
            },
            "transactionPayload": {
                "to": main.to,
                "from": self.user_address,
                "value": hex(main.value),
                "data": main.data,
                "chainId": self.chain_id,
            },
        }
