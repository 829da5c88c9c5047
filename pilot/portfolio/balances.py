"""Wallet balances from the Ankr multichain JSON-RPC, behind a 60s cache."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from pilot.cache import TTLCache
from pilot.config import settings
from pilot.errors import UpstreamError, ValidationError
from pilot.tools.api_caller import call_api

logger = logging.getLogger(__name__)

EVM_ADDRESS = re.compile(r"^0x[a-fA-F0-9]{40}$")
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
CHAIN_IDS = {"gnosis": 100, "eth": 1}


def is_evm_address(address: str) -> bool:
    return bool(EVM_ADDRESS.match(address or ""))


def require_address(address: str | None, field: str = "address") -> str:
    if not address:
        raise ValidationError(f"{field} is required")
    if not is_evm_address(address):
        raise ValidationError(f"{field} must be a 0x-prefixed 20-byte hex address")
    return address


@dataclass(frozen=True)
class Token:
    address: str
    symbol: str
    name: str
    decimals: int
    chain_id: int
    usd_price: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "symbol": self.symbol,
            "name": self.name,
            "decimals": self.decimals,
            "chainId": self.chain_id,
            "price": {"USD": self.usd_price},
        }


@dataclass(frozen=True)
class WalletBalance:
    token: Token
    raw_balance: str
    formatted_balance: str
    usd_value: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token.to_dict(),
            "balance": self.raw_balance,
            "formattedBalance": self.formatted_balance,
            "usdValue": self.usd_value,
        }


@dataclass(frozen=True)
class Portfolio:
    address: str
    balances: tuple[WalletBalance, ...]
    cached: bool = False

    @property
    def total_usd(self) -> float:
        return sum(b.usd_value for b in self.balances)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "data": [b.to_dict() for b in self.balances],
            "totals": {"usdValue": self.total_usd, "tokenCount": len(self.balances)},
            "totalValueUSD": self.total_usd,
            "cached": self.cached,
        }


class BalanceProvider:
    """Thin wrapper around ``ankr_getAccountBalance``."""

    name = "ankr"

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self.client = client

    async def fetch_balances(self, address: str, chain: str | None = None) -> list[WalletBalance]:
        require_address(address)
        blockchain = chain or settings.balance_chain
        body = await call_api(
            "POST",
            settings.balance_endpoint,
            json={
                "jsonrpc": "2.0",
                "method": "ankr_getAccountBalance",
                "params": {"walletAddress": address, "blockchain": blockchain},
                "id": 1,
            },
            client=self.client,
            source=self.name,
        )
        if not isinstance(body, dict):
            raise UpstreamError("Balance provider returned an unexpected payload", self.name)
        if body.get("error"):
            message = body["error"].get("message") if isinstance(body["error"], dict) else body["error"]
            raise UpstreamError(f"Balance provider error: {message}", self.name)

        assets = (body.get("result") or {}).get("assets") or []
        balances = [self._asset_to_balance(a) for a in assets if isinstance(a, dict)]
        return [b for b in balances if b.token.chain_id == settings.chain_id]

    @staticmethod
    def _asset_to_balance(asset: dict[str, Any]) -> WalletBalance:
        blockchain = str(asset.get("blockchain") or "")
        decimals = int(asset.get("tokenDecimals") or 18)
        price = asset.get("tokenPrice")
        raw = str(asset.get("balance") or "0")
        token = Token(
            address=asset.get("contractAddress") or ZERO_ADDRESS,
            symbol=asset.get("tokenSymbol") or blockchain,
            name=asset.get("tokenName") or "Unknown",
            decimals=decimals,
            chain_id=CHAIN_IDS.get(blockchain.lower(), 1),
            usd_price=float(price) if price else None,
        )
        return WalletBalance(
            token=token,
            raw_balance=raw,
            formatted_balance=_format_balance(raw, decimals),
            usd_value=float(asset.get("balanceUsd") or 0),
        )


def _format_balance(balance: str, decimals: int) -> str:
    try:
        return f"{float(balance):.{decimals}f}"
    except ValueError:
        return "0"


class BalanceService:
    """Portfolio lookups cached per lowercase address and chain."""

    def __init__(self, provider: BalanceProvider, cache: TTLCache[tuple[WalletBalance, ...]]) -> None:
        self.provider = provider
        self.cache = cache

    async def get_portfolio(self, address: str, chain: str | None = None) -> Portfolio:
        require_address(address)
        blockchain = (chain or settings.balance_chain).lower()
        key = f"{address.lower()}:{blockchain}"

        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Balance cache hit for %s", key)
            return Portfolio(address=address, balances=cached, cached=True)

        logger.info("Balance cache miss for %s", key)
        balances = tuple(await self.provider.fetch_balances(address, blockchain))
        self.cache.set(key, balances)
        return Portfolio(address=address, balances=balances)

    async def try_get_portfolio(self, address: str) -> Portfolio | None:
        """Portfolio or None when the provider is down; used for enrichment."""
        try:
            return await self.get_portfolio(address)
        except UpstreamError as exc:
            logger.warning("Portfolio lookup for %s failed: %s", address, exc)
            return None
