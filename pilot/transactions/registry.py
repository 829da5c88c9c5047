"""Protocol registry loaded from the packaged contracts table.

Adding a protocol is a data change in ``pilot/data/contracts.json``.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from pilot.config import settings
from pilot.errors import MissingPoolId, UnsupportedProtocol

logger = logging.getLogger(__name__)

POOL_ID = re.compile(r"^0x[0-9a-fA-F]{64}$")


class Family(StrEnum):
    AMM = "amm"
    STABLE = "stable"
    WEIGHTED = "weighted"
    LENDING = "lending"
    STAKING = "staking"


@dataclass(frozen=True)
class ProtocolEntry:
    key: str
    address: str
    family: Family
    lending_function: str = "supply"


@dataclass(frozen=True)
class ProtocolRegistry:
    chain_id: int
    native_token: str
    zero_address: str
    wrapped_native: str
    vault: str
    protocols: dict[str, ProtocolEntry]
    aliases: dict[str, str] = field(default_factory=dict)
    pool_ids: dict[str, str] = field(default_factory=dict)
    token_decimals: dict[str, int] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path | None = None) -> ProtocolRegistry:
        path = path or settings.contracts_path
        with open(path, encoding="utf-8") as fh:
            raw = json.load(fh)

        protocols = {
            key.lower(): ProtocolEntry(
                key=key.lower(),
                address=entry["address"],
                family=Family(entry["family"]),
                lending_function=entry.get("lendingFunction", "supply"),
            )
            for key, entry in raw["protocols"].items()
        }
        registry = cls(
            chain_id=int(raw["chainId"]),
            native_token=raw["nativeToken"],
            zero_address=raw["zeroAddress"],
            wrapped_native=raw["wrappedNative"],
            vault=raw["vault"],
            protocols=protocols,
            aliases={k.lower(): v.lower() for k, v in raw.get("aliases", {}).items()},
            pool_ids={k.upper(): v for k, v in raw.get("poolIds", {}).items()},
            token_decimals={k.lower(): int(v) for k, v in raw.get("tokenDecimals", {}).items()},
        )
        logger.info("Loaded %d protocols from %s", len(protocols), path)
        return registry

    def resolve(self, protocol: str) -> ProtocolEntry:
        """Registry entry for a display or slug protocol name.

        Tries the slug, its alias, then the first word ("Curve Finance" → curve).
        """
        slug = re.sub(r"\s+", "-", protocol.strip().lower())
        for candidate in (slug, self.aliases.get(slug), slug.split("-")[0]):
            if candidate and candidate in self.protocols:
                return self.protocols[candidate]
            if candidate and self.aliases.get(candidate) in self.protocols:
                return self.protocols[self.aliases[candidate]]
        raise UnsupportedProtocol(protocol)

    def target(self, entry: ProtocolEntry) -> str:
        """Weighted-pool protocols route through the shared vault."""
        return self.vault if entry.family == Family.WEIGHTED else entry.address

    def is_native(self, token: str) -> bool:
        lower = token.lower()
        return lower in (self.native_token.lower(), self.zero_address.lower())

    def decimals(self, token: str | None) -> int:
        if token is None or self.is_native(token):
            return settings.default_token_decimals
        return self.token_decimals.get(token.lower(), settings.default_token_decimals)

    def pool_id(self, *labels: str, source_id: str | None = None) -> str:
        """Pool id by exact label, then by registry key contained in a label.

        A strategy whose upstream id is already a 32-byte pool id uses it
        directly.
        """
        if source_id and POOL_ID.match(source_id):
            return source_id
        upper = [label.upper() for label in labels if label]
        for label in upper:
            if label in self.pool_ids:
                return self.pool_ids[label]
        for key, pool_id in self.pool_ids.items():
            if any(key in label for label in upper):
                return pool_id
        raise MissingPoolId(f"Pool ID not found for {' / '.join(labels) or 'strategy'}")
