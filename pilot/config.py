from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DATA_DIR = Path(__file__).parent / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Chain ────────────────────────────────────────────────────────────────
    chain_id: int = 100
    # Values the yield feed uses in its `chain` field for Gnosis
    chain_names: list[str] = Field(default_factory=lambda: ["Gnosis", "xDai", "100"])
    network: str = "gnosis"

    # ── Yield feed (DeFiLlama) ───────────────────────────────────────────────
    yield_feed_url: str = "https://yields.llama.fi/pools"

    # ── Subgraphs ────────────────────────────────────────────────────────────
    graph_api_key: str = ""
    graph_gateway_url: str = "https://gateway.thegraph.com/api/subgraphs/id"
    subgraph_ids: dict[str, str] = Field(
        default_factory=lambda: {
            "agave": "Hn7FbfXZQ8qsNZvGogymrhdusrinifkH172bpPYNi5Kv",
            "honeyswap": "HTxWvPGcZ5oqWLYEVtWnVJDfnai2Ud1WaABiAR72JaSJ",
            "sushiswap": "9LC6MvaFHXyY3dmxM7VCwGNA9dvM6g2AuZxEGCyfvck3",
            "symmetric": "9kdgh1tW36E8MKthUmZ2FJbe2KCuvkibz984SxbQSdJw",
            "balancer": "yeZGqiwNf3Lqpeo8XNHih83bk5Tbu4KvFwWVy3Dbus6",
        }
    )

    # ── Balance provider (Ankr multichain) ───────────────────────────────────
    balance_api_url: str = "https://rpc.ankr.com/multichain/"
    balance_api_key: str = ""
    balance_chain: str = "gnosis"

    # ── DEX pool data (GeckoTerminal) ────────────────────────────────────────
    pool_data_url: str = (
        "https://api.geckoterminal.com/api/v2/networks/gnosischain/pools"
        "?page=1&sort=volume_usd_h24"
    )

    # ── Behaviour ────────────────────────────────────────────────────────────
    http_timeout_seconds: float = 15.0
    strategy_cache_ttl_ms: int = 300_000
    balance_cache_ttl_ms: int = 60_000
    contracts_path: Path = _DATA_DIR / "contracts.json"
    default_token_decimals: int = 18
    # AMM add-liquidity deadline, seconds from now
    deadline_seconds: int = 3600
    log_level: str = "INFO"

    # ── HTTP server ──────────────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @field_validator("contracts_path", mode="before")
    @classmethod
    def expand_contracts_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser()

    @property
    def balance_endpoint(self) -> str:
        return f"{self.balance_api_url}{self.balance_api_key}"

    def subgraph_url(self, protocol: str) -> str | None:
        subgraph_id = self.subgraph_ids.get(protocol)
        if not subgraph_id:
            return None
        return f"{self.graph_gateway_url}/{subgraph_id}"


# Singleton: import and use `settings` everywhere
settings = Settings()
