"""Static strategy catalog.

Served when every live source fails, and consulted by id lookups so the
well-known strategies stay addressable while upstreams are down.
"""
from __future__ import annotations

from pilot.strategies.models import RiskLevel, Strategy, StrategyType

NATIVE = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
WXDAI = "0xe91D153E0b41518A2Ce8Dd3D7944Fa863463a97d"
GNO = "0x9C58BAcC331c9aa871AFD802DB6379a98e80CEdb"
USDC = "0xDDAfbb505ad214D7b80b1f830fCCc89B60fb7A83"
WETH = "0x6A023CCd1ff6F2045C3309768eAd9E68F978f6e1"
SDAI = "0xaf204776c7245bF4147c2612BF6e5972Ee483701"
USDT = "0x4ECaBa5870353805a9F068101A40E0f32ed605C6"


def _catalog() -> list[Strategy]:
    return [
        Strategy(
            id="agave-xdai",
            name="Agave xDAI Lending",
            protocol="Agave",
            asset="xDAI",
            strategy_type=StrategyType.LENDING,
            apy=5.2,
            risk_level=RiskLevel.LOW,
            tvl_usd=4_700_000,
            underlying_tokens=(NATIVE,),
            exposure="single",
            description="Deposit xDAI on Agave to earn interest from borrowers on the platform",
            link="https://app.agave.finance",
            tags=("stablecoin", "lending"),
            details={
                "platform": "Agave Finance",
                "assetType": "Stablecoin",
                "risks": [
                    "Smart contract risk",
                    "Utilization risk (APY decreases with low utilization)",
                ],
                "impermanentLoss": False,
                "lockupPeriod": "None",
                "depositFee": "0%",
                "withdrawalFee": "0%",
                "compounding": True,
                "howToEnter": "Connect wallet to Agave and deposit xDAI into the lending pool",
            },
        ),
        Strategy(
            id="honeyswap-gno-xdai",
            name="Honeyswap GNO-xDAI LP",
            protocol="Honeyswap",
            asset="GNO-xDAI",
            strategy_type=StrategyType.LIQUIDITY_PROVIDING,
            apy=15.8,
            risk_level=RiskLevel.MEDIUM,
            tvl_usd=1_200_000,
            underlying_tokens=(GNO, WXDAI),
            exposure="multi",
            description="Provide liquidity for GNO-xDAI pair on Honeyswap to earn trading fees",
            link="https://app.honeyswap.org",
            tags=("amm", "lp"),
            min_investment="10 xDAI equivalent",
            details={
                "platform": "Honeyswap",
                "assetType": "Liquidity Pool Token",
                "risks": [
                    "Smart contract risk",
                    "Impermanent loss risk",
                    "Price volatility of GNO",
                ],
                "impermanentLoss": True,
                "lockupPeriod": "None",
                "depositFee": "0.3% (added to the pool)",
                "withdrawalFee": "0%",
                "compounding": False,
                "howToEnter": "Connect wallet to Honeyswap, add liquidity to the GNO-xDAI pool, and receive LP tokens",
            },
        ),
        Strategy(
            id="curve-xdai-usdc",
            name="Curve xDAI-USDC Pool",
            protocol="Curve Finance",
            asset="xDAI-USDC",
            strategy_type=StrategyType.STABLE_SWAP,
            apy=4.8,
            risk_level=RiskLevel.LOW,
            tvl_usd=2_100_000,
            underlying_tokens=(WXDAI, USDC),
            exposure="multi",
            description="Provide liquidity to xDAI-USDC pool on Curve to earn trading fees with minimal impermanent loss",
            link="https://curve.fi",
            tags=("stablecoin", "swap"),
            min_investment="100 xDAI",
            details={
                "platform": "Curve Finance",
                "assetType": "Stable LP Token",
                "risks": [
                    "Smart contract risk",
                    "Minimal impermanent loss (stablecoins)",
                    "Stablecoin de-peg risk",
                ],
                "impermanentLoss": False,
                "lockupPeriod": "None",
                "depositFee": "0.04%",
                "withdrawalFee": "0%",
                "compounding": False,
                "howToEnter": "Connect wallet to Curve Finance, add liquidity to the xDAI-USDC pool, and receive LP tokens",
            },
        ),
        Strategy(
            id="balancer-sdai-statagnousdce",
            name="Balancer sDAI-stataGnoUSDCe Pool",
            protocol="Balancer",
            asset="sDAI-stataGnoUSDCe",
            strategy_type=StrategyType.LIQUIDITY_PROVIDING,
            apy=6.4,
            risk_level=RiskLevel.LOW,
            tvl_usd=3_400_000,
            underlying_tokens=(SDAI,),
            exposure="multi",
            description="Join the sDAI / stataGnoUSDCe composable pool on Balancer to earn swap fees and yield",
            link="https://app.balancer.fi/#/gnosis-chain",
            tags=("stablecoin", "lp"),
            details={
                "platform": "Balancer",
                "assetType": "Stable LP Token",
                "risks": ["Smart contract risk", "Stablecoin de-peg risk"],
                "impermanentLoss": False,
                "lockupPeriod": "None",
                "compounding": True,
                "howToEnter": "Join the pool through the Balancer vault with sDAI",
            },
        ),
        Strategy(
            id="stakewise-gno",
            name="StakeWise GNO Staking",
            protocol="StakeWise",
            asset="GNO",
            strategy_type=StrategyType.STAKING,
            apy=11.2,
            risk_level=RiskLevel.MEDIUM,
            tvl_usd=8_900_000,
            underlying_tokens=(GNO,),
            exposure="single",
            description="Stake GNO with StakeWise to earn Gnosis beacon chain rewards",
            link="https://app.stakewise.io",
            tags=("staking",),
            details={
                "platform": "StakeWise",
                "assetType": "Liquid Staking Token",
                "risks": ["Smart contract risk", "Validator slashing risk", "Price volatility of GNO"],
                "impermanentLoss": False,
                "lockupPeriod": "None",
                "compounding": True,
                "howToEnter": "Stake GNO in the StakeWise vault and receive osGNO",
            },
        ),
        Strategy(
            id="bao-finance-vaults",
            name="Bao Finance LP Vault",
            protocol="Bao Finance",
            asset="GNO-ETH",
            strategy_type=StrategyType.YIELD_FARMING,
            apy=24.5,
            risk_level=RiskLevel.HIGH,
            tvl_usd=320_000,
            underlying_tokens=(GNO, WETH),
            exposure="multi",
            description="Stake LP tokens in Bao Finance vaults to earn boosted yields and BAO tokens",
            link="https://www.bao.finance",
            tags=("farming", "lp"),
            min_investment="50 xDAI equivalent",
            details={
                "platform": "Bao Finance",
                "assetType": "LP Vault Token",
                "risks": [
                    "Smart contract risk",
                    "Impermanent loss risk",
                    "Price volatility of GNO and ETH",
                    "Reward token (BAO) price risk",
                ],
                "impermanentLoss": True,
                "lockupPeriod": "3 days",
                "withdrawalFee": "0.5%",
                "compounding": True,
                "howToEnter": "First provide liquidity on Sushiswap for GNO-ETH, then deposit LP tokens into Bao Finance vaults",
            },
        ),
    ]


def static_strategies() -> list[Strategy]:
    """A fresh copy of the catalog, in discovery order."""
    return _catalog()


def find_static(strategy_id: str) -> Strategy | None:
    return next((s for s in _catalog() if s.id == strategy_id), None)


# ── Pool suggestions ────────────────────────────────────────────────────────

# id, name, protocol, asset, type, apy, risk, tvl, underlying, description
_POOL_SUGGESTIONS = [
    ("balancer-gno-xdai", "Balancer GNO-xDAI LP", "Balancer", "GNO-xDAI", StrategyType.LIQUIDITY_PROVIDING,
     14.2, RiskLevel.MEDIUM, 2_700_000, (GNO, WXDAI), "Provide liquidity to the GNO-xDAI pool on Balancer"),
    ("balancer-stable-pool", "Balancer Stable Pool", "Balancer", "USDC-WXDAI-USDT", StrategyType.STABLE_SWAP,
     8.6, RiskLevel.LOW, 3_200_000, (USDC, WXDAI, USDT),
     "Provide liquidity to stable pool on Balancer with minimal impermanent loss"),
    ("honeyswap-wxdai-usdc", "HoneySwap WXDAI-USDC LP", "HoneySwap", "WXDAI-USDC", StrategyType.LIQUIDITY_PROVIDING,
     7.5, RiskLevel.LOW, 1_800_000, (WXDAI, USDC), "Provide liquidity for WXDAI-USDC pair on HoneySwap"),
    ("honeyswap-gno-wxdai", "HoneySwap GNO-WXDAI LP", "HoneySwap", "GNO-WXDAI", StrategyType.LIQUIDITY_PROVIDING,
     18.3, RiskLevel.MEDIUM, 1_200_000, (GNO, WXDAI), "Provide liquidity for GNO-WXDAI pair on HoneySwap"),
    ("swapr-gno-wxdai", "Swapr GNO-WXDAI LP", "Swapr", "GNO-WXDAI", StrategyType.LIQUIDITY_PROVIDING,
     22.6, RiskLevel.MEDIUM, 950_000, (GNO, WXDAI),
     "Provide liquidity for GNO-WXDAI pair on Swapr with farming rewards"),
    ("symmetric-eth-gno", "Symmetric ETH-GNO LP", "Symmetric", "ETH-GNO", StrategyType.LIQUIDITY_PROVIDING,
     19.4, RiskLevel.MEDIUM, 730_000, (WETH, GNO), "Provide liquidity for ETH-GNO pair on Symmetric"),
    ("aave-usdc-lending", "Aave USDC Lending", "Aave", "USDC", StrategyType.LENDING,
     5.2, RiskLevel.LOW, 4_300_000, (USDC,), "Deposit USDC to Aave to earn interest"),
    ("aave-wxdai-lending", "Aave WXDAI Lending", "Aave", "WXDAI", StrategyType.LENDING,
     4.8, RiskLevel.LOW, 5_100_000, (WXDAI,), "Deposit WXDAI to Aave to earn interest"),
    ("stakewise-gno-staking", "StakeWise GNO Staking", "StakeWise", "GNO", StrategyType.STAKING,
     15.7, RiskLevel.LOW, 8_500_000, (GNO,), "Stake GNO tokens to receive osGNO with auto-compounding rewards"),
    ("symbiosis-usdc-bridge", "Symbiosis USDC Bridge Farming", "Symbiosis", "USDC", StrategyType.YIELD_FARMING,
     11.3, RiskLevel.MEDIUM, 1_500_000, (USDC,), "Provide USDC to Symbiosis bridge liquidity pools"),
    ("stargate-usdc-pool", "Stargate USDC Pool", "Stargate", "USDC", StrategyType.LIQUIDITY_PROVIDING,
     6.9, RiskLevel.LOW, 2_200_000, (USDC,), "Provide single-sided USDC liquidity for Stargate bridge"),
    ("zenith-stable-pool", "Zenith 3Pool", "Zenith", "USDC-WXDAI-USDT", StrategyType.STABLE_SWAP,
     8.2, RiskLevel.LOW, 3_700_000, (USDC, WXDAI, USDT), "Provide liquidity to Zenith stable pool"),
]


def pool_suggestions(min_apy: float = 0.0, limit: int | None = None) -> list[Strategy]:
    """Static pool suggestions at or above ``min_apy``, best APY first."""
    suggestions = [
        Strategy(
            id=id_,
            name=name,
            protocol=protocol,
            asset=asset,
            strategy_type=kind,
            apy=apy,
            risk_level=risk,
            tvl_usd=tvl,
            underlying_tokens=underlying,
            exposure="single" if len(underlying) == 1 else "multi",
            description=description,
        )
        for id_, name, protocol, asset, kind, apy, risk, tvl, underlying, description in _POOL_SUGGESTIONS
        if apy >= min_apy
    ]
    suggestions.sort(key=lambda s: s.apy, reverse=True)
    return suggestions if limit is None else suggestions[:limit]
