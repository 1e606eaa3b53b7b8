"""Per-chain tables mapping known pool/vault addresses to pricing strategies."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PoolRule:
    """Which strategy decomposes a given share token, plus its parameters."""

    strategy: str
    params: dict[str, Any] = field(default_factory=dict)


# Chains where Curve pools are discovered through the on-chain registry.
CURVE_REGISTRIES: dict[str, str] = {
    "eth": "0x90E00ACe148ca3b23Ac1bC8C240C2a7Dd9c2d7f5",
}

BALANCER_VAULT = "0xBA12222222228d8Ba445958a75a0704d566BF2C8"

# Curve rule params:
#   shape: "virtual_price" | "pair" | "weighted"
#   pool: "self" (the LP token is the pool) | "minter" (pool is token.minter())
#   coin_method: pool method listing pair coins ("coins" or "underlying_coins")
#   coins: per-coin unwrapping for weighted pools
#          "plain" | "aave" (aToken underlying) | "curve_lp" (nested pool virtual price)
POOL_REGISTRY: dict[str, dict[str, PoolRule]] = {
    "poly": {
        # crvUSDBTCETH (atricrypto v3)
        "0xdad97f7713ae9437fa9249920ec8507e5fbb23d3": PoolRule(
            "curve", {"shape": "weighted", "pool": "minter", "coins": ("curve_lp", "aave", "aave")}
        ),
        # am3CRV
        "0xe7a24ef0c5e95ffb0f6684b813a78f2a3ad7d171": PoolRule(
            "curve", {"shape": "virtual_price", "pool": "minter"}
        ),
        # btcCRV (ren)
        "0xf8a57c1d3b9629b77b6726a042ca48990a84fb49": PoolRule(
            "curve", {"shape": "pair", "pool": "minter", "coin_method": "underlying_coins"}
        ),
        # crvEURTUSD
        "0x600743b1d8a96438bd46836fd34977a00293f6aa": PoolRule(
            "curve", {"shape": "weighted", "pool": "minter", "coins": ("plain", "curve_lp")}
        ),
    },
    "ftm": {
        # DAI+USDC (2pool)
        "0x27e611fd27b276acbd5ffd632e5eaebec9761e40": PoolRule(
            "curve", {"shape": "pair", "pool": "self", "coin_method": "coins"}
        ),
        # fUSDT+DAI+USDC
        "0x92d5ebf3593a92888c25c0abef126583d4b5312e": PoolRule(
            "curve", {"shape": "virtual_price", "pool": "self", "symbol": "fUSDTCRV"}
        ),
        # btcCRV (ren)
        "0x5b5cfe992adac0c9d48e05854b2d91c73a003858": PoolRule(
            "curve", {"shape": "pair", "pool": "minter", "coin_method": "coins"}
        ),
        # crv3crypto (tricrypto)
        "0x58e57ca18b7a47112b877e31929798cd3d703b0f": PoolRule(
            "curve", {"shape": "weighted", "pool": "minter", "coins": ("plain", "plain", "plain")}
        ),
        # g3CRV (geist)
        "0xd02a30d33153877bc20e5721ee53dedee0422b2f": PoolRule(
            "curve", {"shape": "virtual_price", "pool": "minter"}
        ),
        # xBOO
        "0xa48d959ae2e88f1daa7d5f611e01908106de7598": PoolRule(
            "staked_share", {"underlying": "0x841FAD6EAe12c286d1Fd18d1d525DFfA75C7EFFE"}
        ),
    },
    "avax": {
        # crvUSDBTCETH (atricrypto v2)
        "0x1dab6560494b04473a0be3e7d83cf3fdf3a51828": PoolRule(
            "curve", {"shape": "weighted", "pool": "minter", "coins": ("curve_lp", "aave", "aave")}
        ),
        # am3CRV
        "0x1337bedc9d22ecbe766df105c9623922a27963ec": PoolRule(
            "curve", {"shape": "virtual_price", "pool": "minter"}
        ),
        # btcCRV (ren)
        "0xc2b1df84112619d190193e48148000e3990bf627": PoolRule(
            "curve", {"shape": "pair", "pool": "minter", "coin_method": "underlying_coins"}
        ),
        # xJOE
        "0x57319d41f71e81f3c65f2a47ca4e001ebafd4f33": PoolRule(
            "staked_share", {"underlying": "0x6e84a6216eA6dACC71eE8E6b0a5B7322EEbC0fDd"}
        ),
    },
}


def lookup_rule(
    chain: str, address: str, registry: dict[str, dict[str, PoolRule]] | None = None
) -> PoolRule | None:
    table = POOL_REGISTRY if registry is None else registry
    return table.get(chain, {}).get(address.lower())
