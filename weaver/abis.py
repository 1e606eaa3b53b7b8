"""Minimal ABI fragments for every contract shape the engine reads."""
from __future__ import annotations

from typing import Any

ABI = list[dict[str, Any]]


def _fn(
    name: str,
    inputs: list[tuple[str, str]] | None = None,
    outputs: list[tuple[str, str]] | None = None,
) -> dict[str, Any]:
    """Build a view-function ABI entry from (name, type) pairs."""
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": n, "type": t} for n, t in inputs or []],
        "outputs": [{"name": n, "type": t} for n, t in outputs or []],
    }


# ---------------------------------------------------------------------------
# Generic
# ---------------------------------------------------------------------------

MIN_ABI: ABI = [
    _fn("balanceOf", [("owner", "address")], [("", "uint256")]),
    _fn("symbol", outputs=[("", "string")]),
    _fn("decimals", outputs=[("", "uint8")]),
    _fn("totalSupply", outputs=[("", "uint256")]),
]

LP_ABI: ABI = [
    _fn("getReserves", outputs=[
        ("reserve0", "uint112"), ("reserve1", "uint112"), ("blockTimestampLast", "uint32"),
    ]),
    _fn("token0", outputs=[("", "address")]),
    _fn("token1", outputs=[("", "address")]),
    _fn("totalSupply", outputs=[("", "uint256")]),
]

MULTICALL3_ABI: ABI = [
    {
        "name": "tryAggregate",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {"name": "requireSuccess", "type": "bool"},
            {
                "name": "calls",
                "type": "tuple[]",
                "components": [
                    {"name": "target", "type": "address"},
                    {"name": "callData", "type": "bytes"},
                ],
            },
        ],
        "outputs": [
            {
                "name": "returnData",
                "type": "tuple[]",
                "components": [
                    {"name": "success", "type": "bool"},
                    {"name": "returnData", "type": "bytes"},
                ],
            }
        ],
    },
]

# ---------------------------------------------------------------------------
# Curve
# ---------------------------------------------------------------------------

CURVE_REGISTRY_ABI: ABI = [
    _fn("get_pool_from_lp_token", [("lp", "address")], [("", "address")]),
    _fn("get_underlying_coins", [("pool", "address")], [("", "address[8]")]),
    _fn("get_underlying_balances", [("pool", "address")], [("", "uint256[8]")]),
    _fn("get_virtual_price_from_lp_token", [("lp", "address")], [("", "uint256")]),
]

CURVE_TOKEN_ABI: ABI = [
    _fn("minter", outputs=[("", "address")]),
]

# Pool (minter) contracts; on some chains the LP token is the pool itself.
CURVE_POOL_ABI: ABI = [
    _fn("get_virtual_price", outputs=[("", "uint256")]),
    _fn("coins", [("i", "uint256")], [("", "address")]),
    _fn("underlying_coins", [("i", "uint256")], [("", "address")]),
    _fn("balances", [("i", "uint256")], [("", "uint256")]),
]

AAVE_ATOKEN_ABI: ABI = [
    _fn("UNDERLYING_ASSET_ADDRESS", outputs=[("", "address")]),
]

# ---------------------------------------------------------------------------
# Balancer / Aave
# ---------------------------------------------------------------------------

BALANCER_VAULT_ABI: ABI = [
    _fn("getPoolTokens", [("poolId", "bytes32")], [
        ("tokens", "address[]"), ("balances", "uint256[]"), ("lastChangeBlock", "uint256"),
    ]),
]

BALANCER_POOL_ABI: ABI = [
    _fn("getCurrentTokens", outputs=[("tokens", "address[]")]),
    _fn("getBalance", [("token", "address")], [("", "uint256")]),
    _fn("totalSupply", outputs=[("", "uint256")]),
]

AAVE_BLP_ABI: ABI = [
    _fn("bPool", outputs=[("", "address")]),
]

# ---------------------------------------------------------------------------
# Exchange-rate and virtual-price vaults
# ---------------------------------------------------------------------------

BELT_TOKEN_ABI: ABI = [
    _fn("getPricePerFullShare", outputs=[("", "uint256")]),
    _fn("token", outputs=[("", "address")]),
]

ALPACA_TOKEN_ABI: ABI = [
    _fn("totalToken", outputs=[("", "uint256")]),
    _fn("token", outputs=[("", "address")]),
]

BZX_TOKEN_ABI: ABI = [
    _fn("tokenPrice", outputs=[("", "uint256")]),
    _fn("loanTokenAddress", outputs=[("", "address")]),
]

IRON_TOKEN_ABI: ABI = [
    _fn("swap", outputs=[("", "address")]),
]

AXIAL_TOKEN_ABI: ABI = [
    _fn("owner", outputs=[("", "address")]),
]

SADDLE_SWAP_ABI: ABI = [
    _fn("getVirtualPrice", outputs=[("", "uint256")]),
]

MSTABLE_ABI: ABI = [
    _fn("getPrice", outputs=[("price", "uint256"), ("k", "uint256")]),
]

# ---------------------------------------------------------------------------
# Iron (Polygon)
# ---------------------------------------------------------------------------

IRON_REGISTRY_ABI: ABI = [
    _fn("poolLength", outputs=[("", "uint256")]),
    _fn("userInfo", [("pid", "uint256"), ("user", "address")], [
        ("amount", "uint256"), ("rewardDebt", "int256"),
    ]),
    _fn("lpToken", [("pid", "uint256")], [("", "address")]),
    _fn("pendingReward", [("pid", "uint256"), ("user", "address")], [("", "uint256")]),
]

IRON_LENDING_ABI: ABI = [
    _fn("getAllMarkets", outputs=[("", "address[]")]),
    _fn("rewardAccrued", [("holder", "address")], [("", "uint256")]),
]

IRON_MARKET_ABI: ABI = [
    _fn("getAccountSnapshot", [("account", "address")], [
        ("error", "uint256"), ("balance", "uint256"),
        ("borrowBalance", "uint256"), ("exchangeRate", "uint256"),
    ]),
    _fn("underlying", outputs=[("", "address")]),
]

IRON_STAKING_ABI: ABI = [
    _fn("locked", [("account", "address")], [("amount", "int128"), ("end", "uint256")]),
]
