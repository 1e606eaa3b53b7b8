"""Pricing strategies: one async function per composite-token shape.

Every strategy takes the engine and a :class:`Position` (plus rule params)
and returns one priced token. Missing on-chain data degrades to zeros or to
the engine's placeholder; strategies never raise on a failed read.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from ..abis import (
    AAVE_ATOKEN_ABI,
    AAVE_BLP_ABI,
    ALPACA_TOKEN_ABI,
    AXIAL_TOKEN_ABI,
    BALANCER_POOL_ABI,
    BALANCER_VAULT_ABI,
    BELT_TOKEN_ABI,
    BZX_TOKEN_ABI,
    CURVE_POOL_ABI,
    CURVE_REGISTRY_ABI,
    CURVE_TOKEN_ABI,
    IRON_TOKEN_ABI,
    MIN_ABI,
    MSTABLE_ABI,
    SADDLE_SWAP_ABI,
)
from ..models import ZERO_ADDRESS, AnyToken, Token
from .pricing import normalize, safe_div, scale_raw, weighted_pool_price
from .registry import BALANCER_VAULT, CURVE_REGISTRIES, lookup_rule

if TYPE_CHECKING:
    from .engine import ValuationEngine


@dataclass(frozen=True)
class Position:
    """A raw holding to be priced."""

    chain: str
    location: str
    status: str
    address: str
    raw_balance: int
    owner: str


Strategy = Callable[..., Awaitable[AnyToken]]


def _is_zero(address: str | None) -> bool:
    return not address or address.lower() == ZERO_ADDRESS


async def _simple(
    engine: ValuationEngine, pos: Position, price: float, symbol: str | None = None, logo: str | None = None
) -> Token:
    """Plain token at a strategy-computed per-share price."""
    info = await engine.token_info(pos.chain, pos.address)
    symbol = symbol or info.symbol
    return Token(
        chain=pos.chain,
        location=pos.location,
        status=pos.status,
        owner=pos.owner,
        symbol=symbol,
        address=pos.address,
        balance=normalize(pos.raw_balance, info.decimals),
        price=price,
        logo=logo or engine.catalog.get_token_logo(pos.chain, symbol),
    )


# ---------------------------------------------------------------------------
# Plain and pair tokens
# ---------------------------------------------------------------------------

async def price_token(engine: ValuationEngine, pos: Position, **_: Any) -> AnyToken:
    return await engine.add_token(
        pos.chain, pos.location, pos.status, pos.address, pos.raw_balance, pos.owner
    )


async def price_lp(engine: ValuationEngine, pos: Position, **_: Any) -> AnyToken:
    return await engine.add_lp_token(
        pos.chain, pos.location, pos.status, pos.address, pos.raw_balance, pos.owner
    )


# ---------------------------------------------------------------------------
# Curve
# ---------------------------------------------------------------------------

async def _curve_coin(engine: ValuationEngine, chain: str, coin: str, wrap: str) -> tuple[float, int]:
    """(price, decimals) of one coin held by a Curve pool."""
    if wrap == "curve_lp":
        pool = await engine.call(chain, coin, CURVE_TOKEN_ABI, "minter")
        if _is_zero(pool):
            return 0.0, 18
        virtual_price = await engine.call_int(chain, pool, CURVE_POOL_ABI, "get_virtual_price")
        return normalize(virtual_price), 18

    if wrap == "aave":
        underlying = await engine.call(chain, coin, AAVE_ATOKEN_ABI, "UNDERLYING_ASSET_ADDRESS")
        if _is_zero(underlying):
            return 0.0, 18
        info = await engine.token_info(chain, underlying)
        return await engine.resolver.get_token_price(chain, underlying, info.decimals), info.decimals

    info = await engine.token_info(chain, coin)
    return await engine.resolver.get_token_price(chain, coin, info.decimals), info.decimals


async def _curve_registry(engine: ValuationEngine, pos: Position, registry: str) -> AnyToken:
    pool = await engine.call(pos.chain, registry, CURVE_REGISTRY_ABI, "get_pool_from_lp_token", [pos.address])
    if _is_zero(pool):
        return engine.placeholder(pos, "Curve registry has no pool for this LP token")

    coins, balances, virtual_price, supply_raw, info = await asyncio.gather(
        engine.call(pos.chain, registry, CURVE_REGISTRY_ABI, "get_underlying_coins", [pool], default=()),
        engine.call(pos.chain, registry, CURVE_REGISTRY_ABI, "get_underlying_balances", [pool], default=()),
        engine.call_int(pos.chain, registry, CURVE_REGISTRY_ABI, "get_virtual_price_from_lp_token", [pos.address]),
        engine.call_int(pos.chain, pos.address, MIN_ABI, "totalSupply"),
        engine.token_info(pos.chain, pos.address),
    )
    members = [(coin, balance) for coin, balance in zip(coins, balances) if not _is_zero(coin)]

    if len(members) == 2:
        return await engine.build_pair(pos, info, members, supply_raw)
    if len(members) > 2:
        assets = []
        for coin, balance in members:
            coin_info = await engine.token_info(pos.chain, coin)
            price = await engine.resolver.get_token_price(pos.chain, coin, coin_info.decimals)
            assets.append((normalize(balance, coin_info.decimals), price))
        price = weighted_pool_price(
            assets, normalize(supply_raw, info.decimals), normalize(virtual_price, info.decimals)
        )
        return await _simple(engine, pos, price)
    return engine.placeholder(pos, "Curve pool lists no coins")


async def price_curve(engine: ValuationEngine, pos: Position, **params: Any) -> AnyToken:
    """Curve LP token: registry-driven on some chains, table-driven elsewhere."""
    registry = CURVE_REGISTRIES.get(pos.chain)
    if registry:
        return await _curve_registry(engine, pos, registry)

    rule = lookup_rule(pos.chain, pos.address, engine.registry)
    if rule is not None and rule.strategy == "curve":
        params = {**rule.params, **params}
    shape = params.get("shape")
    if shape is None:
        return engine.placeholder(pos, "Unidentified Curve token")

    if params.get("pool", "minter") == "self":
        pool = pos.address
    else:
        pool = await engine.call(pos.chain, pos.address, CURVE_TOKEN_ABI, "minter")
        if _is_zero(pool):
            return engine.placeholder(pos, "Curve token has no minter")

    info = await engine.token_info(pos.chain, pos.address)

    if shape == "virtual_price":
        virtual_price = await engine.call_int(pos.chain, pool, CURVE_POOL_ABI, "get_virtual_price")
        return await _simple(engine, pos, normalize(virtual_price, info.decimals), symbol=params.get("symbol"))

    if shape == "pair":
        method = params.get("coin_method", "coins")
        coin0, coin1, reserve0, reserve1, supply_raw = await asyncio.gather(
            engine.call(pos.chain, pool, CURVE_POOL_ABI, method, [0]),
            engine.call(pos.chain, pool, CURVE_POOL_ABI, method, [1]),
            engine.call_int(pos.chain, pool, CURVE_POOL_ABI, "balances", [0]),
            engine.call_int(pos.chain, pool, CURVE_POOL_ABI, "balances", [1]),
            engine.call_int(pos.chain, pos.address, MIN_ABI, "totalSupply"),
        )
        if _is_zero(coin0) or _is_zero(coin1):
            return engine.placeholder(pos, "Curve pool coins unavailable")
        return await engine.build_pair(pos, info, [(coin0, reserve0), (coin1, reserve1)], supply_raw)

    if shape == "weighted":
        assets = []
        for index, wrap in enumerate(params.get("coins", ())):
            coin, reserve = await asyncio.gather(
                engine.call(pos.chain, pool, CURVE_POOL_ABI, "coins", [index]),
                engine.call_int(pos.chain, pool, CURVE_POOL_ABI, "balances", [index]),
            )
            if _is_zero(coin):
                continue
            price, decimals = await _curve_coin(engine, pos.chain, coin, wrap)
            assets.append((normalize(reserve, decimals), price))
        virtual_price, supply_raw = await asyncio.gather(
            engine.call_int(pos.chain, pool, CURVE_POOL_ABI, "get_virtual_price"),
            engine.call_int(pos.chain, pos.address, MIN_ABI, "totalSupply"),
        )
        price = weighted_pool_price(
            assets, normalize(supply_raw, info.decimals), normalize(virtual_price, info.decimals)
        )
        return await _simple(engine, pos, price, symbol=params.get("symbol"))

    return engine.placeholder(pos, f"Unknown Curve pool shape '{shape}'")


# ---------------------------------------------------------------------------
# Balancer
# ---------------------------------------------------------------------------

async def price_balancer(
    engine: ValuationEngine, pos: Position, pool_id: str | None = None, vault: str = BALANCER_VAULT, **_: Any
) -> AnyToken:
    """Balancer V2 pool share, constituents read from the vault by pool id."""
    if not pool_id:
        return engine.placeholder(pos, "Balancer pool id missing")

    pool_tokens, supply_raw, info = await asyncio.gather(
        engine.call(pos.chain, vault, BALANCER_VAULT_ABI, "getPoolTokens", [pool_id]),
        engine.call_int(pos.chain, pos.address, MIN_ABI, "totalSupply"),
        engine.token_info(pos.chain, pos.address),
    )
    if not pool_tokens:
        return engine.placeholder(pos, "Balancer vault returned no pool tokens")

    tokens, balances, _block = pool_tokens
    # Composable pools list their own share token among the constituents.
    members = [(t, b) for t, b in zip(tokens, balances) if t.lower() != pos.address.lower()]

    if len(members) == 2:
        return await engine.build_pair(pos, info, members, supply_raw)
    if len(members) > 2:
        assets = []
        for token, balance in members:
            token_info = await engine.token_info(pos.chain, token)
            price = await engine.resolver.get_token_price(pos.chain, token, token_info.decimals)
            assets.append((normalize(balance, token_info.decimals), price))
        price = weighted_pool_price(assets, normalize(supply_raw, info.decimals))
        return await _simple(engine, pos, price)
    return engine.placeholder(pos, "Balancer pool has fewer than two tokens")


async def price_aave_blp(engine: ValuationEngine, pos: Position, **_: Any) -> AnyToken:
    """Aave's Balancer V1 LP wrapper (ABPT); the inner pool holds the reserves."""
    bpool = await engine.call(pos.chain, pos.address, AAVE_BLP_ABI, "bPool")
    if _is_zero(bpool):
        return engine.placeholder(pos, "Aave BLP has no inner pool")

    tokens, supply_raw, info = await asyncio.gather(
        engine.call(pos.chain, bpool, BALANCER_POOL_ABI, "getCurrentTokens", default=()),
        engine.call_int(pos.chain, pos.address, MIN_ABI, "totalSupply"),
        engine.token_info(pos.chain, pos.address),
    )
    if len(tokens) != 2:
        return engine.placeholder(pos, "Aave BLP inner pool is not a pair")

    balances = await asyncio.gather(
        *(engine.call_int(pos.chain, bpool, BALANCER_POOL_ABI, "getBalance", [t]) for t in tokens)
    )
    return await engine.build_pair(pos, info, list(zip(tokens, balances)), supply_raw)


# ---------------------------------------------------------------------------
# Virtual-price and exchange-rate vaults
# ---------------------------------------------------------------------------

async def _swap_virtual_price(
    engine: ValuationEngine, pos: Position, pointer_abi: list[dict[str, Any]], pointer: str
) -> AnyToken:
    swap = await engine.call(pos.chain, pos.address, pointer_abi, pointer)
    if _is_zero(swap):
        return engine.placeholder(pos, f"{pointer}() returned no swap contract")
    info = await engine.token_info(pos.chain, pos.address)
    virtual_price = await engine.call_int(pos.chain, swap, SADDLE_SWAP_ABI, "getVirtualPrice")
    return await _simple(engine, pos, normalize(virtual_price, info.decimals))


async def price_iron(engine: ValuationEngine, pos: Position, **_: Any) -> AnyToken:
    """Iron stableswap LP (IS3USD and friends): token.swap() → getVirtualPrice."""
    return await _swap_virtual_price(engine, pos, IRON_TOKEN_ABI, "swap")


async def price_axial(engine: ValuationEngine, pos: Position, **_: Any) -> AnyToken:
    """Axial stableswap LP: token.owner() is the swap contract."""
    return await _swap_virtual_price(engine, pos, AXIAL_TOKEN_ABI, "owner")


async def price_alpaca(engine: ValuationEngine, pos: Position, **_: Any) -> AnyToken:
    """Alpaca ibToken: totalToken / totalSupply underlying per share."""
    total_token, supply_raw, underlying = await asyncio.gather(
        engine.call_int(pos.chain, pos.address, ALPACA_TOKEN_ABI, "totalToken"),
        engine.call_int(pos.chain, pos.address, MIN_ABI, "totalSupply"),
        engine.call(pos.chain, pos.address, ALPACA_TOKEN_ABI, "token"),
    )
    if _is_zero(underlying):
        return engine.placeholder(pos, "Alpaca vault has no underlying token")
    info = await engine.token_info(pos.chain, underlying)
    underlying_price = await engine.resolver.get_token_price(pos.chain, underlying, info.decimals)
    return await _simple(engine, pos, safe_div(total_token, supply_raw) * underlying_price)


async def price_bzx(engine: ValuationEngine, pos: Position, **_: Any) -> AnyToken:
    """bZx iToken: tokenPrice() scaled by decimals times the loan token's price."""
    token_price, loan_token, info = await asyncio.gather(
        engine.call_int(pos.chain, pos.address, BZX_TOKEN_ABI, "tokenPrice"),
        engine.call(pos.chain, pos.address, BZX_TOKEN_ABI, "loanTokenAddress"),
        engine.token_info(pos.chain, pos.address),
    )
    if _is_zero(loan_token):
        return engine.placeholder(pos, "bZx token has no loan token")
    loan_info = await engine.token_info(pos.chain, loan_token)
    loan_price = await engine.resolver.get_token_price(pos.chain, loan_token, loan_info.decimals)
    return await _simple(engine, pos, normalize(token_price, info.decimals) * loan_price)


async def price_belt(engine: ValuationEngine, pos: Position, **_: Any) -> AnyToken:
    """Belt single-asset vault, reported as a wrapped position over its underlying."""
    rate_raw, underlying = await asyncio.gather(
        engine.call_int(pos.chain, pos.address, BELT_TOKEN_ABI, "getPricePerFullShare"),
        engine.call(pos.chain, pos.address, BELT_TOKEN_ABI, "token"),
    )
    if _is_zero(underlying):
        return engine.placeholder(pos, "Belt vault has no underlying token")
    return await engine.add_x_token(
        pos.chain, pos.location, pos.status, pos.address, pos.raw_balance, pos.owner,
        underlying, scale_raw(pos.raw_balance, normalize(rate_raw)),
    )


async def price_four_belt(engine: ValuationEngine, pos: Position, **_: Any) -> AnyToken:
    """4Belt stablecoin LP, valued at one dollar per share."""
    return Token(
        chain=pos.chain,
        location=pos.location,
        status=pos.status,
        owner=pos.owner,
        symbol="4Belt",
        address=pos.address,
        balance=normalize(pos.raw_balance, 18),
        price=1.0,
        logo=engine.catalog.get_token_logo(pos.chain, "4Belt"),
    )


async def price_mstable(engine: ValuationEngine, pos: Position, **_: Any) -> AnyToken:
    """mStable mAsset; getPrice() gives the basket price in the peg currency."""
    info = await engine.token_info(pos.chain, pos.address)
    result = await engine.call(pos.chain, pos.address, MSTABLE_ABI, "getPrice")
    price = normalize(result[0], info.decimals) if result else 0.0
    # Basket prices above 1000 only occur for the BTC basket.
    logo = engine.catalog.get_token_logo(pos.chain, "mBTC" if price > 1000 else "mUSD")
    return await _simple(engine, pos, price, logo=logo)


async def price_staked_share(
    engine: ValuationEngine, pos: Position, underlying: str | None = None, **_: Any
) -> AnyToken:
    """Single-asset staking share (xJOE, xBOO): underlying held / shares outstanding."""
    if not underlying:
        return engine.placeholder(pos, "Staked share has no configured underlying")
    staked, supply_raw = await asyncio.gather(
        engine.call_int(pos.chain, underlying, MIN_ABI, "balanceOf", [pos.address]),
        engine.call_int(pos.chain, pos.address, MIN_ABI, "totalSupply"),
    )
    return await engine.add_x_token(
        pos.chain, pos.location, pos.status, pos.address, pos.raw_balance, pos.owner,
        underlying, scale_raw(pos.raw_balance, safe_div(staked, supply_raw)),
    )


STRATEGIES: dict[str, Strategy] = {
    "token": price_token,
    "lp": price_lp,
    "curve": price_curve,
    "balancer": price_balancer,
    "aave_blp": price_aave_blp,
    "iron": price_iron,
    "axial": price_axial,
    "alpaca": price_alpaca,
    "bzx": price_bzx,
    "belt": price_belt,
    "4belt": price_four_belt,
    "mstable": price_mstable,
    "staked_share": price_staked_share,
}

