"""Token valuation engine: turns raw balances into priced token records.

Handlers and the wallet service hand the engine a raw on-chain balance and an
address; the engine reads whatever on-chain data the token's shape needs,
prices every constituent through the :class:`PriceResolver` and returns one
of the frozen token models.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from ..abis import CURVE_REGISTRY_ABI, LP_ABI, MIN_ABI
from ..catalog import TokenCatalog
from ..chains.evm.retry import RetryPolicy
from ..config import TokenData
from ..interfaces.chain import ChainClient
from ..models import (
    NATIVE_ADDRESS,
    ZERO_ADDRESS,
    AnyToken,
    DebtToken,
    LPToken,
    NativeToken,
    PricedToken,
    Token,
    XToken,
)
from ..services.price_service import PriceResolver
from .pricing import normalize, pro_rata, safe_div
from .registry import CURVE_REGISTRIES, POOL_REGISTRY, PoolRule, lookup_rule
from .strategies import STRATEGIES, Position

logger = logging.getLogger(__name__)

PLACEHOLDER_SYMBOL = "???"

# Shape probes run once with no retries and no error log.
PROBE_POLICY = RetryPolicy(max_passes=1, quiet=True)


@dataclass(frozen=True)
class TokenInfo:
    symbol: str
    decimals: int
    logo: str


class ValuationEngine:
    """Price any supported token shape on any configured chain."""

    def __init__(
        self,
        clients: dict[str, ChainClient],
        resolver: PriceResolver,
        catalog: TokenCatalog,
        registry: dict[str, dict[str, PoolRule]] | None = None,
    ) -> None:
        self.clients = clients
        self.resolver = resolver
        self.catalog = catalog
        self.registry = POOL_REGISTRY if registry is None else registry

    # ------------------------------------------------------------------
    # On-chain reads
    # ------------------------------------------------------------------

    def _client(self, chain: str) -> ChainClient:
        client = self.clients.get(chain)
        if client is None:
            raise ValueError(f"Chain '{chain}' is not configured")
        return client

    async def call(
        self,
        chain: str,
        address: str,
        abi: list[dict[str, Any]],
        method: str,
        args: list[Any] | tuple[Any, ...] = (),
        default: Any = None,
        policy: RetryPolicy | None = None,
    ) -> Any:
        """Contract read that yields ``default`` when the read fails."""
        result = await self._client(chain).query(address, abi, method, args, policy)
        return result.unwrap_or(default)

    async def call_int(
        self,
        chain: str,
        address: str,
        abi: list[dict[str, Any]],
        method: str,
        args: list[Any] | tuple[Any, ...] = (),
    ) -> int:
        value = await self.call(chain, address, abi, method, args, default=0)
        return int(value or 0)

    async def token_info(self, chain: str, address: str) -> TokenInfo:
        """Symbol, decimals and logo: catalog first, live reads otherwise."""
        if address.lower() == NATIVE_ADDRESS:
            symbol = self.catalog.native_symbol(chain)
            return TokenInfo(symbol, 18, self.catalog.get_token_logo(chain, symbol))

        tracked = self.catalog.get_tracked_token(chain, address)
        if tracked is not None:
            return TokenInfo(tracked.symbol, tracked.decimals, tracked.logo)

        symbol, decimals = await asyncio.gather(
            self.call(chain, address, MIN_ABI, "symbol", default=PLACEHOLDER_SYMBOL),
            self.call(chain, address, MIN_ABI, "decimals", default=18),
        )
        return TokenInfo(symbol, int(decimals), self.catalog.get_token_logo(chain, symbol))

    async def _priced(self, chain: str, address: str, info: TokenInfo, balance: float) -> PricedToken:
        price = await self.resolver.get_token_price(chain, address, info.decimals)
        return PricedToken(
            symbol=info.symbol, address=address, balance=balance, price=price, logo=info.logo
        )

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    async def add_native_token(self, chain: str, raw_balance: int, owner: str) -> NativeToken:
        symbol = self.catalog.native_symbol(chain)
        price = await self.resolver.get_token_price(chain, NATIVE_ADDRESS)
        return NativeToken(
            chain=chain,
            owner=owner,
            symbol=symbol,
            balance=normalize(raw_balance, 18),
            price=price,
            logo=self.catalog.get_token_logo(chain, symbol),
        )

    async def add_token(
        self, chain: str, location: str, status: str, address: str, raw_balance: int, owner: str
    ) -> Token:
        info = await self.token_info(chain, address)
        price = await self.resolver.get_token_price(chain, address, info.decimals)
        return Token(
            chain=chain,
            location=location,
            status=status,
            owner=owner,
            symbol=info.symbol,
            address=address,
            balance=normalize(raw_balance, info.decimals),
            price=price,
            logo=info.logo,
        )

    async def add_tracked_token(
        self, chain: str, location: str, status: str, token: TokenData, raw_balance: int, owner: str
    ) -> Token:
        """Catalog token; metadata comes from the catalog, no symbol/decimals reads."""
        price = await self.resolver.get_token_price(chain, token.address, token.decimals)
        return Token(
            chain=chain,
            location=location,
            status=status,
            owner=owner,
            symbol=token.symbol,
            address=token.address,
            balance=normalize(raw_balance, token.decimals),
            price=price,
            logo=token.logo,
        )

    async def add_debt_token(
        self, chain: str, location: str, address: str, raw_balance: int, owner: str
    ) -> DebtToken:
        info = await self.token_info(chain, address)
        price = await self.resolver.get_token_price(chain, address, info.decimals)
        return DebtToken(
            chain=chain,
            location=location,
            owner=owner,
            symbol=info.symbol,
            address=address,
            balance=normalize(raw_balance, info.decimals),
            price=price,
            logo=info.logo,
        )

    async def add_lp_token(
        self, chain: str, location: str, status: str, address: str, raw_balance: int, owner: str
    ) -> AnyToken:
        """UniswapV2-style pair share, both sides priced through the resolver."""
        pos = Position(chain, location, status, address, raw_balance, owner)
        info, reserves, supply_raw, token0, token1 = await asyncio.gather(
            self.token_info(chain, address),
            self.call(chain, address, LP_ABI, "getReserves"),
            self.call_int(chain, address, LP_ABI, "totalSupply"),
            self.call(chain, address, LP_ABI, "token0"),
            self.call(chain, address, LP_ABI, "token1"),
        )
        if reserves is None or not token0 or not token1:
            return self.placeholder(pos, "Pair reserves or tokens unavailable")
        return await self.build_pair(
            pos, info, [(token0, reserves[0]), (token1, reserves[1])], supply_raw
        )

    async def build_pair(
        self,
        pos: Position,
        info: TokenInfo,
        members: list[tuple[str, int]],
        supply_raw: int,
    ) -> LPToken:
        """LPToken whose sides are the holder's pro-rata slice of each reserve."""
        balance = normalize(pos.raw_balance, info.decimals)
        supply = normalize(supply_raw, info.decimals)
        (address0, reserve0), (address1, reserve1) = members
        info0, info1 = await asyncio.gather(
            self.token_info(pos.chain, address0), self.token_info(pos.chain, address1)
        )
        amount0 = pro_rata(normalize(reserve0, info0.decimals), balance, supply)
        amount1 = pro_rata(normalize(reserve1, info1.decimals), balance, supply)
        side0, side1 = await asyncio.gather(
            self._priced(pos.chain, address0, info0, amount0),
            self._priced(pos.chain, address1, info1, amount1),
        )
        return LPToken(
            chain=pos.chain,
            location=pos.location,
            status=pos.status,
            owner=pos.owner,
            symbol=info.symbol,
            address=pos.address,
            balance=balance,
            token0=side0,
            token1=side1,
        )

    async def add_x_token(
        self,
        chain: str,
        location: str,
        status: str,
        address: str,
        raw_balance: int,
        owner: str,
        underlying_address: str,
        underlying_raw_balance: int,
        info: dict[str, Any] | None = None,
    ) -> XToken:
        """Wrapped position; symbol and decimals of each side come from its own token."""
        outer, inner = await asyncio.gather(
            self.token_info(chain, address), self.token_info(chain, underlying_address)
        )
        underlying = await self._priced(
            chain, underlying_address, inner, normalize(underlying_raw_balance, inner.decimals)
        )
        return XToken(
            chain=chain,
            location=location,
            status=status,
            owner=owner,
            symbol=outer.symbol,
            address=address,
            balance=normalize(raw_balance, outer.decimals),
            underlying=underlying,
            logo=outer.logo,
            info=info,
        )

    def placeholder(self, pos: Position, reason: str) -> Token:
        """Zero-value token for a shape the engine cannot decompose."""
        logger.warning(
            "Cannot price %s held in %s (chain: %s): %s",
            pos.address, pos.location, pos.chain.upper(), reason,
        )
        return Token(
            chain=pos.chain,
            location=pos.location,
            status=pos.status,
            owner=pos.owner,
            symbol=PLACEHOLDER_SYMBOL,
            address=pos.address,
            balance=0.0,
            price=0.0,
        )

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    async def classify_and_price(
        self,
        chain: str,
        location: str,
        status: str,
        address: str,
        raw_balance: int,
        owner: str,
        strategy: str | None = None,
        **extra: Any,
    ) -> AnyToken:
        """Price one holding with the named strategy, or the registered one.

        Never raises: an unknown strategy or a strategy that blows up on
        malformed on-chain data yields a placeholder token.
        """
        pos = Position(chain, location, status, address, raw_balance, owner)

        rule = lookup_rule(chain, address, self.registry)
        if strategy is None:
            strategy = rule.strategy if rule else "token"
        if rule is not None and rule.strategy == strategy:
            extra = {**rule.params, **extra}

        handler = STRATEGIES.get(strategy)
        if handler is None:
            return self.placeholder(pos, f"unknown pricing strategy '{strategy}'")

        try:
            return await handler(self, pos, **extra)
        except Exception as e:
            return self.placeholder(pos, f"{strategy} strategy failed: {e}")

    async def _detect(self, chain: str, address: str) -> str | None:
        """Probe an unregistered token for a pool shape the engine understands."""
        token0 = await self.call(chain, address, LP_ABI, "token0", policy=PROBE_POLICY)
        if token0:
            reserves = await self.call(chain, address, LP_ABI, "getReserves", policy=PROBE_POLICY)
            if reserves is not None:
                return "lp"

        registry = CURVE_REGISTRIES.get(chain)
        if registry:
            pool = await self.call(
                chain, registry, CURVE_REGISTRY_ABI, "get_pool_from_lp_token", [address],
                policy=PROBE_POLICY,
            )
            if pool and pool.lower() != ZERO_ADDRESS:
                return "curve"
        return None

    async def price_share(self, chain: str, address: str, decimals: int = 18) -> float | None:
        """USD price of one share of a pool or vault token, for the resolver.

        Returns ``None`` when the token is neither registered nor detected as
        a known pool shape.
        """
        if chain not in self.clients:
            return None
        rule = lookup_rule(chain, address, self.registry)
        strategy = rule.strategy if rule else await self._detect(chain, address)
        if strategy is None or strategy == "token":
            return None

        token = await self.classify_and_price(
            chain, "pricing", "none", address, 10**decimals, ZERO_ADDRESS, strategy=strategy
        )
        if token.symbol == PLACEHOLDER_SYMBOL or not token.balance:
            return None
        return safe_div(token.value, token.balance)
