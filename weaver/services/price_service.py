"""Process-wide token price cache and the resolver that fills it."""
from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Awaitable, Callable

from ..interfaces.price_oracle import PriceOracle
from ..models import NATIVE_ADDRESS, TokenPrice

logger = logging.getLogger(__name__)

# Synthetic assets priced as the asset they track.
PRICE_ALIASES: dict[str, dict[str, str]] = {
    "eth": {
        "0xbbc455cb4f1b9e4bfc4b73970d360c8f032efee6": "0x514910771af9ca656af840dff83e8264ecf986ca",  # sLINK -> LINK
        "0xfe18be6b3bd88a2d2a7f928d00292e7a9963cfc6": "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599",  # sBTC -> WBTC
        "0xd71ecff9342a5ced620049e616c5035f1db98620": "0xdb25f211ab05b1c97d595516f45794528a807ad8",  # sEUR -> EURS
    },
}

# (chain, address, decimals) -> per-share USD price, or None when not a known share.
CompositePricer = Callable[[str, str, int], Awaitable["float | None"]]

# Keys being resolved in the current call chain.
_resolving: ContextVar[frozenset[tuple[str, str]]] = ContextVar(
    "weaver_price_resolving", default=frozenset()
)


class PriceCache:
    """(chain, lowercased address) → last known price. Overwrite-only, no eviction."""

    def __init__(self) -> None:
        self._prices: dict[str, dict[str, TokenPrice]] = {}

    def get(self, chain: str, address: str) -> TokenPrice | None:
        return self._prices.get(chain, {}).get(address.lower())

    def update(self, chain: str, price: TokenPrice) -> None:
        self._prices.setdefault(chain, {})[price.address.lower()] = price

    def snapshot(self, chain: str) -> dict[str, TokenPrice]:
        return dict(self._prices.get(chain, {}))


class PriceResolver:
    """Resolve USD prices through alias table, cache, oracle and composite pricer."""

    def __init__(
        self,
        oracle: PriceOracle,
        cache: PriceCache | None = None,
        aliases: dict[str, dict[str, str]] | None = None,
    ) -> None:
        self.oracle = oracle
        self.cache = cache if cache is not None else PriceCache()
        self._aliases = {
            chain: {k.lower(): v.lower() for k, v in table.items()}
            for chain, table in (PRICE_ALIASES if aliases is None else aliases).items()
        }
        self._composite_pricer: CompositePricer | None = None

    def set_composite_pricer(self, pricer: CompositePricer) -> None:
        self._composite_pricer = pricer

    def resolve_alias(self, chain: str, address: str) -> str:
        address = address.lower()
        return self._aliases.get(chain, {}).get(address, address)

    async def get_token_price(self, chain: str, address: str, decimals: int = 18) -> float:
        """Current USD price of one token; 0.0 when nothing can price it."""
        address = self.resolve_alias(chain, address)

        cached = self.cache.get(chain, address)
        if cached is not None:
            return cached.price

        key = (chain, address)
        active = _resolving.get()
        if key in active:
            logger.warning("Circular price dependency on %s (chain: %s)", address, chain.upper())
            return 0.0

        token = _resolving.set(active | {key})
        try:
            price, source = await self._resolve(chain, address, decimals)
        finally:
            _resolving.reset(token)

        if price > 0:
            self.update_price(chain, TokenPrice(address=address, price=price, source=source))
        return price

    async def _resolve(self, chain: str, address: str, decimals: int) -> tuple[float, str]:
        if address == NATIVE_ADDRESS:
            prices = await self.oracle.fetch_prices(chain, [], include_native=True)
        else:
            prices = await self.oracle.fetch_prices(chain, [address])
        price = prices.get(address)
        if price:
            return price, "oracle"

        if self._composite_pricer is not None:
            try:
                composite = await self._composite_pricer(chain, address, decimals)
            except Exception as e:
                logger.warning("Composite pricing failed for %s (chain: %s): %s", address, chain.upper(), e)
                composite = None
            if composite:
                return composite, "composite"

        logger.debug("No price found for %s (chain: %s)", address, chain.upper())
        return 0.0, "oracle"

    def update_price(self, chain: str, price_data: TokenPrice) -> None:
        self.cache.update(chain, price_data)

    async def get_chain_prices(self, chain: str, addresses: list[str]) -> dict[str, float]:
        """Refresh the cache for many tokens (plus the native coin) in one oracle request."""
        prices = await self.oracle.fetch_prices(chain, addresses, include_native=True)
        for address, price in prices.items():
            self.update_price(chain, TokenPrice(address=address, price=price))
        return self.fetch_prices(chain)

    def fetch_prices(self, chain: str) -> dict[str, float]:
        """Every cached price on ``chain``."""
        return {address: record.price for address, record in self.cache.snapshot(chain).items()}
