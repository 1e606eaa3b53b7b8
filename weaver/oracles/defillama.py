"""DefiLlama coins API price oracle."""
from __future__ import annotations

import logging
import ssl

import aiohttp
import certifi

from ..config import ChainConfig, DefiLlamaConfig
from ..models import NATIVE_ADDRESS

logger = logging.getLogger(__name__)

# Coins per request; longer URLs get rejected upstream.
_BATCH_SIZE = 80


class DefiLlamaOracle:
    """Fetch current USD prices from coins.llama.fi."""

    def __init__(self, config: DefiLlamaConfig, chains: dict[str, ChainConfig]) -> None:
        self.base_url = config.url.rstrip("/")
        self.timeout = config.timeout
        self._chains = chains

    def _coin_key(self, chain: str, address: str) -> str | None:
        cfg = self._chains.get(chain)
        if cfg is None:
            return None
        if address.lower() == NATIVE_ADDRESS:
            return cfg.native_price_id or None
        return f"{cfg.llama_chain or chain}:{address.lower()}"

    async def fetch_prices(
        self, chain: str, addresses: list[str], include_native: bool = False
    ) -> dict[str, float]:
        """Fetch prices for ``addresses`` on ``chain``.

        Returns a mapping of lowercased address to USD price; tokens the API
        doesn't know are simply missing. The native coin is keyed by the
        native sentinel address.
        """
        wanted = [a.lower() for a in addresses]
        if include_native:
            wanted.append(NATIVE_ADDRESS)

        key_to_address: dict[str, str] = {}
        for address in dict.fromkeys(wanted):
            key = self._coin_key(chain, address)
            if key:
                key_to_address[key] = address

        prices: dict[str, float] = {}
        keys = list(key_to_address)
        if not keys:
            return prices

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                for start in range(0, len(keys), _BATCH_SIZE):
                    batch = keys[start:start + _BATCH_SIZE]
                    url = f"{self.base_url}/{','.join(batch)}"
                    async with session.get(
                        url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                    ) as response:
                        if response.status != 200:
                            logger.error(
                                "Error fetching prices from DefiLlama: HTTP %s", response.status
                            )
                            continue
                        data = await response.json()

                    for key, item in (data.get("coins") or {}).items():
                        address = key_to_address.get(key)
                        price = item.get("price")
                        if address is not None and price is not None:
                            prices[address] = float(price)
        except Exception as e:
            logger.error("Error fetching prices from DefiLlama (chain: %s): %s", chain.upper(), e)

        logger.debug("Fetched %d/%d prices on %s", len(prices), len(keys), chain.upper())
        return prices
