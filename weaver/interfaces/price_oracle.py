"""Price oracle protocol: external USD price source."""
from typing import Protocol


class PriceOracle(Protocol):
    """Abstract interface for fetching token prices on one chain."""

    async def fetch_prices(
        self, chain: str, addresses: list[str], include_native: bool = False
    ) -> dict[str, float]: ...
