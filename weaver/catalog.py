"""Known-token catalog: per-chain token metadata and logos."""
from __future__ import annotations

from .config import DEFAULT_TOKEN_LOGO, ChainCatalogConfig, ChainConfig, TokenData


class TokenCatalog:
    """Read-only lookups over the configured token lists."""

    def __init__(
        self,
        catalog: dict[str, ChainCatalogConfig],
        chains: dict[str, ChainConfig],
    ) -> None:
        self._catalog = catalog
        self._chains = chains
        self._by_address: dict[str, dict[str, TokenData]] = {
            chain: {t.address.lower(): t for t in cfg.tokens}
            for chain, cfg in catalog.items()
        }

    def tokens(self, chain: str) -> tuple[TokenData, ...]:
        cfg = self._catalog.get(chain)
        return cfg.tokens if cfg else ()

    def get_tracked_token(self, chain: str, address: str) -> TokenData | None:
        return self._by_address.get(chain, {}).get(address.lower())

    def native_symbol(self, chain: str) -> str:
        cfg = self._chains.get(chain)
        if cfg and cfg.native_symbol:
            return cfg.native_symbol
        return chain.upper()

    def get_token_logo(self, chain: str, symbol: str) -> str:
        """Logo of a tracked token, then of the fallback logo table, else generic."""
        cfg = self._catalog.get(chain)
        if cfg is None:
            return DEFAULT_TOKEN_LOGO
        for token in cfg.tokens:
            if token.symbol == symbol:
                return token.logo
        return cfg.logos.get(symbol, DEFAULT_TOKEN_LOGO)
