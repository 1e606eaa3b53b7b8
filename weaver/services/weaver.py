"""Public facade: wires chain clients, pricing and project adapters together."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from eth_utils import is_address

from ..catalog import TokenCatalog
from ..chains.evm import EvmClient, MulticallBatcher, QueryResult, RetryPolicy
from ..config import AppConfig, TokenData
from ..models import AnyToken, TokenPrice
from ..oracles import DefiLlamaOracle
from ..valuation.engine import ValuationEngine
from .dispatcher import ProjectDispatcher
from .price_service import PriceResolver
from .wallet_service import WalletService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Weaver:
    """Portfolio queries across every configured chain."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._request_timeout = config.query.request_timeout

        policy = RetryPolicy.from_config(config.query)
        self.clients: dict[str, EvmClient] = {
            chain: EvmClient(chain, chain_cfg, policy, config.query.max_concurrency)
            for chain, chain_cfg in config.chains.items()
        }
        batchers = {chain: MulticallBatcher(client) for chain, client in self.clients.items()}

        self.catalog = TokenCatalog(config.catalog, config.chains)
        self.resolver = PriceResolver(
            DefiLlamaOracle(config.price_oracle.defillama, config.chains)
        )
        self.engine = ValuationEngine(self.clients, self.resolver, self.catalog)
        self.resolver.set_composite_pricer(self.engine.price_share)

        self.dispatcher = ProjectDispatcher(self.engine, self.clients)
        self.wallets = WalletService(self.engine, self.catalog, self.clients, batchers)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_chain(self, chain: str) -> bool:
        if chain in self.clients:
            return True
        logger.warning("Chain '%s' is not configured", chain)
        return False

    async def _bounded(self, label: str, request: Awaitable[T], default: T) -> T:
        """Apply the per-request deadline; a timed-out request yields ``default``."""
        try:
            return await asyncio.wait_for(request, timeout=self._request_timeout)
        except asyncio.TimeoutError:
            logger.error("%s timed out after %.0fs", label, self._request_timeout)
            return default

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    async def get_wallet_balance(self, chain: str, wallet: str) -> list[AnyToken]:
        if not self._check_chain(chain):
            return []
        return await self._bounded(
            f"Wallet balance on {chain.upper()}",
            self.wallets.get_wallet_balance(chain, wallet),
            [],
        )

    async def get_project_balance(self, chain: str, wallet: str, project: str) -> list[AnyToken]:
        if not self._check_chain(chain):
            return []
        return await self._bounded(
            f"{project} balance on {chain.upper()}",
            self.dispatcher.get_project_balance(chain, wallet, project),
            [],
        )

    async def get_all_project_balances(self, chain: str, wallet: str) -> list[AnyToken]:
        if not self._check_chain(chain):
            return []
        return await self._bounded(
            f"Project balances on {chain.upper()}",
            self.dispatcher.get_all_project_balances(chain, wallet),
            [],
        )

    async def get_tx_count(self, chain: str, wallet: str) -> int:
        if not self._check_chain(chain):
            return 0
        result = await self._bounded(
            f"Transaction count on {chain.upper()}",
            self.clients[chain].get_tx_count(wallet),
            QueryResult("failed", error="timed out"),
        )
        return int(result.unwrap_or(0))

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    @staticmethod
    def is_address(address: str) -> bool:
        return is_address(address)

    def get_projects(self, chain: str) -> list[str]:
        return self.dispatcher.get_projects(chain)

    def get_tokens(self, chain: str) -> tuple[TokenData, ...]:
        return self.catalog.tokens(chain)

    def get_token_logo(self, chain: str, symbol: str) -> str:
        return self.catalog.get_token_logo(chain, symbol)

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    async def get_token_price(self, chain: str, address: str, decimals: int = 18) -> float:
        if not self._check_chain(chain):
            return 0.0
        return await self._bounded(
            f"Price of {address} on {chain.upper()}",
            self.resolver.get_token_price(chain, address, decimals),
            0.0,
        )

    def update_token_price(self, chain: str, price_data: TokenPrice) -> None:
        self.resolver.update_price(chain, price_data)

    async def get_chain_prices(self, chain: str) -> dict[str, float]:
        """Refresh prices of every catalog token on ``chain`` and the native coin."""
        if not self._check_chain(chain):
            return {}
        addresses = [token.address for token in self.catalog.tokens(chain)]
        return await self._bounded(
            f"Price refresh on {chain.upper()}",
            self.resolver.get_chain_prices(chain, addresses),
            {},
        )

    def fetch_prices(self, chain: str) -> dict[str, float]:
        return self.resolver.fetch_prices(chain)
