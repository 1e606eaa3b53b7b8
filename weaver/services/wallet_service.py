"""Wallet balances: native coin plus every catalog token in one multicall."""
from __future__ import annotations

import asyncio
import logging

from ..abis import MIN_ABI
from ..catalog import TokenCatalog
from ..chains.evm.multicall import CallSpec, MulticallBatcher
from ..interfaces.chain import ChainClient
from ..models import AnyToken
from ..valuation.engine import ValuationEngine

logger = logging.getLogger(__name__)


class WalletService:
    """Plain wallet holdings on one chain (no project positions)."""

    def __init__(
        self,
        engine: ValuationEngine,
        catalog: TokenCatalog,
        clients: dict[str, ChainClient],
        batchers: dict[str, MulticallBatcher],
    ) -> None:
        self._engine = engine
        self._catalog = catalog
        self._clients = clients
        self._batchers = batchers

    async def get_wallet_balance(self, chain: str, wallet: str) -> list[AnyToken]:
        native, tokens = await asyncio.gather(
            self._get_native(chain, wallet), self._get_tokens(chain, wallet)
        )
        return native + tokens

    async def _get_native(self, chain: str, wallet: str) -> list[AnyToken]:
        result = await self._clients[chain].get_native_balance(wallet)
        balance = int(result.unwrap_or(0) or 0)
        if balance <= 0:
            return []
        return [await self._engine.add_native_token(chain, balance, wallet)]

    async def _get_tokens(self, chain: str, wallet: str) -> list[AnyToken]:
        tracked = {token.address.lower(): token for token in self._catalog.tokens(chain)}
        if not tracked:
            return []

        calls = [
            CallSpec(reference, token.address, MIN_ABI, "balanceOf", (wallet,))
            for reference, token in tracked.items()
        ]
        results = await self._batchers[chain].multicall_query(calls)

        held = []
        for reference, token in tracked.items():
            result = results[reference]
            if not result.success:
                logger.warning(
                    "balanceOf failed for %s (%s) on %s", token.symbol, token.address, chain.upper()
                )
                continue
            balance = int(result.return_values[0])
            if balance > 0:
                held.append((token, balance))

        return list(await asyncio.gather(*(
            self._engine.add_tracked_token(chain, "wallet", "none", token, balance, wallet)
            for token, balance in held
        )))
