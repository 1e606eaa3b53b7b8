"""PoolTogether V4 prize pool deposits."""
from __future__ import annotations

from ..abis import MIN_ABI
from ..models import AnyToken
from .base import BaseProjectAdapter


class PoolTogetherV4Adapter(BaseProjectAdapter):
    """Ticket balance of the V4 pool, reported as staked USDC."""

    name = "pooltogether"
    pool_v4: str = ""
    usdc: str = ""

    async def get(self, wallet_address: str) -> list[AnyToken]:
        return await self.collect({"V4 pool": self.get_pool_balance_v4(wallet_address)})

    async def get_pool_balance_v4(self, wallet_address: str) -> list[AnyToken]:
        balance = await self.call_int(self.pool_v4, MIN_ABI, "balanceOf", [wallet_address])
        if balance <= 0:
            return []
        token = await self.engine.add_token(
            self.chain, self.name, "staked", self.usdc, balance, wallet_address
        )
        return [token]
