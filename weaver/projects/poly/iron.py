"""Iron Finance on Polygon: farms, lending markets and staked ICE."""
from __future__ import annotations

import asyncio

from ...abis import (
    IRON_LENDING_ABI,
    IRON_MARKET_ABI,
    IRON_REGISTRY_ABI,
    IRON_STAKING_ABI,
    MIN_ABI,
)
from ...models import NATIVE_ADDRESS, AnyToken
from ..base import BaseProjectAdapter

REGISTRY = "0x1fD1259Fa8CdC60c6E8C86cfA592CA1b8403DFaD"
LENDING = "0xF20fcd005AFDd3AD48C85d0222210fe168DDd10c"
BLUEICE = "0xB1Bf26c7B43D2485Fa07694583d2F17Df0DDe010"
ICE = "0x4A81f8796e0c6Ad4877A51C86693B0dE8093F2ef"

# The MATIC market has no underlying() method.
NATIVE_MARKET = "0xca0f37f73174a28a64552d426590d3ed601ecca1"

# Farms whose LP token is an Iron stableswap share rather than a pair.
STABLESWAP_FARMS = frozenset({0, 3})


class IronAdapter(BaseProjectAdapter):
    chain = "poly"
    name = "iron"

    async def get(self, wallet_address: str) -> list[AnyToken]:
        return await self.collect({
            "farms": self.get_farm_balances(wallet_address),
            "markets": self.get_market_balances(wallet_address),
            "market rewards": self.get_market_rewards(wallet_address),
            "staked ICE": self.get_staked_ice(wallet_address),
        })

    async def get_farm_balances(self, wallet_address: str) -> list[AnyToken]:
        pool_count = await self.call_int(REGISTRY, IRON_REGISTRY_ABI, "poolLength")
        farms = await asyncio.gather(
            *(self._get_farm(pid, wallet_address) for pid in range(pool_count))
        )
        return [token for farm in farms for token in farm]

    async def _get_farm(self, pid: int, wallet_address: str) -> list[AnyToken]:
        user_info = await self.call(REGISTRY, IRON_REGISTRY_ABI, "userInfo", [pid, wallet_address])
        balance = int(user_info[0]) if user_info else 0
        if balance <= 0:
            return []

        tokens: list[AnyToken] = []
        lp_token = await self.call(REGISTRY, IRON_REGISTRY_ABI, "lpToken", [pid])
        if lp_token:
            strategy = "iron" if pid in STABLESWAP_FARMS else "lp"
            tokens.append(
                await self.engine.classify_and_price(
                    self.chain, self.name, "staked", lp_token, balance, wallet_address,
                    strategy=strategy,
                )
            )

        rewards = await self.call_int(
            REGISTRY, IRON_REGISTRY_ABI, "pendingReward", [pid, wallet_address]
        )
        if rewards > 0:
            tokens.append(
                await self.engine.add_token(
                    self.chain, self.name, "unclaimed", ICE, rewards, wallet_address
                )
            )
        return tokens

    async def get_market_balances(self, wallet_address: str) -> list[AnyToken]:
        markets = await self.call(LENDING, IRON_LENDING_ABI, "getAllMarkets", default=())
        results = await asyncio.gather(
            *(self._get_market(market, wallet_address) for market in markets)
        )
        return [token for market in results for token in market]

    async def _underlying(self, market: str) -> str | None:
        if market.lower() == NATIVE_MARKET:
            return NATIVE_ADDRESS
        return await self.call(market, IRON_MARKET_ABI, "underlying")

    async def _get_market(self, market: str, wallet_address: str) -> list[AnyToken]:
        balance, snapshot = await asyncio.gather(
            self.call_int(market, MIN_ABI, "balanceOf", [wallet_address]),
            self.call(market, IRON_MARKET_ABI, "getAccountSnapshot", [wallet_address]),
        )
        if not snapshot:
            return []
        debt, exchange_rate = int(snapshot[2]), int(snapshot[3])
        if balance <= 0 and debt <= 0:
            return []

        underlying = await self._underlying(market)
        if not underlying:
            return []

        tokens: list[AnyToken] = []
        if balance > 0:
            tokens.append(
                await self.engine.add_token(
                    self.chain, self.name, "lent", underlying,
                    balance * exchange_rate // 10**18, wallet_address,
                )
            )
        if debt > 0:
            tokens.append(
                await self.engine.add_debt_token(
                    self.chain, self.name, underlying, debt, wallet_address
                )
            )
        return tokens

    async def get_market_rewards(self, wallet_address: str) -> list[AnyToken]:
        rewards = await self.call_int(LENDING, IRON_LENDING_ABI, "rewardAccrued", [wallet_address])
        if rewards <= 0:
            return []
        return [
            await self.engine.add_token(
                self.chain, self.name, "unclaimed", ICE, rewards, wallet_address
            )
        ]

    async def get_staked_ice(self, wallet_address: str) -> list[AnyToken]:
        balance = await self.call_int(BLUEICE, MIN_ABI, "balanceOf", [wallet_address])
        if balance <= 0:
            return []
        locked = await self.call(BLUEICE, IRON_STAKING_ABI, "locked", [wallet_address])
        amount, end = (int(locked[0]), int(locked[1])) if locked else (0, 0)
        token = await self.engine.add_x_token(
            self.chain, self.name, "staked", BLUEICE, balance, wallet_address,
            ICE, amount, info={"unlock": end},
        )
        return [token]
