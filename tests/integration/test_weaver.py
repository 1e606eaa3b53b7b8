"""Integration tests for the Weaver facade and the wallet service."""
from __future__ import annotations

import asyncio
import dataclasses
from unittest.mock import AsyncMock

import pytest
from conftest import DAI, USDC, WALLET, WETH, FakeChainClient, FakeOracle

from weaver.catalog import TokenCatalog
from weaver.chains.evm.multicall import CallResult
from weaver.chains.evm.retry import QueryResult
from weaver.config import AppConfig
from weaver.models import NATIVE_ADDRESS, NativeToken, TokenPrice
from weaver.services.wallet_service import WalletService
from weaver.services.weaver import Weaver
from weaver.valuation.engine import ValuationEngine


class SlowOracle:
    """Oracle that never answers within a short deadline."""

    async def fetch_prices(
        self, chain: str, addresses: list[str], include_native: bool = False
    ) -> dict[str, float]:
        await asyncio.sleep(5)
        return {}


def _with_timeout(config: AppConfig, seconds: float) -> AppConfig:
    return dataclasses.replace(
        config, query=dataclasses.replace(config.query, request_timeout=seconds)
    )


@pytest.fixture()
def weaver(sample_app_config: AppConfig) -> Weaver:
    return Weaver(sample_app_config)


class TestWiring:
    def test_clients_per_chain(self, weaver: Weaver) -> None:
        assert set(weaver.clients) == {"eth"}
        assert weaver.clients["eth"].policy.max_passes == 3

    def test_engine_registered_as_composite_pricer(self, weaver: Weaver) -> None:
        assert weaver.resolver._composite_pricer == weaver.engine.price_share

    def test_catalog_queries(self, weaver: Weaver) -> None:
        assert [t.symbol for t in weaver.get_tokens("eth")] == ["USDC", "WETH", "DAI"]
        assert weaver.get_token_logo("eth", "USDC") == "usdc.png"
        assert weaver.get_projects("eth") == ["pooltogether"]

    def test_is_address(self) -> None:
        assert Weaver.is_address(WALLET)
        assert not Weaver.is_address("0x123")
        assert not Weaver.is_address("not an address")


class TestFacade:
    @pytest.mark.asyncio
    async def test_unconfigured_chain(self, weaver: Weaver) -> None:
        assert await weaver.get_project_balance("bsc", WALLET, "pooltogether") == []
        assert await weaver.get_wallet_balance("bsc", WALLET) == []
        assert await weaver.get_token_price("bsc", USDC) == 0.0

    @pytest.mark.asyncio
    async def test_request_timeout_returns_empty(
        self, sample_app_config: AppConfig, caplog: pytest.LogCaptureFixture
    ) -> None:
        config = dataclasses.replace(
            sample_app_config,
            query=dataclasses.replace(sample_app_config.query, request_timeout=0.05),
        )
        weaver = Weaver(config)

        async def slow(*args, **kwargs):
            await asyncio.sleep(5)
            return ["never"]

        weaver.dispatcher.get_project_balance = slow  # type: ignore[method-assign]

        assert await weaver.get_project_balance("eth", WALLET, "pooltogether") == []
        assert "timed out" in caplog.text

    @pytest.mark.asyncio
    async def test_price_request_timeout_returns_zero(
        self, sample_app_config: AppConfig, caplog: pytest.LogCaptureFixture
    ) -> None:
        weaver = Weaver(_with_timeout(sample_app_config, 0.05))
        weaver.resolver.oracle = SlowOracle()

        loop = asyncio.get_running_loop()
        started = loop.time()
        price = await weaver.get_token_price("eth", USDC)

        assert price == 0.0
        assert loop.time() - started < 1.0
        assert "timed out" in caplog.text

    @pytest.mark.asyncio
    async def test_chain_price_refresh_timeout_returns_empty(
        self, sample_app_config: AppConfig
    ) -> None:
        weaver = Weaver(_with_timeout(sample_app_config, 0.05))
        weaver.resolver.oracle = SlowOracle()

        assert await weaver.get_chain_prices("eth") == {}

    @pytest.mark.asyncio
    async def test_tx_count_timeout_returns_zero(self, sample_app_config: AppConfig) -> None:
        weaver = Weaver(_with_timeout(sample_app_config, 0.05))

        async def slow(wallet: str) -> QueryResult:
            await asyncio.sleep(5)
            return QueryResult.success(42)

        weaver.clients["eth"].get_tx_count = slow  # type: ignore[method-assign]

        assert await weaver.get_tx_count("eth", WALLET) == 0

    @pytest.mark.asyncio
    async def test_tx_count(self, weaver: Weaver) -> None:
        weaver.clients["eth"].get_tx_count = AsyncMock(return_value=QueryResult.success(42))
        assert await weaver.get_tx_count("eth", WALLET) == 42

    @pytest.mark.asyncio
    async def test_prices(self, weaver: Weaver) -> None:
        weaver.resolver.oracle = FakeOracle({USDC: 1.0, WETH: 2000.0, NATIVE_ADDRESS: 2000.0})

        prices = await weaver.get_chain_prices("eth")

        assert prices[USDC] == 1.0
        assert prices[NATIVE_ADDRESS] == 2000.0
        assert DAI not in prices
        weaver.update_token_price("eth", TokenPrice(address=DAI, price=1.01, source="manual"))
        assert weaver.fetch_prices("eth")[DAI] == 1.01
        assert await weaver.get_token_price("eth", DAI) == 1.01


class TestWalletService:
    @pytest.mark.asyncio
    async def test_native_and_tracked_balances(
        self, engine: ValuationEngine, eth_client: FakeChainClient, catalog: TokenCatalog
    ) -> None:
        eth_client.native_balance = 2 * 10**18
        batcher = AsyncMock()
        batcher.multicall_query.return_value = {
            USDC: CallResult(USDC, True, (5_000_000,)),
            WETH: CallResult(WETH, True, (0,)),
            DAI: CallResult(DAI, False),
        }
        service = WalletService(engine, catalog, {"eth": eth_client}, {"eth": batcher})

        tokens = await service.get_wallet_balance("eth", WALLET)

        assert isinstance(tokens[0], NativeToken)
        assert tokens[0].value == pytest.approx(4000.0)
        assert [t.symbol for t in tokens[1:]] == ["USDC"]
        assert tokens[1].balance == pytest.approx(5.0)
        calls = batcher.multicall_query.call_args[0][0]
        assert [c.reference for c in calls] == [USDC, WETH, DAI]
        assert all(c.method == "balanceOf" for c in calls)

    @pytest.mark.asyncio
    async def test_empty_wallet(
        self, engine: ValuationEngine, eth_client: FakeChainClient, catalog: TokenCatalog
    ) -> None:
        batcher = AsyncMock()
        batcher.multicall_query.return_value = {
            USDC: CallResult(USDC, True, (0,)),
            WETH: CallResult(WETH, True, (0,)),
            DAI: CallResult(DAI, True, (0,)),
        }
        service = WalletService(engine, catalog, {"eth": eth_client}, {"eth": batcher})

        assert await service.get_wallet_balance("eth", WALLET) == []
