"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any

import pytest

from weaver.catalog import TokenCatalog
from weaver.chains.evm.retry import QueryResult, RetryPolicy
from weaver.config import (
    AppConfig,
    ChainCatalogConfig,
    ChainConfig,
    QueryConfig,
    TokenData,
)
from weaver.models import NATIVE_ADDRESS
from weaver.services.price_service import PriceResolver
from weaver.valuation.engine import ValuationEngine

WALLET = "0x5f5b35611f822a83578347e41fee3ca13a7a6436"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"
PAIR = "0x1111111111111111111111111111111111111111"
UNKNOWN = "0x2222222222222222222222222222222222222222"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


def _key_args(args: Any) -> tuple[Any, ...]:
    return tuple(a.lower() if isinstance(a, str) else a for a in args)


class FakeChainClient:
    """In-memory chain: canned results keyed by (address, method, args).

    Reads without a canned result fail the way an exhausted retry does.
    """

    def __init__(self, chain: str = "eth", native_balance: int = 0, tx_count: int = 0) -> None:
        self.chain = chain
        self.native_balance = native_balance
        self.tx_count = tx_count
        self.responses: dict[tuple[str, str, tuple[Any, ...]], Any] = {}
        self.calls: list[tuple[str, str, tuple[Any, ...]]] = []

    def set(self, address: str, method: str, value: Any, args: Any = ()) -> None:
        self.responses[(address.lower(), method, _key_args(args))] = value

    async def query(
        self,
        address: str,
        abi: list[dict[str, Any]],
        method: str,
        args: Any = (),
        policy: RetryPolicy | None = None,
    ) -> QueryResult:
        key = (address.lower(), method, _key_args(args))
        self.calls.append(key)
        if key not in self.responses:
            return QueryResult("failed", error="no canned response")
        value = self.responses[key]
        if isinstance(value, Exception):
            raise value
        return QueryResult.success(value)

    async def get_native_balance(self, wallet: str) -> QueryResult:
        return QueryResult.success(self.native_balance)

    async def get_tx_count(self, wallet: str) -> QueryResult:
        return QueryResult.success(self.tx_count)


class FakeOracle:
    """Price oracle backed by a dict of lowercased address → price."""

    def __init__(self, prices: dict[str, float] | None = None) -> None:
        self.prices = {k.lower(): v for k, v in (prices or {}).items()}
        self.calls: list[tuple[str, list[str], bool]] = []

    async def fetch_prices(
        self, chain: str, addresses: list[str], include_native: bool = False
    ) -> dict[str, float]:
        self.calls.append((chain, list(addresses), include_native))
        wanted = [a.lower() for a in addresses]
        if include_native:
            wanted.append(NATIVE_ADDRESS)
        return {a: self.prices[a] for a in wanted if a in self.prices}


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
        native_symbol="ETH",
        llama_chain="ethereum",
        native_price_id="coingecko:ethereum",
    )


@pytest.fixture()
def sample_catalog_config() -> dict[str, ChainCatalogConfig]:
    return {
        "eth": ChainCatalogConfig(
            tokens=(
                TokenData(symbol="USDC", address=USDC, decimals=6, logo="usdc.png"),
                TokenData(symbol="WETH", address=WETH, decimals=18, logo="weth.png"),
                TokenData(symbol="DAI", address=DAI, decimals=18, logo="dai.png"),
            ),
            logos={"ETH": "eth.png"},
        )
    }


@pytest.fixture()
def sample_app_config(
    sample_chain_config: ChainConfig,
    sample_catalog_config: dict[str, ChainCatalogConfig],
) -> AppConfig:
    return AppConfig(
        chains={"eth": sample_chain_config},
        query=QueryConfig(max_passes=3, max_concurrency=4, request_timeout=5.0),
        catalog=sample_catalog_config,
    )


@pytest.fixture()
def catalog(sample_app_config: AppConfig) -> TokenCatalog:
    return TokenCatalog(sample_app_config.catalog, sample_app_config.chains)


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def eth_client() -> FakeChainClient:
    return FakeChainClient("eth")


@pytest.fixture()
def oracle() -> FakeOracle:
    return FakeOracle({USDC: 1.0, WETH: 2000.0, DAI: 1.0, NATIVE_ADDRESS: 2000.0})


@pytest.fixture()
def resolver(oracle: FakeOracle) -> PriceResolver:
    return PriceResolver(oracle)


@pytest.fixture()
def engine(
    eth_client: FakeChainClient, resolver: PriceResolver, catalog: TokenCatalog
) -> ValuationEngine:
    engine = ValuationEngine({"eth": eth_client}, resolver, catalog, registry={})
    resolver.set_composite_pricer(engine.price_share)
    return engine


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    chains:
      eth:
        rpc_endpoints: ["https://rpc.example.com", "${TEST_EXTRA_RPC}"]
        rpc_timeout: 10
        native_symbol: ETH
        llama_chain: ethereum
        native_price_id: coingecko:ethereum
      poly:
        rpc_endpoints: ["https://poly.example.com"]
    query:
      max_passes: 2
      max_concurrency: 8
      request_timeout: 30
      suppressed_contracts:
        eth: ["0xAbC0000000000000000000000000000000000001"]
    price_oracle:
      provider: defillama
      defillama:
        url: "https://coins.example.com/prices/current"
        timeout: 5
    tokens:
      eth:
        tokens:
          - {symbol: USDC, address: "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", decimals: 6}
          - {symbol: DAI, address: "0x6B175474E89094C44Da98b954EedeAC495271d0F"}
        logos:
          ETH: "https://logos.example.com/eth.png"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
