"""Integration tests for Multicall3 batching."""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from eth_abi import decode, encode

from weaver.abis import LP_ABI, MIN_ABI
from weaver.chains.evm.client import EvmClient
from weaver.chains.evm.multicall import CallSpec, MulticallBatcher
from weaver.config import ChainConfig

WALLET = "0x5f5b35611f822a83578347e41fee3ca13a7a6436"
TOKENS = [
    "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    "0x6B175474E89094C44Da98b954EedeAC495271d0F",
    "0xdAC17F958D2ee523a2206206994597C13D831ec7",
]


@pytest.fixture()
def client() -> EvmClient:
    return EvmClient("eth", ChainConfig(rpc_endpoints=("https://rpc1.example.com",)))


def _aggregate(entries: list[tuple[bool, bytes]]) -> bytes:
    return encode(["(bool,bytes)[]"], [entries])


def _balance_calls() -> list[CallSpec]:
    return [CallSpec(t.lower(), t, MIN_ABI, "balanceOf", (WALLET,)) for t in TOKENS]


class TestMulticallQuery:
    @pytest.mark.asyncio
    async def test_one_failure_out_of_many(self, client: EvmClient) -> None:
        client.call_raw = AsyncMock(return_value=_aggregate([
            (True, encode(["uint256"], [5])),
            (False, b""),
            (True, encode(["uint256"], [0])),
        ]))

        results = await MulticallBatcher(client).multicall_query(_balance_calls())

        assert set(results) == {t.lower() for t in TOKENS}
        assert results[TOKENS[0].lower()].success
        assert results[TOKENS[0].lower()].return_values == (5,)
        assert not results[TOKENS[1].lower()].success
        assert results[TOKENS[2].lower()].return_values == (0,)
        client.call_raw.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_sends_try_aggregate_to_multicall(self, client: EvmClient) -> None:
        client.call_raw = AsyncMock(return_value=_aggregate([(True, encode(["uint256"], [1]))] * 3))

        await MulticallBatcher(client).multicall_query(_balance_calls())

        to, data = client.call_raw.call_args[0]
        assert to == client.multicall_address
        require_success, calls = decode(["bool", "(address,bytes)[]"], data[4:])
        assert require_success is False
        assert len(calls) == 3
        assert calls[0][1][:4].hex() == "70a08231"

    @pytest.mark.asyncio
    async def test_multi_output_values(self, client: EvmClient) -> None:
        client.call_raw = AsyncMock(return_value=_aggregate([
            (True, encode(["uint112", "uint112", "uint32"], [10, 20, 3])),
        ]))

        results = await MulticallBatcher(client).multicall_query(
            [CallSpec("reserves", TOKENS[0], LP_ABI, "getReserves")]
        )

        assert results["reserves"].return_values == (10, 20, 3)

    @pytest.mark.asyncio
    async def test_undecodable_entry_fails_alone(self, client: EvmClient) -> None:
        client.call_raw = AsyncMock(return_value=_aggregate([
            (True, b"\x01"),
            (True, encode(["uint256"], [9])),
        ]))

        results = await MulticallBatcher(client).multicall_query(_balance_calls()[:2])

        assert not results[TOKENS[0].lower()].success
        assert results[TOKENS[1].lower()].return_values == (9,)

    @pytest.mark.asyncio
    async def test_aggregate_failure_marks_all_failed(
        self, client: EvmClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        client.call_raw = AsyncMock(side_effect=RuntimeError("RPC Error: boom"))

        results = await MulticallBatcher(client).multicall_query(_balance_calls())

        assert len(results) == 3
        assert not any(r.success for r in results.values())
        assert "Multicall of 3 calls failed" in caplog.text

    @pytest.mark.asyncio
    async def test_short_response_keeps_every_reference(self, client: EvmClient) -> None:
        client.call_raw = AsyncMock(return_value=_aggregate([(True, encode(["uint256"], [1]))]))

        results = await MulticallBatcher(client).multicall_query(_balance_calls())

        assert len(results) == 3
        assert results[TOKENS[0].lower()].success
        assert not results[TOKENS[2].lower()].success

    @pytest.mark.asyncio
    async def test_duplicate_references_raise(self, client: EvmClient) -> None:
        calls = [CallSpec("x", t, MIN_ABI, "balanceOf", (WALLET,)) for t in TOKENS[:2]]
        with pytest.raises(ValueError, match="unique"):
            await MulticallBatcher(client).multicall_query(calls)

    @pytest.mark.asyncio
    async def test_empty(self, client: EvmClient) -> None:
        client.call_raw = AsyncMock()
        assert await MulticallBatcher(client).multicall_query([]) == {}
        client.call_raw.assert_not_called()
