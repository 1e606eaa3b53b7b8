"""EVM JSON-RPC client with endpoint failover."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any, Awaitable, Callable

import aiohttp
import certifi
from eth_utils import to_bytes

from ...config import ChainConfig
from .abi import AbiError, decode_result, encode_call
from .retry import QueryResult, RetryPolicy

logger = logging.getLogger(__name__)


class EvmClient:
    """Read-only EVM client for one chain.

    Every read goes through :meth:`_with_failover`, which walks the configured
    endpoints in order for up to ``policy.max_passes`` passes.
    """

    def __init__(
        self,
        chain: str,
        config: ChainConfig,
        policy: RetryPolicy | None = None,
        max_concurrency: int = 16,
    ) -> None:
        self.chain = chain
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.multicall_address = config.multicall
        self.policy = policy or RetryPolicy()
        self.max_concurrency = max_concurrency
        self._semaphore: asyncio.Semaphore | None = None
        self._semaphore_loop: asyncio.AbstractEventLoop | None = None

    def _limiter(self) -> asyncio.Semaphore:
        """Concurrency bound for the running event loop; rebuilt when the loop changes."""
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._semaphore_loop is not loop:
            self._semaphore = asyncio.Semaphore(self.max_concurrency)
            self._semaphore_loop = loop
        return self._semaphore

    async def rpc_call(self, method: str, params: list[Any], rpc_index: int = 0) -> Any:
        """Make one JSON-RPC call against a single endpoint; raises on any failure."""
        rpc_url = self.endpoints[rpc_index]
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        async with self._limiter():
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    rpc_url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    result = await response.json(content_type=None)
                    if "error" in result:
                        raise RuntimeError(f"RPC Error: {result['error']}")
                    if "result" not in result:
                        raise RuntimeError(f"Malformed RPC response from {rpc_url}")
                    return result["result"]

    async def _with_failover(
        self,
        label: str,
        address: str,
        request: Callable[[int], Awaitable[Any]],
        policy: RetryPolicy | None = None,
    ) -> QueryResult:
        policy = policy or self.policy
        attempts = 0
        last_error: Exception | None = None

        for pass_number, rpc_index in policy.attempts(len(self.endpoints)):
            attempts += 1
            try:
                value = await request(rpc_index)
                return QueryResult.success(value, attempts)
            except Exception as e:
                last_error = e
                logger.debug(
                    "%s on %s failed via %s (pass %d): %s",
                    label, address, self.endpoints[rpc_index], pass_number + 1, e,
                )

        error = str(last_error) if last_error else "no RPC endpoints configured"
        if policy.is_suppressed(self.chain, address):
            return QueryResult("absent", error=error, attempts=attempts)

        logger.error(
            "Error calling %s on %s (chain: %s): %s",
            label, address, self.chain.upper(), error,
        )
        return QueryResult("failed", error=error, attempts=attempts)

    async def query(
        self,
        address: str,
        abi: list[dict[str, Any]],
        method: str,
        args: list[Any] | tuple[Any, ...] = (),
        policy: RetryPolicy | None = None,
    ) -> QueryResult:
        """Call a view method and decode its result.

        Transport errors, reverts and undecodable results are all retried the
        same way. Arguments that cannot be encoded fail immediately.
        """
        label = f"{method}({', '.join(str(a) for a in args)})"
        try:
            data = encode_call(abi, method, args)
        except AbiError as e:
            if (policy or self.policy).is_suppressed(self.chain, address):
                return QueryResult("absent", error=str(e))
            logger.error("Error calling %s on %s (chain: %s): %s", label, address, self.chain.upper(), e)
            return QueryResult("failed", error=str(e))

        call = {"to": address, "data": "0x" + data.hex()}

        async def request(rpc_index: int) -> Any:
            raw = await self.rpc_call("eth_call", [call, "latest"], rpc_index)
            return decode_result(abi, method, to_bytes(hexstr=raw), len(args))

        return await self._with_failover(label, address, request, policy)

    async def get_native_balance(self, wallet: str) -> QueryResult:
        """Wallet balance of the chain's gas coin, in wei."""

        async def request(rpc_index: int) -> int:
            return int(await self.rpc_call("eth_getBalance", [wallet, "latest"], rpc_index), 16)

        return await self._with_failover("eth_getBalance", wallet, request)

    async def get_tx_count(self, wallet: str) -> QueryResult:
        async def request(rpc_index: int) -> int:
            return int(
                await self.rpc_call("eth_getTransactionCount", [wallet, "latest"], rpc_index), 16
            )

        return await self._with_failover("eth_getTransactionCount", wallet, request)

    async def call_raw(self, to: str, data: bytes, rpc_index: int = 0) -> bytes:
        """Single ``eth_call`` against one endpoint, no failover; raises on failure."""
        raw = await self.rpc_call(
            "eth_call", [{"to": to, "data": "0x" + data.hex()}, "latest"], rpc_index
        )
        return to_bytes(hexstr=raw)
