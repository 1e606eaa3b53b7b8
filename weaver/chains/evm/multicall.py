"""Batch independent contract reads into one Multicall3 ``tryAggregate`` call."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from eth_utils import to_checksum_address

from ...abis import MULTICALL3_ABI
from .abi import decode_result, decode_values, encode_call
from .client import EvmClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallSpec:
    """One read to batch; ``reference`` correlates the result back to the caller."""

    reference: str
    contract_address: str
    abi: list[dict[str, Any]]
    method: str
    args: tuple[Any, ...] = ()


@dataclass(frozen=True)
class CallResult:
    reference: str
    success: bool
    return_values: tuple[Any, ...] = ()


class MulticallBatcher:
    """Aggregate reads for one chain through its primary endpoint only."""

    def __init__(self, client: EvmClient) -> None:
        self._client = client

    async def multicall_query(self, calls: list[CallSpec]) -> dict[str, CallResult]:
        """Run every call in one round trip; each entry succeeds or fails on its own."""
        references = [c.reference for c in calls]
        if len(set(references)) != len(references):
            raise ValueError("Multicall references must be unique")
        if not calls:
            return {}

        encoded: list[tuple[str, bytes]] = []
        failed_early: set[str] = set()
        for call in calls:
            try:
                data = encode_call(call.abi, call.method, call.args)
                encoded.append((to_checksum_address(call.contract_address), data))
            except Exception as e:
                # Keep positions aligned; the placeholder slot is discarded below.
                logger.warning("Cannot encode multicall entry '%s': %s", call.reference, e)
                failed_early.add(call.reference)
                encoded.append((to_checksum_address(self._client.multicall_address), b""))

        payload = encode_call(MULTICALL3_ABI, "tryAggregate", [False, encoded])

        try:
            raw = await self._client.call_raw(self._client.multicall_address, payload)
            entries = decode_result(MULTICALL3_ABI, "tryAggregate", raw)
        except Exception as e:
            logger.error(
                "Multicall of %d calls failed (chain: %s): %s",
                len(calls), self._client.chain.upper(), e,
            )
            return {c.reference: CallResult(c.reference, False) for c in calls}

        results: dict[str, CallResult] = {}
        for call, (success, return_data) in zip(calls, entries):
            if not success or call.reference in failed_early:
                results[call.reference] = CallResult(call.reference, False)
                continue
            try:
                values = decode_values(call.abi, call.method, return_data, len(call.args))
            except Exception as e:
                logger.debug("Undecodable multicall result for '%s': %s", call.reference, e)
                results[call.reference] = CallResult(call.reference, False)
                continue
            results[call.reference] = CallResult(call.reference, True, values)

        # A short response must not silently drop references.
        for call in calls:
            results.setdefault(call.reference, CallResult(call.reference, False))
        return results
