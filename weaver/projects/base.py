"""Shared plumbing for project adapters."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable

from ..interfaces.chain import ChainClient
from ..models import AnyToken
from ..valuation.engine import ValuationEngine

logger = logging.getLogger(__name__)


class BaseProjectAdapter:
    """Adapter for one project on one chain.

    Subclasses set ``chain`` and ``name`` and implement :meth:`get`, usually as
    a :meth:`collect` over independent steps.
    """

    chain: str = ""
    name: str = ""

    def __init__(self, engine: ValuationEngine, client: ChainClient) -> None:
        self.engine = engine
        self.client = client

    @property
    def project_name(self) -> str:
        return self.name

    async def get(self, wallet_address: str) -> list[AnyToken]:
        raise NotImplementedError

    async def call(
        self,
        address: str,
        abi: list[dict[str, Any]],
        method: str,
        args: list[Any] | tuple[Any, ...] = (),
        default: Any = None,
    ) -> Any:
        """Contract read on this adapter's chain; ``default`` when it fails."""
        result = await self.client.query(address, abi, method, args)
        return result.unwrap_or(default)

    async def call_int(
        self,
        address: str,
        abi: list[dict[str, Any]],
        method: str,
        args: list[Any] | tuple[Any, ...] = (),
    ) -> int:
        return int(await self.call(address, abi, method, args, default=0) or 0)

    async def collect(self, steps: dict[str, Awaitable[list[AnyToken]]]) -> list[AnyToken]:
        """Run steps concurrently; a failing step is logged and the rest are kept."""
        results = await asyncio.gather(*steps.values(), return_exceptions=True)
        tokens: list[AnyToken] = []
        for step, result in zip(steps, results):
            if isinstance(result, Exception):
                logger.error(
                    "Error fetching %s %s on %s: %s", self.name, step, self.chain.upper(), result
                )
                continue
            if isinstance(result, BaseException):
                raise result
            tokens.extend(result)
        return tokens
