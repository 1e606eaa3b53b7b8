"""Chain client protocol: contract-read abstraction used by the valuation engine."""
from typing import Any, Protocol

from ..chains.evm.retry import QueryResult, RetryPolicy


class ChainClient(Protocol):
    """Abstract interface for read-only EVM access on one chain."""

    chain: str

    async def query(
        self,
        address: str,
        abi: list[dict[str, Any]],
        method: str,
        args: list[Any] | tuple[Any, ...] = (),
        policy: RetryPolicy | None = None,
    ) -> QueryResult: ...

    async def get_native_balance(self, wallet: str) -> QueryResult: ...
