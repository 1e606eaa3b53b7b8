"""Bounded endpoint-failover policy and the result type it produces."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Literal

from ...config import QueryConfig

# Contracts whose reads are known to fail; exhausted retries stay silent.
KNOWN_BROKEN_CONTRACTS: dict[str, tuple[str, ...]] = {
    "poly": (
        "0x8aaa5e259f74c8114e0a471d9f2adfc66bfe09ed",  # QuickSwap registry
        "0x9dd12421c637689c3fc6e661c9e2f02c2f61b3eb",  # QuickSwap dual rewards registry
    ),
}


@dataclass(frozen=True)
class RetryPolicy:
    """How many full passes over a chain's endpoints to make, and who stays quiet.

    Total attempts are ``endpoint_count * max_passes``, cycling endpoints in
    order on every pass.
    """

    max_passes: int = 3
    suppressed: frozenset[tuple[str, str]] = field(default_factory=frozenset)
    quiet: bool = False

    @classmethod
    def from_config(cls, config: QueryConfig) -> RetryPolicy:
        pairs = {
            (chain, addr.lower())
            for source in (KNOWN_BROKEN_CONTRACTS, config.suppressed_contracts)
            for chain, addrs in source.items()
            for addr in addrs
        }
        return cls(max_passes=config.max_passes, suppressed=frozenset(pairs))

    def attempts(self, endpoint_count: int) -> Iterator[tuple[int, int]]:
        """Yield ``(pass_number, endpoint_index)`` for every allowed attempt."""
        for pass_number in range(self.max_passes):
            for index in range(endpoint_count):
                yield pass_number, index

    def is_suppressed(self, chain: str, address: str) -> bool:
        return self.quiet or (chain, address.lower()) in self.suppressed


@dataclass(frozen=True)
class QueryResult:
    """Outcome of a contract read.

    ``ok`` carries a decoded value, ``absent`` marks an exhausted read against a
    known-broken contract and ``failed`` an exhausted read that was logged.
    """

    status: Literal["ok", "absent", "failed"]
    value: Any = None
    error: str = ""
    attempts: int = 0

    @classmethod
    def success(cls, value: Any, attempts: int = 1) -> QueryResult:
        return cls("ok", value=value, attempts=attempts)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def unwrap_or(self, default: Any) -> Any:
        return self.value if self.ok else default
