"""EVM chain access: failover client, ABI codec and multicall batching."""
from .client import EvmClient
from .multicall import CallResult, CallSpec, MulticallBatcher
from .retry import QueryResult, RetryPolicy

__all__ = [
    "CallResult",
    "CallSpec",
    "EvmClient",
    "MulticallBatcher",
    "QueryResult",
    "RetryPolicy",
]
