"""External price sources."""
from .defillama import DefiLlamaOracle

__all__ = ["DefiLlamaOracle"]
