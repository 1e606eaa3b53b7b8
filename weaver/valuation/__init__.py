"""Token valuation: pricing math, per-chain pool tables and strategies."""
from .engine import ValuationEngine
from .registry import POOL_REGISTRY, PoolRule
from .strategies import STRATEGIES

__all__ = ["POOL_REGISTRY", "PoolRule", "STRATEGIES", "ValuationEngine"]
