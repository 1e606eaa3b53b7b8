"""Pure valuation arithmetic: no I/O.

All values are floats already normalized by decimals. Every division by a
supply or decimals constant goes through :func:`safe_div`, so an empty pool
yields 0 instead of NaN or infinity.
"""
from __future__ import annotations

from typing import Iterable


def safe_div(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator


def normalize(raw: int | float | None, decimals: int = 18) -> float:
    """Raw on-chain integer → human units. Never negative.

    Examples:
        normalize(1_000_000, 6) → 1.0
        normalize(None) → 0.0
    """
    if not raw or raw < 0:
        return 0.0
    return safe_div(raw, 10**decimals)


def pro_rata(reserve: float, holder_balance: float, total_supply: float) -> float:
    """Holder's share of a pool reserve: ``reserve * holder / supply``."""
    return reserve * safe_div(holder_balance, total_supply)


def weighted_pool_price(
    assets: Iterable[tuple[float, float]],
    total_supply: float,
    multiplier: float = 1.0,
) -> float:
    """Per-share price of a multi-asset pool.

    ``assets`` holds ``(reserve, price)`` pairs; the result is
    ``sum(reserve * price) / total_supply * multiplier``.
    """
    total = sum(reserve * price for reserve, price in assets)
    return safe_div(total, total_supply) * multiplier


def scale_raw(raw_balance: int, rate: float) -> int:
    """Raw balance multiplied by a float rate, kept as an integer amount."""
    if raw_balance <= 0 or rate <= 0:
        return 0
    return int(raw_balance * rate)
