"""Service modules"""
from .price_service import PriceCache, PriceResolver

__all__ = ["PriceCache", "PriceResolver"]
