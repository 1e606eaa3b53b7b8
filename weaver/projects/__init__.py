"""Project adapters and the static registry the dispatcher reads."""
from __future__ import annotations

from .base import BaseProjectAdapter
from .eth.pooltogether import EthPoolTogetherAdapter
from .poly.iron import IronAdapter
from .poly.pooltogether import PolyPoolTogetherAdapter

PROJECTS: dict[str, dict[str, type[BaseProjectAdapter]]] = {
    "eth": {
        "pooltogether": EthPoolTogetherAdapter,
    },
    "bsc": {},
    "poly": {
        "iron": IronAdapter,
        "pooltogether": PolyPoolTogetherAdapter,
    },
    "ftm": {},
    "avax": {},
    "one": {},
    "cronos": {},
}

__all__ = ["BaseProjectAdapter", "PROJECTS"]
