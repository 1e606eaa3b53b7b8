"""Data models: all frozen (immutable)."""
from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Union

from .config import DEFAULT_TOKEN_LOGO

NATIVE_ADDRESS = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

TokenStatus = Literal["none", "staked", "lent", "borrowed", "unclaimed"]


@dataclass(frozen=True)
class PricedToken:
    """Constituent of an LP share or the underlying of a composite token."""

    symbol: str
    address: str
    balance: float
    price: float
    logo: str = DEFAULT_TOKEN_LOGO

    @property
    def value(self) -> float:
        return self.balance * self.price


@dataclass(frozen=True)
class NativeToken:
    chain: str
    owner: str
    symbol: str
    balance: float
    price: float
    logo: str = DEFAULT_TOKEN_LOGO
    location: str = "wallet"
    status: TokenStatus = "none"
    address: str = NATIVE_ADDRESS
    kind: Literal["native"] = "native"

    @property
    def value(self) -> float:
        return self.balance * self.price

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Token:
    chain: str
    location: str
    status: TokenStatus
    owner: str
    symbol: str
    address: str
    balance: float
    price: float
    logo: str = DEFAULT_TOKEN_LOGO
    kind: Literal["token"] = "token"

    @property
    def value(self) -> float:
        return self.balance * self.price

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DebtToken:
    """Borrowed position; the price is the underlying asset's market price."""

    chain: str
    location: str
    owner: str
    symbol: str
    address: str
    balance: float
    price: float
    logo: str = DEFAULT_TOKEN_LOGO
    status: TokenStatus = "borrowed"
    kind: Literal["debt"] = "debt"

    @property
    def value(self) -> float:
        return self.balance * self.price

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LPToken:
    chain: str
    location: str
    status: TokenStatus
    owner: str
    symbol: str
    address: str
    balance: float
    token0: PricedToken
    token1: PricedToken
    kind: Literal["lp"] = "lp"

    @property
    def value(self) -> float:
        return self.token0.value + self.token1.value

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class XToken:
    """Wrapped or staked position with a single underlying asset."""

    chain: str
    location: str
    status: TokenStatus
    owner: str
    symbol: str
    address: str
    balance: float
    underlying: PricedToken
    logo: str = DEFAULT_TOKEN_LOGO
    info: dict[str, Any] | None = None
    kind: Literal["xtoken"] = "xtoken"

    @property
    def value(self) -> float:
        return self.underlying.value

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


AnyToken = Union[NativeToken, Token, DebtToken, LPToken, XToken]


@dataclass(frozen=True)
class TokenPrice:
    """A single price-cache record."""

    address: str
    price: float
    source: Literal["oracle", "composite", "manual"] = "oracle"
    timestamp: float = field(default_factory=time.time)
