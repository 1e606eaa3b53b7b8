"""Unit tests for data models."""
from __future__ import annotations

import pytest

from weaver.config import DEFAULT_TOKEN_LOGO
from weaver.models import (
    NATIVE_ADDRESS,
    DebtToken,
    LPToken,
    NativeToken,
    PricedToken,
    Token,
    TokenPrice,
    XToken,
)


def _token(**overrides) -> Token:
    fields = dict(
        chain="eth", location="wallet", status="none", owner="0xowner",
        symbol="USDC", address="0xusdc", balance=10.0, price=1.0,
    )
    fields.update(overrides)
    return Token(**fields)


class TestToken:
    def test_value(self) -> None:
        assert _token(balance=2.5, price=4.0).value == pytest.approx(10.0)

    def test_defaults(self) -> None:
        t = _token()
        assert t.kind == "token"
        assert t.logo == DEFAULT_TOKEN_LOGO

    def test_frozen(self) -> None:
        t = _token()
        with pytest.raises(AttributeError):
            t.balance = 99.0  # type: ignore[misc]

    def test_equality(self) -> None:
        assert _token() == _token()

    def test_to_dict(self) -> None:
        d = _token().to_dict()
        assert d["symbol"] == "USDC"
        assert d["kind"] == "token"
        assert d["balance"] == 10.0


class TestNativeToken:
    def test_defaults(self) -> None:
        n = NativeToken(chain="eth", owner="0xowner", symbol="ETH", balance=1.5, price=2000.0)
        assert n.address == NATIVE_ADDRESS
        assert n.location == "wallet"
        assert n.status == "none"
        assert n.value == pytest.approx(3000.0)


class TestDebtToken:
    def test_status_is_borrowed(self) -> None:
        d = DebtToken(
            chain="poly", location="iron", owner="0xowner", symbol="USDC",
            address="0xusdc", balance=100.0, price=1.0,
        )
        assert d.status == "borrowed"
        assert d.kind == "debt"
        assert d.value == pytest.approx(100.0)


class TestLPToken:
    def test_value_is_sum_of_sides(self) -> None:
        lp = LPToken(
            chain="eth", location="wallet", status="none", owner="0xowner",
            symbol="UNI-V2", address="0xpair", balance=1.0,
            token0=PricedToken("USDC", "0xusdc", 500.0, 1.0),
            token1=PricedToken("WETH", "0xweth", 0.25, 2000.0),
        )
        assert lp.value == pytest.approx(1000.0)

    def test_to_dict_nests_sides(self) -> None:
        lp = LPToken(
            chain="eth", location="wallet", status="none", owner="0xowner",
            symbol="UNI-V2", address="0xpair", balance=1.0,
            token0=PricedToken("USDC", "0xusdc", 1.0, 1.0),
            token1=PricedToken("DAI", "0xdai", 1.0, 1.0),
        )
        d = lp.to_dict()
        assert d["token0"]["symbol"] == "USDC"
        assert d["kind"] == "lp"


class TestXToken:
    def test_value_is_underlying_value(self) -> None:
        x = XToken(
            chain="poly", location="iron", status="staked", owner="0xowner",
            symbol="blueICE", address="0xblueice", balance=5.0,
            underlying=PricedToken("ICE", "0xice", 10.0, 0.5),
            info={"unlock": 1700000000},
        )
        assert x.value == pytest.approx(5.0)
        assert x.to_dict()["info"] == {"unlock": 1700000000}


class TestTokenPrice:
    def test_defaults(self) -> None:
        p = TokenPrice(address="0xusdc", price=1.0)
        assert p.source == "oracle"
        assert p.timestamp > 0
