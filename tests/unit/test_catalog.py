"""Unit tests for the token catalog."""
from __future__ import annotations

from weaver.catalog import TokenCatalog
from weaver.config import DEFAULT_TOKEN_LOGO

USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"


class TestTokenCatalog:
    def test_tokens(self, catalog: TokenCatalog) -> None:
        assert [t.symbol for t in catalog.tokens("eth")] == ["USDC", "WETH", "DAI"]
        assert catalog.tokens("bsc") == ()

    def test_tracked_token_case_insensitive(self, catalog: TokenCatalog) -> None:
        token = catalog.get_tracked_token("eth", USDC)
        assert token is not None
        assert token.decimals == 6

    def test_untracked_token(self, catalog: TokenCatalog) -> None:
        assert catalog.get_tracked_token("eth", "0x" + "9" * 40) is None

    def test_native_symbol(self, catalog: TokenCatalog) -> None:
        assert catalog.native_symbol("eth") == "ETH"
        assert catalog.native_symbol("ftm") == "FTM"

    def test_logo_lookup_order(self, catalog: TokenCatalog) -> None:
        assert catalog.get_token_logo("eth", "USDC") == "usdc.png"
        assert catalog.get_token_logo("eth", "ETH") == "eth.png"
        assert catalog.get_token_logo("eth", "XYZ") == DEFAULT_TOKEN_LOGO
        assert catalog.get_token_logo("bsc", "USDC") == DEFAULT_TOKEN_LOGO
