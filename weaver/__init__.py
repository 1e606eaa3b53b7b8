"""Multi-chain EVM wallet inventory and USD valuation."""

__version__ = "0.1.0"
