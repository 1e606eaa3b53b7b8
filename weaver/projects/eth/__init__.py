"""Ethereum project adapters."""
