"""Polygon project adapters."""
