"""Aave v3 flash-liquidation bot."""

__version__ = "0.1.0"
