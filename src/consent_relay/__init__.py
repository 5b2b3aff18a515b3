"""Relay daily Cookiebot consent statistics into New Relic custom events."""

__version__ = "0.1.0"
