"""Shuttle: a configurable synchronous HTTP client."""

__version__ = "1.0.0"
