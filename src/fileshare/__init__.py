"""Gated file distribution server."""

__version__ = "0.1.0"
