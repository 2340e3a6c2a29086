"""Parley: two-party direct messaging service."""

__version__ = "0.1.0"
