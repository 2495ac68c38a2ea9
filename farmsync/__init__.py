"""Offline-first farm management data core."""

__version__ = "0.1.0"
