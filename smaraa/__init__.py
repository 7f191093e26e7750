"""Smaraa: semantic archive and retrieval for chat messages."""

__version__ = "0.1.0"
