"""Conversational flow engine with per-user session state."""

__version__ = "1.0.0"
