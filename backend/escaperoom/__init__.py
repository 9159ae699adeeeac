"""Escape room engine: room generation, sessions and command handling."""

__version__ = "0.1.0"
