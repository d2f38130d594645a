"""Tavern: real-time multiplayer character-sheet sessions."""

__version__ = "1.0.0"
