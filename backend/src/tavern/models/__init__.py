"""Tavern models package - re-exports for public API"""

from tavern.models.session_settings import DiceVisibility, SessionSettings
from tavern.models.session_summary import SessionSummary
from tavern.models.character_db import Character

__all__ = [
    "DiceVisibility",
    "SessionSettings",
    "SessionSummary",
    "Character",
]
