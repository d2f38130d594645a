"""Session coordination: registry, roster, character bindings and events."""

from tavern.session.session_models import (
    STATUS_TRANSITIONS,
    CharacterBinding,
    ChatMessage,
    DiceRoll,
    GameSession,
    PlayerRole,
    SessionPlayer,
    SessionStatus,
)

__all__ = [
    "STATUS_TRANSITIONS",
    "CharacterBinding",
    "ChatMessage",
    "DiceRoll",
    "GameSession",
    "PlayerRole",
    "SessionPlayer",
    "SessionStatus",
]
