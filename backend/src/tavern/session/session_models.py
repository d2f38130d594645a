"""SQLAlchemy models for game sessions, their players and session events."""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.src.base import BaseModel, utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


def new_player_token() -> str:
    return secrets.token_urlsafe(32)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class SessionStatus(str, Enum):
    """Lifecycle of a session. Moves forward only (paused is a sub-state of active)."""

    WAITING = "waiting"
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


# Allowed forward moves; same-state requests are treated as no-ops by the registry
STATUS_TRANSITIONS: Dict[SessionStatus, frozenset] = {
    SessionStatus.WAITING: frozenset({SessionStatus.ACTIVE, SessionStatus.ENDED}),
    SessionStatus.ACTIVE: frozenset({SessionStatus.PAUSED, SessionStatus.ENDED}),
    SessionStatus.PAUSED: frozenset({SessionStatus.ACTIVE, SessionStatus.ENDED}),
    SessionStatus.ENDED: frozenset(),
}


class PlayerRole(str, Enum):
    OWNER = "owner"
    PARTICIPANT = "participant"


class GameSession(BaseModel):
    """A bounded real-time interaction context grouping a set of players.

    Maps to the game_sessions table. ``settings`` holds the serialized
    SessionSettings (max participants, spectator and dice-visibility policy).
    """

    __tablename__ = "game_sessions"

    session_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Set to the owner's player_id in the same transaction that creates the session
    owner_player_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SessionStatus.WAITING.value,
        index=True,
    )
    settings: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.session_id,
            "name": self.name,
            "owner_player_id": self.owner_player_id,
            "status": self.status,
            "settings": dict(self.settings or {}),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<GameSession(session_id={self.session_id}, name='{self.name}', status='{self.status}')>"


class SessionPlayer(BaseModel):
    """A named participant within one session."""

    __tablename__ = "session_players"

    player_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    session_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("game_sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=PlayerRole.PARTICIPANT.value)

    # Secret handed only to the player on create/join; never part of to_dict()
    player_token: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, default=new_player_token
    )

    # 0 for the owner, increasing with each join; defines roster order
    join_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def is_owner(self) -> bool:
        return self.role == PlayerRole.OWNER.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.player_id,
            "session_id": self.session_id,
            "name": self.name,
            "role": self.role,
            "joined_at": _iso(self.joined_at),
        }

    def __repr__(self) -> str:
        return f"<SessionPlayer(player_id={self.player_id}, name='{self.name}', role='{self.role}')>"


class CharacterBinding(BaseModel):
    """The character payload bound to a player within a session (at most one)."""

    __tablename__ = "character_bindings"

    binding_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    player_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("session_players.player_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    session_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("game_sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Opaque to the session core
    character_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self, player_name: Optional[str] = None) -> Dict[str, Any]:
        data = {
            "id": self.binding_id,
            "player_id": self.player_id,
            "session_id": self.session_id,
            "character_data": self.character_data,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if player_name is not None:
            data["player_name"] = player_name
        return data


class ChatMessage(BaseModel):
    """Append-only chat log entry. The integer id gives creation order."""

    __tablename__ = "chat_messages"

    message_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("game_sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Author name is copied so history survives the author leaving
    player_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    player_name: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.message_id,
            "session_id": self.session_id,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "message": self.message,
            "timestamp": _iso(self.created_at),
        }


class DiceRoll(BaseModel):
    """Append-only dice roll record with its full breakdown."""

    __tablename__ = "dice_rolls"

    roll_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("game_sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    player_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    player_name: Mapped[str] = mapped_column(String(255), nullable=False)
    roll_type: Mapped[str] = mapped_column(String(50), nullable=False, default="custom")
    expression: Mapped[str] = mapped_column(String(255), nullable=False)
    result: Mapped[int] = mapped_column(Integer, nullable=False)
    # {"breakdown": [...], "skipped": [...]}
    details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def rolls(self):
        """Per-die outcomes in evaluation order, as recorded."""
        return [r for term in (self.details or {}).get("breakdown", []) for r in term.get("rolls", [])]

    def to_dict(self) -> Dict[str, Any]:
        details = self.details or {}
        return {
            "id": self.roll_id,
            "session_id": self.session_id,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "roll_type": self.roll_type,
            "expression": self.expression,
            "result": self.result,
            "breakdown": details.get("breakdown", []),
            "skipped": details.get("skipped", []),
            "timestamp": _iso(self.created_at),
        }
