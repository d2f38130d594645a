"""SQLAlchemy model for a user's character library."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from db.src.base import BaseModel, utcnow

UNNAMED_CHARACTER = "Unnamed Character"


def character_name_from_payload(payload: Dict[str, Any]) -> str:
    """Display name for a payload; the payload itself stays opaque."""
    for key in ("name", "characterName", "character_name"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()[:255]
    return UNNAMED_CHARACTER


class Character(BaseModel):
    """A character sheet owned by a user (imported or created in the app).

    Maps to the characters table. ``character_data`` is the raw sheet payload.
    """

    __tablename__ = "characters"

    character_id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, default=UNNAMED_CHARACTER)
    character_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.character_id,
            "user_id": self.user_id,
            "name": self.name,
            "character_data": self.character_data,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Character(character_id={self.character_id}, name='{self.name}')>"
