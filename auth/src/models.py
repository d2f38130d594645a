"""
SQLAlchemy models for email/password authentication
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4
from enum import Enum

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from db.src.base import BaseModel, utcnow


class AuthProvider(str, Enum):
    """Supported login providers"""
    EMAIL = "email"


class User(BaseModel):
    """User model for authentication"""

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True
    )
    password_hash: Mapped[Optional[str]] = mapped_column(String(255))
    provider: Mapped[str] = mapped_column(
        String(50),
        default=AuthProvider.EMAIL.value,
        nullable=False
    )
    picture_url: Mapped[Optional[str]] = mapped_column(String(500))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    def to_summary(self) -> dict:
        """Public view of the user (never includes the password hash)."""
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "provider": self.provider,
            "picture_url": self.picture_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User(email={self.email}, name={self.name})>"
