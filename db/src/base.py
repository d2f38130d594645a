"""
Declarative base classes for Tavern's SQLAlchemy models.
"""

from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp used for column defaults."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Root declarative base; owns the shared metadata."""


class BaseModel(Base):
    """Abstract base for all persisted models."""

    __abstract__ = True
