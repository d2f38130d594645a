"""Persistence layer: repositories over the SQLAlchemy models."""

from tavern.infra.storage.session_repository import SessionRepository, persistence_errors
from tavern.infra.storage.character_repository import CharacterRepository

__all__ = ["SessionRepository", "CharacterRepository", "persistence_errors"]
