"""
Database module for Tavern

Provides database connection management, session handling,
and base models for SQLAlchemy ORM.
"""

from .connection import DatabaseManager
from .base import Base, BaseModel, utcnow

__all__ = [
    'DatabaseManager',
    'Base',
    'BaseModel',
    'utcnow',
]
