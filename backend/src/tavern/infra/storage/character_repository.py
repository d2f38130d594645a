"""Repository for a user's character library."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from db.src.base import utcnow
from db.src.connection import DatabaseManager
from tavern.models.character_db import Character, character_name_from_payload

logger = logging.getLogger(__name__)


class CharacterRepository:
    """CRUD for characters, always scoped to the owning user."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    async def list_for_user(self, user_id: str) -> List[Character]:
        try:
            async with self.db_manager.get_async_session() as session:
                stmt = (
                    select(Character)
                    .where(Character.user_id == user_id)
                    .order_by(Character.updated_at.desc())
                )
                result = await session.execute(stmt)
                return list(result.scalars().all())

        except SQLAlchemyError as e:
            logger.error("Error listing characters for user %s: %s", user_id, e)
            raise

    async def get(self, user_id: str, character_id: str) -> Optional[Character]:
        try:
            async with self.db_manager.get_async_session() as session:
                stmt = select(Character).where(
                    Character.character_id == character_id,
                    Character.user_id == user_id,
                )
                result = await session.execute(stmt)
                return result.scalar_one_or_none()

        except SQLAlchemyError as e:
            logger.error("Error getting character %s: %s", character_id, e)
            raise

    async def create_many(self, user_id: str, payloads: List[Dict[str, Any]]) -> List[Character]:
        """Insert several characters in one transaction (all or nothing)."""
        try:
            async with self.db_manager.get_async_session() as session:
                characters = [
                    Character(
                        user_id=user_id,
                        name=character_name_from_payload(payload),
                        character_data=payload,
                    )
                    for payload in payloads
                ]
                session.add_all(characters)
                await session.commit()
                logger.info("Saved %d character(s) for user %s", len(characters), user_id)
                return characters

        except SQLAlchemyError as e:
            logger.error("Error saving characters for user %s: %s", user_id, e)
            raise

    async def replace(
        self,
        user_id: str,
        character_id: str,
        payload: Dict[str, Any],
    ) -> Optional[Character]:
        try:
            async with self.db_manager.get_async_session() as session:
                stmt = select(Character).where(
                    Character.character_id == character_id,
                    Character.user_id == user_id,
                )
                character = (await session.execute(stmt)).scalar_one_or_none()
                if not character:
                    return None
                character.character_data = payload
                character.name = character_name_from_payload(payload)
                character.updated_at = utcnow()
                await session.commit()
                return character

        except SQLAlchemyError as e:
            logger.error("Error updating character %s: %s", character_id, e)
            raise

    async def delete(self, user_id: str, character_id: str) -> bool:
        try:
            async with self.db_manager.get_async_session() as session:
                result = await session.execute(
                    delete(Character).where(
                        Character.character_id == character_id,
                        Character.user_id == user_id,
                    )
                )
                await session.commit()
                return (result.rowcount or 0) > 0

        except SQLAlchemyError as e:
            logger.error("Error deleting character %s: %s", character_id, e)
            raise
