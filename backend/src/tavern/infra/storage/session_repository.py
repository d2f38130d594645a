"""Repository layer for session database operations.

Provides CRUD for sessions, their players, character bindings and the
append-only chat/dice logs. Each public method is a single transaction.
Expected-condition checks (capacity, status, ownership) belong to the
services in tavern.session; this layer only reads and writes rows.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from db.src.base import utcnow
from db.src.connection import DatabaseManager
from tavern.errors import InternalError
from tavern.session.session_models import (
    CharacterBinding,
    ChatMessage,
    DiceRoll,
    GameSession,
    PlayerRole,
    SessionPlayer,
    SessionStatus,
    new_player_token,
)

logger = logging.getLogger(__name__)


@contextmanager
def persistence_errors(action: str) -> Iterator[None]:
    """Log database failures and re-raise them as InternalError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Database error while trying to %s: %s", action, e)
        raise InternalError(f"Failed to {action}") from e


class SessionRepository:
    """Repository for session database operations."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    # =========================================================================
    # Sessions
    # =========================================================================

    async def create_session(
        self,
        name: str,
        owner_name: str,
        settings: Dict[str, Any],
    ) -> Tuple[GameSession, SessionPlayer]:
        """Create a session and register its owner as the first player.

        Args:
            name: Session display name
            owner_name: Display name of the creating player
            settings: Serialized SessionSettings

        Returns:
            (session, owner player)
        """
        try:
            async with self.db_manager.get_async_session() as session:
                game_session = GameSession(
                    name=name,
                    status=SessionStatus.WAITING.value,
                    settings=settings,
                )
                session.add(game_session)
                await session.flush()

                owner = SessionPlayer(
                    session_id=game_session.session_id,
                    name=owner_name,
                    role=PlayerRole.OWNER.value,
                    join_order=0,
                    player_token=new_player_token(),
                )
                session.add(owner)
                await session.flush()

                game_session.owner_player_id = owner.player_id
                await session.commit()

                logger.info(
                    "Created session %s (%s) owned by player %s",
                    game_session.session_id, name, owner.player_id,
                )
                return game_session, owner

        except SQLAlchemyError as e:
            logger.error("Error creating session %s: %s", name, e)
            raise

    async def get_session(self, session_id: str) -> Optional[GameSession]:
        try:
            async with self.db_manager.get_async_session() as session:
                return await session.get(GameSession, session_id)
        except SQLAlchemyError as e:
            logger.error("Error getting session %s: %s", session_id, e)
            raise

    async def list_sessions_with_counts(self) -> List[Tuple[GameSession, int]]:
        """All sessions with their participant counts, newest first."""
        try:
            async with self.db_manager.get_async_session() as session:
                stmt = (
                    select(GameSession, func.count(SessionPlayer.player_id))
                    .outerjoin(SessionPlayer, SessionPlayer.session_id == GameSession.session_id)
                    .group_by(GameSession.session_id)
                    .order_by(GameSession.created_at.desc())
                )
                result = await session.execute(stmt)
                return [(row[0], int(row[1])) for row in result.all()]

        except SQLAlchemyError as e:
            logger.error("Error listing sessions: %s", e)
            raise

    async def update_status(self, session_id: str, status: str) -> Optional[GameSession]:
        try:
            async with self.db_manager.get_async_session() as session:
                game_session = await session.get(GameSession, session_id)
                if not game_session:
                    return None
                game_session.status = status
                game_session.updated_at = utcnow()
                await session.commit()
                return game_session

        except SQLAlchemyError as e:
            logger.error("Error updating status of session %s: %s", session_id, e)
            raise

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session and everything that belongs to it.

        Child rows are removed explicitly so the result does not depend on
        the backend enforcing ON DELETE CASCADE.
        """
        try:
            async with self.db_manager.get_async_session() as session:
                for model in (CharacterBinding, ChatMessage, DiceRoll, SessionPlayer):
                    await session.execute(delete(model).where(model.session_id == session_id))
                result = await session.execute(
                    delete(GameSession).where(GameSession.session_id == session_id)
                )
                await session.commit()
                deleted = (result.rowcount or 0) > 0
                if deleted:
                    logger.info("Deleted session %s", session_id)
                return deleted

        except SQLAlchemyError as e:
            logger.error("Error deleting session %s: %s", session_id, e)
            raise

    # =========================================================================
    # Players
    # =========================================================================

    async def count_players(self, session_id: str) -> int:
        try:
            async with self.db_manager.get_async_session() as session:
                stmt = select(func.count(SessionPlayer.player_id)).where(
                    SessionPlayer.session_id == session_id
                )
                result = await session.execute(stmt)
                return int(result.scalar_one())

        except SQLAlchemyError as e:
            logger.error("Error counting players of session %s: %s", session_id, e)
            raise

    async def list_players(self, session_id: str) -> List[SessionPlayer]:
        try:
            async with self.db_manager.get_async_session() as session:
                stmt = (
                    select(SessionPlayer)
                    .where(SessionPlayer.session_id == session_id)
                    .order_by(SessionPlayer.join_order.asc())
                )
                result = await session.execute(stmt)
                return list(result.scalars().all())

        except SQLAlchemyError as e:
            logger.error("Error listing players of session %s: %s", session_id, e)
            raise

    async def get_player(self, player_id: str) -> Optional[SessionPlayer]:
        try:
            async with self.db_manager.get_async_session() as session:
                return await session.get(SessionPlayer, player_id)
        except SQLAlchemyError as e:
            logger.error("Error getting player %s: %s", player_id, e)
            raise

    async def get_player_by_token(self, player_token: str) -> Optional[SessionPlayer]:
        try:
            async with self.db_manager.get_async_session() as session:
                stmt = select(SessionPlayer).where(SessionPlayer.player_token == player_token)
                return (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Error getting player by token: %s", e)
            raise

    async def add_player(
        self,
        session_id: str,
        name: str,
        character_data: Optional[Dict[str, Any]] = None,
        role: str = PlayerRole.PARTICIPANT.value,
    ) -> Tuple[SessionPlayer, Optional[CharacterBinding]]:
        """Append a player (and optional binding) in one transaction."""
        try:
            async with self.db_manager.get_async_session() as session:
                stmt = select(func.max(SessionPlayer.join_order)).where(
                    SessionPlayer.session_id == session_id
                )
                last_order = (await session.execute(stmt)).scalar_one_or_none()

                player = SessionPlayer(
                    session_id=session_id,
                    name=name,
                    role=role,
                    join_order=(last_order + 1) if last_order is not None else 0,
                    player_token=new_player_token(),
                )
                session.add(player)
                await session.flush()

                binding = None
                if character_data is not None:
                    binding = CharacterBinding(
                        player_id=player.player_id,
                        session_id=session_id,
                        character_data=character_data,
                    )
                    session.add(binding)

                await session.commit()
                return player, binding

        except SQLAlchemyError as e:
            logger.error("Error adding player %s to session %s: %s", name, session_id, e)
            raise

    async def remove_player(self, player_id: str) -> bool:
        """Remove a player and its character binding."""
        try:
            async with self.db_manager.get_async_session() as session:
                await session.execute(
                    delete(CharacterBinding).where(CharacterBinding.player_id == player_id)
                )
                result = await session.execute(
                    delete(SessionPlayer).where(SessionPlayer.player_id == player_id)
                )
                await session.commit()
                return (result.rowcount or 0) > 0

        except SQLAlchemyError as e:
            logger.error("Error removing player %s: %s", player_id, e)
            raise

    # =========================================================================
    # Character bindings
    # =========================================================================

    async def get_binding(self, player_id: str) -> Optional[CharacterBinding]:
        try:
            async with self.db_manager.get_async_session() as session:
                stmt = select(CharacterBinding).where(CharacterBinding.player_id == player_id)
                result = await session.execute(stmt)
                return result.scalar_one_or_none()

        except SQLAlchemyError as e:
            logger.error("Error getting binding for player %s: %s", player_id, e)
            raise

    async def create_binding(
        self,
        session_id: str,
        player_id: str,
        character_data: Dict[str, Any],
    ) -> CharacterBinding:
        try:
            async with self.db_manager.get_async_session() as session:
                binding = CharacterBinding(
                    player_id=player_id,
                    session_id=session_id,
                    character_data=character_data,
                )
                session.add(binding)
                await session.commit()
                return binding

        except SQLAlchemyError as e:
            logger.error("Error binding character to player %s: %s", player_id, e)
            raise

    async def replace_binding(
        self,
        player_id: str,
        character_data: Dict[str, Any],
    ) -> Optional[CharacterBinding]:
        """Replace the payload wholesale. Returns None when nothing is bound."""
        try:
            async with self.db_manager.get_async_session() as session:
                stmt = select(CharacterBinding).where(CharacterBinding.player_id == player_id)
                binding = (await session.execute(stmt)).scalar_one_or_none()
                if not binding:
                    return None
                binding.character_data = character_data
                binding.updated_at = utcnow()
                await session.commit()
                return binding

        except SQLAlchemyError as e:
            logger.error("Error updating binding for player %s: %s", player_id, e)
            raise

    async def list_bindings(self, session_id: str) -> List[Tuple[CharacterBinding, str]]:
        """Bindings of a session with their player names, in roster order."""
        try:
            async with self.db_manager.get_async_session() as session:
                stmt = (
                    select(CharacterBinding, SessionPlayer.name)
                    .join(SessionPlayer, SessionPlayer.player_id == CharacterBinding.player_id)
                    .where(CharacterBinding.session_id == session_id)
                    .order_by(SessionPlayer.join_order.asc())
                )
                result = await session.execute(stmt)
                return [(row[0], row[1]) for row in result.all()]

        except SQLAlchemyError as e:
            logger.error("Error listing bindings of session %s: %s", session_id, e)
            raise

    # =========================================================================
    # Chat messages and dice rolls
    # =========================================================================

    async def add_chat_message(
        self,
        session_id: str,
        player_id: str,
        player_name: str,
        message: str,
    ) -> ChatMessage:
        try:
            async with self.db_manager.get_async_session() as session:
                chat = ChatMessage(
                    session_id=session_id,
                    player_id=player_id,
                    player_name=player_name,
                    message=message,
                )
                session.add(chat)
                await session.commit()
                return chat

        except SQLAlchemyError as e:
            logger.error("Error saving chat message for session %s: %s", session_id, e)
            raise

    async def list_chat_messages(self, session_id: str, limit: int = 100) -> List[ChatMessage]:
        """Most recent ``limit`` messages, returned oldest first."""
        try:
            async with self.db_manager.get_async_session() as session:
                stmt = (
                    select(ChatMessage)
                    .where(ChatMessage.session_id == session_id)
                    .order_by(ChatMessage.message_id.desc())
                    .limit(limit)
                )
                result = await session.execute(stmt)
                return list(reversed(result.scalars().all()))

        except SQLAlchemyError as e:
            logger.error("Error listing chat for session %s: %s", session_id, e)
            raise

    async def add_dice_roll(
        self,
        session_id: str,
        player_id: str,
        player_name: str,
        roll_type: str,
        expression: str,
        result: int,
        details: Dict[str, Any],
    ) -> DiceRoll:
        try:
            async with self.db_manager.get_async_session() as session:
                roll = DiceRoll(
                    session_id=session_id,
                    player_id=player_id,
                    player_name=player_name,
                    roll_type=roll_type,
                    expression=expression,
                    result=result,
                    details=details,
                )
                session.add(roll)
                await session.commit()
                return roll

        except SQLAlchemyError as e:
            logger.error("Error saving dice roll for session %s: %s", session_id, e)
            raise

    async def list_dice_rolls(self, session_id: str, limit: int = 50) -> List[DiceRoll]:
        """Most recent ``limit`` rolls, newest first."""
        try:
            async with self.db_manager.get_async_session() as session:
                stmt = (
                    select(DiceRoll)
                    .where(DiceRoll.session_id == session_id)
                    .order_by(DiceRoll.roll_id.desc())
                    .limit(limit)
                )
                result = await session.execute(stmt)
                return list(result.scalars().all())

        except SQLAlchemyError as e:
            logger.error("Error listing dice rolls for session %s: %s", session_id, e)
            raise
