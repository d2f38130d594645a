"""Player membership of sessions and the join protocol."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from tavern.connection.socketio_broadcaster import SessionBroadcaster
from tavern.errors import (
    InvalidPlayerTokenError,
    OwnerCannotLeaveError,
    PayloadValidationError,
    PlayerNotFoundError,
    PlayerTokenRequiredError,
    SessionFullError,
    SessionNotFoundError,
    SessionNotJoinableError,
    ValidationFailedError,
)
from tavern.infra.storage.session_repository import SessionRepository, persistence_errors
from tavern.session.session_models import SessionPlayer, SessionStatus
from tavern.session.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class PlayerRoster:
    """Adds and removes players while keeping every session within capacity.

    Joins to the same session are serialised with the registry's per-session
    lock so the capacity check and the insert cannot interleave.
    """

    def __init__(
        self,
        repository: SessionRepository,
        registry: SessionRegistry,
        broadcaster: Optional[SessionBroadcaster] = None,
    ):
        self.repository = repository
        self.registry = registry
        self.broadcaster = broadcaster

    async def join(
        self,
        session_id: str,
        player_name: str,
        character_data: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Add a participant to a waiting session.

        Args:
            session_id: Session to join
            player_name: Display name of the new player
            character_data: Optional character payload to bind on join

        Returns:
            The new player's id

        Raises:
            SessionNotFoundError, SessionNotJoinableError, SessionFullError
        """
        player_name = (player_name or "").strip()
        if not player_name:
            raise ValidationFailedError("Player name is required")
        if character_data is not None and not isinstance(character_data, dict):
            raise PayloadValidationError("Character data must be a JSON object")

        session = await self.registry.get_session(session_id)
        if session.status != SessionStatus.WAITING.value:
            raise SessionNotJoinableError(session_id, session.status)

        async with self.registry.join_lock(session_id):
            # Re-read under the lock; the session may have started or been deleted meanwhile
            try:
                session = await self.registry.get_session(session_id)
            except SessionNotFoundError:
                self.registry.release_join_lock(session_id)
                raise
            if session.status != SessionStatus.WAITING.value:
                self.registry.release_join_lock(session_id)
                raise SessionNotJoinableError(session_id, session.status)

            max_participants = self.registry.settings_of(session).max_participants
            with persistence_errors("join session"):
                count = await self.repository.count_players(session_id)
                if count >= max_participants:
                    raise SessionFullError(session_id, max_participants)
                player, _ = await self.repository.add_player(session_id, player_name, character_data)

        participant_count = count + 1
        logger.info(
            "Player %s (%s) joined session %s (%d/%d)",
            player.player_id, player_name, session_id, participant_count, max_participants,
        )
        if self.broadcaster:
            await self.broadcaster.broadcast_player_joined(
                session_id, player.to_dict(), character_data, participant_count
            )
        return player.player_id

    async def list_players(self, session_id: str) -> List[SessionPlayer]:
        await self.registry.get_session(session_id)
        with persistence_errors("list players"):
            return await self.repository.list_players(session_id)

    async def get_player(self, player_id: str) -> SessionPlayer:
        with persistence_errors("load player"):
            player = await self.repository.get_player(player_id)
        if not player:
            raise PlayerNotFoundError(player_id)
        return player

    async def require_member(self, session_id: str, player_id: Optional[str]) -> SessionPlayer:
        """The player, provided it belongs to ``session_id``."""
        await self.registry.get_session(session_id)
        if not player_id:
            raise ValidationFailedError("player_id is required")
        with persistence_errors("load player"):
            player = await self.repository.get_player(player_id)
        if not player or player.session_id != session_id:
            raise PlayerNotFoundError(player_id, session_id)
        return player

    async def authenticate(self, session_id: str, player_token: Optional[str]) -> SessionPlayer:
        """The player holding ``player_token`` within ``session_id``.

        Player ids are public (session detail, socket snapshots), so actions
        taken as a player are authorised by the token issued on create/join.
        """
        await self.registry.get_session(session_id)
        if not player_token:
            raise PlayerTokenRequiredError()
        with persistence_errors("load player"):
            player = await self.repository.get_player_by_token(player_token)
        if not player or player.session_id != session_id:
            raise InvalidPlayerTokenError(session_id)
        return player

    async def player_token(self, player_id: str) -> str:
        return (await self.get_player(player_id)).player_token

    async def leave(self, session_id: str, player_id: str) -> None:
        """Remove a participant and its character binding."""
        player = await self.require_member(session_id, player_id)
        if player.is_owner:
            raise OwnerCannotLeaveError(session_id)

        with persistence_errors("leave session"):
            await self.repository.remove_player(player_id)
            count = await self.repository.count_players(session_id)

        logger.info("Player %s left session %s", player_id, session_id)
        if self.broadcaster:
            await self.broadcaster.broadcast_player_left(session_id, player_id, player.name, count)
