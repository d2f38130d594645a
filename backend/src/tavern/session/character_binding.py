"""Binding of one opaque character payload to each session player."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from tavern.connection.socketio_broadcaster import SessionBroadcaster
from tavern.errors import CharacterAlreadyBoundError, CharacterNotBoundError, PayloadValidationError
from tavern.infra.storage.session_repository import SessionRepository, persistence_errors
from tavern.session.player_roster import PlayerRoster
from tavern.session.session_models import CharacterBinding, SessionPlayer

logger = logging.getLogger(__name__)


def validate_payload(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise PayloadValidationError("Character data must be a JSON object")
    return payload


class CharacterBindingService:
    """Create, replace and read the character bound to a player.

    Updates replace the payload wholesale; nothing is merged.
    """

    def __init__(
        self,
        repository: SessionRepository,
        roster: PlayerRoster,
        broadcaster: Optional[SessionBroadcaster] = None,
    ):
        self.repository = repository
        self.roster = roster
        self.broadcaster = broadcaster

    async def _announce(self, player: SessionPlayer, binding: CharacterBinding) -> None:
        if self.broadcaster:
            await self.broadcaster.broadcast_character_updated(
                player.session_id, player.player_id, player.name, binding.character_data
            )

    async def bind(self, session_id: str, player_id: str, payload: Dict[str, Any]) -> CharacterBinding:
        payload = validate_payload(payload)
        player = await self.roster.require_member(session_id, player_id)

        with persistence_errors("bind character"):
            if await self.repository.get_binding(player_id):
                raise CharacterAlreadyBoundError(player_id)
            try:
                binding = await self.repository.create_binding(session_id, player_id, payload)
            except IntegrityError:
                raise CharacterAlreadyBoundError(player_id) from None

        logger.info("Bound character to player %s in session %s", player_id, session_id)
        await self._announce(player, binding)
        return binding

    async def update(self, session_id: str, player_id: str, payload: Dict[str, Any]) -> CharacterBinding:
        payload = validate_payload(payload)
        player = await self.roster.require_member(session_id, player_id)

        with persistence_errors("update character"):
            binding = await self.repository.replace_binding(player_id, payload)
        if not binding:
            raise CharacterNotBoundError(player_id)

        logger.info("Updated character of player %s in session %s", player_id, session_id)
        await self._announce(player, binding)
        return binding

    async def get(self, player_id: str) -> Dict[str, Any]:
        with persistence_errors("load character"):
            binding = await self.repository.get_binding(player_id)
        if not binding:
            raise CharacterNotBoundError(player_id)
        return binding.character_data

    async def bind_or_update(
        self,
        session_id: str,
        player_id: str,
        payload: Dict[str, Any],
    ) -> Tuple[CharacterBinding, bool]:
        """Replace the bound payload, binding it first if needed.

        Returns:
            (binding, created)
        """
        try:
            return await self.update(session_id, player_id, payload), False
        except CharacterNotBoundError:
            return await self.bind(session_id, player_id, payload), True
