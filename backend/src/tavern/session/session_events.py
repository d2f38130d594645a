"""In-session actions: chat, dice rolls and character sheet updates.

Each action is persisted first and broadcast only after the write succeeds.
A failed write raises, so the caller can report it to the sender alone.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from tavern.config.settings import Settings
from tavern.connection.socketio_broadcaster import SessionBroadcaster
from tavern.errors import ValidationFailedError
from tavern.infra.storage.session_repository import SessionRepository, persistence_errors
from tavern.mechanics.dice import evaluate
from tavern.mechanics.dice.dice_evaluator import RandomSource
from tavern.session.character_binding import CharacterBindingService
from tavern.session.player_roster import PlayerRoster
from tavern.session.session_models import CharacterBinding, ChatMessage, DiceRoll
from tavern.session.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

DEFAULT_ROLL_TYPE = "custom"


class SessionEventService:
    """Persist-then-broadcast handling of player actions within a session."""

    def __init__(
        self,
        repository: SessionRepository,
        registry: SessionRegistry,
        roster: PlayerRoster,
        bindings: CharacterBindingService,
        broadcaster: Optional[SessionBroadcaster] = None,
        settings: Optional[Settings] = None,
        rng: Optional[RandomSource] = None,
    ):
        self.repository = repository
        self.registry = registry
        self.roster = roster
        self.bindings = bindings
        self.broadcaster = broadcaster
        self.settings = settings or Settings()
        self.rng = rng

    async def post_chat_message(self, session_id: str, player_id: str, message: Any) -> ChatMessage:
        player = await self.roster.require_member(session_id, player_id)

        text = message.strip() if isinstance(message, str) else ""
        if not text:
            raise ValidationFailedError("Message cannot be empty")
        if len(text) > self.settings.max_chat_message_length:
            raise ValidationFailedError(
                f"Message exceeds {self.settings.max_chat_message_length} characters"
            )

        with persistence_errors("save chat message"):
            chat = await self.repository.add_chat_message(session_id, player.player_id, player.name, text)

        if self.broadcaster:
            await self.broadcaster.broadcast_chat_message(session_id, chat.to_dict())
        return chat

    async def roll_dice(
        self,
        session_id: str,
        player_id: str,
        expression: Any,
        roll_type: Optional[str] = None,
    ) -> DiceRoll:
        """Evaluate, record and announce a roll.

        With private dice visibility only the roller and the session owner
        receive the ``diceRolled`` event; the roll is recorded either way.
        """
        player = await self.roster.require_member(session_id, player_id)
        if not isinstance(expression, str) or not expression.strip():
            raise ValidationFailedError("Dice expression is required")
        expression = expression.strip()

        result = evaluate(
            expression,
            rng=self.rng,
            max_count=self.settings.dice_max_count,
            max_sides=self.settings.dice_max_sides,
        )
        if result.skipped:
            logger.info("Skipped dice terms %s in '%s' (session %s)", result.skipped, expression, session_id)

        with persistence_errors("save dice roll"):
            roll = await self.repository.add_dice_roll(
                session_id=session_id,
                player_id=player.player_id,
                player_name=player.name,
                roll_type=roll_type or DEFAULT_ROLL_TYPE,
                expression=expression,
                result=result.total,
                details={"breakdown": result.breakdown(), "skipped": list(result.skipped)},
            )

        if self.broadcaster:
            session = await self.registry.get_session(session_id)
            visible_to = None
            if not self.registry.settings_of(session).dice_rolls_public:
                visible_to = {player.player_id, session.owner_player_id}
            await self.broadcaster.broadcast_dice_roll(session_id, roll.to_dict(), visible_to=visible_to)
        return roll

    async def update_character(
        self,
        session_id: str,
        player_id: str,
        character_data: Dict[str, Any],
    ) -> CharacterBinding:
        binding, _ = await self.bindings.bind_or_update(session_id, player_id, character_data)
        return binding

    async def chat_history(self, session_id: str, limit: Optional[int] = None) -> List[ChatMessage]:
        """Most recent messages, oldest first."""
        await self.registry.get_session(session_id)
        with persistence_errors("load chat history"):
            return await self.repository.list_chat_messages(
                session_id, limit or self.settings.chat_history_limit
            )

    async def dice_history(
        self,
        session_id: str,
        limit: Optional[int] = None,
        viewer_player_id: Optional[str] = None,
    ) -> List[DiceRoll]:
        """Most recent rolls, newest first.

        ``viewer_player_id`` must already be authenticated by the caller. Under
        private dice visibility a viewer other than the owner only sees their
        own rolls, and an anonymous viewer sees none.
        """
        session = await self.registry.get_session(session_id)
        with persistence_errors("load dice history"):
            rolls = await self.repository.list_dice_rolls(
                session_id, limit or self.settings.dice_history_limit
            )
        if self.registry.settings_of(session).dice_rolls_public:
            return rolls
        if viewer_player_id and viewer_player_id == session.owner_player_id:
            return rolls
        return [roll for roll in rolls if viewer_player_id and roll.player_id == viewer_player_id]
