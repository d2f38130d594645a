"""Session lifecycle: creation, lookup, listing, status and deletion."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from tavern.connection.socketio_broadcaster import SessionBroadcaster
from tavern.errors import (
    InvalidStatusTransitionError,
    NotSessionOwnerError,
    SessionNotFoundError,
    ValidationFailedError,
)
from tavern.infra.storage.session_repository import SessionRepository, persistence_errors
from tavern.models.session_settings import SessionSettings
from tavern.models.session_summary import SessionSummary
from tavern.session.session_models import STATUS_TRANSITIONS, GameSession, SessionStatus

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Creates sessions and enforces their lifecycle rules."""

    def __init__(
        self,
        repository: SessionRepository,
        broadcaster: Optional[SessionBroadcaster] = None,
        default_settings: Optional[SessionSettings] = None,
    ):
        self.repository = repository
        self.broadcaster = broadcaster
        self.default_settings = default_settings or SessionSettings()
        # Per-session join locks, held only while a session is waiting
        self._join_locks: Dict[str, asyncio.Lock] = {}

    def settings_of(self, session: GameSession) -> SessionSettings:
        return SessionSettings.from_dict(session.settings, defaults=self.default_settings)

    def join_lock(self, session_id: str) -> asyncio.Lock:
        lock = self._join_locks.get(session_id)
        if lock is None:
            lock = self._join_locks[session_id] = asyncio.Lock()
        return lock

    def release_join_lock(self, session_id: str) -> None:
        self._join_locks.pop(session_id, None)

    async def create_session(
        self,
        name: str,
        owner_name: str,
        settings: Optional[Union[SessionSettings, Dict[str, Any]]] = None,
    ) -> Tuple[str, str]:
        """Create a ``waiting`` session with its owner as the first player.

        Returns:
            (session_id, owner_player_id)
        """
        name = (name or "").strip()
        owner_name = (owner_name or "").strip()
        if not name:
            raise ValidationFailedError("Session name is required")
        if not owner_name:
            raise ValidationFailedError("Owner name is required")

        if not isinstance(settings, SessionSettings):
            settings = SessionSettings.from_dict(settings, defaults=self.default_settings)

        with persistence_errors("create session"):
            session, owner = await self.repository.create_session(name, owner_name, settings.to_dict())
        return session.session_id, owner.player_id

    async def get_session(self, session_id: str) -> GameSession:
        with persistence_errors("load session"):
            session = await self.repository.get_session(session_id)
        if not session:
            raise SessionNotFoundError(session_id)
        return session

    async def get_session_detail(self, session_id: str) -> Dict[str, Any]:
        """Session with its players (join order) and bound characters."""
        session = await self.get_session(session_id)
        with persistence_errors("load session detail"):
            players = await self.repository.list_players(session_id)
            bindings = await self.repository.list_bindings(session_id)

        detail = session.to_dict()
        detail["participant_count"] = len(players)
        detail["players"] = [player.to_dict() for player in players]
        detail["characters"] = [binding.to_dict(player_name=name) for binding, name in bindings]
        return detail

    async def list_sessions(self) -> List[SessionSummary]:
        with persistence_errors("list sessions"):
            rows = await self.repository.list_sessions_with_counts()
        return [
            SessionSummary(
                id=session.session_id,
                name=session.name,
                participant_count=count,
                max_participants=self.settings_of(session).max_participants,
                status=session.status,
                created_at=session.created_at,
            )
            for session, count in rows
        ]

    def require_owner(self, session: GameSession, player_id: Optional[str]) -> None:
        if not player_id or player_id != session.owner_player_id:
            raise NotSessionOwnerError(session.session_id, player_id)

    async def update_status(self, session_id: str, requester_player_id: str, status: str) -> GameSession:
        """Move a session along its lifecycle (owner only)."""
        session = await self.get_session(session_id)
        self.require_owner(session, requester_player_id)

        try:
            requested = SessionStatus(status)
        except ValueError:
            raise ValidationFailedError(
                f"status must be one of: {', '.join(s.value for s in SessionStatus)}"
            ) from None

        current = SessionStatus(session.status)
        if requested == current:
            return session
        if requested not in STATUS_TRANSITIONS[current]:
            raise InvalidStatusTransitionError(current.value, requested.value)

        with persistence_errors("update session status"):
            updated = await self.repository.update_status(session_id, requested.value)
        if not updated:
            raise SessionNotFoundError(session_id)

        # Sessions never return to waiting, so no further joins need the lock
        self.release_join_lock(session_id)
        logger.info("Session %s status %s -> %s", session_id, current.value, requested.value)
        if self.broadcaster:
            await self.broadcaster.broadcast_status_changed(session_id, requested.value, current.value)
        return updated

    async def delete_session(self, session_id: str, requester_player_id: str) -> None:
        """Delete a session and all of its players, bindings, chat and rolls (owner only)."""
        session = await self.get_session(session_id)
        self.require_owner(session, requester_player_id)

        with persistence_errors("delete session"):
            deleted = await self.repository.delete_session(session_id)
        if not deleted:
            raise SessionNotFoundError(session_id)
        self.release_join_lock(session_id)

        if self.broadcaster:
            await self.broadcaster.broadcast_session_deleted(session_id)
