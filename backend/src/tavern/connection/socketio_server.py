"""Socket.IO server and the ``/session`` namespace event handlers.

Inbound events:
- join_session {session_id, player_token?}: subscribe to a session room
- leave_session: drop the current subscription
- chat_message {message}
- dice_roll {expression, roll_type?}
- update_character {character_data}

A client may also pass ``auth={session_id, player_token}`` when connecting to
be subscribed immediately. Sockets subscribed with a player token act as that
player; sockets without one are spectators and can only listen. Failed actions
are reported with an ``error`` event to the requesting socket only.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import socketio

from tavern.config.settings import Settings
from tavern.connection.socketio_broadcaster import SESSION_NAMESPACE, SessionBroadcaster
from tavern.errors import (
    ActingForOtherPlayerError,
    ForbiddenError,
    InternalError,
    PreconditionFailedError,
    TavernError,
    ValidationFailedError,
)
from tavern.session.player_roster import PlayerRoster
from tavern.session.session_events import SessionEventService
from tavern.session.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


def _socketio_cors_origins(settings: Settings):
    """CORS origins for Socket.IO, defaulting to * for dev."""
    return settings.cors_allowed_origins or "*"


def create_socketio_server(settings: Settings) -> socketio.AsyncServer:
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=_socketio_cors_origins(settings),
        ping_timeout=30,
        ping_interval=25,
        logger=False,  # socket.io internal logging is too verbose
        engineio_logger=False,
    )


def create_socketio_app(sio: socketio.AsyncServer, other_app) -> socketio.ASGIApp:
    """Socket.IO ASGI app wrapping the HTTP app."""
    return socketio.ASGIApp(sio, other_asgi_app=other_app)


def _as_dict(data: Any) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}


class SessionSocketHandlers:
    """Event handlers for the session namespace."""

    def __init__(
        self,
        registry: SessionRegistry,
        roster: PlayerRoster,
        events: SessionEventService,
        broadcaster: SessionBroadcaster,
    ):
        self.registry = registry
        self.roster = roster
        self.events = events
        self.broadcaster = broadcaster

    def register(self, sio: socketio.AsyncServer, namespace: str = SESSION_NAMESPACE) -> None:
        sio.on("connect", self.connect, namespace=namespace)
        sio.on("disconnect", self.disconnect, namespace=namespace)
        sio.on("join_session", self.join_session, namespace=namespace)
        sio.on("leave_session", self.leave_session, namespace=namespace)
        sio.on("chat_message", self.chat_message, namespace=namespace)
        sio.on("dice_roll", self.dice_roll, namespace=namespace)
        sio.on("update_character", self.update_character, namespace=namespace)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _subscribe(self, sid: str, session_id: Any, player_token: Optional[str]) -> None:
        if not isinstance(session_id, str) or not session_id:
            raise ValidationFailedError("session_id is required")

        session = await self.registry.get_session(session_id)
        player_id = None
        if player_token:
            player_id = (await self.roster.authenticate(session_id, player_token)).player_id
        elif not self.registry.settings_of(session).allow_spectators:
            raise ForbiddenError("This session does not allow spectators")

        snapshot = await self.registry.get_session_detail(session_id)
        await self.broadcaster.subscribe(sid, session_id, player_id, {"session": snapshot})

    def _acting_player(self, sid: str, data: Dict[str, Any]) -> Tuple[str, str]:
        """(session_id, player_id) of the player ``sid`` authenticated as."""
        subscription = self.broadcaster.subscription_of(sid)
        if subscription is None:
            raise PreconditionFailedError("Join a session before sending events")
        session_id, player_id = subscription

        if not player_id:
            raise ForbiddenError("Spectators cannot act; join with a player token")
        if data.get("player_id") and data["player_id"] != player_id:
            raise ActingForOtherPlayerError()
        return session_id, player_id

    async def _report(self, sid: str, event: str, error: Exception) -> None:
        subscription = self.broadcaster.subscription_of(sid)
        session_id = subscription[0] if subscription else None
        if not isinstance(error, TavernError):
            logger.exception("[SocketIO] Unhandled error | event=%s sid=%s", event, sid, exc_info=error)
            error = InternalError()
        await self.broadcaster.send_error(sid, error, session_id)

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    async def connect(self, sid: str, environ: Dict, auth: Optional[Dict] = None):
        logger.info("[SocketIO] Connected | sid=%s", sid)
        auth = _as_dict(auth)
        if not auth.get("session_id"):
            return
        try:
            await self._subscribe(sid, auth["session_id"], auth.get("player_token"))
        except TavernError as e:
            logger.warning("[SocketIO] Connection refused | sid=%s reason=%s", sid, e.message)
            raise socketio.exceptions.ConnectionRefusedError(e.message)

    async def disconnect(self, sid: str, *args):
        session_id = await self.broadcaster.unsubscribe(sid)
        logger.info("[SocketIO] Disconnected | sid=%s session=%s", sid, session_id)

    # =========================================================================
    # Session events
    # =========================================================================

    async def join_session(self, sid: str, data: Any = None):
        data = _as_dict(data)
        try:
            await self._subscribe(sid, data.get("session_id"), data.get("player_token"))
        except Exception as e:
            await self._report(sid, "join_session", e)

    async def leave_session(self, sid: str, data: Any = None):
        await self.broadcaster.unsubscribe(sid)

    async def chat_message(self, sid: str, data: Any = None):
        data = _as_dict(data)
        try:
            session_id, player_id = self._acting_player(sid, data)
            await self.events.post_chat_message(session_id, player_id, data.get("message"))
        except Exception as e:
            await self._report(sid, "chat_message", e)

    async def dice_roll(self, sid: str, data: Any = None):
        data = _as_dict(data)
        try:
            session_id, player_id = self._acting_player(sid, data)
            await self.events.roll_dice(
                session_id, player_id, data.get("expression"), data.get("roll_type")
            )
        except Exception as e:
            await self._report(sid, "dice_roll", e)

    async def update_character(self, sid: str, data: Any = None):
        data = _as_dict(data)
        try:
            session_id, player_id = self._acting_player(sid, data)
            await self.events.update_character(session_id, player_id, data.get("character_data"))
        except Exception as e:
            await self._report(sid, "update_character", e)
