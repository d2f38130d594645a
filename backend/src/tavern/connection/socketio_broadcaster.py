"""Socket.IO-based broadcaster for session events.

Every session is a room in the ``/session`` namespace. The broadcaster keeps
its own table of which socket is subscribed to which session (and as which
player) so targeted delivery, such as private dice rolls, does not depend on
the server's internal room bookkeeping.

Delivery is fire-and-forget: emit failures are logged and swallowed, and a
late subscriber only receives the current ``sessionState`` snapshot.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from tavern.errors import TavernError

logger = logging.getLogger(__name__)

SESSION_NAMESPACE = "/session"


class SessionEvent:
    """Outbound event names."""

    SESSION_STATE = "sessionState"
    PLAYER_JOINED = "playerJoined"
    PLAYER_LEFT = "playerLeft"
    CHARACTER_UPDATED = "characterUpdated"
    DICE_ROLLED = "diceRolled"
    CHAT_MESSAGE = "chatMessage"
    STATUS_CHANGED = "sessionStatusChanged"
    SESSION_DELETED = "sessionDeleted"
    ERROR = "error"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SessionBroadcaster:
    """Broadcasts session events using Socket.IO rooms."""

    def __init__(self, server, namespace: str = SESSION_NAMESPACE):
        self.server = server
        self.namespace = namespace
        # {session_id: {sid: player_id or None}}
        self._subscriptions: Dict[str, Dict[str, Optional[str]]] = {}
        # {sid: session_id}
        self._sid_sessions: Dict[str, str] = {}

    # =========================================================================
    # Subscriptions
    # =========================================================================

    async def subscribe(
        self,
        sid: str,
        session_id: str,
        player_id: Optional[str],
        snapshot: Dict[str, Any],
    ) -> None:
        """Add ``sid`` to the session room and send it the current state.

        A socket belongs to at most one session; subscribing elsewhere drops
        the previous subscription first.
        """
        current = self._sid_sessions.get(sid)
        if current is not None and current != session_id:
            await self.unsubscribe(sid)

        await self.server.enter_room(sid, session_id, namespace=self.namespace)
        self._subscriptions.setdefault(session_id, {})[sid] = player_id
        self._sid_sessions[sid] = session_id

        logger.info(
            "[SocketIO] Subscribed | sid=%s session=%s player=%s",
            sid, session_id, player_id,
        )
        await self.send_to(sid, session_id, SessionEvent.SESSION_STATE, snapshot)

    async def unsubscribe(self, sid: str) -> Optional[str]:
        """Remove ``sid`` from its session room. Returns that session id."""
        session_id = self._sid_sessions.pop(sid, None)
        if session_id is None:
            return None

        members = self._subscriptions.get(session_id, {})
        members.pop(sid, None)
        if not members:
            self._subscriptions.pop(session_id, None)

        try:
            await self.server.leave_room(sid, session_id, namespace=self.namespace)
        except Exception as e:
            logger.warning("[SocketIO] Failed to leave room | sid=%s session=%s error=%s", sid, session_id, e)

        logger.info("[SocketIO] Unsubscribed | sid=%s session=%s", sid, session_id)
        return session_id

    def subscription_of(self, sid: str) -> Optional[Tuple[str, Optional[str]]]:
        """(session_id, player_id) for a subscribed socket, else None."""
        session_id = self._sid_sessions.get(sid)
        if session_id is None:
            return None
        return session_id, self._subscriptions.get(session_id, {}).get(sid)

    def subscriber_sids(self, session_id: str) -> List[str]:
        return list(self._subscriptions.get(session_id, {}))

    def subscriber_count(self, session_id: str) -> int:
        return len(self._subscriptions.get(session_id, {}))

    async def close_session(self, session_id: str) -> None:
        """Drop every subscription to a deleted session."""
        for sid in self.subscriber_sids(session_id):
            await self.unsubscribe(sid)

    # =========================================================================
    # Delivery
    # =========================================================================

    def _envelope(self, session_id: Optional[str], event: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "type": event,
            "session_id": session_id,
            "timestamp": _now_iso(),
            **data,
        }

    async def _emit(self, event: str, message: Dict[str, Any], **target: Any) -> None:
        try:
            await self.server.emit(event, message, namespace=self.namespace, **target)
        except Exception as e:
            logger.warning("[SocketIO] Emit failed | event=%s target=%s error=%s", event, target, e)

    async def broadcast(self, session_id: str, event: str, data: Dict[str, Any]) -> None:
        """Emit ``event`` to every subscriber of the session, sender included."""
        await self._emit(event, self._envelope(session_id, event, data), room=session_id)
        logger.debug(
            "[SocketIO] Broadcast %s to %d subscribers in session %s",
            event, self.subscriber_count(session_id), session_id,
        )

    async def broadcast_to_players(
        self,
        session_id: str,
        player_ids: Iterable[Optional[str]],
        event: str,
        data: Dict[str, Any],
    ) -> None:
        """Emit only to the sockets subscribed as one of ``player_ids``."""
        wanted = {p for p in player_ids if p}
        message = self._envelope(session_id, event, data)
        for sid, player_id in list(self._subscriptions.get(session_id, {}).items()):
            if player_id in wanted:
                await self._emit(event, message, to=sid)

    async def send_to(self, sid: str, session_id: Optional[str], event: str, data: Dict[str, Any]) -> None:
        await self._emit(event, self._envelope(session_id, event, data), to=sid)

    async def send_error(self, sid: str, error: TavernError, session_id: Optional[str] = None) -> None:
        """Report a failed action to the socket that requested it."""
        logger.info(
            "[SocketIO] Error sent | sid=%s session=%s code=%s message=%s",
            sid, session_id, error.code, error.message,
        )
        await self.send_to(sid, session_id, SessionEvent.ERROR, error.to_dict())

    # =========================================================================
    # Session events
    # =========================================================================

    async def broadcast_player_joined(
        self,
        session_id: str,
        player: Dict[str, Any],
        character_data: Optional[Dict[str, Any]],
        participant_count: int,
    ) -> None:
        await self.broadcast(
            session_id,
            SessionEvent.PLAYER_JOINED,
            {
                "player": player,
                "character_data": character_data,
                "participant_count": participant_count,
            },
        )

    async def broadcast_player_left(
        self,
        session_id: str,
        player_id: str,
        player_name: str,
        participant_count: int,
    ) -> None:
        await self.broadcast(
            session_id,
            SessionEvent.PLAYER_LEFT,
            {
                "player_id": player_id,
                "player_name": player_name,
                "participant_count": participant_count,
            },
        )

    async def broadcast_character_updated(
        self,
        session_id: str,
        player_id: str,
        player_name: str,
        character_data: Dict[str, Any],
    ) -> None:
        await self.broadcast(
            session_id,
            SessionEvent.CHARACTER_UPDATED,
            {
                "player_id": player_id,
                "player_name": player_name,
                "character_data": character_data,
            },
        )

    async def broadcast_chat_message(self, session_id: str, chat: Dict[str, Any]) -> None:
        await self.broadcast(session_id, SessionEvent.CHAT_MESSAGE, {"chat": chat})

    async def broadcast_dice_roll(
        self,
        session_id: str,
        roll: Dict[str, Any],
        visible_to: Optional[Iterable[Optional[str]]] = None,
    ) -> None:
        """Broadcast a roll; ``visible_to`` limits delivery to those players."""
        if visible_to is None:
            await self.broadcast(session_id, SessionEvent.DICE_ROLLED, {"roll": roll})
        else:
            await self.broadcast_to_players(session_id, visible_to, SessionEvent.DICE_ROLLED, {"roll": roll})

    async def broadcast_status_changed(self, session_id: str, status: str, previous_status: str) -> None:
        await self.broadcast(
            session_id,
            SessionEvent.STATUS_CHANGED,
            {"status": status, "previous_status": previous_status},
        )

    async def broadcast_session_deleted(self, session_id: str) -> None:
        logger.info("[SocketIO] sessionDeleted broadcast | session_id=%s", session_id)
        await self.broadcast(session_id, SessionEvent.SESSION_DELETED, {})
        await self.close_session(session_id)
