"""
Tests for the /session namespace socket handlers.

Tests:
1. join_session subscribes and sends the session snapshot
2. Spectator policy and player token checks
3. chat/dice/character events go through the session services
4. Failures produce an error event for the sender only
"""

from unittest.mock import AsyncMock

import pytest
import socketio

from tavern.connection.socketio_server import SessionSocketHandlers

pytestmark = pytest.mark.asyncio


@pytest.fixture
def handlers(registry, roster, events, broadcaster, socket_server):
    handlers = SessionSocketHandlers(registry, roster, events, broadcaster)
    handlers.register(socket_server)
    return handlers


@pytest.fixture
def session_with_player(registry, roster):
    """Creates a session with one participant; returns (session_id, owner, player)."""
    async def _create(settings=None):
        session_id, owner_id = await registry.create_session("Crypt", "Gemma", settings)
        player_id = await roster.join(session_id, "Valeros")
        return session_id, await roster.get_player(owner_id), await roster.get_player(player_id)
    return _create


def _join(session_id, player=None):
    data = {"session_id": session_id}
    if player is not None:
        data["player_token"] = player.player_token
    return data


class TestRegistration:

    async def test_all_events_registered(self, handlers, socket_server):
        assert set(socket_server.handlers) == {
            "connect",
            "disconnect",
            "join_session",
            "leave_session",
            "chat_message",
            "dice_roll",
            "update_character",
        }


class TestJoinSession:

    async def test_join_sends_snapshot(self, handlers, socket_server, session_with_player):
        session_id, owner, player = await session_with_player()

        await handlers.join_session("sid-1", _join(session_id, player))

        state = socket_server.received("sid-1", "sessionState")[0]
        assert state["session"]["id"] == session_id
        assert [p["id"] for p in state["session"]["players"]] == [owner.player_id, player.player_id]

    async def test_unknown_session_reports_error(self, handlers, socket_server):
        await handlers.join_session("sid-1", {"session_id": "missing"})

        assert socket_server.events_received("sid-1") == ["error"]
        assert socket_server.received("sid-1", "error")[0]["code"] == "session_not_found"

    async def test_missing_session_id(self, handlers, socket_server):
        await handlers.join_session("sid-1", None)
        assert socket_server.received("sid-1", "error")[0]["code"] == "validation_error"

    async def test_spectators_allowed_by_default(self, handlers, broadcaster, session_with_player):
        session_id, _, _ = await session_with_player()

        await handlers.join_session("sid-1", _join(session_id))

        assert broadcaster.subscription_of("sid-1") == (session_id, None)

    async def test_spectators_refused_when_disabled(
        self, handlers, broadcaster, socket_server, session_with_player
    ):
        session_id, _, player = await session_with_player({"allow_spectators": False})

        await handlers.join_session("sid-1", _join(session_id))
        await handlers.join_session("sid-2", _join(session_id, player))

        assert socket_server.received("sid-1", "error")[0]["code"] == "forbidden"
        assert broadcaster.subscription_of("sid-1") is None
        assert broadcaster.subscription_of("sid-2") == (session_id, player.player_id)

    async def test_token_from_another_session_refused(
        self, handlers, registry, roster, broadcaster, socket_server, session_with_player
    ):
        session_id, _, _ = await session_with_player()
        _, stranger_id = await registry.create_session("Other", "Bob")
        stranger = await roster.get_player(stranger_id)

        await handlers.join_session("sid-1", _join(session_id, stranger))

        assert socket_server.received("sid-1", "error")[0]["code"] == "invalid_player_token"
        assert broadcaster.subscription_of("sid-1") is None

    async def test_player_id_alone_does_not_authenticate(
        self, handlers, broadcaster, session_with_player
    ):
        session_id, owner, _ = await session_with_player()

        await handlers.join_session("sid-1", {"session_id": session_id, "player_id": owner.player_id})

        # Subscribed as a spectator, not as the owner
        assert broadcaster.subscription_of("sid-1") == (session_id, None)


class TestConnectionLifecycle:

    async def test_connect_with_auth_subscribes(self, handlers, broadcaster, session_with_player):
        session_id, _, player = await session_with_player()

        await handlers.connect("sid-1", {}, _join(session_id, player))

        assert broadcaster.subscription_of("sid-1") == (session_id, player.player_id)

    async def test_connect_with_bad_token_refused(self, handlers, broadcaster, session_with_player):
        session_id, _, _ = await session_with_player()

        with pytest.raises(socketio.exceptions.ConnectionRefusedError):
            await handlers.connect("sid-1", {}, {"session_id": session_id, "player_token": "forged"})
        assert broadcaster.subscription_of("sid-1") is None

    async def test_connect_without_auth(self, handlers, broadcaster):
        await handlers.connect("sid-1", {}, None)
        assert broadcaster.subscription_of("sid-1") is None

    async def test_connect_to_unknown_session_refused(self, handlers):
        with pytest.raises(socketio.exceptions.ConnectionRefusedError):
            await handlers.connect("sid-1", {}, {"session_id": "missing"})

    async def test_disconnect_unsubscribes(self, handlers, broadcaster, session_with_player):
        session_id, _, player = await session_with_player()
        await handlers.join_session("sid-1", _join(session_id, player))

        await handlers.disconnect("sid-1")

        assert broadcaster.subscriber_count(session_id) == 0

    async def test_leave_session(self, handlers, broadcaster, session_with_player):
        session_id, _, player = await session_with_player()
        await handlers.join_session("sid-1", _join(session_id, player))

        await handlers.leave_session("sid-1")

        assert broadcaster.subscription_of("sid-1") is None


class TestSessionActions:

    async def test_chat_reaches_every_subscriber(self, handlers, socket_server, session_with_player):
        session_id, owner, player = await session_with_player()
        await handlers.join_session("owner-sid", _join(session_id, owner))
        await handlers.join_session("player-sid", _join(session_id, player))

        await handlers.chat_message("player-sid", {"message": "For Iomedae!"})

        for sid in ("owner-sid", "player-sid"):
            chat = socket_server.received(sid, "chatMessage")[0]["chat"]
            assert chat["message"] == "For Iomedae!"
            assert chat["player_name"] == "Valeros"

    async def test_dice_roll(self, handlers, events, socket_server, session_with_player, fixed_rolls):
        session_id, _, player = await session_with_player()
        await handlers.join_session("player-sid", _join(session_id, player))
        events.rng = fixed_rolls([15, 2])

        await handlers.dice_roll("player-sid", {"expression": "1d20-1d4", "roll_type": "attack"})

        roll = socket_server.received("player-sid", "diceRolled")[0]["roll"]
        assert roll["result"] == 13
        assert roll["roll_type"] == "attack"

    async def test_update_character(self, handlers, bindings, socket_server, session_with_player):
        session_id, _, player = await session_with_player()
        await handlers.join_session("player-sid", _join(session_id, player))

        await handlers.update_character("player-sid", {"character_data": {"hp": 7}})

        assert await bindings.get(player.player_id) == {"hp": 7}
        assert socket_server.received("player-sid", "characterUpdated")[0]["character_data"] == {"hp": 7}

    async def test_spectator_cannot_act_as_a_player(self, handlers, events, socket_server, session_with_player):
        session_id, owner, _ = await session_with_player()
        await handlers.join_session("sid-1", _join(session_id))

        await handlers.chat_message("sid-1", {"player_id": owner.player_id, "message": "hello"})
        await handlers.dice_roll("sid-1", {"player_id": owner.player_id, "expression": "1d20"})

        assert [e["code"] for e in socket_server.received("sid-1", "error")] == ["forbidden", "forbidden"]
        assert not socket_server.received("sid-1", "chatMessage")
        assert await events.chat_history(session_id) == []

    async def test_cannot_impersonate_another_player(self, handlers, socket_server, session_with_player):
        session_id, owner, player = await session_with_player()
        await handlers.join_session("player-sid", _join(session_id, player))

        await handlers.chat_message("player-sid", {"player_id": owner.player_id, "message": "I am the GM"})

        assert socket_server.received("player-sid", "error")[0]["code"] == "acting_for_other_player"
        assert not socket_server.received("player-sid", "chatMessage")

    async def test_action_before_join(self, handlers, socket_server):
        await handlers.chat_message("sid-1", {"message": "hello"})
        assert socket_server.received("sid-1", "error")[0]["code"] == "precondition_failed"

    async def test_persistence_failure_reported_to_sender_only(
        self, handlers, events, socket_server, session_with_player
    ):
        session_id, owner, player = await session_with_player()
        await handlers.join_session("owner-sid", _join(session_id, owner))
        await handlers.join_session("player-sid", _join(session_id, player))
        events.post_chat_message = AsyncMock(side_effect=RuntimeError("boom"))

        await handlers.chat_message("player-sid", {"message": "hello"})

        assert socket_server.received("player-sid", "error")[0]["code"] == "internal_error"
        assert not socket_server.received("owner-sid", "error")
        assert not socket_server.received("owner-sid", "chatMessage")
