"""Shared fixtures: in-memory database, recording socket server and wired services."""

from typing import Any, Dict, List, Optional, Set

import pytest
import pytest_asyncio

from auth.src.models import User  # noqa: F401  (registers the users table)
from db.src.connection import DatabaseManager
from tavern.config.settings import Settings
from tavern.connection.socketio_broadcaster import SessionBroadcaster
from tavern.infra.storage import CharacterRepository, SessionRepository
from tavern.models import Character  # noqa: F401  (registers the characters table)
from tavern.models.session_settings import SessionSettings
from tavern.session.character_binding import CharacterBindingService
from tavern.session.player_roster import PlayerRoster
from tavern.session.session_events import SessionEventService
from tavern.session.session_registry import SessionRegistry

TEST_JWT_SECRET = "test-secret-that-is-long-enough-for-hs256"


class FakeSocketServer:
    """Records room membership and emits instead of talking to real sockets."""

    def __init__(self):
        self.rooms: Dict[str, Set[str]] = {}
        self.emitted: List[Dict[str, Any]] = []
        self.handlers: Dict[str, Any] = {}
        self.fail_emits = False

    def on(self, event, handler=None, namespace=None):
        self.handlers[event] = handler

    async def enter_room(self, sid, room, namespace=None):
        self.rooms.setdefault(room, set()).add(sid)

    async def leave_room(self, sid, room, namespace=None):
        self.rooms.get(room, set()).discard(sid)

    async def emit(self, event, data=None, to=None, room=None, skip_sid=None, namespace=None, **kwargs):
        if self.fail_emits:
            raise ConnectionError("socket transport closed")
        target = to or room
        recipients = set(self.rooms.get(target, set())) if target in self.rooms else {target}
        if skip_sid:
            recipients.discard(skip_sid)
        self.emitted.append({
            "event": event,
            "data": data,
            "target": target,
            "namespace": namespace,
            "recipients": recipients,
        })

    def received(self, sid: str, event: Optional[str] = None) -> List[Dict[str, Any]]:
        """Payloads delivered to ``sid`` (optionally of one event type), in order."""
        return [
            e["data"] for e in self.emitted
            if sid in e["recipients"] and (event is None or e["event"] == event)
        ]

    def events_received(self, sid: str) -> List[str]:
        return [e["event"] for e in self.emitted if sid in e["recipients"]]


class FixedRolls:
    """Random source returning predetermined die outcomes."""

    def __init__(self, rolls):
        self._rolls = list(rolls)
        self.calls = []

    def randint(self, a, b):
        self.calls.append((a, b))
        return self._rolls.pop(0)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'tavern.db'}"


@pytest.fixture
def settings(database_url):
    return Settings(
        environment="test",
        database_url=database_url,
        jwt_secret=TEST_JWT_SECRET,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def db_manager(database_url):
    manager = DatabaseManager(database_url)
    manager.initialize()
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest.fixture
def socket_server():
    return FakeSocketServer()


@pytest.fixture
def broadcaster(socket_server):
    return SessionBroadcaster(socket_server)


@pytest.fixture
def repository(db_manager):
    return SessionRepository(db_manager)


@pytest.fixture
def character_repository(db_manager):
    return CharacterRepository(db_manager)


@pytest.fixture
def registry(repository, broadcaster):
    return SessionRegistry(repository, broadcaster, default_settings=SessionSettings())


@pytest.fixture
def roster(repository, registry, broadcaster):
    return PlayerRoster(repository, registry, broadcaster)


@pytest.fixture
def bindings(repository, roster, broadcaster):
    return CharacterBindingService(repository, roster, broadcaster)


@pytest.fixture
def events(repository, registry, roster, bindings, broadcaster, settings):
    return SessionEventService(repository, registry, roster, bindings, broadcaster, settings)


@pytest.fixture
def fixed_rolls():
    """Factory for a random source with predetermined outcomes."""
    return FixedRolls
