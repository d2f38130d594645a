"""FastAPI dependencies resolving the services wired in create_app()."""

from typing import Optional

from fastapi import Depends, Header, Request

from tavern.services.character_service import CharacterService
from tavern.session.character_binding import CharacterBindingService
from tavern.session.player_roster import PlayerRoster
from tavern.session.session_events import SessionEventService
from tavern.session.session_models import SessionPlayer
from tavern.session.session_registry import SessionRegistry


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.session_registry


def get_player_roster(request: Request) -> PlayerRoster:
    return request.app.state.player_roster


def get_character_bindings(request: Request) -> CharacterBindingService:
    return request.app.state.character_bindings


def get_session_events(request: Request) -> SessionEventService:
    return request.app.state.session_events


def get_character_service(request: Request) -> CharacterService:
    return request.app.state.character_service


async def get_session_player(
    session_id: str,
    x_player_token: Optional[str] = Header(None),
    roster: PlayerRoster = Depends(get_player_roster),
) -> SessionPlayer:
    """Player authenticated by the ``X-Player-Token`` header for ``session_id``."""
    return await roster.authenticate(session_id, x_player_token)


async def get_optional_session_player(
    session_id: str,
    x_player_token: Optional[str] = Header(None),
    roster: PlayerRoster = Depends(get_player_roster),
) -> Optional[SessionPlayer]:
    if not x_player_token:
        return None
    return await roster.authenticate(session_id, x_player_token)
