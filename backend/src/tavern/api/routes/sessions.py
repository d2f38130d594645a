"""Session endpoints: create, list, join, leave, status, delete and history."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from tavern.api.dependencies import (
    get_character_bindings,
    get_optional_session_player,
    get_player_roster,
    get_session_events,
    get_session_registry,
    get_session_player,
)
from tavern.api.schemas.session import (
    BindCharacterRequest,
    CharacterBindingResponse,
    ChatMessageResponse,
    CreateSessionRequest,
    CreateSessionResponse,
    DiceRollResponse,
    JoinSessionRequest,
    JoinSessionResponse,
    SessionDetailResponse,
    SessionSummaryResponse,
    UpdateStatusRequest,
)
from tavern.errors import ActingForOtherPlayerError
from tavern.session.character_binding import CharacterBindingService
from tavern.session.player_roster import PlayerRoster
from tavern.session.session_events import SessionEventService
from tavern.session.session_models import SessionPlayer
from tavern.session.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.get("", response_model=List[SessionSummaryResponse])
async def list_sessions(registry: SessionRegistry = Depends(get_session_registry)):
    summaries = await registry.list_sessions()
    return [SessionSummaryResponse.from_model(s) for s in summaries]


@router.post("", response_model=CreateSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    req: CreateSessionRequest,
    registry: SessionRegistry = Depends(get_session_registry),
    roster: PlayerRoster = Depends(get_player_roster),
):
    overrides = req.settings.to_overrides() if req.settings else None
    session_id, owner_player_id = await registry.create_session(req.name, req.owner_name, overrides)
    logger.info("Created session %s via API", session_id)
    return CreateSessionResponse(
        session_id=session_id,
        owner_player_id=owner_player_id,
        player_token=await roster.player_token(owner_player_id),
        session=await registry.get_session_detail(session_id),
    )


@router.get("/{session_id}", response_model=SessionDetailResponse)
async def get_session(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    return await registry.get_session_detail(session_id)


@router.post("/{session_id}/join", response_model=JoinSessionResponse, status_code=status.HTTP_201_CREATED)
async def join_session(
    session_id: str,
    req: JoinSessionRequest,
    roster: PlayerRoster = Depends(get_player_roster),
    registry: SessionRegistry = Depends(get_session_registry),
):
    player_id = await roster.join(session_id, req.player_name, req.character_data)
    return JoinSessionResponse(
        session_id=session_id,
        player_id=player_id,
        player_token=await roster.player_token(player_id),
        session=await registry.get_session_detail(session_id),
    )


def _require_self(player: SessionPlayer, player_id: str) -> None:
    if player.player_id != player_id:
        raise ActingForOtherPlayerError()


@router.delete("/{session_id}/players/{player_id}", status_code=status.HTTP_204_NO_CONTENT)
async def leave_session(
    session_id: str,
    player_id: str,
    player: SessionPlayer = Depends(get_session_player),
    roster: PlayerRoster = Depends(get_player_roster),
):
    _require_self(player, player_id)
    await roster.leave(session_id, player_id)


@router.put("/{session_id}/players/{player_id}/character", response_model=CharacterBindingResponse)
async def bind_character(
    session_id: str,
    player_id: str,
    req: BindCharacterRequest,
    player: SessionPlayer = Depends(get_session_player),
    bindings: CharacterBindingService = Depends(get_character_bindings),
):
    _require_self(player, player_id)
    binding, created = await bindings.bind_or_update(session_id, player_id, req.character_data)
    return CharacterBindingResponse(
        player_id=binding.player_id,
        session_id=binding.session_id,
        character_data=binding.character_data,
        created=created,
        updated_at=binding.updated_at.isoformat() if binding.updated_at else None,
    )


@router.post("/{session_id}/status", response_model=SessionDetailResponse)
async def update_session_status(
    session_id: str,
    req: UpdateStatusRequest,
    player: SessionPlayer = Depends(get_session_player),
    registry: SessionRegistry = Depends(get_session_registry),
):
    await registry.update_status(session_id, player.player_id, req.status.value)
    return await registry.get_session_detail(session_id)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    player: SessionPlayer = Depends(get_session_player),
    registry: SessionRegistry = Depends(get_session_registry),
):
    await registry.delete_session(session_id, player.player_id)


@router.get("/{session_id}/chat", response_model=List[ChatMessageResponse])
async def get_chat_history(
    session_id: str,
    limit: int = Query(100, ge=1, le=500),
    events: SessionEventService = Depends(get_session_events),
):
    messages = await events.chat_history(session_id, limit)
    return [m.to_dict() for m in messages]


@router.get("/{session_id}/dice-rolls", response_model=List[DiceRollResponse])
async def get_dice_history(
    session_id: str,
    limit: int = Query(50, ge=1, le=500),
    viewer: Optional[SessionPlayer] = Depends(get_optional_session_player),
    events: SessionEventService = Depends(get_session_events),
):
    viewer_player_id = viewer.player_id if viewer else None
    rolls = await events.dice_history(session_id, limit, viewer_player_id=viewer_player_id)
    return [r.to_dict() for r in rolls]
