"""Schema for session detail response."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from tavern.api.schemas.session.player_response import PlayerResponse


class SessionDetailResponse(BaseModel):
    """A session with its roster and bound characters."""
    id: str
    name: str
    owner_player_id: Optional[str] = None
    status: str
    settings: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    participant_count: int = 0
    players: List[PlayerResponse] = Field(default_factory=list)
    characters: List[Dict[str, Any]] = Field(default_factory=list)
