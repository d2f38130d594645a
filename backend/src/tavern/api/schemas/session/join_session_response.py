"""Schema for join session response."""

from pydantic import BaseModel

from tavern.api.schemas.session.session_detail_response import SessionDetailResponse


class JoinSessionResponse(BaseModel):
    session_id: str
    player_id: str
    # Returned only here; send it back as X-Player-Token when acting as this player
    player_token: str
    session: SessionDetailResponse
