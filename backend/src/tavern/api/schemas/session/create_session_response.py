"""Schema for create session response."""

from pydantic import BaseModel

from tavern.api.schemas.session.session_detail_response import SessionDetailResponse


class CreateSessionResponse(BaseModel):
    session_id: str
    owner_player_id: str
    # Returned only here; send it back as X-Player-Token for owner actions
    player_token: str
    session: SessionDetailResponse
