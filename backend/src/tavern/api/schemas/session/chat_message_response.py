"""Schema for a chat history entry."""

from typing import Optional

from pydantic import BaseModel


class ChatMessageResponse(BaseModel):
    id: int
    session_id: str
    player_id: str
    player_name: str
    message: str
    timestamp: Optional[str] = None
