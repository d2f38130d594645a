"""Schema for a session player."""

from typing import Optional

from pydantic import BaseModel


class PlayerResponse(BaseModel):
    id: str
    session_id: str
    name: str
    role: str
    joined_at: Optional[str] = None
