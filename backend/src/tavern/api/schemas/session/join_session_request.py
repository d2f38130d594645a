"""Schema for join session request."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class JoinSessionRequest(BaseModel):
    """Request to join a waiting session, optionally with a character."""
    player_name: str = Field(min_length=1, max_length=255)
    character_data: Optional[Dict[str, Any]] = None
