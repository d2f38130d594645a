"""Schema for a character bound to a session player."""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class CharacterBindingResponse(BaseModel):
    player_id: str
    session_id: str
    character_data: Dict[str, Any]
    created: bool = False
    updated_at: Optional[str] = None
